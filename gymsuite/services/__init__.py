# Services package - domain operations over the models
