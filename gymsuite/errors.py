"""
Exception types raised by models and services.

Each carries the HTTP status the API reports it with; the error handlers in
the application factory turn them into JSON responses.
"""


class GymSuiteError(Exception):
    """Base error"""
    status_code = 500
    code = 'internal_error'

    def __init__(self, message=None, details=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__
        self.details = details

    def to_dict(self):
        payload = {'error': self.code, 'message': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(GymSuiteError):
    """Invalid input"""
    status_code = 400
    code = 'validation_error'


class PermissionDenied(GymSuiteError):
    """Not allowed"""
    status_code = 403
    code = 'forbidden'


class NotFoundError(GymSuiteError):
    """Resource not found"""
    status_code = 404
    code = 'not_found'


class ConflictError(GymSuiteError):
    """Conflicting state"""
    status_code = 409
    code = 'conflict'


class DataFetchError(GymSuiteError):
    """A data read failed"""
    status_code = 502
    code = 'data_fetch_error'
