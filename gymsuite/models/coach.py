from datetime import datetime
from gymsuite import db


class Coach(db.Model):
    """Coach model - trainers, with counters kept by services.recalculation"""
    __tablename__ = 'coaches'

    id = db.Column(db.Integer, primary_key=True)
    gym_id = db.Column(db.Integer, db.ForeignKey('gyms.id'), nullable=False, index=True)
    profile_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=True)

    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20))
    avatar_url = db.Column(db.String(255))
    specializations = db.Column(db.JSON, default=list)
    bio = db.Column(db.Text)
    hourly_rate = db.Column(db.Numeric(10, 2), default=0)
    rating = db.Column(db.Numeric(3, 2), default=0)

    is_active = db.Column(db.Boolean, default=True)

    # Denormalized counters, recounted from members/sessions on every write
    client_count = db.Column(db.Integer, default=0, nullable=False)
    sessions_this_month = db.Column(db.Integer, default=0, nullable=False)
    revenue_this_month = db.Column(db.Numeric(10, 2), default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    members = db.relationship('Member', backref=db.backref('coach', active_history=True), lazy='dynamic')
    sessions = db.relationship('TrainingSession', backref=db.backref('coach', active_history=True),
                               lazy='dynamic',
                               cascade='all, delete-orphan',
                               order_by='TrainingSession.start_time')

    __table_args__ = (
        db.Index('idx_coaches_is_active', 'gym_id', 'is_active'),
    )

    def __repr__(self):
        return f'<Coach {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'gym_id': self.gym_id,
            'profile_id': self.profile_id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'avatar_url': self.avatar_url,
            'specializations': self.specializations or [],
            'bio': self.bio,
            'hourly_rate': float(self.hourly_rate or 0),
            'rating': float(self.rating or 0),
            'is_active': bool(self.is_active),
            'client_count': self.client_count or 0,
            'sessions_this_month': self.sessions_this_month or 0,
            'revenue_this_month': float(self.revenue_this_month or 0),
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_summary(self):
        return {
            'id': self.id,
            'name': self.name,
            'avatar_url': self.avatar_url,
            'email': self.email,
        }
