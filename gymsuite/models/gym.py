from datetime import datetime
from flask import current_app
from flask_login import UserMixin
from gymsuite import db, login_manager


STAFF_ROLES = ('owner', 'admin', 'manager', 'coach', 'receptionist')


class Gym(db.Model):
    """Gym model - tenant root, every other record belongs to one gym"""
    __tablename__ = 'gyms'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(100))
    phone = db.Column(db.String(20))
    address = db.Column(db.Text)
    logo_url = db.Column(db.String(255))
    timezone = db.Column(db.String(50), default='Europe/Berlin')
    currency = db.Column(db.String(3), default='EUR')

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    profiles = db.relationship('Profile', backref='gym', lazy='dynamic')
    settings = db.relationship('Setting', backref='gym', lazy='dynamic',
                               cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Gym {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'logo_url': self.logo_url,
            'timezone': self.timezone,
            'currency': self.currency,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


class Profile(UserMixin, db.Model):
    """Profile model - staff identity issued by the identity provider"""
    __tablename__ = 'profiles'

    id = db.Column(db.Integer, primary_key=True)
    # NULL once the profile has been removed from its gym
    gym_id = db.Column(db.Integer, db.ForeignKey('gyms.id'), nullable=True, index=True)

    email = db.Column(db.String(100), unique=True, nullable=False)
    full_name = db.Column(db.String(100))
    avatar_url = db.Column(db.String(255))
    role = db.Column(db.String(20), default='coach')

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Profile {self.email}>'

    # Permission shortcuts
    @property
    def is_owner(self):
        return self.role == 'owner'

    def to_dict(self):
        return {
            'id': self.id,
            'gym_id': self.gym_id,
            'email': self.email,
            'full_name': self.full_name,
            'avatar_url': self.avatar_url,
            'role': self.role,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def to_summary(self):
        return {
            'id': self.id,
            'full_name': self.full_name,
            'avatar_url': self.avatar_url,
            'email': self.email,
        }


class Setting(db.Model):
    """Gym key/value settings (notification preferences, etc.)"""
    __tablename__ = 'settings'

    id = db.Column(db.Integer, primary_key=True)
    gym_id = db.Column(db.Integer, db.ForeignKey('gyms.id'), nullable=False)
    key = db.Column(db.String(100), nullable=False)
    value = db.Column(db.JSON, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('gym_id', 'key', name='unique_gym_setting'),
    )

    def __repr__(self):
        return f'<Setting {self.gym_id}:{self.key}>'

    @classmethod
    def as_dict(cls, gym_id):
        """All settings of a gym as a plain dict"""
        return {s.key: s.value for s in cls.query.filter_by(gym_id=gym_id).all()}

    @classmethod
    def upsert_many(cls, gym_id, values):
        """Insert or update several settings at once"""
        existing = {s.key: s for s in cls.query.filter_by(gym_id=gym_id).all()}
        for key, value in values.items():
            if key in existing:
                existing[key].value = value
            else:
                db.session.add(cls(gym_id=gym_id, key=key, value=value))


@login_manager.request_loader
def load_profile_from_request(request):
    """Resolve the profile id forwarded by the identity provider"""
    profile_id = request.headers.get(current_app.config['PROFILE_HEADER'])
    if not profile_id or not profile_id.isdigit():
        return None
    return db.session.get(Profile, int(profile_id))
