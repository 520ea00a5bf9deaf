from datetime import datetime
from gymsuite import db


SESSION_STATUSES = ('scheduled', 'completed', 'cancelled', 'no_show')


class TrainingSession(db.Model):
    """Scheduled coaching session"""
    __tablename__ = 'sessions'

    id = db.Column(db.Integer, primary_key=True)
    gym_id = db.Column(db.Integer, db.ForeignKey('gyms.id'), nullable=False, index=True)
    coach_id = db.column_property(
        db.Column(db.Integer, db.ForeignKey('coaches.id', ondelete='CASCADE'), nullable=False, index=True),
        active_history=True
    )
    member_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='SET NULL'),
                          nullable=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    session_type = db.Column(db.String(30), default='personal')

    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)

    # Status: 'scheduled', 'completed', 'cancelled', 'no_show'
    status = db.Column(db.String(20), default='scheduled', index=True)

    price = db.Column(db.Numeric(10, 2), default=0)
    max_participants = db.Column(db.Integer, default=1)
    # Recounted from session_participants, see services.recalculation
    current_participants = db.Column(db.Integer, default=0, nullable=False)

    location = db.Column(db.String(200))
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    member = db.relationship('Member', backref=db.backref('sessions', lazy='dynamic'))
    participants = db.relationship('SessionParticipant', backref='session', lazy='dynamic',
                                   cascade='all, delete-orphan')

    def __repr__(self):
        return f'<TrainingSession {self.title} - {self.start_time}>'

    @property
    def duration_minutes(self):
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def to_dict(self, include_participants=False):
        data = {
            'id': self.id,
            'gym_id': self.gym_id,
            'coach_id': self.coach_id,
            'member_id': self.member_id,
            'title': self.title,
            'description': self.description,
            'session_type': self.session_type,
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'status': self.status,
            'price': float(self.price or 0),
            'max_participants': self.max_participants,
            'current_participants': self.current_participants or 0,
            'location': self.location,
            'notes': self.notes,
            'coach': self.coach.to_summary() if self.coach else None,
            'member': self.member.to_summary() if self.member else None,
        }
        if include_participants:
            data['participants'] = [p.to_dict() for p in self.participants]
        return data


class SessionParticipant(db.Model):
    """Members booked into a session"""
    __tablename__ = 'session_participants'

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('sessions.id', ondelete='CASCADE'),
                           nullable=False)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='CASCADE'),
                          nullable=False)
    attended = db.Column(db.Boolean, default=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('session_id', 'member_id', name='unique_session_participant'),
    )

    def __repr__(self):
        return f'<SessionParticipant {self.session_id} - {self.member_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'session_id': self.session_id,
            'member_id': self.member_id,
            'attended': bool(self.attended),
            'member': self.member.to_summary() if self.member else None,
        }
