from datetime import datetime, date
from gymsuite import db
from gymsuite.services.activity import classify_activity


MEMBERSHIP_TYPES = ('basic', 'premium', 'vip', 'trial')


class Member(db.Model):
    """Member model - Gym members/clients"""
    __tablename__ = 'members'

    id = db.Column(db.Integer, primary_key=True)
    gym_id = db.Column(db.Integer, db.ForeignKey('gyms.id'), nullable=False, index=True)
    # Old value is loaded on reassignment so both coaches get recounted
    coach_id = db.column_property(
        db.Column(db.Integer, db.ForeignKey('coaches.id', ondelete='SET NULL'), nullable=True, index=True),
        active_history=True
    )

    # Basic info
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20))
    avatar_url = db.Column(db.String(255))

    # Membership
    membership_type = db.Column(db.String(20), default='basic')
    membership_start = db.Column(db.Date, default=date.today)
    membership_end = db.Column(db.Date)
    monthly_fee = db.Column(db.Numeric(10, 2), default=0)

    # Activity - derived from last_visit, see services.activity
    activity_status = db.Column(db.String(20), default='active')
    last_visit = db.Column(db.DateTime)
    total_visits = db.Column(db.Integer, default=0, nullable=False)

    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    visits = db.relationship('Visit', backref='member', lazy='dynamic',
                             cascade='all, delete-orphan',
                             order_by='desc(Visit.check_in)')
    payments = db.relationship('Payment', backref='member', lazy='dynamic',
                               cascade='all, delete-orphan')
    participations = db.relationship('SessionParticipant', backref='member', lazy='dynamic',
                                     cascade='all, delete-orphan')

    __table_args__ = (
        db.Index('idx_members_activity_status', 'gym_id', 'activity_status'),
    )

    def __repr__(self):
        return f'<Member {self.name}>'

    def classify(self, now=None):
        """Activity tier as of now, ignoring the stored value"""
        return classify_activity(self.last_visit, now)

    def refresh_activity_status(self, now=None):
        """Recompute the stored tier, returns True when it changed"""
        status = self.classify(now)
        changed = status != self.activity_status
        self.activity_status = status
        return changed

    def to_dict(self, include_coach=True):
        data = {
            'id': self.id,
            'gym_id': self.gym_id,
            'coach_id': self.coach_id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'avatar_url': self.avatar_url,
            'membership_type': self.membership_type,
            'membership_start': self.membership_start.isoformat() if self.membership_start else None,
            'membership_end': self.membership_end.isoformat() if self.membership_end else None,
            'monthly_fee': float(self.monthly_fee or 0),
            'activity_status': self.classify(),
            'last_visit': self.last_visit.isoformat() if self.last_visit else None,
            'total_visits': self.total_visits or 0,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_coach:
            data['coach'] = self.coach.to_summary() if self.coach else None
        return data

    def to_summary(self):
        return {
            'id': self.id,
            'name': self.name,
            'avatar_url': self.avatar_url,
            'email': self.email,
        }


class Visit(db.Model):
    """Member check-in records, append-only"""
    __tablename__ = 'member_visits'

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='CASCADE'),
                          nullable=False)
    gym_id = db.Column(db.Integer, db.ForeignKey('gyms.id'), nullable=False)

    check_in = db.Column(db.DateTime, nullable=False, default=datetime.now)
    check_out = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Indexes for faster queries
    __table_args__ = (
        db.Index('idx_member_visits_gym_check_in', 'gym_id', 'check_in'),
        db.Index('idx_member_visits_member', 'member_id', 'check_in'),
    )

    def __repr__(self):
        return f'<Visit {self.member_id} - {self.check_in}>'

    @property
    def duration_minutes(self):
        """Minutes between check-in and check-out"""
        if self.check_in and self.check_out:
            return int((self.check_out - self.check_in).total_seconds() // 60)
        return None

    def to_dict(self, include_member=False):
        data = {
            'id': self.id,
            'member_id': self.member_id,
            'gym_id': self.gym_id,
            'check_in': self.check_in.isoformat() if self.check_in else None,
            'check_out': self.check_out.isoformat() if self.check_out else None,
            'duration_minutes': self.duration_minutes,
        }
        if include_member:
            data['member'] = {
                'id': self.member.id,
                'name': self.member.name,
                'avatar_url': self.member.avatar_url,
            }
        return data
