from datetime import datetime
from gymsuite import db


class Message(db.Model):
    """Internal staff messages, direct or broadcast to the whole gym"""
    __tablename__ = 'messages'

    id = db.Column(db.Integer, primary_key=True)
    gym_id = db.Column(db.Integer, db.ForeignKey('gyms.id'), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    # NULL for broadcasts
    recipient_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=True, index=True)

    subject = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    is_broadcast = db.Column(db.Boolean, default=False)

    is_read = db.Column(db.Boolean, default=False)
    read_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    sender = db.relationship('Profile', foreign_keys=[sender_id], backref='sent_messages')
    recipient = db.relationship('Profile', foreign_keys=[recipient_id], backref='received_messages')

    def __repr__(self):
        return f'<Message {self.subject}>'

    @classmethod
    def inbox_query(cls, gym_id, profile_id):
        """Messages addressed to the profile plus gym broadcasts"""
        return cls.query.filter(
            cls.gym_id == gym_id,
            db.or_(cls.recipient_id == profile_id, cls.is_broadcast.is_(True))
        )

    def mark_read(self):
        self.is_read = True
        self.read_at = datetime.utcnow()

    def to_dict(self):
        return {
            'id': self.id,
            'gym_id': self.gym_id,
            'sender_id': self.sender_id,
            'recipient_id': self.recipient_id,
            'subject': self.subject,
            'content': self.content,
            'is_broadcast': bool(self.is_broadcast),
            'is_read': bool(self.is_read),
            'read_at': self.read_at.isoformat() if self.read_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'sender': self.sender.to_summary() if self.sender else None,
            'recipient': self.recipient.to_summary() if self.recipient else None,
        }


class Alert(db.Model):
    """Dashboard alerts"""
    __tablename__ = 'alerts'

    id = db.Column(db.Integer, primary_key=True)
    gym_id = db.Column(db.Integer, db.ForeignKey('gyms.id'), nullable=False)

    type = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    # Severity: 'info', 'warning', 'critical'
    severity = db.Column(db.String(20), default='info')
    is_read = db.Column(db.Boolean, default=False)

    related_id = db.Column(db.Integer)
    related_type = db.Column(db.String(50))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.Index('idx_alerts_is_read', 'gym_id', 'is_read'),
    )

    def __repr__(self):
        return f'<Alert {self.type} - {self.title}>'

    @classmethod
    def unread(cls, gym_id, limit=None):
        """Unread alerts, newest first"""
        query = cls.query.filter_by(gym_id=gym_id, is_read=False).order_by(
            cls.created_at.desc(), cls.id.desc()
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def to_dict(self):
        return {
            'id': self.id,
            'gym_id': self.gym_id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'severity': self.severity,
            'is_read': bool(self.is_read),
            'related_id': self.related_id,
            'related_type': self.related_type,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
