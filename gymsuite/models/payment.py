from datetime import datetime, date
from gymsuite import db


PAYMENT_STATUSES = ('paid', 'pending', 'overdue')


class Payment(db.Model):
    """Member payments - status is set by staff, never by time"""
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    gym_id = db.Column(db.Integer, db.ForeignKey('gyms.id'), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='CASCADE'),
                          nullable=False, index=True)

    amount = db.Column(db.Numeric(10, 2), nullable=False)
    description = db.Column(db.Text)
    payment_type = db.Column(db.String(30), default='membership')

    # Status: 'paid', 'pending', 'overdue'
    status = db.Column(db.String(20), default='pending', index=True)

    due_date = db.Column(db.Date, nullable=False, default=date.today, index=True)
    paid_date = db.Column(db.DateTime)

    payment_method = db.Column(db.String(20))
    invoice_number = db.Column(db.String(50))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Payment {self.amount} - {self.status}>'

    def mark_paid(self, payment_method=None, paid_at=None):
        """Mark the payment as paid now"""
        self.status = 'paid'
        self.paid_date = paid_at or datetime.now()
        self.payment_method = payment_method

    def to_dict(self, include_member=False):
        data = {
            'id': self.id,
            'gym_id': self.gym_id,
            'member_id': self.member_id,
            'amount': float(self.amount or 0),
            'description': self.description,
            'payment_type': self.payment_type,
            'status': self.status,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'paid_date': self.paid_date.isoformat() if self.paid_date else None,
            'payment_method': self.payment_method,
            'invoice_number': self.invoice_number,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_member:
            data['member'] = self.member.to_summary() if self.member else None
        return data
