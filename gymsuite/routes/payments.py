from datetime import date

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from gymsuite import db
from gymsuite.errors import ValidationError
from gymsuite.forms import PaymentForm, MarkPaidForm, load_form
from gymsuite.models.member import Member
from gymsuite.models.payment import Payment, PAYMENT_STATUSES
from gymsuite.services.payments import PaymentAggregator
from gymsuite.utils.decorators import gym_required
from gymsuite.utils.helpers import get_for_gym_or_404, paginated

payments_bp = Blueprint('payments', __name__)


def _check_member(values):
    member_id = values.get('member_id')
    if 'member_id' in values and member_id is None:
        raise ValidationError('Invalid input', details={'member_id': ['This field is required.']})
    if member_id is not None:
        if not Member.query.filter_by(id=member_id, gym_id=current_user.gym_id).first():
            raise ValidationError('Invalid member', details={'member_id': ['Member not found in this gym']})


@payments_bp.route('/payments')
@login_required
@gym_required
def index():
    """List payments, newest due date first"""
    status = request.args.get('status', '')
    member_id = request.args.get('member_id', type=int)

    query = Payment.query.filter_by(gym_id=current_user.gym_id)
    if status:
        if status not in PAYMENT_STATUSES:
            raise ValidationError('Invalid status', details={'status': [f'Unknown status: {status}']})
        query = query.filter_by(status=status)
    if member_id:
        query = query.filter_by(member_id=member_id)

    query = query.order_by(Payment.due_date.desc(), Payment.id.desc())
    return jsonify(paginated(query, lambda p: p.to_dict(include_member=True)))


@payments_bp.route('/payments/overdue')
@login_required
@gym_required
def overdue():
    """Payments marked overdue, oldest due date first"""
    payments = Payment.query.filter_by(
        gym_id=current_user.gym_id, status='overdue'
    ).order_by(Payment.due_date.asc()).all()
    return jsonify({'payments': [p.to_dict(include_member=True) for p in payments]})


@payments_bp.route('/payments/stats')
@login_required
@gym_required
def stats():
    return jsonify(PaymentAggregator(current_user.gym_id).stats())


@payments_bp.route('/payments/revenue-by-month')
@login_required
@gym_required
def revenue_by_month():
    months = request.args.get('months', 12, type=int)
    if months < 1:
        raise ValidationError('Invalid months', details={'months': ['Must be at least 1']})
    return jsonify({'revenue': PaymentAggregator(current_user.gym_id).revenue_by_month(months)})


@payments_bp.route('/payments', methods=['POST'])
@login_required
@gym_required
def create():
    """Record a payment"""
    values = load_form(PaymentForm)
    _check_member(values)

    payment = Payment(gym_id=current_user.gym_id, **values)
    if payment.status == 'paid' and payment.paid_date is None:
        payment.mark_paid(values.get('payment_method'))
    db.session.add(payment)
    db.session.commit()

    return jsonify(payment.to_dict(include_member=True)), 201


@payments_bp.route('/payments/<int:payment_id>')
@login_required
@gym_required
def view(payment_id):
    payment = get_for_gym_or_404(Payment, payment_id, current_user.gym_id)
    return jsonify(payment.to_dict(include_member=True))


@payments_bp.route('/payments/<int:payment_id>', methods=['PATCH'])
@login_required
@gym_required
def update(payment_id):
    """Update payment"""
    payment = get_for_gym_or_404(Payment, payment_id, current_user.gym_id)

    values = load_form(PaymentForm, partial=True)
    _check_member(values)
    for field in ('amount', 'due_date'):
        if field in values and values[field] is None:
            raise ValidationError('Invalid input', details={field: ['This field is required.']})

    for key, value in values.items():
        setattr(payment, key, value)
    db.session.commit()

    return jsonify(payment.to_dict(include_member=True))


@payments_bp.route('/payments/<int:payment_id>', methods=['DELETE'])
@login_required
@gym_required
def delete(payment_id):
    payment = get_for_gym_or_404(Payment, payment_id, current_user.gym_id)
    db.session.delete(payment)
    db.session.commit()
    return '', 204


@payments_bp.route('/payments/<int:payment_id>/mark-paid', methods=['POST'])
@login_required
@gym_required
def mark_paid(payment_id):
    """Mark a payment as paid now"""
    payment = get_for_gym_or_404(Payment, payment_id, current_user.gym_id)
    values = load_form(MarkPaidForm)
    payment.mark_paid(values.get('payment_method'))
    db.session.commit()
    return jsonify(payment.to_dict(include_member=True))


@payments_bp.route('/members/<int:member_id>/payments')
@login_required
@gym_required
def member_payments(member_id):
    """Payment history of one member"""
    member = get_for_gym_or_404(Member, member_id, current_user.gym_id)
    payments = member.payments.order_by(Payment.due_date.desc()).all()
    next_due = min(
        (p.due_date for p in payments if p.status != 'paid' and p.due_date >= date.today()),
        default=None
    )
    return jsonify({
        'payments': [p.to_dict() for p in payments],
        'outstanding': round(sum(
            float(p.amount or 0) for p in payments if p.status in ('pending', 'overdue')
        ), 2),
        'nextDue': next_due.isoformat() if next_due else None,
    })
