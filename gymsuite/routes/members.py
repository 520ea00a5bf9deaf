from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from gymsuite import db
from gymsuite.errors import ValidationError
from gymsuite.forms import MemberForm, load_form
from gymsuite.models.coach import Coach
from gymsuite.models.member import Member, MEMBERSHIP_TYPES
from gymsuite.services import activity
from gymsuite.services.visits import record_visit, check_out_visit, visit_history
from gymsuite.utils.decorators import gym_required
from gymsuite.utils.helpers import get_for_gym_or_404, paginated

members_bp = Blueprint('members', __name__)


def _check_coach(values):
    """Coach assignments must stay inside the gym"""
    coach_id = values.get('coach_id')
    if coach_id is not None:
        if not Coach.query.filter_by(id=coach_id, gym_id=current_user.gym_id).first():
            raise ValidationError('Invalid coach', details={'coach_id': ['Coach not found in this gym']})


@members_bp.route('/members')
@login_required
@gym_required
def index():
    """List members"""
    search = request.args.get('search', '')
    status = request.args.get('status', '')
    coach_id = request.args.get('coach_id', type=int)

    query = Member.query.filter_by(gym_id=current_user.gym_id)

    # Search filter
    if search:
        query = query.filter(
            db.or_(
                Member.name.ilike(f'%{search}%'),
                Member.email.ilike(f'%{search}%')
            )
        )

    # Activity filter, classified as of now
    if status:
        if status not in activity.ACTIVITY_TIERS:
            raise ValidationError('Invalid status', details={'status': [f'Unknown status: {status}']})
        query = query.filter(activity.status_criterion(Member.last_visit, status))

    if coach_id:
        query = query.filter_by(coach_id=coach_id)

    return jsonify(paginated(query.order_by(Member.name), lambda m: m.to_dict()))


@members_bp.route('/members/search')
@login_required
@gym_required
def search():
    """Search members by name or email"""
    q = request.args.get('q', '')

    if len(q) < 2:
        return jsonify({'results': []})

    members = Member.query.filter(
        Member.gym_id == current_user.gym_id,
        db.or_(
            Member.name.ilike(f'%{q}%'),
            Member.email.ilike(f'%{q}%')
        )
    ).order_by(Member.name).limit(20).all()

    return jsonify({'results': [m.to_dict(include_coach=False) for m in members]})


@members_bp.route('/members/stats')
@login_required
@gym_required
def stats():
    """Member counts by activity tier and membership type"""
    members = Member.query.filter_by(gym_id=current_user.gym_id).all()
    tiers = activity.count_by_status(members)

    return jsonify({
        'total': len(members),
        'active': tiers[activity.ACTIVE],
        'moderate': tiers[activity.MODERATE],
        'inactive': tiers[activity.INACTIVE],
        'byMembership': {
            t: sum(1 for m in members if m.membership_type == t) for t in MEMBERSHIP_TYPES
        },
    })


@members_bp.route('/members', methods=['POST'])
@login_required
@gym_required
def create():
    """Create new member"""
    values = load_form(MemberForm)
    _check_coach(values)

    member = Member(gym_id=current_user.gym_id, **values)
    member.refresh_activity_status()
    db.session.add(member)
    db.session.commit()

    return jsonify(member.to_dict()), 201


@members_bp.route('/members/<int:member_id>')
@login_required
@gym_required
def view(member_id):
    """Member detail with payments and booked sessions"""
    member = get_for_gym_or_404(Member, member_id, current_user.gym_id)

    data = member.to_dict()
    data['payments'] = [p.to_dict() for p in member.payments]
    data['sessions'] = [
        dict(p.session.to_dict(), attended=bool(p.attended)) for p in member.participations
    ]
    return jsonify(data)


@members_bp.route('/members/<int:member_id>', methods=['PATCH'])
@login_required
@gym_required
def update(member_id):
    """Update member"""
    member = get_for_gym_or_404(Member, member_id, current_user.gym_id)

    values = load_form(MemberForm, partial=True)
    _check_coach(values)

    for key, value in values.items():
        setattr(member, key, value)
    db.session.commit()

    return jsonify(member.to_dict())


@members_bp.route('/members/<int:member_id>', methods=['DELETE'])
@login_required
@gym_required
def delete(member_id):
    """Delete member with visits, payments and bookings"""
    member = get_for_gym_or_404(Member, member_id, current_user.gym_id)
    db.session.delete(member)
    db.session.commit()
    return '', 204


@members_bp.route('/members/<int:member_id>/check-in', methods=['POST'])
@login_required
@gym_required
def check_in(member_id):
    """Record a check-in"""
    visit, created = record_visit(member_id, current_user.gym_id)
    db.session.commit()

    return jsonify({
        'visit': visit.to_dict(),
        'member': visit.member.to_dict(include_coach=False),
        'duplicate': not created,
    }), 201 if created else 200


@members_bp.route('/members/<int:member_id>/visits')
@login_required
@gym_required
def visits(member_id):
    """Visit history of a member"""
    member = get_for_gym_or_404(Member, member_id, current_user.gym_id)
    limit = request.args.get('limit', 30, type=int)
    return jsonify({'visits': [v.to_dict() for v in visit_history(member.id, limit)]})


@members_bp.route('/visits/<int:visit_id>/check-out', methods=['POST'])
@login_required
@gym_required
def check_out(visit_id):
    """Record a check-out"""
    visit = check_out_visit(visit_id, current_user.gym_id)
    db.session.commit()
    return jsonify(visit.to_dict())
