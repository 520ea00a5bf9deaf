from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from gymsuite import db
from gymsuite.errors import ValidationError
from gymsuite.forms import CoachForm, load_form, request_payload
from gymsuite.models.coach import Coach
from gymsuite.models.gym import Profile
from gymsuite.services.coaches import performance_metrics, coach_stats, delete_coach
from gymsuite.utils.decorators import gym_required, coaches_manager_required
from gymsuite.utils.helpers import get_for_gym_or_404

coaches_bp = Blueprint('coaches', __name__)


def _coach_values(partial=False):
    """Validated coach fields, specializations included"""
    payload = request_payload()
    values = load_form(CoachForm, partial=partial, payload=payload)

    if 'specializations' in payload:
        specializations = payload['specializations'] or []
        if not isinstance(specializations, list) or \
                not all(isinstance(s, str) and s.strip() for s in specializations):
            raise ValidationError('Invalid input', details={
                'specializations': ['Must be a list of non-empty strings']
            })
        values['specializations'] = [s.strip() for s in specializations]

    profile_id = values.get('profile_id')
    if profile_id is not None:
        if not Profile.query.filter_by(id=profile_id, gym_id=current_user.gym_id).first():
            raise ValidationError('Invalid profile', details={'profile_id': ['Profile not found in this gym']})

    return values


@coaches_bp.route('/coaches')
@login_required
@gym_required
def index():
    """List coaches"""
    search = request.args.get('search', '')
    query = Coach.query.filter_by(gym_id=current_user.gym_id)
    if search:
        query = query.filter(Coach.name.ilike(f'%{search}%'))

    coaches = query.order_by(Coach.name).all()
    return jsonify({'coaches': [c.to_dict() for c in coaches]})


@coaches_bp.route('/coaches/active')
@login_required
@gym_required
def active():
    coaches = Coach.query.filter_by(gym_id=current_user.gym_id, is_active=True).order_by(Coach.name).all()
    return jsonify({'coaches': [c.to_dict() for c in coaches]})


@coaches_bp.route('/coaches/stats')
@login_required
@gym_required
def stats():
    return jsonify(coach_stats(current_user.gym_id))


@coaches_bp.route('/coaches', methods=['POST'])
@login_required
@gym_required
@coaches_manager_required
def create():
    """Create new coach"""
    values = _coach_values()

    coach = Coach(gym_id=current_user.gym_id, **values)
    db.session.add(coach)
    db.session.commit()

    return jsonify(coach.to_dict()), 201


@coaches_bp.route('/coaches/<int:coach_id>')
@login_required
@gym_required
def view(coach_id):
    """Coach detail with assigned members"""
    coach = get_for_gym_or_404(Coach, coach_id, current_user.gym_id)
    data = coach.to_dict()
    data['members'] = [m.to_summary() for m in coach.members]
    return jsonify(data)


@coaches_bp.route('/coaches/<int:coach_id>', methods=['PATCH'])
@login_required
@gym_required
@coaches_manager_required
def update(coach_id):
    """Update coach"""
    coach = get_for_gym_or_404(Coach, coach_id, current_user.gym_id)

    for key, value in _coach_values(partial=True).items():
        setattr(coach, key, value)
    db.session.commit()

    return jsonify(coach.to_dict())


@coaches_bp.route('/coaches/<int:coach_id>', methods=['DELETE'])
@login_required
@gym_required
@coaches_manager_required
def delete(coach_id):
    """Delete coach, members are unassigned"""
    coach = get_for_gym_or_404(Coach, coach_id, current_user.gym_id)
    delete_coach(coach)
    db.session.commit()
    return '', 204


@coaches_bp.route('/coaches/<int:coach_id>/toggle-active', methods=['POST'])
@login_required
@gym_required
@coaches_manager_required
def toggle_active(coach_id):
    coach = get_for_gym_or_404(Coach, coach_id, current_user.gym_id)
    coach.is_active = not coach.is_active
    db.session.commit()
    return jsonify(coach.to_dict())


@coaches_bp.route('/coaches/<int:coach_id>/performance')
@login_required
@gym_required
def performance(coach_id):
    coach = get_for_gym_or_404(Coach, coach_id, current_user.gym_id)
    return jsonify(performance_metrics(coach))
