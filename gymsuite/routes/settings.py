import logging

from flask import Blueprint, jsonify
from flask_login import login_required, current_user

from gymsuite import db
from gymsuite.errors import NotFoundError, PermissionDenied, ValidationError
from gymsuite.forms import GymForm, StaffForm, RoleForm, load_form, request_payload
from gymsuite.models.gym import Gym, Profile, Setting
from gymsuite.utils.decorators import gym_required, owner_required, staff_manager_required

logger = logging.getLogger(__name__)

settings_bp = Blueprint('settings', __name__)


def _get_staff(profile_id):
    """Staff profile of the current gym that the current profile may manage"""
    profile = Profile.query.filter_by(id=profile_id, gym_id=current_user.gym_id).first()
    if profile is None:
        raise NotFoundError(f'Profile {profile_id} not found')
    if profile.is_owner and not current_user.is_owner:
        raise PermissionDenied('Only the owner can manage the owner profile')
    return profile


# ==================== GYM ====================

@settings_bp.route('/settings/gym')
@login_required
@gym_required
def gym():
    return jsonify(db.session.get(Gym, current_user.gym_id).to_dict())


@settings_bp.route('/settings/gym', methods=['PATCH'])
@login_required
@gym_required
@owner_required
def update_gym():
    """Update the gym profile"""
    gym = db.session.get(Gym, current_user.gym_id)
    for key, value in load_form(GymForm, partial=True).items():
        setattr(gym, key, value)
    db.session.commit()

    return jsonify(gym.to_dict())


# ==================== STAFF ====================

@settings_bp.route('/settings/staff')
@login_required
@gym_required
def staff():
    profiles = Profile.query.filter_by(gym_id=current_user.gym_id).order_by(Profile.full_name).all()
    return jsonify({'staff': [p.to_dict() for p in profiles]})


@settings_bp.route('/settings/staff/<int:profile_id>', methods=['PATCH'])
@login_required
@gym_required
@staff_manager_required
def update_staff(profile_id):
    profile = _get_staff(profile_id)
    for key, value in load_form(StaffForm, partial=True).items():
        setattr(profile, key, value)
    db.session.commit()
    return jsonify(profile.to_dict())


@settings_bp.route('/settings/staff/<int:profile_id>/role', methods=['POST'])
@login_required
@gym_required
@staff_manager_required
def change_role(profile_id):
    """Change the role of a staff profile"""
    profile = _get_staff(profile_id)
    role = load_form(RoleForm)['role']

    if profile.id == current_user.id:
        raise PermissionDenied('You cannot change your own role')
    if role == 'owner' and not current_user.is_owner:
        raise PermissionDenied('Only the owner can grant the owner role')

    profile.role = role
    db.session.commit()
    logger.info(f"Profile {profile.id} of gym {current_user.gym_id} is now {role}")

    return jsonify(profile.to_dict())


@settings_bp.route('/settings/staff/<int:profile_id>', methods=['DELETE'])
@login_required
@gym_required
@staff_manager_required
def remove_staff(profile_id):
    """Detach a profile from the gym"""
    profile = _get_staff(profile_id)
    if profile.id == current_user.id:
        raise PermissionDenied('You cannot remove yourself')

    profile.gym_id = None
    db.session.commit()
    logger.info(f"Profile {profile.id} removed from gym {current_user.gym_id}")

    return '', 204


# ==================== SETTINGS ====================

@settings_bp.route('/settings')
@login_required
@gym_required
def settings():
    return jsonify({'settings': Setting.as_dict(current_user.gym_id)})


@settings_bp.route('/settings', methods=['PUT'])
@login_required
@gym_required
@staff_manager_required
def save_settings():
    """Insert or update gym settings from a JSON object"""
    values = request_payload()
    if not values:
        raise ValidationError('No settings given')
    missing = sorted(key for key, value in values.items() if value is None)
    if missing:
        raise ValidationError('Invalid input', details={key: ['Value must not be null'] for key in missing})

    Setting.upsert_many(current_user.gym_id, values)
    db.session.commit()

    return jsonify({'settings': Setting.as_dict(current_user.gym_id)})
