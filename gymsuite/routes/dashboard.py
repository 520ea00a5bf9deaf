from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from gymsuite import db
from gymsuite.forms import AlertForm, load_form
from gymsuite.models.message import Alert
from gymsuite.services import dashboard as overview
from gymsuite.utils.decorators import gym_required
from gymsuite.utils.helpers import get_for_gym_or_404

dashboard_bp = Blueprint('dashboard', __name__)


@dashboard_bp.route('/dashboard')
@login_required
@gym_required
def index():
    """Gym overview snapshot"""
    return jsonify(overview.compose_overview(current_user.gym_id))


@dashboard_bp.route('/dashboard/activity')
@login_required
@gym_required
def activity():
    limit = request.args.get('limit', 10, type=int)
    return jsonify({'activity': overview.recent_activity(current_user.gym_id, limit)})


@dashboard_bp.route('/dashboard/upcoming')
@login_required
@gym_required
def upcoming():
    limit = request.args.get('limit', 5, type=int)
    sessions = overview.upcoming_sessions(current_user.gym_id, limit)
    return jsonify({'sessions': [s.to_dict() for s in sessions]})


@dashboard_bp.route('/dashboard/occupancy')
@login_required
@gym_required
def occupancy():
    """Average check-ins per hour over the last week"""
    return jsonify({'occupancy': overview.occupancy(current_user.gym_id)})


@dashboard_bp.route('/dashboard/growth')
@login_required
@gym_required
def growth():
    return jsonify(overview.growth_metrics(current_user.gym_id))


# ==================== ALERTS ====================

@dashboard_bp.route('/alerts')
@login_required
@gym_required
def alerts():
    """Alerts, unread only unless ?all=1"""
    query = Alert.query.filter_by(gym_id=current_user.gym_id)
    if not request.args.get('all', type=int):
        query = query.filter_by(is_read=False)

    items = query.order_by(Alert.created_at.desc(), Alert.id.desc()).all()
    return jsonify({'alerts': [a.to_dict() for a in items]})


@dashboard_bp.route('/alerts', methods=['POST'])
@login_required
@gym_required
def create_alert():
    """Raise a dashboard alert"""
    values = load_form(AlertForm)

    alert = Alert(gym_id=current_user.gym_id, **values)
    db.session.add(alert)
    db.session.commit()

    return jsonify(alert.to_dict()), 201


@dashboard_bp.route('/alerts/<int:alert_id>/read', methods=['POST'])
@login_required
@gym_required
def read_alert(alert_id):
    alert = get_for_gym_or_404(Alert, alert_id, current_user.gym_id)
    alert.is_read = True
    db.session.commit()
    return jsonify(alert.to_dict())


@dashboard_bp.route('/alerts/dismiss-all', methods=['POST'])
@login_required
@gym_required
def dismiss_all():
    """Mark every unread alert of the gym as read"""
    count = Alert.query.filter_by(gym_id=current_user.gym_id, is_read=False).update(
        {'is_read': True}, synchronize_session=False
    )
    db.session.commit()
    return jsonify({'dismissed': count})
