from datetime import datetime

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from gymsuite import db
from gymsuite.errors import ConflictError, NotFoundError, ValidationError
from gymsuite.forms import SessionForm, SessionStatusForm, AttendanceForm, load_form
from gymsuite.models.coach import Coach
from gymsuite.models.member import Member
from gymsuite.models.session import TrainingSession, SessionParticipant
from gymsuite.services.dashboard import upcoming_sessions
from gymsuite.utils.decorators import gym_required
from gymsuite.utils.helpers import get_for_gym_or_404, parse_datetime, day_bounds

sessions_bp = Blueprint('sessions', __name__)


def _check_session_values(values, session=None):
    """Coach and member must be in the gym, the session must end after it starts"""
    gym_id = current_user.gym_id
    errors = {}

    if values.get('coach_id') is not None:
        if not Coach.query.filter_by(id=values['coach_id'], gym_id=gym_id).first():
            errors['coach_id'] = ['Coach not found in this gym']

    if values.get('member_id') is not None:
        if not Member.query.filter_by(id=values['member_id'], gym_id=gym_id).first():
            errors['member_id'] = ['Member not found in this gym']

    start = values.get('start_time', session.start_time if session else None)
    end = values.get('end_time', session.end_time if session else None)
    if start and end and end <= start:
        errors['end_time'] = ['End time must be after start time']

    if errors:
        raise ValidationError('Invalid input', details=errors)


@sessions_bp.route('/sessions')
@login_required
@gym_required
def index():
    """List sessions, optionally within [start, end)"""
    start = parse_datetime(request.args.get('start'), 'start')
    end = parse_datetime(request.args.get('end'), 'end')
    status = request.args.get('status', '')

    query = TrainingSession.query.filter_by(gym_id=current_user.gym_id)
    if start:
        query = query.filter(TrainingSession.start_time >= start)
    if end:
        query = query.filter(TrainingSession.start_time < end)
    if status:
        query = query.filter_by(status=status)

    sessions = query.order_by(TrainingSession.start_time).all()
    return jsonify({'sessions': [s.to_dict() for s in sessions]})


@sessions_bp.route('/sessions/today')
@login_required
@gym_required
def today():
    day_start, day_end = day_bounds()
    sessions = TrainingSession.query.filter(
        TrainingSession.gym_id == current_user.gym_id,
        TrainingSession.start_time >= day_start,
        TrainingSession.start_time < day_end
    ).order_by(TrainingSession.start_time).all()
    return jsonify({'sessions': [s.to_dict() for s in sessions]})


@sessions_bp.route('/sessions/upcoming')
@login_required
@gym_required
def upcoming():
    limit = request.args.get('limit', 10, type=int)
    sessions = upcoming_sessions(current_user.gym_id, limit)
    return jsonify({'sessions': [s.to_dict() for s in sessions]})


@sessions_bp.route('/sessions', methods=['POST'])
@login_required
@gym_required
def create():
    """Schedule a session"""
    values = load_form(SessionForm)
    _check_session_values(values)

    session = TrainingSession(gym_id=current_user.gym_id, **values)
    db.session.add(session)
    db.session.commit()

    return jsonify(session.to_dict()), 201


@sessions_bp.route('/sessions/<int:session_id>')
@login_required
@gym_required
def view(session_id):
    session = get_for_gym_or_404(TrainingSession, session_id, current_user.gym_id)
    return jsonify(session.to_dict(include_participants=True))


@sessions_bp.route('/sessions/<int:session_id>', methods=['PATCH'])
@login_required
@gym_required
def update(session_id):
    """Update session"""
    session = get_for_gym_or_404(TrainingSession, session_id, current_user.gym_id)

    values = load_form(SessionForm, partial=True)
    if 'coach_id' in values and values['coach_id'] is None:
        raise ValidationError('Invalid input', details={'coach_id': ['This field is required.']})
    _check_session_values(values, session)

    for key, value in values.items():
        setattr(session, key, value)
    db.session.commit()

    return jsonify(session.to_dict())


@sessions_bp.route('/sessions/<int:session_id>', methods=['DELETE'])
@login_required
@gym_required
def delete(session_id):
    session = get_for_gym_or_404(TrainingSession, session_id, current_user.gym_id)
    db.session.delete(session)
    db.session.commit()
    return '', 204


@sessions_bp.route('/sessions/<int:session_id>/status', methods=['POST'])
@login_required
@gym_required
def set_status(session_id):
    """Move a session to scheduled/completed/cancelled/no_show"""
    session = get_for_gym_or_404(TrainingSession, session_id, current_user.gym_id)
    session.status = load_form(SessionStatusForm)['status']
    db.session.commit()
    return jsonify(session.to_dict())


# ==================== PARTICIPANTS ====================

def _get_participant(session, member_id):
    participant = SessionParticipant.query.filter_by(session_id=session.id, member_id=member_id).first()
    if participant is None:
        raise NotFoundError(f'Member {member_id} is not booked into this session')
    return participant


@sessions_bp.route('/sessions/<int:session_id>/participants/<int:member_id>', methods=['POST'])
@login_required
@gym_required
def add_participant(session_id, member_id):
    """Book a member into a session"""
    session = get_for_gym_or_404(TrainingSession, session_id, current_user.gym_id)
    member = get_for_gym_or_404(Member, member_id, current_user.gym_id)

    if SessionParticipant.query.filter_by(session_id=session.id, member_id=member.id).first():
        raise ConflictError('Member is already booked into this session')
    if session.max_participants and session.current_participants >= session.max_participants:
        raise ConflictError('Session is full')

    participant = SessionParticipant(session_id=session.id, member_id=member.id)
    db.session.add(participant)
    db.session.commit()

    return jsonify(session.to_dict(include_participants=True)), 201


@sessions_bp.route('/sessions/<int:session_id>/participants/<int:member_id>', methods=['DELETE'])
@login_required
@gym_required
def remove_participant(session_id, member_id):
    session = get_for_gym_or_404(TrainingSession, session_id, current_user.gym_id)
    db.session.delete(_get_participant(session, member_id))
    db.session.commit()
    return jsonify(session.to_dict(include_participants=True))


@sessions_bp.route('/sessions/<int:session_id>/participants/<int:member_id>/attendance', methods=['POST'])
@login_required
@gym_required
def mark_attendance(session_id, member_id):
    session = get_for_gym_or_404(TrainingSession, session_id, current_user.gym_id)
    participant = _get_participant(session, member_id)
    participant.attended = load_form(AttendanceForm).get('attended', True)
    db.session.commit()
    return jsonify(participant.to_dict())


@sessions_bp.route('/coaches/<int:coach_id>/sessions')
@login_required
@gym_required
def coach_sessions(coach_id):
    """Sessions of one coach, upcoming only with ?upcoming=1"""
    coach = get_for_gym_or_404(Coach, coach_id, current_user.gym_id)
    query = coach.sessions
    if request.args.get('upcoming', type=int):
        query = query.filter(TrainingSession.start_time >= datetime.now())
    return jsonify({'sessions': [s.to_dict() for s in query.all()]})
