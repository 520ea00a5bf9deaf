from flask import Blueprint, jsonify
from flask_login import login_required, current_user

from gymsuite import db
from gymsuite.errors import NotFoundError, PermissionDenied, ValidationError
from gymsuite.forms import MessageForm, BroadcastForm, load_form
from gymsuite.models.gym import Profile
from gymsuite.models.message import Message
from gymsuite.utils.decorators import gym_required

messages_bp = Blueprint('messages', __name__)


def _get_visible_message(message_id):
    """Message sent by, addressed to, or broadcast to the current profile"""
    message = Message.query.filter_by(id=message_id, gym_id=current_user.gym_id).first()
    if message is None or not (
        message.is_broadcast
        or message.sender_id == current_user.id
        or message.recipient_id == current_user.id
    ):
        raise NotFoundError(f'Message {message_id} not found')
    return message


@messages_bp.route('/messages/inbox')
@login_required
@gym_required
def inbox():
    messages = Message.inbox_query(current_user.gym_id, current_user.id).order_by(
        Message.created_at.desc(), Message.id.desc()
    ).all()
    return jsonify({'messages': [m.to_dict() for m in messages]})


@messages_bp.route('/messages/sent')
@login_required
@gym_required
def sent():
    messages = Message.query.filter_by(
        gym_id=current_user.gym_id, sender_id=current_user.id
    ).order_by(Message.created_at.desc(), Message.id.desc()).all()
    return jsonify({'messages': [m.to_dict() for m in messages]})


@messages_bp.route('/messages/unread-count')
@login_required
@gym_required
def unread_count():
    count = Message.inbox_query(current_user.gym_id, current_user.id).filter(
        Message.is_read.is_(False),
        Message.sender_id != current_user.id
    ).count()
    return jsonify({'count': count})


@messages_bp.route('/messages/recipients')
@login_required
@gym_required
def recipients():
    """Staff of the gym that can receive a direct message"""
    profiles = Profile.query.filter(
        Profile.gym_id == current_user.gym_id,
        Profile.id != current_user.id
    ).order_by(Profile.full_name).all()
    return jsonify({'recipients': [p.to_summary() for p in profiles]})


@messages_bp.route('/messages', methods=['POST'])
@login_required
@gym_required
def send():
    """Send a direct message to a colleague"""
    values = load_form(MessageForm)

    recipient = Profile.query.filter_by(id=values['recipient_id'], gym_id=current_user.gym_id).first()
    if recipient is None:
        raise ValidationError('Invalid recipient', details={'recipient_id': ['Recipient not found in this gym']})

    message = Message(gym_id=current_user.gym_id, sender_id=current_user.id, **values)
    db.session.add(message)
    db.session.commit()

    return jsonify(message.to_dict()), 201


@messages_bp.route('/messages/broadcast', methods=['POST'])
@login_required
@gym_required
def broadcast():
    """Send a message to every staff member of the gym"""
    values = load_form(BroadcastForm)

    message = Message(gym_id=current_user.gym_id, sender_id=current_user.id,
                      is_broadcast=True, **values)
    db.session.add(message)
    db.session.commit()

    return jsonify(message.to_dict()), 201


@messages_bp.route('/messages/<int:message_id>')
@login_required
@gym_required
def view(message_id):
    return jsonify(_get_visible_message(message_id).to_dict())


@messages_bp.route('/messages/<int:message_id>', methods=['DELETE'])
@login_required
@gym_required
def delete(message_id):
    """Delete a message, senders only"""
    message = _get_visible_message(message_id)
    if message.sender_id != current_user.id:
        raise PermissionDenied('Only the sender can delete a message')

    db.session.delete(message)
    db.session.commit()
    return '', 204


@messages_bp.route('/messages/<int:message_id>/read', methods=['POST'])
@login_required
@gym_required
def mark_read(message_id):
    message = _get_visible_message(message_id)
    if not message.is_read:
        message.mark_read()
        db.session.commit()
    return jsonify(message.to_dict())


@messages_bp.route('/messages/read-all', methods=['POST'])
@login_required
@gym_required
def mark_all_read():
    messages = Message.inbox_query(current_user.gym_id, current_user.id).filter(
        Message.is_read.is_(False),
        Message.sender_id != current_user.id
    ).all()
    for message in messages:
        message.mark_read()
    db.session.commit()
    return jsonify({'marked': len(messages)})
