"""
Check-in recording.

One call appends a visit, bumps the member's visit counter, moves
``last_visit`` to the check-in time and refreshes the stored activity tier,
all in the caller's transaction.
"""
import logging
from datetime import datetime, timedelta

from flask import current_app

from gymsuite import db
from gymsuite.errors import ConflictError, NotFoundError
from gymsuite.models.member import Member, Visit

logger = logging.getLogger(__name__)


def find_recent_visit(member_id, now, window_seconds):
    """Latest visit of the member inside the dedupe window, if any"""
    if not window_seconds:
        return None
    return Visit.query.filter(
        Visit.member_id == member_id,
        Visit.check_in >= now - timedelta(seconds=window_seconds),
        Visit.check_in <= now
    ).order_by(Visit.check_in.desc()).first()


def record_visit(member_id, gym_id, now=None):
    """
    Record a check-in for a member of a gym.

    Args:
        member_id: member to check in
        gym_id: gym the check-in happens at, the member must belong to it
        now: check-in time, defaults to datetime.now()

    Returns:
        (visit, created) - created is False when a check-in inside the
        dedupe window was returned instead of writing a new one
    """
    member = Member.query.filter_by(id=member_id, gym_id=gym_id).first()
    if member is None:
        raise NotFoundError(f'Member {member_id} not found')

    now = now or datetime.now()

    existing = find_recent_visit(member.id, now, current_app.config.get('VISIT_DEDUPE_SECONDS', 0))
    if existing is not None:
        logger.info(f"Duplicate check-in for member {member.id} collapsed into visit {existing.id}")
        return existing, False

    visit = Visit(member_id=member.id, gym_id=gym_id, check_in=now)
    db.session.add(visit)

    member.total_visits = (member.total_visits or 0) + 1
    member.last_visit = now
    member.refresh_activity_status(now)

    db.session.flush()
    logger.info(f"Member {member.id} checked in (visit {visit.id}, total {member.total_visits})")
    return visit, True


def check_out_visit(visit_id, gym_id, now=None):
    """Set the check-out time of a visit, once"""
    visit = Visit.query.filter_by(id=visit_id, gym_id=gym_id).first()
    if visit is None:
        raise NotFoundError(f'Visit {visit_id} not found')
    if visit.check_out is not None:
        raise ConflictError('Visit already checked out')

    visit.check_out = now or datetime.now()
    return visit


def visit_history(member_id, limit=30):
    """Latest visits of a member, newest first"""
    return Visit.query.filter_by(member_id=member_id).order_by(
        Visit.check_in.desc()
    ).limit(limit).all()
