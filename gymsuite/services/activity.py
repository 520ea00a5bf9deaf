"""
Member activity tiers.

A member's tier is a pure function of the last visit and the current time:

    now - last_visit <= 7 days   -> active
    now - last_visit <= 30 days  -> moderate
    otherwise / never visited    -> inactive

The tier stored on the member row is refreshed on every check-in and by
``reclassify_members`` (the ``sweep-activity`` CLI command). Aggregate reads
classify from ``last_visit`` directly so they never report a stale tier.
"""
import logging
from datetime import datetime, timedelta

from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

ACTIVE = 'active'
MODERATE = 'moderate'
INACTIVE = 'inactive'
ACTIVITY_TIERS = (ACTIVE, MODERATE, INACTIVE)

DEFAULT_ACTIVE_WINDOW_DAYS = 7
DEFAULT_MODERATE_WINDOW_DAYS = 30


def activity_windows():
    """(active, moderate) windows in days, from config when available"""
    if has_app_context():
        return (
            current_app.config.get('ACTIVE_WINDOW_DAYS', DEFAULT_ACTIVE_WINDOW_DAYS),
            current_app.config.get('MODERATE_WINDOW_DAYS', DEFAULT_MODERATE_WINDOW_DAYS),
        )
    return DEFAULT_ACTIVE_WINDOW_DAYS, DEFAULT_MODERATE_WINDOW_DAYS


def classify_activity(last_visit, now=None, active_days=None, moderate_days=None):
    """
    Derive the activity tier from the last visit.

    Args:
        last_visit: datetime of the last check-in or None
        now: reference time, defaults to datetime.now()
        active_days / moderate_days: override the configured windows

    Returns:
        'active', 'moderate' or 'inactive'
    """
    if last_visit is None:
        return INACTIVE

    if active_days is None or moderate_days is None:
        default_active, default_moderate = activity_windows()
        active_days = default_active if active_days is None else active_days
        moderate_days = default_moderate if moderate_days is None else moderate_days

    now = now or datetime.now()
    elapsed = now - last_visit

    if elapsed <= timedelta(days=active_days):
        return ACTIVE
    if elapsed <= timedelta(days=moderate_days):
        return MODERATE
    return INACTIVE


def status_criterion(column, status, now=None):
    """
    SQL criterion on a last-visit column matching one tier as of now.

    Mirrors classify_activity so filtered listings agree with the counts.
    """
    now = now or datetime.now()
    active_days, moderate_days = activity_windows()
    active_since = now - timedelta(days=active_days)
    moderate_since = now - timedelta(days=moderate_days)

    if status == ACTIVE:
        return column >= active_since
    if status == MODERATE:
        return (column >= moderate_since) & (column < active_since)
    if status == INACTIVE:
        return column.is_(None) | (column < moderate_since)
    raise ValueError(f'Unknown activity status: {status}')


def count_by_status(members, now=None):
    """Count members per tier, classifying each from its last visit"""
    now = now or datetime.now()
    counts = {ACTIVE: 0, MODERATE: 0, INACTIVE: 0}
    for member in members:
        counts[classify_activity(member.last_visit, now)] += 1
    return counts


def reclassify_members(gym_id=None, now=None):
    """
    Refresh the stored tier of every member (of one gym, or of all gyms).

    The caller commits. Returns the number of members whose tier changed.
    """
    from gymsuite.models.member import Member

    now = now or datetime.now()
    query = Member.query
    if gym_id is not None:
        query = query.filter_by(gym_id=gym_id)

    changed = 0
    scanned = 0
    for member in query.all():
        scanned += 1
        if member.refresh_activity_status(now):
            changed += 1

    logger.info(f"Activity sweep gym={gym_id or 'all'}: {scanned} members, {changed} changed")
    return changed
