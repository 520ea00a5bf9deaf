"""
Denormalized counters, recounted from their source tables.

Hooks on the ORM flush find which coaches and sessions a flush touched and
recount their counters inside the same transaction:

    coaches.client_count          <- members referencing the coach
    coaches.sessions_this_month   <- completed sessions starting this month
    coaches.revenue_this_month    <- price of those sessions
    sessions.current_participants <- session_participants rows

Counters are always recomputed with an aggregate query, never incremented.
The monthly counters are also reset by the `sweep-activity` command once a
new month starts.
"""
import logging
from datetime import datetime

from sqlalchemy import event, func, inspect, select, update

from gymsuite import db
from gymsuite.models.coach import Coach
from gymsuite.models.member import Member
from gymsuite.models.session import TrainingSession, SessionParticipant
from gymsuite.utils.helpers import month_bounds

logger = logging.getLogger(__name__)

_PENDING_KEY = 'gymsuite.recalculated'

# Session columns that feed the coach's monthly counters
_SESSION_METRIC_FIELDS = ('coach_id', 'status', 'start_time', 'price')


def recount_client_counts(connection, coach_ids):
    """Recount client_count of the given coaches"""
    if not coach_ids:
        return
    coaches = Coach.__table__
    members = Member.__table__
    client_count = select(func.count(members.c.id)).where(
        members.c.coach_id == coaches.c.id
    ).scalar_subquery()
    connection.execute(
        update(coaches).where(coaches.c.id.in_(coach_ids)).values(client_count=client_count)
    )
    logger.debug(f"Recounted clients for coaches {sorted(coach_ids)}")


def recount_monthly_session_metrics(connection, coach_ids, now=None):
    """Recount sessions_this_month and revenue_this_month of the given coaches"""
    if not coach_ids:
        return
    month_start, next_month_start = month_bounds(now or datetime.now())
    coaches = Coach.__table__
    sessions = TrainingSession.__table__
    in_month = (
        (sessions.c.coach_id == coaches.c.id)
        & (sessions.c.status == 'completed')
        & (sessions.c.start_time >= month_start)
        & (sessions.c.start_time < next_month_start)
    )
    connection.execute(
        update(coaches).where(coaches.c.id.in_(coach_ids)).values(
            sessions_this_month=select(func.count(sessions.c.id)).where(in_month).scalar_subquery(),
            revenue_this_month=select(func.coalesce(func.sum(sessions.c.price), 0)).where(
                in_month
            ).scalar_subquery(),
        )
    )
    logger.debug(f"Recounted monthly sessions for coaches {sorted(coach_ids)}")


def recount_participants(connection, session_ids):
    """Recount current_participants of the given sessions"""
    if not session_ids:
        return
    sessions = TrainingSession.__table__
    participants = SessionParticipant.__table__
    connection.execute(
        update(sessions).where(sessions.c.id.in_(session_ids)).values(
            current_participants=select(func.count(participants.c.id)).where(
                participants.c.session_id == sessions.c.id
            ).scalar_subquery()
        )
    )


def _history_values(obj, key):
    """Old and new values of an attribute within the current flush"""
    history = inspect(obj).attrs[key].history
    return set(history.added or ()) | set(history.deleted or ()) | set(history.unchanged or ())


def _changed(obj, key):
    return inspect(obj).attrs[key].history.has_changes()


def _collect_touched(session):
    """(coach ids needing a client recount, coach ids needing a session recount, session ids)"""
    client_coaches = set()
    session_coaches = set()
    touched_sessions = set()

    for obj in session.new:
        if isinstance(obj, Member) and obj.coach_id is not None:
            client_coaches.add(obj.coach_id)
        elif isinstance(obj, TrainingSession):
            session_coaches.add(obj.coach_id)
        elif isinstance(obj, SessionParticipant):
            touched_sessions.add(obj.session_id)

    for obj in session.deleted:
        if isinstance(obj, Member):
            client_coaches |= _history_values(obj, 'coach_id')
        elif isinstance(obj, TrainingSession):
            session_coaches |= _history_values(obj, 'coach_id')
        elif isinstance(obj, SessionParticipant):
            touched_sessions |= _history_values(obj, 'session_id')

    for obj in session.dirty:
        if isinstance(obj, Member):
            if _changed(obj, 'coach_id') or _changed(obj, 'coach'):
                client_coaches |= _history_values(obj, 'coach_id')
                client_coaches |= {c.id for c in _history_values(obj, 'coach') if c is not None}
        elif isinstance(obj, TrainingSession):
            if any(_changed(obj, key) for key in _SESSION_METRIC_FIELDS):
                session_coaches |= _history_values(obj, 'coach_id')
        elif isinstance(obj, SessionParticipant):
            if _changed(obj, 'session_id'):
                touched_sessions |= _history_values(obj, 'session_id')

    client_coaches.discard(None)
    session_coaches.discard(None)
    touched_sessions.discard(None)
    return client_coaches, session_coaches, touched_sessions


@event.listens_for(db.session, 'before_flush')
def load_counter_keys(session, flush_context, instances):
    """Expired rows carry no attribute history; load the keys the recount reads"""
    for obj in list(session.deleted) + list(session.dirty):
        if isinstance(obj, (Member, TrainingSession)):
            obj.coach_id
        elif isinstance(obj, SessionParticipant):
            obj.session_id


@event.listens_for(db.session, 'after_flush')
def recalculate_after_flush(session, flush_context):
    client_coaches, session_coaches, touched_sessions = _collect_touched(session)
    if not (client_coaches or session_coaches or touched_sessions):
        return

    connection = session.connection()
    recount_client_counts(connection, client_coaches)
    recount_monthly_session_metrics(connection, session_coaches)
    recount_participants(connection, touched_sessions)

    pending = session.info.setdefault(_PENDING_KEY, {'coaches': set(), 'sessions': set()})
    pending['coaches'] |= client_coaches | session_coaches
    pending['sessions'] |= touched_sessions


@event.listens_for(db.session, 'after_flush_postexec')
def expire_recalculated(session, flush_context):
    """Make loaded instances re-read the counters written behind the ORM's back"""
    pending = session.info.pop(_PENDING_KEY, None)
    if not pending:
        return
    _expire_counters(session, pending['coaches'], pending['sessions'])


def refresh_monthly_session_metrics(gym_id=None, now=None):
    """
    Recount the monthly session counters of every coach (of one gym, or of all gyms).

    Counters only move when a session is written; after a month boundary this
    resets them to the new month. The caller commits. Returns the number of
    coaches recounted.
    """
    query = db.session.query(Coach.id)
    if gym_id is not None:
        query = query.filter(Coach.gym_id == gym_id)
    coach_ids = {coach_id for coach_id, in query.all()}

    recount_monthly_session_metrics(db.session.connection(), coach_ids, now)
    _expire_counters(db.session, coach_ids, set())

    logger.info(f"Monthly session sweep gym={gym_id or 'all'}: {len(coach_ids)} coaches recounted")
    return len(coach_ids)


def _expire_counters(session, coach_ids, session_ids):
    for obj in list(session.identity_map.values()):
        object_id = inspect(obj).identity[0]
        if isinstance(obj, Coach) and object_id in coach_ids:
            session.expire(obj, ['client_count', 'sessions_this_month', 'revenue_this_month'])
        elif isinstance(obj, TrainingSession) and object_id in session_ids:
            session.expire(obj, ['current_participants'])
