"""
Dashboard overview.

``compose_overview`` reads members, coaches, payments, sessions and unread
alerts of a gym concurrently, each read in its own application context, and
folds them into one snapshot. Any failed read aborts the whole snapshot with
``DataFetchError``.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import func

from gymsuite import db
from gymsuite.errors import DataFetchError
from gymsuite.models.coach import Coach
from gymsuite.models.member import Member, Visit
from gymsuite.models.message import Alert
from gymsuite.models.payment import Payment
from gymsuite.models.session import TrainingSession
from gymsuite.services import activity, payments as payment_metrics
from gymsuite.utils.helpers import day_bounds, month_start, shift_months

logger = logging.getLogger(__name__)


# Reads are plain row tuples so they can leave their worker's session
def read_members(gym_id):
    return db.session.query(
        Member.id, Member.last_visit, Member.membership_type, Member.monthly_fee
    ).filter(Member.gym_id == gym_id).all()


def read_coaches(gym_id):
    return db.session.query(
        Coach.id, Coach.is_active, Coach.client_count
    ).filter(Coach.gym_id == gym_id).all()


def read_payments(gym_id):
    return db.session.query(
        Payment.amount, Payment.status, Payment.paid_date
    ).filter(Payment.gym_id == gym_id).all()


def read_sessions(gym_id):
    return db.session.query(
        TrainingSession.id, TrainingSession.status, TrainingSession.start_time
    ).filter(TrainingSession.gym_id == gym_id).all()


def read_alerts(gym_id):
    limit = current_app.config.get('DASHBOARD_ALERT_LIMIT', 5)
    return [alert.to_dict() for alert in Alert.unread(gym_id, limit=limit)]


OVERVIEW_READS = {
    'members': read_members,
    'coaches': read_coaches,
    'payments': read_payments,
    'sessions': read_sessions,
    'alerts': read_alerts,
}


def fetch_all(gym_id, reads=None):
    """
    Run every read concurrently and wait for all of them.

    Raises:
        DataFetchError: naming the first read that failed
    """
    reads = reads or OVERVIEW_READS
    app = current_app._get_current_object()
    max_workers = max(1, app.config.get('DASHBOARD_MAX_WORKERS', len(reads)))

    def run(read):
        with app.app_context():
            return read(gym_id)

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {name: pool.submit(run, read) for name, read in reads.items()}

    results = {}
    for name, future in futures.items():
        try:
            results[name] = future.result()
        except Exception as e:
            logger.error(f"Dashboard read '{name}' failed for gym {gym_id}: {e}")
            raise DataFetchError(f"Failed to load {name}", details={'read': name}) from e
    return results


def monthly_recurring_revenue(members):
    """Monthly fees of every member of the gym"""
    return round(sum(float(m.monthly_fee or 0) for m in members), 2)


def build_overview(data, now=None):
    """Fold fetched rows into the overview snapshot"""
    now = now or datetime.now()
    members = data['members']
    coaches = data['coaches']
    payments = data['payments']
    sessions = data['sessions']

    tiers = activity.count_by_status(members, now)
    day_start, day_end = day_bounds(now.date())

    return {
        'totalMembers': len(members),
        'activeMembers': tiers[activity.ACTIVE],
        'moderateMembers': tiers[activity.MODERATE],
        'inactiveMembers': tiers[activity.INACTIVE],
        'totalCoaches': len(coaches),
        'activeCoaches': sum(1 for c in coaches if c.is_active),
        'mrr': monthly_recurring_revenue(members),
        'revenueThisMonth': payment_metrics.revenue_this_month(payments, now),
        'pendingPayments': payment_metrics.count_by_status(payments, 'pending'),
        'overduePayments': payment_metrics.count_by_status(payments, 'overdue'),
        'overdueAmount': payment_metrics.amount_by_status(payments, 'overdue'),
        'todaySessionsCount': sum(1 for s in sessions if day_start <= s.start_time < day_end),
        'totalSessions': len(sessions),
        'alerts': data['alerts'],
    }


def compose_overview(gym_id, now=None):
    """Single snapshot of a gym for the dashboard"""
    return build_overview(fetch_all(gym_id), now)


def recent_activity(gym_id, limit=10):
    """Latest check-ins with the member attached"""
    visits = Visit.query.filter_by(gym_id=gym_id).order_by(
        Visit.check_in.desc()
    ).limit(limit).all()
    return [v.to_dict(include_member=True) for v in visits]


def upcoming_sessions(gym_id, limit=5, now=None):
    """Scheduled sessions that have not started yet"""
    now = now or datetime.now()
    return TrainingSession.query.filter(
        TrainingSession.gym_id == gym_id,
        TrainingSession.status == 'scheduled',
        TrainingSession.start_time >= now
    ).order_by(TrainingSession.start_time.asc()).limit(limit).all()


def occupancy(gym_id, now=None, first_hour=6, last_hour=22, days=7):
    """Average check-ins per hour of day over the last week"""
    now = now or datetime.now()
    today_start, _ = day_bounds(now.date())
    since = today_start - timedelta(days=days)

    check_ins = db.session.query(Visit.check_in).filter(
        Visit.gym_id == gym_id,
        Visit.check_in >= since
    ).all()

    hourly = {hour: 0 for hour in range(first_hour, last_hour + 1)}
    for (check_in,) in check_ins:
        if check_in.hour in hourly:
            hourly[check_in.hour] += 1

    return [
        {'hour': f'{hour}:00', 'visits': round(count / days)}
        for hour, count in hourly.items()
    ]


def growth_metrics(gym_id, now=None):
    """New members this month against last month"""
    now = now or datetime.now()
    this_month = month_start(now)
    last_month = shift_months(now, -1)

    def new_members(start, end=None):
        query = db.session.query(func.count(Member.id)).filter(
            Member.gym_id == gym_id,
            Member.created_at >= start
        )
        if end is not None:
            query = query.filter(Member.created_at < end)
        return query.scalar() or 0

    current_count = new_members(this_month)
    last_count = new_members(last_month, this_month)
    growth_rate = ((current_count - last_count) / last_count) * 100 if last_count else 0

    return {
        'newMembersThisMonth': current_count,
        'newMembersLastMonth': last_count,
        'growthRate': round(growth_rate, 1),
    }
