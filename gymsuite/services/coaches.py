from datetime import datetime

from sqlalchemy import func

from gymsuite import db
from gymsuite.models.coach import Coach
from gymsuite.models.member import Member
from gymsuite.models.session import TrainingSession
from gymsuite.utils.helpers import month_bounds


def performance_metrics(coach, now=None):
    """Completed sessions, revenue and clients of a coach for this month"""
    start, end = month_bounds(now or datetime.now())
    sessions = TrainingSession.query.filter(
        TrainingSession.coach_id == coach.id,
        TrainingSession.status == 'completed',
        TrainingSession.start_time >= start,
        TrainingSession.start_time < end
    ).all()

    total_revenue = round(sum(float(s.price or 0) for s in sessions), 2)
    total_sessions = len(sessions)

    return {
        'sessionsThisMonth': total_sessions,
        'revenueThisMonth': total_revenue,
        'clientCount': Member.query.filter_by(coach_id=coach.id).count(),
        'avgRevenuePerSession': round(total_revenue / total_sessions, 2) if total_sessions else 0,
    }


def coach_stats(gym_id, now=None):
    """Headcount and totals across a gym's coaches, revenue counted at read time"""
    start, end = month_bounds(now or datetime.now())
    coaches = Coach.query.filter_by(gym_id=gym_id).all()
    revenue = db.session.query(func.coalesce(func.sum(TrainingSession.price), 0)).filter(
        TrainingSession.gym_id == gym_id,
        TrainingSession.status == 'completed',
        TrainingSession.start_time >= start,
        TrainingSession.start_time < end
    ).scalar()
    return {
        'total': len(coaches),
        'active': sum(1 for c in coaches if c.is_active),
        'totalClients': sum(c.client_count or 0 for c in coaches),
        'totalRevenue': round(float(revenue or 0), 2),
    }


def delete_coach(coach):
    """Delete a coach, unassigning its members and dropping its sessions"""
    for member in coach.members:
        member.coach_id = None
    db.session.delete(coach)
