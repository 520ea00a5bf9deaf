from datetime import datetime, date, timedelta
from types import SimpleNamespace

from gymsuite import db
from gymsuite.models import Payment
from gymsuite.services.payments import (
    PaymentAggregator, payment_stats, revenue_by_month, revenue_this_month
)

from conftest import make_member

NOW = datetime(2026, 3, 15, 12, 0, 0)


def row(amount, status, paid_date=None):
    return SimpleNamespace(amount=amount, status=status, paid_date=paid_date)


def test_stats_example():
    payments = [
        row(100, 'paid', datetime(2026, 3, 2, 9, 0)),
        row(50, 'pending'),
        row(30, 'overdue'),
    ]

    assert payment_stats(payments, NOW) == {
        'revenueThisMonth': 100.0,
        'pendingAmount': 50.0,
        'overdueAmount': 30.0,
        'totalPaid': 100.0,
    }


def test_revenue_this_month_window():
    payments = [
        row(10, 'paid', datetime(2026, 3, 1, 0, 0)),
        row(20, 'paid', datetime(2026, 3, 15, 11, 59)),
        row(40, 'paid', datetime(2026, 3, 15, 12, 0)),
        row(80, 'paid', datetime(2026, 2, 28, 23, 59)),
        row(160, 'pending', datetime(2026, 3, 10)),
        row(320, 'paid', None),
    ]

    assert revenue_this_month(payments, NOW) == 30.0


def test_revenue_by_month_buckets():
    payments = [
        row(100, 'paid', datetime(2026, 3, 3)),
        row(25.5, 'paid', datetime(2026, 3, 20)),
        row(70, 'paid', datetime(2026, 1, 31, 23, 0)),
        row(60, 'paid', datetime(2025, 4, 1)),
        row(999, 'paid', datetime(2025, 2, 28)),
        row(15, 'pending', datetime(2026, 2, 1)),
        row(5, 'paid', None),
    ]

    assert revenue_by_month(payments, months=12, now=NOW) == {
        '2025-04': 60.0,
        '2026-01': 70.0,
        '2026-03': 125.5,
    }


def test_revenue_by_month_shorter_range():
    payments = [row(10, 'paid', datetime(2026, 1, 5)), row(20, 'paid', datetime(2025, 12, 5))]
    assert revenue_by_month(payments, months=2, now=NOW) == {'2026-01': 10.0}


def test_aggregator_is_scoped_to_gym(ctx, seed):
    member = make_member(seed.gym_id)
    outsider = make_member(seed.other_gym_id, name='Other Member')
    paid_at = datetime.now().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    db.session.add_all([
        Payment(gym_id=seed.gym_id, member_id=member.id, amount=100, status='paid',
                paid_date=paid_at, due_date=date.today()),
        Payment(gym_id=seed.gym_id, member_id=member.id, amount=50, status='pending',
                due_date=date.today() + timedelta(days=7)),
        Payment(gym_id=seed.gym_id, member_id=member.id, amount=30, status='overdue',
                due_date=date.today() - timedelta(days=7)),
        Payment(gym_id=seed.other_gym_id, member_id=outsider.id, amount=500, status='paid',
                paid_date=paid_at, due_date=date.today()),
    ])
    db.session.commit()

    aggregator = PaymentAggregator(seed.gym_id)

    assert aggregator.stats() == {
        'revenueThisMonth': 100.0,
        'pendingAmount': 50.0,
        'overdueAmount': 30.0,
        'totalPaid': 100.0,
    }
    assert aggregator.revenue_this_month() == 100.0
    assert aggregator.pending_amount() == 50.0
    assert aggregator.overdue_amount() == 30.0
    assert aggregator.revenue_by_month() == {paid_at.strftime('%Y-%m'): 100.0}


def test_mark_paid_sets_paid_date(ctx, seed):
    member = make_member(seed.gym_id)
    payment = Payment(gym_id=seed.gym_id, member_id=member.id, amount=45, due_date=date.today())
    db.session.add(payment)
    db.session.commit()
    assert payment.status == 'pending'

    payment.mark_paid('card', paid_at=NOW)
    db.session.commit()

    assert payment.status == 'paid'
    assert payment.paid_date == NOW
    assert payment.payment_method == 'card'
