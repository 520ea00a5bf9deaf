"""
Read-time payment metrics.

The pure functions take any iterable of payment-like rows (objects with
``amount``, ``status`` and ``paid_date``) so they can be used on query results
or on plain test doubles. Nothing computed here is persisted.
"""
from datetime import datetime

from gymsuite import db
from gymsuite.models.payment import Payment
from gymsuite.utils.helpers import month_start, month_key, shift_months


def _amount(payment):
    return float(payment.amount or 0)


def _sum(payments):
    return round(sum(_amount(p) for p in payments), 2)


def revenue_this_month(payments, now=None):
    """Paid amounts with paid_date in [first of month, now)"""
    now = now or datetime.now()
    start = month_start(now)
    return _sum(
        p for p in payments
        if p.status == 'paid' and p.paid_date is not None and start <= p.paid_date < now
    )


def amount_by_status(payments, status):
    """Sum of amounts with the given status"""
    return _sum(p for p in payments if p.status == status)


def count_by_status(payments, status):
    return sum(1 for p in payments if p.status == status)


def payment_stats(payments, now=None):
    """
    Revenue/pending/overdue summary of a set of payments.

    Returns:
        dict with revenueThisMonth, pendingAmount, overdueAmount, totalPaid
    """
    payments = list(payments)
    return {
        'revenueThisMonth': revenue_this_month(payments, now),
        'pendingAmount': amount_by_status(payments, 'pending'),
        'overdueAmount': amount_by_status(payments, 'overdue'),
        'totalPaid': amount_by_status(payments, 'paid'),
    }


def revenue_by_month(payments, months=12, now=None):
    """
    Paid amounts bucketed by 'YYYY-MM' of paid_date.

    Only payments paid since the first of the month `months` months ago are
    counted; paid rows without a paid_date are skipped.
    """
    now = now or datetime.now()
    since = shift_months(now, -months)
    buckets = {}
    for p in sorted(
        (p for p in payments if p.status == 'paid' and p.paid_date is not None),
        key=lambda p: p.paid_date
    ):
        if p.paid_date < since:
            continue
        key = month_key(p.paid_date)
        buckets[key] = round(buckets.get(key, 0.0) + _amount(p), 2)
    return buckets


class PaymentAggregator:
    """Typed query methods over one gym's payments"""

    def __init__(self, gym_id):
        self.gym_id = gym_id

    def _rows(self, *criteria):
        return db.session.query(
            Payment.amount, Payment.status, Payment.paid_date
        ).filter(Payment.gym_id == self.gym_id, *criteria).all()

    def stats(self, now=None):
        return payment_stats(self._rows(), now)

    def revenue_this_month(self, now=None):
        now = now or datetime.now()
        return revenue_this_month(self._rows(
            Payment.status == 'paid',
            Payment.paid_date >= month_start(now)
        ), now)

    def revenue_by_month(self, months=12, now=None):
        now = now or datetime.now()
        return revenue_by_month(self._rows(
            Payment.status == 'paid',
            Payment.paid_date >= shift_months(now, -months)
        ), months, now)

    def pending_amount(self):
        return amount_by_status(self._rows(Payment.status == 'pending'), 'pending')

    def overdue_amount(self):
        return amount_by_status(self._rows(Payment.status == 'overdue'), 'overdue')
