from datetime import date, timedelta

from gymsuite import db
from gymsuite.models import Payment

from conftest import make_member


def add_payment(client, member_id, **kwargs):
    payload = {'member_id': member_id, 'amount': 49.9, 'due_date': date.today().isoformat()}
    payload.update(kwargs)
    return client.post('/api/payments', json=payload)


def test_create_and_mark_paid(app, owner_client, seed):
    with app.app_context():
        member_id = make_member(seed.gym_id).id
        db.session.commit()

    res = add_payment(owner_client, member_id)
    assert res.status_code == 201
    payment = res.get_json()
    assert payment['status'] == 'pending'
    assert payment['paid_date'] is None
    assert payment['member']['id'] == member_id

    res = owner_client.post(f"/api/payments/{payment['id']}/mark-paid", json={'payment_method': 'card'})
    assert res.get_json()['status'] == 'paid'
    assert res.get_json()['paid_date'] is not None

    stats = owner_client.get('/api/payments/stats').get_json()
    assert stats['revenueThisMonth'] == 49.9
    assert stats['pendingAmount'] == 0


def test_paid_on_create_gets_paid_date(app, owner_client, seed):
    with app.app_context():
        member_id = make_member(seed.gym_id).id
        db.session.commit()

    res = add_payment(owner_client, member_id, status='paid')

    assert res.get_json()['paid_date'] is not None
    revenue = owner_client.get('/api/payments/revenue-by-month').get_json()['revenue']
    assert revenue == {date.today().strftime('%Y-%m'): 49.9}


def test_validation(app, owner_client, seed):
    with app.app_context():
        other_member_id = make_member(seed.other_gym_id, name='Otto Other').id
        db.session.commit()

    res = add_payment(owner_client, other_member_id)
    assert res.status_code == 400
    assert 'member_id' in res.get_json()['details']

    assert owner_client.get('/api/payments?status=refunded').status_code == 400
    assert owner_client.get('/api/payments/revenue-by-month?months=0').status_code == 400


def test_list_filters_and_overdue(app, owner_client, seed):
    with app.app_context():
        member = make_member(seed.gym_id)
        db.session.add_all([
            Payment(gym_id=seed.gym_id, member_id=member.id, amount=30, status='overdue',
                    due_date=date.today() - timedelta(days=10)),
            Payment(gym_id=seed.gym_id, member_id=member.id, amount=50, status='pending',
                    due_date=date.today()),
        ])
        db.session.commit()

    listing = owner_client.get('/api/payments?status=pending').get_json()
    assert listing['total'] == 1
    assert listing['items'][0]['amount'] == 50.0

    overdue = owner_client.get('/api/payments/overdue').get_json()['payments']
    assert [p['amount'] for p in overdue] == [30.0]


def test_member_payments_summary(app, owner_client, seed):
    next_week = date.today() + timedelta(days=7)
    with app.app_context():
        member = make_member(seed.gym_id)
        member_id = member.id
        db.session.add_all([
            Payment(gym_id=seed.gym_id, member_id=member_id, amount=30, status='overdue',
                    due_date=date.today() - timedelta(days=10)),
            Payment(gym_id=seed.gym_id, member_id=member_id, amount=50, status='pending',
                    due_date=next_week),
        ])
        db.session.commit()

    data = owner_client.get(f'/api/members/{member_id}/payments').get_json()

    assert len(data['payments']) == 2
    assert data['outstanding'] == 80.0
    assert data['nextDue'] == next_week.isoformat()


def test_other_gyms_payments_are_hidden(app, client_for, seed):
    with app.app_context():
        member = make_member(seed.gym_id)
        payment = Payment(gym_id=seed.gym_id, member_id=member.id, amount=20, due_date=date.today())
        db.session.add(payment)
        db.session.commit()
        payment_id = payment.id

    outsider = client_for(seed.outsider_id)
    assert outsider.get(f'/api/payments/{payment_id}').status_code == 404
    assert outsider.delete(f'/api/payments/{payment_id}').status_code == 404
    assert client_for(seed.owner_id).delete(f'/api/payments/{payment_id}').status_code == 204
