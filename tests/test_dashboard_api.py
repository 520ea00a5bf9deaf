from datetime import date, datetime, timedelta

from gymsuite import db
from gymsuite.models import Payment
from gymsuite.services import dashboard

from conftest import make_member


def test_overview(app, owner_client, seed):
    with app.app_context():
        member = make_member(seed.gym_id, monthly_fee=35, last_visit=datetime.now() - timedelta(days=3))
        db.session.add(Payment(gym_id=seed.gym_id, member_id=member.id, amount=35, status='pending',
                               due_date=date.today()))
        db.session.commit()

    res = owner_client.get('/api/dashboard')

    assert res.status_code == 200
    data = res.get_json()
    assert data['totalMembers'] == 1
    assert data['activeMembers'] == 1
    assert data['mrr'] == 35.0
    assert data['pendingPayments'] == 1
    assert data['alerts'] == []


def test_failed_read_returns_bad_gateway(monkeypatch, owner_client, seed):
    def broken(gym_id):
        raise RuntimeError('timeout')

    monkeypatch.setitem(dashboard.OVERVIEW_READS, 'coaches', broken)

    res = owner_client.get('/api/dashboard')

    assert res.status_code == 502
    body = res.get_json()
    assert body['error'] == 'data_fetch_error'
    assert body['details'] == {'read': 'coaches'}


def test_alerts(owner_client, seed):
    res = owner_client.post('/api/alerts', json={
        'type': 'payment', 'title': 'Overdue payments', 'message': '3 payments overdue',
        'severity': 'warning'
    })
    assert res.status_code == 201
    alert_id = res.get_json()['id']
    owner_client.post('/api/alerts', json={'type': 'system', 'title': 'Backup', 'message': 'Done'})

    assert len(owner_client.get('/api/alerts').get_json()['alerts']) == 2
    assert [a['id'] for a in owner_client.get('/api/dashboard').get_json()['alerts']][-1] == alert_id

    read = owner_client.post(f'/api/alerts/{alert_id}/read').get_json()
    assert read['is_read'] is True
    assert len(owner_client.get('/api/alerts').get_json()['alerts']) == 1
    assert len(owner_client.get('/api/alerts?all=1').get_json()['alerts']) == 2

    assert owner_client.post('/api/alerts/dismiss-all').get_json() == {'dismissed': 1}
    assert owner_client.get('/api/alerts').get_json()['alerts'] == []

    res = owner_client.post('/api/alerts', json={'type': 'x', 'title': 'y', 'message': 'z', 'severity': 'panic'})
    assert res.status_code == 400


def test_activity_feed_and_occupancy(owner_client, seed):
    member = owner_client.post('/api/members', json={'name': 'Lena Lift', 'email': 'lena@ironworks-gym.de'})
    member_id = member.get_json()['id']
    owner_client.post(f'/api/members/{member_id}/check-in')

    feed = owner_client.get('/api/dashboard/activity').get_json()['activity']
    assert feed[0]['member']['name'] == 'Lena Lift'

    occupancy = owner_client.get('/api/dashboard/occupancy').get_json()['occupancy']
    assert len(occupancy) == 17

    growth = owner_client.get('/api/dashboard/growth').get_json()
    assert growth['newMembersThisMonth'] == 1

    assert owner_client.get('/api/dashboard/upcoming').get_json() == {'sessions': []}
