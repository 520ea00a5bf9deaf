from datetime import datetime, timedelta

from gymsuite import db
from gymsuite.models import Coach, Member

from conftest import make_coach, make_member


def create_member(client, **kwargs):
    payload = {
        'name': 'Lena Lift',
        'email': 'lena@ironworks-gym.de',
        'phone': '+49 30 1234567',
        'membership_type': 'premium',
        'monthly_fee': 49.9,
    }
    payload.update(kwargs)
    res = client.post('/api/members', json=payload)
    assert res.status_code == 201, res.data
    return res.get_json()


def test_requests_without_profile_are_rejected(client_for, seed):
    res = client_for().get('/api/members')
    assert res.status_code == 401
    assert res.get_json()['error'] == 'unauthorized'

    res = client_for(999).get('/api/members')
    assert res.status_code == 401


def test_profile_without_gym_is_forbidden(client_for, seed):
    res = client_for(seed.detached_id).get('/api/members')
    assert res.status_code == 403
    assert res.get_json()['error'] == 'forbidden'


def test_create_member(owner_client, seed):
    data = create_member(owner_client)

    assert data['name'] == 'Lena Lift'
    assert data['gym_id'] == seed.gym_id
    assert data['monthly_fee'] == 49.9
    assert data['membership_type'] == 'premium'
    assert data['activity_status'] == 'inactive'
    assert data['total_visits'] == 0
    assert data['coach'] is None


def test_create_member_validation(owner_client, seed):
    res = owner_client.post('/api/members', json={'name': '', 'email': 'not-an-email'})

    assert res.status_code == 400
    body = res.get_json()
    assert body['error'] == 'validation_error'
    assert set(body['details']) == {'name', 'email'}


def test_body_must_be_an_object(owner_client, seed):
    res = owner_client.post('/api/members', json=['Lena'])
    assert res.status_code == 400


def test_coach_must_belong_to_gym(app, owner_client, seed):
    with app.app_context():
        foreign_coach_id = make_coach(seed.other_gym_id, name='Foreign Coach').id
        db.session.commit()

    res = owner_client.post('/api/members', json={
        'name': 'Lena Lift', 'email': 'lena@ironworks-gym.de', 'coach_id': foreign_coach_id
    })

    assert res.status_code == 400
    assert 'coach_id' in res.get_json()['details']


def test_assigning_coach_updates_client_count(app, owner_client, seed):
    with app.app_context():
        coach_id = make_coach(seed.gym_id).id
        db.session.commit()

    member = create_member(owner_client, coach_id=coach_id)
    assert member['coach']['id'] == coach_id

    with app.app_context():
        assert db.session.get(Coach, coach_id).client_count == 1

    res = owner_client.patch(f"/api/members/{member['id']}", json={'coach_id': None})
    assert res.status_code == 200
    assert res.get_json()['coach'] is None

    with app.app_context():
        assert db.session.get(Coach, coach_id).client_count == 0


def test_update_member(owner_client, seed):
    member = create_member(owner_client)

    res = owner_client.patch(f"/api/members/{member['id']}", json={
        'monthly_fee': 59,
        'membership_end': '2026-12-31',
        'notes': 'Knee injury',
    })

    assert res.status_code == 200
    data = res.get_json()
    assert data['monthly_fee'] == 59.0
    assert data['membership_end'] == '2026-12-31'
    assert data['notes'] == 'Knee injury'
    assert data['name'] == 'Lena Lift'


def test_members_of_other_gyms_are_not_found(app, client_for, owner_client, seed):
    member = create_member(owner_client)
    outsider = client_for(seed.outsider_id)

    assert outsider.get(f"/api/members/{member['id']}").status_code == 404
    assert outsider.patch(f"/api/members/{member['id']}", json={'notes': 'x'}).status_code == 404
    assert outsider.delete(f"/api/members/{member['id']}").status_code == 404
    assert outsider.post(f"/api/members/{member['id']}/check-in").status_code == 404
    assert outsider.get('/api/members').get_json()['total'] == 0


def test_delete_member(app, owner_client, seed):
    member = create_member(owner_client)
    owner_client.post(f"/api/members/{member['id']}/check-in")

    res = owner_client.delete(f"/api/members/{member['id']}")

    assert res.status_code == 204
    assert owner_client.get(f"/api/members/{member['id']}").status_code == 404


def test_check_in(app, owner_client, seed):
    member = create_member(owner_client)

    res = owner_client.post(f"/api/members/{member['id']}/check-in")

    assert res.status_code == 201
    body = res.get_json()
    assert body['duplicate'] is False
    assert body['member']['total_visits'] == 1
    assert body['member']['activity_status'] == 'active'
    assert body['visit']['check_out'] is None

    visits = owner_client.get(f"/api/members/{member['id']}/visits").get_json()['visits']
    assert [v['id'] for v in visits] == [body['visit']['id']]


def test_duplicate_check_in_returns_existing_visit(app, owner_client, seed):
    app.config['VISIT_DEDUPE_SECONDS'] = 60
    member = create_member(owner_client)

    first = owner_client.post(f"/api/members/{member['id']}/check-in")
    second = owner_client.post(f"/api/members/{member['id']}/check-in")

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.get_json()['duplicate'] is True
    assert second.get_json()['visit']['id'] == first.get_json()['visit']['id']
    assert second.get_json()['member']['total_visits'] == 1


def test_check_out(owner_client, seed):
    member = create_member(owner_client)
    visit = owner_client.post(f"/api/members/{member['id']}/check-in").get_json()['visit']

    res = owner_client.post(f"/api/visits/{visit['id']}/check-out")
    assert res.status_code == 200
    assert res.get_json()['check_out'] is not None

    res = owner_client.post(f"/api/visits/{visit['id']}/check-out")
    assert res.status_code == 409
    assert res.get_json()['error'] == 'conflict'


def test_status_filter_and_stats(app, owner_client, seed):
    now = datetime.now()
    with app.app_context():
        make_member(seed.gym_id, name='Active Member', last_visit=now - timedelta(days=1))
        make_member(seed.gym_id, name='Moderate Member', last_visit=now - timedelta(days=14))
        # Stored tier is stale, listings classify from last_visit
        make_member(seed.gym_id, name='Lapsed Member', last_visit=now - timedelta(days=60),
                    activity_status='active', membership_type='vip')
        db.session.commit()

    def names(status):
        items = owner_client.get(f'/api/members?status={status}').get_json()['items']
        return [m['name'] for m in items]

    assert names('active') == ['Active Member']
    assert names('moderate') == ['Moderate Member']
    assert names('inactive') == ['Lapsed Member']
    assert owner_client.get('/api/members?status=sleeping').status_code == 400

    stats = owner_client.get('/api/members/stats').get_json()
    assert stats['total'] == 3
    assert (stats['active'], stats['moderate'], stats['inactive']) == (1, 1, 1)
    assert stats['byMembership']['vip'] == 1
    assert stats['byMembership']['basic'] == 2


def test_search(owner_client, seed):
    create_member(owner_client, name='Lena Lift', email='lena@ironworks-gym.de')
    create_member(owner_client, name='Paul Press', email='paul@ironworks-gym.de')

    results = owner_client.get('/api/members/search?q=press').get_json()['results']
    assert [m['name'] for m in results] == ['Paul Press']

    assert owner_client.get('/api/members/search?q=p').get_json()['results'] == []


def test_pagination(app, owner_client, seed):
    with app.app_context():
        for i in range(5):
            make_member(seed.gym_id, name=f'Member{i} Test')
        db.session.commit()

    body = owner_client.get('/api/members?per_page=2&page=3').get_json()

    assert body['total'] == 5
    assert body['pages'] == 3
    assert [m['name'] for m in body['items']] == ['Member4 Test']


def test_member_detail_lists_payments(app, owner_client, seed):
    member = create_member(owner_client)
    owner_client.post('/api/payments', json={
        'member_id': member['id'], 'amount': 49.9, 'due_date': '2026-04-01'
    })

    data = owner_client.get(f"/api/members/{member['id']}").get_json()

    assert [p['amount'] for p in data['payments']] == [49.9]
    assert data['sessions'] == []
    with app.app_context():
        assert Member.query.count() == 1
