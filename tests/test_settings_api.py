from gymsuite import db
from gymsuite.models import Profile


def test_gym_profile(client_for, seed):
    owner = client_for(seed.owner_id)

    assert owner.get('/api/settings/gym').get_json()['name'] == 'Iron Works'

    res = owner.patch('/api/settings/gym', json={'name': 'Iron Works Mitte', 'currency': 'EUR'})
    assert res.status_code == 200
    assert res.get_json()['name'] == 'Iron Works Mitte'

    res = owner.patch('/api/settings/gym', json={'currency': 'EURO'})
    assert res.status_code == 400


def test_only_owner_updates_gym(client_for, seed):
    res = client_for(seed.admin_id).patch('/api/settings/gym', json={'name': 'Admin Gym'})
    assert res.status_code == 403


def test_staff_listing(client_for, seed):
    staff = client_for(seed.receptionist_id).get('/api/settings/staff').get_json()['staff']

    assert sorted(p['id'] for p in staff) == sorted([
        seed.owner_id, seed.admin_id, seed.manager_id, seed.receptionist_id
    ])


def test_change_role(app, client_for, seed):
    admin = client_for(seed.admin_id)

    res = admin.post(f'/api/settings/staff/{seed.receptionist_id}/role', json={'role': 'manager'})
    assert res.status_code == 200
    assert res.get_json()['role'] == 'manager'

    assert admin.post(f'/api/settings/staff/{seed.receptionist_id}/role',
                      json={'role': 'janitor'}).status_code == 400
    assert admin.post(f'/api/settings/staff/{seed.receptionist_id}/role',
                      json={'role': 'owner'}).status_code == 403
    assert admin.post(f'/api/settings/staff/{seed.owner_id}/role',
                      json={'role': 'coach'}).status_code == 403
    assert admin.post(f'/api/settings/staff/{seed.admin_id}/role',
                      json={'role': 'owner'}).status_code == 403
    assert admin.post(f'/api/settings/staff/{seed.outsider_id}/role',
                      json={'role': 'coach'}).status_code == 404

    with app.app_context():
        assert db.session.get(Profile, seed.receptionist_id).role == 'manager'


def test_managing_staff_needs_admin(client_for, seed):
    manager = client_for(seed.manager_id)

    assert manager.post(f'/api/settings/staff/{seed.receptionist_id}/role',
                        json={'role': 'coach'}).status_code == 403
    assert manager.delete(f'/api/settings/staff/{seed.receptionist_id}').status_code == 403


def test_update_staff_profile(client_for, seed):
    res = client_for(seed.owner_id).patch(f'/api/settings/staff/{seed.manager_id}',
                                          json={'full_name': 'Mia Meyer'})

    assert res.status_code == 200
    assert res.get_json()['full_name'] == 'Mia Meyer'


def test_remove_staff(app, client_for, seed):
    owner = client_for(seed.owner_id)

    assert owner.delete(f'/api/settings/staff/{seed.owner_id}').status_code == 403
    assert owner.delete(f'/api/settings/staff/{seed.receptionist_id}').status_code == 204

    with app.app_context():
        assert db.session.get(Profile, seed.receptionist_id).gym_id is None

    # A removed profile can no longer read gym data
    assert client_for(seed.receptionist_id).get('/api/members').status_code == 403


def test_settings_upsert(client_for, seed):
    owner = client_for(seed.owner_id)
    assert owner.get('/api/settings').get_json() == {'settings': {}}

    res = owner.put('/api/settings', json={'notifications': {'email': True}, 'opening_hour': 6})
    assert res.status_code == 200

    res = owner.put('/api/settings', json={'opening_hour': 7})
    assert res.get_json()['settings'] == {'notifications': {'email': True}, 'opening_hour': 7}

    assert owner.put('/api/settings', json={}).status_code == 400
    assert owner.put('/api/settings', json={'opening_hour': None}).status_code == 400
    assert client_for(seed.manager_id).put('/api/settings', json={'a': 1}).status_code == 403
    assert client_for(seed.outsider_id).get('/api/settings').get_json() == {'settings': {}}
