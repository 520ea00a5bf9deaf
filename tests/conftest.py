from datetime import datetime
from types import SimpleNamespace

import pytest

from gymsuite import create_app, db
from gymsuite.models import Gym, Profile, Coach, Member


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """Application context for tests that talk to services directly"""
    with app.app_context():
        yield app


@pytest.fixture
def seed(app):
    """Two gyms with their staff; returns plain ids"""
    with app.app_context():
        gym = Gym(name='Iron Works')
        other_gym = Gym(name='Other Gym')
        db.session.add_all([gym, other_gym])
        db.session.flush()

        profiles = {
            'owner': Profile(gym_id=gym.id, email='owner@ironworks-gym.de', full_name='Olga Owner', role='owner'),
            'admin': Profile(gym_id=gym.id, email='admin@ironworks-gym.de', full_name='Adam Admin', role='admin'),
            'manager': Profile(gym_id=gym.id, email='manager@ironworks-gym.de', full_name='Mia Manager',
                               role='manager'),
            'receptionist': Profile(gym_id=gym.id, email='desk@ironworks-gym.de', full_name='Rita Desk',
                                    role='receptionist'),
            'outsider': Profile(gym_id=other_gym.id, email='owner@othergym.de', full_name='Otto Other',
                                role='owner'),
            'detached': Profile(gym_id=None, email='former@ironworks-gym.de', full_name='Fred Former',
                                role='coach'),
        }
        db.session.add_all(profiles.values())
        db.session.commit()

        return SimpleNamespace(
            gym_id=gym.id,
            other_gym_id=other_gym.id,
            **{f'{name}_id': profile.id for name, profile in profiles.items()}
        )


@pytest.fixture
def client_for(app):
    """Test client authenticated as the given profile id"""
    def make(profile_id=None):
        client = app.test_client()
        if profile_id is not None:
            client.environ_base['HTTP_X_PROFILE_ID'] = str(profile_id)
        return client
    return make


@pytest.fixture
def owner_client(client_for, seed):
    return client_for(seed.owner_id)


def make_coach(gym_id, name='Carla Coach', **kwargs):
    coach = Coach(gym_id=gym_id, name=name, email=f"{name.split()[0].lower()}@ironworks-gym.de", **kwargs)
    db.session.add(coach)
    db.session.flush()
    return coach


def make_member(gym_id, name='Max Member', **kwargs):
    member = Member(gym_id=gym_id, name=name, email=f"{name.split()[0].lower()}@ironworks-gym.de", **kwargs)
    db.session.add(member)
    db.session.flush()
    return member


def iso(dt):
    return dt.replace(microsecond=0).isoformat()


def now():
    return datetime.now().replace(microsecond=0)
