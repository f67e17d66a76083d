"""
Shared fixtures: an app backed by in-memory SQLite with a small cast of
accounts (one admin, one owner with a store, four raters) and a second,
ownerless store.
"""

import pytest

from storerating import create_app, db
from storerating.models import User, Store, ROLE_ADMIN, ROLE_USER, ROLE_OWNER

PASSWORD = 'Secret@123'


def make_user(name, email, role=ROLE_USER):
    user = User(name=name, email=email, role=role, address='1 Main Street')
    user.set_password(PASSWORD)
    db.session.add(user)
    return user


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    user = make_user('Platform Administrator Account', 'admin@example.com', ROLE_ADMIN)
    db.session.commit()
    return user


@pytest.fixture
def owner(app):
    user = make_user('Corner Store Owner Account Name', 'owner@example.com', ROLE_OWNER)
    db.session.commit()
    return user


@pytest.fixture
def store(owner):
    store = Store(name='Corner Store', email='corner@example.com',
                  address='12 Market Road', owner_id=owner.id)
    db.session.add(store)
    db.session.commit()
    return store


@pytest.fixture
def other_store(app):
    store = Store(name='Bakery', email='bakery@example.com', address='3 Baker Street')
    db.session.add(store)
    db.session.commit()
    return store


@pytest.fixture
def raters(app):
    users = [
        make_user(f'Regular Shopper Number {i} Name', f'rater{i}@example.com')
        for i in range(1, 5)
    ]
    db.session.commit()
    return users


@pytest.fixture
def rater(raters):
    return raters[0]


@pytest.fixture
def login(client):
    """Log the test client in as the given user."""
    def _login(user):
        response = client.post('/api/auth/login', json={'email': user.email, 'password': PASSWORD})
        assert response.status_code == 200, response.get_json()
        return response
    return _login
