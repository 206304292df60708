"""
ATMS - Test Configuration and Fixtures
"""
from datetime import date, timedelta

import pytest
from faker import Faker

from config import TestConfig
from atms import create_app, firebase_init
from atms import firestore_dao as dao
from atms.decorators import CurrentUser
from atms.firestore_models import User
from atms.services.course_status import apply_trainer_and_status
from atms.utils import as_utc_datetime

from mocks.firebase_auth import FakeAuth
from mocks.firestore import FakeFirestore

fake = Faker()


@pytest.fixture
def db(monkeypatch):
    """Fresh in-memory Firestore installed as the app's client"""
    fake_db = FakeFirestore()
    monkeypatch.setattr(firebase_init, '_app', object())
    monkeypatch.setattr(firebase_init, '_db', fake_db)
    return fake_db


@pytest.fixture
def fake_auth(monkeypatch):
    auth = FakeAuth()
    monkeypatch.setattr(firebase_init, 'auth', auth)
    return auth


@pytest.fixture
def app(db, fake_auth):
    app = create_app(TestConfig)
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(fake_auth, role, display_name=None, is_super_admin=False):
    display_name = display_name or fake.name()
    record = fake_auth.create_user(email=fake.unique.email(), password='password123',
                                   display_name=display_name)
    user = User(uid=record.uid, email=record.email, display_name=display_name,
                role=role, is_super_admin=is_super_admin).to_dict()
    dao.create_user(record.uid, user)
    user['id'] = record.uid
    return user


@pytest.fixture
def make_user(app, fake_auth):
    """Factory creating a Firebase Auth account plus its users document"""
    def factory(role='trainee', display_name=None, is_super_admin=False):
        return _make_user(fake_auth, role, display_name, is_super_admin)
    return factory


@pytest.fixture
def super_admin(make_user):
    return make_user('admin', 'Root Admin', is_super_admin=True)


@pytest.fixture
def admin(make_user):
    return make_user('admin', 'Plain Admin')


@pytest.fixture
def trainer(make_user):
    return make_user('trainer', 'Grace Hopper')


@pytest.fixture
def trainee(make_user):
    return make_user('trainee', 'Tina Trainee')


@pytest.fixture
def make_course(app):
    """Factory storing a course with its trainer and status resolved"""
    def factory(title='Python Fundamentals', instructor_name='Grace Hopper',
                start=-5, end=30, status=None, **extra):
        today = date.today()
        data = {
            'title': title,
            'instructor_name': instructor_name,
            'category': 'Programming',
            'level': 'beginner',
            'hours': 10,
            'duration': end - start,
            'start_date': as_utc_datetime(today + timedelta(days=start)),
            'end_date': as_utc_datetime(today + timedelta(days=end)),
            'materials': [],
        }
        if status:
            data['status'] = status
        data.update(extra)
        apply_trainer_and_status(data)
        course_id = dao.create_course(data)
        return dao.get_course(course_id)
    return factory


@pytest.fixture
def login(client):
    """Log the test client in as the given user"""
    def do_login(user):
        with client.session_transaction() as sess:
            sess['firebase_session'] = f"session-{user['id']}"
        return client
    return do_login


@pytest.fixture
def as_user():
    """Wrap a user dict the way get_current_user does"""
    return CurrentUser
