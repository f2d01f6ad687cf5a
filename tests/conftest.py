"""
Shared fixtures: app on in-memory SQLite, fake clock, recording display,
seeded users and a ready-to-take quiz.
"""
from datetime import datetime, timedelta, timezone

import pytest

from proctor import create_app
from proctor.extensions import db, socketio
from proctor.models import User
from proctor.services import DisplayMode


class FakeClock:
    """Manually advanced monotonic + wall clock"""

    def __init__(self, start=None):
        self._monotonic = 1000.0
        self._now = start or datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)

    def monotonic(self):
        return self._monotonic

    def now(self):
        return self._now

    def advance(self, seconds):
        self._monotonic += seconds
        self._now += timedelta(seconds=seconds)


class RecordingDisplay(DisplayMode):
    def __init__(self):
        self.calls = []
        self.fail_request = False
        self.fail_release = False

    def request(self, session):
        self.calls.append(('request', session.id))
        if self.fail_request:
            raise RuntimeError('fullscreen denied')

    def release(self, session):
        self.calls.append(('release', session.id))
        if self.fail_release:
            raise RuntimeError('not in fullscreen')


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture
def app(clock, display):
    app = create_app('testing', clock=clock, display=display)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def engine(app):
    return app.extensions['session_engine']


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def connect_socket(app, client):
    """Open a Socket.IO client sharing the HTTP client's login cookie"""
    clients = []

    def connect():
        sio = socketio.test_client(app, flask_test_client=client)
        clients.append(sio)
        return sio

    yield connect
    for sio in clients:
        if sio.is_connected():
            sio.disconnect()


def login(client, user):
    with client.session_transaction() as sess:
        sess['user_id'] = user.id
        sess['role'] = user.role


def add_user(**fields):
    fields.setdefault('username', fields['id'])
    fields.setdefault('full_name', fields['id'].title())
    fields.setdefault('department', 'CS')
    user = User(**fields)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def teacher(app):
    return add_user(id='t1', full_name='Asha Rao', role='teacher')


@pytest.fixture
def student(app):
    return add_user(
        id='s1', full_name='Ravi Kumar', role='student', department='CS',
        division='A', prn='PRN001', college_year=2, semester=3,
    )


def quiz_payload(**overrides):
    payload = {
        'id': 'qz1',
        'title': 'Data Structures Unit Test',
        'created_by': 't1',
        'college_year': 2,
        'semester': 3,
        'time_limit_minutes': 1,
        'questions': [
            {'id': 'q1', 'text': 'Stack order?', 'options': ['LIFO', 'FIFO', 'Random', 'Sorted'],
             'correct_option_index': 0},
            {'id': 'q2', 'text': 'Queue order?', 'options': ['LIFO', 'FIFO', 'Random', 'Sorted'],
             'correct_option_index': 1},
            {'id': 'q3', 'text': 'Heap root holds?', 'options': ['Leaf', 'Median', 'Extreme', 'None'],
             'correct_option_index': 2},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def quiz(engine, teacher):
    return engine.catalog.create(quiz_payload())


@pytest.fixture
def activation(engine, quiz, teacher):
    activation = engine.activations.create(quiz.id, 'CS', 'A', teacher.id, activation_id='ta1')
    return engine.activations.set_active(activation.id, True)


@pytest.fixture
def active_session(engine, student, activation):
    decision = engine.request_start(student.id, activation.id)
    return engine.confirm(decision.session.id)
