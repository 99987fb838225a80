import os
import sys
from datetime import datetime, timedelta, timezone
import pytest

# Ensure the backend root (containing the `leaderboard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from leaderboard import create_app, db, socketio
from leaderboard.services.workshop.board import Board
from leaderboard.services.workshop.store import KeyValueStore, StoreError


T0 = datetime(2026, 3, 14, 9, 0, 0, tzinfo=timezone.utc)


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    TIMER_TICK_SEC = 1
    CORS_ORIGINS = ['http://localhost:5173']


class FakeClock:
    """Manually advanced clock; call it to read the current instant."""

    def __init__(self, start=T0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class MemoryStore(KeyValueStore):
    def __init__(self, data=None):
        self.data = dict(data or {})
        self.fail_reads = False
        self.fail_writes = False
        self.fail_deletes = False

    def get(self, key):
        if self.fail_reads:
            raise StoreError('read failed')
        return self.data.get(key)

    def set(self, key, value):
        if self.fail_writes:
            raise StoreError('write failed')
        self.data[key] = value

    def delete(self, key):
        if self.fail_deletes:
            raise StoreError('delete failed')
        self.data.pop(key, None)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def board(store, clock):
    return Board(store, clock=clock)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import leaderboard.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')
