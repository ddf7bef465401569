import os
import sys
import pytest

# Ensure the backend root (containing the `shareorsteal` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from shareorsteal import create_app, db, socketio
from shareorsteal.services.matchmaking import (
    ConnectionRegistry, LocationQueueManager, ManualScheduler, MatchEngine,
)


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    FRONTEND_ORIGIN = '*'
    SOCKETIO_NAMESPACE = '/'
    DECISION_WINDOW_MS = 20000
    FINALIZE_GRACE_MS = 250
    DEFAULT_PLAYER_NAME = 'Player'
    PRIZE_CODE_LENGTH = 6
    PLAY_DAY_TIMEZONE = 'Europe/Dublin'
    ENFORCE_DAILY_LIMIT = False
    DEVICE_COOKIE_NAME = 'device_id'
    DEVICE_COOKIE_MAX_AGE = 60
    DEVICE_COOKIE_SECURE = False


class RecordingTransport:
    """Stands in for the Socket.IO emit; keeps every delivered event."""

    def __init__(self):
        self.sent = []

    def __call__(self, connection_id, event, payload):
        self.sent.append((connection_id, event, payload))

    def events(self, connection_id, name=None):
        return [
            payload for cid, event, payload in self.sent
            if cid == connection_id and (name is None or event == name)
        ]

    def names(self, connection_id):
        return [event for cid, event, _ in self.sent if cid == connection_id]


class FailingGate:
    def __init__(self):
        self.calls = 0

    def may_play(self, device_id):
        raise RuntimeError('gate offline')

    def record_played(self, device_id):
        self.calls += 1
        raise RuntimeError('gate offline')


class MemoryGate:
    def __init__(self):
        self.played = set()

    def may_play(self, device_id):
        return device_id not in self.played

    def record_played(self, device_id):
        self.played.add(device_id)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def engine(flask_app):
    return flask_app.extensions['shareorsteal']


@pytest.fixture()
def make_sio(flask_app):
    """Factory for Socket.IO test clients, each with its own cookie jar."""
    clients = []

    def _make(prime_cookie=True):
        http_client = flask_app.test_client()
        if prime_cookie:
            http_client.get('/health')
        test_client = socketio.test_client(flask_app, flask_test_client=http_client)
        test_client.http_client = http_client
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def scheduler():
    return ManualScheduler(start_ms=1_700_000_000_000)


@pytest.fixture()
def registry(transport):
    return ConnectionRegistry(transport)


@pytest.fixture()
def queues(registry):
    return LocationQueueManager(registry)


@pytest.fixture()
def memory_gate():
    return MemoryGate()


@pytest.fixture()
def match_engine(registry, queues, scheduler, memory_gate):
    return MatchEngine(registry, queues, scheduler, gate=memory_gate)


@pytest.fixture()
def connect(match_engine):
    def _connect(*ids):
        for cid in ids:
            match_engine.connect(cid, device_id=f"dev-{cid}")
    return _connect


@pytest.fixture()
def failing_gate():
    return FailingGate()


@pytest.fixture()
def test_config():
    return TestConfig
