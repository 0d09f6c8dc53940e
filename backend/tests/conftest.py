import os
import sys
import pytest

# Ensure the backend root (containing the `social_timer` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from social_timer import create_app, socketio
from social_timer.services.timer import ManualClock


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    TIMER_PERSIST_EPOCH = False
    RESET_TOKEN_CACHE_SIZE = 16
    SSE_KEEPALIVE_SEC = 1
    TIMER_TITLE = 'Test timer'
    CORS_ORIGINS = ['http://localhost:5173']


def persistent_config(db_path):
    """Config class that keeps the epoch in a sqlite file at ``db_path``."""
    class PersistentTestConfig(TestConfig):
        TIMER_PERSIST_EPOCH = True
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{db_path}"
    return PersistentTestConfig


class Recorder:
    """Subscriber handle that keeps every event it receives."""

    def __init__(self):
        self.events = []
        self.closed = False

    def __call__(self, event, payload):
        self.events.append((event, payload))

    def names(self):
        return [name for name, _ in self.events]

    def epochs(self, name='timer_reset'):
        return [payload['epoch'] for event, payload in self.events if event == name]


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def flask_app(clock):
    application = create_app(TestConfig, clock=clock)
    with application.app_context():
        yield application


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
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
