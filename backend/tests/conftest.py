import os
import random
import sys
import pytest

# Ensure the backend root (containing the `mathbattle` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from mathbattle import create_app, socketio
from mathbattle.models import Participant
from mathbattle.services.battle import BattleSession, Lobby, TimerScheduler


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'
    TURN_DELAY_SEC = 0
    DISCONNECT_TEARDOWN_SEC = 0
    GAME_OVER_TEARDOWN_SEC = 0
    HAND_SIZE = 5
    CARD_COPIES = 4


class RecordingHandle:
    """Delivery handle that keeps every event instead of sending it."""

    def __init__(self):
        self.events = []
        self.revoked = False

    def send(self, event, payload):
        if self.revoked:
            return False
        self.events.append((event, payload))
        return True

    def revoke(self):
        self.revoked = True

    def names(self):
        return [name for name, _ in self.events]

    def last(self, name):
        for event, payload in reversed(self.events):
            if event == name:
                return payload
        return None

    def clear(self):
        self.events = []


class ManualSpawner:
    """Stands in for socketio.start_background_task; runs workers on demand."""

    def __init__(self):
        self.calls = []

    def __call__(self, fn, *args):
        self.calls.append((fn, args))

    def run_all(self):
        calls, self.calls = self.calls, []
        for fn, args in calls:
            fn(*args)
        return len(calls)


def make_participant(pid, name=None):
    return Participant(id=pid, name=name or pid.title(), handle=RecordingHandle())


@pytest.fixture()
def alice():
    return make_participant('alice')


@pytest.fixture()
def bob():
    return make_participant('bob')


@pytest.fixture()
def session(alice, bob):
    battle = BattleSession(session_id='s-1', rng=random.Random(7))
    battle.add_participant(alice)
    battle.add_participant(bob)
    return battle


@pytest.fixture()
def started_session(session):
    session.set_branch('alice', 'none')
    session.set_branch('bob', 'none')
    assert session.game_started
    return session


@pytest.fixture()
def spawner():
    return ManualSpawner()


@pytest.fixture()
def lobby(spawner):
    scheduler = TimerScheduler(spawn=spawner, sleep=lambda seconds: None)
    return Lobby(
        scheduler=scheduler,
        session_factory=lambda: BattleSession(rng=random.Random(11)),
        turn_delay=2.0,
        disconnect_teardown=0,
        game_over_teardown=30.0,
    )


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
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
