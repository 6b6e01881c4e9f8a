import os
import sys
from collections import defaultdict

import pytest

# Ensure the backend root (containing the `mathduel` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from mathduel import create_app, socketio
from mathduel.models import Question
from mathduel.services.games.engine import GameEngine
from mathduel.services.games.questions import difficulty_for
from mathduel.services.games.registry import RoomRegistry
from mathduel.services.games.scheduler import TimerHandle
from mathduel.services.games.settings import GameSettings


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = 'http://localhost:5173'
    GAME_DURATION_SEC = 120
    COUNTDOWN_SEC = 5
    NEXT_QUESTION_DELAY_SEC = 2
    RESULTS_GRACE_SEC = 30
    STALE_ROOM_MAX_AGE_SEC = 3600
    STALE_SWEEP_INTERVAL_SEC = 300
    MIN_PLAYERS = 2
    MAX_PLAYERS = 4
    FAST_ANSWER_MS = 10000
    MAX_BET = 10000
    LEADERBOARD_SIZE = 10


class ManualScheduler:
    """Scheduler on a virtual clock; timers only fire inside ``advance``."""

    def __init__(self):
        self.now = 0.0
        self._seq = 0
        self._pending = []

    def call_later(self, delay, callback, name=''):
        handle = TimerHandle(name)
        self._push(self.now + delay, handle, None, callback)
        return handle

    def call_every(self, interval, callback, name=''):
        handle = TimerHandle(name)
        self._push(self.now + interval, handle, interval, callback)
        return handle

    def _push(self, due, handle, interval, callback):
        self._seq += 1
        self._pending.append((due, self._seq, handle, interval, callback))

    def active(self):
        return [entry[2] for entry in self._pending if not entry[2].cancelled]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            self._pending = [e for e in self._pending if not e[2].cancelled]
            due = [e for e in self._pending if e[0] <= target]
            if not due:
                break
            entry = min(due, key=lambda e: (e[0], e[1]))
            self._pending.remove(entry)
            at, _, handle, interval, callback = entry
            self.now = at
            result = callback(handle)
            if interval is not None and result is not False and not handle.cancelled:
                self._push(at + interval, handle, interval, callback)
        self.now = target


class RecordingTransport:
    def __init__(self):
        self.events = []
        self.members = defaultdict(set)

    def emit(self, event, payload, to):
        self.events.append((event, payload, to))

    def enter(self, member_id, room_id):
        self.members[room_id].add(member_id)

    def leave(self, member_id, room_id):
        self.members[room_id].discard(member_id)

    def payloads(self, event, to=None):
        return [p for e, p, t in self.events if e == event and (to is None or t == to)]

    def clear(self):
        self.events.clear()


def scripted_question(index):
    """Predictable question: the answer to question n is n + 1."""
    return Question(
        prompt=f"{index} + 1",
        options=(index + 1, index + 2, index + 3, index + 4),
        correct_answer=index + 1,
        operation='addition',
        difficulty=difficulty_for(index),
    )


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def registry():
    return RoomRegistry(max_players=4)


@pytest.fixture()
def engine(registry, scheduler, transport):
    return GameEngine(
        registry=registry,
        scheduler=scheduler,
        transport=transport,
        settings=GameSettings(),
        question_factory=scripted_question,
    )


@pytest.fixture()
def flask_app(scheduler):
    application = create_app(TestConfig, scheduler=scheduler)
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


@pytest.fixture()
def make_sio_client(flask_app):
    clients = []

    def _make():
        c = socketio.test_client(flask_app, namespace='/ws')
        clients.append(c)
        return c

    yield _make
    for c in clients:
        if c.is_connected('/ws'):
            c.disconnect(namespace='/ws')
