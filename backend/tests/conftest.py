import os
import random
import sys

import pytest

# Ensure the backend root (containing the `skribbl` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from skribbl.config import Config
from skribbl.game.engine import TurnEngine
from skribbl.game.store import RoomSessionStore
from skribbl.game.timers import TimerHandle
from skribbl.game.words import WordSupplier
from skribbl.realtime.broadcast import Broadcaster
from skribbl.storage import PersistenceError
from skribbl.storage.memory import MemoryGateway


class TestConfig(Config):
    __test__ = False

    TESTING = True
    SECRET_KEY = 'test-secret'
    SOCKETIO_ASYNC_MODE = 'threading'
    DATABASE_URL = ''
    TRUST_PROXY_HEADERS = False


class _Job:
    def __init__(self, due, seq, interval, callback, handle):
        self.due = due
        self.seq = seq
        self.interval = interval
        self.callback = callback
        self.handle = handle


class ManualScheduler:
    """Virtual clock: nothing runs until the test calls advance()."""

    def __init__(self):
        self.clock = 0.0
        self.errors = []
        self._jobs = []
        self._seq = 0

    def now(self):
        return self.clock

    def _add(self, delay, interval, callback, handle):
        handle = handle or TimerHandle()
        self._seq += 1
        self._jobs.append(_Job(self.clock + delay, self._seq, interval, callback, handle))
        return handle

    def call_later(self, delay, callback, handle=None):
        return self._add(delay, None, callback, handle)

    def call_every(self, interval, callback, handle=None):
        return self._add(interval, interval, callback, handle)

    def live(self):
        return [j.handle for j in self._jobs if not j.handle.cancelled]

    def advance(self, seconds):
        target = self.clock + seconds
        while True:
            self._jobs = [j for j in self._jobs if not j.handle.cancelled]
            due = [j for j in self._jobs if j.due <= target]
            if not due:
                break
            job = min(due, key=lambda j: (j.due, j.seq))
            self.clock = job.due
            if job.interval is None:
                self._jobs.remove(job)
            else:
                job.due += job.interval
            try:
                job.callback()
            except Exception as exc:  # mirrors the production scheduler's containment
                self.errors.append(exc)
        self.clock = target


class FakeSocketIO:
    """Records everything the broadcaster emits."""

    def __init__(self):
        self.emitted = []

    def emit(self, event, payload=None, to=None, skip_sid=None, **_kwargs):
        self.emitted.append({'event': event, 'payload': payload, 'to': to, 'skip_sid': skip_sid})

    def sent(self, event, to=None):
        return [
            e['payload'] for e in self.emitted
            if e['event'] == event and (to is None or e['to'] == to)
        ]

    def clear(self):
        self.emitted.clear()


class FlakyGateway(MemoryGateway):
    """MemoryGateway whose named operations can be switched to fail."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.failing = set()

    def _check(self, op):
        if op in self.failing:
            raise PersistenceError(f'{op} unavailable')

    def save_room(self, record):
        self._check('save_room')
        super().save_room(record)

    def latest_room_by_code(self, room_code):
        self._check('latest_room_by_code')
        return super().latest_room_by_code(room_code)

    def upsert_participant(self, room_id, participant):
        self._check('upsert_participant')
        super().upsert_participant(room_id, participant)

    def upsert_score(self, room_id, participant_id, score):
        self._check('upsert_score')
        super().upsert_score(room_id, participant_id, score)

    def random_words(self, count, difficulty=None):
        self._check('random_words')
        return super().random_words(count, difficulty)

    def save_chat_message(self, room_id, user_id, message, is_guess=False):
        self._check('save_chat_message')
        super().save_chat_message(room_id, user_id, message, is_guess)


def build_engine(gateway, sio, scheduler, seed=42, config=None):
    rng = random.Random(seed)
    store = RoomSessionStore(gateway, rng=rng)
    words = WordSupplier(gateway, rng=rng)
    return TurnEngine(store, words, gateway, Broadcaster(sio), scheduler, config=config or {}, rng=rng)


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def sio():
    return FakeSocketIO()


@pytest.fixture()
def gateway():
    return FlakyGateway(rng=random.Random(7))


@pytest.fixture()
def engine(gateway, sio, scheduler):
    return build_engine(gateway, sio, scheduler)


@pytest.fixture()
def seat(engine):
    """Join players p1..pN into one room; p1 owns it."""

    def _seat(n=3, code='ABCD', settings=None):
        room = None
        for i in range(1, n + 1):
            outcome = engine.join(code, f'p{i}', f'Player{i}', settings)
            assert outcome.ok
            room = outcome.room
        return room

    return _seat


@pytest.fixture()
def flask_app():
    from skribbl.server import create_app

    application, _ = create_app(TestConfig, scheduler=ManualScheduler())
    yield application
    application.extensions['skribbl']['engine'].shutdown()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _make():
        sio_server = flask_app.extensions['skribbl']['socketio']
        test_client = sio_server.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make
    for c in clients:
        try:
            c.disconnect()
        except Exception:
            pass
