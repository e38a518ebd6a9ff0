import heapq
import os
import random
import sys

import pytest

# Ensure the backend root (containing the `motdepasse` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from motdepasse.game.models import RoomSettings, TeamMode
from motdepasse.game.registry import RoomRegistry
from motdepasse.game.timers import ScheduledCall, TimerService
from motdepasse.game.words import WordBank


TEST_WORDS = {
    'sport': ['sportif', 'football', 'tennis'],
    'cuisine': ['café', 'fromage', 'crêpe'],
}


class FakeScheduler:
    """Virtual clock: callbacks only run when the test calls ``advance``."""

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._seq = 0

    def call_later(self, delay, fn, *args):
        handle = ScheduledCall()
        self._seq += 1
        heapq.heappush(self._queue, (self.now + delay, self._seq, handle, fn, args))
        return handle

    def advance(self, seconds):
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target + 1e-9:
            when, _, handle, fn, args = heapq.heappop(self._queue)
            self.now = when
            if handle.cancelled:
                continue
            handle.fired = True
            fn(*args)
        self.now = target

    def pending(self):
        return sum(1 for item in self._queue if not item[2].cancelled)


class RecordingBroadcaster:
    def __init__(self):
        self.sent = []

    def send_to_player(self, player_id, event, payload):
        self.sent.append(('player', player_id, event, payload))

    def broadcast_to_room(self, room_code, event, payload):
        self.sent.append(('room', room_code, event, payload))

    def named(self, event):
        return [payload for _, _, name, payload in self.sent if name == event]

    def last_state(self, player_id):
        for kind, target, name, payload in reversed(self.sent):
            if kind == 'player' and target == player_id and name == 'room:state':
                return payload
        return None

    def clear(self):
        self.sent = []


@pytest.fixture()
def scheduler():
    return FakeScheduler()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def word_bank():
    return WordBank(words=TEST_WORDS, labels={'sport': 'Sport', 'cuisine': 'Cuisine'}, rng=random.Random(3))


@pytest.fixture()
def registry(broadcaster, scheduler, word_bank):
    return RoomRegistry(
        broadcaster,
        scheduler,
        word_bank,
        timers=TimerService(scheduler),
        defaults=RoomSettings(team_mode=TeamMode.BALANCED),
        rng=random.Random(7),
    )


@pytest.fixture()
def playing_room(registry):
    """Balanced room with teams [h, p2] and [p3, p4], game started."""
    room = registry.create_room('h', 'Host')
    for pid in ('p2', 'p3', 'p4'):
        registry.join_room(room.code, pid, pid.upper())
    # Joiners go to the smallest team: h->0, p2->1, p3->0, p4->1; regroup for clarity.
    room.move_player('h', 'p2', 0)
    room.move_player('h', 'p3', 1)
    room.start_game('h')
    return room


def clue_for(room):
    """Any single word that is accepted for the current secret."""
    for candidate in ('zèbre', 'nuage', 'piano'):
        if candidate[:4] != room.engine.round.word.lower()[:4]:
            return candidate
    raise AssertionError('no clue candidate')


def giver_and_guesser(room):
    rnd = room.engine.round
    team = room.teams.team(rnd.active_team_index)
    guesser = next(pid for pid in team.members if pid != rnd.giver_id)
    return rnd.giver_id, guesser


def opponent(room):
    rnd = room.engine.round
    return next(
        pid for pid, p in room.players.items() if p.team_index != rnd.active_team_index
    )


class TestConfig:
    TESTING = True
    SECRET_KEY = 'test'
    CORS_ORIGINS = '*'
    TRUST_PROXY_HEADERS = False
    SOCKETIO_ASYNC_MODE = 'threading'
    LOG_LEVEL = 'DEBUG'
    MAX_PLAYERS = 8
    TEAM_MODE = 'pairs'
    TOTAL_ROUNDS = 10
    TURN_DURATION_SEC = 30
    STEAL_DURATION_SEC = 15
    RESULT_DELAY_SEC = 3
    MAX_CLUES = 3
    WORD_EXHAUSTION_POLICY = 'reuse'


@pytest.fixture()
def app_and_socketio(scheduler, word_bank):
    from motdepasse.server import create_app

    return create_app(TestConfig, scheduler=scheduler, word_bank=word_bank)


@pytest.fixture()
def flask_app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(app_and_socketio):
    flask_app, socketio = app_and_socketio
    clients = []

    def make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except RuntimeError:
            pass
