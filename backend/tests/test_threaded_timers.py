import random
import threading
import time

from flask import Flask
from flask_socketio import SocketIO

from conftest import RecordingBroadcaster
from motdepasse.game.errors import GameError
from motdepasse.game.models import RoomPhase, RoomSettings, TeamMode
from motdepasse.game.registry import RoomRegistry
from motdepasse.game.timers import SocketIOScheduler, TimerService
from motdepasse.game.words import WordBank

INTERVAL = 0.01


def _scheduler():
    socketio = SocketIO(Flask(__name__), async_mode='threading')
    return SocketIOScheduler(socketio)


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(INTERVAL)
    return predicate()


def test_background_countdown_ticks_then_expires():
    timers = TimerService(_scheduler(), interval=INTERVAL)
    calls = []
    done = threading.Event()

    def on_expire():
        calls.append(('expire',))
        done.set()

    timers.start('ABCD', 3, lambda remaining: calls.append(('tick', remaining)), on_expire)

    assert done.wait(2.0)
    assert calls == [('tick', 2), ('tick', 1), ('expire',)]
    assert not timers.is_running('ABCD')


def test_cancelled_background_countdown_never_fires():
    timers = TimerService(_scheduler(), interval=INTERVAL)
    calls = []
    timers.start('ABCD', 3, calls.append, lambda: calls.append('expire'))
    timers.cancel('ABCD')

    time.sleep(INTERVAL * 10)
    assert calls == []


def test_game_runs_to_the_end_on_real_threads():
    scheduler = _scheduler()
    broadcaster = RecordingBroadcaster()
    registry = RoomRegistry(
        broadcaster,
        scheduler,
        WordBank(rng=random.Random(1)),
        timers=TimerService(scheduler, interval=INTERVAL),
        defaults=RoomSettings(
            total_rounds=6,
            turn_seconds=2,
            steal_seconds=2,
            team_mode=TeamMode.BALANCED,
            result_delay_seconds=INTERVAL,
        ),
        rng=random.Random(7),
    )
    room = registry.create_room('h', 'Host')
    registry.join_room(room.code, 'p2', 'P2')
    room.start_game('h')

    # Both players hammer steals while the timers run, racing every expiry.
    stop = threading.Event()

    def spam(player_id):
        while not stop.is_set():
            try:
                room.submit_steal(player_id, 'mauvais')
            except GameError:
                pass
            time.sleep(INTERVAL / 4)

    workers = [threading.Thread(target=spam, args=(pid,), daemon=True) for pid in ('h', 'p2')]
    for worker in workers:
        worker.start()
    try:
        assert _wait_for(lambda: room.phase == RoomPhase.FINISHED)
    finally:
        stop.set()
        for worker in workers:
            worker.join(1.0)

    # Exactly one resolution per round, whichever side won each race.
    assert len(broadcaster.named('round:result')) == 6
    assert len(broadcaster.named('game:over')) == 1
    assert broadcaster.named('timer:tick')
    assert not registry.timers.is_running(room.code)
