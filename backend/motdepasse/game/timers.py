"""
Deferred calls and per-room countdowns.

``SocketIOScheduler`` runs delayed callbacks as Socket.IO background tasks
(green threads under eventlet, real threads otherwise). ``TimerService``
builds the one-second countdown on top of it and guarantees that a room
never has more than one live countdown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Callable

logger = logging.getLogger(__name__)


class ScheduledCall:
    """Handle returned by ``call_later``; ``cancel`` is idempotent."""

    def __init__(self) -> None:
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not self.cancelled and not self.fired


class SocketIOScheduler:
    def __init__(self, socketio) -> None:
        self._socketio = socketio

    def call_later(self, delay: float, fn: Callable[..., Any], *args: Any) -> ScheduledCall:
        handle = ScheduledCall()

        def _runner() -> None:
            self._socketio.sleep(delay)
            if handle.cancelled:
                return
            handle.fired = True
            try:
                fn(*args)
            except Exception:
                logger.exception("scheduled call %r failed", fn)

        self._socketio.start_background_task(_runner)
        return handle


@dataclass(eq=False)
class _Countdown:
    room_code: str
    remaining: int
    on_tick: Callable[[int], Any]
    on_expire: Callable[[], Any]
    handle: ScheduledCall | None = field(default=None, repr=False)


class TimerService:
    def __init__(self, scheduler, interval: float = 1.0) -> None:
        self._scheduler = scheduler
        self._interval = interval
        self._lock = RLock()
        self._timers: dict[str, _Countdown] = {}

    def start(
        self,
        room_code: str,
        seconds: int,
        on_tick: Callable[[int], Any],
        on_expire: Callable[[], Any],
    ) -> None:
        with self._lock:
            self._cancel_locked(room_code)
            countdown = _Countdown(room_code, int(seconds), on_tick, on_expire)
            self._timers[room_code] = countdown
            countdown.handle = self._scheduler.call_later(self._interval, self._step, countdown)
            logger.debug("[timer-set] room=%s seconds=%s", room_code, seconds)

    def cancel(self, room_code: str) -> None:
        with self._lock:
            self._cancel_locked(room_code)

    def is_running(self, room_code: str) -> bool:
        with self._lock:
            return room_code in self._timers

    def remaining(self, room_code: str) -> int | None:
        with self._lock:
            countdown = self._timers.get(room_code)
            return countdown.remaining if countdown else None

    def _cancel_locked(self, room_code: str) -> None:
        countdown = self._timers.pop(room_code, None)
        if countdown is not None and countdown.handle is not None:
            countdown.handle.cancel()
            logger.debug("[timer-cancel] room=%s remaining=%s", room_code, countdown.remaining)

    def _step(self, countdown: _Countdown) -> None:
        with self._lock:
            if self._timers.get(countdown.room_code) is not countdown:
                return
            countdown.remaining -= 1
            remaining = countdown.remaining
            if remaining > 0:
                countdown.handle = self._scheduler.call_later(self._interval, self._step, countdown)
            else:
                del self._timers[countdown.room_code]

        if remaining > 0:
            countdown.on_tick(remaining)
        else:
            logger.debug("[timer-fire] room=%s", countdown.room_code)
            countdown.on_expire()
