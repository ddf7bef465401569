"""Cancellable one-shot timers for match deadlines.

``BackgroundScheduler`` sleeps in a Socket.IO background task and then fires
unless the handle was cancelled meanwhile. ``ManualScheduler`` keeps a
virtual clock and only fires when advanced; the app uses it in TESTING mode.
"""

import threading
import time
from typing import Any, Callable, List, Tuple


class TimerHandle:
    def __init__(self, delay_sec: float):
        self.delay_sec = delay_sec
        self._cancelled = threading.Event()
        self.fired = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()


class BackgroundScheduler:
    def __init__(self, socketio, logger=None):
        self.socketio = socketio
        self.logger = logger

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def call_later(self, delay_sec: float, callback: Callable[..., Any], *args) -> TimerHandle:
        handle = TimerHandle(delay_sec)

        def _runner():
            self.socketio.sleep(delay_sec)
            if handle.cancelled:
                return
            handle.fired = True
            try:
                callback(*args)
            except Exception:
                if self.logger:
                    self.logger.exception(f"[timer-error] callback={getattr(callback, '__name__', callback)}")

        self.socketio.start_background_task(_runner)
        return handle


class ManualScheduler:
    """Timers that run only when the virtual clock is advanced."""

    def __init__(self, start_ms: int = None):
        self._now_ms = int(time.time() * 1000) if start_ms is None else int(start_ms)
        self._pending: List[Tuple[int, TimerHandle, Callable[..., Any], tuple]] = []
        self._lock = threading.Lock()

    def now_ms(self) -> int:
        return self._now_ms

    def call_later(self, delay_sec: float, callback: Callable[..., Any], *args) -> TimerHandle:
        handle = TimerHandle(delay_sec)
        due = self._now_ms + int(delay_sec * 1000)
        with self._lock:
            self._pending.append((due, handle, callback, args))
        return handle

    def pending(self) -> List[TimerHandle]:
        with self._lock:
            return [h for _, h, _, _ in self._pending if not h.cancelled and not h.fired]

    def advance(self, ms: int) -> int:
        """Move the clock forward and fire due timers. Returns how many fired."""
        self._now_ms += int(ms)
        with self._lock:
            due = [p for p in self._pending if p[0] <= self._now_ms]
            self._pending = [p for p in self._pending if p[0] > self._now_ms]
        fired = 0
        for _, handle, callback, args in sorted(due, key=lambda p: p[0]):
            if handle.cancelled:
                continue
            handle.fired = True
            callback(*args)
            fired += 1
        return fired
