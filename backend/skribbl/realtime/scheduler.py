from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from ..game.timers import TimerHandle


logger = logging.getLogger(__name__)


class SocketIOScheduler:
    """Timers on top of Flask-SocketIO background tasks.

    Under eventlet these are green threads on the shared hub; under the
    threading async mode they are real threads, which is why the engine
    guards its mutations with a lock. Callbacks never propagate exceptions.
    """

    def __init__(self, socketio: Any) -> None:
        self._socketio = socketio

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None], handle: TimerHandle | None = None) -> TimerHandle:
        handle = handle or TimerHandle()

        def _runner() -> None:
            self._socketio.sleep(delay)
            if not handle.cancelled:
                self._run(handle, callback)

        self._socketio.start_background_task(_runner)
        return handle

    def call_every(self, interval: float, callback: Callable[[], None], handle: TimerHandle | None = None) -> TimerHandle:
        handle = handle or TimerHandle()

        def _runner() -> None:
            while True:
                self._socketio.sleep(interval)
                if handle.cancelled:
                    return
                self._run(handle, callback)

        self._socketio.start_background_task(_runner)
        return handle

    @staticmethod
    def _run(handle: TimerHandle, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Timer %s failed", handle.name or "<anonymous>")
