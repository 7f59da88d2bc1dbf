from __future__ import annotations

import logging
import time
from threading import RLock
from typing import Callable

logger = logging.getLogger(__name__)


class TurnTimer:
    """Per-room countdown for the current describing turn.

    ``spawn(fn, *args)`` starts a background task (``socketio.start_background_task``)
    and ``sleep`` yields for one second (``socketio.sleep``). Each armed countdown
    remembers the generation it was started with; disarming or re-arming bumps
    the generation so stale countdowns exit without firing. With ``spawn=None``
    nothing runs in the background and the owner drives :meth:`tick` itself.
    """

    def __init__(
        self,
        on_tick: Callable[[int, str | None], None],
        on_expire: Callable[[str | None], None],
        spawn: Callable | None = None,
        sleep: Callable[[float], None] = time.sleep,
        lock: RLock | None = None,
    ) -> None:
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._spawn = spawn
        self._sleep = sleep
        self._lock = lock or RLock()
        self._generation = 0
        self.remaining = 0
        self.player_id: str | None = None

    @property
    def active(self) -> bool:
        return self.remaining > 0

    def arm(self, duration_sec: int, player_id: str | None = None) -> None:
        with self._lock:
            self.disarm()
            self.remaining = max(1, int(duration_sec))
            self.player_id = player_id
            generation = self._generation

        if self._spawn is not None:
            self._spawn(self._run, generation)

    def disarm(self) -> None:
        with self._lock:
            self._generation += 1
            self.remaining = 0
            self.player_id = None

    def tick(self) -> None:
        with self._lock:
            if not self.active:
                return

            self.remaining -= 1
            self._on_tick(self.remaining, self.player_id)

            if self.remaining <= 0:
                player_id = self.player_id
                self.disarm()
                self._on_expire(player_id)

    def _run(self, generation: int) -> None:
        while True:
            self._sleep(1)
            with self._lock:
                if generation != self._generation:
                    return
                try:
                    self.tick()
                except Exception:
                    logger.exception("[timer-error] player=%s", self.player_id)
                    self.disarm()
                    return
