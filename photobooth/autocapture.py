from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)

TimerFactory = Callable[..., threading.Timer]


class AutoCaptureTimer:
    """Cancellable countdown that fires a capture callback when it reaches zero.

    Every ``start`` or ``cancel`` bumps a generation counter. A timer callback
    that belongs to an older generation returns without doing anything, so a
    countdown cancelled on retake or reset can never fire into a new layout.
    """

    def __init__(
        self,
        countdown: int,
        on_fire: Callable[[], None],
        on_tick: Optional[Callable[[int], None]] = None,
        interval: float = 1.0,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self.countdown = countdown
        self.interval = interval
        self._on_fire = on_fire
        self._on_tick = on_tick
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._generation = 0
        self._timer: Optional[threading.Timer] = None
        self.remaining = 0

    @property
    def active(self) -> bool:
        return self._timer is not None

    def start(self) -> None:
        with self._lock:
            self._stop_locked()
            self._generation += 1
            self.remaining = self.countdown
            generation = self._generation
            if self.remaining > 0:
                self._schedule_locked(generation)
        if self._on_tick is not None:
            self._on_tick(self.remaining)
        if self.remaining <= 0:
            self._on_fire()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                LOGGER.debug("Cancelling countdown with %s left", self.remaining)
            self._stop_locked()
            self._generation += 1
            self.remaining = 0

    def _stop_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule_locked(self, generation: int) -> None:
        timer = self._timer_factory(self.interval, self._tick, args=(generation,))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self.remaining -= 1
            remaining = self.remaining
            if remaining > 0:
                self._schedule_locked(generation)
            else:
                self._timer = None

        if remaining > 0:
            if self._on_tick is not None:
                self._on_tick(remaining)
            return
        self._on_fire()
