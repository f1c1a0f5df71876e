from __future__ import annotations

import logging
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from PIL import Image

from .autocapture import AutoCaptureTimer, TimerFactory
from .config import SETTINGS
from .processing.layout import LayoutController, LayoutState, LayoutType, progress

LOGGER = logging.getLogger(__name__)


def state_as_dict(state: LayoutState) -> dict:
    config = state.config
    return {
        "layout": {
            "type": config.type.value,
            "name": config.name,
            "description": config.description,
            "rows": config.rows,
            "cols": config.cols,
            "totalSlots": config.total_slots,
        },
        "slots": [
            {"id": slot.id, "row": slot.row, "col": slot.col, "captured": slot.captured}
            for slot in state.slots
        ],
        "currentSlotIndex": state.current_slot_index,
        "isComplete": state.is_complete,
        "progress": progress(state),
    }


class BoothSession:
    """One person's layout session: the layout controller plus its countdown.

    The session lock orders a firing countdown against retake, go-to and
    reset. A countdown only captures while it is still the session's
    current one.
    """

    def __init__(
        self,
        layout_type: LayoutType | str,
        session_id: str | None = None,
        countdown: int | None = None,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex
        self.created_at = datetime.now(timezone.utc).isoformat()
        self.controller = LayoutController(layout_type)
        self._countdown = SETTINGS.autocapture_countdown if countdown is None else countdown
        self._timer_factory = timer_factory
        self._timer: Optional[AutoCaptureTimer] = None
        # Reentrant: a zero countdown fires from inside start_countdown.
        self._lock = threading.RLock()

    @property
    def state(self) -> LayoutState:
        return self.controller.state

    @property
    def countdown_remaining(self) -> int:
        timer = self._timer
        return timer.remaining if timer is not None and timer.active else 0

    def capture(self, image: Image.Image, slot_index: int | None = None) -> LayoutState:
        with self._lock:
            self.cancel_countdown()
            return self.controller.capture_slot(image, slot_index)

    def start_countdown(self, grab: Callable[[], Image.Image], countdown: int | None = None) -> AutoCaptureTimer:
        """Capture ``grab()`` into the current slot once the countdown runs out."""

        def fire() -> None:
            try:
                image = grab()
                with self._lock:
                    if self._timer is not timer:
                        LOGGER.debug("Dropping stale auto-capture for session %s", self.id)
                        return
                    self.controller.capture_slot(image)
            except Exception:  # pragma: no cover - runs on the timer thread
                LOGGER.exception("Auto-capture for session %s failed", self.id)

        timer = AutoCaptureTimer(
            self._countdown if countdown is None else countdown,
            on_fire=fire,
            timer_factory=self._timer_factory,
        )
        with self._lock:
            self.cancel_countdown()
            self._timer = timer
            timer.start()
        return timer

    def cancel_countdown(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def go_to(self, slot_index: int) -> LayoutState:
        with self._lock:
            self.cancel_countdown()
            return self.controller.go_to_slot(slot_index)

    def retake(self, slot_index: int) -> LayoutState:
        with self._lock:
            self.cancel_countdown()
            return self.controller.retake_slot(slot_index)

    def reset(self) -> LayoutState:
        with self._lock:
            self.cancel_countdown()
            return self.controller.reset()

    def close(self) -> None:
        self.cancel_countdown()

    def to_dict(self) -> dict:
        payload = state_as_dict(self.state)
        payload.update(id=self.id, createdAt=self.created_at, countdown=self.countdown_remaining)
        return payload


class SessionRegistry:
    """In-memory sessions keyed by id; sessions idle longer than ``idle_ttl`` seconds are evicted."""

    def __init__(
        self,
        session_factory: Callable[..., BoothSession] = BoothSession,
        idle_ttl: float | None = None,
    ) -> None:
        self._sessions: Dict[str, BoothSession] = {}
        self._last_seen: Dict[str, float] = {}
        self._lock = threading.Lock()
        self._factory = session_factory
        self._idle_ttl = SETTINGS.session_idle_ttl if idle_ttl is None else idle_ttl

    def _evict_idle_locked(self, now: float) -> List[BoothSession]:
        stale = [sid for sid, seen in self._last_seen.items() if now - seen > self._idle_ttl]
        for sid in stale:
            self._last_seen.pop(sid, None)
        return [self._sessions.pop(sid) for sid in stale]

    def _close_evicted(self, evicted: List[BoothSession]) -> None:
        for session in evicted:
            LOGGER.info("Evicting idle session %s", session.id)
            session.close()

    def create(self, layout_type: LayoutType | str) -> BoothSession:
        session = self._factory(layout_type)
        now = time.time()
        with self._lock:
            evicted = self._evict_idle_locked(now)
            self._sessions[session.id] = session
            self._last_seen[session.id] = now
        self._close_evicted(evicted)
        LOGGER.info("Created session %s with layout %s", session.id, session.state.type.value)
        return session

    def get(self, session_id: str) -> BoothSession:
        now = time.time()
        with self._lock:
            evicted = self._evict_idle_locked(now)
            session = self._sessions.get(session_id)
            if session is not None:
                self._last_seen[session_id] = now
        self._close_evicted(evicted)
        if session is None:
            raise KeyError(session_id)
        return session

    def delete(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id)
            self._last_seen.pop(session_id, None)
        session.close()

    def __len__(self) -> int:
        return len(self._sessions)
