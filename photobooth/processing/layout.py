from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Tuple

from PIL import Image


class LayoutType(str, Enum):
    SINGLE = "single"
    VERTICAL_4 = "vertical-4"
    HORIZONTAL_4 = "horizontal-4"
    GRID_2X2 = "grid-2x2"
    GRID_3X3 = "grid-3x3"
    TOP_BOTTOM = "top-bottom"
    LEFT_RIGHT = "left-right"


@dataclass(frozen=True)
class LayoutConfig:
    type: LayoutType
    rows: int
    cols: int
    total_slots: int
    name: str
    description: str


def _config(kind: LayoutType, rows: int, cols: int, name: str, description: str) -> LayoutConfig:
    return LayoutConfig(kind, rows, cols, rows * cols, name, description)


LAYOUT_CONFIGS: Dict[LayoutType, LayoutConfig] = {
    LayoutType.SINGLE: _config(LayoutType.SINGLE, 1, 1, "Single", "One photo"),
    LayoutType.VERTICAL_4: _config(LayoutType.VERTICAL_4, 4, 1, "Vertical strip", "4 photos stacked in one column"),
    LayoutType.HORIZONTAL_4: _config(LayoutType.HORIZONTAL_4, 1, 4, "Horizontal strip", "4 photos side by side"),
    LayoutType.GRID_2X2: _config(LayoutType.GRID_2X2, 2, 2, "Grid 2×2", "2 rows of 2 photos"),
    LayoutType.GRID_3X3: _config(LayoutType.GRID_3X3, 3, 3, "Grid 3×3", "3 rows of 3 photos"),
    LayoutType.TOP_BOTTOM: _config(LayoutType.TOP_BOTTOM, 2, 1, "Top & bottom", "2 photos, one above the other"),
    LayoutType.LEFT_RIGHT: _config(LayoutType.LEFT_RIGHT, 1, 2, "Left & right", "2 photos next to each other"),
}


@dataclass(frozen=True)
class LayoutSlot:
    id: int
    row: int
    col: int
    image: Optional[Image.Image] = None
    captured: bool = False


@dataclass(frozen=True)
class LayoutState:
    config: LayoutConfig
    slots: Tuple[LayoutSlot, ...]
    current_slot_index: int = 0
    is_complete: bool = False

    @property
    def type(self) -> LayoutType:
        return self.config.type


def create_layout_state(layout_type: LayoutType | str) -> LayoutState:
    config = LAYOUT_CONFIGS[LayoutType(layout_type)]
    slots = tuple(
        LayoutSlot(id=row * config.cols + col, row=row, col=col)
        for row in range(config.rows)
        for col in range(config.cols)
    )
    return LayoutState(config=config, slots=slots)


def _check_index(state: LayoutState, index: int) -> None:
    if not 0 <= index < len(state.slots):
        raise IndexError(f"Slot {index} out of range for layout {state.type.value}")


def _clamp_index(state: LayoutState, index: int) -> int:
    return max(0, min(index, len(state.slots) - 1))


def capture_slot(state: LayoutState, image: Image.Image, slot_index: int | None = None) -> LayoutState:
    target = state.current_slot_index if slot_index is None else slot_index
    _check_index(state, target)

    slots = list(state.slots)
    slots[target] = replace(slots[target], image=image, captured=True)
    is_complete = all(slot.captured for slot in slots)
    next_index = state.current_slot_index if is_complete else _clamp_index(state, target + 1)
    return replace(state, slots=tuple(slots), current_slot_index=next_index, is_complete=is_complete)


def retake_slot(state: LayoutState, slot_index: int) -> LayoutState:
    _check_index(state, slot_index)
    slots = list(state.slots)
    slots[slot_index] = replace(slots[slot_index], image=None, captured=False)
    return replace(state, slots=tuple(slots), current_slot_index=slot_index, is_complete=False)


def go_to_slot(state: LayoutState, slot_index: int) -> LayoutState:
    return replace(state, current_slot_index=_clamp_index(state, slot_index))


def go_to_next_slot(state: LayoutState) -> LayoutState:
    if state.is_complete:
        return state
    return go_to_slot(state, state.current_slot_index + 1)


def go_to_previous_slot(state: LayoutState) -> LayoutState:
    return go_to_slot(state, state.current_slot_index - 1)


def reset_layout_state(state: LayoutState) -> LayoutState:
    return create_layout_state(state.type)


def current_slot(state: LayoutState) -> Optional[LayoutSlot]:
    if 0 <= state.current_slot_index < len(state.slots):
        return state.slots[state.current_slot_index]
    return None


def progress(state: LayoutState) -> int:
    captured = sum(1 for slot in state.slots if slot.captured)
    return round(captured * 100 / state.config.total_slots)


class LayoutController:
    """Single owner of a :class:`LayoutState`.

    Every mutation goes through a named transition under one lock, so request
    threads never interleave updates to the same session.
    """

    def __init__(self, layout_type: LayoutType | str | None = None) -> None:
        self._lock = threading.Lock()
        self._state: Optional[LayoutState] = None
        if layout_type is not None:
            self.initialize(layout_type)

    @property
    def state(self) -> LayoutState:
        if self._state is None:
            raise RuntimeError("Layout has not been initialized")
        return self._state

    def initialize(self, layout_type: LayoutType | str) -> LayoutState:
        new_state = create_layout_state(layout_type)
        with self._lock:
            self._state = new_state
        return new_state

    def capture_slot(self, image: Image.Image, slot_index: int | None = None) -> LayoutState:
        with self._lock:
            state = self.state
            target = state.current_slot_index if slot_index is None else slot_index
            _check_index(state, target)
            if state.slots[target].captured:
                return state
            self._state = capture_slot(state, image, target)
            return self._state

    def retake_slot(self, slot_index: int) -> LayoutState:
        with self._lock:
            self._state = retake_slot(self.state, slot_index)
            return self._state

    def go_to_slot(self, slot_index: int) -> LayoutState:
        with self._lock:
            self._state = go_to_slot(self.state, slot_index)
            return self._state

    def go_to_next_slot(self) -> LayoutState:
        with self._lock:
            self._state = go_to_next_slot(self.state)
            return self._state

    def go_to_previous_slot(self) -> LayoutState:
        with self._lock:
            self._state = go_to_previous_slot(self.state)
            return self._state

    def reset(self) -> LayoutState:
        with self._lock:
            self._state = reset_layout_state(self.state)
            return self._state
