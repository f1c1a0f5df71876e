from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from PIL import Image

from ..config import SETTINGS
from ..errors import DecodeError
from .capture import FrameSource, capture_frame
from .crop import crop_to_aspect
from .filters import FilterType, apply_filter
from .stickers import StickerType, apply_sticker

LOGGER = logging.getLogger(__name__)

# Failures a single stage may recover from by keeping the previous buffer.
RECOVERABLE = (DecodeError, OSError, ValueError)


@dataclass(frozen=True)
class StageOutcome:
    image: Optional[Image.Image]
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def or_else(self, prior: Image.Image) -> Image.Image:
        return self.image if self.error is None and self.image is not None else prior


def run_stage(name: str, stage: Callable[[Image.Image], Image.Image], img: Image.Image) -> StageOutcome:
    try:
        return StageOutcome(stage(img))
    except RECOVERABLE as exc:
        LOGGER.warning("%s stage failed, keeping previous image: %s", name, exc)
        return StageOutcome(None, exc)


def _mutating(func: Callable[[Image.Image], None]) -> Callable[[Image.Image], Image.Image]:
    # Work on a copy so a failure halfway leaves the prior buffer intact.
    def stage(img: Image.Image) -> Image.Image:
        working = img.copy()
        func(working)
        return working

    return stage


def process_frame(
    frame: Image.Image,
    filter_type: FilterType | str = FilterType.NONE,
    sticker: StickerType | str = StickerType.NONE,
    target_aspect: float | None = None,
) -> Image.Image:
    """Crop, filter and decorate one captured frame, in that order."""
    aspect = SETTINGS.target_aspect if target_aspect is None else target_aspect
    kind = FilterType(filter_type)
    sticker_kind = StickerType(sticker)

    img = run_stage("crop", lambda src: crop_to_aspect(src, aspect), frame).or_else(frame)
    img = run_stage("filter", _mutating(lambda buf: apply_filter(buf, kind)), img).or_else(img)
    img = run_stage("sticker", _mutating(lambda buf: apply_sticker(buf, sticker_kind)), img).or_else(img)
    return img


def process_capture(
    source: FrameSource,
    filter_type: FilterType | str = FilterType.NONE,
    sticker: StickerType | str = StickerType.NONE,
    mirror: bool = False,
    target_aspect: float | None = None,
) -> Image.Image:
    frame = capture_frame(source, mirror=mirror)
    return process_frame(frame, filter_type, sticker, target_aspect)
