from __future__ import annotations

import logging
from typing import Tuple

from PIL import Image

from ..config import SETTINGS

LOGGER = logging.getLogger(__name__)


def crop_box(width: int, height: int, target_aspect: float) -> Tuple[int, int, int, int]:
    """Return the centered ``(left, top, right, bottom)`` region matching ``target_aspect``."""
    if width <= 0 or height <= 0:
        return 0, 0, width, height

    img_aspect = width / height
    if img_aspect > target_aspect:
        crop_width = int(round(height * target_aspect))
        crop_x = (width - crop_width) // 2
        return crop_x, 0, crop_x + crop_width, height

    crop_height = int(round(width / target_aspect))
    crop_y = (height - crop_height) // 2
    return 0, crop_y, width, crop_y + crop_height


def crop_to_aspect(img: Image.Image, target_aspect: float | None = None) -> Image.Image:
    target = SETTINGS.target_aspect if target_aspect is None else target_aspect
    if target <= 0:
        raise ValueError(f"Aspect ratio must be positive, got {target}")
    box = crop_box(img.width, img.height, target)
    if box == (0, 0, img.width, img.height):
        return img.copy()
    LOGGER.debug("Cropping %sx%s to box %s", img.width, img.height, box)
    return img.crop(box)

