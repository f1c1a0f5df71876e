from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Sequence, Tuple

from PIL import Image, ImageDraw

Point = Tuple[float, float]


class StickerType(str, Enum):
    NONE = "none"
    BUNNY_EARS = "bunny-ears"
    CAT_EARS = "cat-ears"
    CROWN = "crown"
    PARTY_HAT = "party-hat"
    MUSTACHE = "mustache"
    GLASSES = "glasses"
    HEART_EYES = "heart-eyes"
    FLOWER_CROWN = "flower-crown"
    BEARD = "beard"
    SUNGLASSES = "sunglasses"


@dataclass(frozen=True)
class StickerOption:
    type: StickerType
    label: str
    icon: str
    position: str  # top | center | bottom
    scale: float


STICKER_OPTIONS: Tuple[StickerOption, ...] = (
    StickerOption(StickerType.NONE, "No sticker", "🚫", "center", 0),
    StickerOption(StickerType.BUNNY_EARS, "Bunny ears", "🐰", "top", 0.3),
    StickerOption(StickerType.CAT_EARS, "Cat ears", "🐱", "top", 0.3),
    StickerOption(StickerType.CROWN, "Crown", "👑", "top", 0.4),
    StickerOption(StickerType.PARTY_HAT, "Party hat", "🎉", "top", 0.35),
    StickerOption(StickerType.MUSTACHE, "Mustache", "👨", "center", 0.25),
    StickerOption(StickerType.GLASSES, "Glasses", "🤓", "center", 0.3),
    StickerOption(StickerType.HEART_EYES, "Heart eyes", "😍", "center", 0.2),
    StickerOption(StickerType.FLOWER_CROWN, "Flower crown", "🌸", "top", 0.35),
    StickerOption(StickerType.BEARD, "Beard", "🧔", "bottom", 0.3),
    StickerOption(StickerType.SUNGLASSES, "Sunglasses", "🕶️", "center", 0.3),
)

_OPTIONS_BY_TYPE: Dict[StickerType, StickerOption] = {option.type: option for option in STICKER_OPTIONS}


def sticker_option(sticker_type: StickerType | str) -> StickerOption:
    return _OPTIONS_BY_TYPE[StickerType(sticker_type)]


def sticker_anchor(width: int, height: int, option: StickerOption) -> Tuple[float, float, float]:
    """Return ``(x, y, size)`` for ``option`` on a ``width`` x ``height`` image.

    No face detection is involved: the face is assumed to sit centered
    horizontally at 40% of the height, spanning 40% x 50% of the frame.
    """
    face_x = width / 2
    face_y = height * 0.4
    face_width = width * 0.4
    face_height = height * 0.5
    size = min(face_width, face_height) * option.scale

    if option.position == "top":
        y = height * 0.2
    elif option.position == "bottom":
        y = height * 0.6
    else:
        y = face_y
    return face_x, y, size


class _Pen:
    """Draws shapes relative to an origin, like a translated canvas context."""

    def __init__(self, draw: ImageDraw.ImageDraw, origin: Point) -> None:
        self.draw = draw
        self.ox, self.oy = origin

    def at(self, x: float, y: float) -> Point:
        return self.ox + x, self.oy + y

    def ellipse(self, cx, cy, rx, ry, fill=None, outline=None, width=1) -> None:
        x0, y0 = self.at(cx - abs(rx), cy - abs(ry))
        x1, y1 = self.at(cx + abs(rx), cy + abs(ry))
        self.draw.ellipse((x0, y0, x1, y1), fill=fill, outline=outline, width=width)

    def circle(self, cx, cy, radius, fill=None, outline=None, width=1) -> None:
        self.ellipse(cx, cy, radius, radius, fill=fill, outline=outline, width=width)

    def polygon(self, points: Sequence[Point], fill=None, outline=None, width=1) -> None:
        shifted = [self.at(x, y) for x, y in points]
        self.draw.polygon(shifted, fill=fill)
        if outline is not None:
            self.draw.line(shifted + shifted[:1], fill=outline, width=width)

    def line(self, start: Point, end: Point, fill, width=1) -> None:
        self.draw.line([self.at(*start), self.at(*end)], fill=fill, width=width)

    def upper_half_disc(self, cx, cy, radius, fill=None, outline=None, width=1) -> None:
        x0, y0 = self.at(cx - radius, cy - radius)
        x1, y1 = self.at(cx + radius, cy + radius)
        self.draw.pieslice((x0, y0, x1, y1), 180, 360, fill=fill, outline=outline, width=width)


def _rotated_ellipse(cx: float, cy: float, rx: float, ry: float, angle: float, steps: int = 32) -> List[Point]:
    cos_a, sin_a = math.cos(angle), math.sin(angle)
    points = []
    for i in range(steps):
        t = 2 * math.pi * i / steps
        x, y = rx * math.cos(t), ry * math.sin(t)
        points.append((cx + x * cos_a - y * sin_a, cy + x * sin_a + y * cos_a))
    return points


def _cubic(p0: Point, p1: Point, p2: Point, p3: Point, steps: int = 12) -> List[Point]:
    points = []
    for i in range(1, steps + 1):
        t = i / steps
        u = 1 - t
        points.append((
            u ** 3 * p0[0] + 3 * u * u * t * p1[0] + 3 * u * t * t * p2[0] + t ** 3 * p3[0],
            u ** 3 * p0[1] + 3 * u * u * t * p1[1] + 3 * u * t * t * p2[1] + t ** 3 * p3[1],
        ))
    return points


def _heart(x: float, y: float, size: float) -> List[Point]:
    start = (x, y + size * 0.3)
    points = [start]
    segments = (
        ((x, y), (x - size, y), (x - size, y + size * 0.3)),
        ((x - size, y + size * 0.5), (x, y + size * 0.7), (x, y + size)),
        ((x, y + size * 0.7), (x + size, y + size * 0.5), (x + size, y + size * 0.3)),
        ((x + size, y), (x, y), start),
    )
    current = start
    for c1, c2, end in segments:
        points.extend(_cubic(current, c1, c2, end))
        current = end
    return points


def _bunny_ears(pen: _Pen, size: float) -> None:
    ear_w, ear_h, spacing = size * 0.3, size * 0.5, size * 0.4
    for side in (-1, 1):
        pen.ellipse(side * spacing, -size * 0.3, ear_w, ear_h, fill="#FFB6C1", outline="#FF69B4", width=2)
        pen.ellipse(side * spacing, -size * 0.25, ear_w * 0.5, ear_h * 0.5, fill="#FFC0CB")


def _cat_ears(pen: _Pen, size: float) -> None:
    ear_w, spacing = size * 0.3, size * 0.4
    for side in (-1, 1):
        cx = side * spacing
        outer = [(cx, -size * 0.2), (cx - ear_w, -size * 0.5), (cx + ear_w, -size * 0.5)]
        inner = [(cx, -size * 0.25), (cx - ear_w * 0.5, -size * 0.45), (cx + ear_w * 0.5, -size * 0.45)]
        pen.polygon(outer, fill="#FFA500", outline="#FF8C00", width=2)
        pen.polygon(inner, fill="#FFD700")


def _crown(pen: _Pen, size: float) -> None:
    width = size * 0.8
    peak = size * 0.3 * 0.6
    peaks = 5
    points: List[Point] = [(-width / 2, 0)]
    for i in range(peaks + 1):
        x = -width / 2 + (width / peaks) * i
        points.append((x, -peak if i % 2 == 0 else -peak * 0.5))
    points.append((width / 2, 0))
    pen.polygon(points, fill="#FFD700", outline="#FFA500", width=2)
    pen.circle(0, -peak * 0.3, size * 0.05, fill="#FF1493")


def _party_hat(pen: _Pen, size: float) -> None:
    width, height = size * 0.6, size * 0.5
    pen.upper_half_disc(0, -height * 0.3, width / 2, fill="#FF6B6B", outline="#FF4757", width=2)
    pen.circle(0, -height * 0.6, size * 0.08, fill="#FFA502")


def _mustache(pen: _Pen, size: float) -> None:
    width, height = size * 0.6, size * 0.2
    for side in (-1, 1):
        pen.ellipse(side * width * 0.25, 0, width * 0.2, height, fill="#2C2C2C", outline="#000000", width=2)


def _glasses(pen: _Pen, size: float) -> None:
    lens, spacing = size * 0.25, size * 0.15
    for side in (-1, 1):
        pen.circle(side * spacing, 0, lens, fill=(200, 200, 255, 77), outline="#2C2C2C", width=3)
    pen.line((-spacing + lens, 0), (spacing - lens, 0), fill="#2C2C2C", width=3)


def _heart_eyes(pen: _Pen, size: float) -> None:
    heart, spacing = size * 0.15, size * 0.25
    for side in (-1, 1):
        pen.polygon(_heart(side * spacing, 0, heart), fill="#FF1493", outline="#C71585", width=2)


def _flower(pen: _Pen, x: float, y: float, size: float) -> None:
    for i in range(5):
        angle = 2 * math.pi * i / 5
        # Petal centered at (0, -0.3 size) in the rotated frame.
        px = x + size * 0.3 * math.sin(angle)
        py = y - size * 0.3 * math.cos(angle)
        pen.polygon(
            _rotated_ellipse(px, py, size * 0.2, size * 0.3, angle),
            fill="#FF69B4",
            outline="#FF1493",
            width=1,
        )
    pen.circle(x, y, size * 0.15, fill="#FFD700")


def _flower_crown(pen: _Pen, size: float) -> None:
    width = size * 0.8
    flowers = 5
    for i in range(flowers):
        _flower(pen, -width / 2 + (width / (flowers - 1)) * i, -size * 0.3, size * 0.1)


def _beard(pen: _Pen, size: float) -> None:
    width, height = size * 0.7, size * 0.4
    pen.ellipse(0, height * 0.3, width / 2, height, fill="#2C2C2C", outline="#000000", width=2)


def _sunglasses(pen: _Pen, size: float) -> None:
    lens, spacing = size * 0.3, size * 0.2
    for side in (-1, 1):
        pen.circle(side * spacing, 0, lens, fill="#1a1a1a", outline="#000000", width=3)
    pen.line((-spacing + lens, 0), (spacing - lens, 0), fill="#000000", width=3)
    for side in (-1, 1):
        pen.polygon(
            _rotated_ellipse(side * spacing, -lens * 0.3, lens * 0.3, lens * 0.1, side * 0.3),
            fill=(255, 255, 255, 77),
        )


_DRAWERS: Dict[StickerType, Callable[[_Pen, float], None]] = {
    StickerType.BUNNY_EARS: _bunny_ears,
    StickerType.CAT_EARS: _cat_ears,
    StickerType.CROWN: _crown,
    StickerType.PARTY_HAT: _party_hat,
    StickerType.MUSTACHE: _mustache,
    StickerType.GLASSES: _glasses,
    StickerType.HEART_EYES: _heart_eyes,
    StickerType.FLOWER_CROWN: _flower_crown,
    StickerType.BEARD: _beard,
    StickerType.SUNGLASSES: _sunglasses,
}


def apply_sticker(img: Image.Image, sticker_type: StickerType | str) -> None:
    """Draw ``sticker_type`` onto ``img`` in place at the estimated face anchor.

    Apply filters first: the artwork is drawn on top of whatever the image
    already holds.
    """
    option = sticker_option(sticker_type)
    if option.type is StickerType.NONE or img.width == 0 or img.height == 0:
        return
    x, y, size = sticker_anchor(img.width, img.height, option)
    draw = ImageDraw.Draw(img, "RGBA")
    _DRAWERS[option.type](_Pen(draw, (x, y)), size)
