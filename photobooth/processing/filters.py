from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Tuple

from PIL import Image


class FilterType(str, Enum):
    NONE = "none"
    GRAYSCALE = "grayscale"
    SEPIA = "sepia"
    BRIGHTNESS = "brightness"
    CONTRAST = "contrast"
    VINTAGE = "vintage"
    BLUR = "blur"
    SKIN_WHITEN = "skin-whiten"
    SKIN_SMOOTH = "skin-smooth"
    BEAUTY = "beauty"
    VIBRANT = "vibrant"
    WARM = "warm"
    COOL = "cool"
    CINEMATIC = "cinematic"
    PORTRAIT = "portrait"


RGB = Tuple[int, int, int]

BRIGHTNESS_GAIN = 1.2
CONTRAST_GAIN = 1.3
BLUR_RADIUS = 2
SKIN_SMOOTH_RADIUS = 3

_SEPIA_MATRIX = (
    (0.393, 0.769, 0.189),
    (0.349, 0.686, 0.168),
    (0.272, 0.534, 0.131),
)


def _clamp(value: float) -> int:
    if value <= 0:
        return 0
    if value >= 255:
        return 255
    return int(value + 0.5)


def luma(r: float, g: float, b: float) -> float:
    return 0.299 * r + 0.587 * g + 0.114 * b


def is_skin_tone(r: int, g: int, b: int) -> bool:
    """Coarse RGB skin classifier.

    Known to misclassify some orange and brown surfaces; the thresholds are
    kept exactly as they are so results stay comparable between clients.
    """
    return (
        r > 95
        and g > 40
        and b > 20
        and r > g
        and g > b
        and (max(r, g, b) - min(r, g, b)) > 15
    )


def contrast_factor(level: float) -> float:
    """Classic ``259(c*255+255) / (255(259-c*255))`` factor for a contrast increase ``level``."""
    return (259 * (level * 255 + 255)) / (255 * (259 - level * 255))


def _pivot(value: float, factor: float) -> float:
    return (value - 128) * factor + 128


def _saturate(r: float, g: float, b: float, amount: float) -> Tuple[float, float, float]:
    gray = luma(r, g, b)
    return (
        gray + (r - gray) * amount,
        gray + (g - gray) * amount,
        gray + (b - gray) * amount,
    )


def whiten(r: float, g: float, b: float, brighten: float, desaturate: float) -> RGB:
    r, g, b = _saturate(r * brighten, g * brighten, b * brighten, desaturate)
    return _clamp(r), _clamp(g), _clamp(b)


def _is_empty(img: Image.Image) -> bool:
    return img.width == 0 or img.height == 0


def _map_pixels(img: Image.Image, transform: Callable[[int, int, int], RGB]) -> None:
    pixels = img.load()
    width, height = img.size
    for y in range(height):
        for x in range(width):
            px = pixels[x, y]
            pixels[x, y] = transform(px[0], px[1], px[2]) + tuple(px[3:])


def _box_average(pixels, width: int, height: int, x: int, y: int, radius: int) -> RGB:
    r_sum = g_sum = b_sum = count = 0
    for ny in range(max(0, y - radius), min(height, y + radius + 1)):
        for nx in range(max(0, x - radius), min(width, x + radius + 1)):
            px = pixels[nx, ny]
            r_sum += px[0]
            g_sum += px[1]
            b_sum += px[2]
            count += 1
    return _clamp(r_sum / count), _clamp(g_sum / count), _clamp(b_sum / count)


def _skin_mask(img: Image.Image) -> list[list[bool]]:
    pixels = img.load()
    width, height = img.size
    return [
        [is_skin_tone(*pixels[x, y][:3]) for x in range(width)]
        for y in range(height)
    ]


def grayscale(img: Image.Image) -> None:
    def transform(r, g, b):
        gray = _clamp(luma(r, g, b))
        return gray, gray, gray

    _map_pixels(img, transform)


def sepia(img: Image.Image) -> None:
    (rr, rg, rb), (gr, gg, gb), (br, bg, bb) = _SEPIA_MATRIX

    def transform(r, g, b):
        return (
            _clamp(r * rr + g * rg + b * rb),
            _clamp(r * gr + g * gg + b * gb),
            _clamp(r * br + g * bg + b * bb),
        )

    _map_pixels(img, transform)


def brightness(img: Image.Image) -> None:
    _map_pixels(
        img,
        lambda r, g, b: (
            _clamp(r * BRIGHTNESS_GAIN),
            _clamp(g * BRIGHTNESS_GAIN),
            _clamp(b * BRIGHTNESS_GAIN),
        ),
    )


def contrast(img: Image.Image) -> None:
    # The gain is a multiplier; the formula expects the increase above 1.0.
    factor = contrast_factor(CONTRAST_GAIN - 1.0)
    _map_pixels(
        img,
        lambda r, g, b: (
            _clamp(_pivot(r, factor)),
            _clamp(_pivot(g, factor)),
            _clamp(_pivot(b, factor)),
        ),
    )


def vintage(img: Image.Image) -> None:
    _map_pixels(
        img,
        lambda r, g, b: (
            _clamp(r * 0.9 + g * 0.1),
            _clamp(g * 0.9 + b * 0.1),
            _clamp(b * 0.9 + r * 0.1),
        ),
    )


def blur(img: Image.Image) -> None:
    width, height = img.size
    radius = BLUR_RADIUS
    source = img.copy().load()
    pixels = img.load()
    # Border pixels closer than the radius keep their values.
    for y in range(radius, height - radius):
        for x in range(radius, width - radius):
            px = pixels[x, y]
            pixels[x, y] = _box_average(source, width, height, x, y, radius) + tuple(px[3:])


def skin_whiten(img: Image.Image) -> None:
    def transform(r, g, b):
        if not is_skin_tone(r, g, b):
            return r, g, b
        return whiten(r, g, b, 1.15, 0.85)

    _map_pixels(img, transform)


def skin_smooth(img: Image.Image) -> None:
    width, height = img.size
    original = img.copy().load()
    pixels = img.load()
    for y in range(height):
        for x in range(width):
            px = original[x, y]
            if is_skin_tone(px[0], px[1], px[2]):
                pixels[x, y] = (
                    _box_average(original, width, height, x, y, SKIN_SMOOTH_RADIUS)
                    + tuple(px[3:])
                )


def beauty(img: Image.Image) -> None:
    width, height = img.size
    mask = _skin_mask(img)
    pixels = img.load()

    for y in range(height):
        row = mask[y]
        for x in range(width):
            px = pixels[x, y]
            r, g, b = px[0], px[1], px[2]
            if row[x]:
                toned = whiten(r, g, b, 1.12, 0.9)
            else:
                toned = (_clamp(r * 1.05), _clamp(g * 1.05), _clamp(b * 1.05))
            pixels[x, y] = toned + tuple(px[3:])

    toned_source = img.copy().load()
    for y in range(height):
        row = mask[y]
        for x in range(width):
            if row[x]:
                px = pixels[x, y]
                pixels[x, y] = (
                    _box_average(toned_source, width, height, x, y, BLUR_RADIUS)
                    + tuple(px[3:])
                )


def portrait(img: Image.Image) -> None:
    def transform(r, g, b):
        if is_skin_tone(r, g, b):
            r, g, b = whiten(r, g, b, 1.1, 0.88)
        return (
            _clamp(_pivot(r, 1.2)),
            _clamp(_pivot(g, 1.2)),
            _clamp(_pivot(b, 1.2)),
        )

    _map_pixels(img, transform)


def vibrant(img: Image.Image) -> None:
    def transform(r, g, b):
        r, g, b = _saturate(r, g, b, 1.45)
        return (
            _clamp(_pivot(r, 1.18) * 1.02),
            _clamp(_pivot(g, 1.18) * 1.02),
            _clamp(_pivot(b, 1.18) * 1.02),
        )

    _map_pixels(img, transform)


def warm(img: Image.Image) -> None:
    def transform(r, g, b):
        r, g, b = _saturate(r, g, b, 1.1)
        return _clamp(r * 1.1), _clamp(g * 1.05), _clamp(b * 0.9)

    _map_pixels(img, transform)


def cool(img: Image.Image) -> None:
    def transform(r, g, b):
        r, g, b = _saturate(r, g, b, 1.05)
        return _clamp(r * 0.9), _clamp(g * 0.98), _clamp(b * 1.12)

    _map_pixels(img, transform)


def cinematic(img: Image.Image) -> None:
    def transform(r, g, b):
        r, g, b = _saturate(r, g, b, 0.85)
        r, g, b = _pivot(r, 1.4), _pivot(g, 1.4), _pivot(b, 1.4)
        if luma(r, g, b) < 128:
            r, g, b = r * 0.92, g * 0.92, b * 0.92
        return _clamp(r), _clamp(g), _clamp(b)

    _map_pixels(img, transform)


FILTERS: Dict[FilterType, Callable[[Image.Image], None]] = {
    FilterType.NONE: lambda img: None,
    FilterType.GRAYSCALE: grayscale,
    FilterType.SEPIA: sepia,
    FilterType.BRIGHTNESS: brightness,
    FilterType.CONTRAST: contrast,
    FilterType.VINTAGE: vintage,
    FilterType.BLUR: blur,
    FilterType.SKIN_WHITEN: skin_whiten,
    FilterType.SKIN_SMOOTH: skin_smooth,
    FilterType.BEAUTY: beauty,
    FilterType.VIBRANT: vibrant,
    FilterType.WARM: warm,
    FilterType.COOL: cool,
    FilterType.CINEMATIC: cinematic,
    FilterType.PORTRAIT: portrait,
}


def apply_filter(img: Image.Image, filter_type: FilterType | str) -> None:
    """Apply ``filter_type`` to ``img`` in place.

    Only RGB and RGBA images are accepted; the alpha channel is never touched.
    Empty images are left alone.
    """
    kind = FilterType(filter_type)
    if kind is FilterType.NONE or _is_empty(img):
        return
    if img.mode not in ("RGB", "RGBA"):
        raise ValueError(f"Filters need an RGB or RGBA image, got mode {img.mode!r}")
    FILTERS[kind](img)
