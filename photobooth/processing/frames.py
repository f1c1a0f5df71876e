from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from PIL import Image, ImageDraw

from ..errors import DecodeError, FrameSourceError, ProxyError
from .capture import decode_data_url, decode_image

LOGGER = logging.getLogger(__name__)

ImageLoader = Callable[[str], bytes]


class FrameType(str, Enum):
    NONE = "none"
    CLASSIC = "classic"
    MODERN = "modern"
    VINTAGE = "vintage"
    ELEGANT = "elegant"
    PLAYFUL = "playful"


class FrameLayoutTag(str, Enum):
    """Layout identifiers attached to uploaded frame artwork.

    These describe which print format an uploaded frame was designed for.
    They are deliberately not mapped onto capture layouts.
    """

    STRIP_1X4 = "1x4"
    GRID_2X3 = "2x3"
    GRID_2X2 = "2x2"


class FitMode(str, Enum):
    CONTAIN = "contain"
    COVER = "cover"
    FILL = "fill"


@dataclass(frozen=True)
class FrameStyle:
    border_width: int
    border_color: str
    border_style: str  # solid | dashed | dotted
    padding: int
    background_color: Optional[str] = None


FRAME_STYLES: Dict[FrameType, FrameStyle] = {
    FrameType.NONE: FrameStyle(0, "transparent", "solid", 0),
    FrameType.CLASSIC: FrameStyle(20, "#d97706", "solid", 10, "#fef3c7"),
    FrameType.MODERN: FrameStyle(15, "#1f2937", "solid", 5, "#ffffff"),
    FrameType.VINTAGE: FrameStyle(25, "#92400e", "solid", 15, "#fef3c7"),
    FrameType.ELEGANT: FrameStyle(12, "#4b5563", "solid", 8, "#f9fafb"),
    FrameType.PLAYFUL: FrameStyle(18, "#f472b6", "dashed", 10, "#fce7f3"),
}

DASH_PATTERNS: Dict[str, Tuple[int, int]] = {
    "dashed": (20, 10),
    "dotted": (5, 5),
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CustomFrameImage:
    id: str
    name: str
    image_data: str
    aspect_ratio: Optional[float] = None
    fit_mode: FitMode = FitMode.CONTAIN
    layout_tag: Optional[FrameLayoutTag] = None
    created_at: str = field(default_factory=_now_iso)

    @classmethod
    def from_dict(cls, payload: dict) -> "CustomFrameImage":
        """Build from the camelCase JSON used by the frame API."""
        try:
            frame_id = str(payload["id"])
            image_data = payload.get("imageData") or payload["imageUrl"]
        except KeyError as exc:
            raise ValueError(f"Custom frame is missing {exc.args[0]!r}") from exc

        aspect = payload.get("aspectRatio")
        tag = payload.get("layoutType")
        return cls(
            id=frame_id,
            name=str(payload.get("name") or frame_id),
            image_data=str(image_data),
            aspect_ratio=float(aspect) if aspect else None,
            fit_mode=FitMode(payload.get("fitMode") or FitMode.CONTAIN.value),
            layout_tag=FrameLayoutTag(tag) if tag else None,
            created_at=str(payload.get("createdAt") or _now_iso()),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "imageData": self.image_data,
            "aspectRatio": self.aspect_ratio,
            "fitMode": self.fit_mode.value,
            "layoutType": self.layout_tag.value if self.layout_tag else None,
            "createdAt": self.created_at,
        }


class FrameLookup(Protocol):
    def resolve(self, frame_id: str) -> Optional[CustomFrameImage]:
        ...


def frames_for_tag(frames: Iterable[CustomFrameImage], tag: FrameLayoutTag | str | None) -> List[CustomFrameImage]:
    if not tag:
        return list(frames)
    wanted = FrameLayoutTag(tag)
    return [frame for frame in frames if frame.layout_tag in (None, wanted)]


def resolve_frame(
    frame_id: str,
    custom_frame: Optional[CustomFrameImage] = None,
    store: Optional[FrameLookup] = None,
) -> Tuple[Optional[FrameStyle], Optional[CustomFrameImage]]:
    """Return the procedural style or the custom image selected by ``frame_id``.

    ``(None, None)`` means no frame. Custom images registered under an id win
    over a procedural style of the same name.
    """
    if not frame_id or frame_id == FrameType.NONE.value:
        return None, None
    if custom_frame is None and store is not None:
        custom_frame = store.resolve(frame_id)
    if custom_frame is not None:
        return None, custom_frame
    try:
        return FRAME_STYLES[FrameType(frame_id)], None
    except ValueError:
        raise ValueError(f"Unknown frame {frame_id!r}") from None


def fill_frame_background(canvas: Image.Image, style: FrameStyle) -> None:
    if style.background_color:
        ImageDraw.Draw(canvas).rectangle((0, 0, canvas.width, canvas.height), fill=style.background_color)


def _dashed_run(draw, start: float, end: float, fixed: Tuple[float, float], horizontal: bool, pattern, color) -> None:
    dash, gap = pattern
    step = 1 if end >= start else -1
    length = abs(end - start)
    offset = 0.0
    while offset < length:
        a = start + step * offset
        b = start + step * min(offset + dash, length)
        lo, hi = min(a, b), max(a, b)
        offset += dash + gap
        if hi - lo < 1:
            continue
        if horizontal:
            draw.rectangle((lo, fixed[0], hi - 1, fixed[1] - 1), fill=color)
        else:
            draw.rectangle((fixed[0], lo, fixed[1] - 1, hi - 1), fill=color)


def draw_frame_border(canvas: Image.Image, style: FrameStyle) -> None:
    width, height = canvas.size
    bw = style.border_width
    if bw <= 0:
        return
    draw = ImageDraw.Draw(canvas)
    color = style.border_color

    pattern = DASH_PATTERNS.get(style.border_style)
    if pattern is None:
        draw.rectangle((0, 0, width - 1, bw - 1), fill=color)
        draw.rectangle((width - bw, 0, width - 1, height - 1), fill=color)
        draw.rectangle((0, height - bw, width - 1, height - 1), fill=color)
        draw.rectangle((0, 0, bw - 1, height - 1), fill=color)
        return

    # Each edge is its own stroke, so the dash pattern restarts at every corner.
    _dashed_run(draw, 0, width, (0, bw), True, pattern, color)
    _dashed_run(draw, 0, height, (width - bw, width), False, pattern, color)
    _dashed_run(draw, width, 0, (height - bw, height), True, pattern, color)
    _dashed_run(draw, height, 0, (0, bw), False, pattern, color)


def load_frame_image(frame: CustomFrameImage, loader: Optional[ImageLoader] = None) -> Image.Image:
    source = frame.image_data
    try:
        if source.startswith(("http://", "https://")):
            if loader is None:
                raise FrameSourceError(
                    f"Frame '{frame.name}' is hosted remotely and no image proxy is available. "
                    "Please try another frame.",
                    frame.id,
                )
            img = decode_image(loader(source))
        else:
            img = decode_data_url(source)
    except (DecodeError, ProxyError) as exc:
        raise FrameSourceError(
            f"Frame '{frame.name}' could not be loaded. Please try another frame.", frame.id
        ) from exc
    return img.convert("RGBA")


def fit_box(
    canvas_size: Tuple[int, int],
    image_aspect: float,
    fit_mode: FitMode,
) -> Tuple[int, int, int, int]:
    """Return ``(x, y, width, height)`` of the frame image drawn on the canvas."""
    width, height = canvas_size
    if fit_mode is FitMode.FILL or image_aspect <= 0 or height == 0:
        return 0, 0, width, height

    canvas_aspect = width / height
    wider = image_aspect > canvas_aspect
    if (fit_mode is FitMode.CONTAIN) == wider:
        draw_w, draw_h = width, width / image_aspect
    else:
        draw_w, draw_h = height * image_aspect, height

    draw_w, draw_h = max(1, int(round(draw_w))), max(1, int(round(draw_h)))
    return (width - draw_w) // 2, (height - draw_h) // 2, draw_w, draw_h


def frame_aspect(frame: CustomFrameImage, overlay: Image.Image) -> float:
    """Declared aspect ratio of ``frame``, else the ratio of its decoded image."""
    if frame.aspect_ratio:
        return frame.aspect_ratio
    return overlay.width / overlay.height if overlay.height else 0


def paste_frame_overlay(canvas: Image.Image, frame: CustomFrameImage, overlay: Image.Image) -> None:
    x, y, w, h = fit_box(canvas.size, frame_aspect(frame, overlay), frame.fit_mode)
    LOGGER.debug("Overlaying custom frame %s at %s", frame.id, (x, y, w, h))
    scaled = overlay.resize((w, h), Image.LANCZOS)
    canvas.paste(scaled, (x, y), scaled)


def apply_frame(
    canvas: Image.Image,
    frame_id: FrameType | str,
    custom_frame: Optional[CustomFrameImage] = None,
    *,
    store: Optional[FrameLookup] = None,
    loader: Optional[ImageLoader] = None,
) -> None:
    """Draw the frame selected by ``frame_id`` over the whole ``canvas``.

    ``none`` leaves the canvas untouched. A custom image (given directly or
    found in ``store``) replaces the procedural styles; a custom image that
    cannot be fetched or decoded raises :class:`FrameSourceError`.
    """
    key = frame_id.value if isinstance(frame_id, FrameType) else frame_id
    style, custom = resolve_frame(key, custom_frame, store)
    if custom is not None:
        paste_frame_overlay(canvas, custom, load_frame_image(custom, loader))
    elif style is not None:
        fill_frame_background(canvas, style)
        draw_frame_border(canvas, style)
