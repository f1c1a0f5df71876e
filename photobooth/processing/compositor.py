from __future__ import annotations

import io
import logging
from typing import Optional, Tuple

from PIL import Image, ImageDraw

from ..config import SETTINGS, BoothSettings
from ..errors import CanvasContextError
from .frames import (
    FrameLookup,
    ImageLoader,
    draw_frame_border,
    fill_frame_background,
    frame_aspect,
    load_frame_image,
    paste_frame_overlay,
    resolve_frame,
)
from .layout import LayoutConfig, LayoutState

LOGGER = logging.getLogger(__name__)


def encode_jpeg(img: Image.Image, quality: int | None = None) -> bytes:
    buffer = io.BytesIO()
    img.convert("RGB").save(buffer, "JPEG", quality=quality or SETTINGS.jpeg_quality)
    return buffer.getvalue()


def _new_canvas(width: int, height: int) -> Image.Image:
    try:
        return Image.new("RGB", (width, height), "white")
    except (MemoryError, ValueError) as exc:
        raise CanvasContextError(f"Cannot allocate a {width}x{height} canvas: {exc}") from exc


def _grid_geometry(
    config: LayoutConfig,
    settings: BoothSettings,
    framed: bool,
    custom_aspect: Optional[float] = None,
) -> Tuple[int, int, int]:
    """Return ``(grid_width, grid_height, padding)`` for one layout.

    Procedural frames keep square cells and add padding on every side. A custom
    frame image gets no padding; the canvas takes the frame's aspect ratio so the
    overlay covers it exactly, and the cells share that area evenly.
    """
    width = settings.layout_base_width
    if custom_aspect:
        return width, int(round(width / custom_aspect)), 0
    cell = width / config.cols
    padding = settings.frame_padding if framed else 0
    return width, int(round(cell * config.rows)), padding


def render_layout(
    state: LayoutState,
    frame: str = "none",
    *,
    store: Optional[FrameLookup] = None,
    loader: Optional[ImageLoader] = None,
    settings: BoothSettings = SETTINGS,
) -> Image.Image:
    """Compose every captured slot of ``state`` into one framed image.

    Missing slots are left white; completeness is the caller's business.
    """
    config = state.config
    style, custom = resolve_frame(frame, None, store)
    overlay = load_frame_image(custom, loader) if custom is not None else None
    custom_aspect = frame_aspect(custom, overlay) if custom is not None else None

    grid_width, grid_height, padding = _grid_geometry(config, settings, style is not None, custom_aspect)
    cell_width = grid_width / config.cols
    cell_height = grid_height / config.rows
    canvas = _new_canvas(grid_width + padding * 2, grid_height + padding * 2)

    if style is not None:
        fill_frame_background(canvas, style)

    draw = ImageDraw.Draw(canvas)
    # White under the grid so the frame background never shows between photos.
    draw.rectangle(
        (padding, padding, padding + grid_width - 1, padding + grid_height - 1),
        fill="#ffffff",
    )

    boxes = {}
    for slot in state.slots:
        x0 = padding + int(round(slot.col * cell_width))
        y0 = padding + int(round(slot.row * cell_height))
        x1 = padding + int(round((slot.col + 1) * cell_width))
        y1 = padding + int(round((slot.row + 1) * cell_height))
        boxes[slot.id] = (x0, y0, x1, y1)
        if slot.image is None:
            continue
        photo = slot.image.convert("RGB").resize((x1 - x0, y1 - y0), Image.LANCZOS)
        canvas.paste(photo, (x0, y0))

    for x0, y0, x1, y1 in boxes.values():
        draw.rectangle(
            (x0, y0, x1 - 1, y1 - 1),
            outline=settings.grid_line_color,
            width=settings.grid_line_width,
        )

    if style is not None:
        draw_frame_border(canvas, style)
    elif custom is not None:
        paste_frame_overlay(canvas, custom, overlay)

    LOGGER.debug("Rendered %s layout at %sx%s with frame %r", config.type.value, canvas.width, canvas.height, frame)
    return canvas


def export_layout(
    state: LayoutState,
    frame: str = "none",
    *,
    store: Optional[FrameLookup] = None,
    loader: Optional[ImageLoader] = None,
    settings: BoothSettings = SETTINGS,
) -> bytes:
    canvas = render_layout(state, frame, store=store, loader=loader, settings=settings)
    return encode_jpeg(canvas, settings.jpeg_quality)
