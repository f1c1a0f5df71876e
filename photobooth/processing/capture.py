from __future__ import annotations

import base64
import binascii
import io
from typing import Protocol, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import DecodeError


class FrameSource(Protocol):
    """Anything that can hand over the pixels of its current frame."""

    @property
    def size(self) -> Tuple[int, int]:
        ...

    def read(self) -> Image.Image | None:
        ...


def decode_image(data: bytes) -> Image.Image:
    if not data:
        raise DecodeError("Empty image payload")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise DecodeError(f"Cannot decode image: {exc}") from exc
    return img


def decode_data_url(value: str) -> Image.Image:
    """Decode a ``data:image/...;base64,`` URL or a bare base64 payload."""
    payload = value.split(",", 1)[1] if value.startswith("data:") else value
    try:
        raw = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"Invalid base64 image data: {exc}") from exc
    return decode_image(raw)


class StillFrameSource:
    """A frame source backed by one already-encoded still (e.g. an uploaded video frame)."""

    def __init__(self, data: bytes) -> None:
        self._image = decode_image(data)

    @property
    def size(self) -> Tuple[int, int]:
        return self._image.size

    def read(self) -> Image.Image:
        return self._image


def capture_frame(source: FrameSource, mirror: bool = False) -> Image.Image:
    frame = source.read()
    if frame is None:
        raise DecodeError("Frame source has no frame available")

    width, height = source.size
    if frame.size != (width, height):
        frame = frame.resize((width, height))

    # convert() always returns a new image; later stages mutate it in place.
    captured = frame.convert("RGBA")
    if mirror:
        captured = ImageOps.mirror(captured)
    return captured
