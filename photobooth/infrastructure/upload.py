from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

import requests
from PIL import Image

from ..config import SETTINGS, BoothSettings
from ..errors import UploadError
from ..processing.capture import decode_image

LOGGER = logging.getLogger(__name__)

SessionFactory = Callable[[], requests.Session]

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class UploadProgress:
    loaded: int
    total: int
    percentage: int


@dataclass(frozen=True)
class UploadResult:
    id: Optional[str]
    url: Optional[str]


ProgressCallback = Callable[[UploadProgress], None]


def shrink_for_upload(data: bytes, max_width: int, quality: int) -> bytes:
    """Downscale JPEG ``data`` to ``max_width`` pixels wide; narrower images pass through."""
    img = decode_image(data)
    if img.width <= max_width:
        return data
    height = int(round(img.height * max_width / img.width))
    resized = img.convert("RGB").resize((max_width, height), Image.LANCZOS)
    buffer = io.BytesIO()
    resized.save(buffer, "JPEG", quality=quality)
    return buffer.getvalue()


def _chunks(body: bytes, on_progress: Optional[ProgressCallback]) -> Iterator[bytes]:
    total = len(body)
    for start in range(0, total, CHUNK_SIZE):
        chunk = body[start:start + CHUNK_SIZE]
        yield chunk
        if on_progress is not None:
            loaded = start + len(chunk)
            on_progress(UploadProgress(loaded, total, round(loaded * 100 / total)))


class PhotoUploader:
    """Posts exported images to the photo API's upload endpoint."""

    def __init__(
        self,
        api_base_url: str | None = None,
        session_factory: SessionFactory | None = None,
        settings: BoothSettings = SETTINGS,
    ) -> None:
        self._url = f"{(api_base_url or settings.api_base_url).rstrip('/')}/photos/upload"
        self._session = (session_factory or requests.Session)()
        self._settings = settings

    def upload(self, data: bytes, on_progress: Optional[ProgressCallback] = None) -> UploadResult:
        payload = shrink_for_upload(data, self._settings.upload_max_width, self._settings.upload_quality)
        prepared = self._session.prepare_request(
            requests.Request("POST", self._url, files={"photo": ("photo.jpg", payload, "image/jpeg")})
        )
        body = prepared.body
        # Content-Length stays set, so the generator is streamed without chunked encoding.
        prepared.body = _chunks(body, on_progress)

        try:
            response = self._session.send(prepared, timeout=self._settings.proxy_timeout)
        except requests.RequestException as exc:
            raise UploadError(f"Network error during upload: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise UploadError(f"Upload failed with status {response.status_code}")

        try:
            parsed = response.json()
        except ValueError:
            return UploadResult(id=None, url=response.text)
        LOGGER.info("Uploaded photo %s", parsed.get("id"))
        return UploadResult(id=parsed.get("id"), url=parsed.get("url"))
