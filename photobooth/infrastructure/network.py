from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable
from urllib.parse import urlsplit

import requests

from ..config import SETTINGS, BoothSettings
from ..errors import ProxyError
from .cache import ResponseCache

LOGGER = logging.getLogger(__name__)

SessionFactory = Callable[[], requests.Session]

USER_AGENT = "photobooth-image-proxy/1.0"


@dataclass(frozen=True)
class ProxiedImage:
    content_type: str
    data: bytes


def validate_image_url(url: str | None) -> str:
    """Return ``url`` if it is an absolute http(s) URL, else raise a 400 :class:`ProxyError`."""
    if not url or not isinstance(url, str):
        raise ProxyError(400, "Missing url")
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        raise ProxyError(400, "Invalid url") from None
    if parts.scheme not in ("http", "https"):
        raise ProxyError(400, "Only http(s) allowed")
    if not parts.netloc:
        raise ProxyError(400, "Invalid url")
    return url.strip()


class ImageProxy:
    """Fetches remote images server-side so clients never draw cross-origin pixels."""

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        cache: ResponseCache | None = None,
        settings: BoothSettings = SETTINGS,
    ) -> None:
        self._session_factory = session_factory or requests.Session
        self._session = self._create_session()
        self._cache = cache if cache is not None else ResponseCache(settings.proxy_cache_ttl)
        self._settings = settings

    def _create_session(self) -> requests.Session:
        session = self._session_factory()
        session.headers.update({"User-Agent": USER_AGENT})
        return session

    def fetch(self, url: str | None) -> ProxiedImage:
        target = validate_image_url(url)
        cached = self._cache.get(target)
        if cached is not None:
            return ProxiedImage(*cached)

        try:
            response = self._session.get(target, timeout=self._settings.proxy_timeout)
        except requests.RequestException as exc:
            LOGGER.error("Image proxy request to %s failed: %s", target, exc)
            raise ProxyError(502, "Proxy failed") from exc

        if not response.ok:
            LOGGER.error("Image proxy upstream %s answered %s", target, response.status_code)
            raise ProxyError(502, "Upstream error")

        content_type = response.headers.get("Content-Type") or "image/png"
        if not content_type.startswith("image/"):
            raise ProxyError(400, "Not an image")

        image = ProxiedImage(content_type, response.content)
        self._cache.put(target, image.content_type, image.data)
        return image

    def fetch_bytes(self, url: str) -> bytes:
        return self.fetch(url).data


PROXY = ImageProxy()
