from __future__ import annotations

import logging
import re
import threading
from typing import Callable, Dict, List, Optional

import requests

from ..config import SETTINGS
from ..errors import FrameSourceError
from ..processing.frames import CustomFrameImage

LOGGER = logging.getLogger(__name__)

SessionFactory = Callable[[], requests.Session]


class CustomFrameStore:
    """Custom frames registered on this server, keyed by id."""

    def __init__(self) -> None:
        self._frames: Dict[str, CustomFrameImage] = {}
        self._lock = threading.Lock()

    def save(self, frame: CustomFrameImage) -> CustomFrameImage:
        with self._lock:
            self._frames[frame.id] = frame
        return frame

    def delete(self, frame_id: str) -> bool:
        with self._lock:
            return self._frames.pop(frame_id, None) is not None

    def get(self, frame_id: str) -> Optional[CustomFrameImage]:
        with self._lock:
            return self._frames.get(frame_id)

    def list(self) -> List[CustomFrameImage]:
        with self._lock:
            return sorted(self._frames.values(), key=lambda frame: frame.created_at)

    resolve = get


def api_root(base_url: str) -> str:
    return re.sub(r"/api/?$", "", base_url.rstrip("/"))


class RemoteFramerCatalog:
    """Read-only client for frames published through the photo API."""

    def __init__(
        self,
        base_url: str | None = None,
        session_factory: SessionFactory | None = None,
        timeout: float | None = None,
    ) -> None:
        self._root = api_root(base_url or SETTINGS.api_base_url)
        self._session = (session_factory or requests.Session)()
        self._session.headers.update({"Accept": "application/json"})
        self._timeout = SETTINGS.proxy_timeout if timeout is None else timeout

    def get(self, frame_id: str) -> Optional[CustomFrameImage]:
        try:
            response = self._session.get(f"{self._root}/api/framers/{frame_id}", timeout=self._timeout)
        except requests.RequestException as exc:
            LOGGER.warning("Frame lookup for %s failed: %s", frame_id, exc)
            return None
        if not response.ok:
            return None
        try:
            return CustomFrameImage.from_dict(response.json())
        except ValueError as exc:
            LOGGER.warning("Frame %s has an unusable payload: %s", frame_id, exc)
            return None

    def list(self) -> List[CustomFrameImage]:
        try:
            response = self._session.get(f"{self._root}/api/framers", timeout=self._timeout)
            response.raise_for_status()
            items = response.json().get("framers") or []
        except (requests.RequestException, ValueError) as exc:
            raise FrameSourceError("Could not load the frame list. Please try again.") from exc

        frames = []
        for item in items:
            try:
                frames.append(CustomFrameImage.from_dict(item))
            except ValueError as exc:
                LOGGER.warning("Skipping frame with unusable payload: %s", exc)
        return frames


class FrameResolver:
    """Looks frames up locally first, then in the remote catalog."""

    def __init__(self, local: CustomFrameStore, remote: RemoteFramerCatalog | None = None) -> None:
        self.local = local
        self.remote = remote

    def resolve(self, frame_id: str) -> Optional[CustomFrameImage]:
        frame = self.local.get(frame_id)
        if frame is None and self.remote is not None:
            frame = self.remote.get(frame_id)
        return frame

    def list(self) -> List[CustomFrameImage]:
        frames = self.local.list()
        if self.remote is None:
            return frames
        known = {frame.id for frame in frames}
        try:
            remote_frames = self.remote.list()
        except FrameSourceError as exc:
            LOGGER.warning("Remote frame catalog unavailable: %s", exc)
            return frames
        return frames + [frame for frame in remote_frames if frame.id not in known]
