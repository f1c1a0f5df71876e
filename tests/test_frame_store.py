import pytest
import requests

from photobooth.errors import FrameSourceError
from photobooth.infrastructure.frame_store import (
    CustomFrameStore,
    FrameResolver,
    RemoteFramerCatalog,
    api_root,
)
from photobooth.processing.frames import CustomFrameImage


class JsonResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self.payload

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error")


class RoutedSession:
    def __init__(self, routes):
        self.headers = {}
        self.routes = routes
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        route = self.routes.get(url)
        if isinstance(route, Exception):
            raise route
        return route or JsonResponse({}, 404)


def frame(frame_id, created_at="2024-01-01T00:00:00+00:00"):
    return CustomFrameImage(frame_id, frame_id.title(), "data:image/png;base64,AAAA", created_at=created_at)


def remote_catalog(routes):
    session = RoutedSession(routes)
    catalog = RemoteFramerCatalog("http://api.example/api", session_factory=lambda: session, timeout=1)
    return catalog, session


@pytest.mark.parametrize(
    "base, root",
    [
        ("http://localhost:3001/api", "http://localhost:3001"),
        ("http://localhost:3001/api/", "http://localhost:3001"),
        ("https://photos.example", "https://photos.example"),
    ],
)
def test_api_root_strips_api_suffix(base, root):
    assert api_root(base) == root


def test_local_store_crud():
    store = CustomFrameStore()
    store.save(frame("later", "2024-02-01T00:00:00+00:00"))
    store.save(frame("earlier", "2024-01-01T00:00:00+00:00"))

    assert [f.id for f in store.list()] == ["earlier", "later"]
    assert store.resolve("later").name == "Later"
    assert store.delete("later")
    assert not store.delete("later")
    assert store.get("later") is None


def test_remote_get_parses_framer():
    catalog, session = remote_catalog(
        {"http://api.example/api/framers/f1": JsonResponse({"id": "f1", "name": "Gold", "imageUrl": "https://cdn/f1.png"})}
    )

    found = catalog.get("f1")

    assert found.name == "Gold"
    assert found.image_data == "https://cdn/f1.png"
    assert session.headers["Accept"] == "application/json"


def test_remote_get_returns_none_on_failure():
    catalog, _ = remote_catalog({"http://api.example/api/framers/boom": requests.ConnectionError("down")})

    assert catalog.get("boom") is None
    assert catalog.get("missing") is None


def test_remote_list_skips_unusable_entries():
    catalog, _ = remote_catalog(
        {
            "http://api.example/api/framers": JsonResponse(
                {"framers": [{"id": "a", "imageData": "AAAA"}, {"name": "no id"}]}
            )
        }
    )

    assert [f.id for f in catalog.list()] == ["a"]


def test_remote_list_failure_raises():
    catalog, _ = remote_catalog({"http://api.example/api/framers": JsonResponse({}, 500)})

    with pytest.raises(FrameSourceError):
        catalog.list()


def test_resolver_prefers_local_frames():
    catalog, session = remote_catalog(
        {"http://api.example/api/framers/shared": JsonResponse({"id": "shared", "imageData": "BBBB"})}
    )
    local = CustomFrameStore()
    local.save(frame("shared"))
    resolver = FrameResolver(local, catalog)

    assert resolver.resolve("shared").image_data == "data:image/png;base64,AAAA"
    assert session.requested == []


def test_resolver_falls_back_to_remote():
    catalog, _ = remote_catalog(
        {"http://api.example/api/framers/remote": JsonResponse({"id": "remote", "imageData": "BBBB"})}
    )
    resolver = FrameResolver(CustomFrameStore(), catalog)

    assert resolver.resolve("remote").image_data == "BBBB"
    assert resolver.resolve("nowhere") is None


def test_resolver_list_merges_and_survives_remote_outage():
    local = CustomFrameStore()
    local.save(frame("a"))
    merged, _ = remote_catalog(
        {"http://api.example/api/framers": JsonResponse({"framers": [{"id": "a", "imageData": "X"}, {"id": "b", "imageData": "Y"}]})}
    )
    down, _ = remote_catalog({"http://api.example/api/framers": requests.Timeout("slow")})

    assert [f.id for f in FrameResolver(local, merged).list()] == ["a", "b"]
    assert [f.id for f in FrameResolver(local, down).list()] == ["a"]
