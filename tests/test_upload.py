import io
import json

import pytest
import requests
from PIL import Image

from conftest import jpeg_bytes
from photobooth.errors import UploadError
from photobooth.infrastructure.upload import PhotoUploader, shrink_for_upload


class RecordingSession(requests.Session):
    """Consumes the streamed body instead of sending it over the wire."""

    def __init__(self, status_code=201, body=b'{"id": "p1", "url": "https://cdn/p1.jpg"}', error=None):
        super().__init__()
        self.status_code = status_code
        self.body = body
        self.error = error
        self.sent = None

    def send(self, request, **kwargs):
        if self.error is not None:
            raise self.error
        self.sent = request
        self.streamed = b"".join(request.body)
        response = requests.Response()
        response.status_code = self.status_code
        response._content = self.body
        response.encoding = "utf-8"
        response.request = request
        return response


def uploader_for(session):
    return PhotoUploader("http://api.example/api/", session_factory=lambda: session)


def test_upload_streams_multipart_and_reports_progress():
    session = RecordingSession()
    progress = []
    photo = jpeg_bytes(Image.new("RGB", (400, 300), "green"))

    result = uploader_for(session).upload(photo, progress.append)

    assert result.id == "p1"
    assert result.url == "https://cdn/p1.jpg"
    assert session.sent.url == "http://api.example/api/photos/upload"
    assert int(session.sent.headers["Content-Length"]) == len(session.streamed)
    assert b'name="photo"; filename="photo.jpg"' in session.streamed
    assert progress[-1].percentage == 100
    assert progress[-1].loaded == progress[-1].total == len(session.streamed)


def test_large_upload_reports_intermediate_progress():
    session = RecordingSession()
    progress = []
    noisy = Image.frombytes("RGB", (1000, 1000), bytes(range(256)) * 11718 + bytes(192))

    uploader_for(session).upload(jpeg_bytes(noisy), progress.append)

    percentages = [p.percentage for p in progress]
    assert percentages == sorted(percentages)
    assert len(percentages) > 1
    assert percentages[-1] == 100


def test_error_status_raises():
    session = RecordingSession(status_code=500, body=b"boom")

    with pytest.raises(UploadError, match="500"):
        uploader_for(session).upload(jpeg_bytes(Image.new("RGB", (10, 10))))


def test_network_error_raises():
    session = RecordingSession(error=requests.ConnectionError("refused"))

    with pytest.raises(UploadError, match="Network error"):
        uploader_for(session).upload(jpeg_bytes(Image.new("RGB", (10, 10))))


def test_plain_text_response_is_returned_as_url():
    session = RecordingSession(status_code=200, body=b"https://cdn/plain.jpg")

    result = uploader_for(session).upload(jpeg_bytes(Image.new("RGB", (10, 10))))

    assert result.id is None
    assert result.url == "https://cdn/plain.jpg"


def test_shrink_caps_width():
    wide = jpeg_bytes(Image.new("RGB", (2000, 1000), "blue"))

    shrunk = Image.open(io.BytesIO(shrink_for_upload(wide, 1080, 85)))

    assert shrunk.size == (1080, 540)


def test_shrink_leaves_narrow_images_alone():
    narrow = jpeg_bytes(Image.new("RGB", (800, 600), "blue"))

    assert shrink_for_upload(narrow, 1080, 85) == narrow


def test_upload_sends_shrunk_jpeg():
    session = RecordingSession(body=json.dumps({"id": "p2", "url": "u"}).encode())

    uploader_for(session).upload(jpeg_bytes(Image.new("RGB", (2160, 1620), "red")))

    start = session.streamed.index(b"\xff\xd8")
    end = session.streamed.rindex(b"\xff\xd9") + 2
    assert Image.open(io.BytesIO(session.streamed[start:end])).size == (1080, 810)
