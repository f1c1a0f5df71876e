"""Exception taxonomy for the capture and compositing pipeline."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for every failure raised by the photobooth pipeline."""


class DecodeError(PipelineError):
    """A captured frame or source image could not be decoded."""


class CanvasContextError(PipelineError):
    """A drawing surface could not be allocated for an operation."""


class FrameSourceError(PipelineError):
    """A custom frame image is unreachable or cannot be decoded.

    The message is meant to be shown to the person choosing the frame.
    """

    def __init__(self, message: str, frame_id: str | None = None) -> None:
        super().__init__(message)
        self.frame_id = frame_id


class ProxyError(PipelineError):
    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


class UploadError(PipelineError):
    pass
