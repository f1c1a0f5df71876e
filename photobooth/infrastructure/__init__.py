"""Infrastructure helpers for networking, caching and frame storage."""

from .cache import ResponseCache
from .frame_store import CustomFrameStore, FrameResolver, RemoteFramerCatalog
from .network import PROXY, ImageProxy, ProxiedImage, validate_image_url
from .responses import send_jpeg
from .upload import PhotoUploader, UploadProgress, UploadResult

__all__ = [
    "ResponseCache",
    "CustomFrameStore",
    "FrameResolver",
    "RemoteFramerCatalog",
    "PROXY",
    "ImageProxy",
    "ProxiedImage",
    "validate_image_url",
    "send_jpeg",
    "PhotoUploader",
    "UploadProgress",
    "UploadResult",
]
