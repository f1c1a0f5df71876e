import logging
import os
from dataclasses import dataclass


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_ratio(name: str, default: str) -> float:
    raw = os.getenv(name, default).strip()
    if ":" in raw:
        width, height = raw.split(":", 1)
        return float(width) / float(height)
    return float(raw)


@dataclass(frozen=True)
class BoothSettings:
    port: int
    log_level: str
    target_aspect: float
    jpeg_quality: int
    layout_base_width: int
    frame_padding: int
    grid_line_width: int
    grid_line_color: str
    proxy_timeout: float
    proxy_cache_ttl: float
    proxy_max_age: int
    api_base_url: str
    upload_max_width: int
    upload_quality: int
    autocapture_countdown: int
    mirror_default: bool
    session_idle_ttl: float

    @classmethod
    def from_env(cls) -> "BoothSettings":
        return cls(
            port=int(os.getenv("PORT", "5500")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            target_aspect=_env_ratio("TARGET_ASPECT", "4:3"),
            jpeg_quality=int(os.getenv("JPEG_QUALITY", "90")),
            layout_base_width=int(os.getenv("LAYOUT_BASE_WIDTH", "720")),
            frame_padding=int(os.getenv("FRAME_PADDING", "40")),
            grid_line_width=int(os.getenv("GRID_LINE_WIDTH", "2")),
            grid_line_color=os.getenv("GRID_LINE_COLOR", "#e5e7eb"),
            proxy_timeout=float(os.getenv("PROXY_TIMEOUT", "10.0")),
            proxy_cache_ttl=float(os.getenv("PROXY_CACHE_TTL", "60")),
            proxy_max_age=int(os.getenv("PROXY_MAX_AGE", "3600")),
            api_base_url=os.getenv("API_BASE_URL", "http://localhost:3001/api"),
            upload_max_width=int(os.getenv("UPLOAD_MAX_WIDTH", "1080")),
            upload_quality=int(os.getenv("UPLOAD_QUALITY", "85")),
            autocapture_countdown=int(os.getenv("AUTOCAPTURE_COUNTDOWN", "3")),
            mirror_default=_env_flag("MIRROR_DEFAULT", "true"),
            session_idle_ttl=float(os.getenv("SESSION_IDLE_TTL", "1800")),
        )


SETTINGS = BoothSettings.from_env()


def configure_logging() -> logging.Logger:
    logging.basicConfig(level=SETTINGS.log_level)
    return logging.getLogger("photobooth")
