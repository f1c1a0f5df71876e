from __future__ import annotations

from dataclasses import asdict

from flask import Flask, abort, jsonify, request

from .config import SETTINGS, configure_logging
from .errors import CanvasContextError, DecodeError, FrameSourceError, ProxyError, UploadError
from .infrastructure.frame_store import CustomFrameStore, FrameResolver, RemoteFramerCatalog
from .infrastructure.network import PROXY, ImageProxy
from .infrastructure.responses import send_jpeg
from .infrastructure.upload import PhotoUploader
from .processing.capture import StillFrameSource
from .processing.compositor import export_layout
from .processing.filters import FilterType
from .processing.frames import FRAME_STYLES, CustomFrameImage, FrameType, frames_for_tag
from .processing.layout import LAYOUT_CONFIGS
from .processing.pipeline import process_capture
from .processing.preview import FILTER_CSS
from .processing.stickers import STICKER_OPTIONS
from .session import BoothSession, SessionRegistry

APP_VERSION = "1.4.0"

_TRUTHY = ("1", "true", "yes", "on")


def _error(message: str, status: int):
    return jsonify(error=message), status


def _mirror_flag() -> bool:
    raw = request.form.get("mirror")
    if raw is None:
        return SETTINGS.mirror_default
    return raw.strip().lower() in _TRUTHY


def _uploaded_frame() -> StillFrameSource:
    upload = request.files.get("frame")
    if upload is None:
        raise DecodeError("Missing 'frame' upload")
    return StillFrameSource(upload.read())


def _processed_upload():
    return process_capture(
        _uploaded_frame(),
        request.form.get("filter", FilterType.NONE.value),
        request.form.get("sticker", "none"),
        mirror=_mirror_flag(),
    )


def _form_int(name: str) -> int | None:
    raw = request.form.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Expected a numeric {name!r}") from None


def _json_slot() -> int:
    payload = request.get_json(silent=True) or {}
    try:
        return int(payload["slot"])
    except (KeyError, TypeError, ValueError):
        raise ValueError("Expected a numeric 'slot'") from None


def create_app(
    registry: SessionRegistry | None = None,
    frames: FrameResolver | None = None,
    proxy: ImageProxy | None = None,
    uploader: PhotoUploader | None = None,
) -> Flask:
    configure_logging()
    app = Flask(__name__)

    sessions = registry if registry is not None else SessionRegistry()
    frame_resolver = frames if frames is not None else FrameResolver(CustomFrameStore(), RemoteFramerCatalog())
    image_proxy = proxy if proxy is not None else PROXY
    photo_uploader = uploader if uploader is not None else PhotoUploader()

    def find_session(session_id: str) -> BoothSession:
        try:
            return sessions.get(session_id)
        except KeyError:
            abort(404, description=f"Unknown session {session_id}")

    @app.errorhandler(DecodeError)
    def decode_failed(exc: DecodeError):
        return _error(str(exc), 400)

    @app.errorhandler(ValueError)
    def bad_value(exc: ValueError):
        return _error(str(exc), 400)

    @app.errorhandler(IndexError)
    def bad_slot(exc: IndexError):
        return _error(str(exc), 400)

    @app.errorhandler(ProxyError)
    def proxy_failed(exc: ProxyError):
        return _error(exc.message, exc.status)

    @app.errorhandler(FrameSourceError)
    def frame_failed(exc: FrameSourceError):
        app.logger.warning("Frame %s unavailable: %s", exc.frame_id, exc)
        return _error(str(exc), 502)

    @app.errorhandler(UploadError)
    def upload_failed(exc: UploadError):
        return _error(str(exc), 502)

    @app.errorhandler(CanvasContextError)
    def canvas_failed(exc: CanvasContextError):
        app.logger.error("Canvas unavailable: %s", exc)
        return _error(str(exc), 500)

    @app.errorhandler(404)
    def not_found(exc):
        return _error(exc.description, 404)

    @app.route("/health")
    def health():
        return jsonify(ok=True, version=APP_VERSION, sessions=len(sessions))

    @app.route("/filters")
    def filters():
        return jsonify(filters=[{"type": kind.value, "css": css} for kind, css in FILTER_CSS.items()])

    @app.route("/stickers")
    def stickers():
        return jsonify(
            stickers=[
                {
                    "type": option.type.value,
                    "label": option.label,
                    "icon": option.icon,
                    "position": option.position,
                    "scale": option.scale,
                }
                for option in STICKER_OPTIONS
            ]
        )

    @app.route("/layouts")
    def layouts():
        return jsonify(
            layouts=[
                {
                    "type": config.type.value,
                    "name": config.name,
                    "description": config.description,
                    "rows": config.rows,
                    "cols": config.cols,
                    "totalSlots": config.total_slots,
                }
                for config in LAYOUT_CONFIGS.values()
            ]
        )

    @app.route("/frames", methods=["GET", "POST"])
    def frames_view():
        if request.method == "POST":
            payload = request.get_json(silent=True)
            if not isinstance(payload, dict):
                return _error("Expected a JSON object", 400)
            frame = frame_resolver.local.save(CustomFrameImage.from_dict(payload))
            return jsonify(frame.to_dict()), 201

        styles = [
            dict(id=kind.value, **asdict(style))
            for kind, style in FRAME_STYLES.items()
            if kind is not FrameType.NONE
        ]
        custom = frames_for_tag(frame_resolver.list(), request.args.get("layout"))
        return jsonify(styles=styles, custom=[frame.to_dict() for frame in custom])

    @app.route("/frames/<frame_id>", methods=["DELETE"])
    def delete_frame(frame_id: str):
        if not frame_resolver.local.delete(frame_id):
            abort(404, description=f"Unknown frame {frame_id}")
        return "", 204

    @app.route("/proxy-image")
    def proxy_image():
        image = image_proxy.fetch(request.args.get("url"))
        response = app.response_class(image.data, mimetype=image.content_type)
        response.headers["Content-Type"] = image.content_type
        response.headers["Cache-Control"] = f"public, max-age={SETTINGS.proxy_max_age}"
        return response

    @app.route("/capture", methods=["POST"])
    def capture():
        return send_jpeg(_processed_upload())

    @app.route("/sessions", methods=["POST"])
    def create_session():
        payload = request.get_json(silent=True) or {}
        session = sessions.create(payload.get("layout", "single"))
        return jsonify(session.to_dict()), 201

    @app.route("/sessions/<session_id>", methods=["GET", "DELETE"])
    def session_view(session_id: str):
        session = find_session(session_id)
        if request.method == "DELETE":
            sessions.delete(session.id)
            return "", 204
        return jsonify(session.to_dict())

    @app.route("/sessions/<session_id>/slots", methods=["POST"])
    def capture_slot(session_id: str):
        session = find_session(session_id)
        slot = _form_int("slot")
        session.capture(_processed_upload(), slot)
        return jsonify(session.to_dict())

    @app.route("/sessions/<session_id>/autocapture", methods=["POST", "DELETE"])
    def autocapture(session_id: str):
        session = find_session(session_id)
        if request.method == "DELETE":
            session.cancel_countdown()
            return jsonify(session.to_dict())
        image = _processed_upload()
        countdown = _form_int("countdown")
        session.start_countdown(lambda: image, countdown)
        return jsonify(session.to_dict()), 202

    @app.route("/sessions/<session_id>/goto", methods=["POST"])
    def goto_slot(session_id: str):
        session = find_session(session_id)
        session.go_to(_json_slot())
        return jsonify(session.to_dict())

    @app.route("/sessions/<session_id>/retake", methods=["POST"])
    def retake_slot(session_id: str):
        session = find_session(session_id)
        session.retake(_json_slot())
        return jsonify(session.to_dict())

    @app.route("/sessions/<session_id>/reset", methods=["POST"])
    def reset_session(session_id: str):
        session = find_session(session_id)
        session.reset()
        return jsonify(session.to_dict())

    def render_session(session: BoothSession, frame: str) -> bytes:
        return export_layout(
            session.state,
            frame,
            store=frame_resolver,
            loader=image_proxy.fetch_bytes,
        )

    @app.route("/sessions/<session_id>/export")
    def export_session(session_id: str):
        session = find_session(session_id)
        frame = request.args.get("frame", FrameType.NONE.value)
        data = render_session(session, frame)
        download = request.args.get("download", "").lower() in _TRUTHY
        name = f"photobooth-{session.state.type.value}-{frame}.jpg" if download else None
        return send_jpeg(data, download_name=name)

    @app.route("/sessions/<session_id>/upload", methods=["POST"])
    def upload_session(session_id: str):
        session = find_session(session_id)
        if not session.state.is_complete:
            return _error("Capture every slot before uploading", 409)
        data = render_session(session, request.args.get("frame", FrameType.NONE.value))
        result = photo_uploader.upload(data)
        return jsonify(id=result.id, url=result.url), 201

    return app


# Expose a module-level Flask application for WSGI servers (``photobooth.app:app``)
# and the conventional ``application`` alias.
app = create_app()
application = app
