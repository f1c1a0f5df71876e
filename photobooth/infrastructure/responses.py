from __future__ import annotations

import io

from flask import send_file
from PIL import Image

from ..processing.compositor import encode_jpeg


def send_jpeg(img: Image.Image | bytes, download_name: str | None = None):
    data = img if isinstance(img, bytes) else encode_jpeg(img)
    return send_file(
        io.BytesIO(data),
        mimetype="image/jpeg",
        as_attachment=download_name is not None,
        download_name=download_name,
    )
