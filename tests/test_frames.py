import base64

import pytest
from PIL import Image

from conftest import png_bytes
from photobooth.errors import FrameSourceError, ProxyError
from photobooth.infrastructure.frame_store import CustomFrameStore
from photobooth.processing.frames import (
    FRAME_STYLES,
    CustomFrameImage,
    FitMode,
    FrameLayoutTag,
    FrameType,
    apply_frame,
    fit_box,
    frames_for_tag,
    resolve_frame,
)

RED = (255, 0, 0, 255)


def data_url(img: Image.Image) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes(img)).decode("ascii")


def ring(size=(50, 50), border=5) -> Image.Image:
    """Opaque red ring with a transparent centre."""
    img = Image.new("RGBA", size, RED)
    img.paste((0, 0, 0, 0), (border, border, size[0] - border, size[1] - border))
    return img


def test_none_frame_leaves_canvas_untouched():
    canvas = Image.new("RGB", (100, 80), "white")
    before = canvas.tobytes()

    apply_frame(canvas, "none")

    assert canvas.tobytes() == before


def test_classic_frame_border_and_background():
    canvas = Image.new("RGB", (200, 160), "white")

    apply_frame(canvas, FrameType.CLASSIC)

    assert canvas.getpixel((0, 0)) == (217, 119, 6)
    assert canvas.getpixel((199, 159)) == (217, 119, 6)
    assert canvas.getpixel((19, 80)) == (217, 119, 6)
    assert canvas.getpixel((20, 80)) == (254, 243, 199)
    assert canvas.getpixel((100, 80)) == (254, 243, 199)


def test_playful_frame_is_dashed():
    canvas = Image.new("RGB", (200, 160), "white")

    apply_frame(canvas, "playful")

    assert canvas.getpixel((5, 5)) == (244, 114, 182)
    # First gap on the top edge runs from 20 to 30.
    assert canvas.getpixel((25, 5)) == (252, 231, 243)
    assert canvas.getpixel((35, 5)) == (244, 114, 182)


def test_frame_styles_have_expected_widths():
    assert FRAME_STYLES[FrameType.NONE].border_width == 0
    assert FRAME_STYLES[FrameType.VINTAGE].border_width == 25
    assert FRAME_STYLES[FrameType.PLAYFUL].border_style == "dashed"


def test_custom_frame_fill_stretches_over_canvas():
    frame = CustomFrameImage("gold", "Gold", data_url(ring()), fit_mode=FitMode.FILL)
    canvas = Image.new("RGB", (100, 100), "white")

    apply_frame(canvas, "gold", frame)

    assert canvas.getpixel((1, 1)) == (255, 0, 0)
    assert canvas.getpixel((50, 50)) == (255, 255, 255)


def test_custom_frame_contain_letterboxes():
    wide = Image.new("RGBA", (100, 50), RED)
    frame = CustomFrameImage("wide", "Wide", data_url(wide), fit_mode=FitMode.CONTAIN)
    canvas = Image.new("RGB", (100, 100), "white")

    apply_frame(canvas, "wide", frame)

    assert canvas.getpixel((50, 10)) == (255, 255, 255)
    assert canvas.getpixel((50, 50)) == (255, 0, 0)


def test_custom_frame_aspect_ratio_overrides_image():
    assert fit_box((100, 100), 2.0, FitMode.CONTAIN) == (0, 25, 100, 50)
    assert fit_box((100, 100), 0.5, FitMode.CONTAIN) == (25, 0, 50, 100)


def test_fit_box_cover_overflows_canvas():
    assert fit_box((100, 100), 2.0, FitMode.COVER) == (-50, 0, 200, 100)
    assert fit_box((100, 100), 2.0, FitMode.FILL) == (0, 0, 100, 100)


def test_frame_found_in_store():
    store = CustomFrameStore()
    store.save(CustomFrameImage("mine", "Mine", data_url(ring()), fit_mode=FitMode.FILL))
    canvas = Image.new("RGB", (60, 60), "white")

    apply_frame(canvas, "mine", store=store)

    assert canvas.getpixel((0, 0)) == (255, 0, 0)


def test_custom_frame_wins_over_procedural_id():
    store = CustomFrameStore()
    custom = CustomFrameImage("classic", "Overridden", data_url(ring()))
    store.save(custom)

    assert resolve_frame("classic", store=store) == (None, custom)


def test_unknown_frame_is_rejected():
    with pytest.raises(ValueError, match="Unknown frame"):
        resolve_frame("neon", store=CustomFrameStore())


def test_undecodable_frame_raises_frame_source_error():
    frame = CustomFrameImage("broken", "Broken", "data:image/png;base64,bm90IGFuIGltYWdl")

    with pytest.raises(FrameSourceError) as excinfo:
        apply_frame(Image.new("RGB", (10, 10)), "broken", frame)

    assert excinfo.value.frame_id == "broken"
    assert "try another frame" in str(excinfo.value)


def test_remote_frame_without_loader_is_rejected():
    frame = CustomFrameImage("remote", "Remote", "https://frames.example/a.png")

    with pytest.raises(FrameSourceError):
        apply_frame(Image.new("RGB", (10, 10)), "remote", frame)


def test_remote_frame_uses_loader():
    frame = CustomFrameImage("remote", "Remote", "https://frames.example/a.png", fit_mode=FitMode.FILL)
    requested = []

    def loader(url):
        requested.append(url)
        return png_bytes(ring((20, 20), 6))

    canvas = Image.new("RGB", (40, 40), "white")
    apply_frame(canvas, "remote", frame, loader=loader)

    assert requested == ["https://frames.example/a.png"]
    assert canvas.getpixel((0, 0)) == (255, 0, 0)


def test_proxy_failure_becomes_frame_source_error():
    frame = CustomFrameImage("remote", "Remote", "https://frames.example/a.png")

    def loader(url):
        raise ProxyError(502, "Upstream error")

    with pytest.raises(FrameSourceError):
        apply_frame(Image.new("RGB", (10, 10)), "remote", frame, loader=loader)


def test_from_dict_reads_camel_case():
    frame = CustomFrameImage.from_dict(
        {
            "id": "f1",
            "name": "Strip",
            "imageUrl": "https://frames.example/strip.png",
            "aspectRatio": "0.25",
            "fitMode": "cover",
            "layoutType": "1x4",
        }
    )

    assert frame.image_data == "https://frames.example/strip.png"
    assert frame.aspect_ratio == 0.25
    assert frame.fit_mode is FitMode.COVER
    assert frame.layout_tag is FrameLayoutTag.STRIP_1X4
    assert frame.to_dict()["layoutType"] == "1x4"


def test_from_dict_requires_id_and_image():
    with pytest.raises(ValueError):
        CustomFrameImage.from_dict({"name": "No id", "imageData": "abc"})
    with pytest.raises(ValueError):
        CustomFrameImage.from_dict({"id": "x"})


def test_frames_for_tag_keeps_untagged():
    strip = CustomFrameImage("a", "A", "x", layout_tag=FrameLayoutTag.STRIP_1X4)
    grid = CustomFrameImage("b", "B", "x", layout_tag=FrameLayoutTag.GRID_2X2)
    loose = CustomFrameImage("c", "C", "x")

    assert frames_for_tag([strip, grid, loose], "1x4") == [strip, loose]
    assert frames_for_tag([strip, grid, loose], None) == [strip, grid, loose]
