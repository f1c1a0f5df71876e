import pytest
from PIL import Image

from conftest import gradient
from photobooth.processing.filters import (
    FILTERS,
    FilterType,
    apply_filter,
    contrast_factor,
    is_skin_tone,
    whiten,
)

SKIN = (200, 150, 100)
BLUE = (20, 40, 200)


def pixels(img):
    data = img.tobytes()
    step = len(img.getbands())
    return [tuple(data[i : i + step]) for i in range(0, len(data), step)]


def test_every_filter_type_is_dispatched():
    assert set(FILTERS) == set(FilterType)
    assert len(FilterType) == 15


def test_none_leaves_pixels_byte_identical():
    img = gradient()
    before = img.tobytes()

    apply_filter(img, "none")

    assert img.tobytes() == before


@pytest.mark.parametrize("kind", list(FilterType))
def test_filters_keep_alpha_mode_and_size(kind):
    img = gradient()

    apply_filter(img, kind)

    assert img.mode == "RGBA"
    assert img.size == (24, 16)
    assert set(img.getchannel("A").tobytes()) == {200}


@pytest.mark.parametrize("kind", list(FilterType))
def test_filters_accept_rgb_images(kind):
    img = gradient().convert("RGB")

    apply_filter(img, kind)

    assert img.mode == "RGB"


@pytest.mark.parametrize("kind", list(FilterType))
def test_filters_skip_empty_images(kind):
    img = Image.new("RGBA", (0, 0))

    apply_filter(img, kind)

    assert img.size == (0, 0)


def test_grayscale_makes_channels_equal():
    img = gradient()

    apply_filter(img, FilterType.GRAYSCALE)

    assert all(r == g == b for r, g, b, _ in pixels(img))


def test_grayscale_uses_luma_weights():
    img = Image.new("RGB", (1, 1), (255, 0, 0))

    apply_filter(img, "grayscale")

    assert img.getpixel((0, 0)) == (76, 76, 76)


def test_sepia_shifts_warm():
    img = gradient()

    apply_filter(img, "sepia")

    assert all(b <= r for r, _, b, _ in pixels(img))


def test_brightness_scales_and_clamps():
    img = Image.new("RGB", (2, 1))
    img.putpixel((0, 0), (100, 100, 100))
    img.putpixel((1, 0), (250, 10, 0))

    apply_filter(img, "brightness")

    assert img.getpixel((0, 0)) == (120, 120, 120)
    assert img.getpixel((1, 0)) == (255, 12, 0)


def test_contrast_pivots_around_mid_gray():
    factor = contrast_factor(0.3)
    img = Image.new("RGB", (3, 1))
    img.putpixel((0, 0), (128, 128, 128))
    img.putpixel((1, 0), (100, 100, 100))
    img.putpixel((2, 0), (200, 200, 200))

    apply_filter(img, "contrast")

    assert factor > 1
    assert img.getpixel((0, 0)) == (128, 128, 128)
    assert img.getpixel((1, 0))[0] == int((100 - 128) * factor + 128 + 0.5)
    assert img.getpixel((2, 0)) == (255, 255, 255)


def test_contrast_factor_for_default_level():
    assert contrast_factor(0.3) == pytest.approx(1.845, abs=1e-3)

    img = Image.new("RGB", (1, 1), (100, 100, 100))
    apply_filter(img, "contrast")

    assert img.getpixel((0, 0)) == (76, 76, 76)


def test_vintage_mixes_neighbouring_channels():
    img = Image.new("RGB", (1, 1), (100, 50, 200))

    apply_filter(img, "vintage")

    assert img.getpixel((0, 0)) == (95, 65, 190)


def test_blur_averages_interior_and_leaves_border():
    img = Image.new("RGB", (5, 5), (0, 0, 0))
    img.putpixel((2, 2), (255, 255, 255))

    apply_filter(img, "blur")

    assert img.getpixel((2, 2)) == (10, 10, 10)
    assert img.getpixel((0, 0)) == (0, 0, 0)
    assert img.getpixel((1, 2)) == (0, 0, 0)


@pytest.mark.parametrize(
    "rgb, expected",
    [
        ((200, 150, 100), True),
        ((96, 41, 21), True),
        ((95, 60, 30), False),
        ((200, 190, 185), False),
        ((150, 100, 100), False),
        ((100, 150, 50), False),
        (BLUE, False),
    ],
)
def test_skin_classifier_thresholds(rgb, expected):
    assert is_skin_tone(*rgb) is expected


def test_skin_classifier_ignores_position():
    img = Image.new("RGB", (4, 4), SKIN)
    img.putpixel((0, 0), BLUE)

    apply_filter(img, "skin-whiten")

    assert len({img.getpixel((x, y)) for x in range(4) for y in range(4) if (x, y) != (0, 0)}) == 1


def test_whiten_brightens_then_desaturates():
    assert whiten(*SKIN, 1.15, 0.85) == (223, 174, 125)


def test_skin_whiten_only_touches_skin():
    img = Image.new("RGB", (2, 1))
    img.putpixel((0, 0), SKIN)
    img.putpixel((1, 0), BLUE)

    apply_filter(img, "skin-whiten")

    assert img.getpixel((0, 0)) == (223, 174, 125)
    assert img.getpixel((1, 0)) == BLUE


def test_skin_smooth_blurs_skin_from_original_pixels():
    img = Image.new("RGB", (10, 4), SKIN)
    img.paste(BLUE, (5, 0, 10, 4))

    apply_filter(img, "skin-smooth")

    assert img.getpixel((0, 0)) == SKIN
    assert img.getpixel((9, 0)) == BLUE
    edge = img.getpixel((4, 1))
    assert edge != SKIN
    assert edge[2] > SKIN[2]


def test_beauty_on_uniform_skin_matches_whitening():
    img = Image.new("RGB", (6, 6), SKIN)

    apply_filter(img, "beauty")

    assert img.getpixel((3, 3)) == whiten(*SKIN, 1.12, 0.9)


def test_beauty_brightens_non_skin():
    img = Image.new("RGB", (3, 3), (100, 100, 200))

    apply_filter(img, "beauty")

    assert img.getpixel((1, 1)) == (105, 105, 210)


def test_portrait_keeps_mid_gray():
    img = Image.new("RGB", (2, 2), (128, 128, 128))

    apply_filter(img, "portrait")

    assert img.getpixel((0, 0)) == (128, 128, 128)


def test_warm_and_cool_shift_opposite_ways():
    warm = Image.new("RGB", (1, 1), (100, 100, 100))
    cool = Image.new("RGB", (1, 1), (100, 100, 100))

    apply_filter(warm, "warm")
    apply_filter(cool, "cool")

    assert warm.getpixel((0, 0)) == (110, 105, 90)
    assert cool.getpixel((0, 0)) == (90, 98, 112)


def test_cinematic_darkens_shadows_more_than_highlights():
    img = Image.new("RGB", (2, 1))
    img.putpixel((0, 0), (60, 60, 60))
    img.putpixel((1, 0), (200, 200, 200))

    apply_filter(img, "cinematic")

    assert img.getpixel((0, 0)) == (30, 30, 30)
    assert img.getpixel((1, 0)) == (229, 229, 229)


def test_vibrant_spreads_channels_apart():
    img = Image.new("RGB", (1, 1), (150, 120, 100))

    apply_filter(img, "vibrant")

    r, g, b = img.getpixel((0, 0))
    assert r - b > 50


def test_unknown_filter_is_rejected():
    with pytest.raises(ValueError):
        apply_filter(Image.new("RGB", (2, 2)), "oil-paint")


def test_non_rgb_modes_are_rejected():
    with pytest.raises(ValueError):
        apply_filter(Image.new("L", (2, 2)), "sepia")
