"""CSS ``filter:`` approximations used by browser clients for live preview.

These only resemble the pixel filters in :mod:`photobooth.processing.filters`.
Skin-aware filters cannot be expressed in CSS, so their previews act on the
whole frame; the exported image always comes from the pixel filters.
"""

from __future__ import annotations

from typing import Dict

from .filters import FilterType

FILTER_CSS: Dict[FilterType, str] = {
    FilterType.NONE: "none",
    FilterType.GRAYSCALE: "grayscale(100%)",
    FilterType.SEPIA: "sepia(100%)",
    FilterType.BRIGHTNESS: "brightness(1.2)",
    FilterType.CONTRAST: "contrast(1.3)",
    FilterType.VINTAGE: "sepia(50%) contrast(1.1) brightness(0.9)",
    FilterType.BLUR: "blur(2px)",
    FilterType.SKIN_WHITEN: "brightness(1.2) saturate(0.8) contrast(1.08)",
    FilterType.SKIN_SMOOTH: "blur(2px) brightness(1.1) contrast(1.03)",
    FilterType.BEAUTY: "brightness(1.18) saturate(0.85) contrast(1.15) blur(0.8px)",
    FilterType.VIBRANT: "saturate(1.45) contrast(1.18) brightness(1.02)",
    FilterType.WARM: "sepia(25%) saturate(1.25) brightness(1.08) contrast(1.05)",
    FilterType.COOL: "sepia(0%) saturate(1.15) brightness(1.05) hue-rotate(-5deg)",
    FilterType.CINEMATIC: "contrast(1.45) saturate(0.82) brightness(0.92)",
    FilterType.PORTRAIT: "brightness(1.12) saturate(0.85) contrast(1.22)",
}


def filter_css(filter_type: FilterType | str) -> str:
    return FILTER_CSS[FilterType(filter_type)]
