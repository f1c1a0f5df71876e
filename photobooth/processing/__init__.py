"""Image capture and compositing pipeline for the photobooth."""

from .capture import FrameSource, StillFrameSource, capture_frame, decode_image
from .compositor import encode_jpeg, export_layout, render_layout
from .crop import crop_box, crop_to_aspect
from .filters import FILTERS, FilterType, apply_filter, is_skin_tone
from .frames import (
    FRAME_STYLES,
    CustomFrameImage,
    FitMode,
    FrameLayoutTag,
    FrameStyle,
    FrameType,
    apply_frame,
)
from .layout import LAYOUT_CONFIGS, LayoutConfig, LayoutController, LayoutState, LayoutType
from .pipeline import StageOutcome, process_capture, process_frame
from .preview import FILTER_CSS, filter_css
from .stickers import STICKER_OPTIONS, StickerOption, StickerType, apply_sticker

__all__ = [
    "FrameSource",
    "StillFrameSource",
    "capture_frame",
    "decode_image",
    "encode_jpeg",
    "export_layout",
    "render_layout",
    "crop_box",
    "crop_to_aspect",
    "FILTERS",
    "FilterType",
    "apply_filter",
    "is_skin_tone",
    "FRAME_STYLES",
    "CustomFrameImage",
    "FitMode",
    "FrameLayoutTag",
    "FrameStyle",
    "FrameType",
    "apply_frame",
    "LAYOUT_CONFIGS",
    "LayoutConfig",
    "LayoutController",
    "LayoutState",
    "LayoutType",
    "StageOutcome",
    "process_capture",
    "process_frame",
    "FILTER_CSS",
    "filter_css",
    "STICKER_OPTIONS",
    "StickerOption",
    "StickerType",
    "apply_sticker",
]
