"""Crop window computation for magnified label views."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from .geometry import Rect, clamp
from .models import Label

# Smallest expansion for the single-label detail view
DETAIL_MIN_EXPANSION = 1.2

# Grid cells are small, so they start closer to the box
GRID_MIN_EXPANSION = 1.1

# Padding of 100% adds this much to the expansion factor
PADDING_RANGE = 4.0


def expansion_factor(padding: float, min_expansion: float = DETAIL_MIN_EXPANSION) -> float:
    """
    Crop expansion factor for a context padding percentage.

    Args:
        padding: Context padding in [0, 100]
        min_expansion: Factor at zero padding

    Returns:
        Multiplier applied to the label size
    """
    return min_expansion + clamp(padding, 0.0, 100.0) / 100.0 * PADDING_RANGE


def stroke_width(crop_width: float, crop_height: float) -> float:
    """Box border width scaled to the crop's pixel size."""
    return max(2.0, min(crop_width, crop_height) / 50.0)


@dataclass(frozen=True)
class CropWindow:
    """
    A region of the source image around one label.

    Attributes:
        edges: Normalized (left, right, top, bottom) of the crop
        source: Crop rectangle in source image pixels
        box: Label rectangle in crop-local pixels
        line_width: Border width for redrawing the box
    """

    edges: Tuple[float, float, float, float]
    source: Rect
    box: Rect
    line_width: float

    @property
    def pixel_size(self) -> Tuple[int, int]:
        """Output surface size, at least 1x1."""
        return (
            max(1, int(math.floor(self.source.width))),
            max(1, int(math.floor(self.source.height))),
        )


def compute_crop_window(label: Label, img_width: float, img_height: float, factor: float) -> CropWindow:
    """
    Compute the crop around a label.

    The crop is the label size times ``factor``, centered on the label.
    Each edge is clamped to the image on its own, so crops near a border
    are asymmetric rather than shifted.

    Args:
        label: Label to magnify
        img_width: Source image width in pixels
        img_height: Source image height in pixels
        factor: Expansion factor, see expansion_factor()

    Returns:
        CropWindow
    """
    crop_w = label.w * factor
    crop_h = label.h * factor

    left = clamp(label.x - crop_w / 2, 0.0, 1.0)
    right = clamp(label.x + crop_w / 2, 0.0, 1.0)
    top = clamp(label.y - crop_h / 2, 0.0, 1.0)
    bottom = clamp(label.y + crop_h / 2, 0.0, 1.0)

    source = Rect(
        left * img_width,
        top * img_height,
        (right - left) * img_width,
        (bottom - top) * img_height,
    )

    label_x, label_y, label_w, label_h = label.to_pixel_rect(img_width, img_height)
    box = Rect(label_x - source.x, label_y - source.y, label_w, label_h)

    return CropWindow(
        edges=(left, right, top, bottom),
        source=source,
        box=box,
        line_width=stroke_width(source.width, source.height),
    )
