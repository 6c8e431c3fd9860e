"""Data models for YOLO Inspector annotations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

# Smallest width/height an interactive edit may produce
MIN_BOX_SIZE = 0.001


@dataclass(frozen=True)
class Label:
    """
    A single bounding box in normalized YOLO form.

    Coordinates are fractions of the image size: (x, y) is the box center,
    (w, h) its size. Values are kept exactly as loaded; clamping only
    happens during interactive edits.
    """

    class_id: int
    x: float
    y: float
    w: float
    h: float
    is_predicted: bool = False
    confidence: Optional[float] = None

    @property
    def left(self) -> float:
        return self.x - self.w / 2

    @property
    def right(self) -> float:
        return self.x + self.w / 2

    @property
    def top(self) -> float:
        return self.y - self.h / 2

    @property
    def bottom(self) -> float:
        return self.y + self.h / 2

    def edges(self) -> Tuple[float, float, float, float]:
        """
        Get the box edges.

        Returns:
            Tuple of (left, right, top, bottom) in normalized units
        """
        return (self.left, self.right, self.top, self.bottom)

    @classmethod
    def from_edges(
        cls,
        class_id: int,
        left: float,
        right: float,
        top: float,
        bottom: float,
        **kwargs
    ) -> Label:
        """
        Create a label from normalized edges.

        Args:
            class_id: Class ID
            left: Left edge
            right: Right edge
            top: Top edge
            bottom: Bottom edge
            **kwargs: Extra fields (is_predicted, confidence)

        Returns:
            New Label instance
        """
        w = right - left
        h = bottom - top
        return cls(
            class_id=class_id,
            x=left + w / 2,
            y=top + h / 2,
            w=w,
            h=h,
            **kwargs
        )

    def with_geometry(self, x: float, y: float, w: float, h: float) -> Label:
        """Return a copy with new center and size."""
        return replace(self, x=x, y=y, w=w, h=h)

    def with_class(self, class_id: int) -> Label:
        """Return a copy with a different class ID."""
        return replace(self, class_id=class_id)

    def accepted(self) -> Label:
        """Return a copy committed as a regular (non-predicted) label."""
        return replace(self, is_predicted=False, confidence=None)

    def to_pixel_rect(self, img_width: float, img_height: float) -> Tuple[float, float, float, float]:
        """
        Convert to a pixel rectangle.

        Args:
            img_width: Image width in pixels
            img_height: Image height in pixels

        Returns:
            Tuple of (x, y, width, height) in pixels, top-left origin
        """
        pixel_w = self.w * img_width
        pixel_h = self.h * img_height
        return (
            self.x * img_width - pixel_w / 2,
            self.y * img_height - pixel_h / 2,
            pixel_w,
            pixel_h,
        )


def image_key(image_name: str) -> str:
    """
    Get the label key for an image file name.

    The key is the file name with its last extension stripped, which is
    also the stem of the matching label file.

    Args:
        image_name: Image file name, e.g. "frame_001.jpg"

    Returns:
        Key string, e.g. "frame_001"
    """
    stem, dot, _ = image_name.rpartition(".")
    if not dot or not stem:
        return image_name
    return stem


def merge_labels(saved: List[Label], predicted: List[Label]) -> List[Label]:
    """Working collection for an image: saved labels followed by predictions."""
    return list(saved) + list(predicted)
