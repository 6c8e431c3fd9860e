"""Coordinate space conversions.

Four spaces are in play:

- normalized: fractions of the image size, origin at the image top-left
- image pixels: source image pixels
- content: pixels of the displayed (fit-to-view, un-zoomed) image, origin
  at the image center
- screen: widget pixels, origin at the widget top-left

All functions here are pure and work on plain floats so they can be used
from widgets and tests alike.
"""

from __future__ import annotations

from typing import NamedTuple, Tuple


class Point(NamedTuple):
    x: float
    y: float


class Size(NamedTuple):
    width: float
    height: float


class Rect(NamedTuple):
    """Axis-aligned rectangle with a top-left origin."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, point: Point) -> bool:
        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value into [lo, hi]."""
    return max(lo, min(hi, value))


def fit_size(image: Size, available: Size, allow_upscale: bool = False) -> Size:
    """
    Size of an image scaled to fit inside an area, keeping aspect ratio.

    Args:
        image: Source image size
        available: Area to fit into
        allow_upscale: Whether images smaller than the area may grow

    Returns:
        Displayed size
    """
    if image.width <= 0 or image.height <= 0 or available.width <= 0 or available.height <= 0:
        return Size(0.0, 0.0)

    ratio = min(available.width / image.width, available.height / image.height)
    if not allow_upscale:
        ratio = min(ratio, 1.0)
    return Size(image.width * ratio, image.height * ratio)


def normalized_to_pixel(point: Point, image: Size) -> Point:
    """Normalized image coordinates to source pixels."""
    return Point(point.x * image.width, point.y * image.height)


def pixel_to_normalized(point: Point, image: Size) -> Point:
    """Source pixels to normalized image coordinates."""
    return Point(point.x / image.width, point.y / image.height)


def normalized_to_content(point: Point, content: Size) -> Point:
    """Normalized coordinates to center-origin content pixels."""
    return Point((point.x - 0.5) * content.width, (point.y - 0.5) * content.height)


def content_to_normalized(point: Point, content: Size) -> Point:
    """Center-origin content pixels to normalized coordinates."""
    return Point(point.x / content.width + 0.5, point.y / content.height + 0.5)


def normalized_rect_to_screen(
    edges: Tuple[float, float, float, float],
    content_rect: Rect
) -> Rect:
    """
    Map normalized (left, right, top, bottom) edges onto a screen rectangle.

    Args:
        edges: Normalized box edges
        content_rect: Screen rectangle covered by the whole image

    Returns:
        Screen rectangle of the box
    """
    left, right, top, bottom = edges
    return Rect(
        content_rect.x + left * content_rect.width,
        content_rect.y + top * content_rect.height,
        (right - left) * content_rect.width,
        (bottom - top) * content_rect.height,
    )
