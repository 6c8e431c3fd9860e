"""Pan/zoom viewport transform."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Tuple

from .geometry import Point, Rect, Size, clamp, content_to_normalized

# Scale bounds for the main image viewer
MAIN_SCALE_BOUNDS: Tuple[float, float] = (0.1, 50.0)

# Scale bounds for the secondary zoom of magnified crops
MAGNIFIER_SCALE_BOUNDS: Tuple[float, float] = (1.0, 20.0)

# Wheel sensitivity: factor = exp(-delta * ZOOM_SENSITIVITY)
ZOOM_SENSITIVITY = 0.0015

# Qt reports wheel rotation in eighths of a degree, 120 per notch; browsers
# report about 100 pixels per notch. Deltas are normalized to the latter.
WHEEL_DELTA_PER_NOTCH = 100.0
QT_ANGLE_PER_NOTCH = 120.0


def wheel_zoom_factor(delta: float, sensitivity: float = ZOOM_SENSITIVITY) -> float:
    """
    Multiplicative zoom factor for a wheel delta.

    Positive deltas (scrolling down) zoom out, negative deltas zoom in.
    The exponential keeps the mapping smooth for any device's delta units.
    """
    return math.exp(-delta * sensitivity)


def qt_wheel_delta(angle_delta_y: float) -> float:
    """Convert a Qt angleDelta().y() value to a scroll delta (down = positive)."""
    return -angle_delta_y * WHEEL_DELTA_PER_NOTCH / QT_ANGLE_PER_NOTCH


@dataclass(frozen=True)
class ViewportState:
    """
    Affine view transform between content and screen pixels.

    Forward: ``screen = viewport_center + offset + scale * content``.
    Content points are measured from the content center, matching a
    center-origin scale followed by a translation.
    """

    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    @property
    def offset(self) -> Point:
        return Point(self.offset_x, self.offset_y)

    @property
    def is_identity(self) -> bool:
        return self.scale == 1.0 and self.offset_x == 0.0 and self.offset_y == 0.0

    def to_screen(self, content: Point, viewport_center: Point) -> Point:
        """Map a content point to screen coordinates."""
        return Point(
            viewport_center.x + self.offset_x + self.scale * content.x,
            viewport_center.y + self.offset_y + self.scale * content.y,
        )

    def to_content(self, screen: Point, viewport_center: Point) -> Point:
        """Map a screen point back to content coordinates."""
        return Point(
            (screen.x - viewport_center.x - self.offset_x) / self.scale,
            (screen.y - viewport_center.y - self.offset_y) / self.scale,
        )

    def content_rect(self, content: Size, viewport_center: Point) -> Rect:
        """Screen rectangle covered by content of the given size."""
        top_left = self.to_screen(Point(-content.width / 2, -content.height / 2), viewport_center)
        return Rect(top_left.x, top_left.y, content.width * self.scale, content.height * self.scale)

    def to_normalized(self, screen: Point, content: Size, viewport_center: Point) -> Point:
        """Map a screen point to normalized image coordinates."""
        return content_to_normalized(self.to_content(screen, viewport_center), content)

    def panned(self, anchor_offset: Point, anchor: Point, current: Point) -> ViewportState:
        """
        Pan relative to a gesture anchor.

        Args:
            anchor_offset: Offset when the gesture started
            anchor: Pointer position when the gesture started
            current: Current pointer position

        Returns:
            New state; panning is unbounded
        """
        return replace(
            self,
            offset_x=anchor_offset.x + (current.x - anchor.x),
            offset_y=anchor_offset.y + (current.y - anchor.y),
        )

    def zoomed_at(
        self,
        pointer: Point,
        factor: float,
        bounds: Tuple[float, float] = MAIN_SCALE_BOUNDS
    ) -> ViewportState:
        """
        Zoom keeping the content point under the pointer fixed.

        Args:
            pointer: Pointer position relative to the viewport center
            factor: Multiplicative scale change
            bounds: (min, max) scale

        Returns:
            New state
        """
        new_scale = clamp(self.scale * factor, bounds[0], bounds[1])
        ratio = new_scale / self.scale
        return ViewportState(
            scale=new_scale,
            offset_x=pointer.x - (pointer.x - self.offset_x) * ratio,
            offset_y=pointer.y - (pointer.y - self.offset_y) * ratio,
        )

    def reset(self) -> ViewportState:
        return ViewportState()
