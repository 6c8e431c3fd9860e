"""Magnified crop rendering for a single label."""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import QPointF, QRect, QRectF, Qt
from PyQt6.QtGui import QColor, QImage, QMouseEvent, QPainter, QPen, QWheelEvent
from PyQt6.QtWidgets import QSizePolicy, QWidget

from ..core.crop import DETAIL_MIN_EXPANSION, CropWindow, compute_crop_window, expansion_factor
from ..core.geometry import Point, Size, fit_size
from ..core.models import Label
from ..core.viewport import MAGNIFIER_SCALE_BOUNDS, ViewportState, qt_wheel_delta, wheel_zoom_factor

logger = logging.getLogger(__name__)

# Dash and gap length in crop pixels for predicted labels
DASH_LENGTH = 5.0


def render_crop(
    image: QImage,
    label: Label,
    factor: float,
    color: QColor,
    dashed: bool = False
) -> QImage:
    """
    Copy the region around a label and redraw its box on top.

    The source region is copied pixel for pixel; the output has exactly
    the crop's pixel size (at least 1x1).

    Args:
        image: Source image
        label: Label to magnify
        factor: Expansion factor for the crop
        color: Box color
        dashed: Draw the box dashed (predicted labels)

    Returns:
        The cropped image with the box drawn
    """
    window = compute_crop_window(label, image.width(), image.height(), factor)
    width, height = window.pixel_size

    source = window.source
    surface = image.copy(QRect(int(source.x), int(source.y), width, height))
    surface = surface.convertToFormat(QImage.Format.Format_ARGB32_Premultiplied)

    painter = QPainter(surface)
    pen = QPen(color, window.line_width)
    if dashed:
        # Dash pattern is expressed in pen widths
        unit = DASH_LENGTH / window.line_width
        pen.setDashPattern([unit, unit])
    painter.setPen(pen)
    painter.setBrush(Qt.BrushStyle.NoBrush)
    # Surface origin is the crop origin truncated to whole pixels
    box = window.box
    painter.drawRect(QRectF(
        box.x + source.x - int(source.x),
        box.y + source.y - int(source.y),
        box.width,
        box.height,
    ))
    painter.end()

    return surface


class MagnifierView(QWidget):
    """
    Widget showing a magnified crop with its own pan and zoom.

    The secondary viewport is presentation only and resets whenever a
    different label is shown.
    """

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        """Initialize the magnifier view."""
        super().__init__(parent)

        self.setMinimumSize(120, 120)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setCursor(Qt.CursorShape.OpenHandCursor)

        self.min_expansion = DETAIL_MIN_EXPANSION
        self.padding = 30.0
        self.viewport = ViewportState()

        self._image: Optional[QImage] = None
        self._label: Optional[Label] = None
        self._color = QColor(Qt.GlobalColor.white)
        self._dashed = False
        self._crop: Optional[QImage] = None

        self._drag_start: Optional[Point] = None
        self._drag_offset = Point(0.0, 0.0)

    @property
    def crop_image(self) -> Optional[QImage]:
        return self._crop

    def crop_window(self) -> Optional[CropWindow]:
        """Crop geometry of the shown label."""
        if self._image is None or self._label is None:
            return None
        factor = expansion_factor(self.padding, self.min_expansion)
        return compute_crop_window(self._label, self._image.width(), self._image.height(), factor)

    def set_image(self, image: Optional[QImage]) -> None:
        self._image = image if image is not None and not image.isNull() else None
        self._render()

    def set_label(self, label: Optional[Label], color: Optional[QColor] = None, dashed: bool = False) -> None:
        """Show a label; switching to a different label resets the zoom."""
        if label != self._label:
            self.viewport = self.viewport.reset()
        self._label = label
        if color is not None:
            self._color = color
        self._dashed = dashed
        self._render()

    def set_padding(self, padding: float) -> None:
        self.padding = padding
        self._render()

    def clear(self) -> None:
        self._image = None
        self._label = None
        self._crop = None
        self.viewport = self.viewport.reset()
        self.update()

    def _render(self) -> None:
        if self._image is None or self._label is None:
            self._crop = None
        else:
            factor = expansion_factor(self.padding, self.min_expansion)
            self._crop = render_crop(self._image, self._label, factor, self._color, self._dashed)
        self.update()

    def _center(self) -> Point:
        return Point(self.width() / 2, self.height() / 2)

    def paintEvent(self, event) -> None:
        """Paint the crop fitted to the widget under the secondary viewport."""
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(0, 0, 0))

        if self._crop is None:
            painter.setPen(QColor(148, 163, 184))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No label selected")
            painter.end()
            return

        content = fit_size(
            Size(float(self._crop.width()), float(self._crop.height())),
            Size(float(self.width()), float(self.height())),
            allow_upscale=True,
        )
        rect = self.viewport.content_rect(content, self._center())
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.drawImage(QRectF(rect.x, rect.y, rect.width, rect.height), self._crop)
        painter.end()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            pos = event.position()
            self._drag_start = Point(pos.x(), pos.y())
            self._drag_offset = self.viewport.offset
            self.setCursor(Qt.CursorShape.ClosedHandCursor)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if self._drag_start is None:
            return
        pos = event.position()
        self.viewport = self.viewport.panned(self._drag_offset, self._drag_start, Point(pos.x(), pos.y()))
        self.update()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        self._drag_start = None
        self.setCursor(Qt.CursorShape.OpenHandCursor)

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:
        """Reset the secondary zoom."""
        self.viewport = self.viewport.reset()
        self.update()

    def wheelEvent(self, event: QWheelEvent) -> None:
        """Zoom around the pointer."""
        pos: QPointF = event.position()
        center = self._center()
        pointer = Point(pos.x() - center.x, pos.y() - center.y)
        factor = wheel_zoom_factor(qt_wheel_delta(event.angleDelta().y()))
        self.viewport = self.viewport.zoomed_at(pointer, factor, MAGNIFIER_SCALE_BOUNDS)
        self.update()
        event.accept()
