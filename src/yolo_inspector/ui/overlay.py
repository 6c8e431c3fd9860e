"""Label overlay painting in screen space."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from PyQt6.QtCore import QRectF, Qt
from PyQt6.QtGui import QColor, QFont, QFontMetrics, QPainter, QPen

from ..core.colors import PENDING_COLOR, class_color, model_color
from ..core.geometry import Rect, normalized_rect_to_screen
from ..core.interaction import GhostBox
from ..core.models import Label

logger = logging.getLogger(__name__)

GHOST_COLOR = QColor(52, 211, 153)


@dataclass
class OverlayOptions:
    """Display toggles shared by the main viewer and magnifiers."""

    labels_visible: bool = True
    model_labels_visible: bool = True
    show_fill: bool = False
    line_thickness: int = 2
    font_size: int = 10

    def is_visible(self, label: Label) -> bool:
        if label.is_predicted:
            return self.model_labels_visible
        return self.labels_visible


@dataclass(frozen=True)
class BoxVisual:
    """How one label is drawn."""

    color: QColor
    line_width: float
    dashed: bool
    selected: bool
    handles: bool
    caption: str
    caption_below: bool
    opacity: float


def label_caption(label: Label, class_name: str, pending: bool = False) -> str:
    """
    Caption text for a label.

    Args:
        label: Label to describe
        class_name: Display name of its class
        pending: Whether the label still awaits a class

    Returns:
        "Pending...", "M-<class> <conf>%" for predictions, else the class name
    """
    if pending:
        return "Pending..."
    if label.is_predicted:
        conf = f"{round(label.confidence * 100)}%" if label.confidence else ""
        return f"M-{class_name} {conf}"
    return class_name


def box_visual(
    label: Label,
    index: int,
    class_name: str,
    selected_index: Optional[int] = None,
    pending_index: Optional[int] = None,
    line_thickness: float = 2
) -> BoxVisual:
    """Resolve the visual state of a label."""
    selected = index == selected_index
    pending = index == pending_index

    if pending:
        color = QColor(PENDING_COLOR)
    elif label.is_predicted:
        color = model_color(label.class_id)
    else:
        color = class_color(label.class_id)

    return BoxVisual(
        color=color,
        line_width=line_thickness + 1 if selected else line_thickness,
        dashed=label.is_predicted or pending,
        selected=selected,
        handles=selected and not pending,
        caption=label_caption(label, class_name, pending),
        caption_below=label.is_predicted,
        opacity=1.0 if selected else 0.8,
    )


def _qrect(rect: Rect) -> QRectF:
    return QRectF(rect.x, rect.y, rect.width, rect.height)


class OverlayCompositor:
    """
    Paints labels, handles, captions and the ghost box.

    All sizes are screen pixels, so borders and text stay the same size at
    any zoom level.
    """

    HANDLE_SIZE = 10.0

    def __init__(self, options: Optional[OverlayOptions] = None) -> None:
        self.options = options or OverlayOptions()
        self.class_name: Callable[[int], str] = str

    def paint(
        self,
        painter: QPainter,
        labels: Sequence[Label],
        content_rect: Rect,
        selected_index: Optional[int] = None,
        pending_index: Optional[int] = None,
        ghost: Optional[GhostBox] = None
    ) -> None:
        """
        Draw every visible label of an image.

        Args:
            painter: Active painter in widget coordinates
            labels: Label collection
            content_rect: Screen rectangle covered by the image
            selected_index: Selected label, drawn last
            pending_index: Label awaiting a class
            ghost: Box of an in-progress create gesture
        """
        order: List[int] = [i for i in range(len(labels)) if i != selected_index]
        if selected_index is not None and 0 <= selected_index < len(labels):
            order.append(selected_index)

        painter.save()
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        for index in order:
            label = labels[index]
            if not self.options.is_visible(label):
                continue
            visual = box_visual(
                label,
                index,
                self.class_name(label.class_id),
                selected_index,
                pending_index,
                self.options.line_thickness,
            )
            box = _qrect(normalized_rect_to_screen(label.edges(), content_rect))
            self._draw_box(painter, box, visual, fill=self.options.show_fill and index != pending_index)

        if ghost is not None:
            self._draw_ghost(painter, _qrect(normalized_rect_to_screen(ghost.edges(), content_rect)))
        painter.restore()

    def _draw_box(self, painter: QPainter, box: QRectF, visual: BoxVisual, fill: bool) -> None:
        painter.setOpacity(visual.opacity)

        pen = QPen(visual.color, visual.line_width)
        if visual.dashed:
            pen.setStyle(Qt.PenStyle.DashLine)
        painter.setPen(pen)
        if fill:
            fill_color = QColor(visual.color)
            fill_color.setAlpha(48)
            painter.setBrush(fill_color)
        else:
            painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(box)

        if visual.caption:
            self._draw_caption(painter, visual, box)

        if visual.handles:
            self._draw_handles(painter, box)

        painter.setOpacity(1.0)

    def _draw_caption(self, painter: QPainter, visual: BoxVisual, box: QRectF) -> None:
        """Draw a caption tag above the box, or below for predictions."""
        font = QFont("Arial")
        font.setPointSizeF(self.options.font_size)
        font.setBold(True)
        font_metrics = QFontMetrics(font)
        text_width = font_metrics.horizontalAdvance(visual.caption)
        text_height = font_metrics.height()

        padding = 4
        rect_width = text_width + 2 * padding
        rect_height = text_height + padding
        top = box.bottom() + padding if visual.caption_below else box.top() - rect_height - padding
        background_rect = QRectF(box.left(), top, rect_width, rect_height)

        background_color = QColor(visual.color)
        background_color.setAlpha(200)

        brightness = (
            background_color.red() * 299 +
            background_color.green() * 587 +
            background_color.blue() * 114
        ) / 1000
        text_color = Qt.GlobalColor.black if brightness > 128 else Qt.GlobalColor.white

        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(background_color)
        painter.drawRect(background_rect)

        painter.setFont(font)
        painter.setPen(text_color)
        painter.drawText(background_rect, Qt.AlignmentFlag.AlignCenter, visual.caption)

    def _draw_handles(self, painter: QPainter, box: QRectF) -> None:
        half = self.HANDLE_SIZE / 2
        painter.setPen(QPen(Qt.GlobalColor.black, 1))
        painter.setBrush(Qt.GlobalColor.white)
        points = (
            box.topLeft(), box.topRight(), box.bottomLeft(), box.bottomRight(),
        )
        for point in points:
            painter.drawRect(QRectF(point.x() - half, point.y() - half, self.HANDLE_SIZE, self.HANDLE_SIZE))

        # Edge handles are thin bars centered on each side
        bar = self.HANDLE_SIZE * 0.6
        center = box.center()
        painter.drawRect(QRectF(center.x() - half, box.top() - bar / 2, self.HANDLE_SIZE, bar))
        painter.drawRect(QRectF(center.x() - half, box.bottom() - bar / 2, self.HANDLE_SIZE, bar))
        painter.drawRect(QRectF(box.left() - bar / 2, center.y() - half, bar, self.HANDLE_SIZE))
        painter.drawRect(QRectF(box.right() - bar / 2, center.y() - half, bar, self.HANDLE_SIZE))

    def _draw_ghost(self, painter: QPainter, box: QRectF) -> None:
        painter.setPen(QPen(GHOST_COLOR, 2))
        fill = QColor(GHOST_COLOR)
        fill.setAlpha(50)
        painter.setBrush(fill)
        painter.drawRect(box)

        font = QFont("Arial")
        font.setPointSizeF(self.options.font_size)
        font.setBold(True)
        painter.setFont(font)
        tag_height = QFontMetrics(font).height() + 4
        tag = QRectF(box.left(), box.top() - tag_height, QFontMetrics(font).horizontalAdvance("New") + 8, tag_height)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(GHOST_COLOR)
        painter.drawRect(tag)
        painter.setPen(Qt.GlobalColor.black)
        painter.drawText(tag, Qt.AlignmentFlag.AlignCenter, "New")
