"""Main image canvas with pan, zoom and box editing."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from PyQt6.QtCore import QRectF, Qt, pyqtSignal
from PyQt6.QtGui import QColor, QFocusEvent, QMouseEvent, QPainter, QPixmap, QWheelEvent
from PyQt6.QtWidgets import QWidget

from ..core.geometry import Point, Size, fit_size
from ..core.interaction import (
    CreateLabel, Effect, Frame, InteractionEngine, PointerAction, PointerEvent,
    SelectLabel, UpdateLabel, ViewportChanged
)
from ..core.models import Label
from ..core.viewport import qt_wheel_delta
from .overlay import OverlayCompositor, OverlayOptions

logger = logging.getLogger(__name__)

BACKGROUND_COLOR = QColor(15, 23, 42)


class ImageViewer(QWidget):
    """
    Canvas showing one image and its labels.

    Pointer input is fed to an InteractionEngine; the resulting effects are
    re-emitted as signals for the window to apply to the session. The
    viewer never edits labels itself.
    """

    # Signals
    label_selected = pyqtSignal(object)  # Optional[int]
    label_updated = pyqtSignal(int, object)  # index, Label
    label_created = pyqtSignal(object)  # Label
    zoom_changed = pyqtSignal(float)
    cursor_moved = pyqtSignal(float, float)  # normalized image coordinates

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        """Initialize the image viewer."""
        super().__init__(parent)

        self.engine = InteractionEngine()
        self.compositor = OverlayCompositor()
        self._pixmap: Optional[QPixmap] = None
        self._image_size = Size(0.0, 0.0)

        self.labels: List[Label] = []
        self.selected_index: Optional[int] = None
        self.pending_index: Optional[int] = None

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumSize(200, 200)

    # === State ===

    @property
    def options(self) -> OverlayOptions:
        return self.compositor.options

    def set_class_name_resolver(self, resolver: Callable[[int], str]) -> None:
        self.compositor.class_name = resolver

    def pixmap(self) -> Optional[QPixmap]:
        """Return the current pixmap."""
        return self._pixmap

    def setPixmap(self, pixmap: Optional[QPixmap]) -> None:
        """Set the image; a null pixmap leaves the canvas blank."""
        if pixmap is not None and not pixmap.isNull():
            self._pixmap = pixmap
            self._image_size = Size(float(pixmap.width()), float(pixmap.height()))
        else:
            self._pixmap = None
            self._image_size = Size(0.0, 0.0)
        self.update()

    def clear(self) -> None:
        """Clear the image and labels and reset the view."""
        self._pixmap = None
        self._image_size = Size(0.0, 0.0)
        self.labels = []
        self.selected_index = None
        self.pending_index = None
        self.engine.reset()
        self._release_grab()
        self.update()

    def set_labels(
        self,
        labels: Sequence[Label],
        selected_index: Optional[int] = None,
        pending_index: Optional[int] = None
    ) -> None:
        """Show a label collection."""
        self.labels = list(labels)
        self.selected_index = selected_index
        self.pending_index = pending_index
        self.update()

    def set_create_mode(self, enabled: bool) -> None:
        self.engine.create_mode = enabled
        self.setCursor(Qt.CursorShape.CrossCursor if enabled else Qt.CursorShape.ArrowCursor)

    def set_show_fill(self, enabled: bool) -> None:
        self.engine.show_fill = enabled
        self.options.show_fill = enabled
        self.update()

    def reset_view(self) -> None:
        """Return to the fitted, unzoomed view."""
        self.engine.reset()
        self._release_grab()
        self.zoom_changed.emit(self.engine.viewport.scale)
        self.update()

    # === Geometry ===

    def _frame(self) -> Frame:
        viewport = Size(float(self.width()), float(self.height()))
        return Frame(viewport_size=viewport, content_size=fit_size(self._image_size, viewport))

    def _release_grab(self) -> None:
        if QWidget.mouseGrabber() is self:
            self.releaseMouse()

    def _has_content(self) -> bool:
        content = self._frame().content_size
        return content.width > 0 and content.height > 0

    # === Events ===

    def _dispatch(self, event: PointerEvent) -> None:
        effects = self.engine.handle(
            event,
            self._frame(),
            self.labels,
            self.selected_index,
            self.pending_index,
            self.options.is_visible,
        )
        self._apply(effects)

    def _apply(self, effects: Sequence[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, SelectLabel):
                self.selected_index = effect.index
                self.label_selected.emit(effect.index)
            elif isinstance(effect, UpdateLabel):
                self.label_updated.emit(effect.index, effect.label)
            elif isinstance(effect, CreateLabel):
                self.label_created.emit(effect.label)
            elif isinstance(effect, ViewportChanged):
                self.zoom_changed.emit(effect.viewport.scale)
        self.update()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """Start a gesture on left button press."""
        self.setFocus()
        if event.button() != Qt.MouseButton.LeftButton or not self._has_content():
            super().mousePressEvent(event)
            return

        pos = event.position()
        self._dispatch(PointerEvent(PointerAction.PRESS, pos.x(), pos.y()))
        if self.engine.is_active:
            # Keep receiving moves and the release even outside the widget
            self.grabMouse()
            if not self.engine.create_mode and self.selected_index is None:
                self.setCursor(Qt.CursorShape.ClosedHandCursor)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        """Track the pointer and continue the active gesture."""
        pos = event.position()
        if self._has_content():
            frame = self._frame()
            point = self.engine.viewport.to_normalized(Point(pos.x(), pos.y()), frame.content_size, frame.center)
            self.cursor_moved.emit(point.x, point.y)

        if self.engine.is_active:
            self._dispatch(PointerEvent(PointerAction.MOVE, pos.x(), pos.y()))

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        """Finish the active gesture."""
        if event.button() != Qt.MouseButton.LeftButton:
            super().mouseReleaseEvent(event)
            return

        if self.engine.is_active:
            pos = event.position()
            self._dispatch(PointerEvent(PointerAction.RELEASE, pos.x(), pos.y()))
        self._release_grab()
        self.setCursor(Qt.CursorShape.CrossCursor if self.engine.create_mode else Qt.CursorShape.ArrowCursor)

    def focusOutEvent(self, event: QFocusEvent) -> None:
        """Abandon a gesture when focus is lost mid-drag."""
        if self.engine.is_active:
            self.engine.cancel()
            self.update()
        self._release_grab()
        super().focusOutEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:
        """Zoom around the pointer with Ctrl/Meta + wheel."""
        modifiers = event.modifiers()
        if not (modifiers & (Qt.KeyboardModifier.ControlModifier | Qt.KeyboardModifier.MetaModifier)):
            super().wheelEvent(event)
            return

        pos = event.position()
        effect = self.engine.zoom(Point(pos.x(), pos.y()), qt_wheel_delta(event.angleDelta().y()), self._frame())
        self._apply([effect])
        event.accept()

    def paintEvent(self, event) -> None:
        """Paint the image and the label overlay."""
        painter = QPainter(self)
        painter.fillRect(self.rect(), BACKGROUND_COLOR)

        if self._pixmap is None:
            painter.end()
            return

        frame = self._frame()
        rect = self.engine.content_rect(frame)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, self.engine.viewport.scale < 4)
        painter.drawPixmap(QRectF(rect.x, rect.y, rect.width, rect.height), self._pixmap, QRectF(self._pixmap.rect()))

        self.compositor.paint(
            painter,
            self.labels,
            rect,
            selected_index=self.selected_index,
            pending_index=self.pending_index,
            ghost=self.engine.ghost_box,
        )
        painter.end()
