"""Paged image grid with a per-cell label slideshow."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from PyQt6.QtCore import QRectF, Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QColor, QEnterEvent, QFont, QImage, QMouseEvent, QPainter, QPen
from PyQt6.QtWidgets import QGridLayout, QLabel, QSizePolicy, QVBoxLayout, QWidget

from ..core.colors import class_color, model_color
from ..core.crop import GRID_MIN_EXPANSION, expansion_factor
from ..core.geometry import Point, Size, fit_size
from ..core.models import Label
from ..core.slideshow import GridSlideshow, page_bounds
from ..core.viewport import ViewportState
from ..workers.image_loader import ImageDecoder
from .magnifier import render_crop
from .overlay import OverlayCompositor, OverlayOptions

logger = logging.getLogger(__name__)

GRID_MODES = ("normal", "zoom")

# Width of the clickable prev/next strips at the cell sides
NAV_STRIP = 28


class GridCell(QWidget):
    """
    One image of the grid.

    In normal mode the whole image is drawn with all its labels; in zoom
    mode only the active label is shown magnified.
    """

    clicked = pyqtSignal(int)
    hover_changed = pyqtSignal(object)  # Optional[int]
    step_requested = pyqtSignal(int, int)  # image index, direction

    def __init__(self, compositor: OverlayCompositor, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.compositor = compositor
        self.image_index: Optional[int] = None
        self.name = ""
        self.image: Optional[QImage] = None
        self.labels: List[Label] = []
        self.active = 0
        self.selected = False
        self.hovered = False
        self.mode = "normal"
        self.padding = 30.0
        self.magnification = 1.0
        self._crop: Optional[QImage] = None

        self.setMouseTracking(True)
        self.setMinimumSize(80, 80)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

    @property
    def active_label(self) -> Optional[Label]:
        if 0 <= self.active < len(self.labels):
            return self.labels[self.active]
        return None

    def set_content(self, image_index: Optional[int], name: str, labels: Sequence[Label], selected: bool) -> None:
        self.image_index = image_index
        self.name = name
        self.labels = list(labels)
        self.selected = selected
        self.image = None
        self._render_crop()

    def set_image(self, image: Optional[QImage]) -> None:
        self.image = image
        self._render_crop()

    def set_active(self, active: int) -> None:
        self.active = active
        self._render_crop()

    def _render_crop(self) -> None:
        label = self.active_label
        if self.mode != "zoom" or self.image is None or label is None:
            self._crop = None
        else:
            color = model_color(label.class_id) if label.is_predicted else class_color(label.class_id)
            factor = expansion_factor(self.padding, GRID_MIN_EXPANSION)
            self._crop = render_crop(self.image, label, factor, color, dashed=label.is_predicted)
        self.update()

    def _available(self) -> Size:
        return Size(float(self.width()), float(self.height()))

    def paintEvent(self, event) -> None:
        """Paint the cell."""
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(15, 23, 42))

        if self.image_index is None:
            painter.setPen(QColor(30, 41, 59))
            painter.drawRect(self.rect().adjusted(0, 0, -1, -1))
            painter.end()
            return

        center = Point(self.width() / 2, self.height() / 2)
        if self._crop is not None:
            content = fit_size(Size(float(self._crop.width()), float(self._crop.height())), self._available(), True)
            rect = ViewportState(scale=self.magnification).content_rect(content, center)
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, False)
            painter.drawImage(QRectF(rect.x, rect.y, rect.width, rect.height), self._crop)
        elif self.image is not None:
            content = fit_size(Size(float(self.image.width()), float(self.image.height())), self._available(), True)
            rect = ViewportState().content_rect(content, center)
            if self.mode == "zoom":
                painter.setOpacity(0.5)
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
            painter.drawImage(QRectF(rect.x, rect.y, rect.width, rect.height), self.image)
            painter.setOpacity(1.0)
            if self.mode == "normal":
                self.compositor.paint(painter, self.labels, rect)

        self._paint_info(painter)

        border = QColor(99, 102, 241) if self.selected else QColor(51, 65, 85)
        painter.setPen(QPen(border, 3 if self.selected else 1))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(self.rect().adjusted(1, 1, -2, -2))
        painter.end()

    def _paint_info(self, painter: QPainter) -> None:
        font = QFont("Arial")
        font.setPointSizeF(8)
        painter.setFont(font)
        header = QRectF(0, 0, self.width(), 16)
        painter.fillRect(header, QColor(0, 0, 0, 110))
        painter.setPen(Qt.GlobalColor.white)
        painter.drawText(header.adjusted(4, 0, -4, 0), Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft, self.name)

        if self.mode == "zoom":
            label = self.active_label
            if label is not None:
                tag = self.compositor.class_name(label.class_id)
                painter.setPen(class_color(label.class_id))
                painter.drawText(header.adjusted(4, 0, -4, 0), Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignRight, tag)
            counter = f"{self.active + 1}/{len(self.labels)}" if self.labels else "0"
        else:
            counter = str(len(self.labels))

        footer = QRectF(self.width() - 50, self.height() - 16, 48, 14)
        painter.fillRect(footer, QColor(0, 0, 0, 150))
        painter.setPen(QColor(203, 213, 225))
        painter.drawText(footer, Qt.AlignmentFlag.AlignCenter, counter)

        if self.mode == "zoom" and self.hovered and len(self.labels) > 1:
            painter.setPen(Qt.GlobalColor.white)
            big = QFont("Arial")
            big.setPointSizeF(14)
            big.setBold(True)
            painter.setFont(big)
            painter.drawText(QRectF(0, 16, NAV_STRIP, self.height() - 32), Qt.AlignmentFlag.AlignCenter, "<")
            painter.drawText(
                QRectF(self.width() - NAV_STRIP, 16, NAV_STRIP, self.height() - 32),
                Qt.AlignmentFlag.AlignCenter, ">"
            )

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.MouseButton.LeftButton or self.image_index is None:
            return
        x = event.position().x()
        if self.mode == "zoom" and len(self.labels) > 1:
            if x < NAV_STRIP:
                self.step_requested.emit(self.image_index, -1)
                return
            if x > self.width() - NAV_STRIP:
                self.step_requested.emit(self.image_index, 1)
                return
        self.clicked.emit(self.image_index)

    def enterEvent(self, event: QEnterEvent) -> None:
        self.hovered = True
        self.hover_changed.emit(self.image_index)
        self.update()
        super().enterEvent(event)

    def leaveEvent(self, event) -> None:
        self.hovered = False
        self.hover_changed.emit(None)
        self.update()
        super().leaveEvent(event)


class GridView(QWidget):
    """
    Grid of images showing the page that contains the current image.

    In zoom mode a timer cycles each cell through the labels of its image;
    hovering a cell pauses it.
    """

    # Signal emitted when a cell is clicked (image index)
    image_activated = pyqtSignal(int)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        """Initialize the grid view."""
        super().__init__(parent)

        self.rows = 3
        self.cols = 4
        self.mode = "normal"
        self.padding = 30.0
        self.magnification = 1.0
        self.playing = True

        self.slideshow = GridSlideshow()
        self.compositor = OverlayCompositor(OverlayOptions(line_thickness=3, font_size=8))
        self.directory: Optional[Path] = None
        self.names: List[str] = []
        self.current_index = 0
        self.labels_for: Callable[[str], List[Label]] = lambda name: []

        self.cells: List[GridCell] = []
        self._decoder: Optional[ImageDecoder] = None
        self._path_to_cell: Dict[str, GridCell] = {}

        self.timer = QTimer(self)
        self.timer.setInterval(2000)
        self.timer.timeout.connect(self._advance_slideshow)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)
        self._grid = QGridLayout()
        self._grid.setSpacing(6)
        layout.addLayout(self._grid, 1)

        self.page_label = QLabel()
        self.page_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.page_label)

        self._build_cells()

    @property
    def per_page(self) -> int:
        return self.rows * self.cols

    def set_class_name_resolver(self, resolver: Callable[[int], str]) -> None:
        self.compositor.class_name = resolver

    def configure(
        self,
        rows: int,
        cols: int,
        mode: str,
        padding: float,
        magnification: float,
        interval_ms: int,
        playing: bool
    ) -> None:
        """
        Apply grid settings.

        Args:
            rows: Grid rows
            cols: Grid columns
            mode: "normal" or "zoom"
            padding: Context padding for zoom cells
            magnification: Extra scale applied to zoom crops
            interval_ms: Slideshow interval
            playing: Whether the slideshow runs
        """
        layout_changed = (rows, cols) != (self.rows, self.cols)
        self.rows = max(1, rows)
        self.cols = max(1, cols)
        self.mode = mode if mode in GRID_MODES else "normal"
        self.padding = padding
        self.magnification = magnification
        self.playing = playing
        self.timer.setInterval(max(100, interval_ms))

        if layout_changed:
            self._build_cells()
        for cell in self.cells:
            cell.mode = self.mode
            cell.padding = self.padding
            cell.magnification = self.magnification
        self.refresh(reload_images=layout_changed)

    def _build_cells(self) -> None:
        for cell in self.cells:
            self._grid.removeWidget(cell)
            cell.deleteLater()
        self.cells = []
        for i in range(self.per_page):
            cell = GridCell(self.compositor, self)
            cell.mode = self.mode
            cell.clicked.connect(self.image_activated.emit)
            cell.hover_changed.connect(self._on_hover_changed)
            cell.step_requested.connect(self._on_step_requested)
            self._grid.addWidget(cell, i // self.cols, i % self.cols)
            self.cells.append(cell)

    def set_images(
        self,
        directory: Optional[Path],
        names: Sequence[str],
        labels_for: Callable[[str], List[Label]],
        current_index: int
    ) -> None:
        """
        Show the page containing current_index.

        Args:
            directory: Images directory
            names: Image names in display order
            labels_for: Returns the labels (saved + predicted) of an image
            current_index: Selected image index
        """
        page_changed = (
            directory != self.directory or
            list(names) != self.names or
            page_bounds(current_index, len(names), self.per_page)[0] != self.slideshow.page
        )
        self.directory = Path(directory) if directory is not None else None
        self.names = list(names)
        self.labels_for = labels_for
        self.current_index = current_index
        self.refresh(reload_images=page_changed)

    def refresh(self, reload_images: bool = False) -> None:
        """Re-read labels for every cell, optionally reloading images."""
        page, start, end = page_bounds(self.current_index, len(self.names), self.per_page)
        self.slideshow.set_page(page)

        if reload_images:
            self._stop_decoder()
            self._path_to_cell = {}

        for offset, cell in enumerate(self.cells):
            image_index = start + offset
            if image_index >= end:
                cell.set_content(None, "", [], False)
                continue

            name = self.names[image_index]
            image = cell.image if not reload_images and cell.image_index == image_index else None
            labels = self.labels_for(name)
            cell.set_content(image_index, name, labels, image_index == self.current_index)
            active = self.slideshow.index_for(image_index)
            cell.active = active if active < len(labels) else 0
            cell.set_image(image)
            if self.directory is not None:
                self._path_to_cell[str(self.directory / name)] = cell

        total_pages = max(1, -(-len(self.names) // self.per_page))
        if self.names:
            self.page_label.setText(f"Page {page + 1} of {total_pages} ({start + 1} - {end})")
        else:
            self.page_label.setText("No images")

        if reload_images and self._path_to_cell:
            self._start_decoder(list(self._path_to_cell))
        self._update_timer()

    def _update_timer(self) -> None:
        if self.mode == "zoom" and self.playing and self.isVisible():
            if not self.timer.isActive():
                self.timer.start()
        else:
            self.timer.stop()

    def _start_decoder(self, paths: List[str]) -> None:
        self._decoder = ImageDecoder(paths)
        self._decoder.image_decoded.connect(self._on_image_decoded)
        self._decoder.start()

    def _stop_decoder(self) -> None:
        if self._decoder is not None:
            self._decoder.stop()
            self._decoder.wait()
            self._decoder = None

    def _on_image_decoded(self, path: str, image: QImage) -> None:
        cell = self._path_to_cell.get(path)
        if cell is not None:
            cell.set_image(image)

    def _advance_slideshow(self) -> None:
        counts = {cell.image_index: len(cell.labels) for cell in self.cells if cell.image_index is not None}
        changed = set(self.slideshow.tick(counts))
        for cell in self.cells:
            if cell.image_index in changed:
                cell.set_active(self.slideshow.index_for(cell.image_index))

    def _on_hover_changed(self, image_index: Optional[int]) -> None:
        self.slideshow.hovered = image_index

    def _on_step_requested(self, image_index: int, direction: int) -> None:
        for cell in self.cells:
            if cell.image_index == image_index:
                cell.set_active(self.slideshow.step(image_index, len(cell.labels), direction))

    def showEvent(self, event) -> None:
        super().showEvent(event)
        self._update_timer()

    def hideEvent(self, event) -> None:
        self.timer.stop()
        super().hideEvent(event)

    def shutdown(self) -> None:
        """Stop background work."""
        self.timer.stop()
        self._stop_decoder()
