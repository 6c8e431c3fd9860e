"""Detail panel: magnified view and editing controls for the current label."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QImage
from PyQt6.QtWidgets import (
    QComboBox, QGridLayout, QHBoxLayout, QLabel, QPushButton, QSlider,
    QVBoxLayout, QWidget
)

from ..core.colors import PENDING_COLOR, class_color, model_color
from ..core.models import Label
from .magnifier import MagnifierView

logger = logging.getLogger(__name__)


class DetailPanel(QWidget):
    """
    Side panel for the selected label.

    Shows the label magnified with adjustable context, its position in the
    label list, its class and its normalized coordinates.
    """

    # Signals
    prev_requested = pyqtSignal()
    next_requested = pyqtSignal()
    delete_requested = pyqtSignal()
    class_changed = pyqtSignal(int)
    padding_changed = pyqtSignal(int)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        """Initialize the detail panel."""
        super().__init__(parent)
        self._updating = False

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(6)

        self.magnifier = MagnifierView(self)
        layout.addWidget(self.magnifier, 1)

        # Context padding
        padding_layout = QHBoxLayout()
        padding_layout.addWidget(QLabel("Context"))
        self.padding_slider = QSlider(Qt.Orientation.Horizontal)
        self.padding_slider.setRange(0, 100)
        self.padding_slider.setValue(int(self.magnifier.padding))
        self.padding_slider.valueChanged.connect(self._on_padding_changed)
        padding_layout.addWidget(self.padding_slider, 1)
        self.padding_label = QLabel(f"{int(self.magnifier.padding)}%")
        self.padding_label.setFixedWidth(40)
        padding_layout.addWidget(self.padding_label)
        layout.addLayout(padding_layout)

        # Navigation
        nav_layout = QHBoxLayout()
        prev_btn = QPushButton("<")
        prev_btn.setToolTip("Previous label (S)")
        prev_btn.clicked.connect(self.prev_requested.emit)
        nav_layout.addWidget(prev_btn)

        self.counter_label = QLabel("0 / 0")
        self.counter_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        nav_layout.addWidget(self.counter_label, 1)

        next_btn = QPushButton(">")
        next_btn.setToolTip("Next label (W)")
        next_btn.clicked.connect(self.next_requested.emit)
        nav_layout.addWidget(next_btn)

        self.delete_btn = QPushButton("Delete")
        self.delete_btn.setToolTip("Delete label (Q)")
        self.delete_btn.clicked.connect(self.delete_requested.emit)
        nav_layout.addWidget(self.delete_btn)
        layout.addLayout(nav_layout)

        # Class
        self.class_combo = QComboBox()
        self.class_combo.currentIndexChanged.connect(self._on_class_changed)
        layout.addWidget(self.class_combo)

        # Coordinates
        coords = QGridLayout()
        self.coord_labels = {}
        for i, name in enumerate(("x", "y", "w", "h")):
            coords.addWidget(QLabel(name.upper()), i // 2, (i % 2) * 2)
            value = QLabel("-")
            value.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
            coords.addWidget(value, i // 2, (i % 2) * 2 + 1)
            self.coord_labels[name] = value
        layout.addLayout(coords)

        self.status_label = QLabel()
        self.status_label.setStyleSheet("QLabel { color: #94a3b8; }")
        layout.addWidget(self.status_label)

    def set_class_names(self, names: Sequence[str]) -> None:
        """Fill the class combo box."""
        self._updating = True
        current = self.class_combo.currentIndex()
        self.class_combo.clear()
        for i, name in enumerate(names):
            self.class_combo.addItem(f"{i}: {name}", i)
        if 0 <= current < len(names):
            self.class_combo.setCurrentIndex(current)
        self._updating = False

    def set_padding(self, padding: int) -> None:
        self.padding_slider.setValue(padding)

    def set_image(self, image: Optional[QImage]) -> None:
        self.magnifier.set_image(image)

    def set_label(
        self,
        label: Optional[Label],
        index: Optional[int],
        total: int,
        pending: bool = False
    ) -> None:
        """
        Show a label.

        Args:
            label: Selected label, or None
            index: Its index in the working collection
            total: Number of labels on the image
            pending: Whether the label still awaits a class
        """
        self._updating = True
        self.counter_label.setText(f"{index + 1 if index is not None else 0} / {total}")
        self.delete_btn.setEnabled(label is not None)
        self.class_combo.setEnabled(label is not None)

        if label is None:
            self.magnifier.set_label(None)
            for value in self.coord_labels.values():
                value.setText("-")
            self.status_label.clear()
            self._updating = False
            return

        if pending:
            color = PENDING_COLOR
            self.status_label.setText("Pending: choose a class (0-9) or Esc to cancel")
        elif label.is_predicted:
            color = model_color(label.class_id)
            conf = f" {round(label.confidence * 100)}%" if label.confidence else ""
            self.status_label.setText(f"Model prediction{conf}")
        else:
            color = class_color(label.class_id)
            self.status_label.clear()
        self.magnifier.set_label(label, color, dashed=label.is_predicted or pending)

        combo_index = self.class_combo.findData(label.class_id)
        if combo_index >= 0:
            self.class_combo.setCurrentIndex(combo_index)

        for name in ("x", "y", "w", "h"):
            self.coord_labels[name].setText(f"{getattr(label, name):.6f}")
        self._updating = False

    def _on_padding_changed(self, value: int) -> None:
        self.padding_label.setText(f"{value}%")
        self.magnifier.set_padding(value)
        self.padding_changed.emit(value)

    def _on_class_changed(self, combo_index: int) -> None:
        if self._updating or combo_index < 0:
            return
        self.class_changed.emit(self.class_combo.itemData(combo_index))
