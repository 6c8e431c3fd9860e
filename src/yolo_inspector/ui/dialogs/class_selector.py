"""Class picker shown after drawing a new box."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QKeyEvent
from PyQt6.QtWidgets import (
    QDialog, QLabel, QLineEdit, QListWidget, QListWidgetItem, QVBoxLayout
)

from ...core.session import AnnotationSession

logger = logging.getLogger(__name__)

# Item data marking the "add new class" entry
NEW_CLASS = -1


class ClassSelectorDialog(QDialog):
    """
    Searchable class list ordered by usage.

    Typing filters the list; when no class matches the text exactly an
    entry for adding it as a new class is offered.
    """

    def __init__(self, session: AnnotationSession, parent=None) -> None:
        """
        Initialize the class selector.

        Args:
            session: Session providing class names and usage counts
            parent: Parent widget
        """
        super().__init__(parent)
        self.session = session
        self.selected_class: Optional[int] = None
        self._init_ui()
        self._populate()

    def _init_ui(self) -> None:
        """Initialize the dialog UI."""
        self.setWindowTitle("Choose Class")
        self.setMinimumSize(320, 400)

        layout = QVBoxLayout(self)
        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Search or add a class...")
        self.search_edit.textChanged.connect(self._populate)
        self.search_edit.returnPressed.connect(self._accept_current)
        layout.addWidget(self.search_edit)

        self.class_list = QListWidget()
        self.class_list.itemActivated.connect(self._accept_item)
        self.class_list.itemDoubleClicked.connect(self._accept_item)
        layout.addWidget(self.class_list, 1)

        hint = QLabel("Enter to choose, Esc to cancel")
        hint.setStyleSheet("QLabel { color: #94a3b8; }")
        layout.addWidget(hint)

    def _populate(self) -> None:
        term = self.search_edit.text().strip()
        ranked: List[Tuple[int, str]] = self.session.ranked_classes(term)

        self.class_list.clear()
        for class_id, name in ranked:
            item = QListWidgetItem(f"{class_id}: {name}")
            item.setData(Qt.ItemDataRole.UserRole, class_id)
            self.class_list.addItem(item)

        if term and not any(name.lower() == term.lower() for _, name in ranked):
            item = QListWidgetItem(f'+ Add class "{term}"')
            item.setData(Qt.ItemDataRole.UserRole, NEW_CLASS)
            self.class_list.addItem(item)

        if self.class_list.count():
            self.class_list.setCurrentRow(0)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """Move the list selection with the arrow keys while typing."""
        if event.key() in (Qt.Key.Key_Down, Qt.Key.Key_Up):
            step = 1 if event.key() == Qt.Key.Key_Down else -1
            row = self.class_list.currentRow() + step
            if 0 <= row < self.class_list.count():
                self.class_list.setCurrentRow(row)
            return
        super().keyPressEvent(event)

    def _accept_current(self) -> None:
        item = self.class_list.currentItem()
        if item is not None:
            self._accept_item(item)

    def _accept_item(self, item: QListWidgetItem) -> None:
        class_id = item.data(Qt.ItemDataRole.UserRole)
        if class_id == NEW_CLASS:
            class_id = self.session.add_class(self.search_edit.text())
            if class_id is None:
                return
            logger.info(f"Added class {class_id}: {self.session.class_name(class_id)}")
        self.selected_class = class_id
        self.accept()
