"""Main application window for YOLO Inspector."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from PyQt6.QtCore import Qt, QSize, QTimer
from PyQt6.QtGui import (
    QAction, QActionGroup, QFont, QIcon, QImage, QImageReader, QKeyEvent, QPainter, QPixmap
)
from PyQt6.QtWidgets import (
    QApplication, QComboBox, QDockWidget, QFileDialog, QInputDialog, QLabel,
    QListWidget, QMainWindow, QMessageBox, QStackedWidget, QStatusBar, QToolBar,
    QVBoxLayout, QWidget
)

from ..core.config import AppConfig, ConfigManager
from ..core.detector import DetectorConfig, create_detector
from ..core.errors import DetectionError, StorageError
from ..core.models import Label
from ..core.session import FILTER_ALL, FILTER_UNLABELED, AnnotationSession, SaveStatus
from ..core.yolo_format import LabelStore, default_class_names, load_class_names
from ..workers.image_loader import ImageDecoder, ImageScanner
from .detail_panel import DetailPanel
from .dialogs.class_selector import ClassSelectorDialog
from .dialogs.model_settings import ModelSettingsDialog
from .grid_view import GridView
from .image_viewer import ImageViewer

logger = logging.getLogger(__name__)

CLASSES_FILE_NAME = "classes.txt"


def increase_image_allocation_limit() -> None:
    """Remove image allocation limit for large images."""
    QImageReader.setAllocationLimit(0)


class MainWindow(QMainWindow):
    """
    Main application window for YOLO Inspector.

    Provides the complete UI for reviewing a YOLO dataset:
    - Single image editing and a paged grid overview
    - Magnified detail view of the selected label
    - Class assignment and label navigation from the keyboard
    - Model-assisted predictions, single and batch
    """

    def __init__(self, config_manager: Optional[ConfigManager] = None) -> None:
        """Initialize the main window."""
        super().__init__()

        # Remove image allocation limit
        increase_image_allocation_limit()

        self.config_manager = config_manager or ConfigManager()
        self.session = AnnotationSession()

        # State
        self.image_scanner: Optional[ImageScanner] = None
        self.image_decoder: Optional[ImageDecoder] = None
        self.current_image: Optional[QImage] = None
        self._displayed_name: Optional[str] = None
        self._scanned_names: List[str] = []
        self._batch_queue: List[int] = []
        self._batch_detector = None

        # UI elements (initialized in _init_ui)
        self.dock_widgets: Dict[str, QDockWidget] = {}
        self.toolbar_actions: Dict[str, QAction] = {}

        self._init_ui()
        self._setup_connections()
        self._apply_view_settings()
        self._rebuild_session([])

        if self.config.images_directory and Path(self.config.images_directory).is_dir():
            self._load_images(self.config.images_directory)

        logger.info("MainWindow initialization complete")

    @property
    def config(self) -> AppConfig:
        """Get the current configuration."""
        return self.config_manager.config

    # === UI construction ===

    def _init_ui(self) -> None:
        """Initialize the user interface."""
        self.setWindowTitle("YOLO Inspector")
        self.setGeometry(100, 100, 1400, 900)

        self.viewer = ImageViewer()
        self.viewer.set_class_name_resolver(self._class_name)
        self.grid_view = GridView()
        self.grid_view.set_class_name_resolver(self._class_name)

        self.view_stack = QStackedWidget()
        self.view_stack.addWidget(self.viewer)
        self.view_stack.addWidget(self.grid_view)
        self.setCentralWidget(self.view_stack)

        self._create_status_bar()
        self._create_dock_widgets()
        self._create_toolbar()
        self._create_menus()

    def _create_status_bar(self) -> None:
        """Create the status bar."""
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)

        self.file_label = QLabel()
        self.status_bar.addPermanentWidget(self.file_label)

        self.coords_label = QLabel()
        self.coords_label.setFixedWidth(160)
        self.status_bar.addPermanentWidget(self.coords_label)

        self.zoom_label = QLabel("100%")
        self.status_bar.addPermanentWidget(self.zoom_label)

        self.save_label = QLabel()
        self.status_bar.addPermanentWidget(self.save_label)

        self.image_count_label = QLabel()
        self.status_bar.addPermanentWidget(self.image_count_label)

    def _create_dock_widgets(self) -> None:
        """Create all dock widgets."""
        self.dock_widgets["Images"] = QDockWidget("Images", self)
        self.dock_widgets["Images"].setObjectName("ImagesDock")
        self.dock_widgets["Images"].setAllowedAreas(
            Qt.DockWidgetArea.LeftDockWidgetArea | Qt.DockWidgetArea.RightDockWidgetArea
        )
        self.dock_widgets["Images"].setWidget(self._create_image_list_widget())
        self.addDockWidget(Qt.DockWidgetArea.LeftDockWidgetArea, self.dock_widgets["Images"])

        self.dock_widgets["Details"] = QDockWidget("Details", self)
        self.dock_widgets["Details"].setObjectName("DetailsDock")
        self.dock_widgets["Details"].setAllowedAreas(
            Qt.DockWidgetArea.LeftDockWidgetArea | Qt.DockWidgetArea.RightDockWidgetArea
        )
        self.detail_panel = DetailPanel()
        self.dock_widgets["Details"].setWidget(self.detail_panel)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self.dock_widgets["Details"])

    def _create_image_list_widget(self) -> QWidget:
        """Create the filtered image list."""
        widget = QWidget()
        layout = QVBoxLayout(widget)

        self.filter_combo = QComboBox()
        layout.addWidget(self.filter_combo)

        self.image_list = QListWidget()
        layout.addWidget(self.image_list, 1)
        return widget

    def _add_action(
        self,
        key: str,
        text: str,
        slot,
        icon: Optional[str] = None,
        shortcut: Optional[str] = None,
        checkable: bool = False
    ) -> QAction:
        action = QAction(self._create_icon(icon) if icon else QIcon(), text, self)
        if shortcut:
            action.setShortcut(shortcut)
        action.setCheckable(checkable)
        if checkable:
            action.toggled.connect(slot)
        else:
            action.triggered.connect(slot)
        self.toolbar_actions[key] = action
        return action

    def _create_toolbar(self) -> None:
        """Create the main toolbar."""
        self.toolbar = QToolBar()
        self.toolbar.setObjectName("MainToolBar")
        self.toolbar.setIconSize(QSize(28, 28))
        self.addToolBar(self.toolbar)

        self.toolbar.addAction(self._add_action("open_images", "Open Images Folder", self._open_images_directory, "folder"))
        self.toolbar.addAction(self._add_action("open_labels", "Open Labels Folder", self._open_labels_directory, "labels"))
        self.toolbar.addSeparator()

        self.toolbar.addAction(self._add_action("grid", "Grid View", self._set_grid_mode, "grid", "G", True))
        self.toolbar.addAction(self._add_action("create", "Create Box (E)", self._set_create_mode, "box", checkable=True))
        self.toolbar.addAction(self._add_action("fill", "Box Fill (F)", self._set_box_fill, "fill", checkable=True))
        self.toolbar.addAction(self._add_action("labels", "Show Labels", self._set_labels_visible, "eye", "Ctrl+T", True))
        self.toolbar.addAction(self._add_action("model_labels", "Show Model Labels", self._set_model_labels_visible, "robot_eye", checkable=True))
        self.toolbar.addAction(self._add_action("reset_view", "Reset View", self._reset_view, "reset", "Ctrl+0"))
        self.toolbar.addSeparator()

        self.toolbar.addAction(self._add_action("detect", "Run Inference", self._run_inference, "detect", "Ctrl+I"))
        self.toolbar.addAction(self._add_action("batch", "Batch Inference", self._toggle_batch_inference, "batch", checkable=True))
        self.toolbar.addAction(self._add_action("accept", "Accept Predictions", self._accept_predictions, "accept", "Ctrl+Return"))
        self.toolbar.addAction(self._add_action("model_settings", "Model Settings", self._open_model_settings, "model"))

    def _create_menus(self) -> None:
        """Create the menu bar."""
        menubar = self.menuBar()

        file_menu = menubar.addMenu("File")
        file_menu.addAction(self.toolbar_actions["open_images"])
        file_menu.addAction(self.toolbar_actions["open_labels"])
        file_menu.addAction(self._add_action("open_classes", "Open Classes File...", self._open_classes_file))
        self.recent_paths_menu = file_menu.addMenu("Recent Folders")
        self._update_recent_paths_menu()
        file_menu.addSeparator()
        exit_action = QAction("Exit", self)
        exit_action.setShortcut("Ctrl+Q")
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        view_menu = menubar.addMenu("View")
        for key in ("grid", "fill", "labels", "model_labels", "reset_view"):
            view_menu.addAction(self.toolbar_actions[key])
        view_menu.addSeparator()

        grid_menu = view_menu.addMenu("Grid")
        mode_group = QActionGroup(self)
        for mode, text in (("normal", "Whole Images"), ("zoom", "Zoomed Labels")):
            action = QAction(text, self)
            action.setCheckable(True)
            action.setChecked(self.config.grid_mode == mode)
            action.triggered.connect(lambda checked, m=mode: self._update_grid(grid_mode=m))
            mode_group.addAction(action)
            grid_menu.addAction(action)
        grid_menu.addSeparator()
        grid_menu.addAction(self._add_action("grid_size", "Grid Size...", self._choose_grid_size))
        grid_menu.addAction(self._add_action("grid_context", "Zoom Context...", self._choose_grid_context))
        grid_menu.addAction(self._add_action("grid_mag", "Zoom Magnification...", self._choose_grid_magnification))
        grid_menu.addAction(self._add_action("slideshow", "Play Slideshow", self._set_slideshow_playing, checkable=True))
        grid_menu.addAction(self._add_action("slideshow_interval", "Slideshow Interval...", self._choose_slideshow_interval))

        for dock in self.dock_widgets.values():
            view_menu.addAction(dock.toggleViewAction())

        model_menu = menubar.addMenu("Model")
        for key in ("detect", "batch", "accept", "model_settings"):
            model_menu.addAction(self.toolbar_actions[key])

        help_menu = menubar.addMenu("Help")
        about_action = QAction("About", self)
        about_action.triggered.connect(self._show_about)
        help_menu.addAction(about_action)

    def _setup_connections(self) -> None:
        """Set up signal/slot connections."""
        self.viewer.label_selected.connect(self._on_label_selected)
        self.viewer.label_updated.connect(self._on_label_updated)
        self.viewer.label_created.connect(self._on_label_created)
        self.viewer.zoom_changed.connect(self._on_zoom_changed)
        self.viewer.cursor_moved.connect(self._on_cursor_moved)

        self.grid_view.image_activated.connect(self._on_grid_image_activated)

        self.detail_panel.prev_requested.connect(self._prev_label)
        self.detail_panel.next_requested.connect(self._next_label)
        self.detail_panel.delete_requested.connect(self._delete_label)
        self.detail_panel.class_changed.connect(self._assign_class)
        self.detail_panel.padding_changed.connect(self._on_padding_changed)

        self.filter_combo.currentIndexChanged.connect(self._on_filter_changed)
        self.image_list.currentRowChanged.connect(self._on_image_row_changed)

    @staticmethod
    def _create_icon(name: str, size: int = 32) -> QIcon:
        """Create an icon from a Unicode symbol.

        Args:
            name: Icon identifier
            size: Icon size in pixels
        """
        icons = {
            "folder": "\U0001F4C2",
            "labels": "\U0001F3F7",
            "grid": "▦",
            "box": "▢",
            "fill": "▣",
            "eye": "\U0001F441",
            "robot_eye": "\U0001F916",
            "reset": "⟲",
            "detect": "\U0001F50D",
            "batch": "⏩",
            "accept": "✔",
            "model": "⚙",
        }

        symbol = icons.get(name, name)

        pixmap = QPixmap(size, size)
        pixmap.fill(Qt.GlobalColor.transparent)

        painter = QPainter(pixmap)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        font = QFont()
        font.setPointSize(int(size * 0.6))
        painter.setFont(font)

        painter.drawText(pixmap.rect(), Qt.AlignmentFlag.AlignCenter, symbol)
        painter.end()

        return QIcon(pixmap)

    def _apply_view_settings(self) -> None:
        """Push configuration values into widgets and actions."""
        config = self.config
        for key, value in (
            ("fill", config.show_box_fill),
            ("labels", config.labels_visible),
            ("model_labels", config.model_labels_visible),
            ("slideshow", config.slideshow_playing),
        ):
            self.toolbar_actions[key].blockSignals(True)
            self.toolbar_actions[key].setChecked(value)
            self.toolbar_actions[key].blockSignals(False)

        options = self.viewer.options
        options.labels_visible = config.labels_visible
        options.model_labels_visible = config.model_labels_visible
        options.line_thickness = config.line_thickness
        options.font_size = config.font_size
        self.viewer.set_show_fill(config.show_box_fill)

        self.detail_panel.set_padding(config.context_padding)
        self.grid_view.configure(
            config.grid_rows,
            config.grid_cols,
            config.grid_mode,
            config.grid_context_padding,
            config.grid_magnification,
            config.slideshow_interval_ms,
            config.slideshow_playing,
        )

    # === Data loading ===

    def _open_images_directory(self) -> None:
        """Choose the images folder."""
        directory = QFileDialog.getExistingDirectory(self, "Select Images Folder", self.config.images_directory)
        if directory:
            self._load_images(directory)

    def _open_labels_directory(self) -> None:
        """Choose the labels folder."""
        directory = QFileDialog.getExistingDirectory(self, "Select Labels Folder", self.config.labels_directory)
        if directory:
            self.config_manager.update(labels_directory=directory)
            self._rebuild_session(self._scanned_names)

    def _open_classes_file(self) -> None:
        """Choose a classes.txt or data.yaml file."""
        file_path, _ = QFileDialog.getOpenFileName(
            self,
            "Select Classes File",
            self.config.labels_directory,
            "Class files (*.txt *.yaml *.yml)"
        )
        if file_path:
            self.config_manager.update(classes_file=file_path)
            self._rebuild_session(self._scanned_names)

    def _load_images(self, directory: str) -> None:
        """Scan an images folder in the background."""
        self._stop_image_loading()
        self.config_manager.update(images_directory=directory)
        self.config.add_recent_path(directory)
        self.config_manager.save()
        self._update_recent_paths_menu()

        self._scanned_names = []
        self._show_status_message("Scanning images...")
        self.image_scanner = ImageScanner(directory)
        self.image_scanner.image_found.connect(self._scanned_names.append)
        self.image_scanner.finished.connect(self._image_scan_finished)
        self.image_scanner.start()

    def _image_scan_finished(self, total_count: int) -> None:
        """Build the session once all image names are known."""
        self.image_scanner = None
        self._show_status_message(f"Found {total_count} images")
        self._rebuild_session(self._scanned_names)

    def _labels_directory(self) -> Optional[Path]:
        directory = self.config.labels_directory or self.config.images_directory
        return Path(directory) if directory else None

    def _classes_path(self) -> Optional[Path]:
        if self.config.classes_file:
            return Path(self.config.classes_file)
        labels_dir = self._labels_directory()
        return labels_dir / CLASSES_FILE_NAME if labels_dir is not None else None

    def _load_class_names(self) -> List[str]:
        path = self._classes_path()
        if path is None or not path.exists():
            return default_class_names()
        try:
            names = load_class_names(path)
        except StorageError as e:
            logger.error(f"Error loading classes: {e}")
            QMessageBox.warning(self, "Classes", str(e))
            return default_class_names()
        logger.info(f"Loaded {len(names)} classes from {path}")
        return names or default_class_names()

    def _rebuild_session(self, image_names: List[str]) -> None:
        """Create a fresh session for the configured folders."""
        self._stop_batch()
        classes_path = self._classes_path()
        self.session = AnnotationSession(
            store=LabelStore(self._labels_directory()),
            image_names=image_names,
            class_names=self._load_class_names(),
            classes_path=classes_path if classes_path is not None and classes_path.suffix == ".txt" else None,
        )
        self._displayed_name = None
        self._populate_filter_combo()
        self._populate_image_list()
        self.detail_panel.set_class_names(self.session.class_names)
        self._refresh()

    def _populate_filter_combo(self) -> None:
        self.filter_combo.blockSignals(True)
        self.filter_combo.clear()
        self.filter_combo.addItem("All images", FILTER_ALL)
        self.filter_combo.addItem("Unlabeled images", FILTER_UNLABELED)
        for i, name in enumerate(self.session.class_names):
            self.filter_combo.addItem(f"Contains {i}: {name}", i)
        self.filter_combo.blockSignals(False)

    def _populate_image_list(self) -> None:
        self.image_list.blockSignals(True)
        self.image_list.clear()
        self.image_list.addItems(self.session.filtered_images)
        self.image_list.setCurrentRow(self.session.image_index)
        self.image_list.blockSignals(False)

    def _stop_image_loading(self) -> None:
        """Stop any active image loading threads."""
        if self.image_scanner:
            self.image_scanner.stop()
            self.image_scanner.wait()
            self.image_scanner = None

        if self.image_decoder:
            self.image_decoder.stop()
            self.image_decoder.wait()
            self.image_decoder = None

    def _update_recent_paths_menu(self) -> None:
        """Update the recent folders submenu."""
        self.recent_paths_menu.clear()
        for path in self.config.recent_paths:
            action = QAction(path, self)
            action.triggered.connect(lambda checked, p=path: self._load_images(p))
            self.recent_paths_menu.addAction(action)
        self.recent_paths_menu.setEnabled(bool(self.config.recent_paths))

    # === View refresh ===

    def _class_name(self, class_id: int) -> str:
        return self.session.class_name(class_id)

    def _refresh(self) -> None:
        """Sync every view with the session."""
        session = self.session

        if self.image_list.count() != len(session.filtered_images):
            self._populate_image_list()
        elif self.image_list.currentRow() != session.image_index:
            self.image_list.blockSignals(True)
            self.image_list.setCurrentRow(session.image_index)
            self.image_list.blockSignals(False)

        if session.image_name != self._displayed_name:
            self._display_image()

        self.viewer.set_labels(session.labels, session.current_label, session.pending_index)
        self.detail_panel.set_label(
            session.selected_label,
            session.current_label,
            len(session.labels),
            pending=session.pending_index is not None and session.pending_index == session.current_label,
        )

        if self.view_stack.currentWidget() is self.grid_view:
            self.grid_view.set_images(
                Path(self.config.images_directory) if self.config.images_directory else None,
                session.filtered_images,
                session.labels_for,
                session.image_index,
            )

        self._update_status()

    def _display_image(self) -> None:
        """Decode the current image in the background."""
        name = self.session.image_name
        self._displayed_name = name
        self.current_image = None
        self.viewer.setPixmap(None)
        self.viewer.reset_view()
        self.detail_panel.set_image(None)

        if self.image_decoder:
            self.image_decoder.stop()
            self.image_decoder.wait()
            self.image_decoder = None

        if name is None or not self.config.images_directory:
            return

        path = str(Path(self.config.images_directory) / name)
        self.image_decoder = ImageDecoder([path])
        self.image_decoder.image_decoded.connect(self._on_image_decoded)
        self.image_decoder.image_failed.connect(self._on_image_failed)
        self.image_decoder.start()

    def _on_image_decoded(self, path: str, image: QImage) -> None:
        if self._displayed_name is None or Path(path).name != self._displayed_name:
            return
        self.current_image = image
        self.viewer.setPixmap(QPixmap.fromImage(image))
        self.detail_panel.set_image(image)

    def _on_image_failed(self, path: str) -> None:
        self._show_status_message(f"Could not load {Path(path).name}")

    def _update_status(self) -> None:
        session = self.session
        total = len(session.filtered_images)
        name = session.image_name or ""
        self.file_label.setText(name)
        self.image_count_label.setText(f"{session.image_index + 1 if total else 0}/{total}")

        status = session.save_status
        if status == SaveStatus.SAVED:
            self.save_label.setText("Saved")
            self.save_label.setStyleSheet("QLabel { color: #10b981; }")
            QTimer.singleShot(1500, self._clear_save_status)
        elif status == SaveStatus.ERROR:
            self.save_label.setText("Save failed")
            self.save_label.setStyleSheet("QLabel { color: #ef4444; }")
        elif status == SaveStatus.SAVING:
            self.save_label.setText("Saving...")
            self.save_label.setStyleSheet("")
        else:
            self.save_label.clear()

    def _clear_save_status(self) -> None:
        if self.session.save_status == SaveStatus.SAVED:
            self.session.save_status = SaveStatus.IDLE
            self.save_label.clear()

    def _show_status_message(self, message: str) -> None:
        """Show a status bar message."""
        self.status_bar.showMessage(message, 5000)

    # === Viewer callbacks ===

    def _on_label_selected(self, index: Optional[int]) -> None:
        self.session.select_label(index)
        self._refresh()

    def _on_label_updated(self, index: int, label: Label) -> None:
        self.session.update_label(label, index)
        self._refresh()

    def _on_label_created(self, label: Label) -> None:
        self.session.create_label(label)
        self.toolbar_actions["create"].setChecked(False)
        self._refresh()
        # Leave the mouse release handler before opening a modal dialog
        QTimer.singleShot(0, self._choose_class_for_pending)

    def _choose_class_for_pending(self) -> None:
        if self.session.pending_index is None:
            return
        dialog = ClassSelectorDialog(self.session, self)
        if dialog.exec() and dialog.selected_class is not None:
            self.session.select_label(self.session.pending_index)
            self.session.assign_class(dialog.selected_class)
            self.detail_panel.set_class_names(self.session.class_names)
        else:
            self.session.cancel_pending()
        self._refresh()

    def _on_zoom_changed(self, scale: float) -> None:
        self.zoom_label.setText(f"{round(scale * 100)}%")

    def _on_cursor_moved(self, x: float, y: float) -> None:
        self.coords_label.setText(f"x {x:.4f}  y {y:.4f}")

    def _on_grid_image_activated(self, index: int) -> None:
        self.session.open_image(index)
        self.toolbar_actions["grid"].setChecked(False)

    def _on_padding_changed(self, value: int) -> None:
        if value != self.config.context_padding:
            self.config_manager.update(context_padding=value)

    def _on_filter_changed(self, combo_index: int) -> None:
        self._stop_batch()
        self.session.set_filter(self.filter_combo.itemData(combo_index))
        self._populate_image_list()
        self._refresh()

    def _on_image_row_changed(self, row: int) -> None:
        if row >= 0 and row != self.session.image_index:
            self.session.open_image(row)
            self._refresh()

    # === Commands ===

    def _next_image(self) -> None:
        self.session.next_image(self._image_step())
        self._refresh()

    def _prev_image(self) -> None:
        self.session.prev_image(self._image_step())
        self._refresh()

    def _image_step(self) -> int:
        if self.view_stack.currentWidget() is self.grid_view:
            return self.grid_view.per_page
        return 1

    def _next_label(self) -> None:
        self.session.next_label()
        self._refresh()

    def _prev_label(self) -> None:
        self.session.prev_label()
        self._refresh()

    def _delete_label(self) -> None:
        if self.session.delete_current_label():
            self._refresh()

    def _assign_class(self, class_id: int) -> None:
        if self.session.assign_class(class_id):
            self._refresh()

    def _cancel_pending(self) -> None:
        if self.session.cancel_pending():
            self._refresh()

    def _set_grid_mode(self, enabled: bool) -> None:
        self.view_stack.setCurrentWidget(self.grid_view if enabled else self.viewer)
        self._refresh()

    def _set_create_mode(self, enabled: bool) -> None:
        self.viewer.set_create_mode(enabled)
        if enabled:
            self.toolbar_actions["grid"].setChecked(False)

    def _set_box_fill(self, enabled: bool) -> None:
        self.viewer.set_show_fill(enabled)
        self.config_manager.update(show_box_fill=enabled)

    def _set_labels_visible(self, visible: bool) -> None:
        self.viewer.options.labels_visible = visible
        self.viewer.update()
        self.config_manager.update(labels_visible=visible)

    def _set_model_labels_visible(self, visible: bool) -> None:
        self.viewer.options.model_labels_visible = visible
        self.viewer.update()
        self.config_manager.update(model_labels_visible=visible)

    def _reset_view(self) -> None:
        self.viewer.reset_view()

    def _update_grid(self, **kwargs) -> None:
        self.config_manager.update(**kwargs)
        self._apply_view_settings()
        self._refresh()

    def _choose_grid_size(self) -> None:
        rows, ok = QInputDialog.getInt(self, "Grid Size", "Rows:", self.config.grid_rows, 1, 10)
        if not ok:
            return
        cols, ok = QInputDialog.getInt(self, "Grid Size", "Columns:", self.config.grid_cols, 1, 10)
        if ok:
            self._update_grid(grid_rows=rows, grid_cols=cols)

    def _choose_grid_context(self) -> None:
        value, ok = QInputDialog.getInt(
            self, "Zoom Context", "Context padding (%):", self.config.grid_context_padding, 0, 100
        )
        if ok:
            self._update_grid(grid_context_padding=value)

    def _choose_grid_magnification(self) -> None:
        value, ok = QInputDialog.getDouble(
            self, "Zoom Magnification", "Magnification:", self.config.grid_magnification, 0.5, 5.0, 1
        )
        if ok:
            self._update_grid(grid_magnification=value)

    def _choose_slideshow_interval(self) -> None:
        value, ok = QInputDialog.getInt(
            self, "Slideshow Interval", "Interval (ms):", self.config.slideshow_interval_ms, 200, 60000, 100
        )
        if ok:
            self._update_grid(slideshow_interval_ms=value)

    def _set_slideshow_playing(self, playing: bool) -> None:
        self._update_grid(slideshow_playing=playing)

    # === Detection ===

    def _create_detector(self):
        return create_detector(self.config.detector_backend, DetectorConfig.from_app_config(self.config))

    def _open_model_settings(self) -> None:
        """Open the detector settings dialog."""
        dialog = ModelSettingsDialog(self.config, self)
        if dialog.exec():
            dialog.apply_to(self.config)
            self.config_manager.save()

    def _run_inference(self) -> None:
        """Run detection on the current image."""
        name = self.session.image_name
        if name is None or not self.config.images_directory:
            QMessageBox.warning(self, "Warning", "No image selected.")
            return

        detector = self._create_detector()
        QApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
        try:
            self._show_status_message("Detecting objects...")
            labels = detector.detect(str(Path(self.config.images_directory) / name))
        except DetectionError as e:
            logger.error(f"Inference failed: {e}")
            QMessageBox.critical(self, "Error", f"Inference failed. Is the detection backend running?\n\n{e}")
            return
        finally:
            QApplication.restoreOverrideCursor()

        if labels:
            self.session.set_predictions(self.session.image_key, labels)
            self._show_status_message(f"Detected {len(labels)} objects")
        else:
            self._show_status_message("No detections found")
        self._refresh()

    def _toggle_batch_inference(self, running: bool) -> None:
        """Start or cancel batch inference from the current image."""
        if not running:
            self._stop_batch()
            return

        detector = self._create_detector()
        if not detector.health():
            self.toolbar_actions["batch"].setChecked(False)
            QMessageBox.warning(self, "Batch Inference", "The detection backend is not reachable.")
            self._open_model_settings()
            return

        total = len(self.session.filtered_images)
        start = self.session.image_index if self.session.image_index < total else 0
        self._batch_queue = list(range(start, min(start + self.config.batch_size, total)))
        self._batch_detector = detector
        logger.info(f"Batch inference started for {len(self._batch_queue)} images")
        QTimer.singleShot(0, self._batch_step)

    def _batch_step(self) -> None:
        """Process one image, then yield to the event loop."""
        if not self._batch_queue:
            self._stop_batch()
            return

        index = self._batch_queue.pop(0)
        self.session.open_image(index)
        name = self.session.image_name
        try:
            labels = self._batch_detector.detect(str(Path(self.config.images_directory) / name))
            if labels:
                self.session.set_predictions(self.session.image_key, labels)
        except DetectionError as e:
            logger.warning(f"Failed to infer image {name}: {e}")
        self._refresh()

        if self._batch_queue:
            QTimer.singleShot(50, self._batch_step)
        else:
            self._stop_batch()

    def _stop_batch(self) -> None:
        if self._batch_queue:
            logger.info("Batch inference stopped")
        self._batch_queue = []
        self._batch_detector = None
        action = self.toolbar_actions.get("batch")
        if action is not None and action.isChecked():
            action.blockSignals(True)
            action.setChecked(False)
            action.blockSignals(False)

    def _accept_predictions(self) -> None:
        if self.session.accept_predictions():
            self._show_status_message("Predictions accepted")
            self._refresh()

    def _show_about(self) -> None:
        """Show about dialog."""
        QMessageBox.about(
            self,
            "About YOLO Inspector",
            "YOLO Inspector\nVersion 1.0.0\n\n"
            "A review tool for YOLO bounding box datasets."
        )

    # === Event Handlers ===

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """Handle review shortcuts."""
        key = event.key()
        if event.modifiers() & (Qt.KeyboardModifier.ControlModifier | Qt.KeyboardModifier.MetaModifier):
            super().keyPressEvent(event)
            return

        if key in (Qt.Key.Key_D, Qt.Key.Key_Right):
            self._next_image()
        elif key in (Qt.Key.Key_A, Qt.Key.Key_Left):
            self._prev_image()
        elif key in (Qt.Key.Key_W, Qt.Key.Key_Up):
            self._next_label()
        elif key in (Qt.Key.Key_S, Qt.Key.Key_Down):
            self._prev_label()
        elif key in (Qt.Key.Key_Q, Qt.Key.Key_Delete):
            self._delete_label()
        elif key == Qt.Key.Key_E:
            self.toolbar_actions["create"].toggle()
        elif key == Qt.Key.Key_F:
            self.toolbar_actions["fill"].toggle()
        elif key == Qt.Key.Key_Escape:
            self.toolbar_actions["create"].setChecked(False)
            self._cancel_pending()
        elif Qt.Key.Key_0.value <= key <= Qt.Key.Key_9.value:
            class_id = key - Qt.Key.Key_0.value
            if class_id < len(self.session.class_names):
                self._assign_class(class_id)
        else:
            super().keyPressEvent(event)

    def closeEvent(self, event) -> None:
        """Handle window close."""
        self._stop_batch()
        self._stop_image_loading()
        self.grid_view.shutdown()
        self.config_manager.save()
        super().closeEvent(event)
