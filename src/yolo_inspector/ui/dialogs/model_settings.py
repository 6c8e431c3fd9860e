"""Detector settings dialog for YOLO Inspector."""

from __future__ import annotations

import logging

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QComboBox, QDialog, QDialogButtonBox, QDoubleSpinBox, QFileDialog, QFormLayout,
    QHBoxLayout, QLabel, QLineEdit, QPushButton, QSpinBox, QVBoxLayout, QWidget
)

from ...core.config import AppConfig
from ...core.detector import DetectorConfig, create_detector

logger = logging.getLogger(__name__)


class ModelSettingsDialog(QDialog):
    """
    Dialog for editing detector settings.

    Covers the backend choice, the service URL or local model file,
    thresholds and slicing parameters, and offers a connection test.
    """

    def __init__(self, config: AppConfig, parent=None) -> None:
        """
        Initialize the dialog.

        Args:
            config: Configuration to read initial values from
            parent: Parent widget
        """
        super().__init__(parent)
        self.config = config
        self._init_ui()
        self._load(config)

    def _init_ui(self) -> None:
        """Initialize the dialog UI."""
        self.setWindowTitle("Model Settings")
        self.setMinimumWidth(440)

        layout = QVBoxLayout(self)
        form = QFormLayout()

        self.backend_combo = QComboBox()
        self.backend_combo.addItem("Detection service (HTTP)", "http")
        self.backend_combo.addItem("Local YOLO model", "local")
        self.backend_combo.currentIndexChanged.connect(self._update_backend_fields)
        form.addRow("Backend:", self.backend_combo)

        self.url_edit = QLineEdit()
        form.addRow("API URL:", self.url_edit)

        model_row = QWidget()
        model_layout = QHBoxLayout(model_row)
        model_layout.setContentsMargins(0, 0, 0, 0)
        self.model_edit = QLineEdit()
        model_layout.addWidget(self.model_edit, 1)
        browse_button = QPushButton("Browse...")
        browse_button.clicked.connect(self._select_model)
        model_layout.addWidget(browse_button)
        form.addRow("Model file:", model_row)

        self.conf_spin = self._ratio_spin()
        form.addRow("Confidence:", self.conf_spin)
        self.iou_spin = self._ratio_spin()
        form.addRow("IoU:", self.iou_spin)

        self.slice_w_spin = self._slice_spin()
        form.addRow("Slice width:", self.slice_w_spin)
        self.slice_h_spin = self._slice_spin()
        form.addRow("Slice height:", self.slice_h_spin)
        self.overlap_w_spin = self._ratio_spin()
        form.addRow("Overlap width:", self.overlap_w_spin)
        self.overlap_h_spin = self._ratio_spin()
        form.addRow("Overlap height:", self.overlap_h_spin)

        self.batch_spin = QSpinBox()
        self.batch_spin.setRange(1, 10000)
        form.addRow("Batch size:", self.batch_spin)

        layout.addLayout(form)

        test_row = QHBoxLayout()
        test_button = QPushButton("Test Connection")
        test_button.clicked.connect(self._test_connection)
        test_row.addWidget(test_button)
        self.status_label = QLabel()
        self.status_label.setAlignment(Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft)
        test_row.addWidget(self.status_label, 1)
        layout.addLayout(test_row)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    @staticmethod
    def _ratio_spin() -> QDoubleSpinBox:
        spin = QDoubleSpinBox()
        spin.setRange(0.0, 1.0)
        spin.setSingleStep(0.05)
        spin.setDecimals(2)
        return spin

    @staticmethod
    def _slice_spin() -> QSpinBox:
        spin = QSpinBox()
        spin.setRange(32, 8192)
        spin.setSingleStep(32)
        return spin

    def _load(self, config: AppConfig) -> None:
        index = self.backend_combo.findData(config.detector_backend)
        self.backend_combo.setCurrentIndex(max(0, index))
        self.url_edit.setText(config.api_url)
        self.model_edit.setText(config.model_path)
        self.conf_spin.setValue(config.confidence)
        self.iou_spin.setValue(config.iou)
        self.slice_w_spin.setValue(config.slice_width)
        self.slice_h_spin.setValue(config.slice_height)
        self.overlap_w_spin.setValue(config.overlap_width)
        self.overlap_h_spin.setValue(config.overlap_height)
        self.batch_spin.setValue(config.batch_size)
        self._update_backend_fields()

    def _update_backend_fields(self) -> None:
        is_http = self.backend_combo.currentData() == "http"
        self.url_edit.setEnabled(is_http)
        self.model_edit.setEnabled(not is_http)

    def _select_model(self) -> None:
        """Open file dialog to select a model file."""
        file_path, _ = QFileDialog.getOpenFileName(
            self,
            "Select YOLO Model",
            "",
            "PT files (*.pt)"
        )
        if file_path:
            self.model_edit.setText(file_path)
            logger.info(f"Model selected: {file_path}")

    def backend(self) -> str:
        return self.backend_combo.currentData()

    def detector_config(self) -> DetectorConfig:
        """Detector settings as currently entered."""
        return DetectorConfig(
            api_url=self.url_edit.text().strip(),
            model_path=self.model_edit.text().strip(),
            confidence=self.conf_spin.value(),
            iou=self.iou_spin.value(),
            slice_width=self.slice_w_spin.value(),
            slice_height=self.slice_h_spin.value(),
            overlap_width=self.overlap_w_spin.value(),
            overlap_height=self.overlap_h_spin.value(),
        )

    def _test_connection(self) -> None:
        detector = create_detector(self.backend(), self.detector_config())
        if detector.health():
            self.status_label.setText("Connected")
            self.status_label.setStyleSheet("QLabel { color: #10b981; }")
        else:
            self.status_label.setText("Not reachable")
            self.status_label.setStyleSheet("QLabel { color: #ef4444; }")

    def apply_to(self, config: AppConfig) -> None:
        """
        Write the entered values into a configuration.

        Args:
            config: Configuration to update in place
        """
        detector = self.detector_config()
        config.detector_backend = self.backend()
        config.api_url = detector.api_url
        config.model_path = detector.model_path
        config.confidence = detector.confidence
        config.iou = detector.iou
        config.slice_width = detector.slice_width
        config.slice_height = detector.slice_height
        config.overlap_width = detector.overlap_width
        config.overlap_height = detector.overlap_height
        config.batch_size = self.batch_spin.value()
