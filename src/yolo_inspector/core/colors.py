"""Per-class colors spaced by the golden angle."""

from __future__ import annotations

from PyQt6.QtGui import QColor

GOLDEN_ANGLE = 137.50776405

# (saturation, lightness) for saved labels and model predictions
LABEL_TONE = (0.70, 0.50)
MODEL_TONE = (0.90, 0.60)

PENDING_COLOR = QColor(255, 255, 255)


def class_hue(index: int) -> float:
    """Hue in degrees [0, 360) for a class index."""
    return (index * GOLDEN_ANGLE) % 360.0


def _color(index: int, tone, alpha: float) -> QColor:
    saturation, lightness = tone
    return QColor.fromHslF(class_hue(index) / 360.0, saturation, lightness, alpha)


def class_color(index: int, alpha: float = 1.0) -> QColor:
    """Color for saved labels of a class."""
    return _color(index, LABEL_TONE, alpha)


def model_color(index: int, alpha: float = 1.0) -> QColor:
    """Brighter color for model predictions of a class."""
    return _color(index, MODEL_TONE, alpha)
