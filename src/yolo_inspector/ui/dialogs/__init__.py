"""Dialog components for YOLO Inspector."""

from .model_settings import ModelSettingsDialog
from .class_selector import ClassSelectorDialog

__all__ = [
    "ModelSettingsDialog",
    "ClassSelectorDialog",
]
