"""Core business logic modules for YOLO Inspector."""

from .models import Label
from .config import AppConfig, ConfigManager
from .errors import DetectionError, InspectorError, StorageError
from .yolo_format import LabelStore, parse_labels, serialize_labels
from .viewport import ViewportState
from .interaction import InteractionEngine
from .session import AnnotationSession
from .detector import HttpDetector, YOLODetector

__all__ = [
    "Label",
    "AppConfig",
    "ConfigManager",
    "DetectionError",
    "InspectorError",
    "StorageError",
    "LabelStore",
    "parse_labels",
    "serialize_labels",
    "ViewportState",
    "InteractionEngine",
    "AnnotationSession",
    "HttpDetector",
    "YOLODetector",
]
