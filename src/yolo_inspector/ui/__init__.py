"""UI components for YOLO Inspector."""

from .overlay import OverlayCompositor, OverlayOptions
from .image_viewer import ImageViewer
from .magnifier import MagnifierView
from .detail_panel import DetailPanel
from .grid_view import GridView
from .main_window import MainWindow

__all__ = [
    "OverlayCompositor",
    "OverlayOptions",
    "ImageViewer",
    "MagnifierView",
    "DetailPanel",
    "GridView",
    "MainWindow",
]
