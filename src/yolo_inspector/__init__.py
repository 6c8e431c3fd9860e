"""
YOLO Inspector - A desktop review tool for YOLO format bounding box datasets.

Built with PyQt6 for inspecting, correcting and completing labeled datasets,
with magnified per-label views and model-assisted predictions.
"""

__version__ = "1.0.0"
__author__ = "YOLO Inspector Team"
