"""Exception types for YOLO Inspector."""

from __future__ import annotations


class InspectorError(Exception):
    """Base class for all YOLO Inspector errors."""


class StorageError(InspectorError):
    """Raised when a label or class file cannot be read or written."""


class DetectionError(InspectorError):
    """Raised when a detection backend rejects or fails a request."""
