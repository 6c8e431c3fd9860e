"""Background image scanning and decoding worker threads."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence

from PyQt6.QtCore import QThread, pyqtSignal
from PyQt6.QtGui import QImage

logger = logging.getLogger(__name__)

# Supported image extensions
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp"}


class ImageScanner(QThread):
    """
    Fast background thread for scanning image files in a directory.

    Only scans for filenames - does not load any image data.
    Emits signals for each found image file to build the UI quickly.
    """

    # Signal emitted for each image file found (filename)
    image_found = pyqtSignal(str)

    # Signal emitted when scan is complete (total count)
    finished = pyqtSignal(int)

    def __init__(self, directory: str) -> None:
        """
        Initialize the image scanner.

        Args:
            directory: Directory to scan for images
        """
        super().__init__()
        self.directory = Path(directory)
        self._is_running = True

    def run(self) -> None:
        """Scan directory for image files."""
        count = 0

        try:
            for entry in sorted(self.directory.iterdir()):
                if not self._is_running:
                    logger.info("Image scanning cancelled")
                    break

                if entry.is_file() and entry.suffix.lower() in IMAGE_EXTENSIONS:
                    self.image_found.emit(entry.name)
                    count += 1
        except OSError as e:
            logger.error(f"Error scanning directory {self.directory}: {e}")

        self.finished.emit(count)
        logger.info(f"Image scan complete: {count} images found")

    def stop(self) -> None:
        """Request the scanner to stop."""
        self._is_running = False


class ImageDecoder(QThread):
    """
    Background thread decoding full-resolution images.

    Decodes to QImage, which unlike QPixmap is safe to create off the
    GUI thread. A failed decode is reported and logged, never raised.
    """

    # Signal emitted when an image is decoded (path, image)
    image_decoded = pyqtSignal(str, QImage)

    # Signal emitted when an image cannot be decoded (path)
    image_failed = pyqtSignal(str)

    def __init__(self, paths: Sequence[str]) -> None:
        """
        Initialize the decoder.

        Args:
            paths: Image file paths, decoded in order
        """
        super().__init__()
        self.paths: List[str] = list(paths)
        self._is_running = True

    def run(self) -> None:
        """Decode each requested image."""
        for path in self.paths:
            if not self._is_running:
                logger.debug("Image decoding cancelled")
                break

            image = QImage(path)
            if image.isNull():
                logger.warning(f"Failed to load image: {path}")
                self.image_failed.emit(path)
                continue
            self.image_decoded.emit(path, image)

    def stop(self) -> None:
        """Request the decoder to stop after the current image."""
        self._is_running = False
