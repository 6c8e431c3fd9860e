"""YOLO label text format and label file storage."""

from __future__ import annotations

import logging
import math
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .errors import StorageError
from .models import Label

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")

# Fallback class list when no classes file is loaded
DEFAULT_CLASS_COUNT = 80


def _to_float(token: str) -> float:
    """Lenient numeric conversion; unparseable tokens become NaN."""
    try:
        return float(token)
    except ValueError:
        return math.nan


def parse_line(line: str) -> Optional[Label]:
    """
    Parse a single annotation line.

    A line is valid when it has at least five tokens and the first two
    are finite numbers. Extra tokens are ignored.

    Args:
        line: Line from an annotation file

    Returns:
        Label or None if the line is invalid
    """
    parts = line.split()
    if len(parts) < 5:
        return None

    class_value, x, y, w, h = (_to_float(token) for token in parts[:5])
    if not (math.isfinite(class_value) and math.isfinite(x)):
        return None

    return Label(class_id=int(class_value), x=x, y=y, w=w, h=h)


def parse_labels(text: Optional[str]) -> List[Label]:
    """
    Parse YOLO label text.

    Blank and malformed lines are dropped without raising.

    Args:
        text: Label file content

    Returns:
        List of labels in file order
    """
    if not text:
        return []

    labels: List[Label] = []
    for line_num, line in enumerate(_LINE_BREAK.split(text), 1):
        if not line.strip():
            continue
        label = parse_line(line)
        if label is None:
            logger.debug(f"Dropping malformed label line {line_num}: {line!r}")
            continue
        labels.append(label)
    return labels


def format_label(label: Label) -> str:
    """Format a label as `class x y w h` with six decimals."""
    return f"{label.class_id} {label.x:.6f} {label.y:.6f} {label.w:.6f} {label.h:.6f}"


def serialize_labels(labels: List[Label]) -> str:
    """
    Serialize labels to YOLO text.

    Args:
        labels: Labels to write

    Returns:
        One line per label joined by newlines, no trailing newline
    """
    return "\n".join(format_label(label) for label in labels)


def has_annotation(text: Optional[str]) -> bool:
    """Check if label text contains at least one valid label."""
    return bool(parse_labels(text))


class LabelStore:
    """
    Directory-backed label text store.

    Keys are image names without extension; each key maps to
    `<directory>/<key>.txt`. Content is cached after the first read so
    grid views can parse labels without touching the disk again.
    """

    FILE_EXTENSION = ".txt"

    def __init__(self, directory: Optional[Path] = None) -> None:
        """
        Initialize the store.

        Args:
            directory: Labels directory, or None for an in-memory store
        """
        self.directory = Path(directory) if directory is not None else None
        self._cache: Dict[str, str] = {}
        if self.directory is not None:
            self._scan()

    def _scan(self) -> None:
        """Read every label file in the directory."""
        if not self.directory.is_dir():
            logger.warning(f"Labels directory not found: {self.directory}")
            return

        count = 0
        for path in sorted(self.directory.glob(f"*{self.FILE_EXTENSION}")):
            if path.name == "classes.txt":
                continue
            try:
                self._cache[path.stem] = path.read_text(encoding="utf-8")
                count += 1
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"Error reading label file {path}: {e}")
        logger.info(f"Loaded {count} label files from {self.directory}")

    def path_for(self, key: str) -> Optional[Path]:
        """Get the label file path for a key."""
        if self.directory is None:
            return None
        return self.directory / f"{key}{self.FILE_EXTENSION}"

    def keys(self) -> Iterator[str]:
        return iter(list(self._cache))

    def get(self, key: str) -> Optional[str]:
        """
        Get label text for a key.

        Returns:
            File content, or None when the key has no label file
        """
        return self._cache.get(key)

    def set(self, key: str, text: str) -> None:
        """
        Store label text for a key.

        Raises:
            StorageError: If the label file cannot be written
        """
        path = self.path_for(key)
        if path is not None:
            try:
                path.write_text(text, encoding="utf-8")
            except OSError as e:
                raise StorageError(f"Could not write {path}: {e}") from e
            logger.info(f"Saved labels to {path}")
        self._cache[key] = text

    def labels(self, key: str) -> List[Label]:
        """Parse the stored labels for a key."""
        return parse_labels(self.get(key))


def default_class_names(count: int = DEFAULT_CLASS_COUNT) -> List[str]:
    """Placeholder class names used when no classes file is given."""
    return [f"Class {i}" for i in range(count)]


def load_class_names(path: Path) -> List[str]:
    """
    Load class names from a classes.txt or data.yaml file.

    Args:
        path: Path to the classes file

    Returns:
        List of class names indexed by class ID

    Raises:
        StorageError: If the file cannot be read
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise StorageError(f"Could not read classes file {path}: {e}") from e

    if path.suffix.lower() in (".yaml", ".yml"):
        import yaml

        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise StorageError(f"Invalid data.yaml {path}: {e}") from e

        names = data.get("names", []) if isinstance(data, dict) else []
        if isinstance(names, dict):
            # Some data.yaml files use {0: 'cat', 1: 'dog'}
            return [str(names[k]) for k in sorted(names, key=int)]
        return [str(name) for name in names]

    return [line.strip() for line in content.splitlines() if line.strip()]


def save_class_names(path: Path, names: List[str]) -> None:
    """
    Write class names as a classes.txt file.

    Raises:
        StorageError: If the file cannot be written
    """
    try:
        Path(path).write_text("\n".join(names), encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Could not write classes file {path}: {e}") from e
    logger.info(f"Saved {len(names)} classes to {path}")
