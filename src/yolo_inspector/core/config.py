"""Configuration management for YOLO Inspector."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# Default configuration file path
DEFAULT_CONFIG_PATH = Path("config.yaml")


@dataclass
class AppConfig:
    """
    Application configuration settings.

    Stores dataset locations, view preferences and detector settings.
    """

    images_directory: str = ""
    labels_directory: str = ""
    classes_file: str = ""
    context_padding: int = 30  # Detail magnifier context, percent (0-100)
    grid_rows: int = 3
    grid_cols: int = 4
    grid_mode: str = "normal"  # normal or zoom
    grid_context_padding: int = 30
    grid_magnification: float = 1.0
    slideshow_interval_ms: int = 2000
    slideshow_playing: bool = True
    show_box_fill: bool = False
    labels_visible: bool = True
    model_labels_visible: bool = True
    detector_backend: str = "http"  # http or local
    api_url: str = "http://localhost:5000"
    model_path: str = ""
    confidence: float = 0.25
    iou: float = 0.45
    slice_width: int = 640
    slice_height: int = 640
    overlap_width: float = 0.0
    overlap_height: float = 0.0
    batch_size: int = 50
    line_thickness: int = 2
    font_size: int = 10
    max_recent_paths: int = 10  # Number of recent paths to remember (0-20, 0 = disabled)
    recent_paths: list[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {
            "imagesDirectory": self.images_directory,
            "labelsDirectory": self.labels_directory,
            "classesFile": self.classes_file,
            "contextPadding": self.context_padding,
            "gridRows": self.grid_rows,
            "gridCols": self.grid_cols,
            "gridMode": self.grid_mode,
            "gridContextPadding": self.grid_context_padding,
            "gridMagnification": self.grid_magnification,
            "slideshowIntervalMs": self.slideshow_interval_ms,
            "slideshowPlaying": self.slideshow_playing,
            "showBoxFill": self.show_box_fill,
            "labelsVisible": self.labels_visible,
            "modelLabelsVisible": self.model_labels_visible,
            "detectorBackend": self.detector_backend,
            "apiUrl": self.api_url,
            "modelPath": self.model_path,
            "confidence": self.confidence,
            "iou": self.iou,
            "sliceWidth": self.slice_width,
            "sliceHeight": self.slice_height,
            "overlapWidth": self.overlap_width,
            "overlapHeight": self.overlap_height,
            "batchSize": self.batch_size,
            "lineThickness": self.line_thickness,
            "fontSize": self.font_size,
            "maxRecentPaths": self.max_recent_paths,
            "recentPaths": self.recent_paths,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AppConfig:
        """Create config from dictionary."""
        return cls(
            images_directory=data.get("imagesDirectory", ""),
            labels_directory=data.get("labelsDirectory", ""),
            classes_file=data.get("classesFile", ""),
            context_padding=data.get("contextPadding", 30),
            grid_rows=data.get("gridRows", 3),
            grid_cols=data.get("gridCols", 4),
            grid_mode=data.get("gridMode", "normal"),
            grid_context_padding=data.get("gridContextPadding", 30),
            grid_magnification=data.get("gridMagnification", 1.0),
            slideshow_interval_ms=data.get("slideshowIntervalMs", 2000),
            slideshow_playing=data.get("slideshowPlaying", True),
            show_box_fill=data.get("showBoxFill", False),
            labels_visible=data.get("labelsVisible", True),
            model_labels_visible=data.get("modelLabelsVisible", True),
            detector_backend=data.get("detectorBackend", "http"),
            api_url=data.get("apiUrl", "http://localhost:5000"),
            model_path=data.get("modelPath", ""),
            confidence=data.get("confidence", 0.25),
            iou=data.get("iou", 0.45),
            slice_width=data.get("sliceWidth", 640),
            slice_height=data.get("sliceHeight", 640),
            overlap_width=data.get("overlapWidth", 0.0),
            overlap_height=data.get("overlapHeight", 0.0),
            batch_size=data.get("batchSize", 50),
            line_thickness=data.get("lineThickness", 2),
            font_size=data.get("fontSize", 10),
            max_recent_paths=data.get("maxRecentPaths", 10),
            recent_paths=data.get("recentPaths", []),
        )

    def add_recent_path(self, path: str) -> None:
        """Move a path to the front of the recent list, trimming to the limit."""
        if self.max_recent_paths <= 0:
            self.recent_paths = []
            return
        paths = [p for p in self.recent_paths if p != path]
        paths.insert(0, path)
        self.recent_paths = paths[:self.max_recent_paths]


class ConfigManager:
    """
    Manager for loading and saving application configuration.

    Handles YAML serialization and provides a clean interface
    for configuration access.
    """

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Optional[AppConfig] = None

    @property
    def config(self) -> AppConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self) -> AppConfig:
        """
        Load configuration from file.

        Returns:
            AppConfig instance with loaded or default values
        """
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            return AppConfig()

        try:
            with open(self.config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                logger.error(f"Config file {self.config_path} is not a mapping, using defaults")
                return AppConfig()
            logger.info(f"Loaded configuration from {self.config_path}")
            return AppConfig.from_dict(data)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing config file: {e}")
            return AppConfig()
        except OSError as e:
            logger.error(f"Error loading config: {e}")
            return AppConfig()

    def save(self, config: Optional[AppConfig] = None) -> bool:
        """
        Save configuration to file.

        Args:
            config: Configuration to save, or use current config

        Returns:
            True if save was successful
        """
        if config is not None:
            self._config = config

        if self._config is None:
            logger.warning("No configuration to save")
            return False

        try:
            with open(self.config_path, "w") as f:
                yaml.dump(self._config.to_dict(), f, default_flow_style=False)
            logger.info(f"Saved configuration to {self.config_path}")
            return True
        except OSError as e:
            logger.error(f"Error saving config: {e}")
            return False

    def update(self, **kwargs: Any) -> None:
        """
        Update configuration with new values.

        Args:
            **kwargs: Key-value pairs to update
        """
        config = self.config
        for key, value in kwargs.items():
            if hasattr(config, key):
                setattr(config, key, value)
            else:
                logger.warning(f"Unknown config key: {key}")
        self.save()
