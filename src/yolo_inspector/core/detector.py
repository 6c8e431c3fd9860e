"""Object detection backends producing predicted labels."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
import torch

from .config import AppConfig
from .errors import DetectionError
from .models import Label

logger = logging.getLogger(__name__)

HEALTH_TIMEOUT = 5
PREDICT_TIMEOUT = 60


@dataclass
class DetectorConfig:
    """Inference parameters shared by all detector backends."""

    api_url: str = "http://localhost:5000"
    model_path: str = ""
    confidence: float = 0.25
    iou: float = 0.45
    slice_width: int = 640
    slice_height: int = 640
    overlap_width: float = 0.0
    overlap_height: float = 0.0

    @classmethod
    def from_app_config(cls, config: AppConfig) -> DetectorConfig:
        return cls(
            api_url=config.api_url,
            model_path=config.model_path,
            confidence=config.confidence,
            iou=config.iou,
            slice_width=config.slice_width,
            slice_height=config.slice_height,
            overlap_width=config.overlap_width,
            overlap_height=config.overlap_height,
        )


def prediction_from_dict(item: Dict[str, Any]) -> Label:
    """
    Convert one detection record to a predicted label.

    Args:
        item: Mapping with classId, x, y, w, h and optional confidence

    Returns:
        Label flagged as predicted

    Raises:
        DetectionError: If the record is not an object, or a required
            field is missing or not numeric
    """
    if not isinstance(item, dict):
        raise DetectionError(f"Detection record is not an object: {item!r}")
    try:
        confidence = item.get("confidence")
        return Label(
            class_id=int(float(item["classId"])),
            x=float(item["x"]),
            y=float(item["y"]),
            w=float(item["w"]),
            h=float(item["h"]),
            is_predicted=True,
            confidence=float(confidence) if confidence else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DetectionError(f"Malformed detection record {item!r}: {e}") from e


class HttpDetector:
    """
    Client for a remote detection service.

    The service exposes ``GET /health`` and ``POST /predict``; the latter
    takes the image plus threshold and slicing parameters as multipart
    form fields and answers with a JSON list of normalized boxes.
    """

    def __init__(self, config: Optional[DetectorConfig] = None) -> None:
        self.config = config or DetectorConfig()

    @property
    def base_url(self) -> str:
        return self.config.api_url.rstrip("/")

    def health(self) -> bool:
        """Check if the service is reachable and healthy."""
        try:
            response = requests.get(f"{self.base_url}/health", timeout=HEALTH_TIMEOUT)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Detection service health check failed: {e}")
            return False
        return response.ok

    def _form_fields(self) -> Dict[str, str]:
        return {
            "confidence": str(self.config.confidence),
            "iou": str(self.config.iou),
            "slice_height": str(self.config.slice_height),
            "slice_width": str(self.config.slice_width),
            "overlap_height": str(self.config.overlap_height),
            "overlap_width": str(self.config.overlap_width),
        }

    def detect(self, image_path: str) -> List[Label]:
        """
        Send an image to the service.

        Args:
            image_path: Path to the image file

        Returns:
            Predicted labels

        Raises:
            DetectionError: On connection, HTTP or payload errors
        """
        path = Path(image_path)
        url = f"{self.base_url}/predict"
        try:
            with open(path, "rb") as f:
                response = requests.post(
                    url,
                    files={"image": (path.name, f)},
                    data=self._form_fields(),
                    timeout=PREDICT_TIMEOUT,
                )
            response.raise_for_status()
            data = response.json()
        except OSError as e:
            raise DetectionError(f"Could not read image {path}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise DetectionError(f"Detection request failed: {e}") from e
        except ValueError as e:
            raise DetectionError(f"Invalid JSON from {url}: {e}") from e

        if not isinstance(data, list):
            logger.warning(f"Unexpected detection payload type: {type(data).__name__}")
            return []

        labels = [prediction_from_dict(item) for item in data]
        logger.info(f"Detected {len(labels)} objects in {path.name}")
        return labels


class YOLODetector:
    """
    Wrapper for Ultralytics YOLO object detection.

    Runs a local model and converts its boxes to normalized
    predicted labels.
    """

    def __init__(self, config: Optional[DetectorConfig] = None) -> None:
        """
        Initialize the YOLO detector.

        Args:
            config: Detector settings; the model is loaded from model_path
        """
        self.config = config or DetectorConfig()
        self.device = "cuda" if torch.cuda.is_available() else "cpu"
        self.model: Optional[Any] = None
        self.model_path: Optional[str] = None

        if self.config.model_path:
            self.load_model(self.config.model_path)

    @property
    def is_loaded(self) -> bool:
        """Check if a model is loaded."""
        return self.model is not None

    def health(self) -> bool:
        return self.is_loaded

    def load_model(self, model_path: str) -> bool:
        """
        Load a YOLO model from file.

        Args:
            model_path: Path to the model file

        Returns:
            True if model loaded successfully
        """
        try:
            from ultralytics import YOLO

            self.model = YOLO(model_path)
            self.model.to(self.device)
            self.model_path = model_path

            logger.info(f"Loaded YOLO model from {model_path} on {self.device}")
            return True

        except ImportError:
            logger.error("ultralytics package not installed")
            return False
        except Exception as e:
            logger.error(f"Error loading YOLO model: {e}")
            self.model = None
            self.model_path = None
            return False

    def detect(self, image_path: str) -> List[Label]:
        """
        Run object detection on an image.

        Args:
            image_path: Path to the image file

        Returns:
            Predicted labels

        Raises:
            DetectionError: If no model is loaded or inference fails
        """
        if not self.is_loaded:
            raise DetectionError("No model loaded")

        try:
            results = self.model(
                image_path,
                conf=self.config.confidence,
                iou=self.config.iou,
                verbose=False
            )
        except Exception as e:
            raise DetectionError(f"Detection failed: {e}") from e

        if not results:
            return []
        return self._convert_results(results[0])

    def _convert_results(self, result: Any) -> List[Label]:
        """
        Convert a YOLO result to predicted labels.

        Args:
            result: Single YOLO result object

        Returns:
            List of labels
        """
        labels: List[Label] = []

        if getattr(result, "boxes", None) is None:
            return labels

        for box in result.boxes:
            try:
                x, y, w, h = box.xywhn[0].tolist()
                labels.append(Label(
                    class_id=int(box.cls),
                    x=x,
                    y=y,
                    w=w,
                    h=h,
                    is_predicted=True,
                    confidence=float(box.conf),
                ))
            except (AttributeError, IndexError, TypeError, ValueError) as e:
                logger.warning(f"Error processing box detection: {e}")

        logger.info(f"Detected {len(labels)} objects")
        return labels


def create_detector(backend: str, config: DetectorConfig):
    """
    Build the detector for a backend name.

    Args:
        backend: "http" or "local"
        config: Detector settings

    Returns:
        HttpDetector or YOLODetector
    """
    if backend == "local":
        return YOLODetector(config)
    return HttpDetector(config)
