"""Tests for detection backends."""

import pytest
import requests

from yolo_inspector.core import detector as detector_module
from yolo_inspector.core.config import AppConfig
from yolo_inspector.core.detector import (
    DetectorConfig,
    HttpDetector,
    YOLODetector,
    create_detector,
    prediction_from_dict,
)
from yolo_inspector.core.errors import DetectionError


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status_code = status
        self.ok = status < 400

    def raise_for_status(self):
        if not self.ok:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "frame.jpg"
    path.write_bytes(b"not really a jpeg")
    return path


class TestPredictionFromDict:
    """Tests for prediction_from_dict."""

    def test_valid_record(self):
        label = prediction_from_dict({"classId": 2, "x": 0.5, "y": 0.4, "w": 0.1, "h": 0.2, "confidence": 0.87})

        assert label.class_id == 2
        assert label.is_predicted
        assert label.confidence == 0.87

    def test_missing_confidence(self):
        label = prediction_from_dict({"classId": "1", "x": "0.5", "y": 0.4, "w": 0.1, "h": 0.2})

        assert label.class_id == 1
        assert label.confidence is None

    def test_missing_field_raises(self):
        with pytest.raises(DetectionError):
            prediction_from_dict({"classId": 1, "x": 0.5})

    @pytest.mark.parametrize("item", [[0, 0.5, 0.5, 0.1, 0.1], None, "0 0.5 0.5 0.1 0.1"])
    def test_non_object_raises(self, item):
        with pytest.raises(DetectionError):
            prediction_from_dict(item)


class TestHttpDetector:
    """Tests for HttpDetector."""

    def test_detect_posts_image_and_parameters(self, monkeypatch, image_file):
        calls = {}

        def fake_post(url, files=None, data=None, timeout=None):
            calls["url"] = url
            calls["file_name"] = files["image"][0]
            calls["data"] = data
            return FakeResponse([{"classId": 0, "x": 0.5, "y": 0.5, "w": 0.2, "h": 0.2, "confidence": 0.9}])

        monkeypatch.setattr(detector_module.requests, "post", fake_post)
        detector = HttpDetector(DetectorConfig(api_url="http://host:5000/", confidence=0.3))

        labels = detector.detect(str(image_file))

        assert calls["url"] == "http://host:5000/predict"
        assert calls["file_name"] == "frame.jpg"
        assert calls["data"]["confidence"] == "0.3"
        assert set(calls["data"]) == {
            "confidence", "iou", "slice_height", "slice_width", "overlap_height", "overlap_width"
        }
        assert len(labels) == 1
        assert labels[0].is_predicted

    def test_http_error_raises(self, monkeypatch, image_file):
        monkeypatch.setattr(detector_module.requests, "post", lambda *a, **k: FakeResponse(status=500))

        with pytest.raises(DetectionError):
            HttpDetector().detect(str(image_file))

    def test_connection_error_raises(self, monkeypatch, image_file):
        def refuse(*args, **kwargs):
            raise requests.exceptions.ConnectionError("refused")

        monkeypatch.setattr(detector_module.requests, "post", refuse)

        with pytest.raises(DetectionError):
            HttpDetector().detect(str(image_file))

    def test_invalid_json_raises(self, monkeypatch, image_file):
        monkeypatch.setattr(
            detector_module.requests, "post", lambda *a, **k: FakeResponse(ValueError("bad json"))
        )

        with pytest.raises(DetectionError):
            HttpDetector().detect(str(image_file))

    def test_missing_image_raises(self, tmp_path):
        with pytest.raises(DetectionError):
            HttpDetector().detect(str(tmp_path / "missing.jpg"))

    def test_non_list_payload(self, monkeypatch, image_file):
        monkeypatch.setattr(detector_module.requests, "post", lambda *a, **k: FakeResponse({"error": "x"}))

        assert HttpDetector().detect(str(image_file)) == []

    def test_non_object_records_raise(self, monkeypatch, image_file):
        monkeypatch.setattr(
            detector_module.requests, "post", lambda *a, **k: FakeResponse([[0, 0.5, 0.5, 0.1, 0.1]])
        )

        with pytest.raises(DetectionError):
            HttpDetector().detect(str(image_file))

    def test_health(self, monkeypatch):
        monkeypatch.setattr(detector_module.requests, "get", lambda *a, **k: FakeResponse({"status": "ok"}))

        assert HttpDetector().health()

    def test_health_unreachable(self, monkeypatch):
        def refuse(*args, **kwargs):
            raise requests.exceptions.ConnectTimeout("timeout")

        monkeypatch.setattr(detector_module.requests, "get", refuse)

        assert not HttpDetector().health()


class FakeTensor:
    def __init__(self, values):
        self.values = values

    def tolist(self):
        return self.values


class FakeBox:
    def __init__(self, cls, conf, xywhn):
        self.cls = cls
        self.conf = conf
        self.xywhn = [FakeTensor(xywhn)]


class FakeResult:
    def __init__(self, boxes):
        self.boxes = boxes


class TestYOLODetector:
    """Tests for the local model backend."""

    def test_not_loaded(self):
        detector = YOLODetector()

        assert not detector.health()
        with pytest.raises(DetectionError):
            detector.detect("image.jpg")

    def test_convert_results(self):
        detector = YOLODetector()
        result = FakeResult([
            FakeBox(1, 0.75, [0.5, 0.5, 0.2, 0.1]),
            FakeBox(3, 0.5, [0.1, 0.2, 0.05, 0.05]),
        ])

        labels = detector._convert_results(result)

        assert [label.class_id for label in labels] == [1, 3]
        assert labels[0].confidence == 0.75
        assert all(label.is_predicted for label in labels)

    def test_convert_results_without_boxes(self):
        assert YOLODetector()._convert_results(FakeResult(None)) == []

    def test_model_errors_wrapped(self):
        detector = YOLODetector()

        def broken(*args, **kwargs):
            raise RuntimeError("CUDA out of memory")

        detector.model = broken

        with pytest.raises(DetectionError):
            detector.detect("image.jpg")


def test_create_detector():
    config = DetectorConfig.from_app_config(AppConfig(api_url="http://x", confidence=0.4))

    assert isinstance(create_detector("http", config), HttpDetector)
    assert isinstance(create_detector("local", config), YOLODetector)
    assert config.confidence == 0.4
