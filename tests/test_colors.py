"""Tests for class colors."""

import pytest

from yolo_inspector.core.colors import (
    GOLDEN_ANGLE,
    class_color,
    class_hue,
    model_color,
)


class TestClassColors:
    """Tests for golden-angle class colors."""

    def test_hue_in_range(self):
        for i in range(200):
            assert 0.0 <= class_hue(i) < 360.0

    def test_first_hues(self):
        assert class_hue(0) == 0.0
        assert class_hue(1) == GOLDEN_ANGLE

    def test_hues_distinct(self):
        """The first thousand classes get distinct hues."""
        hues = {round(class_hue(i), 6) for i in range(1000)}

        assert len(hues) == 1000

    def test_model_color_is_brighter(self):
        """Predictions use a lighter, more saturated tone of the class hue."""
        saved = class_color(3)
        predicted = model_color(3)

        assert predicted.lightnessF() > saved.lightnessF()
        assert predicted.hslSaturationF() > saved.hslSaturationF()

    def test_alpha(self):
        assert class_color(2, 0.25).alphaF() == pytest.approx(0.25, abs=0.01)
