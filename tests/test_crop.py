"""Tests for magnifier crop computation."""

import pytest

from yolo_inspector.core.crop import (
    DETAIL_MIN_EXPANSION,
    GRID_MIN_EXPANSION,
    compute_crop_window,
    expansion_factor,
    stroke_width,
)
from yolo_inspector.core.models import Label


class TestExpansionFactor:
    """Tests for expansion_factor."""

    def test_zero_padding(self):
        assert expansion_factor(0) == DETAIL_MIN_EXPANSION
        assert expansion_factor(0, GRID_MIN_EXPANSION) == GRID_MIN_EXPANSION

    def test_full_padding(self):
        assert expansion_factor(100) == pytest.approx(5.2)

    def test_padding_clamped(self):
        assert expansion_factor(250) == expansion_factor(100)
        assert expansion_factor(-10) == expansion_factor(0)


class TestComputeCropWindow:
    """Tests for compute_crop_window."""

    def test_centered_crop(self):
        label = Label(0, 0.5, 0.5, 0.1, 0.2)

        window = compute_crop_window(label, 1000, 500, 2.0)

        assert window.edges == pytest.approx((0.4, 0.6, 0.3, 0.7))
        assert tuple(window.source) == pytest.approx((400, 150, 200, 200))
        assert tuple(window.box) == pytest.approx((50, 50, 100, 100))

    def test_edges_clamped_independently(self):
        """A crop at the left border loses its left part instead of shifting."""
        label = Label(0, 0.02, 0.5, 0.02, 0.02)

        window = compute_crop_window(label, 1000, 1000, 3.0)

        left, right, _, _ = window.edges
        assert left == 0.0
        assert right == pytest.approx(0.05)
        assert window.source.x == 0.0
        assert window.box.x == pytest.approx(10)

    def test_pixel_size_at_least_one(self):
        label = Label(0, 0.5, 0.5, 0.0001, 0.0001)

        window = compute_crop_window(label, 100, 100, 1.2)

        assert window.pixel_size == (1, 1)

    def test_stroke_width(self):
        assert stroke_width(50, 50) == 2.0
        assert stroke_width(500, 1000) == 10.0
        assert compute_crop_window(Label(0, 0.5, 0.5, 0.5, 0.5), 1000, 1000, 2.0).line_width == 20.0


def test_crop_left_edge_at_image_border():
    """A wide crop near the left border starts at the image edge."""
    window = compute_crop_window(Label(0, 0.02, 0.5, 0.1, 0.1), 640, 480, 3.0)

    assert window.edges[0] == 0.0
    assert window.edges[1] == pytest.approx(0.17)
    assert window.edges[2] == pytest.approx(0.35)
