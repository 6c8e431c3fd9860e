"""Tests for coordinate conversions and the viewport transform."""

import math

import pytest

from yolo_inspector.core.geometry import (
    Point,
    Rect,
    Size,
    clamp,
    content_to_normalized,
    fit_size,
    normalized_rect_to_screen,
    normalized_to_content,
    normalized_to_pixel,
    pixel_to_normalized,
)
from yolo_inspector.core.viewport import (
    MAGNIFIER_SCALE_BOUNDS,
    MAIN_SCALE_BOUNDS,
    ViewportState,
    qt_wheel_delta,
    wheel_zoom_factor,
)


class TestGeometry:
    """Tests for pure geometry helpers."""

    def test_clamp(self):
        assert clamp(-1, 0, 1) == 0
        assert clamp(2, 0, 1) == 1
        assert clamp(0.5, 0, 1) == 0.5

    def test_fit_size_downscales(self):
        """Large images shrink to fit, keeping aspect ratio."""
        assert fit_size(Size(2000, 1000), Size(1000, 1000)) == Size(1000, 500)

    def test_fit_size_no_upscale(self):
        """Small images keep their size unless upscaling is allowed."""
        assert fit_size(Size(100, 50), Size(1000, 1000)) == Size(100, 50)
        assert fit_size(Size(100, 50), Size(1000, 1000), allow_upscale=True) == Size(1000, 500)

    def test_fit_size_empty(self):
        assert fit_size(Size(0, 0), Size(100, 100)) == Size(0.0, 0.0)

    def test_pixel_conversions(self):
        image = Size(640, 480)

        assert normalized_to_pixel(Point(0.5, 0.25), image) == Point(320, 120)
        assert pixel_to_normalized(Point(320, 120), image) == Point(0.5, 0.25)

    def test_content_is_center_origin(self):
        content = Size(200, 100)

        assert normalized_to_content(Point(0.5, 0.5), content) == Point(0, 0)
        assert normalized_to_content(Point(0, 0), content) == Point(-100, -50)
        assert content_to_normalized(Point(100, 50), content) == Point(1, 1)

    def test_normalized_rect_to_screen(self):
        rect = normalized_rect_to_screen((0.25, 0.75, 0.0, 0.5), Rect(10, 20, 400, 200))

        assert rect == Rect(110, 20, 200, 100)


class TestViewportState:
    """Tests for ViewportState."""

    def test_identity_content_rect(self):
        """The identity transform centers content in the viewport."""
        rect = ViewportState().content_rect(Size(400, 300), Point(500, 400))

        assert rect == Rect(300, 250, 400, 300)

    def test_screen_content_roundtrip(self):
        viewport = ViewportState(scale=2.5, offset_x=30, offset_y=-12)
        center = Point(400, 300)

        screen = viewport.to_screen(Point(17, -40), center)
        back = viewport.to_content(screen, center)

        assert back.x == pytest.approx(17)
        assert back.y == pytest.approx(-40)

    def test_zoom_keeps_point_under_pointer(self):
        """The content point under the pointer stays fixed while zooming."""
        viewport = ViewportState(scale=1.3, offset_x=25, offset_y=-10)
        center = Point(400, 300)
        screen = Point(610, 95)
        pointer = Point(screen.x - center.x, screen.y - center.y)

        before = viewport.to_content(screen, center)
        zoomed = viewport.zoomed_at(pointer, 1.7)
        after = zoomed.to_content(screen, center)

        assert zoomed.scale == pytest.approx(1.3 * 1.7)
        assert after.x == pytest.approx(before.x)
        assert after.y == pytest.approx(before.y)

    def test_zoom_clamped_to_bounds(self):
        """Scale stays within the configured bounds."""
        viewport = ViewportState()

        assert viewport.zoomed_at(Point(0, 0), 1000).scale == MAIN_SCALE_BOUNDS[1]
        assert viewport.zoomed_at(Point(0, 0), 0.0001).scale == MAIN_SCALE_BOUNDS[0]
        assert viewport.zoomed_at(Point(0, 0), 0.5, MAGNIFIER_SCALE_BOUNDS).scale == 1.0

    def test_pan_is_relative_to_anchor(self):
        viewport = ViewportState(scale=2.0)

        panned = viewport.panned(Point(5, 5), Point(100, 100), Point(130, 60))

        assert panned.offset == Point(35, -35)
        assert panned.scale == 2.0

    def test_to_normalized(self):
        """Widget center maps to the image center at identity."""
        point = ViewportState().to_normalized(Point(500, 400), Size(400, 300), Point(500, 400))

        assert point == Point(0.5, 0.5)

    def test_reset(self):
        assert ViewportState(scale=3, offset_x=4, offset_y=5).reset().is_identity


class TestWheel:
    """Tests for wheel delta handling."""

    def test_scroll_down_zooms_out(self):
        assert wheel_zoom_factor(100) < 1
        assert wheel_zoom_factor(-100) > 1
        assert wheel_zoom_factor(0) == 1

    def test_factor_is_exponential(self):
        assert wheel_zoom_factor(100) == pytest.approx(math.exp(-0.15))

    def test_qt_delta(self):
        """One notch up in Qt is a negative delta of 100."""
        assert qt_wheel_delta(120) == pytest.approx(-100)
