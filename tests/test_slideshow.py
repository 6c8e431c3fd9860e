"""Tests for grid paging and the label slideshow."""

from yolo_inspector.core.slideshow import GridSlideshow, page_bounds


class TestPageBounds:
    """Tests for page_bounds."""

    def test_first_page(self):
        assert page_bounds(0, 30, 12) == (0, 0, 12)

    def test_last_partial_page(self):
        assert page_bounds(25, 30, 12) == (2, 24, 30)

    def test_empty(self):
        assert page_bounds(0, 0, 12) == (0, 0, 0)


class TestGridSlideshow:
    """Tests for GridSlideshow."""

    def test_tick_advances_and_wraps(self):
        slideshow = GridSlideshow()

        assert slideshow.tick({0: 2, 1: 3}) == [0, 1]
        assert slideshow.index_for(0) == 1
        slideshow.tick({0: 2, 1: 3})
        assert slideshow.index_for(0) == 0
        assert slideshow.index_for(1) == 2

    def test_tick_skips_single_label_cells(self):
        slideshow = GridSlideshow()

        assert slideshow.tick({0: 1, 1: 0}) == []

    def test_tick_skips_hovered(self):
        slideshow = GridSlideshow()
        slideshow.hovered = 1

        assert slideshow.tick({0: 3, 1: 3}) == [0]
        assert slideshow.index_for(1) == 0

    def test_page_change_resets(self):
        slideshow = GridSlideshow()
        slideshow.set_page(0)
        slideshow.tick({0: 3})

        slideshow.set_page(0)
        assert slideshow.index_for(0) == 1

        slideshow.set_page(1)
        assert slideshow.index_for(0) == 0

    def test_step_wraps_backwards(self):
        slideshow = GridSlideshow()

        assert slideshow.step(4, 3, -1) == 2
        assert slideshow.step(4, 3, 1) == 0

    def test_step_without_labels(self):
        slideshow = GridSlideshow()

        assert slideshow.step(4, 0, 1) == 0
