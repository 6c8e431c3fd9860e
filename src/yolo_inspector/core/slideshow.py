"""Grid paging and per-cell label slideshow state."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


def page_bounds(current_index: int, total: int, per_page: int) -> Tuple[int, int, int]:
    """
    Page containing an image index.

    Args:
        current_index: Selected image index
        total: Number of images
        per_page: Grid cells per page (rows * cols)

    Returns:
        Tuple of (page, start, end) with end exclusive
    """
    per_page = max(1, per_page)
    page = max(0, current_index) // per_page
    start = page * per_page
    return page, start, min(start + per_page, total)


class GridSlideshow:
    """
    Which label each grid cell is showing.

    Cells are keyed by image index. A tick advances every cell except the
    hovered one; cells with fewer than two labels stay put.
    """

    def __init__(self) -> None:
        self.active: Dict[int, int] = {}
        self.hovered: Optional[int] = None
        self.page: Optional[int] = None

    def set_page(self, page: int) -> None:
        """Switch page, resetting every cell to its first label."""
        if page != self.page:
            self.active.clear()
            self.page = page

    def index_for(self, image_index: int) -> int:
        return self.active.get(image_index, 0)

    def tick(self, counts: Mapping[int, int]) -> List[int]:
        """
        Advance all unhovered cells by one label.

        Args:
            counts: Number of labels per image index on the current page

        Returns:
            Image indices whose active label changed
        """
        changed = []
        for image_index, total in counts.items():
            if image_index == self.hovered or total <= 1:
                continue
            self.active[image_index] = (self.index_for(image_index) + 1) % total
            changed.append(image_index)
        return changed

    def step(self, image_index: int, total: int, direction: int) -> int:
        """
        Manually move a cell forward or backward, wrapping.

        Returns:
            The cell's new active label index
        """
        if total <= 0:
            self.active.pop(image_index, None)
            return 0
        new_index = (self.index_for(image_index) + direction) % total
        self.active[image_index] = new_index
        return new_index

    def reset(self) -> None:
        self.active.clear()
        self.hovered = None
        self.page = None
