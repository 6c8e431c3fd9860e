"""Pointer interaction state machine for selecting, moving, resizing and creating boxes.

The engine turns a stream of pointer events into effects. It reads the
label collection but never mutates it: edits come back as ``UpdateLabel``
and ``CreateLabel`` effects for the session controller to apply.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .geometry import Point, Rect, Size, clamp, normalized_rect_to_screen
from .models import MIN_BOX_SIZE, Label
from .viewport import MAIN_SCALE_BOUNDS, ViewportState, wheel_zoom_factor

logger = logging.getLogger(__name__)


class Handle(str, Enum):
    """Part of a box grabbed by the pointer."""

    NW = "nw"
    NE = "ne"
    SW = "sw"
    SE = "se"
    N = "n"
    S = "s"
    E = "e"
    W = "w"
    MOVE = "move"

    @property
    def moves_left(self) -> bool:
        return self in (Handle.NW, Handle.SW, Handle.W)

    @property
    def moves_right(self) -> bool:
        return self in (Handle.NE, Handle.SE, Handle.E)

    @property
    def moves_top(self) -> bool:
        return self in (Handle.NW, Handle.NE, Handle.N)

    @property
    def moves_bottom(self) -> bool:
        return self in (Handle.SW, Handle.SE, Handle.S)


CORNER_HANDLES = (Handle.NW, Handle.NE, Handle.SW, Handle.SE)
EDGE_HANDLES = (Handle.N, Handle.S, Handle.E, Handle.W)


class PointerAction(str, Enum):
    PRESS = "press"
    MOVE = "move"
    RELEASE = "release"


@dataclass(frozen=True)
class PointerEvent:
    """A pointer event in screen (widget) coordinates."""

    action: PointerAction
    x: float
    y: float

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)


@dataclass(frozen=True)
class Frame:
    """Screen geometry a gesture is interpreted against."""

    viewport_size: Size
    content_size: Size

    @property
    def center(self) -> Point:
        return Point(self.viewport_size.width / 2, self.viewport_size.height / 2)


@dataclass(frozen=True)
class GhostBox:
    """Provisional box drawn during a create gesture (top-left origin)."""

    x: float
    y: float
    w: float
    h: float

    @classmethod
    def from_corners(cls, anchor: Point, current: Point) -> GhostBox:
        return cls(
            x=min(anchor.x, current.x),
            y=min(anchor.y, current.y),
            w=abs(current.x - anchor.x),
            h=abs(current.y - anchor.y),
        )

    def edges(self) -> Tuple[float, float, float, float]:
        return (self.x, self.x + self.w, self.y, self.y + self.h)

    def to_label(self, class_id: int = 0) -> Optional[Label]:
        """Label for this box, or None for a sub-threshold drag."""
        if self.w <= MIN_BOX_SIZE or self.h <= MIN_BOX_SIZE:
            return None
        return Label(
            class_id=class_id,
            x=self.x + self.w / 2,
            y=self.y + self.h / 2,
            w=self.w,
            h=self.h,
        )


# === Sessions ===

@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Panning:
    start: Point
    start_offset: Point


@dataclass(frozen=True)
class Resizing:
    handle: Handle
    index: int
    anchor: Label
    start: Point


@dataclass(frozen=True)
class Creating:
    anchor: Point
    ghost: GhostBox


Session = Union[Idle, Panning, Resizing, Creating]

IDLE = Idle()


# === Effects ===

@dataclass(frozen=True)
class SelectLabel:
    index: Optional[int]


@dataclass(frozen=True)
class UpdateLabel:
    index: int
    label: Label


@dataclass(frozen=True)
class CreateLabel:
    label: Label


@dataclass(frozen=True)
class ViewportChanged:
    viewport: ViewportState


Effect = Union[SelectLabel, UpdateLabel, CreateLabel, ViewportChanged]


# === Geometry edits ===

def resize_label(anchor: Label, handle: Handle, dx: float, dy: float) -> Label:
    """
    Move the edges grabbed by a handle by a normalized delta.

    Edges not attached to the handle stay fixed. If the box would shrink
    below MIN_BOX_SIZE on an axis, the moving edge is clamped so the size
    is exactly MIN_BOX_SIZE.

    Args:
        anchor: Label at gesture start
        handle: Corner or edge handle
        dx: Normalized horizontal delta
        dy: Normalized vertical delta

    Returns:
        Resized label
    """
    left, right, top, bottom = anchor.edges()

    if handle.moves_left:
        left += dx
    if handle.moves_right:
        right += dx
    if handle.moves_top:
        top += dy
    if handle.moves_bottom:
        bottom += dy

    w = right - left
    if w < MIN_BOX_SIZE:
        w = MIN_BOX_SIZE
        if handle.moves_left:
            left = right - w

    h = bottom - top
    if h < MIN_BOX_SIZE:
        h = MIN_BOX_SIZE
        if handle.moves_top:
            top = bottom - h

    return anchor.with_geometry(left + w / 2, top + h / 2, w, h)


def move_label(anchor: Label, dx: float, dy: float) -> Label:
    """Translate a label, clamping the center to the image on each axis."""
    return anchor.with_geometry(
        clamp(anchor.x + dx, 0.0, 1.0),
        clamp(anchor.y + dy, 0.0, 1.0),
        anchor.w,
        anchor.h,
    )


# === Hit testing ===

@dataclass(frozen=True)
class HitTarget:
    index: int
    handle: Handle


def _handle_at(box: Rect, point: Point, handle_size: float, band: float) -> Optional[Handle]:
    """Corner or edge handle of a selected box under the point."""
    half = handle_size / 2
    corners = (
        (Handle.NW, box.x, box.y),
        (Handle.NE, box.right, box.y),
        (Handle.SW, box.x, box.bottom),
        (Handle.SE, box.right, box.bottom),
    )
    for handle, cx, cy in corners:
        if abs(point.x - cx) <= half and abs(point.y - cy) <= half:
            return handle

    # Edge handles span the middle half of each side
    half_band = band / 2
    in_middle_x = box.x + box.width / 4 <= point.x <= box.x + box.width * 3 / 4
    in_middle_y = box.y + box.height / 4 <= point.y <= box.y + box.height * 3 / 4
    if in_middle_x and abs(point.y - box.y) <= half_band:
        return Handle.N
    if in_middle_x and abs(point.y - box.bottom) <= half_band:
        return Handle.S
    if in_middle_y and abs(point.x - box.x) <= half_band:
        return Handle.W
    if in_middle_y and abs(point.x - box.right) <= half_band:
        return Handle.E
    return None


def _on_border(box: Rect, point: Point, band: float) -> bool:
    half = band / 2
    within_x = box.x - half <= point.x <= box.right + half
    within_y = box.y - half <= point.y <= box.bottom + half
    return (
        (within_x and (abs(point.y - box.y) <= half or abs(point.y - box.bottom) <= half)) or
        (within_y and (abs(point.x - box.x) <= half or abs(point.x - box.right) <= half))
    )


def hit_test(
    labels: Sequence[Label],
    point: Point,
    content_rect: Rect,
    selected_index: Optional[int] = None,
    pending_index: Optional[int] = None,
    show_fill: bool = False,
    visible: Optional[Callable[[Label], bool]] = None,
    handle_size: float = 10.0,
    border_band: float = 15.0
) -> Optional[HitTarget]:
    """
    Find the box part under a screen point.

    The selected label is tested first, then the rest from the topmost
    (last drawn) down. Hit sizes are in screen pixels so they stay
    constant at any zoom level.

    Args:
        labels: Label collection
        point: Screen point
        content_rect: Screen rectangle covered by the image
        selected_index: Currently selected label, offered resize handles
        pending_index: Label awaiting a class, never offered handles or fill
        show_fill: Whether box interiors are grabbable
        visible: Predicate excluding hidden labels
        handle_size: Corner handle square size
        border_band: Width of the grabbable band around borders

    Returns:
        HitTarget or None when the point is over empty canvas
    """
    order = [i for i in reversed(range(len(labels))) if i != selected_index]
    if selected_index is not None and 0 <= selected_index < len(labels):
        order.insert(0, selected_index)

    for index in order:
        label = labels[index]
        if visible is not None and not visible(label):
            continue
        box = normalized_rect_to_screen(label.edges(), content_rect)

        if index == selected_index and index != pending_index:
            handle = _handle_at(box, point, handle_size, border_band)
            if handle is not None:
                return HitTarget(index, handle)

        if _on_border(box, point, border_band):
            return HitTarget(index, Handle.MOVE)

        if show_fill and index != pending_index and box.contains(point):
            return HitTarget(index, Handle.MOVE)

    return None


# === Engine ===

class InteractionEngine:
    """
    Pointer-driven editing state machine for one view.

    Each view owns its engine and therefore its own viewport and gesture
    session; at most one gesture is active per engine.
    """

    HANDLE_SIZE = 10.0
    BORDER_BAND = 15.0

    def __init__(self, scale_bounds: Tuple[float, float] = MAIN_SCALE_BOUNDS) -> None:
        self.scale_bounds = scale_bounds
        self.session: Session = IDLE
        self.viewport = ViewportState()
        self.create_mode = False
        self.show_fill = False
        self.default_class_id = 0

    @property
    def is_active(self) -> bool:
        """True while a gesture is in progress."""
        return not isinstance(self.session, Idle)

    @property
    def ghost_box(self) -> Optional[GhostBox]:
        if isinstance(self.session, Creating):
            return self.session.ghost
        return None

    def content_rect(self, frame: Frame) -> Rect:
        return self.viewport.content_rect(frame.content_size, frame.center)

    def reset(self) -> None:
        """Drop any gesture and return the viewport to identity."""
        self.session = IDLE
        self.viewport = self.viewport.reset()

    def cancel(self) -> None:
        """Abandon the current gesture without emitting anything."""
        if self.is_active:
            logger.debug(f"Gesture cancelled: {type(self.session).__name__}")
        self.session = IDLE

    def handle(
        self,
        event: PointerEvent,
        frame: Frame,
        labels: Sequence[Label],
        selected_index: Optional[int] = None,
        pending_index: Optional[int] = None,
        visible: Optional[Callable[[Label], bool]] = None
    ) -> List[Effect]:
        """
        Feed one pointer event through the state machine.

        Args:
            event: Pointer event in screen coordinates
            frame: Current viewport and content sizes
            labels: Label collection (read only)
            selected_index: Current selection
            pending_index: Label awaiting a class assignment
            visible: Predicate excluding hidden labels from hit testing

        Returns:
            Effects for the caller to apply, in order
        """
        if event.action == PointerAction.PRESS:
            return self._press(event.position, frame, labels, selected_index, pending_index, visible)
        if event.action == PointerAction.MOVE:
            return self._move(event.position, frame)
        return self._release()

    def _press(
        self,
        pos: Point,
        frame: Frame,
        labels: Sequence[Label],
        selected_index: Optional[int],
        pending_index: Optional[int],
        visible: Optional[Callable[[Label], bool]]
    ) -> List[Effect]:
        if self.is_active:
            # A press without a release in between; restart cleanly
            self.cancel()

        if self.create_mode:
            anchor = self.viewport.to_normalized(pos, frame.content_size, frame.center)
            self.session = Creating(anchor=anchor, ghost=GhostBox(anchor.x, anchor.y, 0.0, 0.0))
            return []

        target = hit_test(
            labels,
            pos,
            self.content_rect(frame),
            selected_index=selected_index,
            pending_index=pending_index,
            show_fill=self.show_fill,
            visible=visible,
            handle_size=self.HANDLE_SIZE,
            border_band=self.BORDER_BAND,
        )

        if target is None:
            self.session = Panning(start=pos, start_offset=self.viewport.offset)
            return [SelectLabel(None)]

        self.session = Resizing(
            handle=target.handle,
            index=target.index,
            anchor=labels[target.index],
            start=pos,
        )
        return [SelectLabel(target.index)]

    def _move(self, pos: Point, frame: Frame) -> List[Effect]:
        session = self.session

        if isinstance(session, Panning):
            self.viewport = self.viewport.panned(session.start_offset, session.start, pos)
            return [ViewportChanged(self.viewport)]

        if isinstance(session, Resizing):
            rendered = self.content_rect(frame)
            if rendered.width <= 0 or rendered.height <= 0:
                return []
            dx = (pos.x - session.start.x) / rendered.width
            dy = (pos.y - session.start.y) / rendered.height
            if session.handle == Handle.MOVE:
                label = move_label(session.anchor, dx, dy)
            else:
                label = resize_label(session.anchor, session.handle, dx, dy)
            return [UpdateLabel(session.index, label)]

        if isinstance(session, Creating):
            current = self.viewport.to_normalized(pos, frame.content_size, frame.center)
            self.session = Creating(
                anchor=session.anchor,
                ghost=GhostBox.from_corners(session.anchor, current),
            )
            return []

        return []

    def _release(self) -> List[Effect]:
        session = self.session
        self.session = IDLE

        if isinstance(session, Creating):
            label = session.ghost.to_label(self.default_class_id)
            if label is None:
                logger.debug("Create gesture below minimum size, ignored")
                return []
            return [CreateLabel(label)]
        return []

    def zoom(self, screen_point: Point, delta: float, frame: Frame) -> ViewportChanged:
        """
        Zoom around a screen point by a wheel delta.

        Args:
            screen_point: Pointer position in widget coordinates
            delta: Wheel delta, positive zooms out
            frame: Current viewport geometry

        Returns:
            Effect carrying the new viewport
        """
        pointer = Point(screen_point.x - frame.center.x, screen_point.y - frame.center.y)
        self.viewport = self.viewport.zoomed_at(pointer, wheel_zoom_factor(delta), self.scale_bounds)
        return ViewportChanged(self.viewport)
