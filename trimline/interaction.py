from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

from .errors import EditFailure, InteractionBusy, NotFound
from .geometry import TimelineGeometry
from .model import Composition, Element
from .timeline import find_element, move_element


EDGE_LEFT = "left"
EDGE_RIGHT = "right"

TOOL_SELECT = "select"
TOOL_SPLIT = "split"
TOOL_MODES = (TOOL_SELECT, TOOL_SPLIT)

MIN_ELEMENT_DURATION_SEC = 0.1


@dataclass(frozen=True)
class SpanSnapshot:
    start_time: float
    duration: float
    trim_start: float
    trim_end: float

    @staticmethod
    def of(e: Element) -> "SpanSnapshot":
        return SpanSnapshot(e.start_time, e.duration, e.trim_start, e.trim_end)


@dataclass(frozen=True)
class ResizeState:
    track_id: str
    element_id: str
    edge: str  # "left" | "right"
    origin_x: float
    origin: SpanSnapshot
    last_x: float = 0.0


@dataclass
class DragState:
    element_id: Optional[str] = None
    track_id: Optional[str] = None
    is_dragging: bool = False
    current_time: float = 0.0
    origin_x: float = 0.0
    origin_start: float = 0.0


@dataclass
class InteractionState:
    """
    The one place transient pointer state lives.

    At most one resize or drag is active at a time; the model never carries
    per-element "resizing"/"dragging" flags.
    """

    tool_mode: str = TOOL_SELECT
    resize: Optional[ResizeState] = None
    drag: DragState = field(default_factory=DragState)

    @property
    def is_busy(self) -> bool:
        return self.resize is not None or self.drag.is_dragging

    def set_tool_mode(self, mode: str) -> None:
        m = str(mode or "").strip().lower()
        if m not in TOOL_MODES:
            raise ValueError(f"Unknown tool mode: {mode}")
        self.tool_mode = m

    def require_idle(self) -> None:
        if self.resize is not None:
            raise InteractionBusy(f"Resize of {self.resize.element_id} is still active")
        if self.drag.is_dragging:
            raise InteractionBusy(f"Drag of {self.drag.element_id} is still active")


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


class ResizeController:
    """
    Idle -> Active(element, edge, origin) -> Idle.

    Every pointer move recomputes the trim from the origin snapshot and writes
    it to the element at once; release keeps the last value.
    """

    def __init__(
        self,
        comp: Composition,
        state: InteractionState,
        geometry: TimelineGeometry,
        min_duration: float = MIN_ELEMENT_DURATION_SEC,
        can_extend: Optional[Callable[[Element], bool]] = None,
    ) -> None:
        self.comp = comp
        self.state = state
        self.geometry = geometry
        self.min_duration = max(0.0, float(min_duration))
        self.can_extend = can_extend or (lambda e: e.is_text)

    @property
    def active(self) -> Optional[ResizeState]:
        return self.state.resize

    def start(self, track_id: str, element_id: str, edge: str, pointer_x: float) -> Optional[EditFailure]:
        """
        Raises:
            InteractionBusy: another resize or drag is in progress
            ValueError: unknown edge
        """
        self.state.require_idle()
        if edge not in (EDGE_LEFT, EDGE_RIGHT):
            raise ValueError(f"Unknown resize edge: {edge}")
        e = find_element(self.comp, track_id, element_id)
        if e is None:
            return NotFound("Element not found", element_id=element_id, track_id=track_id)
        self.state.resize = ResizeState(
            track_id=track_id,
            element_id=element_id,
            edge=edge,
            origin_x=float(pointer_x),
            origin=SpanSnapshot.of(e),
            last_x=float(pointer_x),
        )
        return None

    def pointer_move(self, pointer_x: float) -> Optional[EditFailure]:
        rs = self.state.resize
        if rs is None:
            return None
        e = find_element(self.comp, rs.track_id, rs.element_id)
        if e is None:
            self.state.resize = None
            return NotFound("Element not found", element_id=rs.element_id, track_id=rs.track_id)

        self.state.resize = replace(rs, last_x=float(pointer_x))
        delta = self.geometry.px_to_sec(float(pointer_x) - rs.origin_x)
        o = rs.origin
        if rs.edge == EDGE_LEFT:
            hi = self._trim_ceiling(o.duration, o.trim_end, o.trim_start, EDGE_LEFT)
            return e.set_span(o.duration, _clamp(o.trim_start + delta, 0.0, hi), o.trim_end)

        candidate = o.trim_end - delta
        if candidate < 0.0:
            if self.can_extend(e):
                return e.set_span(o.duration - candidate, o.trim_start, 0.0)
            return e.set_span(o.duration, o.trim_start, 0.0)
        hi = self._trim_ceiling(o.duration, o.trim_start, o.trim_end, EDGE_RIGHT)
        return e.set_span(o.duration, o.trim_start, min(candidate, hi))

    def _trim_ceiling(self, duration: float, other_trim: float, own_trim: float, edge: str) -> float:
        hi = max(0.0, duration - other_trim - self.min_duration)
        if duration - other_trim - own_trim < self.min_duration:
            # Already below the floor: may grow back, never shrink further.
            return max(hi, own_trim)

        def span(trim: float) -> float:
            # Same operand order as Element.effective_duration.
            if edge == EDGE_LEFT:
                return duration - trim - other_trim
            return duration - other_trim - trim

        # Rounding in the subtraction can leave the span a hair under the floor.
        while hi > 0.0 and span(hi) < self.min_duration:
            hi = math.nextafter(hi, 0.0)
        return hi

    def rebase(self, track_id: str, element_id: str) -> None:
        """
        Restart an active resize of this element from its current span.

        Used when the element changes underneath the pointer (e.g. its media was
        replaced); later moves measure from the last pointer position.
        """
        rs = self.state.resize
        if rs is None or rs.track_id != track_id or rs.element_id != element_id:
            return
        e = find_element(self.comp, track_id, element_id)
        if e is None:
            self.state.resize = None
            return
        self.state.resize = replace(rs, origin=SpanSnapshot.of(e), origin_x=rs.last_x)

    def pointer_up(self) -> Optional[str]:
        """Finish the resize. Returns the element id that was resized, if any."""
        rs = self.state.resize
        self.state.resize = None
        return rs.element_id if rs else None

    # Leaving the element's bounds ends the resize exactly like a release.
    pointer_leave = pointer_up


class DragController:
    """
    Horizontal move. The element's stored start only changes on drop;
    until then renderers read `rendered_start`.
    """

    def __init__(self, comp: Composition, state: InteractionState, geometry: TimelineGeometry) -> None:
        self.comp = comp
        self.state = state
        self.geometry = geometry

    def start(self, track_id: str, element_id: str, pointer_x: float) -> Optional[EditFailure]:
        self.state.require_idle()
        e = find_element(self.comp, track_id, element_id)
        if e is None:
            return NotFound("Element not found", element_id=element_id, track_id=track_id)
        self.state.drag = DragState(
            element_id=element_id,
            track_id=track_id,
            is_dragging=True,
            current_time=e.start_time,
            origin_x=float(pointer_x),
            origin_start=e.start_time,
        )
        return None

    def pointer_move(self, pointer_x: float) -> float:
        ds = self.state.drag
        if not ds.is_dragging:
            return ds.current_time
        ds.current_time = max(0.0, ds.origin_start + self.geometry.px_to_sec(float(pointer_x) - ds.origin_x))
        return ds.current_time

    def drop(self) -> Optional[EditFailure]:
        """Commit the last dragged position (also used for releases outside any target)."""
        ds = self.state.drag
        if not ds.is_dragging:
            return None
        self.state.drag = DragState()
        return move_element(self.comp, str(ds.track_id), str(ds.element_id), ds.current_time)

    def rendered_start(self, element: Element) -> float:
        ds = self.state.drag
        if ds.is_dragging and ds.element_id == element.id:
            return ds.current_time
        return element.start_time
