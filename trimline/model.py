from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Optional, Tuple, Union
import uuid

from .errors import ValidationError


TRACK_VIDEO = "video"
TRACK_AUDIO = "audio"
TRACK_TEXT = "text"
TRACK_TYPES = (TRACK_VIDEO, TRACK_AUDIO, TRACK_TEXT)


def new_id() -> str:
    """Generate a unique id for elements and tracks."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class MediaContent:
    media_id: str


@dataclass(frozen=True)
class TextContent:
    content: str


ElementKind = Union[MediaContent, TextContent]


def check_span(duration: float, trim_start: float, trim_end: float) -> Optional[ValidationError]:
    """Validate a (duration, trim_start, trim_end) triple; None when valid."""
    if duration <= 0.0:
        return ValidationError("Duration must be greater than zero", field="duration")
    if trim_start < 0.0:
        return ValidationError("Trim start must not be negative", field="trim_start")
    if trim_end < 0.0:
        return ValidationError("Trim end must not be negative", field="trim_end")
    if duration - trim_start - trim_end <= 0.0:
        return ValidationError("Trim would collapse the element to zero length", field="trim")
    return None


@dataclass
class Element:
    """
    A positioned unit on a track.

    Attributes:
        start_time: timeline offset (seconds) of the element's left edge
        duration: full length of the underlying source (seconds)
        trim_start/trim_end: seconds cut from the head/tail of the source
    """

    id: str
    name: str
    kind: ElementKind
    start_time: float
    duration: float
    trim_start: float = 0.0
    trim_end: float = 0.0
    hidden: bool = False

    @property
    def effective_duration(self) -> float:
        return self.duration - self.trim_start - self.trim_end

    @property
    def effective_end(self) -> float:
        return self.start_time + self.effective_duration

    @property
    def is_media(self) -> bool:
        return isinstance(self.kind, MediaContent)

    @property
    def is_text(self) -> bool:
        return isinstance(self.kind, TextContent)

    @property
    def media_id(self) -> Optional[str]:
        if isinstance(self.kind, MediaContent):
            return self.kind.media_id
        return None

    def contains_strictly(self, t: float) -> bool:
        """True when `t` lies strictly inside (start_time, effective_end)."""
        return self.start_time < float(t) < self.effective_end

    # ----- validating setters: return None on success, ValidationError otherwise -----

    def set_trim_start(self, value: float) -> Optional[ValidationError]:
        return self.set_span(self.duration, float(value), self.trim_end)

    def set_trim_end(self, value: float) -> Optional[ValidationError]:
        return self.set_span(self.duration, self.trim_start, float(value))

    def set_duration(self, value: float) -> Optional[ValidationError]:
        return self.set_span(float(value), self.trim_start, self.trim_end)

    def set_span(self, duration: float, trim_start: float, trim_end: float) -> Optional[ValidationError]:
        err = check_span(duration, trim_start, trim_end)
        if err is not None:
            return err
        self.duration = float(duration)
        self.trim_start = float(trim_start)
        self.trim_end = float(trim_end)
        return None

    def set_start_time(self, value: float) -> Optional[ValidationError]:
        v = float(value)
        if v < 0.0:
            return ValidationError("Start time must not be negative", field="start_time")
        self.start_time = v
        return None

    def set_hidden(self, value: bool) -> Optional[ValidationError]:
        self.hidden = bool(value)
        return None

    def copy_with(self, **changes) -> "Element":
        return replace(self, **changes)


def kind_allowed_on(kind: ElementKind, track_type: str) -> bool:
    if isinstance(kind, TextContent):
        return track_type == TRACK_TEXT
    if isinstance(kind, MediaContent):
        return track_type in (TRACK_VIDEO, TRACK_AUDIO)
    return False


@dataclass
class Track:
    id: str
    name: str
    type: str  # "video" | "audio" | "text"
    elements: List[Element] = field(default_factory=list)

    def find(self, element_id: str) -> Optional[Element]:
        for e in self.elements:
            if e.id == element_id:
                return e
        return None

    def index_of(self, element_id: str) -> int:
        for i, e in enumerate(self.elements):
            if e.id == element_id:
                return i
        return -1

    def insert(self, element: Element) -> Optional[ValidationError]:
        """Insert keeping the list ordered by start time (stable for equal starts)."""
        if not kind_allowed_on(element.kind, self.type):
            label = "Text" if element.is_text else "Media"
            return ValidationError(f"{label} elements cannot be placed on a {self.type} track", field="kind")
        if self.find(element.id) is not None:
            return ValidationError(f"Element {element.id} is already on this track", field="id")
        err = check_span(element.duration, element.trim_start, element.trim_end)
        if err is not None:
            return err
        if element.start_time < 0.0:
            return ValidationError("Start time must not be negative", field="start_time")

        idx = len(self.elements)
        for i, e in enumerate(self.elements):
            if e.start_time > element.start_time:
                idx = i
                break
        self.elements.insert(idx, element)
        return None

    def remove(self, element_id: str) -> Optional[Element]:
        idx = self.index_of(element_id)
        if idx < 0:
            return None
        return self.elements.pop(idx)

    def elements_ordered_by_start(self) -> List[Element]:
        return sorted(self.elements, key=lambda e: e.start_time)

    def end_time(self) -> float:
        if not self.elements:
            return 0.0
        return max(e.effective_end for e in self.elements)


class Composition:
    """
    Explicit owner of every track and element.

    Tracks and elements are only reachable through this object; element ids
    are unique across all tracks.
    """

    def __init__(self, tracks: Optional[List[Track]] = None) -> None:
        self.tracks: List[Track] = list(tracks or [])

    def get_track(self, track_id: str) -> Optional[Track]:
        tid = str(track_id or "")
        for t in self.tracks:
            if t.id == tid:
                return t
        return None

    def tracks_of_type(self, track_type: str) -> List[Track]:
        return [t for t in self.tracks if t.type == track_type]

    def add_track(self, track_type: str, name: Optional[str] = None) -> Track:
        k = str(track_type or "").strip().lower()
        if k not in TRACK_TYPES:
            k = TRACK_VIDEO
        prefix = {TRACK_VIDEO: "V", TRACK_AUDIO: "A", TRACK_TEXT: "T"}[k]
        idx = 1
        existing = {str(t.name).upper() for t in self.tracks}
        while f"{prefix}{idx}" in existing:
            idx += 1
        t = Track(id=f"{prefix.lower()}{idx}_{new_id()[:8]}", name=str(name or f"{prefix}{idx}"), type=k)
        self.tracks.append(t)
        return t

    def iter_elements(self) -> Iterator[Tuple[Track, Element]]:
        for t in self.tracks:
            for e in t.elements:
                yield t, e

    def find_element(self, element_id: str) -> Optional[Tuple[Track, Element]]:
        for t, e in self.iter_elements():
            if e.id == element_id:
                return t, e
        return None

    def element_ids(self) -> List[str]:
        return [e.id for _t, e in self.iter_elements()]

    def mint_id(self) -> str:
        taken = set(self.element_ids())
        eid = new_id()
        while eid in taken:
            eid = new_id()
        return eid

    def snapshot(self) -> Dict[str, List[Tuple[str, float, float, float, float, bool]]]:
        """Comparable view of every element's timing fields, keyed by track id."""
        return {
            t.id: [(e.id, e.start_time, e.duration, e.trim_start, e.trim_end, e.hidden) for e in t.elements]
            for t in self.tracks
        }
