from __future__ import annotations

from typing import Dict, Optional, Tuple, Union

from .errors import (
    SPLIT_NOT_FOUND,
    SPLIT_OUTSIDE,
    EditFailure,
    NotApplicable,
    NotFound,
    SplitFailed,
    StaleTargetError,
    ValidationError,
)
from .media import MEDIA_VIDEO, MediaItem, media_fits_track
from .model import TRACK_AUDIO, Composition, Element, MediaContent, Track, check_span


DUPLICATE_GAP_SEC = 0.1
COPY_SUFFIX = " (copy)"

# Float slack when comparing timeline positions produced by arithmetic.
EPS = 1e-9


def _locate(comp: Composition, track_id: str, element_id: str) -> Union[Tuple[Track, Element], NotFound]:
    track = comp.get_track(track_id)
    if track is None:
        return NotFound("Track not found", element_id=element_id, track_id=track_id)
    element = track.find(element_id)
    if element is None:
        return NotFound("Element not found", element_id=element_id, track_id=track_id)
    return track, element


def find_element(comp: Composition, track_id: str, element_id: str) -> Optional[Element]:
    found = _locate(comp, track_id, element_id)
    if isinstance(found, NotFound):
        return None
    return found[1]


def _insert_unique(comp: Composition, track: Track, element: Element) -> Optional[ValidationError]:
    # Track.insert only sees its own lane; ids are unique composition-wide.
    if comp.find_element(element.id) is not None:
        return ValidationError(f"Element id {element.id} is already in use", field="id")
    return track.insert(element)


def add_element(comp: Composition, track_id: str, element: Element) -> Optional[EditFailure]:
    """Place a new element; ids must be unique across the whole composition."""
    track = comp.get_track(track_id)
    if track is None:
        return NotFound("Track not found", element_id=element.id, track_id=track_id)
    return _insert_unique(comp, track, element)


def split_element(comp: Composition, track_id: str, element_id: str, at_time: float) -> Union[str, SplitFailed]:
    """
    Cut an element in two at a timeline time.

    Both pieces get fresh ids; the left piece takes the original's slot.
    The sum of the pieces' effective durations equals the original's.

    Returns:
        id of the trailing (right) piece, or SplitFailed
    """
    found = _locate(comp, track_id, element_id)
    if isinstance(found, NotFound):
        return SplitFailed(found.message, reason=SPLIT_NOT_FOUND)
    track, e = found

    t = float(at_time)
    if not e.contains_strictly(t):
        return SplitFailed("Split point must be inside the element", reason=SPLIT_OUTSIDE)

    rel = t - e.start_time
    left = e.copy_with(id=comp.mint_id(), trim_end=e.trim_end + (e.effective_duration - rel))
    right = e.copy_with(id=comp.mint_id(), start_time=t, trim_start=e.trim_start + rel)
    for piece in (left, right):
        if check_span(piece.duration, piece.trim_start, piece.trim_end) is not None:
            return SplitFailed("Split would produce an empty piece", reason=SPLIT_OUTSIDE)

    idx = track.index_of(e.id)
    track.elements[idx : idx + 1] = [left, right]
    return right.id


def split_and_keep_left(comp: Composition, track_id: str, element_id: str, at_time: float) -> Union[str, SplitFailed]:
    """Drop everything right of `at_time`; the element keeps its id."""
    found = _locate(comp, track_id, element_id)
    if isinstance(found, NotFound):
        return SplitFailed(found.message, reason=SPLIT_NOT_FOUND)
    _track, e = found
    t = float(at_time)
    if not e.contains_strictly(t):
        return SplitFailed("Split point must be inside the element", reason=SPLIT_OUTSIDE)

    err = e.set_trim_end(e.trim_end + (e.effective_end - t))
    if err is not None:
        return SplitFailed(err.message, reason=SPLIT_OUTSIDE)
    return e.id


def split_and_keep_right(comp: Composition, track_id: str, element_id: str, at_time: float) -> Union[str, SplitFailed]:
    """Drop everything left of `at_time`; the kept part starts at `at_time`."""
    found = _locate(comp, track_id, element_id)
    if isinstance(found, NotFound):
        return SplitFailed(found.message, reason=SPLIT_NOT_FOUND)
    track, e = found
    t = float(at_time)
    if not e.contains_strictly(t):
        return SplitFailed("Split point must be inside the element", reason=SPLIT_OUTSIDE)

    err = e.set_trim_start(e.trim_start + (t - e.start_time))
    if err is not None:
        return SplitFailed(err.message, reason=SPLIT_OUTSIDE)
    e.start_time = t
    track.elements.sort(key=lambda x: x.start_time)
    return e.id


def duplicate_element(
    comp: Composition,
    track_id: str,
    element_id: str,
    gap_sec: float = DUPLICATE_GAP_SEC,
) -> Union[str, EditFailure]:
    """Copy an element and place it right after the source's effective end."""
    found = _locate(comp, track_id, element_id)
    if isinstance(found, NotFound):
        return found
    track, e = found

    dup = e.copy_with(
        id=comp.mint_id(),
        name=e.name + COPY_SUFFIX,
        start_time=e.effective_end + max(0.0, float(gap_sec)),
    )
    err = _insert_unique(comp, track, dup)
    if err is not None:
        return err
    return dup.id


def ripple_shifts(track: Track, removed: Element) -> Dict[str, float]:
    """New start times for elements that follow `removed` on its track."""
    threshold = removed.effective_end - EPS
    delta = removed.effective_duration
    out: Dict[str, float] = {}
    for e in track.elements:
        if e.id == removed.id:
            continue
        if e.start_time >= threshold:
            out[e.id] = max(0.0, e.start_time - delta)
    return out


def delete_element(comp: Composition, track_id: str, element_id: str, ripple: bool = False) -> Union[Element, NotFound]:
    """
    Remove an element.

    With `ripple`, every later element on the same track moves left by the
    removed element's effective duration. Shifts are computed before anything
    is mutated and then applied together.

    Returns:
        the removed element, or NotFound
    """
    found = _locate(comp, track_id, element_id)
    if isinstance(found, NotFound):
        return found
    track, e = found

    shifts = ripple_shifts(track, e) if ripple else {}
    track.remove(e.id)
    for other in track.elements:
        if other.id in shifts:
            other.start_time = shifts[other.id]
    if shifts:
        track.elements.sort(key=lambda x: x.start_time)
    return e


def toggle_hidden(comp: Composition, track_id: str, element_id: str) -> Union[bool, NotFound]:
    """Flip visibility/mute. Returns the new `hidden` value."""
    found = _locate(comp, track_id, element_id)
    if isinstance(found, NotFound):
        return found
    _track, e = found
    e.set_hidden(not e.hidden)
    return e.hidden


def update_element_trim(
    comp: Composition,
    track_id: str,
    element_id: str,
    trim_start: float,
    trim_end: float,
) -> Optional[EditFailure]:
    found = _locate(comp, track_id, element_id)
    if isinstance(found, NotFound):
        return found
    _track, e = found
    return e.set_span(e.duration, float(trim_start), float(trim_end))


def update_element_duration(comp: Composition, track_id: str, element_id: str, duration: float) -> Optional[EditFailure]:
    found = _locate(comp, track_id, element_id)
    if isinstance(found, NotFound):
        return found
    _track, e = found
    return e.set_duration(float(duration))


def move_element(comp: Composition, track_id: str, element_id: str, start_time: float) -> Optional[EditFailure]:
    """Commit a dropped position. Trims are untouched."""
    found = _locate(comp, track_id, element_id)
    if isinstance(found, NotFound):
        return found
    track, e = found
    err = e.set_start_time(float(start_time))
    if err is None:
        track.elements.sort(key=lambda x: x.start_time)
    return err


def clamp_span_to_source(element: Element, source_duration: float) -> Tuple[float, float, float]:
    """
    (duration, trim_start, trim_end) for `element` on a source of `source_duration`.

    A longer (or equal) source leaves everything as is. A shorter source
    becomes the new duration; the trimmed total is reduced by taking from
    `trim_end` first, then `trim_start`, so the effective span becomes
    min(old effective span, new duration).
    """
    d_new = float(source_duration)
    if d_new >= element.duration:
        return element.duration, element.trim_start, element.trim_end

    target_eff = min(element.effective_duration, d_new)
    excess = (element.trim_start + element.trim_end) - (d_new - target_eff)
    trim_end = element.trim_end
    trim_start = element.trim_start
    if excess > 0.0:
        take = min(trim_end, excess)
        trim_end -= take
        excess -= take
    if excess > 0.0:
        trim_start = max(0.0, trim_start - excess)
    return d_new, trim_start, trim_end


def apply_replaced_media(comp: Composition, track_id: str, element_id: str, item: MediaItem) -> Optional[EditFailure]:
    """
    Swap an element's media reference once the new source is imported.

    Runs after the async import resolves, so the target is looked up again.
    """
    found = _locate(comp, track_id, element_id)
    if isinstance(found, NotFound):
        return StaleTargetError("Element was removed before the replacement finished", element_id=element_id)
    track, e = found
    if not isinstance(e.kind, MediaContent):
        return NotApplicable("Replace is only available for media clips")
    if not media_fits_track(item.type, track.type):
        return NotApplicable(f"Cannot place {item.type} media on a {track.type} track")

    if item.has_intrinsic_length:
        duration, trim_start, trim_end = clamp_span_to_source(e, item.duration)
    else:
        duration, trim_start, trim_end = e.duration, e.trim_start, e.trim_end
    err = check_span(duration, trim_start, trim_end)
    if err is not None:
        return err

    e.kind = MediaContent(media_id=item.id)
    e.set_span(duration, trim_start, trim_end)
    return None


def audio_track_for(comp: Composition) -> Track:
    tracks = comp.tracks_of_type(TRACK_AUDIO)
    if tracks:
        return tracks[0]
    return comp.add_track(TRACK_AUDIO)


def add_extracted_audio(
    comp: Composition,
    track_id: str,
    element_id: str,
    audio_item: MediaItem,
) -> Union[str, EditFailure]:
    """Place the extracted audio under its video element, on an audio track."""
    found = _locate(comp, track_id, element_id)
    if isinstance(found, NotFound):
        return StaleTargetError("Element was removed before audio extraction finished", element_id=element_id)
    _track, e = found

    target = audio_track_for(comp)
    audio = Element(
        id=comp.mint_id(),
        name=e.name,
        kind=MediaContent(media_id=audio_item.id),
        start_time=e.start_time,
        duration=e.duration,
        trim_start=e.trim_start,
        trim_end=e.trim_end,
    )
    err = _insert_unique(comp, target, audio)
    if err is not None:
        return err
    return audio.id


def can_extract_audio(element: Element, item: Optional[MediaItem]) -> Optional[EditFailure]:
    if not isinstance(element.kind, MediaContent):
        return NotApplicable("Extract audio is only available for media clips")
    if item is None:
        return NotFound("Media not found for this clip", element_id=element.id)
    if item.type != MEDIA_VIDEO:
        return NotApplicable("Extract audio is only available for video clips")
    return None
