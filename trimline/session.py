from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from .collaborators import NOTIFY_ERROR, NOTIFY_SUCCESS, LoggingNotifier, ManualClock, MediaTools, Notifier, PlaybackClock
from .config import EditorSettings
from .errors import (
    SPLIT_NOT_FOUND,
    AsyncOperationFailed,
    EditFailure,
    ExtractError,
    NotApplicable,
    NotFound,
    ReplaceError,
    SplitFailed,
)
from .geometry import TimelineGeometry
from .interaction import DragController, InteractionState, ResizeController
from .media import MEDIA_AUDIO, MEDIA_IMAGE, MediaCatalog, media_fits_track
from .model import Composition, Element, MediaContent, TextContent
from . import timeline


log = logging.getLogger("trimline")

DEFAULT_TEXT_DURATION_SEC = 5.0


class EditorSession:
    """
    Owns the composition and wires every edit operation to its collaborators.

    Every public operation returns a success value or an EditFailure; each
    failure is also sent to the notifier exactly once. Nothing here raises for
    user-level errors.
    """

    def __init__(
        self,
        composition: Optional[Composition] = None,
        catalog: Optional[MediaCatalog] = None,
        clock: Optional[PlaybackClock] = None,
        notifier: Optional[Notifier] = None,
        media_tools: Optional[MediaTools] = None,
        settings: Optional[EditorSettings] = None,
    ) -> None:
        self.settings = settings or EditorSettings()
        self.composition = composition if composition is not None else Composition()
        self.catalog = catalog if catalog is not None else MediaCatalog()
        self.clock: PlaybackClock = clock or ManualClock()
        self.notifier: Notifier = notifier or LoggingNotifier(log)
        self.media_tools = media_tools
        self.ripple_editing_enabled = bool(self.settings.ripple_editing_enabled)
        self.geometry = TimelineGeometry(
            pixels_per_second=self.settings.pixels_per_second,
            zoom_level=1.0,
            element_min_width_px=self.settings.element_min_width_px,
        )
        self.interaction = InteractionState(tool_mode=self.settings.default_tool_mode)
        self.resize = ResizeController(
            self.composition,
            self.interaction,
            self.geometry,
            min_duration=self.settings.min_element_duration_sec,
            can_extend=self.can_extend_duration,
        )
        self.drag = DragController(self.composition, self.interaction, self.geometry)

    # ---------- helpers ----------
    def _fail(self, failure: EditFailure) -> EditFailure:
        self.notifier.notify(NOTIFY_ERROR, failure.message)
        return failure

    def _ok(self, message: str) -> None:
        self.notifier.notify(NOTIFY_SUCCESS, message)

    def element(self, track_id: str, element_id: str) -> Optional[Element]:
        return timeline.find_element(self.composition, track_id, element_id)

    def is_audio_element(self, element: Element) -> bool:
        item = self.catalog.resolve(element.media_id)
        return item is not None and item.type == MEDIA_AUDIO

    def can_extend_duration(self, element: Element) -> bool:
        """Text and still images can grow past their duration; audio/video cannot."""
        if isinstance(element.kind, TextContent):
            return True
        item = self.catalog.resolve(element.media_id)
        return item is not None and item.type == MEDIA_IMAGE

    def visibility_action_label(self, element: Element) -> str:
        if self.is_audio_element(element):
            return "Unmute" if element.hidden else "Mute"
        return "Show" if element.hidden else "Hide"

    # ---------- adding ----------
    def add_media_element(
        self,
        track_id: str,
        media_id: str,
        start_time: float = 0.0,
        name: Optional[str] = None,
    ) -> Union[str, EditFailure]:
        item = self.catalog.resolve(media_id)
        if item is None:
            return self._fail(NotFound("Media not found", track_id=track_id))
        track = self.composition.get_track(track_id)
        if track is None:
            return self._fail(NotFound("Track not found", track_id=track_id))
        if not media_fits_track(item.type, track.type):
            return self._fail(NotApplicable(f"Cannot place {item.type} media on a {track.type} track"))
        e = Element(
            id=self.composition.mint_id(),
            name=name or item.display_name,
            kind=MediaContent(media_id=item.id),
            start_time=float(start_time),
            duration=item.duration,
        )
        err = timeline.add_element(self.composition, track_id, e)
        if err is not None:
            return self._fail(err)
        return e.id

    def add_text_element(
        self,
        track_id: str,
        content: str,
        start_time: float = 0.0,
        duration: float = DEFAULT_TEXT_DURATION_SEC,
    ) -> Union[str, EditFailure]:
        e = Element(
            id=self.composition.mint_id(),
            name=str(content)[:40] or "Text",
            kind=TextContent(content=str(content)),
            start_time=float(start_time),
            duration=float(duration),
        )
        err = timeline.add_element(self.composition, track_id, e)
        if err is not None:
            return self._fail(err)
        return e.id

    # ---------- structural edits ----------
    def split(self, track_id: str, element_id: str, at_time: float) -> Union[str, SplitFailed]:
        res = timeline.split_element(self.composition, track_id, element_id, at_time)
        if isinstance(res, SplitFailed):
            return self._fail(res)
        return res

    def split_at_playhead(self, track_id: str, element_id: str) -> Union[str, SplitFailed]:
        res = timeline.split_element(self.composition, track_id, element_id, self.clock.current_time())
        if isinstance(res, SplitFailed):
            if res.reason == SPLIT_NOT_FOUND:
                return self._fail(SplitFailed("Failed to split element", reason=res.reason))
            return self._fail(SplitFailed("Playhead must be within element to split", reason=res.reason))
        return res

    def split_and_keep_left(self, track_id: str, element_id: str, at_time: Optional[float] = None) -> Union[str, SplitFailed]:
        t = self.clock.current_time() if at_time is None else float(at_time)
        res = timeline.split_and_keep_left(self.composition, track_id, element_id, t)
        if isinstance(res, SplitFailed):
            return self._fail(res)
        return res

    def split_and_keep_right(self, track_id: str, element_id: str, at_time: Optional[float] = None) -> Union[str, SplitFailed]:
        t = self.clock.current_time() if at_time is None else float(at_time)
        res = timeline.split_and_keep_right(self.composition, track_id, element_id, t)
        if isinstance(res, SplitFailed):
            return self._fail(res)
        return res

    def duplicate(self, track_id: str, element_id: str) -> Union[str, EditFailure]:
        res = timeline.duplicate_element(
            self.composition, track_id, element_id, gap_sec=self.settings.duplicate_gap_sec
        )
        if isinstance(res, EditFailure):
            return self._fail(res)
        return res

    def delete(self, track_id: str, element_id: str, ripple: Optional[bool] = None) -> Union[Element, EditFailure]:
        use_ripple = self.ripple_editing_enabled if ripple is None else bool(ripple)
        res = timeline.delete_element(self.composition, track_id, element_id, ripple=use_ripple)
        if isinstance(res, EditFailure):
            return self._fail(res)
        return res

    def toggle_hidden(self, track_id: str, element_id: str) -> Union[bool, EditFailure]:
        res = timeline.toggle_hidden(self.composition, track_id, element_id)
        if isinstance(res, EditFailure):
            return self._fail(res)
        return res

    def update_trim(self, track_id: str, element_id: str, trim_start: float, trim_end: float) -> Optional[EditFailure]:
        err = timeline.update_element_trim(self.composition, track_id, element_id, trim_start, trim_end)
        return self._fail(err) if err is not None else None

    def update_duration(self, track_id: str, element_id: str, duration: float) -> Optional[EditFailure]:
        err = timeline.update_element_duration(self.composition, track_id, element_id, duration)
        return self._fail(err) if err is not None else None

    def move(self, track_id: str, element_id: str, start_time: float) -> Optional[EditFailure]:
        err = timeline.move_element(self.composition, track_id, element_id, start_time)
        return self._fail(err) if err is not None else None

    def drop_drag(self) -> Optional[EditFailure]:
        err = self.drag.drop()
        return self._fail(err) if err is not None else None

    # ---------- async media edits ----------
    async def replace_media(self, track_id: str, element_id: str, new_source: str) -> Optional[ReplaceError]:
        e = self.element(track_id, element_id)
        if e is None:
            return self._fail(NotFound("Element not found", element_id=element_id, track_id=track_id))
        if not isinstance(e.kind, MediaContent):
            return self._fail(NotApplicable("Replace is only available for media clips"))
        if self.media_tools is None:
            return self._fail(AsyncOperationFailed("Media import is not available"))

        try:
            item = await self.media_tools.import_media(str(new_source))
        except Exception as ex:
            log.exception("replace import failed: %s", ex)
            return self._fail(AsyncOperationFailed(f"Failed to replace clip: {Path(str(new_source)).name}"))

        err = timeline.apply_replaced_media(self.composition, track_id, element_id, item)
        if err is not None:
            return self._fail(err)
        # A resize still in progress must measure from the new span, not the old source.
        self.resize.rebase(track_id, element_id)
        self.catalog.add(item)
        self._ok("Clip replaced successfully")
        return None

    async def extract_audio(self, track_id: str, element_id: str) -> Union[str, ExtractError]:
        e = self.element(track_id, element_id)
        if e is None:
            return self._fail(NotFound("Element not found", element_id=element_id, track_id=track_id))
        item = self.catalog.resolve(e.media_id)
        err = timeline.can_extract_audio(e, item)
        if err is not None:
            return self._fail(err)
        if self.media_tools is None:
            return self._fail(AsyncOperationFailed("Audio extraction is not available"))

        try:
            audio_item = await self.media_tools.extract_audio(item)
        except Exception as ex:
            log.exception("audio extraction failed: %s", ex)
            return self._fail(AsyncOperationFailed(f"Failed to extract audio from {e.name}"))

        res = timeline.add_extracted_audio(self.composition, track_id, element_id, audio_item)
        if isinstance(res, EditFailure):
            return self._fail(res)
        self.catalog.add(audio_item)
        self._ok("Audio extracted")
        return res

    # ---------- geometry ----------
    def set_zoom(self, zoom_level: float) -> None:
        z = float(zoom_level)
        if z <= 0.0:
            raise ValueError("Zoom level must be positive")
        self.geometry.zoom_level = z

    def element_left(self, element: Element) -> float:
        return self.geometry.element_left(element, self.drag.rendered_start(element))

    def element_width(self, element: Element) -> float:
        return self.geometry.element_width(element)


