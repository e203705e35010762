from __future__ import annotations

from typing import Callable, Optional

from .errors import SplitFailed
from .interaction import TOOL_SPLIT
from .session import EditorSession


CLICK_BUSY = "busy"
CLICK_MISSING = "missing"
CLICK_SPLIT = "split"
CLICK_SPLIT_FAILED = "split_failed"
CLICK_SEEK = "seek"
CLICK_SELECT = "select"

SelectHandler = Callable[[str, str, float], None]


class ClickDispatcher:
    """
    Routes element clicks by tool mode.

    split: a click strictly inside the element splits it there; anywhere else
    moves the playhead to the clicked time.
    select: the click goes to the injected selection handler untouched.
    """

    def __init__(self, session: EditorSession, on_select: Optional[SelectHandler] = None) -> None:
        self.session = session
        self.on_select = on_select

    @property
    def tool_mode(self) -> str:
        return self.session.interaction.tool_mode

    def set_tool_mode(self, mode: str) -> None:
        self.session.interaction.set_tool_mode(mode)

    def handle_element_click(self, track_id: str, element_id: str, click_x: float) -> str:
        """
        Args:
            click_x: pointer x in pixels, relative to the element's left edge
        """
        # A click fired at the end of a resize/drag belongs to that gesture.
        if self.session.interaction.is_busy:
            return CLICK_BUSY

        if self.tool_mode != TOOL_SPLIT:
            if self.on_select is not None:
                self.on_select(track_id, element_id, float(click_x))
            return CLICK_SELECT

        e = self.session.element(track_id, element_id)
        if e is None:
            return CLICK_MISSING

        click_time = self.session.geometry.click_time(e, click_x)
        if e.contains_strictly(click_time):
            res = self.session.split(track_id, element_id, click_time)
            return CLICK_SPLIT_FAILED if isinstance(res, SplitFailed) else CLICK_SPLIT

        self.session.clock.seek(max(0.0, click_time))
        return CLICK_SEEK
