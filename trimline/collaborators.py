from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Tuple

from .media import MediaItem


NOTIFY_SUCCESS = "success"
NOTIFY_ERROR = "error"


class PlaybackClock(Protocol):
    def current_time(self) -> float: ...

    def seek(self, seconds: float) -> None: ...


class Notifier(Protocol):
    def notify(self, kind: str, message: str) -> None: ...


class MediaTools(Protocol):
    async def import_media(self, src: str) -> MediaItem: ...

    async def extract_audio(self, item: MediaItem) -> MediaItem: ...


class ManualClock:
    """Playhead that only moves when told to. Used headless and in tests."""

    def __init__(self, t: float = 0.0) -> None:
        self._t = max(0.0, float(t))
        self.seeks: List[float] = []

    def current_time(self) -> float:
        return self._t

    def seek(self, seconds: float) -> None:
        self._t = max(0.0, float(seconds))
        self.seeks.append(self._t)


class LoggingNotifier:
    """Sends user notices to the log; keeps a copy for inspection."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.log = logger or logging.getLogger("trimline")
        self.messages: List[Tuple[str, str]] = []

    def notify(self, kind: str, message: str) -> None:
        self.messages.append((kind, message))
        if kind == NOTIFY_ERROR:
            self.log.warning("%s", message)
        else:
            self.log.info("%s", message)
