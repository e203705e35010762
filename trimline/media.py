from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from .model import TRACK_AUDIO, TRACK_VIDEO, new_id


MEDIA_IMAGE = "image"
MEDIA_VIDEO = "video"
MEDIA_AUDIO = "audio"

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".tif", ".tiff")

# Images have no intrinsic length; they get this duration when first placed.
DEFAULT_IMAGE_DURATION_SEC = 5.0


@dataclass(frozen=True)
class MediaItem:
    """Imported media file. Read-only to the editing core."""

    id: str
    type: str  # "image" | "video" | "audio"
    src: str
    duration: float
    name: str = ""
    thumbnail: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or Path(self.src).name

    @property
    def has_intrinsic_length(self) -> bool:
        return self.type != MEDIA_IMAGE


def track_type_for_media(media_type: str) -> str:
    return TRACK_AUDIO if media_type == MEDIA_AUDIO else TRACK_VIDEO


def media_fits_track(media_type: str, track_type: str) -> bool:
    return track_type_for_media(media_type) == track_type


def is_image_path(src: str) -> bool:
    return Path(str(src)).suffix.lower() in IMAGE_EXTENSIONS


def media_item_from_probe(src: str, duration: float, has_video: bool, has_audio: bool) -> MediaItem:
    """
    Build a MediaItem from probe results.

    Raises:
        ValueError: the file has no usable stream or no measurable length.
    """
    if is_image_path(src):
        return MediaItem(id=new_id(), type=MEDIA_IMAGE, src=str(src), duration=DEFAULT_IMAGE_DURATION_SEC)
    dur = float(duration or 0.0)
    if dur <= 0.01:
        raise ValueError(f"Media has no measurable duration: {Path(src).name}")
    if has_video:
        return MediaItem(id=new_id(), type=MEDIA_VIDEO, src=str(src), duration=dur)
    if has_audio:
        return MediaItem(id=new_id(), type=MEDIA_AUDIO, src=str(src), duration=dur)
    raise ValueError(f"No audio or video stream: {Path(src).name}")


class MediaCatalog:
    def __init__(self, items: Optional[List[MediaItem]] = None) -> None:
        self._items: Dict[str, MediaItem] = {}
        for it in items or []:
            self.add(it)

    def add(self, item: MediaItem) -> MediaItem:
        self._items[item.id] = item
        return item

    def resolve(self, media_id: Optional[str]) -> Optional[MediaItem]:
        if not media_id:
            return None
        return self._items.get(str(media_id))

    def find_by_src(self, src: str) -> Optional[MediaItem]:
        for it in self._items.values():
            if it.src == src:
                return it
        return None

    def items(self) -> List[MediaItem]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)
