from __future__ import annotations

import asyncio
import hashlib
import json
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from .media import MEDIA_AUDIO, MediaItem, media_item_from_probe
from .model import new_id


@dataclass(frozen=True)
class MediaInfo:
    duration: float
    has_video: bool
    has_audio: bool


class FFmpegNotFound(RuntimeError):
    """Raised when ffmpeg/ffprobe cannot be located."""
    pass


def _which(name: str, local_bin: Path) -> Optional[str]:
    local = local_bin / name
    if local.exists():
        return str(local)
    return shutil.which(name)


def resolve_ffmpeg_bins(project_root: Path) -> Tuple[str, str]:
    """Return (ffmpeg_path, ffprobe_path). Prefer ./bin, fallback to PATH."""
    local_bin = Path(project_root) / "bin"

    if os.name == "nt":
        ffmpeg = _which("ffmpeg.exe", local_bin) or _which("ffmpeg", local_bin)
        ffprobe = _which("ffprobe.exe", local_bin) or _which("ffprobe", local_bin)
    else:
        ffmpeg = _which("ffmpeg", local_bin)
        ffprobe = _which("ffprobe", local_bin)

    if not ffmpeg or not ffprobe:
        raise FFmpegNotFound(f"ffmpeg/ffprobe not found in {local_bin} or on PATH")
    return ffmpeg, ffprobe


def probe_media(ffprobe_path: str, src: str) -> MediaInfo:
    """Use ffprobe to get duration and whether streams exist."""
    cmd = [
        ffprobe_path,
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        src,
    ]
    p = subprocess.run(cmd, capture_output=True, text=True, check=True)
    data = json.loads(p.stdout)

    fmt = data.get("format", {}) or {}
    dur = float(fmt.get("duration", 0.0) or 0.0)

    streams = data.get("streams", []) or []
    has_v = any(s.get("codec_type") == "video" for s in streams)
    has_a = any(s.get("codec_type") == "audio" for s in streams)

    return MediaInfo(duration=dur, has_video=has_v, has_audio=has_a)


def _file_fingerprint(src_path: Path) -> Optional[str]:
    try:
        st = src_path.stat()
        return f"{src_path.resolve()}|{st.st_mtime_ns}|{st.st_size}"
    except OSError:
        return None


def extracted_audio_path(cache_dir: Path, src: str) -> Path:
    """Stable cache location for the audio extracted from `src`."""
    src_path = Path(src)
    key = _file_fingerprint(src_path) or str(src_path)
    digest = hashlib.sha1(key.encode("utf-8", errors="ignore")).hexdigest()[:24]
    return Path(cache_dir) / f"{src_path.stem}-{digest}.m4a"


def build_extract_audio_command(ffmpeg_path: str, src: str, out_path: str) -> List[str]:
    """Drop video, re-encode the first audio stream to AAC."""
    return [
        ffmpeg_path,
        "-y",
        "-i",
        src,
        "-vn",
        "-map",
        "0:a:0",
        "-c:a",
        "aac",
        "-b:a",
        "192k",
        out_path,
    ]


def extract_audio(ffmpeg_path: str, src: str, cache_dir: Path) -> Path:
    """
    Extract the first audio stream of `src` into the cache (reused when present).

    Raises:
        subprocess.CalledProcessError: ffmpeg failed (e.g. no audio stream)
    """
    out = extracted_audio_path(cache_dir, src)
    if out.exists() and out.stat().st_size > 0:
        return out
    Path(cache_dir).mkdir(parents=True, exist_ok=True)
    cmd = build_extract_audio_command(ffmpeg_path, src, str(out))
    try:
        subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=True,
        )
    except subprocess.CalledProcessError:
        if out.exists():
            out.unlink()
        raise
    return out


class FFmpegMediaTools:
    """
    Async media importer/extractor backed by ffprobe/ffmpeg.

    Blocking subprocess calls run in a worker thread so the event loop keeps
    handling pointer events while media is probed or decoded.
    """

    def __init__(self, project_root: Path, cache_dir: Optional[Path] = None) -> None:
        self.project_root = Path(project_root)
        self.cache_dir = Path(cache_dir) if cache_dir else self.project_root / ".cache" / "extracted_audio"

    def bins(self) -> Tuple[str, str]:
        return resolve_ffmpeg_bins(self.project_root)

    async def import_media(self, src: str) -> MediaItem:
        _ffmpeg, ffprobe = self.bins()
        info = await asyncio.to_thread(probe_media, ffprobe, str(src))
        return media_item_from_probe(str(src), info.duration, info.has_video, info.has_audio)

    async def extract_audio(self, item: MediaItem) -> MediaItem:
        ffmpeg, ffprobe = self.bins()
        out = await asyncio.to_thread(extract_audio, ffmpeg, item.src, self.cache_dir)
        info = await asyncio.to_thread(probe_media, ffprobe, str(out))
        if not info.has_audio:
            raise ValueError(f"No audio stream in {Path(item.src).name}")
        return MediaItem(
            id=new_id(),
            type=MEDIA_AUDIO,
            src=str(out),
            duration=float(info.duration or item.duration),
            name=f"{Path(item.src).stem} (audio)",
        )
