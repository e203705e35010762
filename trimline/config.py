from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .geometry import ELEMENT_MIN_WIDTH_PX, PIXELS_PER_SECOND
from .interaction import MIN_ELEMENT_DURATION_SEC, TOOL_MODES, TOOL_SELECT
from .timeline import DUPLICATE_GAP_SEC


@dataclass(frozen=True)
class EditorSettings:
    pixels_per_second: float = PIXELS_PER_SECOND
    element_min_width_px: float = ELEMENT_MIN_WIDTH_PX
    min_element_duration_sec: float = MIN_ELEMENT_DURATION_SEC
    duplicate_gap_sec: float = DUPLICATE_GAP_SEC
    ripple_editing_enabled: bool = False
    default_tool_mode: str = TOOL_SELECT


def _float_in(raw: Any, default: float, lo: float, hi: float) -> float:
    try:
        v = float(raw)
    except (TypeError, ValueError):
        return default
    if v != v:  # NaN
        return default
    return max(lo, min(hi, v))


class ConfigStore:
    """
    Simple JSON config store.

    Default location: ~/.trimline/config.json
    """

    def __init__(self, root_dir: Path) -> None:
        self.root_dir = Path(root_dir)
        self.path = self.root_dir / "config.json"

    @staticmethod
    def default() -> "ConfigStore":
        return ConfigStore(Path.home() / ".trimline")

    def load(self) -> Dict[str, Any]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                return data
        except FileNotFoundError:
            return self.default_config()
        except (OSError, ValueError):
            # Corrupted file; don't crash the editor.
            return self.default_config()
        return self.default_config()

    def save(self, data: Dict[str, Any]) -> None:
        self.root_dir.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    def update(self, **values: Any) -> None:
        cfg = self.load()
        cfg.update(values)
        self.save(cfg)

    def default_config(self) -> Dict[str, Any]:
        return {
            "pixels_per_second": PIXELS_PER_SECOND,
            "element_min_width_px": ELEMENT_MIN_WIDTH_PX,
            "min_element_duration_sec": MIN_ELEMENT_DURATION_SEC,
            "duplicate_gap_sec": DUPLICATE_GAP_SEC,
            "ripple_editing_enabled": False,
            "default_tool_mode": TOOL_SELECT,
            "last_media_dir": "",
        }

    def editor_settings(self) -> EditorSettings:
        cfg = self.load()
        mode = str(cfg.get("default_tool_mode", TOOL_SELECT) or "").strip().lower()
        if mode not in TOOL_MODES:
            mode = TOOL_SELECT
        return EditorSettings(
            pixels_per_second=_float_in(cfg.get("pixels_per_second"), PIXELS_PER_SECOND, 1.0, 1000.0),
            element_min_width_px=_float_in(cfg.get("element_min_width_px"), ELEMENT_MIN_WIDTH_PX, 0.0, 400.0),
            # Clamp: a zero floor would let drags collapse an element.
            min_element_duration_sec=_float_in(
                cfg.get("min_element_duration_sec"), MIN_ELEMENT_DURATION_SEC, 0.01, 10.0
            ),
            duplicate_gap_sec=_float_in(cfg.get("duplicate_gap_sec"), DUPLICATE_GAP_SEC, 0.0, 10.0),
            ripple_editing_enabled=bool(cfg.get("ripple_editing_enabled", False)),
            default_tool_mode=mode,
        )

    def set_ripple_editing(self, enabled: bool) -> None:
        self.update(ripple_editing_enabled=bool(enabled))

    def last_media_dir(self) -> str:
        return str(self.load().get("last_media_dir", "") or "")

    def set_last_media_dir(self, path: str) -> None:
        p = str(path or "").strip()
        if not p:
            return
        d: Optional[Path]
        try:
            d = Path(p)
            if d.suffix:
                d = d.parent
            d = d.resolve()
        except OSError:
            d = None
        if d is None:
            return
        self.update(last_media_dir=str(d))
