from __future__ import annotations

from typing import List, Optional, Tuple


# Shortcut action ids used by app.py dispatcher.
ACTION_DELETE = "delete"
ACTION_RIPPLE_DELETE = "ripple_delete"
ACTION_SPLIT = "split"
ACTION_DUPLICATE = "duplicate"
ACTION_TOGGLE_HIDDEN = "toggle_hidden"
ACTION_TOOL_SELECT = "tool_select"
ACTION_TOOL_SPLIT = "tool_split"
ACTION_TOGGLE_RIPPLE = "toggle_ripple"
ACTION_ZOOM_IN = "zoom_in"
ACTION_ZOOM_OUT = "zoom_out"
ACTION_SHOW_SHORTCUTS = "show_shortcuts"


def _normalize_key(key: str) -> str:
    raw = str(key or "")
    if raw == " ":
        return "space"
    k = raw.strip().lower().replace(" ", "")
    aliases = {
        "arrowleft": "left",
        "arrowright": "right",
        "arrowup": "up",
        "arrowdown": "down",
        "spacebar": "space",
        "add": "+",
        "subtract": "-",
        "del": "delete",
    }
    return aliases.get(k, k)


def resolve_shortcut_action(
    *,
    key: str,
    ctrl: bool = False,
    shift: bool = False,
    alt: bool = False,
    meta: bool = False,
    typing_focus: bool = False,
) -> Optional[str]:
    """
    Resolve a keyboard event into an editor action.

    `typing_focus=True` blocks plain editing shortcuts so users can type in
    text fields without accidental timeline operations.
    """
    k = _normalize_key(key)
    if not k:
        return None

    # Always-available help shortcut.
    if k == "f1" or k == "?" or (k == "/" and bool(shift)):
        return ACTION_SHOW_SHORTCUTS

    if bool(alt):
        return None

    primary_mod = bool(ctrl or meta)
    if primary_mod and k == "d":
        return ACTION_DUPLICATE
    if primary_mod:
        return None

    if typing_focus:
        return None

    if k in ("delete", "backspace"):
        return ACTION_RIPPLE_DELETE if shift else ACTION_DELETE
    if k == "s":
        return ACTION_SPLIT
    if k == "h":
        return ACTION_TOGGLE_HIDDEN
    if k == "v":
        return ACTION_TOOL_SELECT
    if k == "b":
        return ACTION_TOOL_SPLIT
    if k == "r":
        return ACTION_TOGGLE_RIPPLE
    if k in ("+", "="):
        return ACTION_ZOOM_IN
    if k in ("-", "_"):
        return ACTION_ZOOM_OUT
    return None


def shortcut_legend() -> List[Tuple[str, str]]:
    """Human-readable shortcuts list for the in-app help dialog."""
    return [
        ("Delete / Backspace", "Delete selected element"),
        ("Shift + Delete", "Ripple delete selected element"),
        ("S", "Split selected element at playhead"),
        ("H", "Hide/show (mute/unmute) selected element"),
        ("V", "Select tool"),
        ("B", "Split tool"),
        ("R", "Toggle ripple editing"),
        ("+ / -", "Zoom timeline in/out"),
        ("Ctrl/Cmd + D", "Duplicate selected element"),
        ("F1 or ?", "Show shortcuts help"),
    ]
