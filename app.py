from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import flet as ft
import flet_video as ftv

from trimline.collaborators import NOTIFY_ERROR
from trimline.config import ConfigStore
from trimline.dispatch import ClickDispatcher
from trimline.errors import EditFailure, InteractionBusy
from trimline.ffmpeg import FFmpegMediaTools
from trimline.interaction import EDGE_LEFT, EDGE_RIGHT, TOOL_SELECT, TOOL_SPLIT
from trimline.media import MEDIA_AUDIO, MEDIA_IMAGE, MEDIA_VIDEO, track_type_for_media
from trimline.model import TRACK_AUDIO, TRACK_TEXT, TRACK_VIDEO, Element, Track
from trimline.session import EditorSession
from trimline.shortcuts import (
    ACTION_DELETE,
    ACTION_DUPLICATE,
    ACTION_RIPPLE_DELETE,
    ACTION_SHOW_SHORTCUTS,
    ACTION_SPLIT,
    ACTION_TOGGLE_HIDDEN,
    ACTION_TOGGLE_RIPPLE,
    ACTION_TOOL_SELECT,
    ACTION_TOOL_SPLIT,
    ACTION_ZOOM_IN,
    ACTION_ZOOM_OUT,
    resolve_shortcut_action,
    shortcut_legend,
)

logging.basicConfig(level=logging.INFO)
log = logging.getLogger("trimline")

MEDIA_EXTENSIONS = ["mp4", "mov", "mkv", "webm", "m4v", "mp3", "wav", "flac", "aac", "m4a", "ogg", "png", "jpg", "jpeg"]


def _fmt_time(sec: float) -> str:
    sec = max(0.0, float(sec))
    m = int(sec // 60)
    s = sec - m * 60
    return f"{m:02d}:{s:05.2f}"


class SnackNotifier:
    """Shows editor notices as snack bars."""

    def __init__(self, page: ft.Page) -> None:
        self.page = page

    def notify(self, kind: str, message: str) -> None:
        if kind == NOTIFY_ERROR:
            log.warning("%s", message)
        # SnackBar is a DialogControl in newer Flet versions.
        self.page.show_dialog(
            ft.SnackBar(ft.Text(message), bgcolor=ft.Colors.RED_700 if kind == NOTIFY_ERROR else None)
        )


class PreviewClock:
    """
    Playhead backed by the preview player.

    The playhead value is authoritative; the video control follows it.
    """

    def __init__(self, page: ft.Page) -> None:
        self.page = page
        self.playhead_sec: float = 0.0
        self.video: Optional[ftv.Video] = None
        self.source_offset_sec: float = 0.0
        self.on_change = None

    def current_time(self) -> float:
        return self.playhead_sec

    def seek(self, seconds: float) -> None:
        self.playhead_sec = max(0.0, float(seconds))
        if self.on_change:
            self.on_change()
        video = self.video
        if video is None:
            return
        target_ms = int(max(0.0, self.playhead_sec - self.source_offset_sec) * 1000)

        async def _do() -> None:
            try:
                await video.seek(target_ms)
            except Exception as ex:
                log.debug("preview seek failed: %s", ex)

        self.page.run_task(_do)


def main(page: ft.Page) -> None:
    page.title = "TrimLine"
    page.theme_mode = ft.ThemeMode.DARK
    page.padding = 10

    root = Path(__file__).resolve().parent
    cfg = ConfigStore.default()
    clock = PreviewClock(page)
    session = EditorSession(
        clock=clock,
        notifier=SnackNotifier(page),
        media_tools=FFmpegMediaTools(root),
        settings=cfg.editor_settings(),
    )
    for kind in (TRACK_TEXT, TRACK_VIDEO, TRACK_AUDIO):
        session.composition.add_track(kind)

    selected_track: Optional[str] = None
    selected_element: Optional[str] = None
    typing_shortcuts_blocked = False
    lane_label_w = 60.0
    lane_heights = {TRACK_TEXT: 32, TRACK_VIDEO: 56, TRACK_AUDIO: 44}
    lane_colors = {TRACK_TEXT: ft.Colors.PURPLE_600, TRACK_VIDEO: ft.Colors.BLUE_600, TRACK_AUDIO: ft.Colors.GREEN_600}

    def _select(track_id: str, element_id: str, _click_x: float = 0.0) -> None:
        nonlocal selected_track, selected_element
        selected_track = track_id
        selected_element = element_id
        _sync_preview()
        refresh_timeline()

    dispatcher = ClickDispatcher(session, on_select=_select)

    # ---------- helpers ----------
    def snack(msg: str) -> None:
        page.show_dialog(ft.SnackBar(ft.Text(msg)))

    def _event_local_x(e) -> float:
        try:
            return float(e.local_position.x)
        except Exception:
            pass
        return float(getattr(e, "local_x", 0.0) or 0.0)

    def _event_global_x(e) -> float:
        try:
            return float(e.global_position.x)
        except Exception:
            pass
        return float(getattr(e, "global_x", 0.0) or 0.0)

    def _selection() -> Optional[tuple[str, str]]:
        if not selected_track or not selected_element:
            snack("Select an element first")
            return None
        if session.element(selected_track, selected_element) is None:
            snack("Element no longer exists")
            return None
        return selected_track, selected_element

    def _sync_preview() -> None:
        e = session.element(selected_track or "", selected_element or "")
        item = session.catalog.resolve(e.media_id) if e else None
        if item is None or item.type != MEDIA_VIDEO:
            preview_slot.content = ft.Text("No preview", color=ft.Colors.WHITE54)
            clock.video = None
            return
        clock.source_offset_sec = e.start_time - e.trim_start
        if clock.video is None:
            clock.video = ftv.Video(
                expand=True,
                playlist=[ftv.VideoMedia(item.src)],
                autoplay=False,
                muted=True,
                show_controls=True,
            )
        else:
            clock.video.playlist = [ftv.VideoMedia(item.src)]
        preview_slot.content = clock.video

    def _update_playhead() -> None:
        playhead.left = lane_label_w + session.geometry.sec_to_px(clock.current_time())
        playhead_label.value = _fmt_time(clock.current_time())
        page.update()

    clock.on_change = _update_playhead

    # ---------- element blocks ----------
    def element_block(track: Track, e: Element) -> ft.Control:
        selected = track.id == selected_track and e.id == selected_element
        height = lane_heights[track.type]
        width = session.element_width(e)
        item = session.catalog.resolve(e.media_id)
        label = e.kind.content if e.is_text else e.name

        def on_tap_down(ev: ft.TapEvent) -> None:
            dispatcher.handle_element_click(track.id, e.id, _event_local_x(ev))
            refresh_timeline()

        def on_drag_start(ev: ft.DragStartEvent) -> None:
            if dispatcher.tool_mode != TOOL_SELECT:
                return
            try:
                session.drag.start(track.id, e.id, _event_global_x(ev))
            except InteractionBusy:
                return
            _select(track.id, e.id)

        def on_drag_update(ev: ft.DragUpdateEvent) -> None:
            if not session.interaction.drag.is_dragging:
                return
            session.drag.pointer_move(_event_global_x(ev))
            refresh_timeline()

        def on_drag_end(_ev: ft.DragEndEvent) -> None:
            session.drop_drag()
            refresh_timeline()

        def resize_handle(edge: str) -> ft.Control:
            def on_start(ev: ft.DragStartEvent) -> None:
                try:
                    session.resize.start(track.id, e.id, edge, _event_global_x(ev))
                except InteractionBusy:
                    pass

            def on_update(ev: ft.DragUpdateEvent) -> None:
                session.resize.pointer_move(_event_global_x(ev))
                refresh_timeline()

            def on_end(_ev) -> None:
                session.resize.pointer_up()
                refresh_timeline()

            return ft.GestureDetector(
                mouse_cursor=ft.MouseCursor.RESIZE_LEFT if edge == EDGE_LEFT else ft.MouseCursor.RESIZE_RIGHT,
                drag_interval=0,
                on_horizontal_drag_start=on_start,
                on_horizontal_drag_update=on_update,
                on_horizontal_drag_end=on_end,
                left=0 if edge == EDGE_LEFT else None,
                right=0 if edge == EDGE_RIGHT else None,
                top=0,
                bottom=0,
                content=ft.Container(width=6, bgcolor=ft.Colors.WHITE),
            )

        if e.hidden:
            icon = ft.Icons.VOLUME_OFF if item is not None and item.type == MEDIA_AUDIO else ft.Icons.VISIBILITY_OFF
            body = ft.Row([ft.Icon(icon, size=16), ft.Text(label, size=12, no_wrap=True)], spacing=4)
        elif item is not None and item.type == MEDIA_IMAGE:
            body = ft.Row([ft.Icon(ft.Icons.IMAGE, size=16), ft.Text(label, size=12, no_wrap=True)], spacing=4)
        else:
            body = ft.Text(label, size=12, no_wrap=True)

        controls: list[ft.Control] = [
            ft.Container(
                width=width,
                height=height,
                padding=6,
                border_radius=4,
                opacity=0.5 if e.hidden else 1.0,
                bgcolor=ft.Colors.AMBER_600 if selected else lane_colors[track.type],
                border=ft.Border.all(1, ft.Colors.WHITE if selected else ft.Colors.WHITE24),
                content=body,
            )
        ]
        if dispatcher.tool_mode == TOOL_SPLIT:
            controls.append(ft.Container(width=width, height=height, bgcolor=ft.Colors.WHITE10))
        if selected:
            controls += [resize_handle(EDGE_LEFT), resize_handle(EDGE_RIGHT)]

        return ft.GestureDetector(
            left=session.element_left(e),
            top=2,
            mouse_cursor=ft.MouseCursor.PRECISE if dispatcher.tool_mode == TOOL_SPLIT else ft.MouseCursor.CLICK,
            drag_interval=0,
            on_tap_down=on_tap_down,
            on_horizontal_drag_start=on_drag_start,
            on_horizontal_drag_update=on_drag_update,
            on_horizontal_drag_end=on_drag_end,
            # Leaving the element ends an active resize, same as releasing.
            on_exit=lambda _ev: session.resize.pointer_leave(),
            content=ft.Stack(controls, width=width, height=height),
        )

    def refresh_timeline() -> None:
        lanes_col.controls.clear()
        total_px = 0.0
        for t in session.composition.tracks:
            blocks = [element_block(t, e) for e in t.elements_ordered_by_start()]
            total_px = max(total_px, session.geometry.sec_to_px(t.end_time()) + 200)
            lanes_col.controls.append(
                ft.Row(
                    [
                        ft.Container(width=lane_label_w, content=ft.Text(t.name, size=12)),
                        ft.Container(
                            height=lane_heights[t.type] + 4,
                            expand=True,
                            bgcolor=ft.Colors.BLUE_GREY_800,
                            content=ft.Stack(blocks),
                        ),
                    ],
                    spacing=0,
                )
            )
        tool_select_btn.selected = dispatcher.tool_mode == TOOL_SELECT
        tool_split_btn.selected = dispatcher.tool_mode == TOOL_SPLIT
        ripple_sw.value = session.ripple_editing_enabled
        e = session.element(selected_track or "", selected_element or "")
        hide_btn.tooltip = session.visibility_action_label(e) if e else "Hide / Mute"
        hide_btn.icon = ft.Icons.VISIBILITY if e and e.hidden else ft.Icons.VISIBILITY_OFF
        timeline_info.value = (
            f"{e.name}  start {_fmt_time(e.start_time)}  length {_fmt_time(e.effective_duration)}" if e else ""
        )
        _update_playhead()

    # ---------- actions ----------
    def set_tool(mode: str) -> None:
        dispatcher.set_tool_mode(mode)
        refresh_timeline()

    def split_click(_e=None) -> None:
        sel = _selection()
        if sel:
            session.split_at_playhead(*sel)
            refresh_timeline()

    def duplicate_click(_e=None) -> None:
        nonlocal selected_element
        sel = _selection()
        if not sel:
            return
        res = session.duplicate(*sel)
        if not isinstance(res, EditFailure):
            selected_element = res
        refresh_timeline()

    def delete_click(_e=None, ripple: Optional[bool] = None) -> None:
        nonlocal selected_element
        sel = _selection()
        if not sel:
            return
        if not isinstance(session.delete(*sel, ripple=ripple), EditFailure):
            selected_element = None
        _sync_preview()
        refresh_timeline()

    def hide_click(_e=None) -> None:
        sel = _selection()
        if sel:
            session.toggle_hidden(*sel)
            refresh_timeline()

    def ripple_change(e: ft.ControlEvent) -> None:
        session.ripple_editing_enabled = bool(e.control.value)
        cfg.set_ripple_editing(session.ripple_editing_enabled)

    def zoom_change(e: ft.ControlEvent) -> None:
        session.set_zoom(float(e.control.value))
        refresh_timeline()

    file_picker = ft.FilePicker()

    def import_click(_e=None) -> None:
        async def _pick() -> None:
            picked = await file_picker.pick_files(
                allow_multiple=True,
                initial_directory=cfg.last_media_dir() or None,
                file_type=ft.FilePickerFileType.CUSTOM,
                allowed_extensions=MEDIA_EXTENSIONS,
            )
            for f in picked or []:
                if not f.path:
                    continue
                try:
                    item = await session.media_tools.import_media(f.path)
                except Exception as ex:
                    log.exception("probe failed: %s", ex)
                    snack(f"Could not read {Path(f.path).name}")
                    continue
                session.catalog.add(item)
                cfg.set_last_media_dir(f.path)
                track = session.composition.tracks_of_type(track_type_for_media(item.type))[0]
                session.add_media_element(track.id, item.id, start_time=track.end_time())
            refresh_timeline()

        page.run_task(_pick)

    def add_text_click(_e=None) -> None:
        track = session.composition.tracks_of_type(TRACK_TEXT)[0]
        session.add_text_element(track.id, "Title", start_time=clock.current_time())
        refresh_timeline()

    def replace_click(_e=None) -> None:
        sel = _selection()
        if not sel:
            return

        async def _pick() -> None:
            picked = await file_picker.pick_files(
                allow_multiple=False,
                initial_directory=cfg.last_media_dir() or None,
                file_type=ft.FilePickerFileType.CUSTOM,
                allowed_extensions=MEDIA_EXTENSIONS,
            )
            if not picked or not picked[0].path:
                return
            await session.replace_media(sel[0], sel[1], picked[0].path)
            _sync_preview()
            refresh_timeline()

        page.run_task(_pick)

    def extract_audio_click(_e=None) -> None:
        sel = _selection()
        if not sel:
            return

        async def _do() -> None:
            await session.extract_audio(*sel)
            refresh_timeline()

        page.run_task(_do)

    def _show_shortcuts_dialog() -> None:
        rows = [ft.Row([ft.Text(k, width=200, weight=ft.FontWeight.BOLD), ft.Text(v)]) for k, v in shortcut_legend()]
        page.show_dialog(
            ft.AlertDialog(
                modal=True,
                title=ft.Text("Keyboard Shortcuts"),
                content=ft.Container(width=480, height=320, content=ft.ListView(rows, spacing=6)),
                actions=[ft.TextButton("Close", on_click=lambda _e: page.pop_dialog())],
            )
        )

    def on_keyboard(e: ft.KeyboardEvent) -> None:
        action = resolve_shortcut_action(
            key=str(getattr(e, "key", "") or ""),
            ctrl=bool(getattr(e, "ctrl", False)),
            shift=bool(getattr(e, "shift", False)),
            alt=bool(getattr(e, "alt", False)),
            meta=bool(getattr(e, "meta", False)),
            typing_focus=bool(typing_shortcuts_blocked),
        )
        if not action:
            return

        if action == ACTION_DELETE:
            delete_click()
        elif action == ACTION_RIPPLE_DELETE:
            delete_click(ripple=True)
        elif action == ACTION_SPLIT:
            split_click()
        elif action == ACTION_DUPLICATE:
            duplicate_click()
        elif action == ACTION_TOGGLE_HIDDEN:
            hide_click()
        elif action == ACTION_TOOL_SELECT:
            set_tool(TOOL_SELECT)
        elif action == ACTION_TOOL_SPLIT:
            set_tool(TOOL_SPLIT)
        elif action == ACTION_TOGGLE_RIPPLE:
            session.ripple_editing_enabled = not session.ripple_editing_enabled
            cfg.set_ripple_editing(session.ripple_editing_enabled)
            refresh_timeline()
        elif action == ACTION_ZOOM_IN:
            zoom_slider.value = min(4.0, float(zoom_slider.value) + 0.25)
            session.set_zoom(zoom_slider.value)
            refresh_timeline()
        elif action == ACTION_ZOOM_OUT:
            zoom_slider.value = max(0.25, float(zoom_slider.value) - 0.25)
            session.set_zoom(zoom_slider.value)
            refresh_timeline()
        elif action == ACTION_SHOW_SHORTCUTS:
            _show_shortcuts_dialog()

    page.on_keyboard_event = on_keyboard

    # ---------- layout ----------
    tool_select_btn = ft.IconButton(ft.Icons.NEAR_ME, tooltip="Select (V)", on_click=lambda _e: set_tool(TOOL_SELECT))
    tool_split_btn = ft.IconButton(ft.Icons.CONTENT_CUT, tooltip="Split tool (B)", on_click=lambda _e: set_tool(TOOL_SPLIT))
    hide_btn = ft.IconButton(ft.Icons.VISIBILITY_OFF, tooltip="Hide / Mute", on_click=hide_click)
    ripple_sw = ft.Switch(label="Ripple", value=session.ripple_editing_enabled, on_change=ripple_change)
    zoom_slider = ft.Slider(min=0.25, max=4.0, divisions=15, value=1.0, width=180, on_change=zoom_change)
    timeline_info = ft.Text("", size=12)
    playhead_label = ft.Text("00:00.00", size=12)
    preview_slot = ft.Container(height=240, expand=True, bgcolor=ft.Colors.BLACK, content=ft.Text("No preview"))
    lanes_col = ft.Column(spacing=4)
    playhead = ft.Container(left=lane_label_w, top=0, bottom=0, width=2, bgcolor=ft.Colors.RED_400)

    def on_timeline_tap(e: ft.TapEvent) -> None:
        # Taps on empty lane space move the playhead.
        x = _event_local_x(e) - lane_label_w
        if x >= 0 and not session.interaction.is_busy:
            clock.seek(session.geometry.px_to_sec(x))

    toolbar = ft.Row(
        [
            ft.ElevatedButton("Import", icon=ft.Icons.FILE_OPEN, on_click=import_click),
            ft.ElevatedButton("Text", icon=ft.Icons.TITLE, on_click=add_text_click),
            ft.VerticalDivider(width=8),
            tool_select_btn,
            tool_split_btn,
            ft.IconButton(ft.Icons.CALL_SPLIT, tooltip="Split at playhead (S)", on_click=split_click),
            ft.IconButton(ft.Icons.COPY, tooltip="Duplicate (Ctrl/Cmd+D)", on_click=duplicate_click),
            hide_btn,
            ft.IconButton(ft.Icons.SWAP_HORIZ, tooltip="Replace clip", on_click=replace_click),
            ft.IconButton(ft.Icons.MUSIC_NOTE, tooltip="Extract audio", on_click=extract_audio_click),
            ft.IconButton(ft.Icons.DELETE, tooltip="Delete (Del)", on_click=delete_click),
            ripple_sw,
            ft.Container(expand=True),
            ft.IconButton(ft.Icons.KEYBOARD, tooltip="Shortcuts (F1)", on_click=lambda _e: _show_shortcuts_dialog()),
        ],
        wrap=True,
    )

    timeline = ft.Container(
        padding=10,
        border_radius=12,
        bgcolor=ft.Colors.BLUE_GREY_900,
        content=ft.Column(
            [
                ft.Row([timeline_info, ft.Container(expand=True), playhead_label, ft.Text("Zoom"), zoom_slider]),
                ft.GestureDetector(on_tap_down=on_timeline_tap, content=ft.Stack([lanes_col, playhead])),
            ]
        ),
    )

    page.add(ft.Column([toolbar, preview_slot, timeline], expand=True, spacing=10))
    refresh_timeline()


if __name__ == "__main__":
    ft.app(target=main)
