"""Presenter control screen.

Shows the setlist, the slides of the selected item and what is on air,
and drives the presenter session from the keyboard and the tool inputs.
"""

import re
from datetime import datetime

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Header, Input, Label, Static, TextArea

from worship_presenter.core.keyboard import SECTION_KEY_MAP
from worship_presenter.core.models import (
    AnnouncementTool,
    Blank,
    CountdownTool,
    DisplayMode,
    MessagesTool,
    RotatingMessage,
    SectionHeader,
    has_slides,
    is_song_like,
    is_tool,
    item_title,
)
from worship_presenter.core.session import PresenterSession
from worship_presenter.core.setlist import UnsavedChangesChoice
from worship_presenter.core.tools import resolve_target_time
from worship_presenter.logging_config import get_logger

logger = get_logger(__name__)


class PresenterScreen(Screen):
    """Main operator screen."""

    BINDINGS = [
        Binding("right", "press_key('right')", "Next", priority=True),
        Binding("left", "press_key('left')", "Prev", priority=True),
        Binding("down", "press_key('down')", "Next item", priority=True),
        Binding("up", "press_key('up')", "Prev item", priority=True),
        Binding("space", "press_key('space')", "Blank", priority=True),
        Binding("b", "press_key('b')", "Blank", show=False, priority=True),
        Binding("B", "press_key('B')", "Blank", show=False, priority=True),
        *[
            Binding(key, f"press_key('{key}')", "Section", show=False, priority=True)
            for key in SECTION_KEY_MAP
        ],
        Binding("m", "toggle_mode", "Mode", priority=True),
        Binding("h", "hide_overlays", "Hide tools", priority=True),
        Binding("l", "toggle_local_media", "Local media", show=False, priority=True),
        Binding("x", "remove_entry", "Remove", priority=True),
        Binding("ctrl+up", "move_entry(-1)", "Move up", show=False, priority=True),
        Binding("ctrl+down", "move_entry(1)", "Move down", show=False, priority=True),
        Binding("s", "save_setlist", "Save", priority=True),
        Binding("o", "open_setlist", "Open", priority=True),
        Binding("q", "quit", "Quit", priority=True),
    ]

    def __init__(self, session: PresenterSession):
        """Initialize the screen.

        Args:
            session: Presenter session driven by this screen
        """
        super().__init__()
        self.session = session
        self._setlist_signature: tuple = ()
        self._slides_signature: tuple = ()

    def compose(self) -> ComposeResult:
        """Compose the screen layout."""
        yield Header()

        with Horizontal(id="main"):
            with Vertical(id="setlist_pane"):
                yield Label("[bold]Setlist[/bold]", id="setlist_title")
                table = DataTable(id="setlist_table", cursor_type="row")
                table.add_columns("#", "Type", "Title")
                yield table

            with Vertical(id="slides_pane"):
                yield Label("[bold]Slides[/bold]", id="slides_title")
                slides = DataTable(id="slides_table", cursor_type="row")
                slides.add_columns("#", "Section", "Text")
                yield slides
                yield Static("", id="on_air")
                yield Static("", id="status")

        with Horizontal(id="tool_inputs"):
            yield Input(placeholder="Announcement text", id="announcement_input")
            yield Input(placeholder="Countdown HH:MM [message]", id="countdown_input")
            yield Input(placeholder="Messages a | b | c, +N/-N toggles, 'stop'", id="messages_input")

        with Horizontal(id="content_inputs"):
            yield Input(
                placeholder="Add: title, bible <book> <ch>, image <id>, blank, section <title>, "
                "countdown HH:MM [msg], announce <text>, messages a | b; show <...>; background <url>",
                id="add_input",
            )
            yield Input(placeholder="Quick slide, '//' between slides", id="quick_input")

        yield Footer()

    def on_mount(self) -> None:
        """Handle mount event."""
        logger.info("PresenterScreen mounted")
        self.session.on_change = self.refresh_view
        self.refresh_view()

    # Keyboard

    def _text_input_focused(self) -> bool:
        return isinstance(self.focused, (Input, TextArea))

    def check_action(self, action: str, parameters: tuple) -> bool:
        """Let text inputs keep their keys while they have focus."""
        return not self._text_input_focused()

    def action_press_key(self, key: str) -> None:
        self.session.handle_key(key, self._text_input_focused())

    def action_toggle_mode(self) -> None:
        mode = self.session.toggle_display_mode()
        self.notify(f"Display mode: {mode.value}")

    def action_hide_overlays(self) -> None:
        self.session.stop_all_tools()

    def action_toggle_local_media(self) -> None:
        self.session.show_local_media(not self.session.state.local_media_active)

    def action_remove_entry(self) -> None:
        table = self.query_one("#setlist_table", DataTable)
        if table.row_count == 0:
            return
        self.session.remove_from_setlist(table.cursor_row)

    def action_move_entry(self, step: int) -> None:
        table = self.query_one("#setlist_table", DataTable)
        source = table.cursor_row
        target = source + step
        if table.row_count == 0 or not 0 <= target < table.row_count:
            return
        if self.session.move_in_setlist(source, target):
            table.move_cursor(row=target)

    def action_save_setlist(self) -> None:
        name = self.session.setlist.name or "Untitled setlist"
        self.session.save_setlist(name)

    def action_open_setlist(self) -> None:
        from worship_presenter.tui.screens.setlist_picker import SetlistPickerScreen

        self.app.push_screen(SetlistPickerScreen(self.session.list_setlists()), self._open_selected)

    def _open_selected(self, setlist_id) -> None:
        if not setlist_id:
            return
        if not self.session.setlist.has_unsaved_changes:
            self.session.load_setlist(setlist_id)
            return

        from worship_presenter.tui.screens.setlist_picker import UnsavedChangesScreen

        def resolved(choice: UnsavedChangesChoice) -> None:
            self.session.load_setlist(setlist_id, lambda: choice)

        self.app.push_screen(UnsavedChangesScreen(), resolved)

    def action_quit(self) -> None:
        self.app.action_quit()

    # Selection from the tables

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Handle row selection in either table."""
        if event.data_table.id == "setlist_table":
            self.session.select_entry(event.cursor_row)
        elif event.data_table.id == "slides_table":
            if self.session.state.uses_combined_slides:
                self.session.select_combined(event.cursor_row)
            else:
                self.session.select_slide(event.cursor_row)

    # Tool inputs

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Handle tool input submission."""
        value = event.value.strip()
        event.input.value = ""
        if not value:
            return

        if event.input.id == "announcement_input":
            if self.session.state.announcement.visible:
                self.session.update_announcement(value)
            else:
                self.session.show_announcement(value)
        elif event.input.id == "countdown_input":
            target, _, message = value.partition(" ")
            self.session.start_countdown(target, message.strip())
        elif event.input.id == "messages_input":
            self._run_messages(value)
        elif event.input.id == "add_input":
            self._add_from_library(value)
        elif event.input.id == "quick_input":
            text = "\n\n".join(part.strip() for part in value.split("//"))
            self.session.show_quick_slide(text)

    def _run_messages(self, value: str) -> None:
        session = self.session
        if value.lower() == "stop":
            session.stop_messages()
            return

        toggle = re.fullmatch(r"([+-])(\d+)", value)
        if toggle:
            sign, number = toggle.groups()
            if not session.set_message_enabled(int(number) - 1, sign == "+"):
                self.notify(f"No running message {number} to change", severity="warning")
            return

        session.start_messages([text.strip() for text in value.split("|") if text.strip()])

    @staticmethod
    def _bible_reference(words: list[str]):
        """(book, chapter) from "<book...> <chapter>" words, or None."""
        if len(words) >= 2 and words[-1].isdigit():
            return " ".join(words[:-1]), int(words[-1])
        return None

    def _find_song(self, query: str):
        session = self.session
        if session.content is None:
            self.notify("No content library configured", severity="error")
            return None
        matches = session.content.list_songs(query=query, limit=1)
        if not matches:
            self.notify(f"No song matching '{query}'", severity="warning")
            return None
        return matches[0]

    def _add_from_library(self, query: str) -> None:
        """Add a setlist entry (or run a command) from the add box."""
        session = self.session
        words = query.split()
        command, rest = words[0].lower(), " ".join(words[1:])

        if command == "blank" and not rest:
            session.add_to_setlist(Blank())
            return
        if command == "section" and rest:
            session.add_to_setlist(SectionHeader(title=rest))
            return
        if command == "announce" and rest:
            session.add_to_setlist(AnnouncementTool(text=rest))
            return
        if command == "countdown" and rest:
            target, _, message = rest.partition(" ")
            try:
                resolve_target_time(target, datetime.now())
            except ValueError as e:
                self.notify(str(e), severity="warning")
                return
            session.add_to_setlist(CountdownTool(target_time=target, message=message.strip()))
            return
        if command == "messages" and rest:
            texts = [text.strip() for text in rest.split("|") if text.strip()]
            session.add_to_setlist(
                MessagesTool(
                    messages=[RotatingMessage(text=text) for text in texts],
                    interval=session.tools.messages_interval,
                )
            )
            return
        if command == "image" and rest:
            session.add_media_by_id(rest)
            return
        if command == "presentation" and rest:
            session.add_presentation_by_id(rest)
            return
        if command == "background" and rest:
            session.set_background(rest)
            self.notify("Background changed")
            return
        if command == "show" and rest:
            self._show_from_library(words[1:])
            return
        if command == "bible" and len(words) >= 3:
            reference = self._bible_reference(words[1:])
            if reference is not None:
                session.add_bible_passage(*reference)
                return

        match = self._find_song(query)
        if match is None:
            return
        song_id, title = match
        if session.add_song_by_id(song_id) is not None:
            self.notify(f"Added '{title}'")

    def _show_from_library(self, words: list[str]) -> None:
        """Put library content on screen without adding it to the setlist."""
        session = self.session
        kind, rest = words[0].lower(), " ".join(words[1:])

        if kind == "bible":
            reference = self._bible_reference(words[1:])
            if reference is not None:
                session.select_bible_passage(*reference)
                return
        if kind == "image" and rest:
            session.select_media(rest)
            return
        if kind == "presentation" and rest:
            session.select_presentation(rest)
            return

        match = self._find_song(" ".join(words))
        if match is not None:
            session.select_song_by_id(match[0])

    # Rendering

    def refresh_view(self) -> None:
        """Bring every widget in line with the session."""
        if not self.is_mounted:
            return
        self._refresh_setlist()
        self._refresh_slides()
        self._refresh_status()

    def _refresh_setlist(self) -> None:
        session = self.session
        table = self.query_one("#setlist_table", DataTable)

        rows = [
            (str(i + 1), entry.item.item_type.value, item_title(entry.item))
            for i, entry in enumerate(session.entries)
        ]
        signature = tuple(rows)
        if signature != self._setlist_signature:
            table.clear()
            for row in rows:
                table.add_row(*row)
            self._setlist_signature = signature

        index = session.state.current_setlist_index
        if index is not None and index < table.row_count:
            table.move_cursor(row=index)

        marker = " *" if session.setlist.has_unsaved_changes else ""
        name = session.setlist.name or "Untitled setlist"
        self.query_one("#setlist_title", Label).update(f"[bold]Setlist[/bold] {name}{marker}")

    def _refresh_slides(self) -> None:
        state = self.session.state
        item = state.current_item
        table = self.query_one("#slides_table", DataTable)

        signature = (id(item), state.display_mode)
        if signature != self._slides_signature:
            table.clear()
            if state.uses_combined_slides:
                for i, unit in enumerate(state.combined.combined_slides):
                    text = " / ".join(item.slides[j].original_text for j in unit.original_indices)
                    table.add_row(str(i + 1), unit.label, text[:60])
            elif is_song_like(item):
                for i, slide in enumerate(item.slides):
                    table.add_row(str(i + 1), slide.verse_type, slide.original_text[:60])
            elif has_slides(item):
                for i, slide in enumerate(item.slides):
                    text = " ".join(str(box.get("text", "")) for box in slide.text_boxes)
                    table.add_row(str(i + 1), "", text[:60])
            self._slides_signature = signature

        if state.current_slide_index is not None and table.row_count:
            row = state.selected_combined_index if state.uses_combined_slides else state.current_slide_index
            if row < table.row_count:
                table.move_cursor(row=row)

    def _refresh_status(self) -> None:
        session = self.session
        state = session.state
        payload = session.encoder.compose()

        item = state.current_item
        if state.is_blank_active:
            on_air = "[reverse] BLANK [/reverse]"
        elif item is None or is_tool(item):
            on_air = "[dim]Nothing on air[/dim]"
        else:
            on_air = f"[bold]{item_title(item)}[/bold] {payload.primary.kind.value}"
            if state.current_slide_index is not None and has_slides(item):
                on_air += f" {state.current_slide_index + 1}/{len(item.slides)}"
        self.query_one("#on_air", Static).update(on_air)

        overlay = payload.overlay
        parts = []
        if overlay.announcement is not None:
            parts.append(f"Announcement: {overlay.announcement.text}")
        if overlay.countdown is not None:
            parts.append(f"Countdown {overlay.countdown.remaining}")
        if overlay.rotating_message is not None:
            parts.append(f"Message: {overlay.rotating_message.text}")

        room = session.room
        room_text = f"Room PIN [bold]{room.pin}[/bold]" if room else "[yellow]Offline[/yellow]"
        mode = "original only" if state.display_mode == DisplayMode.ORIGINAL else "bilingual"
        self.query_one("#status", Static).update(
            f"{room_text} | {mode}" + (" | " + " | ".join(parts) if parts else "")
        )
