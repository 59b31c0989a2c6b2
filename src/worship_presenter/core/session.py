"""Presenter session: one room's state and the operator actions on it.

Wires the setlist, navigation, overlay tools and broadcast encoder to a
single ``PresentationState``. Every operator action that changes what
viewers see ends in exactly one broadcast. Content and store failures are
reported through the notifier and leave the state untouched.
"""

from typing import Callable, Iterable, Optional, Sequence, Union

from worship_presenter.core.encoder import BroadcastEncoder
from worship_presenter.core.keyboard import SECTION_KEY_MAP, KeyAction, resolve_key
from worship_presenter.core.models import (
    Blank,
    DisplayMode,
    PresentableItem,
    RotatingMessage,
    SectionHeader,
    SetlistEntry,
    has_slides,
    is_same_item,
    is_tool,
    item_key,
    quick_slide_song,
)
from worship_presenter.core.navigation import NavigationResolver, Selection
from worship_presenter.core.payload import SlideUpdatePayload
from worship_presenter.core.scheduler import Scheduler
from worship_presenter.core.setlist import IndexRemap, SetlistMutationLog, UnsavedChangesChoice
from worship_presenter.core.state import PresentationState
from worship_presenter.core.tools import (
    DEFAULT_ANNOUNCEMENT_SECONDS,
    DEFAULT_MESSAGES_INTERVAL,
    OverlayToolEngine,
    resolve_target_time,
)
from worship_presenter.db.content_client import ContentClient, ContentNotFoundError
from worship_presenter.db.setlist_store import SetlistStore, SetlistStoreError, SetlistSummary
from worship_presenter.logging_config import get_logger
from worship_presenter.services.rooms import RoomInfo
from worship_presenter.services.transport import BroadcastTransport

logger = get_logger(__name__)

Notifier = Callable[[str, str], None]


def log_notifier(message: str, severity: str = "information") -> None:
    """Notifier that only writes to the log."""
    if severity == "error":
        logger.error(message)
    elif severity == "warning":
        logger.warning(message)
    else:
        logger.info(message)


class PresenterSession:
    """Operator session for one room.

    Attributes:
        state: What is on screen
        setlist: The operator's setlist
        resolver: Navigation
        encoder: Broadcast encoder
        tools: Overlay tool engine
        room: Broadcast room (None when offline)
        content: Content library
        store: Setlist store
        notifier: Receives (message, severity) for operator-facing errors
        on_change: Called after anything visible changed
    """

    def __init__(
        self,
        scheduler: Scheduler,
        transport: Optional[BroadcastTransport] = None,
        room: Optional[RoomInfo] = None,
        content: Optional[ContentClient] = None,
        store: Optional[SetlistStore] = None,
        notifier: Optional[Notifier] = None,
        announcement_seconds: float = DEFAULT_ANNOUNCEMENT_SECONDS,
        messages_interval: int = DEFAULT_MESSAGES_INTERVAL,
        display_mode: DisplayMode = DisplayMode.BILINGUAL,
        background_image: str = "",
    ):
        self.room = room
        self.content = content
        self.store = store
        self.notifier = notifier or log_notifier
        self.on_change: Optional[Callable[[], None]] = None

        self.state = PresentationState(
            display_mode=display_mode,
            background_image=(room.background_image if room and room.background_image else background_image),
        )
        self.setlist = SetlistMutationLog()
        self.resolver = NavigationResolver(self.state)
        self.encoder = BroadcastEncoder(self.state, self.resolver, transport, room)
        self.tools = OverlayToolEngine(
            self.state,
            scheduler,
            self._emit,
            announcement_seconds=announcement_seconds,
            messages_interval=messages_interval,
        )

        self.setlist.before_remove = self.tools.stop_source
        self.setlist.on_remap = self._remap_indices

    @property
    def entries(self) -> list[SetlistEntry]:
        return self.setlist.entries

    def _notify(self, message: str, severity: str = "information") -> None:
        self.notifier(message, severity)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def _emit(self) -> Optional[SlideUpdatePayload]:
        payload = self.encoder.broadcast()
        self._changed()
        return payload

    def _commit_primary(
        self,
        item: Optional[PresentableItem],
        setlist_index: Optional[int],
        slide_index: Optional[int],
    ) -> Optional[SlideUpdatePayload]:
        """Put new primary content on screen.

        Countdown and messages give way to the new content; an announcement
        stays up.
        """
        self.tools.interrupt_exclusive()
        self.state.is_blank_active = isinstance(item, Blank)
        self.state.select(item, setlist_index, slide_index)
        return self._emit()

    def _apply(self, selection: Optional[Selection]) -> bool:
        if selection is None:
            return False
        self._commit_primary(selection.item, selection.setlist_index, selection.slide_index)
        return True

    def _remap_indices(self, remap: IndexRemap) -> None:
        if self.state.current_setlist_index is not None:
            self.state.current_setlist_index = remap(self.state.current_setlist_index)
        self.tools.remap_sources(remap)
        self._changed()

    # Selection

    def select_entry(self, index: int) -> bool:
        """Select a setlist entry.

        Section headers do nothing; tool entries start (or stop) their tool.

        Returns:
            True if anything changed
        """
        if not 0 <= index < len(self.entries):
            return False

        item = self.entries[index].item
        if isinstance(item, SectionHeader):
            return False
        if is_tool(item):
            return self.tools.activate_tool_entry(item, index)
        return self._apply(self.resolver.landing(item, index))

    def select_item(
        self,
        item: PresentableItem,
        setlist_index: Optional[int] = None,
        slide_index: Optional[int] = 0,
    ) -> bool:
        """Put an item on screen, from the setlist or as a transient item.

        Args:
            item: Item to show
            setlist_index: Setlist position, or None for a transient item
            slide_index: Slide to show (None selects without broadcasting a slide)

        Returns:
            True if the item was shown
        """
        if isinstance(item, SectionHeader):
            return False
        if is_tool(item):
            return self.tools.activate_tool_entry(item, setlist_index)
        if slide_index is not None and has_slides(item):
            slide_index = max(0, min(slide_index, len(item.slides) - 1))
        self._commit_primary(item, setlist_index, slide_index)
        return True

    def select_slide(self, slide_index: int) -> bool:
        """Show a slide of the current item.

        Returns:
            False if the index is out of range or the item has no slides
        """
        item = self.state.current_item
        if not has_slides(item) or not 0 <= slide_index < len(item.slides):
            return False
        self._commit_primary(item, self.state.current_setlist_index, slide_index)
        return True

    def select_combined(self, combined_index: int) -> bool:
        """Show a combined unit of the current song in original-only mode."""
        if not self.state.uses_combined_slides:
            return False
        combined = self.state.combined
        if not 0 <= combined_index < len(combined):
            return False
        return self.select_slide(combined.combined_slides[combined_index].first_index)

    # Navigation

    def next_slide(self) -> bool:
        return self._apply(self.resolver.next_slide(self.entries))

    def previous_slide(self) -> bool:
        return self._apply(self.resolver.previous_slide(self.entries))

    def next_item(self) -> bool:
        return self._apply(self.resolver.next_item(self.entries))

    def previous_item(self) -> bool:
        return self._apply(self.resolver.previous_item(self.entries))

    def toggle_blank(self) -> bool:
        """Blank the screen, or bring the selection back."""
        self.state.is_blank_active = not self.state.is_blank_active
        logger.info(f"Blank {'on' if self.state.is_blank_active else 'off'}")
        self._emit()
        return self.state.is_blank_active

    def set_display_mode(self, mode: DisplayMode) -> None:
        """Switch between bilingual and original-only display.

        Running tools are not interrupted.
        """
        if mode == self.state.display_mode:
            return
        state = self.state
        state.display_mode = mode
        state.refresh_combined()
        if state.uses_combined_slides and state.current_slide_index is not None:
            state.current_slide_index = state.combined.combined_slides[state.selected_combined_index].first_index
        self._emit()

    def toggle_display_mode(self) -> DisplayMode:
        """Flip the display mode.

        Returns:
            The new display mode
        """
        if self.state.display_mode == DisplayMode.BILINGUAL:
            self.set_display_mode(DisplayMode.ORIGINAL)
        else:
            self.set_display_mode(DisplayMode.BILINGUAL)
        return self.state.display_mode

    def show_local_media(self, visible: bool = True) -> None:
        """Mark local (HDMI-only) media as covering the viewers.

        The next broadcast clears it.
        """
        self.state.local_media_active = visible
        self.encoder.send_local_media_status(visible)
        self._changed()

    def set_background(self, background_image: str) -> None:
        """Change the room background."""
        self.state.background_image = background_image
        if self.room is not None:
            self.room.background_image = background_image
        self._emit()

    def handle_key(self, key: str, text_input_focused: bool = False) -> bool:
        """Run the action bound to a key.

        Returns:
            True if the key was bound and not suppressed
        """
        action = resolve_key(key, text_input_focused)
        if action is None:
            return False

        if action == KeyAction.NEXT_SLIDE:
            self.next_slide()
        elif action == KeyAction.PREVIOUS_SLIDE:
            self.previous_slide()
        elif action == KeyAction.NEXT_ITEM:
            self.next_item()
        elif action == KeyAction.PREVIOUS_ITEM:
            self.previous_item()
        elif action == KeyAction.TOGGLE_BLANK:
            self.toggle_blank()
        elif action == KeyAction.JUMP_TO_SECTION:
            self.jump_to_section(SECTION_KEY_MAP[key])
        return True

    def jump_to_section(self, verse_types: Sequence[str]) -> bool:
        """Show the first slide of a section of the current song."""
        return self._apply(self.resolver.section_start(verse_types))

    def show_quick_slide(self, text: str) -> bool:
        """Show typed text as a temporary song outside the setlist.

        Args:
            text: Slides separated by blank lines

        Returns:
            False if the text is empty
        """
        song = quick_slide_song(text)
        if song is None:
            return False
        logger.info(f"Quick slide with {len(song.slides)} slide(s)")
        return self.select_item(song, None)

    # Tools

    def start_countdown(self, target_time: str, message: str = "", message_translation: str = "") -> bool:
        """Start a countdown to an "HH:MM" time not taken from the setlist."""
        try:
            target = resolve_target_time(target_time, self.tools.scheduler.now())
        except ValueError as e:
            self._notify(str(e), "warning")
            return False
        self.tools.start_countdown(target, message, message_translation)
        return True

    def stop_countdown(self) -> bool:
        return self.tools.stop_countdown()

    def show_announcement(self, text: str) -> bool:
        return self.tools.show_announcement(text)

    def update_announcement(self, text: str) -> bool:
        return self.tools.update_announcement(text)

    def hide_announcement(self) -> bool:
        return self.tools.hide_announcement()

    def start_messages(
        self,
        messages: Iterable[Union[str, RotatingMessage]],
        interval: Optional[int] = None,
    ) -> bool:
        """Start rotating messages not taken from the setlist."""
        rotation = [m if isinstance(m, RotatingMessage) else RotatingMessage(text=m) for m in messages]
        if not self.tools.start_messages(rotation, interval):
            self._notify("No enabled messages to show", "warning")
            return False
        return True

    def stop_messages(self) -> bool:
        return self.tools.stop_messages()

    def set_message_enabled(self, index: int, enabled: bool) -> bool:
        return self.tools.set_message_enabled(index, enabled)

    def stop_all_tools(self) -> None:
        self.tools.stop_all()

    # Setlist

    def add_to_setlist(self, item: PresentableItem) -> int:
        """Append an item to the setlist.

        Returns:
            Position of the new entry
        """
        index = self.setlist.append(item)
        self._changed()
        return index

    def remove_from_setlist(self, index: int) -> bool:
        """Remove a setlist entry, stopping any overlay it started."""
        try:
            self.setlist.remove_at(index)
        except IndexError:
            return False
        return True

    def move_in_setlist(self, source: int, target: int) -> bool:
        """Move a setlist entry."""
        try:
            self.setlist.move_to(source, target)
        except IndexError:
            return False
        return True

    def save_setlist(self, name: Optional[str] = None) -> Optional[str]:
        """Save the setlist and link it to the room.

        Returns:
            Setlist ID, or None if saving failed
        """
        if self.store is None:
            self._notify("No setlist store configured", "error")
            return None

        room_id = self.room.room_id if self.room else None
        try:
            setlist_id = self.setlist.save(self.store, room_id, name)
            if room_id is not None:
                self.setlist.link(self.store, room_id)
        except SetlistStoreError as e:
            self._notify(f"Could not save setlist: {e}", "error")
            return None

        self._notify(f"Saved setlist '{self.setlist.name}'")
        self._changed()
        return setlist_id

    def load_setlist(
        self,
        setlist_id: str,
        resolve_unsaved: Optional[Callable[[], UnsavedChangesChoice]] = None,
    ) -> bool:
        """Load a saved setlist.

        Whatever is on screen stays there as a transient selection.

        Args:
            setlist_id: Setlist to load
            resolve_unsaved: Asked what to do with unsaved changes

        Returns:
            True if the setlist was loaded
        """
        if self.store is None:
            self._notify("No setlist store configured", "error")
            return False

        room_id = self.room.room_id if self.room else None
        try:
            loaded = self.setlist.load(setlist_id, self.store, resolve_unsaved, room_id)
            if loaded and room_id is not None:
                self.setlist.link(self.store, room_id)
        except SetlistStoreError as e:
            self._notify(f"Could not load setlist: {e}", "error")
            return False

        if loaded:
            self._remap_indices(lambda i: None)
        return loaded

    def list_setlists(self) -> list[SetlistSummary]:
        if self.store is None:
            return []
        try:
            return self.store.list_setlists()
        except SetlistStoreError as e:
            self._notify(f"Could not list setlists: {e}", "error")
            return []

    # Content library

    def _setlist_position(self, item: PresentableItem) -> Optional[int]:
        if item_key(item) is None:
            return None
        for index, entry in enumerate(self.entries):
            if is_same_item(entry.item, index, item, None):
                return index
        return None

    def _fetch(self, fetch: Callable[[ContentClient], PresentableItem]) -> Optional[PresentableItem]:
        if self.content is None:
            self._notify("No content library configured", "error")
            return None
        try:
            return fetch(self.content)
        except ContentNotFoundError as e:
            self._notify(str(e), "error")
            return None

    def select_song_by_id(self, song_id: str) -> bool:
        """Show a library song (matched to its setlist entry if it has one)."""
        song = self._fetch(lambda content: content.get_song(song_id))
        if song is None:
            return False
        return self._apply(self.resolver.landing(song, self._setlist_position(song)))

    def select_bible_passage(self, book: str, chapter: int) -> bool:
        """Show a Bible chapter as a transient item."""
        passage = self._fetch(lambda content: content.get_bible_passage(book, chapter))
        if passage is None:
            return False
        return self._apply(self.resolver.landing(passage, None))

    def select_media(self, media_id: str) -> bool:
        """Show a library image."""
        image = self._fetch(lambda content: content.get_media(media_id))
        if image is None:
            return False
        return self.select_item(image, self._setlist_position(image))

    def select_presentation(self, presentation_id: str) -> bool:
        """Show the first slide of a library presentation."""
        presentation = self._fetch(lambda content: content.get_presentation(presentation_id))
        if presentation is None:
            return False
        return self.select_item(presentation, self._setlist_position(presentation))

    def add_song_by_id(self, song_id: str) -> Optional[int]:
        """Append a library song to the setlist."""
        song = self._fetch(lambda content: content.get_song(song_id))
        if song is None:
            return None
        return self.add_to_setlist(song)

    def add_bible_passage(self, book: str, chapter: int) -> Optional[int]:
        """Append a Bible chapter to the setlist."""
        passage = self._fetch(lambda content: content.get_bible_passage(book, chapter))
        if passage is None:
            return None
        return self.add_to_setlist(passage)

    def add_media_by_id(self, media_id: str) -> Optional[int]:
        """Append a library image to the setlist."""
        image = self._fetch(lambda content: content.get_media(media_id))
        if image is None:
            return None
        return self.add_to_setlist(image)

    def add_presentation_by_id(self, presentation_id: str) -> Optional[int]:
        """Append a library presentation to the setlist."""
        presentation = self._fetch(lambda content: content.get_presentation(presentation_id))
        if presentation is None:
            return None
        return self.add_to_setlist(presentation)

    def close(self) -> None:
        """Stop every tool before the session goes away."""
        self.tools.stop_all()
        logger.info("Presenter session closed")
