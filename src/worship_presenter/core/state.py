"""Presentation state for one room.

Holds everything that decides what viewers see: the selected item and
slide, display mode, blank flag, and the live state of each overlay tool.
Timer callbacks and the broadcast encoder read this object when they run,
never values captured earlier, so a late-firing timer always sees the
current screen.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from worship_presenter.core.combining import CombinedSlideMap, create_combined_slides
from worship_presenter.core.models import (
    DisplayMode,
    PresentableItem,
    RotatingMessage,
    ToolType,
    is_song_like,
)


def format_remaining(seconds: int) -> str:
    """Format a countdown as MM:SS, or H:MM:SS past one hour.

    Args:
        seconds: Remaining seconds

    Returns:
        Formatted string
    """
    seconds = max(0, int(seconds))
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


@dataclass(frozen=True)
class PrimarySnapshot:
    """Primary content captured before an exclusive tool took the screen."""

    current_item: Optional[PresentableItem]
    current_setlist_index: Optional[int]
    current_slide_index: Optional[int]
    selected_combined_index: int
    is_blank_active: bool


@dataclass
class CountdownState:
    """Live countdown state.

    Attributes:
        active: Countdown is being broadcast
        running: The one-second tick is still scheduled
        target_time: Wall-clock end of the countdown
        remaining_seconds: Seconds left at the last tick
        message: Message shown above the countdown
        message_translation: Translated message
        source_index: Setlist position of the tool entry, if any
        snapshot: Primary content to restore on stop
    """

    active: bool = False
    running: bool = False
    target_time: Optional[datetime] = None
    remaining_seconds: int = 0
    message: str = ""
    message_translation: str = ""
    source_index: Optional[int] = None
    snapshot: Optional[PrimarySnapshot] = None

    @property
    def remaining(self) -> str:
        """Remaining time formatted for display."""
        return format_remaining(self.remaining_seconds)


@dataclass
class AnnouncementState:
    """Live announcement banner state."""

    visible: bool = False
    text: str = ""
    source_index: Optional[int] = None


@dataclass
class MessagesState:
    """Live rotating messages state."""

    active: bool = False
    messages: list[RotatingMessage] = field(default_factory=list)
    interval: int = 5
    current_index: int = 0
    source_index: Optional[int] = None
    snapshot: Optional[PrimarySnapshot] = None

    @property
    def current_text(self) -> str:
        """Text of the message currently on screen."""
        if 0 <= self.current_index < len(self.messages):
            return self.messages[self.current_index].text
        return ""


@dataclass(frozen=True)
class ActiveOverlay:
    """The overlay in the foreground of the viewer."""

    kind: ToolType
    data: Any
    source_setlist_index: Optional[int] = None


@dataclass
class PresentationState:
    """What is currently on screen in one room.

    Attributes:
        current_item: Selected item (None when nothing is selected)
        current_setlist_index: Setlist position of the selection (None if transient)
        current_slide_index: Broadcast slide (None = selected, nothing broadcast)
        display_mode: Bilingual or original-only
        is_blank_active: Screen intentionally blank
        selected_combined_index: Current unit in original-only mode
        local_media_active: Local (HDMI-only) media is covering the screen
        background_image: Room background sent with each payload
        combined: Combined slide units for the current item and mode
        countdown: Countdown tool state
        announcement: Announcement tool state
        messages: Rotating messages tool state
    """

    current_item: Optional[PresentableItem] = None
    current_setlist_index: Optional[int] = None
    current_slide_index: Optional[int] = None
    display_mode: DisplayMode = DisplayMode.BILINGUAL
    is_blank_active: bool = False
    selected_combined_index: int = 0
    local_media_active: bool = False
    background_image: str = ""

    combined: CombinedSlideMap = field(default_factory=CombinedSlideMap)

    countdown: CountdownState = field(default_factory=CountdownState)
    announcement: AnnouncementState = field(default_factory=AnnouncementState)
    messages: MessagesState = field(default_factory=MessagesState)

    @property
    def uses_combined_slides(self) -> bool:
        """Whether navigation moves by combined unit."""
        return self.display_mode == DisplayMode.ORIGINAL and is_song_like(self.current_item)

    @property
    def active_overlay(self) -> Optional[ActiveOverlay]:
        """The foreground overlay, by precedence announcement > countdown > messages."""
        if self.announcement.visible:
            return ActiveOverlay(ToolType.ANNOUNCEMENT, self.announcement, self.announcement.source_index)
        if self.countdown.active:
            return ActiveOverlay(ToolType.COUNTDOWN, self.countdown, self.countdown.source_index)
        if self.messages.active:
            return ActiveOverlay(ToolType.MESSAGES, self.messages, self.messages.source_index)
        return None

    def refresh_combined(self) -> None:
        """Recompute combined units after the item or display mode changed."""
        if is_song_like(self.current_item):
            self.combined = create_combined_slides(self.current_item.slides)
        else:
            self.combined = CombinedSlideMap()

        if self.current_slide_index is not None and self.combined.original_to_combined:
            self.selected_combined_index = self.combined.original_to_combined.get(
                self.current_slide_index, 0
            )
        else:
            self.selected_combined_index = 0

    def select(
        self,
        item: Optional[PresentableItem],
        setlist_index: Optional[int],
        slide_index: Optional[int],
    ) -> None:
        """Point the selection at an item and slide.

        Args:
            item: Item to select (None to clear)
            setlist_index: Position in the setlist, or None for transient items
            slide_index: Slide to show, or None for nothing broadcast yet
        """
        self.current_item = item
        self.current_setlist_index = setlist_index
        self.current_slide_index = slide_index
        self.refresh_combined()

    def clear_selection(self) -> None:
        """Deselect the current item."""
        self.select(None, None, None)

    def snapshot_primary(self) -> PrimarySnapshot:
        """Capture the primary content fields."""
        return PrimarySnapshot(
            current_item=self.current_item,
            current_setlist_index=self.current_setlist_index,
            current_slide_index=self.current_slide_index,
            selected_combined_index=self.selected_combined_index,
            is_blank_active=self.is_blank_active,
        )

    def restore_primary(self, snapshot: PrimarySnapshot) -> None:
        """Put back primary content captured by ``snapshot_primary``."""
        self.select(snapshot.current_item, snapshot.current_setlist_index, snapshot.current_slide_index)
        self.selected_combined_index = snapshot.selected_combined_index
        self.is_blank_active = snapshot.is_blank_active
