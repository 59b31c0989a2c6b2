"""Navigation through slides and setlist entries.

The resolver only computes where the operator would land; the session
applies the result and broadcasts it. A unit of navigation is a slide of
the current item (or a combined unit in original-only mode) and, past the
first or last slide, the adjacent navigable setlist entry.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from worship_presenter.core.combining import create_combined_slides
from worship_presenter.core.models import (
    DisplayMode,
    PresentableItem,
    SetlistEntry,
    Slide,
    has_slides,
    is_navigable,
    is_same_item,
    is_song_like,
    item_key,
)
from worship_presenter.core.state import PresentationState


@dataclass(frozen=True)
class Selection:
    """Where a navigation step lands.

    Attributes:
        item: Item to select
        setlist_index: Setlist position (None for transient items)
        slide_index: Slide to show
        combined_index: Combined unit in original-only mode, if any
    """

    item: PresentableItem
    setlist_index: Optional[int]
    slide_index: int
    combined_index: Optional[int] = None


class NavigationResolver:
    """Computes next/previous slide and item for a presentation state."""

    def __init__(self, state: PresentationState):
        self.state = state

    def _can_navigate(self) -> bool:
        # Nothing selected, or blank freezes navigation until un-blanked
        state = self.state
        has_position = state.current_item is not None or state.current_setlist_index is not None
        return has_position and not state.is_blank_active

    def locate_current(self, entries: Sequence[SetlistEntry]) -> Optional[int]:
        """Find the setlist position of the current item.

        The stored position wins when it still holds the same item. Items
        matched by id (songs, images, ...) fall back to the first entry with
        that id, so a song dragged elsewhere is still found.

        Args:
            entries: The setlist

        Returns:
            Position, or None when the item is not in the setlist
        """
        item = self.state.current_item
        index = self.state.current_setlist_index
        if item is None:
            # Position kept while an overlay tool has the screen
            if index is not None and 0 <= index < len(entries):
                return index
            return None

        if index is not None and 0 <= index < len(entries):
            if is_same_item(entries[index].item, index, item, index):
                return index

        if item_key(item) is None:
            return None

        for i, entry in enumerate(entries):
            if is_same_item(entry.item, i, item, None):
                return i
        return None

    def next_slide(self, entries: Sequence[SetlistEntry]) -> Optional[Selection]:
        """Advance one slide, falling through to the next entry at the end."""
        if not self._can_navigate():
            return None

        state = self.state
        item = state.current_item

        if has_slides(item):
            if state.uses_combined_slides:
                current = state.selected_combined_index if state.current_slide_index is not None else -1
                if current + 1 < len(state.combined):
                    unit = state.combined.combined_slides[current + 1]
                    return Selection(item, state.current_setlist_index, unit.first_index, current + 1)
            else:
                current = state.current_slide_index if state.current_slide_index is not None else -1
                if current + 1 < len(item.slides):
                    return Selection(item, state.current_setlist_index, current + 1)

        return self._adjacent_item(entries, 1)

    def previous_slide(self, entries: Sequence[SetlistEntry]) -> Optional[Selection]:
        """Go back one slide, falling through to the previous entry at the start."""
        if not self._can_navigate():
            return None

        state = self.state
        item = state.current_item

        if has_slides(item) and state.current_slide_index is not None:
            if state.uses_combined_slides:
                current = state.selected_combined_index
                if current > 0:
                    unit = state.combined.combined_slides[current - 1]
                    return Selection(item, state.current_setlist_index, unit.first_index, current - 1)
            elif state.current_slide_index > 0:
                return Selection(item, state.current_setlist_index, state.current_slide_index - 1)

        return self._adjacent_item(entries, -1)

    def next_item(self, entries: Sequence[SetlistEntry]) -> Optional[Selection]:
        """Jump to the first slide of the next navigable entry."""
        if not self._can_navigate():
            return None
        return self._adjacent_item(entries, 1)

    def previous_item(self, entries: Sequence[SetlistEntry]) -> Optional[Selection]:
        """Jump to the last slide of the previous navigable entry."""
        if not self._can_navigate():
            return None
        return self._adjacent_item(entries, -1)

    def _adjacent_item(self, entries: Sequence[SetlistEntry], step: int) -> Optional[Selection]:
        position = self.locate_current(entries)
        if position is None:
            return None

        i = position + step
        while 0 <= i < len(entries):
            candidate = entries[i].item
            if is_navigable(candidate):
                return self.landing(candidate, i, from_end=step < 0)
            i += step
        return None

    def landing(self, item: PresentableItem, setlist_index: Optional[int], from_end: bool = False) -> Selection:
        """Selection for arriving at an item.

        Args:
            item: Item being entered
            setlist_index: Its setlist position
            from_end: Land on the last slide (moving backwards)

        Returns:
            Selection on the first or last slide
        """
        combined_mode = self.state.display_mode == DisplayMode.ORIGINAL and is_song_like(item)

        if combined_mode:
            combined = create_combined_slides(item.slides)
            unit_index = len(combined) - 1 if from_end else 0
            return Selection(item, setlist_index, combined.combined_slides[unit_index].first_index, unit_index)

        if from_end and has_slides(item):
            return Selection(item, setlist_index, len(item.slides) - 1)
        return Selection(item, setlist_index, 0)

    def section_start(self, verse_types: Sequence[str]) -> Optional[Selection]:
        """Jump to the first slide of a section of the current song.

        Args:
            verse_types: Candidate verse types, tried in order

        Returns:
            Selection on the section's first slide, or None if the song has
            none of them
        """
        if not self._can_navigate():
            return None

        state = self.state
        item = state.current_item
        if not is_song_like(item):
            return None

        for verse_type in verse_types:
            for index, slide in enumerate(item.slides):
                if slide.verse_type == verse_type:
                    combined_index = None
                    if state.uses_combined_slides:
                        combined_index = state.combined.original_to_combined.get(index)
                    return Selection(item, state.current_setlist_index, index, combined_index)
        return None

    def peek_next_slide(self) -> Optional[Slide]:
        """The slide that "next" would show within the current song, if any."""
        state = self.state
        item = state.current_item
        if not is_song_like(item) or state.current_slide_index is None:
            return None

        if state.uses_combined_slides:
            following = state.selected_combined_index + 1
            if following < len(state.combined):
                return item.slides[state.combined.combined_slides[following].first_index]
            return None

        following = state.current_slide_index + 1
        if following < len(item.slides):
            return item.slides[following]
        return None
