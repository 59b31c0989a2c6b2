"""Setlist editing with unsaved-change tracking.

Wraps the ordered entry list. Every mutation marks the setlist dirty;
loading a different setlist while dirty asks the caller whether to save,
discard or cancel. Hooks let the session stop overlays sourced from an entry
before it disappears and rewrite stored positions afterwards.
"""

from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from worship_presenter.core.models import PresentableItem, SetlistEntry
from worship_presenter.logging_config import get_logger

if TYPE_CHECKING:
    from worship_presenter.db.setlist_store import SetlistStore

logger = get_logger(__name__)

IndexRemap = Callable[[int], Optional[int]]


class UnsavedChangesChoice(str, Enum):
    """Answer to "the setlist has unsaved changes"."""

    SAVE = "save"
    DISCARD = "discard"
    CANCEL = "cancel"


def remap_index_after_remove(index: int, removed: int) -> Optional[int]:
    """Position of ``index`` after the entry at ``removed`` was deleted.

    Returns:
        New position, or None if ``index`` was the removed entry
    """
    if index == removed:
        return None
    if index > removed:
        return index - 1
    return index


def remap_index_after_move(index: int, source: int, target: int) -> int:
    """Position of ``index`` after the entry at ``source`` moved to ``target``."""
    if index == source:
        return target
    if source < target and source < index <= target:
        return index - 1
    if target < source and target <= index < source:
        return index + 1
    return index


class SetlistMutationLog:
    """The operator's setlist.

    Attributes:
        entries: Ordered setlist entries
        has_unsaved_changes: Entries differ from what was last loaded or saved
        setlist_id: Store id of the loaded or saved setlist
        name: Setlist name
        before_remove: Called with a position before that entry is removed
        on_remap: Called with an index remap function after a remove or move
    """

    def __init__(self, name: str = ""):
        self.entries: List[SetlistEntry] = []
        self.has_unsaved_changes = False
        self.setlist_id: Optional[str] = None
        self.name = name
        self.before_remove: Optional[Callable[[int], None]] = None
        self.on_remap: Optional[Callable[[IndexRemap], None]] = None

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> SetlistEntry:
        return self.entries[index]

    @property
    def items(self) -> List[PresentableItem]:
        return [entry.item for entry in self.entries]

    def append(self, item: PresentableItem) -> int:
        """Add an item at the end.

        Returns:
            Position of the new entry
        """
        self.entries.append(SetlistEntry(item=item))
        self.has_unsaved_changes = True
        return len(self.entries) - 1

    def remove_at(self, index: int) -> PresentableItem:
        """Remove the entry at ``index``.

        Overlays sourced from the entry are stopped before it goes.

        Returns:
            The removed item

        Raises:
            IndexError: If ``index`` is out of range
        """
        if not 0 <= index < len(self.entries):
            raise IndexError(f"Setlist position {index} out of range")

        if self.before_remove is not None:
            self.before_remove(index)

        entry = self.entries.pop(index)
        self.has_unsaved_changes = True

        if self.on_remap is not None:
            self.on_remap(lambda i: remap_index_after_remove(i, index))
        return entry.item

    def move_to(self, source: int, target: int) -> int:
        """Move the entry at ``source`` so it ends up at ``target``.

        Returns:
            Final position of the moved entry

        Raises:
            IndexError: If ``source`` is out of range
        """
        if not 0 <= source < len(self.entries):
            raise IndexError(f"Setlist position {source} out of range")

        target = max(0, min(target, len(self.entries) - 1))
        if target == source:
            return source

        entry = self.entries.pop(source)
        self.entries.insert(target, entry)
        self.has_unsaved_changes = True

        if self.on_remap is not None:
            self.on_remap(lambda i: remap_index_after_move(i, source, target))
        return target

    def clear(self) -> None:
        """Remove every entry."""
        if not self.entries:
            return
        for index in reversed(range(len(self.entries))):
            if self.before_remove is not None:
                self.before_remove(index)
        self.entries = []
        self.has_unsaved_changes = True
        if self.on_remap is not None:
            self.on_remap(lambda i: None)

    def replace_entries(self, entries: List[SetlistEntry], setlist_id: Optional[str], name: str) -> None:
        """Swap in a setlist that matches the store."""
        self.entries = list(entries)
        self.setlist_id = setlist_id
        self.name = name
        self.has_unsaved_changes = False

    def load(
        self,
        setlist_id: str,
        store: "SetlistStore",
        resolve_unsaved: Optional[Callable[[], UnsavedChangesChoice]] = None,
        room_id: Optional[str] = None,
    ) -> bool:
        """Replace the entries with a stored setlist.

        Args:
            setlist_id: Setlist to load
            store: Setlist store
            resolve_unsaved: Asked what to do with unsaved changes; without
                one, unsaved changes cancel the load
            room_id: Room the current setlist is saved under if the answer is SAVE

        Returns:
            True if the setlist was loaded, False if cancelled

        Raises:
            SetlistStoreError: If the store cannot load or save
        """
        if self.has_unsaved_changes:
            choice = resolve_unsaved() if resolve_unsaved is not None else UnsavedChangesChoice.CANCEL
            logger.info(f"Unsaved changes before loading '{setlist_id}': {choice.value}")
            if choice == UnsavedChangesChoice.CANCEL:
                return False
            if choice == UnsavedChangesChoice.SAVE:
                self.save(store, room_id)

        stored = store.load_setlist(setlist_id)
        self.replace_entries(stored.entries, stored.id, stored.name)
        logger.info(f"Loaded setlist '{stored.name}' with {len(stored.entries)} entries")
        return True

    def save(self, store: "SetlistStore", room_id: Optional[str] = None, name: Optional[str] = None) -> str:
        """Write the entries to the store.

        Returns:
            Store id of the setlist

        Raises:
            SetlistStoreError: If the store cannot save
        """
        if name is not None:
            self.name = name
        self.setlist_id = store.save_setlist(room_id, self.entries, self.name, self.setlist_id)
        self.has_unsaved_changes = False
        logger.info(f"Saved setlist '{self.name}' ({self.setlist_id})")
        return self.setlist_id

    def link(self, store: "SetlistStore", room_id: str) -> None:
        """Make the saved setlist the one shown for ``room_id``."""
        if self.setlist_id is None:
            raise ValueError("Setlist must be saved before it can be linked")
        store.link_setlist(room_id, self.setlist_id)

    def unlink(self, store: "SetlistStore", room_id: str) -> None:
        """Detach any setlist from ``room_id``."""
        store.unlink_setlist(room_id)
