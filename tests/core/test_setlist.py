"""Tests for setlist editing and unsaved-change tracking."""

import pytest

from worship_presenter.core.models import Blank, SectionHeader
from worship_presenter.core.setlist import (
    SetlistMutationLog,
    UnsavedChangesChoice,
    remap_index_after_move,
    remap_index_after_remove,
)
from worship_presenter.db.setlist_store import SetlistStore


@pytest.fixture
def store(tmp_path):
    """Empty setlist store."""
    store = SetlistStore(tmp_path / "setlists.db")
    store.initialize_schema()
    yield store
    store.close()


@pytest.fixture
def setlist(make_song):
    """Saved-looking setlist of four entries, no unsaved changes."""
    log = SetlistMutationLog(name="Sunday")
    for item in (make_song(), Blank(), SectionHeader(title="Response"), make_song(song_id="song_0002", title="Hallelujah")):
        log.append(item)
    log.has_unsaved_changes = False
    return log


class TestIndexRemaps:
    """Tests for position remapping."""

    def test_after_remove(self):
        """Verify positions after a removal shift down and the removed one vanishes."""
        assert remap_index_after_remove(1, 3) == 1
        assert remap_index_after_remove(3, 3) is None
        assert remap_index_after_remove(5, 3) == 4

    @pytest.mark.parametrize(
        "index,source,target,expected",
        [
            (1, 1, 3, 3),
            (2, 1, 3, 1),
            (3, 1, 3, 2),
            (4, 1, 3, 4),
            (3, 3, 1, 1),
            (1, 3, 1, 2),
            (2, 3, 1, 3),
            (0, 3, 1, 0),
        ],
    )
    def test_after_move(self, index, source, target, expected):
        """Verify positions follow a splice-based move."""
        assert remap_index_after_move(index, source, target) == expected


class TestMutations:
    """Tests for structural edits."""

    def test_append_marks_dirty(self, setlist):
        """Verify append returns the new position and marks unsaved changes."""
        assert setlist.append(Blank()) == 4
        assert setlist.has_unsaved_changes is True
        assert len(setlist) == 5

    def test_remove_at(self, setlist):
        """Verify remove_at returns the removed item and marks unsaved changes."""
        removed = setlist.remove_at(1)

        assert isinstance(removed, Blank)
        assert len(setlist) == 3
        assert setlist.has_unsaved_changes is True

    def test_remove_out_of_range(self, setlist):
        """Verify removing a missing position raises and changes nothing."""
        with pytest.raises(IndexError):
            setlist.remove_at(9)
        assert setlist.has_unsaved_changes is False

    def test_remove_calls_hooks_in_order(self, setlist):
        """Verify before_remove sees the entry still present and on_remap follows."""
        calls = []
        setlist.before_remove = lambda index: calls.append(("before", index, len(setlist)))
        setlist.on_remap = lambda remap: calls.append(("remap", remap(3), len(setlist)))

        setlist.remove_at(1)

        assert calls == [("before", 1, 4), ("remap", 2, 3)]

    def test_move_to(self, setlist):
        """Verify move_to splices the entry to its target."""
        titles_before = [type(item).__name__ for item in setlist.items]

        assert setlist.move_to(0, 2) == 2

        assert [type(item).__name__ for item in setlist.items] == [
            titles_before[1],
            titles_before[2],
            titles_before[0],
            titles_before[3],
        ]
        assert setlist.has_unsaved_changes is True

    def test_move_clamps_target(self, setlist):
        """Verify a target past the end moves to the last position."""
        assert setlist.move_to(0, 99) == 3
        assert setlist[3].item.id == "song_0001"

    def test_move_to_same_position(self, setlist):
        """Verify a move onto itself changes nothing."""
        assert setlist.move_to(2, 2) == 2
        assert setlist.has_unsaved_changes is False

    def test_move_invalid_source(self, setlist):
        """Verify moving a missing entry raises."""
        with pytest.raises(IndexError):
            setlist.move_to(-1, 0)

    def test_clear(self, setlist):
        """Verify clear stops every entry's overlays and empties the setlist."""
        removed = []
        setlist.before_remove = removed.append

        setlist.clear()

        assert len(setlist) == 0
        assert removed == [3, 2, 1, 0]
        assert setlist.has_unsaved_changes is True


class TestLoadAndSave:
    """Tests for load and save against the store."""

    def test_save_then_load(self, setlist, store):
        """Verify a saved setlist loads back clean."""
        setlist_id = setlist.save(store, name="Sunday AM")
        assert setlist.has_unsaved_changes is False

        other = SetlistMutationLog()
        assert other.load(setlist_id, store)

        assert other.name == "Sunday AM"
        assert other.setlist_id == setlist_id
        assert len(other) == 4
        assert other.has_unsaved_changes is False

    def test_second_save_overwrites(self, setlist, store):
        """Verify saving again keeps the same id."""
        first = setlist.save(store)
        setlist.append(Blank())

        assert setlist.save(store) == first
        assert len(store.load_setlist(first).entries) == 5

    def test_dirty_load_without_resolver_cancels(self, setlist, store):
        """Verify unsaved changes block the load when nobody is asked."""
        setlist_id = setlist.save(store)
        setlist.append(Blank())

        assert setlist.load(setlist_id, store) is False
        assert len(setlist) == 5

    def test_dirty_load_cancel(self, setlist, store):
        """Verify CANCEL keeps the current entries."""
        setlist_id = setlist.save(store)
        setlist.append(Blank())

        assert setlist.load(setlist_id, store, lambda: UnsavedChangesChoice.CANCEL) is False
        assert setlist.has_unsaved_changes is True

    def test_dirty_load_discard(self, setlist, store):
        """Verify DISCARD drops the changes and loads."""
        setlist_id = setlist.save(store)
        setlist.append(Blank())

        assert setlist.load(setlist_id, store, lambda: UnsavedChangesChoice.DISCARD)
        assert len(setlist) == 4
        assert setlist.has_unsaved_changes is False

    def test_dirty_load_save(self, setlist, store, make_song):
        """Verify SAVE writes the current entries before loading the other setlist."""
        other = SetlistMutationLog(name="Evening")
        other.append(make_song(song_id="song_0009", title="Evening Song"))
        other_id = other.save(store)

        current_id = setlist.save(store)
        setlist.append(Blank())

        assert setlist.load(other_id, store, lambda: UnsavedChangesChoice.SAVE)

        assert setlist.name == "Evening"
        assert len(store.load_setlist(current_id).entries) == 5

    def test_link_requires_save(self, setlist, store):
        """Verify an unsaved setlist cannot be linked."""
        with pytest.raises(ValueError):
            setlist.link(store, "room-1")

    def test_link_and_unlink(self, setlist, store):
        """Verify linking attaches the setlist to the room and unlink detaches it."""
        setlist_id = setlist.save(store)

        setlist.link(store, "room-1")
        assert store.get_linked_setlist_id("room-1") == setlist_id

        setlist.unlink(store, "room-1")
        assert store.get_linked_setlist_id("room-1") is None
