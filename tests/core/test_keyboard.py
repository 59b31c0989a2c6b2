"""Tests for presenter keyboard shortcuts."""

import pytest

from worship_presenter.core.keyboard import SECTION_KEY_MAP, KeyAction, resolve_key
from worship_presenter.core.models import DisplayMode


class TestResolveKey:
    """Tests for resolve_key."""

    @pytest.mark.parametrize(
        "key,action",
        [
            ("right", KeyAction.NEXT_SLIDE),
            ("left", KeyAction.PREVIOUS_SLIDE),
            ("down", KeyAction.NEXT_ITEM),
            ("up", KeyAction.PREVIOUS_ITEM),
            ("space", KeyAction.TOGGLE_BLANK),
            ("b", KeyAction.TOGGLE_BLANK),
            ("B", KeyAction.TOGGLE_BLANK),
        ],
    )
    def test_bound_keys(self, key, action):
        """Verify each shortcut maps to its action."""
        assert resolve_key(key) == action

    def test_unbound_key(self):
        """Verify other keys do nothing."""
        assert resolve_key("x") is None

    @pytest.mark.parametrize("key", ["1", "c", "r", "e"])
    def test_section_keys(self, key):
        """Verify section shortcuts jump to a section."""
        assert resolve_key(key) == KeyAction.JUMP_TO_SECTION
        assert resolve_key(key, text_input_focused=True) is None

    def test_section_keys_leave_blank_alone(self):
        """Verify no section shortcut shadows the blank keys."""
        assert not {"b", "B", "space"} & set(SECTION_KEY_MAP)

    @pytest.mark.parametrize("key", ["right", "space", "b"])
    def test_suppressed_while_typing(self, key):
        """Verify shortcuts are off while a text input has focus."""
        assert resolve_key(key, text_input_focused=True) is None


class TestSessionKeys:
    """Tests for keys driving a session."""

    def test_arrows_navigate(self, session, make_song):
        """Verify right and down move through the setlist."""
        session.add_to_setlist(make_song(count=2))
        session.add_to_setlist(make_song(song_id="song_0002", title="Hallelujah"))
        session.select_entry(0)

        assert session.handle_key("right")
        assert session.state.current_slide_index == 1
        assert session.handle_key("down")
        assert session.state.current_setlist_index == 1
        assert session.handle_key("up")
        assert session.state.current_setlist_index == 0
        assert session.state.current_slide_index == 1
        assert session.handle_key("left")
        assert session.state.current_slide_index == 0

    def test_space_toggles_blank(self, session, make_song):
        """Verify space blanks and un-blanks."""
        session.select_item(make_song())

        session.handle_key("space")
        assert session.state.is_blank_active is True
        session.handle_key("B")
        assert session.state.is_blank_active is False

    def test_typing_does_not_navigate(self, session, make_song, transport):
        """Verify keys typed into a text field leave the screen alone."""
        session.add_to_setlist(make_song())
        session.select_entry(0)
        sent = len(transport.payloads)

        assert session.handle_key("b", text_input_focused=True) is False
        assert session.handle_key("right", text_input_focused=True) is False

        assert session.state.is_blank_active is False
        assert session.state.current_slide_index == 0
        assert len(transport.payloads) == sent


class TestJumpToSection:
    """Tests for the section shortcuts."""

    def test_jumps_to_first_chorus_slide(self, session, make_song, transport):
        """Verify "c" shows the first chorus slide of the current song."""
        session.add_to_setlist(make_song(verse_types=["Verse1", "Verse1", "Chorus", "Chorus", "Verse2"]))
        session.select_entry(0)

        assert session.handle_key("c")
        assert session.state.current_slide_index == 2
        assert session.state.current_setlist_index == 0
        assert transport.last_payload.primary.slide.slide_index == 2

        session.handle_key("2")
        assert session.state.current_slide_index == 4
        session.handle_key("1")
        assert session.state.current_slide_index == 0

    def test_lowercase_verse_types(self, session, make_song):
        """Verify lower-case section names are matched too."""
        session.select_item(make_song(verse_types=["verse1", "bridge", "chorus"]))

        session.handle_key("r")
        assert session.state.current_slide_index == 1

    def test_missing_section_is_noop(self, session, make_song, transport):
        """Verify a song without the section stays where it is."""
        session.select_item(make_song(verse_types=["Verse1", "Chorus"]))
        sent = len(transport.payloads)

        assert session.jump_to_section(SECTION_KEY_MAP["r"]) is False
        assert session.state.current_slide_index == 0
        assert len(transport.payloads) == sent

    def test_original_only_mode(self, session, make_song):
        """Verify the jump lands on the combined unit holding the section."""
        session.set_display_mode(DisplayMode.ORIGINAL)
        session.select_item(make_song(verse_types=["Verse1", "Verse1", "Chorus", "Chorus"]))

        session.handle_key("c")

        assert session.state.current_slide_index == 2
        assert session.state.selected_combined_index == 1

    def test_blank_freezes_jump(self, session, make_song):
        """Verify section keys do nothing while the screen is blanked."""
        session.select_item(make_song(verse_types=["Verse1", "Chorus"]))
        session.toggle_blank()

        session.handle_key("c")

        assert session.state.current_slide_index == 0
