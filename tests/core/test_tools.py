"""Tests for the overlay tool engine.

Timers run on the virtual clock, so every test controls exactly which
ticks fire.
"""

from datetime import datetime, timedelta

import pytest

from worship_presenter.core.models import (
    AnnouncementTool,
    CountdownTool,
    MessagesTool,
    RotatingMessage,
    ToolType,
)
from worship_presenter.core.payload import PrimaryKind
from worship_presenter.core.tools import resolve_target_time


@pytest.fixture
def on_song(session, make_song):
    """Session showing slide 1 of a song at setlist position 0."""
    song = make_song()
    session.add_to_setlist(song)
    session.select_entry(0)
    session.next_slide()
    return song


class TestResolveTargetTime:
    """Tests for resolve_target_time."""

    def test_later_today(self):
        """Verify a future time resolves to today."""
        now = datetime(2024, 1, 7, 10, 0, 0)

        assert resolve_target_time("10:30", now) == datetime(2024, 1, 7, 10, 30)

    def test_past_time_is_tomorrow(self):
        """Verify a time already past resolves to tomorrow."""
        now = datetime(2024, 1, 7, 10, 0, 0)

        assert resolve_target_time("09:30", now) == datetime(2024, 1, 8, 9, 30)
        assert resolve_target_time("10:00", now) == datetime(2024, 1, 8, 10, 0)

    @pytest.mark.parametrize("value", ["25:00", "10:75", "noon", "ab:cd", "10"])
    def test_invalid(self, value):
        """Verify malformed times are rejected."""
        with pytest.raises(ValueError):
            resolve_target_time(value, datetime(2024, 1, 7, 10, 0, 0))


class TestCountdown:
    """Tests for the countdown tool."""

    def test_counts_down_to_zero_and_stays(self, session, scheduler, transport):
        """Verify the countdown ticks to zero, stops its timer and stays on screen."""
        session.tools.start_countdown(scheduler.now() + timedelta(seconds=5), "Starting soon")

        scheduler.advance(5)

        assert len(transport.payloads) == 6
        remaining = [p.overlay.countdown.remaining_seconds for p in transport.payloads]
        assert remaining == [5, 4, 3, 2, 1, 0]
        last = transport.last_payload.overlay
        assert last.visible == ToolType.COUNTDOWN
        assert last.countdown.remaining == "00:00"
        assert last.countdown.running is False
        assert last.countdown.message == "Starting soon"
        assert scheduler.pending == 0

        scheduler.advance(30)
        assert len(transport.payloads) == 6
        assert session.state.countdown.active is True

    def test_target_already_reached(self, session, scheduler, transport):
        """Verify a countdown started at its target shows 00:00 without a timer."""
        session.tools.start_countdown(scheduler.now())

        assert transport.last_payload.overlay.countdown.remaining_seconds == 0
        assert session.state.countdown.running is False
        assert scheduler.pending == 0

    def test_stop_restores_previous_content(self, session, transport, on_song):
        """Verify stopping puts back the slide that was on screen."""
        session.start_countdown("10:30")
        assert transport.last_payload.primary.kind == PrimaryKind.NONE

        assert session.stop_countdown()

        assert session.state.current_item is on_song
        assert transport.last_payload.primary.slide.slide_index == 1
        assert transport.last_payload.overlay.visible is None

    def test_restore_blank(self, session, transport, on_song):
        """Verify a blanked screen is blank again after the countdown."""
        session.toggle_blank()
        session.start_countdown("10:30")
        assert session.state.is_blank_active is False

        session.stop_countdown()

        assert session.state.is_blank_active is True
        assert transport.last_payload.primary.kind == PrimaryKind.BLANK

    def test_invalid_time_notifies(self, session, transport, notifications):
        """Verify a bad time is reported and nothing starts."""
        assert session.start_countdown("7pm") is False

        assert session.state.countdown.active is False
        assert transport.payloads == []
        assert notifications[-1][1] == "warning"


class TestAnnouncement:
    """Tests for the announcement banner."""

    def test_auto_hides_after_window(self, session, scheduler, transport):
        """Verify the banner hides itself after 15 seconds."""
        session.show_announcement("Please be seated")

        scheduler.advance(14)
        assert session.state.announcement.visible is True

        scheduler.advance(1)
        assert session.state.announcement.visible is False
        assert transport.last_payload.overlay.visible is None

    def test_update_restarts_window(self, session, scheduler, transport):
        """Verify an update restarts the 15-second window."""
        session.show_announcement("Please be seated")
        scheduler.advance(10)

        assert session.update_announcement("Please stand")
        assert transport.last_payload.overlay.announcement.text == "Please stand"

        scheduler.advance(10)
        assert session.state.announcement.visible is True
        scheduler.advance(5)
        assert session.state.announcement.visible is False

    def test_blank_text_ignored(self, session, transport):
        """Verify empty or whitespace text shows nothing."""
        assert session.show_announcement("   ") is False
        assert transport.payloads == []

    def test_update_when_hidden(self, session):
        """Verify updating a hidden banner does nothing."""
        assert session.update_announcement("Hello") is False

    def test_countdown_resumes_after_auto_hide(self, session, scheduler, transport):
        """Verify the live countdown is in front again once the banner hides."""
        session.tools.start_countdown(scheduler.now() + timedelta(seconds=60))
        snapshot = session.state.countdown.snapshot
        session.show_announcement("Please be seated")
        assert transport.last_payload.overlay.visible == ToolType.ANNOUNCEMENT
        assert session.state.countdown.snapshot is snapshot

        scheduler.advance(15)

        last = transport.last_payload.overlay
        assert last.visible == ToolType.COUNTDOWN
        assert last.announcement is None
        assert last.countdown.remaining_seconds == 45
        assert session.state.countdown.snapshot is snapshot

    def test_stops_messages(self, session, transport, on_song):
        """Verify the banner stops a rotation and brings back the slide."""
        session.start_messages(["Welcome"])

        session.show_announcement("Please be seated")

        assert session.state.messages.active is False
        assert session.state.current_item is on_song
        last = transport.last_payload
        assert last.overlay.visible == ToolType.ANNOUNCEMENT
        assert last.overlay.rotating_message is None
        assert last.primary.slide.slide_index == 1


class TestRotatingMessages:
    """Tests for rotating messages."""

    def test_rotation_skips_disabled(self, session, scheduler, transport):
        """Verify rotation wraps around and skips disabled messages."""
        session.start_messages(
            [RotatingMessage(text="Welcome"), RotatingMessage(text="Hidden", enabled=False), RotatingMessage(text="Coffee")],
            interval=5,
        )
        shown = [transport.last_payload.overlay.rotating_message.text]

        for _ in range(3):
            scheduler.advance(5)
            shown.append(transport.last_payload.overlay.rotating_message.text)

        assert shown == ["Welcome", "Coffee", "Welcome", "Coffee"]

    def test_interval_from_configuration(self, session, scheduler):
        """Verify the configured interval is used when none is given."""
        session.start_messages(["One", "Two"])

        scheduler.advance(4)
        assert session.state.messages.current_text == "One"
        scheduler.advance(1)
        assert session.state.messages.current_text == "Two"

    def test_nothing_enabled(self, session, transport, notifications):
        """Verify a rotation with no enabled message does not start."""
        assert session.start_messages([RotatingMessage(text="Off", enabled=False)]) is False

        assert session.state.messages.active is False
        assert transport.payloads == []
        assert notifications[-1][1] == "warning"

    def test_disable_current_moves_on(self, session, transport):
        """Verify disabling the message on screen shows the next one."""
        session.start_messages(["Welcome", "Coffee"])

        assert session.set_message_enabled(0, False)

        assert transport.last_payload.overlay.rotating_message.text == "Coffee"

    def test_disable_last_enabled_stops(self, session, transport, on_song):
        """Verify disabling every message stops the rotation and restores content."""
        session.start_messages(["Welcome"])

        session.set_message_enabled(0, False)

        assert session.state.messages.active is False
        assert transport.last_payload.overlay.visible is None
        assert transport.last_payload.primary.slide.slide_index == 1

    def test_caller_messages_not_mutated(self, session):
        """Verify toggling a running message leaves the caller's list alone."""
        messages = [RotatingMessage(text="Welcome"), RotatingMessage(text="Coffee")]
        session.start_messages(messages)

        session.set_message_enabled(0, False)

        assert messages[0].enabled is True

    def test_hides_announcement(self, session, transport):
        """Verify starting a rotation hides the banner."""
        session.show_announcement("Please be seated")

        session.start_messages(["Welcome"])

        assert session.state.announcement.visible is False
        assert transport.last_payload.overlay.visible == ToolType.MESSAGES


class TestExclusiveTools:
    """Tests for countdown and messages excluding each other."""

    def test_countdown_replaces_messages(self, session, transport, on_song):
        """Verify a countdown stops messages and restores the original slide on stop."""
        session.start_messages(["Welcome"])
        session.start_countdown("10:30")

        assert session.state.messages.active is False
        assert session.state.countdown.active is True
        assert transport.last_payload.overlay.visible == ToolType.COUNTDOWN
        assert transport.last_payload.overlay.rotating_message is None

        session.stop_countdown()

        assert session.state.current_item is on_song
        assert transport.last_payload.primary.slide.slide_index == 1

    def test_messages_replace_countdown(self, session, transport, on_song, scheduler):
        """Verify messages stop a countdown and restore the original slide on stop."""
        session.start_countdown("10:30")
        session.start_messages(["Welcome"])

        assert session.state.countdown.active is False
        assert transport.last_payload.overlay.visible == ToolType.MESSAGES
        assert transport.last_payload.overlay.countdown is None

        session.stop_messages()

        assert session.state.current_item is on_song
        assert transport.last_payload.primary.slide.slide_index == 1
        assert scheduler.pending == 0

    def test_countdown_coexists_with_announcement(self, session):
        """Verify a countdown started under a banner leaves the banner up."""
        session.show_announcement("Please be seated")
        session.start_countdown("10:30")

        assert session.state.announcement.visible is True
        assert session.state.countdown.active is True

    def test_new_content_interrupts(self, session, scheduler, transport, make_song):
        """Verify selecting new content drops a rotation without restoring."""
        session.add_to_setlist(make_song())
        session.start_messages(["Welcome"])

        session.select_entry(0)

        assert session.state.messages.active is False
        assert scheduler.pending == 0
        assert transport.last_payload.primary.kind == PrimaryKind.SLIDE


class TestNavigationDuringTools:
    """Tests for item navigation while an ad-hoc tool has the screen."""

    def test_next_item_from_ad_hoc_countdown(self, session, transport, on_song, make_song):
        """Verify a countdown started outside the setlist keeps the setlist position."""
        session.add_to_setlist(make_song("song_0002", "How Great"))

        session.start_countdown("10:30")

        assert session.state.current_item is None
        assert session.state.current_setlist_index == 0

        assert session.next_item() is True
        assert session.state.current_setlist_index == 1
        assert session.state.countdown.active is False
        assert transport.last_payload.primary.slide.item_id == "song_0002"
        assert transport.last_payload.overlay.visible is None

    def test_previous_item_from_ad_hoc_messages(self, session, make_song):
        """Verify messages started outside the setlist keep the setlist position."""
        first = make_song()
        session.add_to_setlist(first)
        session.add_to_setlist(make_song("song_0002", "How Great"))
        session.select_entry(1)

        session.start_messages(["Welcome"])
        assert session.previous_item() is True

        assert session.state.current_item is first
        assert session.state.messages.active is False

    def test_transient_item_has_no_position(self, session, make_song):
        """Verify a tool over a transient item leaves item navigation a no-op."""
        session.add_to_setlist(make_song("song_0002", "How Great"))
        session.select_item(make_song(), None)

        session.start_countdown("10:30")

        assert session.next_item() is False
        assert session.state.countdown.active is True


class TestIdempotentStop:
    """Tests for stopping idle tools."""

    def test_stop_idle_tools(self, session, transport, on_song):
        """Verify stopping idle tools changes nothing and sends nothing."""
        before = session.state.snapshot_primary()
        sent = len(transport.payloads)

        assert session.stop_countdown() is False
        assert session.stop_messages() is False
        assert session.hide_announcement() is False
        session.stop_all_tools()

        assert session.state.snapshot_primary() == before
        assert len(transport.payloads) == sent

    def test_stop_twice(self, session, transport):
        """Verify a second stop is a no-op."""
        session.start_countdown("10:30")
        assert session.stop_countdown() is True
        sent = len(transport.payloads)

        assert session.stop_countdown() is False
        assert len(transport.payloads) == sent


class TestToolEntries:
    """Tests for tools started from setlist entries."""

    def test_countdown_entry_toggles(self, session, transport, on_song):
        """Verify selecting a countdown entry starts it and selecting it again stops it."""
        session.add_to_setlist(CountdownTool(target_time="10:30", message="Starting soon"))

        assert session.select_entry(1)
        assert session.state.countdown.source_index == 1
        assert session.state.current_setlist_index == 1
        assert transport.last_payload.primary.kind == PrimaryKind.NONE
        assert transport.last_payload.overlay.countdown.message == "Starting soon"

        assert session.select_entry(1)
        assert session.state.countdown.active is False
        assert session.state.current_item is on_song
        assert session.state.current_setlist_index == 0

    def test_switching_between_identical_entries_keeps_baseline(self, session, on_song):
        """Verify switching countdown entries keeps the original content to restore."""
        session.add_to_setlist(CountdownTool(target_time="10:30"))
        session.add_to_setlist(CountdownTool(target_time="10:30"))

        session.select_entry(1)
        session.select_entry(2)
        assert session.state.countdown.source_index == 2

        session.select_entry(2)
        assert session.state.current_item is on_song
        assert session.state.current_slide_index == 1

    def test_invalid_countdown_entry(self, session):
        """Verify a countdown entry with a bad time does nothing."""
        session.add_to_setlist(CountdownTool(target_time="99:99"))

        assert session.select_entry(0) is False
        assert session.state.countdown.active is False

    def test_announcement_entry_toggles(self, session):
        """Verify an announcement entry shows and hides the banner."""
        session.add_to_setlist(AnnouncementTool(text="Please be seated"))

        session.select_entry(0)
        assert session.state.announcement.visible is True
        assert session.state.announcement.source_index == 0

        session.select_entry(0)
        assert session.state.announcement.visible is False

    def test_messages_entry_uses_its_interval(self, session, scheduler):
        """Verify a messages entry rotates at its own interval."""
        session.add_to_setlist(MessagesTool(messages=[RotatingMessage(text="a"), RotatingMessage(text="b")], interval=2))

        session.select_entry(0)
        scheduler.advance(2)

        assert session.state.messages.current_text == "b"

    def test_removing_source_stops_tool(self, session, transport, on_song):
        """Verify removing a running tool's entry stops it first."""
        session.add_to_setlist(CountdownTool(target_time="10:30"))
        session.select_entry(1)

        assert session.remove_from_setlist(1)

        assert session.state.countdown.active is False
        assert transport.last_payload.overlay.visible is None
        assert transport.last_payload.primary.slide.slide_index == 1
        assert session.state.current_setlist_index == 0

    def test_removing_other_entry_keeps_tool(self, session, make_song):
        """Verify removing an unrelated entry shifts the tool's source position."""
        session.add_to_setlist(make_song(song_id="song_0002", title="Hallelujah"))
        session.add_to_setlist(AnnouncementTool(text="Welcome"))
        session.select_entry(1)

        session.remove_from_setlist(0)

        assert session.state.announcement.visible is True
        assert session.state.announcement.source_index == 0

    def test_moving_entries_remaps_sources_and_snapshot(self, session, on_song):
        """Verify a move rewrites the tool source and the position to restore."""
        session.add_to_setlist(CountdownTool(target_time="10:30"))
        session.select_entry(1)

        session.move_in_setlist(1, 0)

        assert session.state.countdown.source_index == 0
        assert session.state.countdown.snapshot.current_setlist_index == 1

        session.select_entry(0)
        assert session.state.countdown.active is False
        assert session.state.current_item is on_song
        assert session.state.current_setlist_index == 1
