"""Overlay tool engine: countdown, announcement and rotating messages.

Countdown and rotating messages are exclusive tools: they take over the
screen, so starting one snapshots the primary content and stopping it puts
that content back. Only one of them is active at a time; starting one while
the other runs stops the other and carries its snapshot over, so stopping
the newcomer still returns to what was on screen before either started.

The announcement is a banner. It coexists with a countdown (the broadcast
encoder shows it in front and keeps the countdown underneath) but not with
rotating messages, which it stops.

Every timer callback reads ``PresentationState`` when it fires.
"""

from dataclasses import replace
from datetime import datetime, timedelta
from math import ceil
from typing import Callable, Optional, Sequence

from worship_presenter.core.models import (
    AnnouncementTool,
    CountdownTool,
    MessagesTool,
    PresentableItem,
    RotatingMessage,
    Tool,
    ToolType,
)
from worship_presenter.core.scheduler import Scheduler, TimerHandle
from worship_presenter.core.state import (
    AnnouncementState,
    CountdownState,
    MessagesState,
    PresentationState,
    PrimarySnapshot,
)
from worship_presenter.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_ANNOUNCEMENT_SECONDS = 15.0
DEFAULT_MESSAGES_INTERVAL = 5


def resolve_target_time(target_time: str, now: datetime) -> datetime:
    """Turn an "HH:MM" countdown target into a datetime.

    A time that is already past today means tomorrow.

    Args:
        target_time: Target in 24-hour "HH:MM" form
        now: Current time

    Returns:
        The next occurrence of the target time

    Raises:
        ValueError: If the string is not a valid time
    """
    parts = target_time.strip().split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid countdown time '{target_time}', expected HH:MM")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid countdown time '{target_time}', expected HH:MM")

    target = now.replace(hour=hours, minute=minutes, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return target


def _remap_snapshot(
    snapshot: Optional[PrimarySnapshot], remap: Callable[[int], Optional[int]]
) -> Optional[PrimarySnapshot]:
    if snapshot is None or snapshot.current_setlist_index is None:
        return snapshot
    return replace(snapshot, current_setlist_index=remap(snapshot.current_setlist_index))


class OverlayToolEngine:
    """Runs the overlay tools against one presentation state.

    Attributes:
        state: Live presentation state
        scheduler: Timer source
        emit: Called after every visible change (the broadcast encoder)
        announcement_seconds: Auto-hide delay for the announcement banner
        messages_interval: Default rotation interval in seconds
    """

    def __init__(
        self,
        state: PresentationState,
        scheduler: Scheduler,
        emit: Callable[[], object],
        announcement_seconds: float = DEFAULT_ANNOUNCEMENT_SECONDS,
        messages_interval: int = DEFAULT_MESSAGES_INTERVAL,
    ):
        self.state = state
        self.scheduler = scheduler
        self.emit = emit
        self.announcement_seconds = announcement_seconds
        self.messages_interval = messages_interval

        self._countdown_timer: Optional[TimerHandle] = None
        self._messages_timer: Optional[TimerHandle] = None
        self._announcement_timer: Optional[TimerHandle] = None

    # Shared helpers

    def _cancel(self, name: str) -> None:
        handle = getattr(self, name)
        if handle is not None:
            handle.cancel()
            setattr(self, name, None)

    def _claim_snapshot(self, kind: ToolType) -> PrimarySnapshot:
        """Snapshot to restore when the exclusive tool ``kind`` stops.

        Takes over the other exclusive tool's snapshot when it is running,
        keeps the existing one when ``kind`` itself is restarting, and
        otherwise captures the primary content now.
        """
        state = self.state
        if kind == ToolType.COUNTDOWN:
            mine, other = state.countdown, state.messages
        else:
            mine, other = state.messages, state.countdown

        if other.active:
            snapshot = other.snapshot
            logger.info(f"Starting {kind.value} stops the other exclusive tool")
            if kind == ToolType.COUNTDOWN:
                self._reset_messages()
            else:
                self._reset_countdown()
            if snapshot is not None:
                return snapshot

        if mine.active and mine.snapshot is not None:
            return mine.snapshot

        return state.snapshot_primary()

    def _take_screen(self, source_item: Optional[PresentableItem], source_index: Optional[int]) -> None:
        """Point the selection at the tool entry while it runs.

        A tool started outside the setlist deselects the item but keeps its
        setlist position, so item navigation still moves on from there.
        """
        self.state.is_blank_active = False
        if source_item is not None:
            self.state.select(source_item, source_index, None)
        else:
            self.state.select(None, self.state.current_setlist_index, None)

    def _reset_countdown(self) -> None:
        self._cancel("_countdown_timer")
        self.state.countdown = CountdownState()

    def _reset_messages(self) -> None:
        self._cancel("_messages_timer")
        self.state.messages = MessagesState()

    def _reset_announcement(self) -> None:
        self._cancel("_announcement_timer")
        self.state.announcement = AnnouncementState()

    # Countdown

    def _remaining(self, target: datetime) -> int:
        return max(0, ceil((target - self.scheduler.now()).total_seconds()))

    def start_countdown(
        self,
        target_time: datetime,
        message: str = "",
        message_translation: str = "",
        source_index: Optional[int] = None,
        source_item: Optional[PresentableItem] = None,
    ) -> None:
        """Start (or restart) the countdown.

        Args:
            target_time: When the countdown reaches zero
            message: Message shown with the countdown
            message_translation: Translated message
            source_index: Setlist position of the tool entry, if any
            source_item: The tool entry itself, selected while it runs
        """
        snapshot = self._claim_snapshot(ToolType.COUNTDOWN)
        self._cancel("_countdown_timer")

        remaining = self._remaining(target_time)
        self.state.countdown = CountdownState(
            active=True,
            running=remaining > 0,
            target_time=target_time,
            remaining_seconds=remaining,
            message=message,
            message_translation=message_translation,
            source_index=source_index,
            snapshot=snapshot,
        )
        self._take_screen(source_item, source_index)

        if remaining > 0:
            self._countdown_timer = self.scheduler.call_every(1, self._tick_countdown)

        logger.info(f"Countdown started to {target_time:%H:%M} ({remaining}s)")
        self.emit()

    def _tick_countdown(self) -> None:
        countdown = self.state.countdown
        if not countdown.active or countdown.target_time is None:
            self._cancel("_countdown_timer")
            return

        countdown.remaining_seconds = self._remaining(countdown.target_time)
        if countdown.remaining_seconds <= 0:
            # Stays on screen at 00:00 until stopped
            countdown.running = False
            self._cancel("_countdown_timer")
            logger.info("Countdown reached zero")

        self.emit()

    def stop_countdown(self) -> bool:
        """Stop the countdown and restore the content it replaced.

        Returns:
            False if the countdown was not active
        """
        countdown = self.state.countdown
        if not countdown.active:
            return False

        snapshot = countdown.snapshot
        self._reset_countdown()
        if snapshot is not None:
            self.state.restore_primary(snapshot)

        logger.info("Countdown stopped")
        self.emit()
        return True

    # Announcement

    def _restart_announcement_timer(self) -> None:
        self._cancel("_announcement_timer")
        self._announcement_timer = self.scheduler.call_later(
            self.announcement_seconds, self._auto_hide_announcement
        )

    def _auto_hide_announcement(self) -> None:
        self._announcement_timer = None
        self.hide_announcement()

    def show_announcement(self, text: str, source_index: Optional[int] = None) -> bool:
        """Show the announcement banner.

        Stops rotating messages. A running countdown keeps running behind
        the banner.

        Args:
            text: Banner text (blank text is ignored)
            source_index: Setlist position of the tool entry, if any

        Returns:
            True if the banner is shown
        """
        text = text.strip()
        if not text:
            return False

        if self.state.messages.active:
            snapshot = self.state.messages.snapshot
            self._reset_messages()
            if snapshot is not None:
                self.state.restore_primary(snapshot)

        self.state.announcement = AnnouncementState(visible=True, text=text, source_index=source_index)
        self._restart_announcement_timer()

        logger.info(f"Announcement shown: {text}")
        self.emit()
        return True

    def update_announcement(self, text: str) -> bool:
        """Change the visible banner's text and restart its hide window.

        Returns:
            False if no banner is visible or the text is blank
        """
        text = text.strip()
        if not self.state.announcement.visible or not text:
            return False

        self.state.announcement.text = text
        self._restart_announcement_timer()
        self.emit()
        return True

    def hide_announcement(self) -> bool:
        """Hide the banner.

        Returns:
            False if no banner was visible
        """
        if not self.state.announcement.visible:
            return False

        self._reset_announcement()
        logger.info("Announcement hidden")
        self.emit()
        return True

    # Rotating messages

    def start_messages(
        self,
        messages: Sequence[RotatingMessage],
        interval: Optional[int] = None,
        source_index: Optional[int] = None,
        source_item: Optional[PresentableItem] = None,
    ) -> bool:
        """Start (or restart) rotating messages.

        Args:
            messages: Messages to rotate; only enabled ones are shown
            interval: Seconds per message (default from configuration)
            source_index: Setlist position of the tool entry, if any
            source_item: The tool entry itself, selected while it runs

        Returns:
            False if no message is enabled
        """
        messages = [replace(message) for message in messages]
        enabled = [i for i, message in enumerate(messages) if message.enabled]
        if not enabled:
            logger.warning("No enabled messages to rotate")
            return False

        interval = max(1, int(interval or self.messages_interval))
        snapshot = self._claim_snapshot(ToolType.MESSAGES)
        self._cancel("_messages_timer")

        if self.state.announcement.visible:
            self._reset_announcement()

        self.state.messages = MessagesState(
            active=True,
            messages=messages,
            interval=interval,
            current_index=enabled[0],
            source_index=source_index,
            snapshot=snapshot,
        )
        self._take_screen(source_item, source_index)
        self._messages_timer = self.scheduler.call_every(interval, self._rotate_messages)

        logger.info(f"Rotating {len(enabled)} messages every {interval}s")
        self.emit()
        return True

    def _next_enabled(self, after: int) -> Optional[int]:
        messages = self.state.messages.messages
        for step in range(1, len(messages) + 1):
            candidate = (after + step) % len(messages)
            if messages[candidate].enabled:
                return candidate
        return None

    def _rotate_messages(self) -> None:
        state = self.state.messages
        if not state.active:
            self._cancel("_messages_timer")
            return

        following = self._next_enabled(state.current_index)
        if following is None:
            self.stop_messages()
            return

        state.current_index = following
        self.emit()

    def set_message_enabled(self, index: int, enabled: bool) -> bool:
        """Enable or disable one message of the running rotation.

        Disabling the message on screen moves to the next enabled one;
        disabling the last enabled message stops the rotation.

        Returns:
            True if the rotation changed
        """
        state = self.state.messages
        if not state.active or not 0 <= index < len(state.messages):
            return False
        if state.messages[index].enabled == enabled:
            return False

        state.messages[index].enabled = enabled
        if not enabled and index == state.current_index:
            following = self._next_enabled(index)
            if following is None:
                return self.stop_messages()
            state.current_index = following

        self.emit()
        return True

    def stop_messages(self) -> bool:
        """Stop rotating messages and restore the content they replaced.

        Returns:
            False if rotating messages were not active
        """
        messages = self.state.messages
        if not messages.active:
            return False

        snapshot = messages.snapshot
        self._reset_messages()
        if snapshot is not None:
            self.state.restore_primary(snapshot)

        logger.info("Rotating messages stopped")
        self.emit()
        return True

    # Setlist integration

    def activate_tool_entry(self, tool: Tool, index: Optional[int]) -> bool:
        """Start the tool of a setlist entry, or stop it if it is the active source.

        Args:
            tool: Tool item of the entry
            index: Setlist position of the entry

        Returns:
            True if anything changed
        """
        state = self.state

        if isinstance(tool, CountdownTool):
            if state.countdown.active and index is not None and state.countdown.source_index == index:
                return self.stop_countdown()
            try:
                target = resolve_target_time(tool.target_time, self.scheduler.now())
            except ValueError as e:
                logger.warning(str(e))
                return False
            self.start_countdown(target, tool.message, tool.message_translation, index, tool)
            return True

        if isinstance(tool, AnnouncementTool):
            if state.announcement.visible and index is not None and state.announcement.source_index == index:
                return self.hide_announcement()
            return self.show_announcement(tool.text, index)

        if isinstance(tool, MessagesTool):
            if state.messages.active and index is not None and state.messages.source_index == index:
                return self.stop_messages()
            return self.start_messages(tool.messages, tool.interval, index, tool)

        raise TypeError(f"Unknown tool type: {type(tool).__name__}")

    def stop_source(self, index: int) -> bool:
        """Stop every overlay started from setlist position ``index``.

        Returns:
            True if any overlay was stopped
        """
        stopped = False
        if self.state.announcement.visible and self.state.announcement.source_index == index:
            stopped = self.hide_announcement() or stopped
        if self.state.countdown.active and self.state.countdown.source_index == index:
            stopped = self.stop_countdown() or stopped
        if self.state.messages.active and self.state.messages.source_index == index:
            stopped = self.stop_messages() or stopped
        return stopped

    def remap_sources(self, remap: Callable[[int], Optional[int]]) -> None:
        """Rewrite setlist positions after entries were removed or moved.

        Args:
            remap: Maps an old position to its new one (None if removed)
        """
        state = self.state
        for tool_state in (state.countdown, state.messages):
            if tool_state.source_index is not None:
                tool_state.source_index = remap(tool_state.source_index)
            tool_state.snapshot = _remap_snapshot(tool_state.snapshot, remap)

        if state.announcement.source_index is not None:
            state.announcement.source_index = remap(state.announcement.source_index)

    def interrupt_exclusive(self) -> bool:
        """Drop countdown and messages because new primary content was chosen.

        Nothing is restored and nothing is emitted; the caller broadcasts the
        new content. The announcement is left alone.

        Returns:
            True if an exclusive tool was running
        """
        interrupted = False
        if self.state.countdown.active:
            self._reset_countdown()
            interrupted = True
        if self.state.messages.active:
            self._reset_messages()
            interrupted = True
        if interrupted:
            logger.info("Exclusive overlay interrupted by content change")
        return interrupted

    def stop_all(self) -> None:
        """Stop every tool."""
        self.hide_announcement()
        self.stop_countdown()
        self.stop_messages()
