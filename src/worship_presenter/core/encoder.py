"""Broadcast encoder.

Composes the slide update payload from the live presentation state and
sends it through the transport. This is the only writer to the transport,
and the only place that decides overlay precedence.
"""

from typing import Callable, Optional

from worship_presenter.core.models import (
    Blank,
    Image,
    Presentation,
    Slide,
    Song,
    YoutubeRef,
)
from worship_presenter.core.navigation import NavigationResolver
from worship_presenter.core.payload import (
    AnnouncementOverlay,
    CountdownOverlay,
    LocalMediaStatus,
    OverlayPayload,
    PresentationSlideRef,
    PrimaryContent,
    PrimaryKind,
    RotatingMessageOverlay,
    SlideContent,
    SlideData,
    SlideUpdatePayload,
    YoutubeContent,
)
from worship_presenter.core.state import PresentationState
from worship_presenter.logging_config import get_logger
from worship_presenter.services.rooms import RoomInfo
from worship_presenter.services.transport import BroadcastTransport

logger = get_logger(__name__)


def slide_data(slide: Slide) -> SlideData:
    """Convert a slide to its wire form."""
    return SlideData(**slide.to_dict())


class BroadcastEncoder:
    """Builds and sends slide update payloads for one room.

    Attributes:
        state: Live presentation state
        resolver: Used for the next-slide preview
        transport: Outbound channel (None when offline)
        room: Target room (None when no room was created)
        on_broadcast: Called with each payload after a successful send
    """

    def __init__(
        self,
        state: PresentationState,
        resolver: NavigationResolver,
        transport: Optional[BroadcastTransport] = None,
        room: Optional[RoomInfo] = None,
        on_broadcast: Optional[Callable[[SlideUpdatePayload], None]] = None,
    ):
        self.state = state
        self.resolver = resolver
        self.transport = transport
        self.room = room
        self.on_broadcast = on_broadcast

    def compose_primary(self) -> PrimaryContent:
        """Primary content for the current selection.

        Blank wins over anything selected. A selected item with no broadcast
        slide yet, a section header and a tool entry all produce NONE.
        """
        state = self.state
        item = state.current_item

        if state.is_blank_active or isinstance(item, Blank):
            return PrimaryContent(kind=PrimaryKind.BLANK)
        if item is None or state.current_slide_index is None:
            return PrimaryContent(kind=PrimaryKind.NONE)

        index = state.current_slide_index

        if isinstance(item, Song):
            if not 0 <= index < len(item.slides):
                logger.warning(f"Slide {index} out of range for '{item.id}'")
                return PrimaryContent(kind=PrimaryKind.NONE)

            combined_indices = None
            combined_slides = None
            if state.uses_combined_slides and state.combined:
                unit = state.combined.combined_slides[state.selected_combined_index]
                if unit.is_combined:
                    combined_indices = list(unit.original_indices)
                    combined_slides = [slide_data(item.slides[i]) for i in unit.original_indices]

            return PrimaryContent(
                kind=PrimaryKind.SLIDE,
                slide=SlideContent(
                    item_id=item.id,
                    title=item.title,
                    is_bible=item.is_bible,
                    is_temporary=item.is_temporary,
                    slide_index=index,
                    slide=slide_data(item.slides[index]),
                    combined_slide_indices=combined_indices,
                    combined_slides=combined_slides,
                ),
            )

        if isinstance(item, Image):
            return PrimaryContent(kind=PrimaryKind.IMAGE, image_url=item.url)

        if isinstance(item, Presentation):
            if not 0 <= index < len(item.slides):
                return PrimaryContent(kind=PrimaryKind.NONE)
            slide = item.slides[index]
            return PrimaryContent(
                kind=PrimaryKind.PRESENTATION,
                presentation=PresentationSlideRef(
                    presentation_id=item.id,
                    title=item.title,
                    slide_index=index,
                    slide_id=slide.id,
                    canvas_width=item.canvas_width,
                    canvas_height=item.canvas_height,
                    text_boxes=slide.text_boxes,
                    background_color=slide.background_color,
                ),
            )

        if isinstance(item, YoutubeRef):
            return PrimaryContent(
                kind=PrimaryKind.YOUTUBE,
                youtube=YoutubeContent(video_id=item.video_id, title=item.title),
            )

        # Section headers and tool entries are never primary content
        return PrimaryContent(kind=PrimaryKind.NONE)

    def compose_overlay(self) -> OverlayPayload:
        """Overlay block, with the foreground overlay named in ``visible``."""
        state = self.state
        overlay = OverlayPayload()

        if state.countdown.active:
            countdown = state.countdown
            overlay.countdown = CountdownOverlay(
                remaining_seconds=countdown.remaining_seconds,
                remaining=countdown.remaining,
                message=countdown.message,
                message_translation=countdown.message_translation,
                end_time=countdown.target_time,
                running=countdown.running,
            )

        if state.announcement.visible:
            overlay.announcement = AnnouncementOverlay(text=state.announcement.text)

        if state.messages.active:
            messages = state.messages
            enabled = [i for i, m in enumerate(messages.messages) if m.enabled]
            overlay.rotating_message = RotatingMessageOverlay(
                text=messages.current_text,
                index=enabled.index(messages.current_index) if messages.current_index in enabled else 0,
                messages=[messages.messages[i].text for i in enabled],
                interval=messages.interval,
            )

        active = state.active_overlay
        overlay.visible = active.kind if active is not None else None
        return overlay

    def compose(self) -> SlideUpdatePayload:
        """Build the payload for the current state without sending it."""
        state = self.state
        room = self.room
        next_slide = self.resolver.peek_next_slide()

        return SlideUpdatePayload(
            room_id=room.room_id if room else "",
            room_pin=room.pin if room else "",
            background_image=state.background_image,
            primary=self.compose_primary(),
            display_mode=state.display_mode,
            overlay=self.compose_overlay(),
            next_slide=slide_data(next_slide) if next_slide is not None else None,
            local_media_status=LocalMediaStatus(visible=False) if state.local_media_active else None,
        )

    def broadcast(self) -> Optional[SlideUpdatePayload]:
        """Compose and send the current state.

        Never raises: with no room or transport, or when the send fails, the
        failure is logged and None is returned.

        Returns:
            The payload that was sent, or None
        """
        if self.room is None or self.transport is None:
            logger.debug("No room or transport, broadcast skipped")
            return None

        payload = self.compose()
        try:
            self.transport.send_slide_update(payload)
        except Exception as e:
            logger.error(f"Broadcast to room {self.room.room_id} failed: {e}")
            return None

        if self.state.local_media_active:
            self.state.local_media_active = False
            self.send_local_media_status(False)

        if self.on_broadcast is not None:
            self.on_broadcast(payload)
        return payload

    def send_local_media_status(self, visible: bool) -> bool:
        """Tell viewers whether local media is covering them.

        Returns:
            True if the status was handed to the transport
        """
        if self.room is None or self.transport is None:
            return False
        try:
            self.transport.send_local_media_status(self.room.room_id, visible)
        except Exception as e:
            logger.error(f"Local media status for room {self.room.room_id} failed: {e}")
            return False
        return True
