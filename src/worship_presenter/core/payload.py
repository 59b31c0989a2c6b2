"""Pydantic models for the slide update payload sent to viewers."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from worship_presenter.core.models import DisplayMode, ToolType


class PrimaryKind(str, Enum):
    """Kinds of primary content."""

    NONE = "none"
    BLANK = "blank"
    SLIDE = "slide"
    IMAGE = "image"
    PRESENTATION = "presentation"
    YOUTUBE = "youtube"


class SlideData(BaseModel):
    """Text layers of one slide."""

    original_text: str
    transliteration: str = ""
    translation: str = ""
    translation_overflow: str = ""
    verse_type: str = ""
    verse_number: Optional[int] = None


class SlideContent(BaseModel):
    """A song or Bible slide on screen."""

    item_id: str
    title: str
    is_bible: bool = False
    is_temporary: bool = False
    slide_index: int
    slide: SlideData
    # Set only when a paired unit is shown in original-only mode
    combined_slide_indices: Optional[List[int]] = None
    combined_slides: Optional[List[SlideData]] = None


class PresentationSlideRef(BaseModel):
    """A presentation slide on screen."""

    presentation_id: str
    title: str
    slide_index: int
    slide_id: str
    canvas_width: int = 1920
    canvas_height: int = 1080
    text_boxes: List[dict] = Field(default_factory=list)
    background_color: str = "#000000"


class YoutubeContent(BaseModel):
    """A YouTube video on screen."""

    video_id: str
    title: str = ""


class PrimaryContent(BaseModel):
    """Main content of the screen."""

    kind: PrimaryKind = PrimaryKind.NONE
    slide: Optional[SlideContent] = None
    image_url: Optional[str] = None
    presentation: Optional[PresentationSlideRef] = None
    youtube: Optional[YoutubeContent] = None


class CountdownOverlay(BaseModel):
    """Countdown tool payload."""

    remaining_seconds: int
    remaining: str
    message: str = ""
    message_translation: str = ""
    end_time: Optional[datetime] = None
    running: bool = True


class AnnouncementOverlay(BaseModel):
    """Announcement banner payload."""

    text: str


class RotatingMessageOverlay(BaseModel):
    """Rotating messages payload."""

    text: str
    index: int = 0
    messages: List[str] = Field(default_factory=list)
    interval: int = 5


class OverlayPayload(BaseModel):
    """Overlay block.

    ``visible`` names the foreground overlay. A countdown is still carried
    while an announcement covers it, so viewers can show it again the moment
    the banner hides.
    """

    visible: Optional[ToolType] = None
    countdown: Optional[CountdownOverlay] = None
    announcement: Optional[AnnouncementOverlay] = None
    rotating_message: Optional[RotatingMessageOverlay] = None


class LocalMediaStatus(BaseModel):
    """Whether local (HDMI-only) media covers the viewer."""

    visible: bool


class SlideUpdatePayload(BaseModel):
    """Everything a viewer needs to render the current screen."""

    room_id: str
    room_pin: str
    background_image: str = ""
    primary: PrimaryContent = Field(default_factory=PrimaryContent)
    display_mode: DisplayMode = DisplayMode.BILINGUAL
    overlay: OverlayPayload = Field(default_factory=OverlayPayload)
    next_slide: Optional[SlideData] = None
    local_media_status: Optional[LocalMediaStatus] = None
