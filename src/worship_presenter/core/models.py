"""Presentable item models.

Defines the closed set of things that can sit in a setlist (songs, Bible
passages, images, blanks, presentations, YouTube references, section headers
and overlay tools), the identity rules used to match a selection back to its
setlist slot, and serialization to the setlist store's item schema.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from worship_presenter.logging_config import get_logger

logger = get_logger(__name__)


class ItemType(str, Enum):
    """Discriminator for setlist item variants."""

    SONG = "song"
    BIBLE = "bible"
    IMAGE = "image"
    BLANK = "blank"
    PRESENTATION = "presentation"
    YOUTUBE = "youtube"
    SECTION = "section"
    TOOL = "tool"


class ToolType(str, Enum):
    """Overlay tool variants."""

    COUNTDOWN = "countdown"
    ANNOUNCEMENT = "announcement"
    MESSAGES = "messages"


class DisplayMode(str, Enum):
    """How song slides are shown on viewers."""

    BILINGUAL = "bilingual"
    ORIGINAL = "original"


@dataclass
class Slide:
    """One screen of song or passage text.

    Attributes:
        original_text: Text in the original language (required)
        transliteration: Optional transliteration line
        translation: Optional translation
        translation_overflow: Continuation of a long translation
        verse_type: Section label such as "verse1" or "chorus"
        verse_number: Verse number for Bible slides
    """

    original_text: str
    transliteration: str = ""
    translation: str = ""
    translation_overflow: str = ""
    verse_type: str = ""
    verse_number: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "original_text": self.original_text,
            "transliteration": self.transliteration,
            "translation": self.translation,
            "translation_overflow": self.translation_overflow,
            "verse_type": self.verse_type,
            "verse_number": self.verse_number,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Slide":
        """Create from dictionary."""
        return cls(
            original_text=data.get("original_text") or "",
            transliteration=data.get("transliteration") or "",
            translation=data.get("translation") or "",
            translation_overflow=data.get("translation_overflow") or "",
            verse_type=data.get("verse_type") or "",
            verse_number=data.get("verse_number"),
        )


@dataclass
class Song:
    """A song with its slides.

    A song without slides is given one empty slide, since slide navigation
    assumes at least one element.
    """

    id: str
    title: str
    slides: list[Slide] = field(default_factory=list)
    original_language: str = "he"
    is_temporary: bool = False

    item_type = ItemType.SONG
    is_bible = False

    def __post_init__(self):
        if not self.slides:
            logger.warning(f"{self.item_type.value} '{self.id}' has no slides, using one empty slide")
            self.slides = [Slide(original_text="")]


@dataclass
class BiblePassage(Song):
    """A Bible chapter (or part of one) presented like a song."""

    book: str = ""
    chapter: int = 0
    is_temporary: bool = True

    item_type = ItemType.BIBLE
    is_bible = True


@dataclass
class Image:
    """A still image from the media library."""

    id: str
    name: str
    url: str

    item_type = ItemType.IMAGE


@dataclass
class Blank:
    """An explicit black screen."""

    item_type = ItemType.BLANK


@dataclass
class PresentationSlide:
    """One slide of a free-form presentation.

    Attributes:
        id: Slide identifier within the presentation
        text_boxes: Positioned text boxes (text, x, y, width, height, style keys)
        background_color: CSS color for the slide background
    """

    id: str
    text_boxes: list[dict[str, Any]] = field(default_factory=list)
    background_color: str = "#000000"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text_boxes": self.text_boxes,
            "background_color": self.background_color,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PresentationSlide":
        return cls(
            id=str(data.get("id", "")),
            text_boxes=list(data.get("text_boxes") or []),
            background_color=data.get("background_color") or "#000000",
        )


@dataclass
class Presentation:
    """A free-form slide deck."""

    id: str
    title: str
    slides: list[PresentationSlide] = field(default_factory=list)
    canvas_width: int = 1920
    canvas_height: int = 1080

    item_type = ItemType.PRESENTATION


@dataclass
class YoutubeRef:
    """A YouTube video to play on viewers."""

    video_id: str
    title: str
    thumbnail: str = ""

    item_type = ItemType.YOUTUBE


@dataclass
class SectionHeader:
    """An organizational marker; skipped by navigation and never broadcast."""

    title: str

    item_type = ItemType.SECTION


@dataclass
class RotatingMessage:
    """A message shown by the rotating messages tool."""

    text: str
    enabled: bool = True


@dataclass
class CountdownTool:
    """Countdown to a wall-clock time ("HH:MM")."""

    target_time: str
    message: str = ""
    message_translation: str = ""

    item_type = ItemType.TOOL
    tool_type = ToolType.COUNTDOWN


@dataclass
class AnnouncementTool:
    """A transient banner announcement."""

    text: str

    item_type = ItemType.TOOL
    tool_type = ToolType.ANNOUNCEMENT


@dataclass
class MessagesTool:
    """A set of messages rotated on a fixed interval."""

    messages: list[RotatingMessage] = field(default_factory=list)
    interval: int = 5

    item_type = ItemType.TOOL
    tool_type = ToolType.MESSAGES


Tool = Union[CountdownTool, AnnouncementTool, MessagesTool]
SongLike = Union[Song, BiblePassage]

PresentableItem = Union[
    Song,
    BiblePassage,
    Image,
    Blank,
    Presentation,
    YoutubeRef,
    SectionHeader,
    CountdownTool,
    AnnouncementTool,
    MessagesTool,
]

TOOL_CLASSES = (CountdownTool, AnnouncementTool, MessagesTool)


@dataclass
class SetlistEntry:
    """One slot of a setlist."""

    item: PresentableItem


def is_tool(item: Optional[PresentableItem]) -> bool:
    """Check whether an item is an overlay tool."""
    return isinstance(item, TOOL_CLASSES)


def is_song_like(item: Optional[PresentableItem]) -> bool:
    """Check whether an item is a Song or BiblePassage."""
    return isinstance(item, Song)


def has_slides(item: Optional[PresentableItem]) -> bool:
    """Check whether slide-level navigation applies to an item."""
    return isinstance(item, (Song, Presentation)) and len(item.slides) > 0


def is_navigable(item: Optional[PresentableItem]) -> bool:
    """Check whether setlist navigation may land on an item.

    Section headers are transparent and tools are overlays, so neither is a
    navigation stop.
    """
    return item is not None and not isinstance(item, SectionHeader) and not is_tool(item)


def item_key(item: PresentableItem) -> Optional[str]:
    """Get the id an item is matched by, or None for position-keyed items."""
    if isinstance(item, (Song, Image, Presentation)):
        return item.id
    if isinstance(item, YoutubeRef):
        return item.video_id
    return None


def is_same_item(
    a: Optional[PresentableItem],
    a_index: Optional[int],
    b: Optional[PresentableItem],
    b_index: Optional[int],
) -> bool:
    """Check whether two selections refer to the same item.

    Songs, passages, images, presentations and videos are the same item when
    their ids match, wherever they sit in the setlist. Tools, section headers
    and blanks only match when they occupy the same setlist position.

    Args:
        a: First item
        a_index: Setlist position of the first item (None if transient)
        b: Second item
        b_index: Setlist position of the second item (None if transient)

    Returns:
        True if both refer to the same item
    """
    if a is None or b is None or type(a) is not type(b):
        return False

    key = item_key(a)
    if key is not None:
        return key == item_key(b)

    return a_index is not None and a_index == b_index


def item_title(item: PresentableItem) -> str:
    """Get a short display title for an item."""
    if isinstance(item, (Song, Presentation)):
        return item.title
    if isinstance(item, Image):
        return item.name
    if isinstance(item, YoutubeRef):
        return item.title
    if isinstance(item, SectionHeader):
        return item.title
    if isinstance(item, Blank):
        return "Blank"
    if isinstance(item, CountdownTool):
        suffix = f" - {item.message}" if item.message else ""
        return f"Countdown {item.target_time}{suffix}"
    if isinstance(item, AnnouncementTool):
        text = item.text if len(item.text) <= 30 else f"{item.text[:30]}..."
        return f"Announcement: {text}"
    if isinstance(item, MessagesTool):
        enabled = sum(1 for message in item.messages if message.enabled)
        return f"{enabled} rotating message{'s' if enabled != 1 else ''}"
    raise TypeError(f"Unknown item type: {type(item).__name__}")


QUICK_SLIDE_ID = "quick-slide"


def quick_slide_song(text: str) -> Optional[Song]:
    """Build a temporary song from typed text.

    Blocks separated by blank lines become slides; within a block the lines
    are original text, transliteration and translation.

    Args:
        text: Text typed by the operator

    Returns:
        The song, or None if the text is empty
    """
    blocks = [block for block in re.split(r"\n\s*\n", text) if block.strip()]
    if not blocks:
        return None

    slides = []
    for number, block in enumerate(blocks, start=1):
        lines = [line.strip() for line in block.strip().split("\n")] + ["", ""]
        slides.append(
            Slide(
                original_text=lines[0],
                transliteration=lines[1],
                translation=lines[2],
                verse_type=f"Slide {number}",
            )
        )
    return Song(id=QUICK_SLIDE_ID, title="Quick Slide", slides=slides, is_temporary=True)


def item_to_dict(item: PresentableItem) -> dict[str, Any]:
    """Serialize an item to the setlist store's item schema.

    Library songs are stored by reference; temporary songs and Bible
    passages embed their slides since they do not exist in the library.

    Args:
        item: Item to serialize

    Returns:
        Dictionary with a ``type`` discriminator
    """
    if isinstance(item, BiblePassage):
        return {
            "type": ItemType.BIBLE.value,
            "id": item.id,
            "title": item.title,
            "book": item.book,
            "chapter": item.chapter,
            "original_language": item.original_language,
            "slides": [slide.to_dict() for slide in item.slides],
        }
    if isinstance(item, Song):
        data = {
            "type": ItemType.SONG.value,
            "id": item.id,
            "title": item.title,
            "is_temporary": item.is_temporary,
        }
        if item.is_temporary:
            data["original_language"] = item.original_language
            data["slides"] = [slide.to_dict() for slide in item.slides]
        return data
    if isinstance(item, Image):
        return {"type": ItemType.IMAGE.value, "id": item.id, "name": item.name, "url": item.url}
    if isinstance(item, Blank):
        return {"type": ItemType.BLANK.value}
    if isinstance(item, Presentation):
        return {"type": ItemType.PRESENTATION.value, "id": item.id, "title": item.title}
    if isinstance(item, YoutubeRef):
        return {
            "type": ItemType.YOUTUBE.value,
            "video_id": item.video_id,
            "title": item.title,
            "thumbnail": item.thumbnail,
        }
    if isinstance(item, SectionHeader):
        return {"type": ItemType.SECTION.value, "title": item.title}
    if isinstance(item, CountdownTool):
        return {
            "type": ItemType.TOOL.value,
            "tool_type": ToolType.COUNTDOWN.value,
            "target_time": item.target_time,
            "message": item.message,
            "message_translation": item.message_translation,
        }
    if isinstance(item, AnnouncementTool):
        return {
            "type": ItemType.TOOL.value,
            "tool_type": ToolType.ANNOUNCEMENT.value,
            "text": item.text,
        }
    if isinstance(item, MessagesTool):
        return {
            "type": ItemType.TOOL.value,
            "tool_type": ToolType.MESSAGES.value,
            "interval": item.interval,
            "messages": [{"text": m.text, "enabled": m.enabled} for m in item.messages],
        }
    raise TypeError(f"Unknown item type: {type(item).__name__}")


def item_from_dict(data: dict) -> PresentableItem:
    """Deserialize an item from the setlist store's item schema.

    Library references (songs that are not temporary, presentations) come
    back without slides; the store hydrates them from the content library.

    Args:
        data: Dictionary with a ``type`` discriminator

    Returns:
        The item

    Raises:
        ValueError: If the type or tool type is unknown
    """
    item_type = ItemType(data.get("type"))

    if item_type == ItemType.BIBLE:
        return BiblePassage(
            id=data["id"],
            title=data.get("title", ""),
            slides=[Slide.from_dict(s) for s in data.get("slides", [])],
            original_language=data.get("original_language", "he"),
            book=data.get("book", ""),
            chapter=int(data.get("chapter", 0)),
        )
    if item_type == ItemType.SONG:
        slides = [Slide.from_dict(s) for s in data.get("slides", [])]
        is_temporary = bool(data.get("is_temporary", False))
        if not slides and not is_temporary:
            # Library reference, slides are filled in by the store
            slides = [Slide(original_text="")]
        return Song(
            id=data["id"],
            title=data.get("title", ""),
            slides=slides,
            original_language=data.get("original_language", "he"),
            is_temporary=is_temporary,
        )
    if item_type == ItemType.IMAGE:
        return Image(id=data["id"], name=data.get("name", ""), url=data.get("url", ""))
    if item_type == ItemType.BLANK:
        return Blank()
    if item_type == ItemType.PRESENTATION:
        return Presentation(id=data["id"], title=data.get("title", ""))
    if item_type == ItemType.YOUTUBE:
        return YoutubeRef(
            video_id=data["video_id"],
            title=data.get("title", ""),
            thumbnail=data.get("thumbnail", ""),
        )
    if item_type == ItemType.SECTION:
        return SectionHeader(title=data.get("title", ""))

    tool_type = ToolType(data.get("tool_type"))
    if tool_type == ToolType.COUNTDOWN:
        return CountdownTool(
            target_time=data.get("target_time", ""),
            message=data.get("message", ""),
            message_translation=data.get("message_translation", ""),
        )
    if tool_type == ToolType.ANNOUNCEMENT:
        return AnnouncementTool(text=data.get("text", ""))
    return MessagesTool(
        messages=[
            RotatingMessage(text=m.get("text", ""), enabled=bool(m.get("enabled", True)))
            for m in data.get("messages", [])
        ],
        interval=int(data.get("interval", 5)),
    )
