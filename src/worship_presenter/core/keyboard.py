"""Presenter keyboard shortcuts."""

from enum import Enum
from typing import Optional


class KeyAction(str, Enum):
    """Operator actions reachable from the keyboard."""

    NEXT_SLIDE = "next_slide"
    PREVIOUS_SLIDE = "previous_slide"
    NEXT_ITEM = "next_item"
    PREVIOUS_ITEM = "previous_item"
    TOGGLE_BLANK = "toggle_blank"
    JUMP_TO_SECTION = "jump_to_section"


KEY_MAP = {
    "right": KeyAction.NEXT_SLIDE,
    "left": KeyAction.PREVIOUS_SLIDE,
    "down": KeyAction.NEXT_ITEM,
    "up": KeyAction.PREVIOUS_ITEM,
    "space": KeyAction.TOGGLE_BLANK,
    "b": KeyAction.TOGGLE_BLANK,
    "B": KeyAction.TOGGLE_BLANK,
    "shift+b": KeyAction.TOGGLE_BLANK,
}

# Section shortcuts: verse types tried in order, first one the song has wins.
# Bridge is "r" since "b" is blank.
SECTION_KEY_MAP = {
    "1": ("Verse1", "Verse", "verse1", "verse"),
    "2": ("Verse2", "verse2"),
    "3": ("Verse3", "verse3"),
    "4": ("Verse4", "verse4"),
    "5": ("Verse5", "verse5"),
    "c": ("Chorus", "Chorus1", "chorus", "chorus1"),
    "p": ("PreChorus", "PreChorus1", "prechorus", "prechorus1"),
    "r": ("Bridge", "Bridge1", "bridge", "bridge1"),
    "i": ("Intro", "intro"),
    "e": ("Ending", "Outro", "ending", "outro"),
    "t": ("Tag", "tag"),
}


def resolve_key(key: str, text_input_focused: bool = False) -> Optional[KeyAction]:
    """Map a key name to an action.

    Shortcuts are off while a text field has focus so typing is not
    mistaken for navigation.

    Args:
        key: Key name as reported by the terminal ("right", "space", "b")
        text_input_focused: Whether a text input currently has focus

    Returns:
        The action, or None if the key is unbound or suppressed
    """
    if text_input_focused:
        return None
    if key in SECTION_KEY_MAP:
        return KeyAction.JUMP_TO_SECTION
    return KEY_MAP.get(key)
