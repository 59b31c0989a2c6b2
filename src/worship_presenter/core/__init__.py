"""Presentation core: items, on-screen state, navigation, overlays and broadcast."""

from worship_presenter.core.models import DisplayMode, ItemType, SetlistEntry, ToolType
from worship_presenter.core.state import PresentationState

__all__ = ["DisplayMode", "ItemType", "PresentationState", "SetlistEntry", "ToolType"]
