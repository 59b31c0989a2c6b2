"""TUI screen modules."""

from worship_presenter.tui.screens.presenter import PresenterScreen
from worship_presenter.tui.screens.setlist_picker import SetlistPickerScreen, UnsavedChangesScreen

__all__ = [
    "PresenterScreen",
    "SetlistPickerScreen",
    "UnsavedChangesScreen",
]
