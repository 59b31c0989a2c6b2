"""Dialogs for opening a saved setlist."""

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Label

from worship_presenter.core.setlist import UnsavedChangesChoice
from worship_presenter.db.setlist_store import SetlistSummary


class SetlistPickerScreen(ModalScreen):
    """Pick a saved setlist; dismisses with its ID or None."""

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
    ]

    def __init__(self, setlists: list[SetlistSummary]):
        super().__init__()
        self.setlists = setlists

    def compose(self) -> ComposeResult:
        """Compose the dialog layout."""
        with Vertical(id="dialog"):
            yield Label("[bold]Open setlist[/bold]")
            table = DataTable(id="setlists_table", cursor_type="row")
            table.add_columns("Name", "Entries", "Updated")
            yield table
            with Horizontal(id="buttons"):
                yield Button("Cancel", id="btn_cancel")

    def on_mount(self) -> None:
        table = self.query_one("#setlists_table", DataTable)
        for summary in self.setlists:
            table.add_row(summary.name, str(summary.item_count), summary.updated_at or "", key=summary.id)
        if not self.setlists:
            self.notify("No saved setlists", severity="warning")
        table.focus()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        self.dismiss(event.row_key.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn_cancel":
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class UnsavedChangesScreen(ModalScreen):
    """Ask what to do with unsaved setlist changes."""

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
    ]

    def compose(self) -> ComposeResult:
        """Compose the dialog layout."""
        with Vertical(id="dialog"):
            yield Label("The setlist has unsaved changes.")
            with Horizontal(id="buttons"):
                yield Button("Save", id=UnsavedChangesChoice.SAVE.value, variant="primary")
                yield Button("Discard", id=UnsavedChangesChoice.DISCARD.value, variant="error")
                yield Button("Cancel", id=UnsavedChangesChoice.CANCEL.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(UnsavedChangesChoice(event.button.id))

    def action_cancel(self) -> None:
        self.dismiss(UnsavedChangesChoice.CANCEL)
