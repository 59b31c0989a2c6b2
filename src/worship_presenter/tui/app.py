"""Main TUI application for the presenter.

Textual-based operator console: builds the presenter session for one room
and hosts the presenter screen.
"""

from typing import Optional

from textual.app import App

from worship_presenter.config import PresenterConfig
from worship_presenter.core.scheduler import AsyncioScheduler
from worship_presenter.core.session import PresenterSession
from worship_presenter.db.content_client import ContentClient
from worship_presenter.db.setlist_store import SetlistStore
from worship_presenter.logging_config import get_logger
from worship_presenter.services.rooms import RoomInfo
from worship_presenter.services.transport import BroadcastTransport

logger = get_logger(__name__)


class PresenterApp(App):
    """Worship presenter console.

    Runs the setlist and broadcasts the live slide to the room's viewers.
    """

    CSS_PATH = "screens/app.tcss"
    TITLE = "Worship Presenter"
    SUB_TITLE = "Presenter Mode"

    def __init__(
        self,
        config: PresenterConfig,
        room: Optional[RoomInfo] = None,
        transport: Optional[BroadcastTransport] = None,
        setlist_id: Optional[str] = None,
        *args,
        **kwargs,
    ):
        """Initialize the application.

        Args:
            config: Presenter configuration
            room: Broadcast room (None to run offline)
            transport: Outbound channel to viewers
            setlist_id: Setlist to open on start
        """
        super().__init__(*args, **kwargs)

        self.config = config
        self.config.ensure_directories()
        self.transport = transport
        self.setlist_id = setlist_id

        # Initialize database clients
        self.content = ContentClient(config.db_path)
        self.store = SetlistStore(config.db_path, self.content)
        self.store.initialize_schema()

        self.session = PresenterSession(
            scheduler=AsyncioScheduler(),
            transport=transport,
            room=room,
            content=self.content,
            store=self.store,
            notifier=self._notify_operator,
            announcement_seconds=config.announcement_seconds,
            messages_interval=config.messages_interval,
            display_mode=config.display_mode,
            background_image=config.background_image,
        )

        if room is not None:
            self.sub_title = f"Room PIN {room.pin}"

    def _notify_operator(self, message: str, severity: str = "information") -> None:
        logger.info(f"Notify ({severity}): {message}")
        self.notify(message, severity=severity)

    def on_mount(self) -> None:
        """Handle app mount event."""
        from worship_presenter.tui.screens.presenter import PresenterScreen

        logger.info("App mounted, pushing presenter screen")
        self.push_screen(PresenterScreen(self.session))

        if self.setlist_id:
            self.session.load_setlist(self.setlist_id)

    def action_quit(self) -> None:
        """Quit the application with cleanup."""
        self.session.close()
        if self.transport is not None:
            self.transport.close()
        self.content.close()
        self.store.close()
        self.exit()
