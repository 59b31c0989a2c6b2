"""CLI entry point for worship-presenter.

Provides the `worship-presenter` command for launching the operator TUI and
the relay server.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from worship_presenter import __version__
from worship_presenter.config import PresenterConfig, ensure_config_exists, get_config_path
from worship_presenter.logging_config import LOG_FILENAME, setup_logging

app = typer.Typer(
    name="worship-presenter",
    help="Worship Presenter - live setlist and slide broadcasting",
    no_args_is_help=False,
)
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"worship-presenter version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Worship Presenter - run a setlist and broadcast slides to viewers."""


def _load_config(config_path: Optional[Path]) -> PresenterConfig:
    """Load the given config file or the default one.

    Raises:
        typer.Exit: If the config cannot be loaded
    """
    try:
        if config_path:
            return PresenterConfig.load(config_path)
        return ensure_config_exists()
    except FileNotFoundError as e:
        console.print(f"[red]Config file not found: {e}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def run(
    config_path: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
    setlist: str = typer.Option(
        None,
        "--setlist",
        "-s",
        help="ID of a saved setlist to open",
    ),
) -> None:
    """Launch the presenter TUI."""
    from worship_presenter.services.rooms import RoomClient
    from worship_presenter.services.transport import RelayTransport, TransportError
    from worship_presenter.tui.app import PresenterApp

    config = _load_config(config_path)
    config.ensure_directories()

    logger = setup_logging(config.log_dir)
    logger.info(f"Database: {config.db_path}")
    logger.info(f"Relay: {config.relay_url or 'disabled'}")
    console.print(f"[dim]Session log: {config.log_dir / LOG_FILENAME}[/dim]")

    room = None
    transport = None
    if config.relay_url:
        try:
            room_client = RoomClient(config.relay_url)
            room = room_client.create_room(config.background_image)
            transport = RelayTransport(config.relay_url)
            console.print(
                Panel.fit(
                    f"Viewers join with PIN [bold cyan]{room.pin}[/bold cyan]",
                    title="Room ready",
                    border_style="green",
                )
            )
        except TransportError as e:
            logger.warning(f"Running offline: {e}")
            console.print(f"[yellow]Relay unavailable, running offline: {e}[/yellow]")

    try:
        app_instance = PresenterApp(config, room=room, transport=transport, setlist_id=setlist)
        logger.info("Launching TUI application")
        app_instance.run()
        logger.info("Application exited normally")
    except KeyboardInterrupt:
        logger.info("Application interrupted by user (Ctrl+C)")
        console.print("\n[yellow]Interrupted by user[/yellow]")
        raise typer.Exit(0)
    except Exception as e:
        logger.exception(f"Application error: {e}")
        console.print(f"[red]Error running app: {e}[/red]")
        raise typer.Exit(1)
    finally:
        if transport is not None:
            transport.close()
        if room is not None:
            try:
                room_client.close_room(room.room_id)
            except TransportError as e:
                logger.warning(f"Could not close room {room.pin}: {e}")


@app.command()
def serve(
    host: str = typer.Option(
        None,
        "--host",
        help="Interface to bind (default from PRESENTER_HOST)",
    ),
    port: int = typer.Option(
        None,
        "--port",
        "-p",
        help="Port to listen on (default from PRESENTER_PORT)",
    ),
) -> None:
    """Run the relay server that viewers connect to."""
    from worship_presenter.server.config import settings
    from worship_presenter.server.main import main as run_server

    host = host or settings.PRESENTER_HOST
    port = port or settings.PRESENTER_PORT
    console.print(f"[green]Relay server on http://{host}:{port}[/green]")
    run_server(host=host, port=port)


@app.command()
def config(
    show: bool = typer.Option(
        False,
        "--show",
        help="Show current configuration",
    ),
) -> None:
    """Show application configuration."""
    config_path = get_config_path()

    if not config_path.exists():
        console.print(f"[yellow]No config file at {config_path}[/yellow]")
        console.print("Run [bold]worship-presenter run[/bold] to create default config.")
        return

    config = PresenterConfig.load(config_path)
    console.print(f"[bold]Config file:[/bold] {config_path}")
    console.print(f"[bold]Database:[/bold] {config.db_path}")
    console.print(f"[bold]Log dir:[/bold] {config.log_dir}")
    console.print(f"[bold]Relay URL:[/bold] {config.relay_url or '(disabled)'}")
    console.print(f"[bold]Display mode:[/bold] {config.display_mode.value}")
    console.print(f"[bold]Announcement seconds:[/bold] {config.announcement_seconds}")
    console.print(f"[bold]Messages interval:[/bold] {config.messages_interval}")


def cli_entry() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli_entry()
