"""Configuration management for worship-presenter.

Handles loading and saving TOML configuration stored in:
- macOS/Linux: ~/.config/worship-presenter/config.toml (XDG_CONFIG_HOME aware)
- Windows: %APPDATA%\\worship-presenter\\config.toml
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import tomllib
import tomli_w

from worship_presenter.core.models import DisplayMode

APP_DIR_NAME = "worship-presenter"


def get_config_dir() -> Path:
    """Get the platform-specific config directory.

    Returns:
        Path to the config directory
    """
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / APP_DIR_NAME
        return Path.home() / "AppData" / "Roaming" / APP_DIR_NAME

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


def get_config_path() -> Path:
    """Get the path to config.toml.

    Returns:
        Path to config.toml
    """
    return get_config_dir() / "config.toml"


@dataclass
class PresenterConfig:
    """Configuration for the presenter.

    Attributes:
        db_path: SQLite database holding the content library and setlists
        log_dir: Directory for session logs
        relay_url: Base URL of the relay server (empty = broadcast disabled)
        background_image: Default room background sent with every payload
        announcement_seconds: Auto-hide window for announcements
        messages_interval: Default rotation interval for rotating messages
        display_mode: Display mode a new session starts in
    """

    db_path: Path = field(default_factory=lambda: get_config_dir() / "presenter.db")
    log_dir: Path = field(default_factory=lambda: get_config_dir() / "logs")

    relay_url: str = "http://localhost:8765"
    background_image: str = ""

    announcement_seconds: float = 15.0
    messages_interval: int = 5
    display_mode: DisplayMode = DisplayMode.BILINGUAL

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "PresenterConfig":
        """Load configuration from a TOML file.

        Args:
            path: Path to config file (defaults to standard location)

        Returns:
            PresenterConfig instance with loaded values

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If a value has the wrong shape
        """
        if path is None:
            path = get_config_path()

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "rb") as f:
            data = tomllib.load(f)

        config = cls()

        paths = data.get("paths", {})
        if "db_path" in paths:
            config.db_path = Path(paths["db_path"])
        if "log_dir" in paths:
            config.log_dir = Path(paths["log_dir"])

        broadcast = data.get("broadcast", {})
        config.relay_url = broadcast.get("relay_url", config.relay_url)
        config.background_image = broadcast.get("background_image", config.background_image)

        tools = data.get("tools", {})
        config.announcement_seconds = float(
            tools.get("announcement_seconds", config.announcement_seconds)
        )
        config.messages_interval = int(tools.get("messages_interval", config.messages_interval))

        display = data.get("display", {})
        if "mode" in display:
            config.display_mode = DisplayMode(display["mode"])

        return config

    def save(self, path: Optional[Path] = None) -> None:
        """Save configuration to a TOML file.

        Args:
            path: Path to save config (defaults to standard location)
        """
        if path is None:
            path = get_config_path()

        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "paths": {
                "db_path": str(self.db_path),
                "log_dir": str(self.log_dir),
            },
            "broadcast": {
                "relay_url": self.relay_url,
                "background_image": self.background_image,
            },
            "tools": {
                "announcement_seconds": self.announcement_seconds,
                "messages_interval": self.messages_interval,
            },
            "display": {
                "mode": self.display_mode.value,
            },
        }

        with open(path, "wb") as f:
            tomli_w.dump(data, f)

    def ensure_directories(self) -> None:
        """Ensure the database and log directories exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)


def ensure_config_exists() -> PresenterConfig:
    """Load the config, creating a default file if needed.

    Returns:
        PresenterConfig instance
    """
    config_path = get_config_path()

    if config_path.exists():
        try:
            return PresenterConfig.load(config_path)
        except (tomllib.TOMLDecodeError, ValueError):
            # Corrupted config is replaced with defaults below
            pass

    config = PresenterConfig()
    config.save(config_path)
    return config
