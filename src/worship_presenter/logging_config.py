"""Logging configuration for worship-presenter.

Writes a session log to file so the terminal UI and the relay server never
print log lines over the operator's screen.
"""

import logging
from pathlib import Path

LOGGER_NAME = "worship_presenter"
LOG_FILENAME = "presenter.log"


def _rotate_log_if_needed(log_file: Path, max_bytes: int = 5 * 1024 * 1024, backup_count: int = 3) -> None:
    """Rotate the session log on startup when it has grown too large.

    Args:
        log_file: Path to the log file
        max_bytes: Size that triggers rotation (default: 5MB)
        backup_count: Number of rotated files to keep (default: 3)
    """
    if not log_file.exists() or log_file.stat().st_size < max_bytes:
        return

    oldest = log_file.parent / f"{log_file.name}.{backup_count}"
    if oldest.exists():
        oldest.unlink()

    for i in range(backup_count - 1, 0, -1):
        source = log_file.parent / f"{log_file.name}.{i}"
        if source.exists():
            source.rename(log_file.parent / f"{log_file.name}.{i + 1}")

    log_file.rename(log_file.parent / f"{log_file.name}.1")


def setup_logging(log_dir: Path, level: int = logging.DEBUG) -> logging.Logger:
    """Set up session logging to a file inside ``log_dir``.

    Args:
        log_dir: Directory to store log files
        level: Minimum level written to the file

    Returns:
        The package root logger
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILENAME
    _rotate_log_if_needed(log_file)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    # Keep records out of the root logger (and therefore off the terminal)
    logger.propagate = False

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)-36s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    logger.info("=" * 72)
    logger.info("PRESENTER SESSION STARTED")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 72)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger of the package logger.

    Args:
        name: Module name (usually __name__)

    Returns:
        Logger instance
    """
    if name.startswith(f"{LOGGER_NAME}."):
        name = name[len(LOGGER_NAME) + 1:]
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
