"""Unified logging for the plugin with console and file output."""
import logging
import os
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console(stderr=True)

# Log file configuration
LOG_FILE = Path("/docker/docker_zfs.log")
FALLBACK_LOG_FILE = Path("/tmp/docker-zfs-plugin.log")

_TRUTHY = ("1", "t", "true", "y", "yes", "on")

# Track if file logging has been set up
_file_logging_configured = False


def debug_enabled() -> bool:
    """Return True when the DEBUG environment variable is set to a true value."""
    return os.environ.get("DEBUG", "").strip().lower() in _TRUTHY


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False):
    """Set up file logging for the plugin.

    Args:
        log_file: Path to log file (defaults to /docker/docker_zfs.log)
        verbose: Enable debug-level logging

    Note:
        Creates the log directory if it doesn't exist.
        Falls back to /tmp if the default location is not writable.
    """
    global _file_logging_configured

    if _file_logging_configured:
        return

    target_log_file = Path(log_file) if log_file else LOG_FILE

    try:
        target_log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(target_log_file)
    except OSError:
        target_log_file = FALLBACK_LOG_FILE
        target_log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(target_log_file)

    level = logging.DEBUG if verbose or debug_enabled() else logging.INFO

    root_logger = logging.getLogger("zfsvol")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root_logger.addHandler(file_handler)
    root_logger.setLevel(level)

    # Child loggers carry their own level; raise them together.
    for name, item in logging.root.manager.loggerDict.items():
        if name.startswith("zfsvol.") and isinstance(item, logging.Logger):
            item.setLevel(level)

    _file_logging_configured = True

    root_logger.info(f"Logging initialized: {target_log_file}")


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger instance with console output.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger with Rich console handler

    Note:
        File logging must be enabled separately via setup_file_logging()
    """
    logger = logging.getLogger(name)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)

    return logger
