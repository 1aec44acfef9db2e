"""Logging configuration with colored output for the connector CLI."""
from __future__ import annotations
import logging
import os
import sys


def _supports_ansi() -> bool:
    """Detect if the terminal supports ANSI escape codes.

    Returns:
        True if ANSI codes are supported, False otherwise.
    """
    # https://no-color.org/
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
        return False
    if sys.platform == "win32":
        return bool(
            os.environ.get("WT_SESSION")  # Windows Terminal
            or os.environ.get("ANSICON")
            or os.environ.get("ConEmuANSI") == "ON"
            or "TERM" in os.environ  # Git Bash, Cygwin
        )
    return True


class LogColors:
    """ANSI color codes for log levels.

    Set NO_COLOR=1 to disable colors, or FORCE_COLOR=1 to force enable.
    """

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DEBUG = "\033[36m"  # Cyan
    INFO = "\033[32m"  # Green
    WARNING = "\033[33m"  # Yellow
    ERROR = "\033[31m"  # Red
    CRITICAL = "\033[35m"  # Magenta
    MODULE = "\033[94m"  # Blue


class ColoredFormatter(logging.Formatter):
    """Formatter producing ``[LEVEL] logger - message`` lines."""

    LEVEL_COLORS = {
        "DEBUG": LogColors.DEBUG,
        "INFO": LogColors.INFO,
        "WARNING": LogColors.WARNING,
        "ERROR": LogColors.ERROR,
        "CRITICAL": LogColors.CRITICAL,
    }

    def __init__(self, use_color: bool = True) -> None:
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        if not self.use_color:
            return f"[{record.levelname}] {record.name} - {message}"
        level_color = self.LEVEL_COLORS.get(record.levelname, LogColors.RESET)
        levelname = f"{level_color}{LogColors.BOLD}[{record.levelname}]{LogColors.RESET}"
        module = f"{LogColors.MODULE}{record.name}{LogColors.RESET}"
        return f"{levelname} {module} - {message}"


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logging for the CLI.

    Sets up a single console handler with ColoredFormatter and keeps
    urllib3 connection chatter at WARNING.

    Args:
        level: Logging level (default: logging.INFO).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(use_color=_supports_ansi()))
    root_logger.addHandler(console_handler)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


__all__ = ["LogColors", "ColoredFormatter", "configure_logging"]
