"""Shared utilities."""

from .logging_config import ColoredFormatter, configure_logging

__all__ = ["ColoredFormatter", "configure_logging"]
