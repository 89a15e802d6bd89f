"""Logging configuration for kubeshell."""

from kubeshell.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
