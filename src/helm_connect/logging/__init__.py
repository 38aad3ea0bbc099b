"""Logging configuration for helm_connect."""

from helm_connect.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
