"""Utility helpers for mvpkit."""

from .logging import get_log_path, get_logger, reset_logging, resolve_level, setup_logging

__all__ = ["setup_logging", "reset_logging", "get_logger", "get_log_path", "resolve_level"]
