"""Logging helpers shared by mvpkit applications.

:func:`setup_logging` owns the handlers it installs on the root logger, so it
can be re-run with different options (or undone with :func:`reset_logging`)
without disturbing handlers added by the host application or test runner.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["setup_logging", "reset_logging", "get_logger", "get_log_path", "resolve_level"]

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "mvpkit.log"

_DEFAULT_LOG_DIR = Path.home() / ".mvpkit" / "logs"
_LOG_DIR_ENV = "MVPKIT_LOG_DIR"
_NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "qasync")

_installed_handlers: list[logging.Handler] = []
_log_path: Path | None = None


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Install a rotating file handler (plus an optional console handler) on the root logger.

    Args:
        level: Root and handler level.
        log_dir: Directory for ``mvpkit.log``; falls back to ``$MVPKIT_LOG_DIR``
            and then ``~/.mvpkit/logs``.
        console: Also log to ``stderr``.
        max_bytes: Rotation threshold of the log file.
        backup_count: Rotated files to keep.
        force: Replace a previous configuration instead of returning early.

    Returns:
        Path of the active log file.
    """

    global _log_path
    if _installed_handlers and not force and _log_path is not None:
        return _log_path

    reset_logging()
    log_path = _resolve_log_dir(log_dir) / LOG_FILE_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())

    root = logging.getLogger()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)

    logging.captureWarnings(True)
    _quiet_noisy_loggers(level)

    _installed_handlers.extend(handlers)
    _log_path = log_path
    return log_path


def reset_logging() -> None:
    """Remove and close the handlers installed by :func:`setup_logging`."""

    global _log_path
    root = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root.removeHandler(handler)
        handler.close()
    _log_path = None


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_log_path() -> Path | None:
    """Return the currently configured log file if available."""

    return _log_path


def resolve_level(value: str | int | None, default: int = logging.INFO) -> int:
    """Translate ``"debug"``/``"WARNING"``/``10`` style values into a logging level."""

    if value is None or value == "":
        return default
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else default


def _resolve_log_dir(log_dir: Path | str | None) -> Path:
    return Path(log_dir or os.environ.get(_LOG_DIR_ENV) or _DEFAULT_LOG_DIR).expanduser()


def _quiet_noisy_loggers(root_level: int) -> None:
    # Third-party loggers never go below WARNING.
    quiet_level = max(root_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(quiet_level)
