"""Application bootstrap: settings, logging and the shared event aggregator.

A typical entry point::

    runtime = create_runtime(scheduler=qt_runtime.scheduler)
    presenter = OrderPresenter(runtime.create_dispatcher(), runtime.aggregator)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from .actions.binder import ViewActionBinder
from .actions.dispatcher import ViewActionDispatcher
from .config import Settings, SettingsStore
from .messaging.aggregator import ErrorHandler, EventAggregator
from .messaging.scheduling import Scheduler
from .utils import logging as logging_utils

__all__ = ["MvpRuntime", "configure_logging", "create_runtime"]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class MvpRuntime:
    """Objects shared by every presenter of one application."""

    settings: Settings
    aggregator: EventAggregator
    log_path: Path | None = None

    def create_dispatcher(self) -> ViewActionDispatcher:
        """Build a presenter-owned dispatcher configured from the settings."""

        return ViewActionDispatcher(
            auto_refresh=self.settings.auto_refresh,
            strict=self.settings.strict_dispatch,
        )

    def create_binder(self) -> ViewActionBinder:
        return ViewActionBinder()

    def shutdown(self) -> None:
        """Drop every aggregator subscription."""

        self.aggregator.clear()
        LOGGER.debug("Runtime shut down")


def configure_logging(settings: Settings, *, log_dir: Path | str | None = None, force: bool = False) -> Path:
    """Configure root logging from ``settings``."""

    level = logging_utils.resolve_level(settings.effective_log_level)
    return logging_utils.setup_logging(
        level,
        log_dir=log_dir or settings.log_dir,
        console=settings.log_to_console,
        force=force,
    )


def create_runtime(
    settings: Settings | None = None,
    *,
    scheduler: Scheduler | None = None,
    error_handler: ErrorHandler | None = None,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
    setup_logging: bool = True,
    log_dir: Path | str | None = None,
) -> MvpRuntime:
    """Load settings (unless given), configure logging and build the aggregator."""

    if settings is None:
        settings = (store or SettingsStore()).load(overrides=overrides)

    log_path: Path | None = None
    if setup_logging:
        log_path = configure_logging(settings, log_dir=log_dir, force=True)

    aggregator = EventAggregator(
        scheduler,
        error_handler=error_handler,
        log_publishes=settings.debug_event_logging,
    )
    LOGGER.debug(
        "Runtime created (strict_dispatch=%s, auto_refresh=%s, scheduler=%r)",
        settings.strict_dispatch,
        settings.auto_refresh,
        aggregator.scheduler,
    )
    return MvpRuntime(settings=settings, aggregator=aggregator, log_path=log_path)
