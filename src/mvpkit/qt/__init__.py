"""PySide6 integration: GUI-thread scheduling, trigger strategies and app bootstrap.

Typical wiring in a Qt application::

    runtime = create_qapp("Orders")
    aggregator = EventAggregator(scheduler=runtime.scheduler)

    binder = ViewActionBinder()
    install_qt_strategies(binder)
    binder.add(OrderActions.SUBMIT, submit_button, submit_action)
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import threading
from dataclasses import dataclass
from typing import Any, Callable, cast

from PySide6.QtCore import QCoreApplication, QObject, Qt, Signal, Slot
from PySide6.QtGui import QAction
from PySide6.QtWidgets import QAbstractButton, QApplication

from ..actions.binder import ViewActionBinder
from ..actions.triggers import StrategyRegistry, TriggerStrategy

__all__ = [
    "QtRuntime",
    "QtScheduler",
    "QT_BUTTON_STRATEGY",
    "QT_ACTION_STRATEGY",
    "create_qapp",
    "install_qt_strategies",
]

LOGGER = logging.getLogger(__name__)


class _Invoker(QObject):
    """Lives on the GUI thread and runs callbacks delivered through a queued signal."""

    invoke = Signal(object)

    def __init__(self) -> None:
        super().__init__()
        self.invoke.connect(self._run, Qt.ConnectionType.QueuedConnection)

    @Slot(object)
    def _run(self, callback: Callable[[], None]) -> None:
        callback()


class QtScheduler:
    """Scheduler targeting the Qt GUI thread.

    Must be created on the GUI thread after the ``QCoreApplication`` exists.
    Posting from other threads goes through a queued signal connection and
    never blocks the publisher.
    """

    def __init__(self) -> None:
        app = QCoreApplication.instance()
        if app is None:
            raise RuntimeError("QtScheduler requires an existing QCoreApplication")
        if threading.current_thread() is not threading.main_thread():
            LOGGER.warning("QtScheduler created off the main thread; GUI-thread checks may be wrong")
        self._thread_ident = threading.get_ident()
        self._invoker = _Invoker()

    def is_current(self) -> bool:
        return threading.get_ident() == self._thread_ident

    def post(self, callback: Callable[[], None]) -> None:
        self._invoker.invoke.emit(callback)

    def __repr__(self) -> str:
        return f"QtScheduler(thread={self._thread_ident})"


def _detach_signal(signal: Any, callback: Callable[..., None]) -> None:
    signal.disconnect(callback)


QT_BUTTON_STRATEGY = TriggerStrategy(
    attach=lambda button, callback: button.clicked.connect(callback),
    detach=lambda button, callback: _detach_signal(button.clicked, callback),
    set_enabled=lambda button, enabled: button.setEnabled(enabled),
)

QT_ACTION_STRATEGY = TriggerStrategy(
    attach=lambda action, callback: action.triggered.connect(callback),
    detach=lambda action, callback: _detach_signal(action.triggered, callback),
    set_enabled=lambda action, enabled: action.setEnabled(enabled),
)


def install_qt_strategies(target: ViewActionBinder | StrategyRegistry) -> None:
    """Teach a binder (or registry) to drive buttons, check boxes, radios and ``QAction``s.

    Buttons use ``clicked`` rather than ``toggled`` so that programmatic state
    changes and the implicit un-toggle of a radio group do not dispatch.
    """

    registry = target.strategies if isinstance(target, ViewActionBinder) else target
    registry.register(QAbstractButton, QT_BUTTON_STRATEGY)
    registry.register(QAction, QT_ACTION_STRATEGY)


@dataclass(slots=True)
class QtRuntime:
    """Container returned by :func:`create_qapp`."""

    app: Any
    loop: asyncio.AbstractEventLoop
    scheduler: QtScheduler


def create_qapp(application_name: str = "mvpkit") -> QtRuntime:
    """Create a qasync-powered QApplication plus a GUI-thread scheduler."""

    try:
        from qasync import QEventLoop
    except ImportError as exc:  # pragma: no cover - depends on env setup
        raise RuntimeError("qasync is required to run the async Qt event loop.") from exc

    os.environ.setdefault("QT_ENABLE_HIGHDPI_SCALING", "1")
    app = cast(Any, QApplication.instance() or QApplication(sys.argv))
    app.setApplicationName(application_name)

    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)
    app.aboutToQuit.connect(loop.stop)

    LOGGER.debug("Created Qt runtime for %s", application_name)
    return QtRuntime(app=app, loop=loop, scheduler=QtScheduler())
