"""Tests for the PySide6 adapters."""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass
from typing import Any

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

qt_widgets = pytest.importorskip("PySide6.QtWidgets")
qt_gui = pytest.importorskip("PySide6.QtGui")

from mvpkit.actions.binder import ViewActionBinder  # noqa: E402
from mvpkit.actions.dispatcher import ViewActionDispatcher  # noqa: E402
from mvpkit.actions.identity import ViewAction  # noqa: E402
from mvpkit.actions.triggers import StrategyRegistry  # noqa: E402
from mvpkit.messaging.aggregator import EventAggregator  # noqa: E402
from mvpkit.qt import QT_ACTION_STRATEGY, QT_BUTTON_STRATEGY, QtScheduler, install_qt_strategies  # noqa: E402

DOC = ViewAction.factory().with_qualifier("Doc")
SAVE = DOC.create("Save")
WRAP = DOC.create("Wrap")


@dataclass(slots=True)
class StatusChanged:
    text: str


@pytest.fixture(scope="module")
def qapp() -> Any:
    app = qt_widgets.QApplication.instance()
    if app is None:  # pragma: no cover - depends on test ordering
        app = qt_widgets.QApplication([])
    return app


class _Presenter:
    def __init__(self) -> None:
        self.dirty = False
        self.saves = 0
        self.dispatcher = ViewActionDispatcher()
        self.dispatcher.register(SAVE, self._save, can_execute=lambda: self.dirty)

    def _save(self) -> None:
        self.saves += 1
        self.dirty = False

    def edit(self) -> None:
        self.dirty = True
        self.dispatcher.raise_can_execute_changed()


class TestQtStrategies:
    def test_install_registers_button_and_action(self, qapp: Any) -> None:
        registry = StrategyRegistry()

        install_qt_strategies(registry)

        assert registry.resolve(qt_widgets.QPushButton()) is QT_BUTTON_STRATEGY
        assert registry.resolve(qt_widgets.QCheckBox()) is QT_BUTTON_STRATEGY
        assert registry.resolve(qt_gui.QAction("Save")) is QT_ACTION_STRATEGY

    def test_button_and_action_follow_predicate(self, qapp: Any) -> None:
        presenter = _Presenter()
        button = qt_widgets.QPushButton("Save")
        menu_action = qt_gui.QAction("Save")
        binder = ViewActionBinder()
        install_qt_strategies(binder)
        binder.add(SAVE, button, menu_action)

        binder.bind(presenter.dispatcher)
        assert button.isEnabled() is False
        assert menu_action.isEnabled() is False

        presenter.edit()
        assert button.isEnabled() is True
        assert menu_action.isEnabled() is True

        button.click()

        assert presenter.saves == 1
        assert button.isEnabled() is False

    def test_action_trigger_dispatches(self, qapp: Any) -> None:
        presenter = _Presenter()
        presenter.edit()
        menu_action = qt_gui.QAction("Save")
        binder = ViewActionBinder()
        install_qt_strategies(binder)
        binder.add(SAVE, menu_action).bind(presenter.dispatcher)

        menu_action.trigger()

        assert presenter.saves == 1

    def test_checkbox_dispatches_on_user_click_only(self, qapp: Any) -> None:
        dispatcher = ViewActionDispatcher()
        toggles: list[str] = []
        dispatcher.register(WRAP, lambda: toggles.append("wrap"))
        checkbox = qt_widgets.QCheckBox("Wrap")
        binder = ViewActionBinder()
        install_qt_strategies(binder)
        binder.add(WRAP, checkbox).bind(dispatcher)

        checkbox.setChecked(True)
        checkbox.click()

        assert toggles == ["wrap"]

    def test_unbind_disconnects_button(self, qapp: Any) -> None:
        presenter = _Presenter()
        presenter.edit()
        button = qt_widgets.QPushButton("Save")
        binder = ViewActionBinder()
        install_qt_strategies(binder)
        binder.add(SAVE, button).bind(presenter.dispatcher)

        binder.unbind()
        button.click()

        assert presenter.saves == 0


class TestQtScheduler:
    def test_is_current_on_gui_thread(self, qapp: Any) -> None:
        scheduler = QtScheduler()
        seen: list[bool] = []

        worker = threading.Thread(target=lambda: seen.append(scheduler.is_current()))
        worker.start()
        worker.join()

        assert scheduler.is_current() is True
        assert seen == [False]

    def test_background_publish_runs_on_gui_thread(self, qapp: Any) -> None:
        """A worker-thread publish is delivered through the Qt event queue."""
        aggregator = EventAggregator(QtScheduler())
        received: list[tuple[str, int]] = []
        aggregator.subscribe(
            StatusChanged, lambda message: received.append((message.text, threading.get_ident()))
        )

        worker = threading.Thread(target=aggregator.publish, args=(StatusChanged("indexed"),))
        worker.start()
        worker.join()

        deadline = time.monotonic() + 5
        while not received and time.monotonic() < deadline:
            qapp.processEvents()
            time.sleep(0.01)

        assert received == [("indexed", threading.get_ident())]
