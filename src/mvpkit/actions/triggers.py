"""Trigger abstractions used by :class:`~mvpkit.actions.binder.ViewActionBinder`.

A *trigger* is any view-owned object that can fire an activation signal and
exposes an enabled flag: a button, a menu action, a toolbar item. The binder
talks to triggers exclusively through a :class:`TriggerStrategy`, looked up by
the trigger's type. Qt widgets get their strategies from
:func:`mvpkit.qt.install_qt_strategies`; :class:`Trigger` is a headless
implementation used in tests and non-Qt front ends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterator

__all__ = [
    "ActivationCallback",
    "StrategyRegistry",
    "Trigger",
    "TriggerStrategy",
    "TRIGGER_STRATEGY",
    "duck_typed_strategy",
]

LOGGER = logging.getLogger(__name__)

ActivationCallback = Callable[..., None]

_SIGNAL_NAMES: tuple[str, ...] = ("activated", "clicked", "triggered")


@dataclass(frozen=True, slots=True)
class TriggerStrategy:
    """How to wire one family of trigger objects.

    Attributes:
        attach: Connect an activation callback to the trigger.
        detach: Disconnect a previously attached callback.
        set_enabled: Push the enabled flag onto the trigger.
    """

    attach: Callable[[Any, ActivationCallback], None]
    detach: Callable[[Any, ActivationCallback], None]
    set_enabled: Callable[[Any, bool], None]


class Trigger:
    """Headless trigger with an activation listener list and an enabled flag."""

    def __init__(self, name: str = "", *, enabled: bool = True) -> None:
        self.name = name
        self._enabled = bool(enabled)
        self._listeners: list[ActivationCallback] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)

    def add_activation_listener(self, callback: ActivationCallback) -> None:
        self._listeners.append(callback)

    def remove_activation_listener(self, callback: ActivationCallback) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def activate(self, *args: Any, force: bool = False) -> bool:
        """Fire the activation signal.

        Disabled triggers stay silent unless ``force`` is set, which simulates a
        click racing a repaint.
        """

        if not self._enabled and not force:
            return False
        for callback in tuple(self._listeners):
            callback(*args)
        return True

    def __repr__(self) -> str:
        state = "enabled" if self._enabled else "disabled"
        return f"Trigger({self.name!r}, {state})"


TRIGGER_STRATEGY = TriggerStrategy(
    attach=lambda trigger, callback: trigger.add_activation_listener(callback),
    detach=lambda trigger, callback: trigger.remove_activation_listener(callback),
    set_enabled=lambda trigger, enabled: trigger.set_enabled(enabled),
)


def duck_typed_strategy(trigger: Any) -> TriggerStrategy | None:
    """Build a strategy for objects exposing a connectable signal and an enabled setter."""

    signal_name = next(
        (
            name
            for name in _SIGNAL_NAMES
            if hasattr(getattr(trigger, name, None), "connect")
        ),
        None,
    )
    if signal_name is None:
        return None

    setter = _enabled_setter(trigger)
    if setter is None:
        return None

    return TriggerStrategy(
        attach=lambda target, callback: getattr(target, signal_name).connect(callback),
        detach=lambda target, callback: getattr(target, signal_name).disconnect(callback),
        set_enabled=setter,
    )


def _enabled_setter(trigger: Any) -> Callable[[Any, bool], None] | None:
    if callable(getattr(trigger, "set_enabled", None)):
        return lambda target, enabled: target.set_enabled(enabled)
    if callable(getattr(trigger, "setEnabled", None)):
        return lambda target, enabled: target.setEnabled(enabled)
    if hasattr(trigger, "enabled"):
        return lambda target, enabled: setattr(target, "enabled", enabled)
    return None


class StrategyRegistry:
    """Type -> strategy mapping resolved along the trigger's MRO."""

    def __init__(self) -> None:
        self._strategies: dict[type, TriggerStrategy] = {}

    @classmethod
    def with_defaults(cls) -> StrategyRegistry:
        registry = cls()
        registry.register(Trigger, TRIGGER_STRATEGY)
        return registry

    def register(self, trigger_type: type, strategy: TriggerStrategy) -> None:
        self._strategies[trigger_type] = strategy
        LOGGER.debug("Registered trigger strategy for %s", trigger_type.__name__)

    def resolve(self, trigger: Any) -> TriggerStrategy | None:
        for klass in type(trigger).__mro__:
            strategy = self._strategies.get(klass)
            if strategy is not None:
                return strategy
        return duck_typed_strategy(trigger)

    def __contains__(self, trigger_type: object) -> bool:
        return trigger_type in self._strategies

    def __iter__(self) -> Iterator[type]:
        return iter(self._strategies)
