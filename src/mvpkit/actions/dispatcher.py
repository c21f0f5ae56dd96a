"""Action dispatcher owned by a presenter.

The dispatcher maps :class:`~mvpkit.actions.identity.ViewAction` keys to
handlers and optional can-execute predicates. Views never call handlers
directly; they go through :meth:`ViewActionDispatcher.dispatch`, usually via a
:class:`~mvpkit.actions.binder.ViewActionBinder`.

Example::

    dispatcher = ViewActionDispatcher()
    dispatcher.register(OrderActions.SUBMIT, self._submit, can_execute=self._has_items)
    dispatcher.register_parameterized(OrderActions.SELECT, Product, self._select)

    view.binder.bind(dispatcher)
    ...
    self._items.append(item)
    dispatcher.raise_can_execute_changed()   # re-enables the Submit button

Note:
    The dispatcher is single-threaded by contract: register, dispatch and
    re-evaluation all run on the owning UI thread.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping

from .errors import PayloadTypeError, UnknownActionError
from .gestures import GestureToken
from .identity import ViewAction

__all__ = [
    "ActionHandler",
    "CanExecute",
    "DispatchResult",
    "DispatchStatus",
    "ExecutedListener",
    "RegisteredAction",
    "StateListener",
    "ViewActionDispatcher",
]

LOGGER = logging.getLogger(__name__)

ActionHandler = Callable[..., Any]
CanExecute = Callable[[], bool]
StateListener = Callable[[Mapping[ViewAction, bool]], None]
ExecutedListener = Callable[[ViewAction], None]


class DispatchStatus(str, enum.Enum):
    """Outcome of a single :meth:`ViewActionDispatcher.dispatch` call."""

    EXECUTED = "executed"
    NOT_EXECUTABLE = "not_executable"
    UNKNOWN_ACTION = "unknown_action"
    DUPLICATE = "duplicate"


@dataclass(slots=True)
class DispatchResult:
    """Result of dispatching one action.

    Attributes:
        action: The dispatched action.
        status: What happened.
        error: The recoverable error for ``UNKNOWN_ACTION`` results.
        gesture: Gesture token carried by the dispatch, if any.
    """

    action: ViewAction
    status: DispatchStatus
    error: UnknownActionError | None = None
    gesture: GestureToken | None = None

    @property
    def executed(self) -> bool:
        return self.status is DispatchStatus.EXECUTED

    def raise_for_status(self) -> DispatchResult:
        """Raise the attached error, if any; return ``self`` otherwise."""

        if self.error is not None:
            raise self.error
        return self

    def __bool__(self) -> bool:
        return self.executed


@dataclass(slots=True)
class RegisteredAction:
    """Registry entry for one action."""

    action: ViewAction
    handler: ActionHandler
    payload_type: type | None = None
    can_execute: CanExecute | None = None
    last_known_executable: bool | None = None

    @property
    def parameterized(self) -> bool:
        return self.payload_type is not None

    def evaluate(self) -> bool:
        if self.can_execute is None:
            return True
        return bool(self.can_execute())

    def check_payload(self, payload: Any) -> None:
        if self.payload_type is not None and not isinstance(payload, self.payload_type):
            raise PayloadTypeError.for_payload(self.action, self.payload_type, payload)

    def invoke(self, payload: Any) -> None:
        if self.payload_type is None:
            self.handler()
        else:
            self.handler(payload)


class ViewActionDispatcher:
    """Registry + dispatcher for presenter actions.

    Args:
        auto_refresh: Re-evaluate every predicate after a handler runs, so bound
            triggers follow state changes made by the handler itself.
        strict: Raise :class:`UnknownActionError` instead of returning an
            ``UNKNOWN_ACTION`` result.
    """

    def __init__(self, *, auto_refresh: bool = True, strict: bool = False) -> None:
        self._entries: dict[ViewAction, RegisteredAction] = {}
        self._state_listeners: list[StateListener] = []
        self._executed_listeners: list[ExecutedListener] = []
        self._seen_gestures: dict[ViewAction, int] = {}
        self._auto_refresh = auto_refresh
        self._strict = strict

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(
        self,
        action: ViewAction,
        handler: Callable[[], Any],
        can_execute: CanExecute | None = None,
    ) -> RegisteredAction:
        """Register (or replace) a parameterless handler for ``action``."""

        return self._store(action, handler, None, can_execute)

    def register_parameterized(
        self,
        action: ViewAction,
        payload_type: type,
        handler: Callable[[Any], Any],
        can_execute: CanExecute | None = None,
    ) -> RegisteredAction:
        """Register (or replace) a handler taking one ``payload_type`` payload."""

        if not isinstance(payload_type, type):
            raise TypeError(f"payload_type must be a class, got {payload_type!r}")
        return self._store(action, handler, payload_type, can_execute)

    def unregister(self, action: ViewAction) -> bool:
        """Remove ``action``; returns ``False`` when it was not registered."""

        removed = self._entries.pop(action, None)
        self._seen_gestures.pop(action, None)
        if removed is not None:
            LOGGER.debug("Unregistered action %s", action)
        return removed is not None

    def clear(self) -> None:
        """Drop every registration (end of the owning presenter's lifetime)."""

        self._entries.clear()
        self._seen_gestures.clear()
        LOGGER.debug("Cleared all registered actions")

    def is_registered(self, action: ViewAction) -> bool:
        return action in self._entries

    @property
    def registered_actions(self) -> tuple[ViewAction, ...]:
        return tuple(self._entries)

    def entry(self, action: ViewAction) -> RegisteredAction | None:
        return self._entries.get(action)

    def __contains__(self, action: object) -> bool:
        return action in self._entries

    def __iter__(self) -> Iterator[ViewAction]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def can_dispatch(self, action: ViewAction) -> bool:
        """Evaluate ``action``'s predicate now; unknown actions are not dispatchable."""

        entry = self._entries.get(action)
        if entry is None:
            return False
        return entry.evaluate()

    def dispatch(
        self,
        action: ViewAction,
        payload: Any = None,
        *,
        gesture: GestureToken | None = None,
    ) -> DispatchResult:
        """Run ``action``'s handler if it is currently executable.

        Returns:
            A :class:`DispatchResult`. Disabled actions and repeated gestures are
            reported, not raised.

        Raises:
            PayloadTypeError: ``payload`` does not match a parameterized handler.
            UnknownActionError: Only in strict mode.
        """

        entry = self._entries.get(action)
        if entry is None:
            error = UnknownActionError.for_action(action)
            if self._strict:
                raise error
            LOGGER.warning("Dispatch of unregistered action %s ignored", action)
            return DispatchResult(action, DispatchStatus.UNKNOWN_ACTION, error=error, gesture=gesture)

        if gesture is not None and self._is_duplicate(action, gesture):
            LOGGER.debug("Suppressed duplicate dispatch of %s for %s", action, gesture)
            return DispatchResult(action, DispatchStatus.DUPLICATE, gesture=gesture)

        if not entry.evaluate():
            LOGGER.debug("Action %s is not executable; dispatch skipped", action)
            return DispatchResult(action, DispatchStatus.NOT_EXECUTABLE, gesture=gesture)

        entry.check_payload(payload)
        LOGGER.debug("Executing action %s", action)
        entry.invoke(payload)

        for listener in tuple(self._executed_listeners):
            listener(action)
        if self._auto_refresh:
            self.raise_can_execute_changed()
        return DispatchResult(action, DispatchStatus.EXECUTED, gesture=gesture)

    def raise_can_execute_changed(self) -> dict[ViewAction, bool]:
        """Re-evaluate every predicate and broadcast the ones that changed.

        Handlers are never invoked here. Returns the mapping of changed actions
        to their new executable state (empty when nothing changed).
        """

        changed: dict[ViewAction, bool] = {}
        for entry in tuple(self._entries.values()):
            current = entry.evaluate()
            if entry.last_known_executable != current:
                entry.last_known_executable = current
                changed[entry.action] = current

        if changed:
            LOGGER.debug("Executable state changed for %d action(s)", len(changed))
            for listener in tuple(self._state_listeners):
                listener(dict(changed))
        return changed

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_state_listener(self, listener: StateListener) -> None:
        """Subscribe to executable-state broadcasts."""

        if listener not in self._state_listeners:
            self._state_listeners.append(listener)

    def remove_state_listener(self, listener: StateListener) -> None:
        if listener in self._state_listeners:
            self._state_listeners.remove(listener)

    def add_executed_listener(self, listener: ExecutedListener) -> None:
        """Subscribe to notifications sent after a handler ran."""

        if listener not in self._executed_listeners:
            self._executed_listeners.append(listener)

    def remove_executed_listener(self, listener: ExecutedListener) -> None:
        if listener in self._executed_listeners:
            self._executed_listeners.remove(listener)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _store(
        self,
        action: ViewAction,
        handler: ActionHandler,
        payload_type: type | None,
        can_execute: CanExecute | None,
    ) -> RegisteredAction:
        if not isinstance(action, ViewAction):
            raise TypeError(f"action must be a ViewAction, got {type(action).__name__}")
        if not callable(handler):
            raise TypeError("handler must be callable")
        if can_execute is not None and not callable(can_execute):
            raise TypeError("can_execute must be callable or None")

        entry = RegisteredAction(
            action=action,
            handler=handler,
            payload_type=payload_type,
            can_execute=can_execute,
        )
        replaced = action in self._entries
        self._entries[action] = entry
        LOGGER.debug(
            "%s action %s (payload=%s)",
            "Replaced" if replaced else "Registered",
            action,
            payload_type.__name__ if payload_type is not None else "none",
        )
        return entry

    def _is_duplicate(self, action: ViewAction, gesture: GestureToken) -> bool:
        last = self._seen_gestures.get(action)
        if last is not None and gesture.serial <= last:
            return True
        self._seen_gestures[action] = gesture.serial
        return False
