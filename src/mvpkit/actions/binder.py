"""Bind view triggers to actions and keep their enabled state in sync.

Two integration styles are supported and may be combined:

*Implicit* - the view hands its binder to the presenter, which binds it to its
dispatcher::

    binder.add(DocActions.SAVE, save_button, save_menu_item)
    binder.bind(dispatcher)

*Explicit* - the view re-publishes binder requests through its own event and
the presenter forwards them::

    binder.add_action_listener(view.action_requested.emit)
    view.action_requested.connect(lambda request: request.forward_to(dispatcher))

Every activation carries a fresh :class:`~mvpkit.actions.gestures.GestureToken`
so that a gesture travelling down both paths executes its handler once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Mapping, Sequence

from .gestures import GestureToken, next_gesture
from .identity import ViewAction
from .triggers import ActivationCallback, StrategyRegistry, TriggerStrategy

if TYPE_CHECKING:  # pragma: no cover
    from .dispatcher import DispatchResult, ViewActionDispatcher

__all__ = [
    "ActionBinding",
    "ActionRequest",
    "ActionRequestListener",
    "ViewActionBinder",
]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActionRequest:
    """Raised to explicit listeners each time a bound trigger fires.

    Attributes:
        action: The action bound to the trigger.
        payload: Payload configured for the binding, if any.
        gesture: Token identifying the physical activation.
    """

    action: ViewAction
    payload: Any = None
    gesture: GestureToken | None = None

    def forward_to(self, dispatcher: ViewActionDispatcher) -> DispatchResult:
        """Dispatch this request, keeping its gesture token."""

        return dispatcher.dispatch(self.action, self.payload, gesture=self.gesture)


ActionRequestListener = Callable[[ActionRequest], None]


@dataclass(frozen=True, slots=True)
class ActionBinding:
    """One action and the triggers that invoke it."""

    action: ViewAction
    triggers: tuple[Any, ...]
    payload: Any = None


@dataclass(frozen=True, slots=True)
class _ActiveSubscription:
    trigger: Any
    callback: ActivationCallback
    strategy: TriggerStrategy


class ViewActionBinder:
    """Associates triggers with actions and wires them to a dispatcher.

    The binder never owns its triggers; the view does. After :meth:`unbind`
    (or :meth:`dispose`) no trigger can reach the dispatcher any more.
    """

    def __init__(self, strategies: StrategyRegistry | None = None) -> None:
        self._strategies = strategies or StrategyRegistry.with_defaults()
        self._bindings: list[ActionBinding] = []
        self._action_triggers: dict[ViewAction, list[tuple[Any, TriggerStrategy]]] = {}
        self._subscriptions: list[_ActiveSubscription] = []
        self._request_listeners: list[ActionRequestListener] = []
        self._dispatcher: ViewActionDispatcher | None = None
        self._bound = False

    # ------------------------------------------------------------------
    # Association
    # ------------------------------------------------------------------
    def add(self, action: ViewAction, *triggers: Any, payload: Any = None) -> ViewActionBinder:
        """Associate one or more triggers with ``action``.

        Takes effect on the next :meth:`bind`.
        """

        if not isinstance(action, ViewAction):
            raise TypeError(f"action must be a ViewAction, got {type(action).__name__}")
        if not triggers:
            raise ValueError(f"at least one trigger is required for action '{action}'")
        self._bindings.append(ActionBinding(action=action, triggers=tuple(triggers), payload=payload))
        return self

    def add_range(self, pairs: Iterable[tuple[ViewAction, Any]]) -> ViewActionBinder:
        """Add ``(action, trigger)`` pairs in order."""

        for action, trigger in pairs:
            self.add(action, trigger)
        return self

    def add_mapping(self, mapping: Mapping[ViewAction, Any | Sequence[Any]]) -> ViewActionBinder:
        """Add ``{action: trigger}`` or ``{action: [trigger, ...]}`` entries."""

        for action, value in mapping.items():
            if isinstance(value, (list, tuple)):
                self.add(action, *value)
            else:
                self.add(action, value)
        return self

    def register_strategy(self, trigger_type: type, strategy: TriggerStrategy) -> None:
        self._strategies.register(trigger_type, strategy)

    @property
    def strategies(self) -> StrategyRegistry:
        return self._strategies

    def triggers_for(self, action: ViewAction) -> tuple[Any, ...]:
        """Triggers currently associated with ``action`` (bound or not)."""

        found: list[Any] = []
        for binding in self._bindings:
            if binding.action == action:
                found.extend(t for t in binding.triggers if not any(t is seen for seen in found))
        return tuple(found)

    def __iter__(self) -> Iterator[ActionBinding]:
        return iter(tuple(self._bindings))

    def __len__(self) -> int:
        return len(self._bindings)

    # ------------------------------------------------------------------
    # Explicit style listeners
    # ------------------------------------------------------------------
    def add_action_listener(self, listener: ActionRequestListener) -> None:
        if listener not in self._request_listeners:
            self._request_listeners.append(listener)

    def remove_action_listener(self, listener: ActionRequestListener) -> None:
        if listener in self._request_listeners:
            self._request_listeners.remove(listener)

    # ------------------------------------------------------------------
    # Binding lifecycle
    # ------------------------------------------------------------------
    @property
    def is_bound(self) -> bool:
        return self._bound

    @property
    def dispatcher(self) -> ViewActionDispatcher | None:
        return self._dispatcher

    def bind(self, dispatcher: ViewActionDispatcher | None = None) -> None:
        """Wire every trigger's activation signal.

        With a ``dispatcher``, activations are dispatched directly and trigger
        enablement follows the dispatcher's state broadcasts. Without one, only
        the explicit action listeners are notified.

        Raises:
            TypeError: A trigger has no registered or duck-typed strategy.
        """

        self.unbind()

        resolved: list[tuple[ActionBinding, Any, TriggerStrategy]] = []
        for binding in self._bindings:
            for trigger in binding.triggers:
                strategy = self._strategies.resolve(trigger)
                if strategy is None:
                    raise TypeError(
                        f"No trigger strategy for {type(trigger).__name__} "
                        f"(bound to action '{binding.action}')"
                    )
                resolved.append((binding, trigger, strategy))

        action_triggers: dict[ViewAction, list[tuple[Any, TriggerStrategy]]] = {}
        for binding, trigger, strategy in resolved:
            entries = action_triggers.setdefault(binding.action, [])
            if any(existing is trigger for existing, _ in entries):
                # One callback per (action, trigger); the first binding's payload wins.
                continue
            entries.append((trigger, strategy))
            callback = self._make_callback(binding.action, binding.payload)
            strategy.attach(trigger, callback)
            self._subscriptions.append(_ActiveSubscription(trigger, callback, strategy))

        self._action_triggers = action_triggers
        self._bound = True

        if dispatcher is not None:
            self._dispatcher = dispatcher
            dispatcher.add_state_listener(self._on_state_changed)
            self.update_can_execute_states()

        LOGGER.debug(
            "Bound %d trigger(s) across %d action(s) (dispatcher=%s)",
            len(self._subscriptions),
            len(action_triggers),
            "yes" if dispatcher is not None else "no",
        )

    def update_can_execute_states(self) -> None:
        """Push the dispatcher's current executable state onto every bound trigger."""

        dispatcher = self._dispatcher
        if dispatcher is None:
            return
        for action, entries in self._action_triggers.items():
            enabled = dispatcher.can_dispatch(action)
            for trigger, strategy in entries:
                strategy.set_enabled(trigger, enabled)

    def unbind(self) -> None:
        """Detach every activation callback and stop following the dispatcher."""

        if self._dispatcher is not None:
            self._dispatcher.remove_state_listener(self._on_state_changed)
            self._dispatcher = None

        for subscription in self._subscriptions:
            try:
                subscription.strategy.detach(subscription.trigger, subscription.callback)
            except (RuntimeError, TypeError):
                # Qt raises when the underlying widget is already gone.
                LOGGER.debug("Failed to detach trigger %r", subscription.trigger, exc_info=True)
        self._subscriptions.clear()
        self._action_triggers = {}
        self._bound = False

    def dispose(self) -> None:
        """Unbind and forget all bindings and listeners."""

        self.unbind()
        self._bindings.clear()
        self._request_listeners.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _make_callback(self, action: ViewAction, payload: Any) -> ActivationCallback:
        def _on_activated(*_signal_args: Any) -> None:
            self._handle_activation(action, payload)

        return _on_activated

    def _handle_activation(self, action: ViewAction, payload: Any) -> None:
        gesture = next_gesture()
        LOGGER.debug("Trigger activated action %s (%s)", action, gesture)

        dispatcher = self._dispatcher
        try:
            if dispatcher is not None:
                dispatcher.dispatch(action, payload, gesture=gesture)
        finally:
            # Listeners hear about the gesture even when the implicit dispatch raised.
            if self._request_listeners:
                request = ActionRequest(action=action, payload=payload, gesture=gesture)
                for listener in tuple(self._request_listeners):
                    listener(request)

    def _on_state_changed(self, _changes: Mapping[ViewAction, bool]) -> None:
        self.update_can_execute_states()
