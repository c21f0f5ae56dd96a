"""Tests for the presenter-side action dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest

from mvpkit.actions.dispatcher import DispatchStatus, ViewActionDispatcher
from mvpkit.actions.errors import ErrorCode, PayloadTypeError, UnknownActionError
from mvpkit.actions.gestures import GestureToken, next_gesture
from mvpkit.actions.identity import ViewAction

ORDERS = ViewAction.factory().with_qualifier("Orders")
SUBMIT = ORDERS.create("Submit")
SELECT = ORDERS.create("Select")
CLEAR = ORDERS.create("Clear")


@dataclass
class Product:
    sku: str


class TestRegistration:
    def test_register_makes_action_known(self) -> None:
        dispatcher = ViewActionDispatcher()

        dispatcher.register(SUBMIT, lambda: None)

        assert dispatcher.is_registered(SUBMIT)
        assert SUBMIT in dispatcher
        assert len(dispatcher) == 1
        assert dispatcher.registered_actions == (SUBMIT,)

    def test_reregistration_replaces_previous_handler(self) -> None:
        dispatcher = ViewActionDispatcher()
        calls: list[str] = []
        dispatcher.register(SUBMIT, lambda: calls.append("first"))
        dispatcher.register(SUBMIT, lambda: calls.append("second"))

        dispatcher.dispatch(SUBMIT)

        assert calls == ["second"]
        assert len(dispatcher) == 1

    def test_register_rejects_non_actions(self) -> None:
        dispatcher = ViewActionDispatcher()

        with pytest.raises(TypeError):
            dispatcher.register("Orders.Submit", lambda: None)  # type: ignore[arg-type]

    def test_register_rejects_non_callable_handler(self) -> None:
        dispatcher = ViewActionDispatcher()

        with pytest.raises(TypeError):
            dispatcher.register(SUBMIT, "not callable")  # type: ignore[arg-type]

    def test_register_parameterized_requires_a_class(self) -> None:
        dispatcher = ViewActionDispatcher()

        with pytest.raises(TypeError):
            dispatcher.register_parameterized(SELECT, "Product", lambda p: None)  # type: ignore[arg-type]

    def test_unregister_and_clear(self) -> None:
        dispatcher = ViewActionDispatcher()
        dispatcher.register(SUBMIT, lambda: None)
        dispatcher.register(CLEAR, lambda: None)

        assert dispatcher.unregister(SUBMIT) is True
        assert dispatcher.unregister(SUBMIT) is False
        dispatcher.clear()

        assert len(dispatcher) == 0


class TestDispatch:
    def test_executes_registered_handler(self) -> None:
        dispatcher = ViewActionDispatcher()
        calls: list[str] = []
        dispatcher.register(SUBMIT, lambda: calls.append("submitted"))

        result = dispatcher.dispatch(SUBMIT)

        assert result.status is DispatchStatus.EXECUTED
        assert result.executed
        assert bool(result)
        assert calls == ["submitted"]

    def test_parameterized_handler_receives_payload(self) -> None:
        dispatcher = ViewActionDispatcher()
        received: list[Product] = []
        dispatcher.register_parameterized(SELECT, Product, received.append)

        dispatcher.dispatch(SELECT, Product("A-1"))

        assert received == [Product("A-1")]

    def test_payload_subclasses_are_accepted(self) -> None:
        class Special(Product):
            pass

        dispatcher = ViewActionDispatcher()
        received: list[Product] = []
        dispatcher.register_parameterized(SELECT, Product, received.append)

        dispatcher.dispatch(SELECT, Special("B-2"))

        assert len(received) == 1

    def test_payload_type_mismatch_raises_without_invoking(self) -> None:
        dispatcher = ViewActionDispatcher()
        received: list[Any] = []
        dispatcher.register_parameterized(SELECT, Product, received.append)

        with pytest.raises(PayloadTypeError) as excinfo:
            dispatcher.dispatch(SELECT, "A-1")

        assert received == []
        error = excinfo.value
        assert isinstance(error, TypeError)
        assert error.error_code == ErrorCode.PAYLOAD_TYPE_MISMATCH
        assert error.expected is Product
        assert error.received is str
        assert error.to_dict()["details"]["action"] == "Orders.Select"

    def test_none_payload_for_parameterized_action_is_a_mismatch(self) -> None:
        dispatcher = ViewActionDispatcher()
        dispatcher.register_parameterized(SELECT, Product, lambda p: None)

        with pytest.raises(PayloadTypeError):
            dispatcher.dispatch(SELECT)

    def test_unknown_action_is_reported_not_raised(self) -> None:
        dispatcher = ViewActionDispatcher()

        result = dispatcher.dispatch(SUBMIT)

        assert result.status is DispatchStatus.UNKNOWN_ACTION
        assert isinstance(result.error, UnknownActionError)
        assert result.error.action == SUBMIT
        assert not result
        with pytest.raises(UnknownActionError):
            result.raise_for_status()

    def test_strict_mode_raises_unknown_action(self) -> None:
        dispatcher = ViewActionDispatcher(strict=True)

        with pytest.raises(UnknownActionError) as excinfo:
            dispatcher.dispatch(SUBMIT)

        assert isinstance(excinfo.value, LookupError)
        assert str(excinfo.value).startswith("[unknown_action]")

    def test_disabled_action_is_skipped(self) -> None:
        dispatcher = ViewActionDispatcher()
        calls: list[str] = []
        dispatcher.register(SUBMIT, lambda: calls.append("x"), can_execute=lambda: False)

        result = dispatcher.dispatch(SUBMIT)

        assert result.status is DispatchStatus.NOT_EXECUTABLE
        assert calls == []

    def test_predicate_is_evaluated_at_dispatch_time(self) -> None:
        dispatcher = ViewActionDispatcher()
        items: list[str] = []
        calls: list[int] = []
        dispatcher.register(SUBMIT, lambda: calls.append(len(items)), can_execute=lambda: bool(items))

        assert dispatcher.can_dispatch(SUBMIT) is False
        items.append("widget")

        assert dispatcher.can_dispatch(SUBMIT) is True
        assert dispatcher.dispatch(SUBMIT).executed
        assert calls == [1]

    def test_can_dispatch_unknown_action_is_false(self) -> None:
        assert ViewActionDispatcher().can_dispatch(SUBMIT) is False

    def test_handler_exceptions_propagate(self) -> None:
        dispatcher = ViewActionDispatcher()

        def _boom() -> None:
            raise ValueError("boom")

        dispatcher.register(SUBMIT, _boom)

        with pytest.raises(ValueError, match="boom"):
            dispatcher.dispatch(SUBMIT)

    def test_predicate_exceptions_propagate(self) -> None:
        dispatcher = ViewActionDispatcher()

        def _broken() -> bool:
            raise RuntimeError("predicate failed")

        dispatcher.register(SUBMIT, lambda: None, can_execute=_broken)

        with pytest.raises(RuntimeError):
            dispatcher.dispatch(SUBMIT)

    def test_executed_listeners_are_notified(self) -> None:
        dispatcher = ViewActionDispatcher()
        executed: list[ViewAction] = []
        dispatcher.register(SUBMIT, lambda: None)
        dispatcher.add_executed_listener(executed.append)

        dispatcher.dispatch(SUBMIT)
        dispatcher.remove_executed_listener(executed.append)
        dispatcher.dispatch(SUBMIT)

        assert executed == [SUBMIT]


class TestGestures:
    def test_same_gesture_executes_once(self) -> None:
        dispatcher = ViewActionDispatcher()
        calls: list[str] = []
        dispatcher.register(SUBMIT, lambda: calls.append("x"))
        gesture = next_gesture()

        first = dispatcher.dispatch(SUBMIT, gesture=gesture)
        second = dispatcher.dispatch(SUBMIT, gesture=gesture)

        assert first.status is DispatchStatus.EXECUTED
        assert second.status is DispatchStatus.DUPLICATE
        assert calls == ["x"]

    def test_new_gestures_execute_again(self) -> None:
        dispatcher = ViewActionDispatcher()
        calls: list[str] = []
        dispatcher.register(SUBMIT, lambda: calls.append("x"))

        dispatcher.dispatch(SUBMIT, gesture=next_gesture())
        dispatcher.dispatch(SUBMIT, gesture=next_gesture())

        assert calls == ["x", "x"]

    def test_dispatch_without_gesture_is_never_suppressed(self) -> None:
        dispatcher = ViewActionDispatcher()
        calls: list[str] = []
        dispatcher.register(SUBMIT, lambda: calls.append("x"))

        dispatcher.dispatch(SUBMIT)
        dispatcher.dispatch(SUBMIT)

        assert calls == ["x", "x"]

    def test_gestures_are_tracked_per_action(self) -> None:
        dispatcher = ViewActionDispatcher()
        calls: list[ViewAction] = []
        dispatcher.register(SUBMIT, lambda: calls.append(SUBMIT))
        dispatcher.register(CLEAR, lambda: calls.append(CLEAR))
        gesture = next_gesture()

        dispatcher.dispatch(SUBMIT, gesture=gesture)
        dispatcher.dispatch(CLEAR, gesture=gesture)

        assert calls == [SUBMIT, CLEAR]

    def test_older_gesture_after_newer_is_duplicate(self) -> None:
        dispatcher = ViewActionDispatcher()
        dispatcher.register(SUBMIT, lambda: None)
        older, newer = next_gesture(), next_gesture()

        dispatcher.dispatch(SUBMIT, gesture=newer)

        assert dispatcher.dispatch(SUBMIT, gesture=older).status is DispatchStatus.DUPLICATE

    def test_tokens_increase(self) -> None:
        first, second = next_gesture(), next_gesture()

        assert second > first
        assert str(GestureToken(7)) == "gesture-7"


class TestCanExecuteChanged:
    def test_broadcast_contains_only_changed_actions(self) -> None:
        dispatcher = ViewActionDispatcher(auto_refresh=False)
        items: list[str] = []
        dispatcher.register(SUBMIT, lambda: None, can_execute=lambda: bool(items))
        dispatcher.register(CLEAR, lambda: None)
        broadcasts: list[dict[ViewAction, bool]] = []
        dispatcher.add_state_listener(lambda changes: broadcasts.append(dict(changes)))

        initial = dispatcher.raise_can_execute_changed()
        items.append("widget")
        flipped = dispatcher.raise_can_execute_changed()
        unchanged = dispatcher.raise_can_execute_changed()

        assert initial == {SUBMIT: False, CLEAR: True}
        assert flipped == {SUBMIT: True}
        assert unchanged == {}
        assert broadcasts == [{SUBMIT: False, CLEAR: True}, {SUBMIT: True}]

    def test_raise_never_invokes_handlers(self) -> None:
        dispatcher = ViewActionDispatcher()
        calls: list[str] = []
        dispatcher.register(SUBMIT, lambda: calls.append("x"))

        dispatcher.raise_can_execute_changed()

        assert calls == []

    def test_auto_refresh_after_execution(self) -> None:
        dispatcher = ViewActionDispatcher(auto_refresh=True)
        items = ["widget"]
        dispatcher.register(SUBMIT, lambda: None, can_execute=lambda: bool(items))
        dispatcher.register(CLEAR, items.clear)
        dispatcher.raise_can_execute_changed()
        broadcasts: list[dict[ViewAction, bool]] = []
        dispatcher.add_state_listener(lambda changes: broadcasts.append(dict(changes)))

        dispatcher.dispatch(CLEAR)

        assert broadcasts == [{SUBMIT: False}]

    def test_removed_state_listener_is_not_called(self) -> None:
        dispatcher = ViewActionDispatcher()
        broadcasts: list[Any] = []
        dispatcher.register(SUBMIT, lambda: None)
        dispatcher.add_state_listener(broadcasts.append)
        dispatcher.remove_state_listener(broadcasts.append)

        dispatcher.raise_can_execute_changed()

        assert broadcasts == []
