"""Action identities, dispatching and trigger binding."""

from __future__ import annotations

from .binder import ActionBinding, ActionRequest, ViewActionBinder
from .dispatcher import DispatchResult, DispatchStatus, RegisteredAction, ViewActionDispatcher
from .errors import ErrorCode, PayloadTypeError, UnknownActionError, ViewActionError
from .gestures import GestureToken, next_gesture
from .identity import StandardActionNames, StandardActions, ViewAction, ViewActionFactory
from .triggers import StrategyRegistry, Trigger, TriggerStrategy

__all__ = [
    "ActionBinding",
    "ActionRequest",
    "DispatchResult",
    "DispatchStatus",
    "ErrorCode",
    "GestureToken",
    "PayloadTypeError",
    "RegisteredAction",
    "StandardActionNames",
    "StandardActions",
    "StrategyRegistry",
    "Trigger",
    "TriggerStrategy",
    "UnknownActionError",
    "ViewAction",
    "ViewActionBinder",
    "ViewActionDispatcher",
    "ViewActionError",
    "ViewActionFactory",
    "next_gesture",
]
