"""mvpkit: action dispatching, trigger binding and event aggregation for MVP front ends."""

from __future__ import annotations

from .actions import (
    ActionBinding,
    ActionRequest,
    DispatchResult,
    DispatchStatus,
    ErrorCode,
    GestureToken,
    PayloadTypeError,
    StandardActionNames,
    StandardActions,
    StrategyRegistry,
    Trigger,
    TriggerStrategy,
    UnknownActionError,
    ViewAction,
    ViewActionBinder,
    ViewActionDispatcher,
    ViewActionError,
    ViewActionFactory,
)
from .config import Settings, SettingsStore, load_settings
from .messaging import (
    AsyncioScheduler,
    EventAggregator,
    ImmediateScheduler,
    Scheduler,
    SubscriptionToken,
    ThreadAffinityScheduler,
)
from .runtime import MvpRuntime, create_runtime

__all__ = [
    "ActionBinding",
    "ActionRequest",
    "AsyncioScheduler",
    "DispatchResult",
    "DispatchStatus",
    "ErrorCode",
    "EventAggregator",
    "GestureToken",
    "ImmediateScheduler",
    "MvpRuntime",
    "PayloadTypeError",
    "Scheduler",
    "Settings",
    "SettingsStore",
    "StandardActionNames",
    "StandardActions",
    "StrategyRegistry",
    "SubscriptionToken",
    "ThreadAffinityScheduler",
    "Trigger",
    "TriggerStrategy",
    "UnknownActionError",
    "ViewAction",
    "ViewActionBinder",
    "ViewActionDispatcher",
    "ViewActionError",
    "ViewActionFactory",
    "create_runtime",
    "load_settings",
]

__version__ = "0.1.0"
