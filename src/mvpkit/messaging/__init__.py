"""Cross-component messaging: the event aggregator and its schedulers."""

from __future__ import annotations

from .aggregator import EventAggregator, SubscriptionToken
from .scheduling import AsyncioScheduler, ImmediateScheduler, Scheduler, ThreadAffinityScheduler

__all__ = [
    "AsyncioScheduler",
    "EventAggregator",
    "ImmediateScheduler",
    "Scheduler",
    "SubscriptionToken",
    "ThreadAffinityScheduler",
]
