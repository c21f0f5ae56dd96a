"""Event aggregator for decoupled, thread-safe component messaging.

Components publish plain message objects; subscribers register per message
type and never hold references to publishers (or vice versa).

Example::

    @dataclass(slots=True)
    class OrderPlaced:
        order_id: str

    aggregator = EventAggregator(scheduler=QtScheduler())

    class OrderSummaryPresenter:
        def attach(self) -> None:
            self._token = aggregator.subscribe(OrderPlaced, self._on_order_placed)

        def cleanup(self) -> None:
            self._token.dispose()

    # From any thread; the handler runs on the Qt GUI thread.
    aggregator.publish(OrderPlaced(order_id="A-17"))

Note:
    Bound-method handlers are held weakly: once their owner is collected the
    subscription is skipped and purged on the next publish of that type.
    Plain functions and lambdas are held strongly, as they usually have module
    lifetime or are owned by a token that the caller disposes. A ``filter``
    is always held strongly, so it should not capture the subscriber.
"""

from __future__ import annotations

import functools
import logging
import threading
from typing import Any, Callable, Iterable, TypeVar
from weakref import WeakMethod

from .scheduling import ImmediateScheduler, Scheduler

__all__ = [
    "ErrorHandler",
    "EventAggregator",
    "Handler",
    "MessageFilter",
    "SubscriptionToken",
]

LOGGER = logging.getLogger(__name__)

M = TypeVar("M")

Handler = Callable[[M], None]
MessageFilter = Callable[[M], bool]
ErrorHandler = Callable[[BaseException, Any, Handler], None]


class EventAggregator:
    """Publish/subscribe bus keyed by message type.

    Args:
        scheduler: Default execution context for subscribers that do not pass
            their own. Defaults to :class:`ImmediateScheduler`.
        error_handler: Called with ``(exc, message, handler)`` whenever a
            subscriber raises, in addition to logging.
        quiet_types: High-frequency message types that skip per-publish logging.
        log_publishes: Emit a debug record for every publish.

    Thread safety:
        ``subscribe``, ``publish`` and token disposal may be called from any
        thread. Per-type subscriber lists are immutable tuples replaced under a
        lock, so a publish always iterates a consistent snapshot.
    """

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        *,
        error_handler: ErrorHandler | None = None,
        quiet_types: Iterable[type] = (),
        log_publishes: bool = True,
    ) -> None:
        self._scheduler: Scheduler = scheduler or ImmediateScheduler()
        self._error_handler = error_handler
        self._quiet_types: set[type] = set(quiet_types)
        self._log_publishes = log_publishes
        self._lock = threading.RLock()
        self._subscriptions: dict[type, tuple[_Subscription, ...]] = {}

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    def mark_quiet(self, message_type: type) -> None:
        """Stop logging individual publishes of ``message_type``."""

        self._quiet_types.add(message_type)

    # ------------------------------------------------------------------
    # Subscription management
    # ------------------------------------------------------------------
    def subscribe(
        self,
        message_type: type[M],
        handler: Handler[M],
        *,
        filter: MessageFilter[M] | None = None,
        scheduler: Scheduler | None = None,
    ) -> SubscriptionToken:
        """Register ``handler`` for messages whose exact type is ``message_type``.

        Args:
            message_type: The message class to listen for.
            handler: Callable receiving the message.
            filter: Optional predicate evaluated on the publisher's thread; the
                handler only runs when it returns true.
            scheduler: Context the handler must run on; defaults to the
                aggregator's scheduler.

        Returns:
            A token whose :meth:`SubscriptionToken.dispose` removes the
            subscription.
        """

        if not isinstance(message_type, type):
            raise TypeError(f"message_type must be a class, got {message_type!r}")
        if not callable(handler):
            raise TypeError("handler must be callable")
        if filter is not None and not callable(filter):
            raise TypeError("filter must be callable or None")

        subscription = _Subscription(
            message_type=message_type,
            handler_ref=_HandlerRef.create(handler),
            handler_name=_handler_name(handler),
            filter=filter,
            scheduler=scheduler or self._scheduler,
        )
        with self._lock:
            current = self._subscriptions.get(message_type, ())
            self._subscriptions[message_type] = current + (subscription,)

        LOGGER.debug(
            "Subscribed handler %s to message type %s",
            subscription.handler_name,
            message_type.__name__,
        )
        return SubscriptionToken(self, subscription)

    def unsubscribe(self, message_type: type[M], handler: Handler[M]) -> bool:
        """Remove the first subscription of ``handler`` for ``message_type``.

        Safe to call for handlers that were never subscribed.
        """

        with self._lock:
            for subscription in self._subscriptions.get(message_type, ()):
                if subscription.handler_ref.matches(handler):
                    self._remove_locked(subscription)
                    LOGGER.debug(
                        "Unsubscribed handler %s from message type %s",
                        subscription.handler_name,
                        message_type.__name__,
                    )
                    return True
        return False

    def clear(self) -> None:
        """Remove every subscription (shutdown and tests)."""

        with self._lock:
            for subscriptions in self._subscriptions.values():
                for subscription in subscriptions:
                    subscription.active = False
            self._subscriptions.clear()
        LOGGER.debug("Cleared all subscriptions")

    def handler_count(self, message_type: type | None = None) -> int:
        """Number of tracked subscriptions, for one type or overall."""

        with self._lock:
            if message_type is not None:
                return len(self._subscriptions.get(message_type, ()))
            return sum(len(subs) for subs in self._subscriptions.values())

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------
    def publish(self, message: Any) -> int:
        """Deliver ``message`` to every live subscriber of its exact type.

        Subscribers run in subscription order, inline when their scheduler is
        current and posted to it otherwise. A raising subscriber is logged and
        reported; the remaining subscribers still receive the message.

        Returns:
            The number of subscribers the message was delivered or posted to.
        """

        if message is None:
            raise ValueError("message must not be None")

        message_type = type(message)
        subscriptions = self._live_subscriptions(message_type)
        is_quiet = message_type in self._quiet_types or not self._log_publishes

        if not subscriptions:
            if not is_quiet:
                LOGGER.debug("No subscribers for message type %s", message_type.__name__)
            return 0

        if not is_quiet:
            LOGGER.debug(
                "Publishing %s to %d subscriber(s)",
                message_type.__name__,
                len(subscriptions),
            )

        delivered = 0
        for subscription in subscriptions:
            if self._deliver(subscription, message):
                delivered += 1
        return delivered

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _live_subscriptions(self, message_type: type) -> tuple[_Subscription, ...]:
        with self._lock:
            current = self._subscriptions.get(message_type)
            if not current:
                return ()
            live = tuple(sub for sub in current if sub.active and sub.handler_ref.alive())
            if len(live) != len(current):
                LOGGER.debug(
                    "Purged %d dead subscription(s) for %s",
                    len(current) - len(live),
                    message_type.__name__,
                )
                if live:
                    self._subscriptions[message_type] = live
                else:
                    del self._subscriptions[message_type]
            return live

    def _deliver(self, subscription: _Subscription, message: Any) -> bool:
        if not subscription.accepts(message):
            return False
        scheduler = subscription.scheduler
        if scheduler.is_current():
            self._invoke(subscription, message)
            return True
        try:
            scheduler.post(functools.partial(self._invoke, subscription, message))
        except Exception as exc:
            LOGGER.exception(
                "Scheduler %r rejected delivery of %s to handler %s",
                scheduler,
                type(message).__name__,
                subscription.handler_name,
            )
            handler = subscription.handler_ref.resolve()
            if handler is not None:
                self._report(exc, message, handler)
            return False
        return True

    def _invoke(self, subscription: _Subscription, message: Any) -> None:
        if not subscription.active:
            return
        handler = subscription.handler_ref.resolve()
        if handler is None:
            # Collected while the delivery was queued.
            return
        try:
            handler(message)
        except Exception as exc:
            LOGGER.exception(
                "Handler %s raised exception for message %s",
                subscription.handler_name,
                type(message).__name__,
            )
            self._report(exc, message, handler)

    def _report(self, exc: BaseException, message: Any, handler: Handler) -> None:
        if self._error_handler is None:
            return
        try:
            self._error_handler(exc, message, handler)
        except Exception:
            LOGGER.exception("Error handler failed while reporting %r", exc)

    def _remove(self, subscription: _Subscription) -> None:
        with self._lock:
            self._remove_locked(subscription)

    def _remove_locked(self, subscription: _Subscription) -> None:
        subscription.active = False
        current = self._subscriptions.get(subscription.message_type)
        if current is None:
            return
        remaining = tuple(sub for sub in current if sub is not subscription)
        if remaining:
            self._subscriptions[subscription.message_type] = remaining
        else:
            del self._subscriptions[subscription.message_type]


class SubscriptionToken:
    """Handle returned by :meth:`EventAggregator.subscribe`.

    Disposing is idempotent and thread-safe; an invocation already running is
    not interrupted, but none start after :meth:`dispose` returns. Tokens are
    also context managers.
    """

    __slots__ = ("_aggregator", "_subscription")

    def __init__(self, aggregator: EventAggregator, subscription: _Subscription) -> None:
        self._aggregator = aggregator
        self._subscription = subscription

    @property
    def message_type(self) -> type:
        return self._subscription.message_type

    @property
    def scheduler(self) -> Scheduler:
        return self._subscription.scheduler

    @property
    def active(self) -> bool:
        subscription = self._subscription
        return subscription.active and subscription.handler_ref.alive()

    def dispose(self) -> None:
        if self._subscription.active:
            self._aggregator._remove(self._subscription)

    def __enter__(self) -> SubscriptionToken:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.dispose()

    def __repr__(self) -> str:
        state = "active" if self.active else "disposed"
        return (
            f"SubscriptionToken({self._subscription.message_type.__name__}, "
            f"{self._subscription.handler_name}, {state})"
        )


class _Subscription:
    """One (message type, handler, scheduler) registration."""

    __slots__ = ("message_type", "handler_ref", "handler_name", "filter", "scheduler", "active")

    def __init__(
        self,
        *,
        message_type: type,
        handler_ref: _HandlerRef,
        handler_name: str,
        filter: MessageFilter | None,
        scheduler: Scheduler,
    ) -> None:
        self.message_type = message_type
        self.handler_ref = handler_ref
        self.handler_name = handler_name
        self.filter = filter
        self.scheduler = scheduler
        self.active = True

    def accepts(self, message: Any) -> bool:
        if self.filter is None:
            return True
        try:
            return bool(self.filter(message))
        except Exception:
            LOGGER.exception(
                "Filter for handler %s raised; message %s skipped",
                self.handler_name,
                type(message).__name__,
            )
            return False


class _HandlerRef:
    """Wrapper for handler references supporting both weak and strong refs.

    Bound methods are held through :class:`WeakMethod` so that a subscriber's
    natural disposal ends its subscriptions. Other callables are held strongly.
    """

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: WeakMethod | Handler, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                # Some callables can't be weakly referenced
                pass
        return cls(handler, is_weak=False)

    @property
    def is_weak(self) -> bool:
        return self._is_weak

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref  # type: ignore[return-value]
        return self._ref()  # type: ignore[operator]

    def alive(self) -> bool:
        return self.resolve() is not None

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        if resolved is None:
            return False
        return resolved == handler


def _handler_name(handler: Handler) -> str:
    """Get a human-readable name for a handler for logging purposes."""
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        cls_name = type(handler.__self__).__name__
        return f"{cls_name}.{handler.__func__.__name__}"
    if hasattr(handler, "__name__"):
        return handler.__name__
    return repr(handler)
