"""In-process event bus that triggers subscribe to.

The host application owns event delivery. This bus is the minimal synchronous
implementation the engine ships with: every subscriber runs to completion, in
subscription order, before :meth:`EventBus.dispatch` returns.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

EventCallback = Callable[[Mapping[str, Any], str | None], object]


@dataclass(frozen=True, slots=True)
class Subscription:
    id: int
    event: str
    callback: EventCallback


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Outcome of delivering one event to every subscriber."""

    event: str
    delivered: int
    errors: list[Exception] = field(default_factory=list)
    # Return values of the subscribers that completed, in delivery order.
    results: list[object] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise self.errors[0]


class EventBus:
    """Synchronous publish/subscribe keyed on event name.

    Subscribers are independent: an exception raised by one is logged and
    collected, and the remaining subscribers still receive the event.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._subscriptions: dict[str, list[Subscription]] = {}
        self._ids = itertools.count(1)

    def subscribe(self, event: str, callback: EventCallback) -> Subscription:
        if not event.strip():
            raise ValueError("event name is required")
        with self._lock:
            subscription = Subscription(id=next(self._ids), event=event, callback=callback)
            self._subscriptions.setdefault(event, []).append(subscription)
        logger.debug("Subscribed to event", extra={"event": event, "subscription": subscription.id})
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        with self._lock:
            subs = self._subscriptions.get(subscription.event, [])
            for idx, existing in enumerate(subs):
                if existing.id == subscription.id:
                    del subs[idx]
                    return True
        return False

    def subscribers(self, event: str) -> list[Subscription]:
        with self._lock:
            return list(self._subscriptions.get(event, []))

    def dispatch(
        self,
        event: str,
        payload: Mapping[str, Any],
        correlation_id: str | None = None,
    ) -> DispatchResult:
        subs = self.subscribers(event)
        errors: list[Exception] = []
        results: list[object] = []

        for subscription in subs:
            try:
                results.append(subscription.callback(payload, correlation_id))
            except Exception as e:
                logger.exception(
                    "Event subscriber failed",
                    extra={
                        "event": event,
                        "subscription": subscription.id,
                        "correlation_id": correlation_id,
                    },
                )
                errors.append(e)

        logger.info(
            "Event dispatched",
            extra={
                "event": event,
                "subscribers": len(subs),
                "delivered": len(results),
                "failed": len(errors),
                "correlation_id": correlation_id,
            },
        )
        return DispatchResult(event=event, delivered=len(results), errors=errors, results=results)
