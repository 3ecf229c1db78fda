"""In-process event subscription registry."""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from searchctx.models.enums import SearchEvent

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class Subscription:
    """Handle returned by :meth:`EventBus.subscribe`."""

    def __init__(self, bus: "EventBus", event: SearchEvent, listener: Listener) -> None:
        self._bus = bus
        self.event = event
        self.listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._bus._remove(self)
            self.active = False


class EventBus:
    """Synchronous, best-effort fan-out to the listeners registered at emit time."""

    def __init__(self) -> None:
        self._subscriptions: dict[SearchEvent, list[Subscription]] = {}

    def subscribe(self, event: SearchEvent | str, listener: Listener) -> Subscription:
        key = SearchEvent(event)
        subscription = Subscription(self, key, listener)
        self._subscriptions.setdefault(key, []).append(subscription)
        return subscription

    def emit(self, event: SearchEvent | str, payload: Any = None) -> int:
        """Deliver ``payload`` to every listener; returns how many were called."""
        key = SearchEvent(event)
        delivered = 0
        for subscription in list(self._subscriptions.get(key, ())):
            try:
                subscription.listener(payload)
            except Exception:
                logger.exception("Listener for %s failed", key.value)
                continue
            delivered += 1
        return delivered

    def listener_count(self, event: SearchEvent | str | None = None) -> int:
        if event is None:
            return sum(len(subs) for subs in self._subscriptions.values())
        return len(self._subscriptions.get(SearchEvent(event), ()))

    def clear(self) -> None:
        for subscriptions in self._subscriptions.values():
            for subscription in subscriptions:
                subscription.active = False
        self._subscriptions.clear()

    def _remove(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.event)
        if subscriptions and subscription in subscriptions:
            subscriptions.remove(subscription)
