"""Ordered handler registry keyed by opaque subscription handles."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class HandlerCategory(str, Enum):
    MESSAGE = "message"
    STATUS = "status"
    RAW = "raw"


@dataclass(frozen=True)
class Subscription:
    """Handle returned by ``register``; the only way to unregister a handler."""

    category: HandlerCategory
    token: int


class HandlerRegistry:
    """Per-category handlers, invoked in registration order.

    Registering the same callable twice yields two subscriptions and two
    invocations per event.
    """

    def __init__(self) -> None:
        self._tokens = itertools.count(1)
        self._handlers: dict[HandlerCategory, dict[int, Callable[[Any], Any]]] = {
            category: {} for category in HandlerCategory
        }

    def register(
        self, category: HandlerCategory, handler: Callable[[Any], Any],
    ) -> Subscription:
        if not callable(handler):
            raise TypeError("handler must be callable")
        token = next(self._tokens)
        self._handlers[category][token] = handler
        return Subscription(category=category, token=token)

    def unregister(self, subscription: Subscription) -> bool:
        """Remove one registration. Returns False if it was already gone."""
        bucket = self._handlers[subscription.category]
        return bucket.pop(subscription.token, None) is not None

    def handlers(self, category: HandlerCategory) -> list[Callable[[Any], Any]]:
        """Snapshot in registration order; safe to mutate the registry while iterating."""
        return list(self._handlers[category].values())

    def count(self, category: HandlerCategory) -> int:
        return len(self._handlers[category])

    def clear(self, category: HandlerCategory | None = None) -> None:
        categories = [category] if category is not None else list(HandlerCategory)
        for item in categories:
            self._handlers[item].clear()
