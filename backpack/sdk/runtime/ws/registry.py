"""Subscription registry: which handler receives which stream."""

from __future__ import annotations

import logging
import threading
from collections.abc import Awaitable, Callable
from typing import Any

from ...core.enums import Channel
from ...core.streams import SubscriptionKey
from ...models.events import StreamEvent

logger = logging.getLogger(__name__)

Handler = Callable[[StreamEvent], Awaitable[Any]] | Callable[[StreamEvent], Any]


class SubscriptionRegistry:
    """Maps subscription keys to handlers.

    At most one handler is bound per key; registering again replaces it.
    Lookups try the exact (channel, symbol) key first and then the
    channel-only key, so a handler registered without a symbol receives every
    symbol of its channel that has no more specific handler.

    All operations take a short lock around the dict access only. Handlers
    are returned to the caller and invoked outside the lock.
    """

    def __init__(self) -> None:
        self._handlers: dict[SubscriptionKey, Handler] = {}
        self._lock = threading.Lock()

    def register(self, key: SubscriptionKey, handler: Handler) -> Handler | None:
        """Bind ``handler`` to ``key``. Returns the handler it replaced, if any."""
        with self._lock:
            previous = self._handlers.get(key)
            self._handlers[key] = handler
        if previous is not None:
            logger.debug(f"Replaced handler for {key}")
        return previous

    def lookup(self, channel: Channel, symbol: str | None = None) -> Handler | None:
        """Exact key first, then channel-only key, else None."""
        key = SubscriptionKey.of(channel, symbol)
        with self._lock:
            handler = self._handlers.get(key)
            if handler is None and not key.is_channel_wide:
                handler = self._handlers.get(key.channel_wide())
        return handler

    def get(self, key: SubscriptionKey) -> Handler | None:
        """Exact-key lookup without fallback."""
        with self._lock:
            return self._handlers.get(key)

    def remove(self, key: SubscriptionKey) -> Handler | None:
        """Remove the exact key only. Returns the removed handler, if any."""
        with self._lock:
            return self._handlers.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            count = len(self._handlers)
            self._handlers.clear()
        if count:
            logger.debug(f"Cleared {count} subscriptions")

    def keys(self) -> list[SubscriptionKey]:
        """Snapshot of registered keys in registration order."""
        with self._lock:
            return list(self._handlers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._handlers
