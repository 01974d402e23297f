"""Event subscription management for the engine's push channel.

A SubscriptionManager belongs to one consumer. It keeps at most one live
handler per event class and tears every registration down when the
consumer is retired (``close()`` or leaving the ``async with`` block).
"""

import asyncio
from typing import Any, Callable, Dict, Optional

from player_client.boundary import EVENT_NAMES, EventSource, Unlisten
from player_client.logging import get_logger

logger = get_logger(__name__)

Handler = Callable[[Any], None]


class Subscription:
    """
    Cancellation token for one registered handler.

    cancel() may be called any number of times, before the registration has
    completed, or after the underlying channel is gone; it never raises.
    """

    def __init__(self, event_class: str, event_name: str, handler: Handler):
        self.event_class = event_class
        self.event_name = event_name
        self._handler = handler
        self._unlisten: Optional[Unlisten] = None
        self._cancelled = False
        self._task: Optional["asyncio.Task[None]"] = None

    @property
    def active(self) -> bool:
        """True once the handler is registered and until it is cancelled."""
        return self._unlisten is not None and not self._cancelled

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def deliver(self, payload: Any) -> None:
        # The channel may still deliver between cancel() and unlisten()
        if self._cancelled:
            return
        try:
            self._handler(payload)
        except Exception as e:
            logger.error(
                "Handler for %s raised: %s", self.event_name, e, exc_info=True
            )

    def _attach(self, unlisten: Unlisten) -> None:
        if self._cancelled:
            # Registration finished after the consumer went away
            self._release(unlisten)
        else:
            self._unlisten = unlisten

    def _release(self, unlisten: Unlisten) -> None:
        try:
            unlisten()
        except Exception as e:
            logger.debug("Unlisten for %s after channel close: %s", self.event_name, e)

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        unlisten, self._unlisten = self._unlisten, None
        if unlisten is not None:
            self._release(unlisten)

    async def wait_registered(self) -> None:
        """Wait until the registration side effect has run (or failed)."""
        if self._task is not None:
            await asyncio.shield(self._task)

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else ("active" if self.active else "pending")
        return f"Subscription({self.event_class}, {state})"


class SubscriptionManager:
    """Registers handlers for the status, progress and error event classes."""

    def __init__(self, source: EventSource):
        self._source = source
        self._subscriptions: Dict[str, Subscription] = {}
        self._closed = False

    def subscribe(self, event_class: str, handler: Handler) -> Subscription:
        """
        Register handler for event_class without blocking the caller.

        The registration itself runs as a task on the running loop. A previous
        subscription for the same class is cancelled first.

        Args:
            event_class: One of "status", "progress", "error"
            handler: Called with the raw payload of each event

        Returns:
            The Subscription token
        """
        if event_class not in EVENT_NAMES:
            raise ValueError(f"Unknown event class: {event_class}")
        if self._closed:
            raise RuntimeError("SubscriptionManager is closed")

        previous = self._subscriptions.pop(event_class, None)
        if previous is not None:
            logger.debug("Replacing %s subscription", event_class)
            previous.cancel()

        subscription = Subscription(event_class, EVENT_NAMES[event_class], handler)
        self._subscriptions[event_class] = subscription
        loop = asyncio.get_running_loop()
        subscription._task = loop.create_task(self._register(subscription))
        return subscription

    async def _register(self, subscription: Subscription) -> None:
        try:
            unlisten = await self._source.listen(
                subscription.event_name, subscription.deliver
            )
        except Exception as e:
            logger.error(
                "Failed to listen for %s: %s", subscription.event_name, e, exc_info=True
            )
            return
        subscription._attach(unlisten)
        if subscription.active:
            logger.debug("Listening for %s", subscription.event_name)

    def get(self, event_class: str) -> Optional[Subscription]:
        return self._subscriptions.get(event_class)

    def unsubscribe(self, event_class: str) -> None:
        subscription = self._subscriptions.pop(event_class, None)
        if subscription is not None:
            subscription.cancel()

    def close(self) -> None:
        """Cancel every subscription. Safe to call more than once."""
        self._closed = True
        for subscription in self._subscriptions.values():
            subscription.cancel()
        self._subscriptions.clear()

    async def aclose(self) -> None:
        """close() and wait for pending registrations to be torn down."""
        pending = [
            s._task for s in self._subscriptions.values()
            if s._task is not None and not s._task.done()
        ]
        self.close()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def __aenter__(self) -> "SubscriptionManager":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
