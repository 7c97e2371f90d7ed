"""The publishing side of the dispatcher.

Mix :class:`Publisher` into any class to let its instances broadcast
events::

    class PlaceOrder(Publisher):
        def call(self, order):
            ...
            self.broadcast("order_placed", order_id=order.id)
            self.broadcast(OrderPlaced(order_id=order.id))

Registrations are visited in subscription order in the broadcasting thread.
An exception raised while delivering stops the broadcast and propagates to
the caller, so listeners earlier in the list may already have been notified:
there is no atomicity across listeners.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any

from . import global_listeners
from .errors import ErrorCategory, UnhandledEventError, UnsupportedFilterError
from .matching import is_symbolic
from .metrics import broadcast_ms, broadcasts_total
from .registration import CallableRegistration, ObjectRegistration, Registration

logger = logging.getLogger(__name__)


def _error_category(exc: Exception) -> ErrorCategory:
    if isinstance(exc, UnsupportedFilterError):
        return ErrorCategory.FILTER
    return ErrorCategory.ROUTING


def clean_event(event: str) -> str:
    """Normalize a symbolic event name so ``user-created`` maps to ``user_created``.

    Members of ``str`` enums are routed by their value.
    """
    if isinstance(event, Enum):
        event = event.value
    return str(event).replace("-", "_")


class Publisher:
    """Mixin adding ``subscribe``, ``on`` and ``broadcast``."""

    @property
    def _eventwire_lock(self) -> threading.RLock:
        # dict.setdefault is atomic, so concurrent first use shares one lock
        return self.__dict__.setdefault("_eventwire_lock_", threading.RLock())

    @property
    def _local_registrations(self) -> list[Registration]:
        return self.__dict__.setdefault("_eventwire_registrations_", [])

    @property
    def registrations(self) -> tuple[Registration, ...]:
        with self._eventwire_lock:
            return tuple(self._local_registrations)

    def _add_registration(self, registration: Registration) -> None:
        with self._eventwire_lock:
            self._local_registrations.append(registration)
        logger.debug(
            "subscribe",
            extra={"publisher": type(self).__qualname__, "listener": repr(registration.listener)},
        )

    def subscribe(
        self,
        listener: Any,
        *,
        on: Any = None,
        with_: str | None = None,
        prefix: str | bool | None = None,
        scope: Any = None,
        async_: Any = None,
        broadcaster: Any = None,
        strict: bool | None = None,
    ) -> Publisher:
        """Subscribe ``listener`` to events broadcast by this publisher.

        Args:
            listener: Object whose methods receive symbolic events; listeners
                implementing the listener contract also receive structured
                events through ``trigger``.
            on: Filter: a name, names, a compiled regex, a type or types.
            with_: Method called for every symbolic event instead of the
                method named after the event.
            prefix: Prefix for the method name (``True`` uses ``on``).
            scope: Publisher type(s), or their names, allowed to reach the
                listener; subclasses are included.
            async_: ``True`` for asynchronous delivery, or a broadcaster.
            broadcaster: Broadcaster object or registered broadcaster name.
            strict: Override ``Settings.strict_filters`` for this subscription.

        Returns:
            The publisher, so subscriptions can be chained.
        """

        registration = ObjectRegistration(
            listener,
            on=on,
            with_=with_,
            prefix=prefix,
            scope=scope,
            async_=async_,
            broadcaster=broadcaster,
            strict=strict,
        )
        self._add_registration(registration)
        return self

    def on(
        self,
        events: Any,
        handler: Callable[..., Any] | None = None,
        *,
        async_: Any = None,
        broadcaster: Any = None,
        strict: bool | None = None,
    ) -> Any:
        """Subscribe ``handler`` to the events matching ``events``.

        Called with a handler it returns the publisher, so calls chain::

            publisher.on("success", notify).on("failure", alert)

        Without a handler it works as a decorator and returns the function.
        """

        def register(func: Callable[..., Any]) -> None:
            self._add_registration(
                CallableRegistration(
                    func, on=events, async_=async_, broadcaster=broadcaster, strict=strict
                )
            )

        if handler is not None:
            register(handler)
            return self

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            register(func)
            return func

        return decorator

    def unsubscribe(self, listener: Any) -> Publisher:
        with self._eventwire_lock:
            self._local_registrations[:] = [
                r for r in self._local_registrations if not r.is_for(listener)
            ]
        return self

    def broadcast(self, event: Any, /, *args: Any, **kwargs: Any) -> Publisher:
        """Deliver ``event`` to every registration, local ones first."""

        if is_symbolic(event):
            event = clean_event(event)
        registrations = self.registrations + global_listeners.registrations()
        broadcasts_total.inc()
        with broadcast_ms.time():
            for registration in registrations:
                try:
                    registration.deliver(event, self, *args, **kwargs)
                except (UnhandledEventError, UnsupportedFilterError) as exc:
                    logger.warning(
                        "broadcast_failed: %s",
                        exc,
                        extra={
                            "event_name": event if is_symbolic(event) else type(event).__name__,
                            "publisher": type(self).__qualname__,
                            "error_category": _error_category(exc).value,
                        },
                    )
                    raise
        return self

    publish = broadcast
