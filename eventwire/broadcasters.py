"""Delivery modes.

A broadcaster performs the actual call of a listener method once a
registration has decided the listener should receive an event. Registrations
pick one by name (``"default"``, ``"async"`` or any registered name) or are
given a broadcaster object directly.
"""

from __future__ import annotations

import functools
import logging
import threading
from functools import lru_cache
from typing import Any, Protocol

from .config import get_settings
from .errors import ErrorCategory, UnknownBroadcasterError
from .metrics import async_submissions_total, deliveries_total
from .submitters import Submitter, default_submitter

logger = logging.getLogger(__name__)


class Broadcaster(Protocol):
    def broadcast(
        self, listener: Any, publisher: Any, method: str, /, *args: Any, **kwargs: Any
    ) -> None: ...


def _describe(obj: Any) -> str:
    return f"{type(obj).__qualname__}#{id(obj):x}"


class SendBroadcaster:
    """Call the listener method in the broadcasting thread."""

    def broadcast(
        self, listener: Any, publisher: Any, method: str, /, *args: Any, **kwargs: Any
    ) -> None:
        getattr(listener, method)(*args, **kwargs)
        deliveries_total.inc()


class AsyncBroadcaster:
    """Hand the bound call to a submitter and return immediately.

    Exceptions raised by the listener are not seen by the broadcasting
    thread. When the submitter returns a future, failures are logged.
    """

    def __init__(self, submitter: Submitter | None = None) -> None:
        self._submitter = submitter

    @property
    def submitter(self) -> Submitter:
        return self._submitter or default_submitter()

    def broadcast(
        self, listener: Any, publisher: Any, method: str, /, *args: Any, **kwargs: Any
    ) -> None:
        thunk = functools.partial(getattr(listener, method), *args, **kwargs)
        future = self.submitter.submit(thunk)
        async_submissions_total.inc()
        if hasattr(future, "add_done_callback"):
            future.add_done_callback(functools.partial(_log_failure, listener, method))


def _log_failure(listener: Any, method: str, future: Any) -> None:
    if future.cancelled() or future.exception() is None:
        deliveries_total.inc()
        return
    logger.error(
        "async_delivery_failed",
        exc_info=future.exception(),
        extra={
            "listener": _describe(listener),
            "method": method,
            "error_category": ErrorCategory.DELIVERY.value,
        },
    )


class LoggerBroadcaster:
    """Log every delivery, then delegate to another broadcaster."""

    def __init__(self, inner: Broadcaster, logger: logging.Logger | None = None) -> None:
        self.inner = inner
        self.logger = logger or logging.getLogger(__name__)

    def broadcast(
        self, listener: Any, publisher: Any, method: str, /, *args: Any, **kwargs: Any
    ) -> None:
        self.logger.info(
            "%s published %s to %s with %s",
            _describe(publisher),
            method,
            _describe(listener),
            _format_arguments(args, kwargs),
            extra={
                "publisher": _describe(publisher),
                "listener": _describe(listener),
                "method": method,
                "broadcaster": type(self.inner).__name__,
            },
        )
        self.inner.broadcast(listener, publisher, method, *args, **kwargs)


def _format_arguments(args: tuple, kwargs: dict) -> str:
    parts = [repr(a) for a in args] + [f"{k}={v!r}" for k, v in kwargs.items()]
    return ", ".join(parts) if parts else "no arguments"


class BroadcasterRegistry:
    """Named broadcasters available to registrations."""

    def __init__(self, default: Broadcaster | None = None) -> None:
        self._broadcasters: dict[str, Broadcaster] = {
            "default": default or SendBroadcaster(),
            "async": AsyncBroadcaster(),
        }
        self._lock = threading.Lock()

    def register(self, name: str, broadcaster: Broadcaster) -> None:
        with self._lock:
            self._broadcasters[name] = broadcaster

    def fetch(self, name: str) -> Broadcaster:
        with self._lock:
            try:
                return self._broadcasters[name]
            except KeyError:
                raise UnknownBroadcasterError(name) from None

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._broadcasters)

    def resolve(self, value: Any = None) -> Broadcaster:
        """Map a subscription's ``async_``/``broadcaster`` option to a broadcaster.

        ``None``/``False`` selects the configured default, ``True`` selects
        ``"async"``, strings are looked up by name and objects with a
        ``broadcast`` method are used as is.
        """

        if hasattr(value, "broadcast"):
            return value
        if value is True:
            value = "async"
        elif value is None or value is False:
            value = get_settings().default_broadcaster
        if not isinstance(value, str):
            raise UnknownBroadcasterError(repr(value))
        return self.fetch(value)


@lru_cache(maxsize=1)
def get_broadcasters() -> BroadcasterRegistry:
    default: Broadcaster = SendBroadcaster()
    if get_settings().log_deliveries:
        default = LoggerBroadcaster(default)
    return BroadcasterRegistry(default=default)


def configure(**broadcasters: Broadcaster) -> BroadcasterRegistry:
    """Register additional named broadcasters, e.g. ``configure(queue=...)``."""

    registry = get_broadcasters()
    for name, broadcaster in broadcasters.items():
        registry.register(name, broadcaster)
    return registry
