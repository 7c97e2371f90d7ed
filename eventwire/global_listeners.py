"""Listeners that hear every publisher.

Global listeners are shared by the whole process. Temporary listeners are
scoped to a ``with subscribed(...)`` block and to the current thread only.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from .metrics import global_registrations
from .registration import ObjectRegistration, Registration

logger = logging.getLogger(__name__)


class GlobalListeners:
    def __init__(self) -> None:
        self._registrations: list[Registration] = []
        self._lock = threading.RLock()

    def subscribe(self, *listeners: Any, **options: Any) -> None:
        with self._lock:
            for listener in listeners:
                self._registrations.append(ObjectRegistration(listener, **options))
            global_registrations.set(len(self._registrations))
        logger.debug("global_subscribe", extra={"listener": [repr(li) for li in listeners]})

    def unsubscribe(self, *listeners: Any) -> None:
        with self._lock:
            self._registrations = [
                r for r in self._registrations if not any(r.is_for(li) for li in listeners)
            ]
            global_registrations.set(len(self._registrations))

    def clear(self) -> None:
        """Remove all global registrations (useful in tests)."""
        with self._lock:
            self._registrations.clear()
            global_registrations.set(0)

    def registrations(self) -> tuple[Registration, ...]:
        with self._lock:
            return tuple(self._registrations)


class TemporaryListeners(threading.local):
    def __init__(self) -> None:
        self._registrations: list[Registration] = []

    @contextmanager
    def subscribe(self, *listeners: Any, **options: Any) -> Iterator[None]:
        added = [ObjectRegistration(listener, **options) for listener in listeners]
        self._registrations.extend(added)
        try:
            yield
        finally:
            self._registrations = [r for r in self._registrations if r not in added]

    def registrations(self) -> tuple[Registration, ...]:
        return tuple(self._registrations)


_global = GlobalListeners()
_temporary = TemporaryListeners()


def subscribe(*listeners: Any, **options: Any) -> None:
    """Subscribe ``listeners`` to every publisher in the process.

    Accepts the same options as :meth:`Publisher.subscribe`.
    """
    _global.subscribe(*listeners, **options)


def unsubscribe(*listeners: Any) -> None:
    _global.unsubscribe(*listeners)


def clear() -> None:
    _global.clear()


def subscribed(*listeners: Any, **options: Any):  # noqa: ANN201 - context manager
    """Subscribe ``listeners`` globally for the duration of a ``with`` block.

    Only broadcasts made from the current thread reach them.
    """
    return _temporary.subscribe(*listeners, **options)


def registrations() -> tuple[Registration, ...]:
    return _global.registrations() + _temporary.registrations()
