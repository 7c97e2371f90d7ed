"""Bindings between one listener and one publisher.

A registration owns the filter, scope and delivery mode chosen at
subscription time and decides, for every broadcast event, whether and how
its listener is called.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from .broadcasters import Broadcaster, get_broadcasters
from .config import get_settings
from .errors import UnhandledEventError, UnsupportedFilterError
from .listener import supports_structured_events
from .matching import FilterSpec, is_symbolic
from .metrics import unhandled_events_total
from .naming import type_identifier

logger = logging.getLogger(__name__)


def _qualified_identifier(cls: type) -> str:
    return f"{cls.__module__}.{type_identifier(cls)}"


def _scope_names(scope: Any) -> frozenset[str]:
    """Types are kept module-qualified; names may use ``.`` or ``::``."""
    if scope is None:
        return frozenset()
    if isinstance(scope, (str, type)):
        scope = [scope]
    return frozenset(
        item.replace("::", ".") if isinstance(item, str) else _qualified_identifier(item)
        for item in scope
    )


def _prefix(prefix: str | bool | None) -> str:
    if prefix is None or prefix is False:
        return ""
    if prefix is True:
        prefix = get_settings().default_prefix
    return prefix if prefix.endswith("_") else f"{prefix}_"


class Registration:
    """Common filtering, scoping and delivery-mode handling."""

    def __init__(
        self,
        listener: Any,
        *,
        on: Any = None,
        scope: type | str | Iterable[type | str] | None = None,
        async_: Any = None,
        broadcaster: Any = None,
        strict: bool | None = None,
    ) -> None:
        self.listener = listener
        self.filter = FilterSpec.build(on)
        self.allowed_classes = _scope_names(scope)
        self.broadcaster: Broadcaster = get_broadcasters().resolve(
            broadcaster if broadcaster is not None else async_
        )
        self.strict = get_settings().strict_filters if strict is None else strict

    def should_broadcast(self, event: object) -> bool:
        return self.filter.matches(event, strict=self.strict)

    def publisher_in_scope(self, publisher: object) -> bool:
        if not self.allowed_classes:
            return True
        return any(
            type_identifier(ancestor) in self.allowed_classes
            or _qualified_identifier(ancestor) in self.allowed_classes
            for ancestor in type(publisher).__mro__
        )

    def is_for(self, listener: Any) -> bool:
        return self.listener is listener

    def deliver(
        self, event: object, publisher: object, /, *args: Any, **kwargs: Any
    ) -> None:
        raise NotImplementedError

    def _send(self, publisher: object, method: str, /, *args: Any, **kwargs: Any) -> None:
        logger.debug(
            "deliver",
            extra={
                "listener": type(self.listener).__qualname__,
                "method": method,
                "broadcaster": type(self.broadcaster).__name__,
            },
        )
        self.broadcaster.broadcast(self.listener, publisher, method, *args, **kwargs)

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} listener={self.listener!r} "
            f"filter={self.filter.kind.value}>"
        )


class ObjectRegistration(Registration):
    """Registration of a listener object created by ``subscribe``.

    Symbolic events are delivered to the listener method named after the
    event, or after ``with_``/``prefix``. Structured events only reach
    listeners implementing the listener contract, through ``trigger``.
    """

    def __init__(
        self,
        listener: Any,
        *,
        with_: str | None = None,
        prefix: str | bool | None = None,
        **options: Any,
    ) -> None:
        super().__init__(listener, **options)
        self.with_ = with_
        self.prefix = _prefix(prefix)
        self.structured = supports_structured_events(listener)
        if self.filter.accepts_types and not self.structured:
            raise UnsupportedFilterError(
                f"{type(listener).__qualname__} does not accept structured events, "
                "so a type filter would never match"
            )

    def map_event_to_method(self, event: str) -> str:
        if self.with_:
            return self.with_
        return self.prefix + event

    def deliver(
        self, event: object, publisher: object, /, *args: Any, **kwargs: Any
    ) -> None:
        # plain listeners opt out of structured events, whatever their filter
        if not self.structured and not is_symbolic(event):
            return
        if not self.should_broadcast(event):
            return
        if is_symbolic(event):
            method = self.map_event_to_method(event)
            if self.publisher_in_scope(publisher) and callable(
                getattr(self.listener, method, None)
            ):
                self._send(publisher, method, *args, **kwargs)
            return
        if not self.publisher_in_scope(publisher):
            return
        if not self.listener.can_handle(event):
            unhandled_events_total.inc()
            raise UnhandledEventError.for_event(event, self.listener)
        self._send(publisher, "trigger", event)


class CallableRegistration(Registration):
    """Registration of a bare callable created by ``Publisher.on``.

    Symbolic events call the handler with the broadcast arguments;
    structured events call it with the event itself.
    """

    def __init__(self, handler: Callable[..., Any], **options: Any) -> None:
        if not callable(handler):
            raise TypeError(f"handler must be callable, got {type(handler).__name__}")
        super().__init__(handler, **options)

    def deliver(
        self, event: object, publisher: object, /, *args: Any, **kwargs: Any
    ) -> None:
        if not self.should_broadcast(event) or not self.publisher_in_scope(publisher):
            return
        if is_symbolic(event):
            self._send(publisher, "__call__", *args, **kwargs)
        else:
            self._send(publisher, "__call__", event)
