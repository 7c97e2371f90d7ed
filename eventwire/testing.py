"""Helpers for asserting what a piece of code broadcast.

    with capture_events() as recorder:
        PlaceOrder().call(order)

    assert_broadcast(recorder, OrderPlaced, order_id=order.id)
    assert_broadcast(recorder, "order_placed")
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from .global_listeners import subscribed


@dataclass(frozen=True)
class SymbolicCall:
    name: str
    args: tuple = ()
    kwargs: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [repr(a) for a in self.args] + [f"{k}={v!r}" for k, v in self.kwargs.items()]
        return f"{self.name}({', '.join(parts)})"


class EventRecorder:
    """Listener that records every event it is offered.

    Structured events arrive through :meth:`trigger`; any public method name
    resolves to a recorder for symbolic events.
    """

    def __init__(self) -> None:
        self.captured_events: list[Any] = []

    def is_structured_listener(self) -> bool:
        return True

    def can_handle(self, event: object) -> bool:
        return True

    def trigger(self, event: object) -> None:
        self.captured_events.append(event)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)

        def record(*args: Any, **kwargs: Any) -> None:
            self.captured_events.append(SymbolicCall(name, args, kwargs))

        return record

    def received(self, expected: Any, **attributes: Any) -> bool:
        """Return whether a matching event was captured.

        ``expected`` may be an event type, an event instance (compared by
        equality unless attributes are given) or a symbolic event name.
        Attributes are compared against event fields, or against the keyword
        payload of symbolic events.
        """

        return any(self._matches(event, expected, attributes) for event in self.captured_events)

    @staticmethod
    def _matches(event: Any, expected: Any, attributes: dict[str, Any]) -> bool:
        if isinstance(expected, str):
            if not isinstance(event, SymbolicCall) or event.name != expected:
                return False
            return all(
                key in event.kwargs and event.kwargs[key] == value
                for key, value in attributes.items()
            )
        expected_class = expected if isinstance(expected, type) else type(expected)
        if not isinstance(event, expected_class):
            return False
        if not attributes:
            return isinstance(expected, type) or event == expected
        missing = object()
        return all(getattr(event, key, missing) == value for key, value in attributes.items())

    def describe(self) -> str:
        if not self.captured_events:
            return "no events broadcast"
        listed = ", ".join(
            str(e) if isinstance(e, SymbolicCall) else repr(e) for e in self.captured_events
        )
        return f"actual events broadcast: {listed}"


def _expectation(expected: Any, attributes: dict[str, Any]) -> str:
    if isinstance(expected, str):
        text = f"event {expected!r}"
    else:
        name = expected.__name__ if isinstance(expected, type) else type(expected).__name__
        text = f"event of type {name}"
    if attributes:
        text += f" with attributes {attributes!r}"
    return text


@contextmanager
def capture_events(**options: Any) -> Iterator[EventRecorder]:
    """Record everything broadcast by any publisher inside the block."""

    recorder = EventRecorder()
    with subscribed(recorder, **options):
        yield recorder


def assert_broadcast(recorder: EventRecorder, expected: Any, **attributes: Any) -> None:
    if not recorder.received(expected, **attributes):
        raise AssertionError(
            f"expected publisher to broadcast {_expectation(expected, attributes)} "
            f"({recorder.describe()})"
        )


def assert_not_broadcast(recorder: EventRecorder, expected: Any, **attributes: Any) -> None:
    if recorder.received(expected, **attributes):
        raise AssertionError(
            f"expected publisher not to broadcast {_expectation(expected, attributes)}"
        )
