"""Error taxonomy for routing and delivery failures."""

from __future__ import annotations

from enum import Enum

from .naming import type_identifier


class ErrorCategory(str, Enum):
    """Classification for error logging."""

    ROUTING = "routing"
    FILTER = "filter"
    DELIVERY = "delivery"
    CONFIGURATION = "configuration"


class EventwireError(Exception):
    """Base error for dispatch operations."""


class UnhandledEventError(EventwireError):
    """A structured listener has no handler for the delivered event type."""

    def __init__(self, event_type: str, listener_type: str):
        self.event_type = event_type
        self.listener_type = listener_type
        super().__init__(f"Event {event_type} not handled in {listener_type}")

    @classmethod
    def for_event(cls, event: object, listener: object) -> UnhandledEventError:
        return cls(type_identifier(type(event)), type_identifier(type(listener)))


class UnsupportedFilterError(EventwireError):
    """A filter cannot be built, or cannot be applied to an event variant."""


class UnknownBroadcasterError(EventwireError):
    """No broadcaster is registered under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No broadcaster registered as {name!r}")
