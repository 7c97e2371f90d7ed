"""Listeners for structured events.

Subclass :class:`Listener` and declare handlers with :func:`on`::

    class AuditTrail(Listener):
        def __init__(self):
            self.messages = []

        @on(OrderPlaced)
        def record(self, event):
            self.messages.append(event.order_id)

Each handler is stored in a per-class table under the name derived from its
event type (``on_order_placed`` here) and is also reachable as a method of
that name. Methods defined directly as ``on_<snake_case_type>`` work too.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar, Protocol, runtime_checkable

from .errors import UnhandledEventError
from .metrics import unhandled_events_total
from .naming import HANDLER_PREFIX, derive_method_name, method_name_for, type_identifier

Handler = Callable[[Any, Any], Any]

_HANDLES_ATTR = "__eventwire_handles__"


@runtime_checkable
class ListenerContract(Protocol):
    """Capabilities a listener needs to receive structured events."""

    def is_structured_listener(self) -> bool: ...

    def can_handle(self, event: object) -> bool: ...

    def trigger(self, event: object) -> Any: ...


def supports_structured_events(listener: object) -> bool:
    return isinstance(listener, ListenerContract) and listener.is_structured_listener()


def on(*event_types: type) -> Callable[[Handler], Handler]:
    """Mark a method of a :class:`Listener` subclass as handler for ``event_types``."""

    if not event_types:
        raise TypeError("on() needs at least one event type")

    def decorator(func: Handler) -> Handler:
        handles = getattr(func, _HANDLES_ATTR, ())
        setattr(func, _HANDLES_ATTR, handles + event_types)
        return func

    return decorator


def _forwarder(attr: str) -> Handler:
    def forward(self: Any, event: object) -> Any:
        return getattr(self, attr)(event)

    forward.__name__ = attr
    return forward


class Listener:
    """Base class implementing :class:`ListenerContract`.

    Every class keeps only the handlers it declares itself, as a mapping of
    derived handler name to attribute name. Lookups walk the MRO, so
    overriding a handler method in a subclass works as usual and handlers
    added to a base class later are seen by existing subclasses.
    """

    _own_handlers: ClassVar[dict[str, str]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        table: dict[str, str] = {}
        own = list(vars(cls).items())
        for attr, value in own:
            if attr.startswith(HANDLER_PREFIX) and callable(value):
                table[attr] = attr
        # declared handlers win over same-named plain methods
        for attr, value in own:
            for event_type in getattr(value, _HANDLES_ATTR, ()):
                name = derive_method_name(type_identifier(event_type))
                table[name] = attr
                if name != attr:
                    setattr(cls, name, _forwarder(attr))
        cls._own_handlers = table

    @classmethod
    def on(cls, event_type: type, handler: Handler | None = None) -> Any:
        """Register ``handler`` for ``event_type`` after the class is defined.

        If ``handler`` is ``None`` this functions as a decorator factory.
        """

        def register(func: Handler) -> Handler:
            name = derive_method_name(type_identifier(event_type))
            setattr(cls, name, func)
            cls._own_handlers = {**vars(cls).get("_own_handlers", {}), name: name}
            return func

        if handler is not None:
            return register(handler)
        return register

    @classmethod
    def _handler_attr(cls, event: object) -> str | None:
        name = method_name_for(event)
        for klass in cls.__mro__:
            attr = vars(klass).get("_own_handlers", {}).get(name)
            if attr is not None:
                return attr
        return None

    def is_structured_listener(self) -> bool:
        return True

    def can_handle(self, event: object) -> bool:
        return self._handler_attr(event) is not None

    def trigger(self, event: object) -> Any:
        attr = self._handler_attr(event)
        if attr is None:
            unhandled_events_total.inc()
            raise UnhandledEventError.for_event(event, self)
        return getattr(self, attr)(event)
