"""In-process publish/subscribe dispatcher.

Publishers broadcast either symbolic events (a name plus call arguments) or
structured events (typed objects). Listeners receive symbolic events as
method calls and structured events through :meth:`Listener.trigger`, which
routes them to handlers named after the event type. Nothing here performs
I/O on import.
"""

from .errors import (
    EventwireError,
    UnhandledEventError,
    UnknownBroadcasterError,
    UnsupportedFilterError,
)
from .global_listeners import subscribe, subscribed, unsubscribe
from .listener import Listener, ListenerContract, on
from .naming import derive_method_name
from .publisher import Publisher

__all__ = [
    "__version__",
    "EventwireError",
    "Listener",
    "ListenerContract",
    "Publisher",
    "UnhandledEventError",
    "UnknownBroadcasterError",
    "UnsupportedFilterError",
    "derive_method_name",
    "on",
    "subscribe",
    "subscribed",
    "unsubscribe",
]

__version__ = "0.1.0"
