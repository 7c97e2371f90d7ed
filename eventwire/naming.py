"""Naming-convention dispatch for structured events.

A structured event is routed to the handler whose name is derived from the
event's type: ``SimpleEvent`` is handled by ``on_simple_event`` and
``Namespace.NestedEvent`` by ``on_namespace_nested_event``.
"""

from __future__ import annotations

import re

# Mostly the usual CamelCase -> snake_case conversion.
_ACRONYM_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_RE = re.compile(r"([a-z\d])([A-Z])")
_NAMESPACE_RE = re.compile(r"::|\.")

_LOCALS_MARKER = "<locals>."

HANDLER_PREFIX = "on_"


def derive_method_name(type_identifier: str) -> str:
    """Return the handler method name for ``type_identifier``.

    Both ``::`` and ``.`` are accepted as namespace separators.
    """

    name = _NAMESPACE_RE.sub("_", type_identifier)
    name = _ACRONYM_RE.sub(r"\1_\2", name)
    name = _WORD_RE.sub(r"\1_\2", name)
    return HANDLER_PREFIX + name.lower()


def type_identifier(cls: type) -> str:
    """Return the routing identifier of ``cls``.

    This is the qualified name without the module, minus any enclosing
    function scope, so classes declared inside a function route the same way
    as module level ones.
    """

    qualname = cls.__qualname__
    _, marker, tail = qualname.rpartition(_LOCALS_MARKER)
    return tail if marker else qualname


def method_name_for(event: object) -> str:
    return derive_method_name(type_identifier(type(event)))
