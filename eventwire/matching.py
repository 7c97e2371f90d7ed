"""Event filters.

A filter accepts events either by name (symbolic events) or by type
(structured events). Matching looks at the event's variant first and only
then at the filter's representation, so a structured event is never coerced
into a name.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import UnsupportedFilterError

logger = logging.getLogger(__name__)


class FilterKind(str, Enum):
    ANY = "any"
    NAME = "name"
    NAMES = "names"
    PATTERN = "pattern"
    TYPE = "type"
    TYPES = "types"


NAME_KINDS = frozenset({FilterKind.NAME, FilterKind.NAMES, FilterKind.PATTERN})
TYPE_KINDS = frozenset({FilterKind.TYPE, FilterKind.TYPES})


def is_symbolic(event: object) -> bool:
    """Symbolic events are plain names; anything else is structured."""
    return isinstance(event, str)


@dataclass(frozen=True)
class FilterSpec:
    """The single active filter representation of a registration."""

    kind: FilterKind
    value: Any = None

    @classmethod
    def build(cls, on: Any = None) -> FilterSpec:
        """Build a filter from a subscription's ``on`` option.

        Accepts ``None``, a name, an iterable of names, a compiled regular
        expression, a type or an iterable of types.
        """

        if on is None:
            return cls(FilterKind.ANY)
        if isinstance(on, str):
            return cls(FilterKind.NAME, on)
        if isinstance(on, re.Pattern):
            return cls(FilterKind.PATTERN, on)
        if isinstance(on, type):
            return cls(FilterKind.TYPE, on)
        if isinstance(on, Iterable):
            items = tuple(on)
            if items and all(isinstance(item, type) for item in items):
                return cls(FilterKind.TYPES, items)
            if all(isinstance(item, str) for item in items):
                return cls(FilterKind.NAMES, frozenset(items))
            raise UnsupportedFilterError(
                f"cannot mix names and types in one filter: {items!r}"
            )
        raise UnsupportedFilterError(f"{type(on).__name__} not supported as a filter")

    @property
    def accepts_names(self) -> bool:
        return self.kind in NAME_KINDS

    @property
    def accepts_types(self) -> bool:
        return self.kind in TYPE_KINDS

    def matches(self, event: object, *, strict: bool = True) -> bool:
        """Return whether ``event`` passes this filter.

        Raises :class:`UnsupportedFilterError` when the filter cannot apply
        to the event's variant, unless ``strict`` is false in which case the
        event just doesn't match.
        """

        if self.kind is FilterKind.ANY:
            return True
        if is_symbolic(event):
            if self.accepts_types:
                return self._unsupported(event, strict)
            if self.kind is FilterKind.NAME:
                return event == self.value
            if self.kind is FilterKind.NAMES:
                return event in self.value
            return self.value.search(event) is not None
        if self.accepts_names:
            return self._unsupported(event, strict)
        # a type or a tuple of types
        return isinstance(event, self.value)

    def _unsupported(self, event: object, strict: bool) -> bool:
        variant = "symbolic" if is_symbolic(event) else "structured"
        if strict:
            raise UnsupportedFilterError(
                f"{self.kind.value} filter cannot match {variant} event {event!r}"
            )
        logger.debug(
            "filter_skipped",
            extra={"event_name": event if is_symbolic(event) else type(event).__name__},
        )
        return False


def matches(event: object, filter_spec: FilterSpec, strict: bool = True) -> bool:
    return filter_spec.matches(event, strict=strict)
