import re

import pytest

from eventwire.errors import UnsupportedFilterError
from eventwire.matching import FilterKind, FilterSpec, is_symbolic, matches


class OrderEvent:
    pass


class OrderPlaced(OrderEvent):
    pass


class UserCreated:
    pass


def test_build_recognizes_each_representation():
    assert FilterSpec.build(None).kind is FilterKind.ANY
    assert FilterSpec.build("success").kind is FilterKind.NAME
    assert FilterSpec.build(["success", "failure"]).kind is FilterKind.NAMES
    assert FilterSpec.build(re.compile("^order_")).kind is FilterKind.PATTERN
    assert FilterSpec.build(OrderEvent).kind is FilterKind.TYPE
    assert FilterSpec.build({OrderEvent, UserCreated}).kind is FilterKind.TYPES


def test_build_rejects_unsupported_values():
    with pytest.raises(UnsupportedFilterError):
        FilterSpec.build(42)
    with pytest.raises(UnsupportedFilterError):
        FilterSpec.build(["success", OrderEvent])


def test_is_symbolic():
    assert is_symbolic("success")
    assert not is_symbolic(OrderPlaced())


def test_symbolic_events_match_names():
    assert matches("success", FilterSpec.build(None))
    assert matches("success", FilterSpec.build("success"))
    assert not matches("failure", FilterSpec.build("success"))
    assert matches("failure", FilterSpec.build(("success", "failure")))
    assert not matches("pending", FilterSpec.build(("success", "failure")))


def test_symbolic_events_match_regex_anywhere_in_name():
    spec = FilterSpec.build(re.compile("placed"))
    assert matches("order_placed", spec)
    assert not matches("order_shipped", spec)


def test_structured_events_match_types_and_subtypes():
    assert matches(OrderPlaced(), FilterSpec.build(None))
    assert matches(OrderPlaced(), FilterSpec.build(OrderEvent))
    assert not matches(UserCreated(), FilterSpec.build(OrderEvent))
    assert matches(UserCreated(), FilterSpec.build([OrderEvent, UserCreated]))
    assert not matches(OrderEvent(), FilterSpec.build([OrderPlaced]))


def test_type_filter_rejects_symbolic_events():
    with pytest.raises(UnsupportedFilterError):
        matches("success", FilterSpec.build(OrderEvent))
    with pytest.raises(UnsupportedFilterError):
        matches("success", FilterSpec.build([OrderEvent]))


def test_name_filters_reject_structured_events():
    for on in ["success", ["success"], re.compile("success")]:
        with pytest.raises(UnsupportedFilterError):
            matches(OrderPlaced(), FilterSpec.build(on))


def test_lenient_matching_treats_cross_variant_as_no_match():
    assert not matches("success", FilterSpec.build(OrderEvent), strict=False)
    assert not matches(OrderPlaced(), FilterSpec.build("success"), strict=False)
