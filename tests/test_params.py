from datetime import datetime
from decimal import Decimal

import pytest

from entity_crud.exceptions import ValidationError
from entity_crud.schemas.filter import Filter
from entity_crud.services.params import (
    build_query_filter,
    coerce_value,
    parse_filter,
    parse_limit,
    parse_offset,
    parse_order_by,
)
from tests.factories import make_children
from tests.fakes import FakeEntity


def test_not_filterable_returns_filter_untouched() -> None:
    filters = Filter(where={"parent_id": 7})
    assert build_query_filter(make_children(), False, filters, {"anything": "x"}, 50) == Filter(
        where={"parent_id": 7}
    )


def test_defaults_applied_before_keys() -> None:
    assert build_query_filter(make_children(), True, None, {}, 25) == Filter(offset=0, limit=25)


def test_pagination_and_order_scenario() -> None:
    filters = build_query_filter(
        make_children(),
        True,
        Filter(where={"parent_id": 7}),
        {"offset": "10", "limit": "5", "orderBy": "name"},
        50,
    )
    assert filters == Filter(where={"parent_id": 7}, offset=10, limit=5, order_by=[("name", "asc")])


def test_unsupported_key_is_rejected() -> None:
    with pytest.raises(ValidationError, match="The request parameter fields is not supported"):
        build_query_filter(make_children(), True, None, {"fields": "id"}, 50)


def test_filter_merges_into_where() -> None:
    filters = build_query_filter(
        make_children(), True, Filter(where={"parent_id": 7}), {"filter": "owner_id:5"}, 50
    )
    assert filters.where == {"parent_id": 7, "owner_id": 5}


def test_filter_cannot_override_path_scope() -> None:
    with pytest.raises(ValidationError, match="set by the request path"):
        build_query_filter(make_children(), True, Filter(where={"parent_id": 7}), {"filter": "parent_id:8"}, 50)


@pytest.mark.parametrize("raw", ["-1", "x", "1.5", ""])
def test_parse_offset_rejects_malformed(raw: str) -> None:
    with pytest.raises(ValidationError, match="offset"):
        parse_offset(raw)


def test_parse_offset_accepts_zero() -> None:
    assert parse_offset("0") == 0


@pytest.mark.parametrize("raw", ["0", "-5", "ten"])
def test_parse_limit_rejects_malformed(raw: str) -> None:
    with pytest.raises(ValidationError, match="limit"):
        parse_limit(raw)


def test_parse_order_by_multiple_fields_and_directions() -> None:
    assert parse_order_by(make_children(), "name DESC, id") == [("name", "desc"), ("id", "asc")]


@pytest.mark.parametrize(
    "raw, message",
    [
        ("colour", "unknown field colour"),
        ("name sideways", "Invalid orderBy direction sideways"),
        ("name asc extra", "Invalid orderBy expression"),
        ("name,", "Invalid orderBy expression"),
    ],
)
def test_parse_order_by_rejects(raw: str, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        parse_order_by(make_children(), raw)


def test_parse_filter_coerces_to_column_types() -> None:
    where = parse_filter(make_children(), "owner_id:5; archived:false ;name:b|c")
    assert where == {"owner_id": 5, "archived": False, "name": ["b", "c"]}


def test_parse_filter_null_literal() -> None:
    assert parse_filter(make_children(), "owner_id:null") == {"owner_id": None}


@pytest.mark.parametrize(
    "raw, message",
    [
        ("", "filter expression is empty"),
        ("owner_id", "Invalid filter expression"),
        (":5", "Invalid filter expression"),
        ("owner_id:", "Invalid filter expression"),
        ("colour:red", "unknown field colour"),
        ("owner_id:five", "Invalid value 'five' for Child.owner_id"),
    ],
)
def test_parse_filter_rejects(raw: str, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        parse_filter(make_children(), raw)


def test_coerce_value_for_rich_types() -> None:
    entity = FakeEntity("Event", "event_id", {"price": Decimal, "starts_at": datetime, "payload": object})
    assert coerce_value(entity, "price", "12.50") == Decimal("12.50")
    assert coerce_value(entity, "starts_at", "2025-11-22T10:00:00") == datetime(2025, 11, 22, 10, 0)
    assert coerce_value(entity, "payload", {"raw": True}) == {"raw": True}
    assert coerce_value(entity, "price", None) is None


@pytest.mark.parametrize("parse", [parse_offset, parse_limit])
def test_pagination_beyond_bigint_is_rejected(parse: object) -> None:
    with pytest.raises(ValidationError, match="99999999999999999999"):
        parse("99999999999999999999")  # type: ignore[operator]
    assert parse("9223372036854775807") == 2**63 - 1  # type: ignore[operator]


def test_coerce_value_rejects_integers_beyond_bigint() -> None:
    children = make_children()
    assert coerce_value(children, "owner_id", "-9223372036854775808") == -(2**63)
    with pytest.raises(ValidationError, match="Invalid value '9223372036854775808' for Child.owner_id"):
        coerce_value(children, "owner_id", "9223372036854775808")
    # bools are ints but never out of range
    assert coerce_value(children, "archived", "true") is True
