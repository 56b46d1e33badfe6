import asyncio

import pytest

from entity_crud.exceptions import NotFoundError, PersistenceError, ValidationError
from entity_crud.schemas.filter import Filter
from entity_crud.services.errors import DB_SAVE, persistence_guard
from entity_crud.services.locator import find_entity_by_filter
from tests.factories import make_children


@pytest.mark.asyncio
async def test_locates_entity_inside_filter_scope() -> None:
    children = make_children()
    filters = Filter(where={"parent_id": 7})

    instance = await find_entity_by_filter(None, children, filters, {"child_id": "1"})

    assert instance.id == 1
    assert children.calls == [("find", Filter(where={"parent_id": 7, "id": 1}))]
    # the caller's filter is left untouched
    assert filters == Filter(where={"parent_id": 7})


@pytest.mark.asyncio
async def test_entity_of_another_parent_is_not_found() -> None:
    with pytest.raises(NotFoundError, match="Child with id 3 not found"):
        await find_entity_by_filter(None, make_children(), Filter(where={"parent_id": 7}), {"child_id": "3"})


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["-4", "abc", None])
async def test_malformed_id_is_a_validation_error(raw: object) -> None:
    children = make_children()
    with pytest.raises(ValidationError, match="Invalid id parameter"):
        await find_entity_by_filter(None, children, Filter(), {"child_id": raw})
    assert children.calls == []


@pytest.mark.asyncio
async def test_id_beyond_bigint_is_not_found_without_lookup() -> None:
    children = make_children()
    with pytest.raises(NotFoundError, match="Child with id 9223372036854775808 not found"):
        await find_entity_by_filter(None, children, Filter(), {"child_id": "9223372036854775808"})
    assert children.calls == []


@pytest.mark.asyncio
async def test_largest_bigint_id_is_looked_up() -> None:
    children = make_children()
    with pytest.raises(NotFoundError):
        await find_entity_by_filter(None, children, Filter(), {"child_id": "9223372036854775807"})
    assert children.calls == [("find", Filter(where={"id": 2**63 - 1}))]


@pytest.mark.asyncio
async def test_lookup_failure_is_wrapped() -> None:
    children = make_children()
    children.fail_with = RuntimeError("disk I/O error")
    with pytest.raises(PersistenceError, match="DBReadError: disk I/O error"):
        await find_entity_by_filter(None, children, Filter(), {"child_id": "1"})


# ---------------------------------------------------------------------------
# persistence_guard
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_guard_times_out_slow_calls() -> None:
    with pytest.raises(PersistenceError) as excinfo:
        async with persistence_guard(DB_SAVE, timeout=0.01):
            await asyncio.sleep(1)

    assert excinfo.value.kind == "DBSaveError"
    assert isinstance(excinfo.value.cause, TimeoutError)


@pytest.mark.asyncio
async def test_guard_passes_domain_errors_through() -> None:
    with pytest.raises(NotFoundError):
        async with persistence_guard(DB_SAVE):
            raise NotFoundError("Child", 1)


@pytest.mark.asyncio
async def test_guard_without_failure_is_transparent() -> None:
    async with persistence_guard(DB_SAVE, timeout=None):
        result = 1 + 1
    assert result == 2
