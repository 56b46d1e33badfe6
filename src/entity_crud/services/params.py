"""Query-string parsing for filterable list operations.

Recognized keys:

- ``offset``: non-negative integer, default 0
- ``limit``: positive integer, default the configured page size
- ``orderBy``: ``field [asc|desc]`` items separated by commas,
  e.g. ``orderBy=rating desc,id``
- ``filter``: ``field:value`` clauses separated by semicolons; ``|`` separates
  alternatives (IN) and ``null`` matches NULL,
  e.g. ``filter=room_type:suite|deluxe;is_available:true``

Any other key is rejected. The first invalid key fails the whole request.
"""

from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from entity_crud.exceptions import ValidationError
from entity_crud.repositories.base import QueryableEntity
from entity_crud.schemas.filter import ASC, DESC, Filter
from entity_crud.services.validation import MAX_INTEGER, to_non_negative_int

NULL_LITERAL = "null"


@lru_cache(maxsize=64)
def _adapter(python_type: type) -> TypeAdapter[Any]:
    return TypeAdapter(python_type)


def coerce_value(entity: QueryableEntity, field: str, value: Any) -> Any:
    """Convert a raw value to the Python type of ``entity.field``."""
    python_type = entity.fields[field]
    if value is None or python_type is object:
        return value
    try:
        coerced = _adapter(python_type).validate_python(value)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid value {value!r} for {entity.name}.{field}") from exc
    # Integer columns are BIGINT at most
    if type(coerced) is int and not -MAX_INTEGER - 1 <= coerced <= MAX_INTEGER:
        raise ValidationError(f"Invalid value {value!r} for {entity.name}.{field}")
    return coerced


def parse_offset(raw: str) -> int:
    value = to_non_negative_int(raw)
    if value is None or value > MAX_INTEGER:
        raise ValidationError(f"offset must be a non-negative integer, got {raw}")
    return value


def parse_limit(raw: str) -> int:
    value = to_non_negative_int(raw)
    if not value or value > MAX_INTEGER:
        raise ValidationError(f"limit must be a positive integer, got {raw}")
    return value


def parse_order_by(entity: QueryableEntity, raw: str) -> list[tuple[str, str]]:
    order_by = []
    for item in raw.split(","):
        tokens = item.split()
        if not tokens or len(tokens) > 2:
            raise ValidationError(f"Invalid orderBy expression {raw!r}")
        field = tokens[0]
        direction = tokens[1].lower() if len(tokens) == 2 else ASC
        if field not in entity.fields:
            raise ValidationError(f"Cannot order {entity.name} by unknown field {field}")
        if direction not in (ASC, DESC):
            raise ValidationError(f"Invalid orderBy direction {tokens[1]}")
        order_by.append((field, direction))
    return order_by


def parse_filter(entity: QueryableEntity, raw: str) -> dict[str, Any]:
    where: dict[str, Any] = {}
    clauses = [clause.strip() for clause in raw.split(";") if clause.strip()]
    if not clauses:
        raise ValidationError("filter expression is empty")
    for clause in clauses:
        field, sep, values = clause.partition(":")
        field = field.strip()
        if not sep or not field or not values.strip():
            raise ValidationError(f"Invalid filter expression {clause!r}")
        if field not in entity.fields:
            raise ValidationError(f"Cannot filter {entity.name} by unknown field {field}")
        coerced = [
            None if value.strip() == NULL_LITERAL else coerce_value(entity, field, value.strip())
            for value in values.split("|")
        ]
        where[field] = coerced[0] if len(coerced) == 1 else coerced
    return where


def build_query_filter(
    entity: QueryableEntity,
    filtering: bool,
    filters: Filter | None,
    query: Mapping[str, str],
    page_size: int,
) -> Filter:
    """Apply pagination defaults and the recognized query keys to ``filters``."""
    if filters is None:
        filters = Filter()
    if not filtering:
        return filters

    filters.offset = 0
    filters.limit = page_size
    for key, raw in query.items():
        if key == "offset":
            filters.offset = parse_offset(raw)
        elif key == "limit":
            filters.limit = parse_limit(raw)
        elif key == "orderBy":
            filters.order_by = parse_order_by(entity, raw)
        elif key == "filter":
            fragment = parse_filter(entity, raw)
            # Keys already scoped by the path can't be widened from the query string
            fixed = sorted(set(fragment) & set(filters.where))
            if fixed:
                raise ValidationError(f"Cannot filter on {', '.join(fixed)}, it is set by the request path")
            filters.where.update(fragment)
        else:
            raise ValidationError(f"The request parameter {key} is not supported")
    return filters
