"""Request checks that run before any filter is built."""

import re
from collections.abc import Mapping, Sequence
from typing import Any

from entity_crud.exceptions import ValidationError
from entity_crud.repositories.base import QueryableEntity

_DIGITS = re.compile(r"[0-9]+")

# Largest value a BIGINT column (and the drivers) can hold
MAX_INTEGER = 2**63 - 1


def to_non_negative_int(raw: Any) -> int | None:
    """Parse an id-like value, returning None unless it is a non-negative integer."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw >= 0 else None
    if isinstance(raw, float) and raw.is_integer() and raw >= 0:
        return int(raw)
    if isinstance(raw, str) and _DIGITS.fullmatch(raw.strip()):
        return int(raw.strip())
    return None


def parse_id(raw: Any) -> int:
    value = to_non_negative_int(raw)
    if value is None:
        raise ValidationError(f"Invalid id parameter {raw}")
    return value


def check_extra_parameters(query: Mapping[str, Any]) -> None:
    """Reject any query-string key on operations that accept none."""
    if query:
        raise ValidationError("Query parameter is not allowed")


def check_id_consistency(
    reference_models: Sequence[QueryableEntity],
    path_params: Mapping[str, Any],
    body: Mapping[str, Any] | None,
) -> None:
    """A reference id repeated in the body must match the one in the path.

    Stops at the first mismatching reference model.
    """
    if not body:
        return
    for ref in reference_models:
        field = ref.id_field
        if body.get(field) is None:
            continue
        path_value = to_non_negative_int(path_params.get(field))
        if path_value is None or to_non_negative_int(body[field]) != path_value:
            raise ValidationError(f"{field} value should be same in path param as well as request body")
