"""Reference-model scoping and filter policy.

``build_reference_filter`` turns the chain of parent ids in the path
(``/hotels/{hotel_id}/deals/...``) into ``where`` entries, checking that each
parent exists. The remaining helpers apply per-entity-type policy to a built
filter: the ``entity_filter_ids`` allow-list and forced fragments
(``custom_filters``, ``deletion_restrictions``).
"""

import copy
from collections.abc import Collection, Mapping, Sequence
from typing import Any

from entity_crud.exceptions import ValidationError
from entity_crud.repositories.base import QueryableEntity
from entity_crud.schemas.filter import ASC, DESC, Filter
from entity_crud.services.errors import DB_READ, persistence_guard
from entity_crud.services.validation import MAX_INTEGER, parse_id

FRAGMENT_KEYS = frozenset({"where", "offset", "limit", "order_by"})


async def build_reference_filter(
    db: Any,
    reference_models: Sequence[QueryableEntity],
    path_params: Mapping[str, Any],
    timeout: float | None = None,
) -> Filter:
    """Resolve reference models in declaration order, stopping at the first failure.

    Each lookup sees the ``where`` accumulated so far, so a later link must
    belong to the earlier ones.
    """
    filters = Filter()
    for ref in reference_models:
        raw = path_params.get(ref.id_field)
        ref_id = parse_id(raw)

        ref_entity = None
        if ref_id <= MAX_INTEGER:
            lookup = filters.copy()
            lookup.where["id"] = ref_id
            async with persistence_guard(DB_READ, timeout):
                ref_entity = await ref.find(db, lookup)
        if ref_entity is None:
            raise ValidationError(f"Cannot find the {ref.name} with id {raw}")

        filters.where[ref.id_field] = ref_entity.id
    return filters


def apply_allow_list(filters: Filter, allowed: Collection[str] | None) -> Filter:
    """Drop every ``where`` key not in ``allowed``; no-op when not configured."""
    if allowed is not None:
        filters.where = {key: value for key, value in filters.where.items() if key in allowed}
    return filters


def validate_fragment(fragment: Mapping[str, Any], option: str) -> None:
    """Registration-time check of a forced filter fragment."""
    unknown = set(fragment) - FRAGMENT_KEYS
    if unknown:
        raise ValueError(f"{option} has unsupported keys: {', '.join(sorted(unknown))}")
    if not isinstance(fragment.get("where", {}), Mapping):
        raise ValueError(f"{option}['where'] must be a mapping")
    for _, direction in fragment.get("order_by") or ():
        if direction not in (ASC, DESC):
            raise ValueError(f"{option}['order_by'] direction must be {ASC!r} or {DESC!r}")


def merge_filter(filters: Filter, fragment: Mapping[str, Any] | None) -> Filter:
    """Merge a forced fragment into ``filters``.

    ``where`` entries are merged key by key, the fragment winning on conflict;
    ``offset``, ``limit`` and ``order_by`` replace the current values.
    """
    if not fragment:
        return filters
    filters.where.update(copy.deepcopy(dict(fragment.get("where", {}))))
    if "offset" in fragment:
        filters.offset = fragment["offset"]
    if "limit" in fragment:
        filters.limit = fragment["limit"]
    if "order_by" in fragment:
        filters.order_by = [(key, direction) for key, direction in fragment["order_by"]]
    return filters
