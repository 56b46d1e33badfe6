from collections.abc import Mapping
from typing import Any

from entity_crud.exceptions import NotFoundError
from entity_crud.repositories.base import QueryableEntity
from entity_crud.schemas.filter import Filter
from entity_crud.services.errors import DB_READ, persistence_guard
from entity_crud.services.validation import MAX_INTEGER, parse_id


async def find_entity_by_filter(
    db: Any,
    entity: QueryableEntity,
    filters: Filter,
    path_params: Mapping[str, Any],
    timeout: float | None = None,
) -> Any:
    """Find the single entity addressed by the path, within ``filters``.

    Raises ValidationError for a malformed id and NotFoundError when the id is
    well-formed but nothing matches (including rows outside the filter scope
    and ids too large to be stored).
    """
    raw = path_params.get(entity.id_field)
    entity_id = parse_id(raw)
    if entity_id > MAX_INTEGER:
        # No stored row can carry this id
        raise NotFoundError(entity.name, raw)

    lookup = filters.copy()
    lookup.where["id"] = entity_id
    async with persistence_guard(DB_READ, timeout):
        instance = await entity.find(db, lookup)
    if instance is None:
        raise NotFoundError(entity.name, raw)
    return instance
