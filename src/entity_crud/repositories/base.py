"""Persistence interface the CRUD controller is written against.

The controller never touches a concrete model class. Each entity type (and
each reference model) is handed to it as a ``QueryableEntity``; the db handle
is passed through untouched, so implementations decide what it is.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from entity_crud.schemas.filter import Filter


@runtime_checkable
class QueryableEntity(Protocol):
    # Display name used in error messages, e.g. "Hotel"
    name: str
    # Path parameter holding this entity's id; also the foreign-key name
    # children use to reference it, e.g. "hotel_id"
    id_field: str

    @property
    def fields(self) -> Mapping[str, type]:
        """Column name -> Python type, for ordering, filtering and body assignment."""
        ...

    async def find(self, db: Any, filters: Filter) -> Any | None: ...

    async def find_and_count_all(self, db: Any, filters: Filter) -> tuple[int, Sequence[Any]]: ...

    async def create(self, db: Any, data: Mapping[str, Any]) -> Any: ...

    async def save(self, db: Any, instance: Any) -> None: ...

    async def destroy(self, db: Any, instance: Any) -> None: ...

    def to_dict(self, instance: Any) -> dict[str, Any]: ...
