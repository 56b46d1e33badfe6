"""SQLAlchemy implementation of ``QueryableEntity``.

Pure data access: translates a ``Filter`` into SELECT statements and runs
create/save/destroy against the request's ``AsyncSession``. No validation
beyond column existence, no commits (the session dependency owns the
transaction).
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import ColumnElement, Select, func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from entity_crud.db.session import Base
from entity_crud.logging import get_logger
from entity_crud.schemas.filter import DESC, Filter

logger = get_logger(__name__)


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _python_type(column_attr: Any) -> type:
    try:
        return column_attr.columns[0].type.python_type
    except NotImplementedError:
        return object


class ModelRepository:
    """Exposes one mapped model class to the CRUD controller.

    ``id_field`` defaults to the snake-cased model name plus ``_id``
    (``Hotel`` -> ``hotel_id``), matching the foreign-key column children use.
    """

    def __init__(self, model: type[Base], *, name: str | None = None, id_field: str | None = None) -> None:
        self.model = model
        self.name = name or model.__name__
        self.id_field = id_field or f"{_snake_case(model.__name__)}_id"
        self._fields = {attr.key: _python_type(attr) for attr in inspect(model).column_attrs}

    def __repr__(self) -> str:
        return f"ModelRepository({self.name})"

    @property
    def fields(self) -> Mapping[str, type]:
        return self._fields

    def _column(self, key: str) -> Any:
        if key not in self._fields:
            raise ValueError(f"{self.name} has no column {key}")
        return getattr(self.model, key)

    def _where(self, where: Mapping[str, Any]) -> list[ColumnElement[bool]]:
        clauses = []
        for key, value in where.items():
            column = self._column(key)
            if value is None:
                clauses.append(column.is_(None))
            elif isinstance(value, (list, tuple, set)):
                clauses.append(column.in_(list(value)))
            else:
                clauses.append(column == value)
        return clauses

    def _select(self, filters: Filter) -> Select[Any]:
        stmt = select(self.model).where(*self._where(filters.where))
        if filters.order_by:
            for key, direction in filters.order_by:
                column = self._column(key)
                stmt = stmt.order_by(column.desc() if direction == DESC else column.asc())
        else:
            # Stable pagination
            stmt = stmt.order_by(*inspect(self.model).primary_key)
        return stmt

    async def find(self, db: AsyncSession, filters: Filter) -> Any | None:
        """Return the first row matching the filter, or None."""
        result = await db.execute(self._select(filters).limit(1))
        return result.scalars().first()

    async def find_and_count_all(self, db: AsyncSession, filters: Filter) -> tuple[int, Sequence[Any]]:
        """Return the total match count and one page of rows."""
        count_stmt = select(func.count()).select_from(self.model).where(*self._where(filters.where))
        total = (await db.execute(count_stmt)).scalar_one()

        stmt = self._select(filters)
        if filters.offset:
            stmt = stmt.offset(filters.offset)
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)
        result = await db.execute(stmt)
        return total, list(result.scalars().all())

    async def create(self, db: AsyncSession, data: Mapping[str, Any]) -> Any:
        unknown = sorted(set(data) - set(self._fields))
        if unknown:
            logger.debug("unknown_fields_ignored", entity=self.name, fields=unknown)
        instance = self.model(**{key: value for key, value in data.items() if key in self._fields})
        db.add(instance)
        await db.flush()
        # Load server-side defaults (id, timestamps) while still inside the async context
        await db.refresh(instance)
        return instance

    async def save(self, db: AsyncSession, instance: Any) -> None:
        db.add(instance)
        await db.flush()
        await db.refresh(instance)

    async def destroy(self, db: AsyncSession, instance: Any) -> None:
        await db.delete(instance)
        await db.flush()

    def to_dict(self, instance: Any) -> dict[str, Any]:
        return {key: getattr(instance, key) for key in self._fields}
