"""Query filter passed from the pipeline to the persistence layer.

A plain dataclass rather than a Pydantic model: it never crosses the HTTP
boundary, it is built up stage by stage inside a single request::

    Filter(where={"hotel_id": 7}, offset=10, limit=5, order_by=[("name", "asc")])

``where`` maps a column name to a scalar (equality), ``None`` (IS NULL) or a
list (IN).
"""

import copy
from dataclasses import dataclass, field
from typing import Any

ASC = "asc"
DESC = "desc"


@dataclass
class Filter:
    where: dict[str, Any] = field(default_factory=dict)
    offset: int | None = None
    limit: int | None = None
    order_by: list[tuple[str, str]] | None = None

    def copy(self) -> "Filter":
        """Deep copy, so lookups can extend ``where`` without touching the original."""
        return copy.deepcopy(self)
