"""Service-layer response envelopes.

Plain dataclasses: the controller attaches one to the request context at
the end of a successful pipeline. ``schemas/envelope.py`` holds the Pydantic
versions the routers return.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class ListEnvelope:
    content: list[Any]
    total_count: int
    success: bool = True
    status: int = 200


@dataclass
class EntityEnvelope:
    content: Any
    success: bool = True
    status: int = 200


@dataclass
class MutationEnvelope:
    """Result of create/update/delete: the id only, never the content."""

    id: Any
    success: bool = True
    status: int = 200


Envelope = ListEnvelope | EntityEnvelope | MutationEnvelope
