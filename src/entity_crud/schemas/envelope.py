"""Response envelope schemas.

Pydantic versions of the service-layer envelopes, used by the routers::

    list:                 {"success", "status", "metadata": {"totalCount"}, "content": [...]}
    get:                  {"success", "status", "content": {...}}
    create/update/delete: {"id", "result": {"success", "status"}}
"""

from typing import Any

from pydantic import BaseModel, Field

from entity_crud.services.envelope import EntityEnvelope, ListEnvelope, MutationEnvelope


class ListMetadata(BaseModel):
    model_config = {"populate_by_name": True}

    total_count: int = Field(alias="totalCount")


class ListResponse(BaseModel):
    success: bool
    status: int
    metadata: ListMetadata
    content: list[dict[str, Any]]

    @classmethod
    def from_envelope(cls, envelope: ListEnvelope) -> "ListResponse":
        return cls(
            success=envelope.success,
            status=envelope.status,
            metadata=ListMetadata(total_count=envelope.total_count),
            content=envelope.content,
        )


class EntityResponse(BaseModel):
    success: bool
    status: int
    content: dict[str, Any]

    @classmethod
    def from_envelope(cls, envelope: EntityEnvelope) -> "EntityResponse":
        return cls(success=envelope.success, status=envelope.status, content=envelope.content)


class MutationResult(BaseModel):
    success: bool
    status: int


class MutationResponse(BaseModel):
    """Acknowledgement for create/update/delete, carrying only the entity id."""

    id: int
    result: MutationResult

    @classmethod
    def from_envelope(cls, envelope: MutationEnvelope) -> "MutationResponse":
        return cls(id=envelope.id, result=MutationResult(success=envelope.success, status=envelope.status))
