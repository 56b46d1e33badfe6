"""Partial-response step run at the end of list and get.

The controller only calls ``render``; field selection and expansion belong to
the renderer. ``ColumnRenderer`` is the default and does neither, it turns
entity instances into plain column dicts.
"""

from typing import TYPE_CHECKING, Protocol

from entity_crud.repositories.base import QueryableEntity
from entity_crud.services.envelope import EntityEnvelope, ListEnvelope

if TYPE_CHECKING:
    from entity_crud.services.controller import RequestContext


class Renderer(Protocol):
    async def render(self, entity: QueryableEntity, ctx: "RequestContext") -> None:
        """Replace the content of ``ctx.data`` with the final payload."""
        ...


class ColumnRenderer:
    async def render(self, entity: QueryableEntity, ctx: "RequestContext") -> None:
        envelope = ctx.data
        if isinstance(envelope, ListEnvelope):
            envelope.content = [entity.to_dict(instance) for instance in envelope.content]
        elif isinstance(envelope, EntityEnvelope):
            envelope.content = entity.to_dict(envelope.content)
