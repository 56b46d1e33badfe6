"""Generic CRUD controller.

``ControllerHelper.build_controller`` returns a ``CrudController`` for one
entity type, optionally nested under a chain of reference models. Each of the
five operations is a fixed sequence of awaited stages; the first stage that
raises ends the request, and the exception handlers in main.py map the
``DomainError`` to a response. Nothing is caught or retried here.

    list:   [extra params] -> references -> [query filter] -> allow-list -> custom filters -> find_and_count_all
    get:    extra params -> references -> allow-list -> locate
    create: id consistency -> extra params -> references -> create
    update: id consistency -> extra params -> references -> allow-list -> locate -> save
    delete: extra params -> references -> allow-list -> deletion restrictions -> locate -> destroy
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from entity_crud.config import Settings
from entity_crud.logging import get_logger
from entity_crud.repositories.base import QueryableEntity
from entity_crud.schemas.filter import Filter
from entity_crud.services.envelope import EntityEnvelope, Envelope, ListEnvelope, MutationEnvelope
from entity_crud.services.errors import DB_CREATE, DB_DELETE, DB_READ, DB_SAVE, persistence_guard
from entity_crud.services.filters import (
    apply_allow_list,
    build_reference_filter,
    merge_filter,
    validate_fragment,
)
from entity_crud.services.locator import find_entity_by_filter
from entity_crud.services.params import build_query_filter, coerce_value
from entity_crud.services.rendering import ColumnRenderer, Renderer
from entity_crud.services.validation import check_extra_parameters, check_id_consistency

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 50

AUDIT_FIELDS: tuple[str, ...] = ("created_by", "updated_by", "created_at", "updated_at")
PROTECTED_FIELDS: frozenset[str] = frozenset({"id", *AUDIT_FIELDS})


@dataclass(frozen=True)
class ControllerOptions:
    """Per-entity-type policy, fixed at registration.

    ``entity_filter_ids`` is a security boundary: when set, no ``where`` key
    outside it reaches the persistence call, whatever the request contains.
    """

    filtering: bool = False
    entity_filter_ids: Sequence[str] | None = None
    custom_filters: Mapping[str, Any] | None = None
    deletion_restrictions: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.custom_filters:
            validate_fragment(self.custom_filters, "custom_filters")
        if self.deletion_restrictions:
            validate_fragment(self.deletion_restrictions, "deletion_restrictions")


@dataclass
class RequestContext:
    """Everything one operation needs from the inbound request.

    ``db`` is handed to the persistence layer untouched. ``data`` receives the
    response envelope once the pipeline succeeds.
    """

    db: Any
    path_params: Mapping[str, Any] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)
    body: Mapping[str, Any] | None = None
    user_id: Any = None
    data: Envelope | None = None


class CrudController:
    def __init__(
        self,
        entity: QueryableEntity,
        reference_models: Sequence[QueryableEntity],
        options: ControllerOptions,
        *,
        page_size: int,
        timeout: float | None,
        renderer: Renderer,
    ) -> None:
        self.entity = entity
        self.reference_models = tuple(reference_models)
        self.options = options
        self.page_size = page_size
        self.timeout = timeout
        self.renderer = renderer

    def __repr__(self) -> str:
        refs = ", ".join(ref.name for ref in self.reference_models)
        return f"CrudController({self.entity.name}, references=[{refs}])"

    async def _reference_filter(self, ctx: RequestContext) -> Filter:
        return await build_reference_filter(ctx.db, self.reference_models, ctx.path_params, self.timeout)

    async def _locate(self, ctx: RequestContext, filters: Filter) -> Any:
        return await find_entity_by_filter(ctx.db, self.entity, filters, ctx.path_params, self.timeout)

    def _writable(self, body: Mapping[str, Any] | None, excluded: set[str] | frozenset[str]) -> dict[str, Any]:
        """Body fields a caller may set, coerced to column types."""
        data = {key: value for key, value in (body or {}).items() if key not in excluded}
        return {
            key: coerce_value(self.entity, key, value) if key in self.entity.fields else value
            for key, value in data.items()
        }

    async def all(self, ctx: RequestContext) -> ListEnvelope:
        """List entities within the reference scope, paginated when filtering is on."""
        if not self.options.filtering:
            check_extra_parameters(ctx.query)
        filters = await self._reference_filter(ctx)
        filters = build_query_filter(self.entity, self.options.filtering, filters, ctx.query, self.page_size)
        apply_allow_list(filters, self.options.entity_filter_ids)
        merge_filter(filters, self.options.custom_filters)

        async with persistence_guard(DB_READ, self.timeout):
            total, rows = await self.entity.find_and_count_all(ctx.db, filters)

        envelope = ListEnvelope(content=list(rows), total_count=total)
        ctx.data = envelope
        await self.renderer.render(self.entity, ctx)
        return envelope

    async def get(self, ctx: RequestContext) -> EntityEnvelope:
        check_extra_parameters(ctx.query)
        filters = await self._reference_filter(ctx)
        apply_allow_list(filters, self.options.entity_filter_ids)
        instance = await self._locate(ctx, filters)

        envelope = EntityEnvelope(content=instance)
        ctx.data = envelope
        await self.renderer.render(self.entity, ctx)
        return envelope

    async def create(self, ctx: RequestContext) -> MutationEnvelope:
        """Create an entity under the resolved references, attributed to the current user."""
        check_id_consistency(self.reference_models, ctx.path_params, ctx.body)
        check_extra_parameters(ctx.query)
        filters = await self._reference_filter(ctx)

        data = self._writable(ctx.body, PROTECTED_FIELDS)
        data["created_by"] = ctx.user_id
        data["updated_by"] = ctx.user_id
        # Foreign keys come from the path, never from the body
        data.update(filters.where)

        async with persistence_guard(DB_CREATE, self.timeout):
            instance = await self.entity.create(ctx.db, data)

        logger.info("entity_created", entity=self.entity.name, id=instance.id, user_id=ctx.user_id)
        envelope = MutationEnvelope(id=instance.id)
        ctx.data = envelope
        return envelope

    async def update(self, ctx: RequestContext) -> MutationEnvelope:
        """Apply body fields to the located entity; ids, audit and reference keys are not reassignable."""
        check_id_consistency(self.reference_models, ctx.path_params, ctx.body)
        check_extra_parameters(ctx.query)
        filters = await self._reference_filter(ctx)
        apply_allow_list(filters, self.options.entity_filter_ids)
        instance = await self._locate(ctx, filters)

        excluded = set(PROTECTED_FIELDS) | set(filters.where) | {ref.id_field for ref in self.reference_models}
        for key, value in self._writable(ctx.body, excluded).items():
            if key in self.entity.fields:
                setattr(instance, key, value)
        instance.updated_by = ctx.user_id

        async with persistence_guard(DB_SAVE, self.timeout):
            await self.entity.save(ctx.db, instance)

        logger.info("entity_updated", entity=self.entity.name, id=instance.id, user_id=ctx.user_id)
        envelope = MutationEnvelope(id=instance.id)
        ctx.data = envelope
        return envelope

    async def delete(self, ctx: RequestContext) -> MutationEnvelope:
        """Destroy the located entity; deletion restrictions narrow what can be found."""
        check_extra_parameters(ctx.query)
        filters = await self._reference_filter(ctx)
        apply_allow_list(filters, self.options.entity_filter_ids)
        merge_filter(filters, self.options.deletion_restrictions)
        instance = await self._locate(ctx, filters)

        async with persistence_guard(DB_DELETE, self.timeout):
            await self.entity.destroy(ctx.db, instance)

        logger.info("entity_deleted", entity=self.entity.name, id=instance.id, user_id=ctx.user_id)
        envelope = MutationEnvelope(id=instance.id)
        ctx.data = envelope
        return envelope


class ControllerHelper:
    """Registration entry point, configured once at startup.

    Usage:
        helper = ControllerHelper(settings)
        hotels = ModelRepository(Hotel)
        deals = helper.build_controller(
            ModelRepository(Deal),
            [hotels],
            ControllerOptions(filtering=True, deletion_restrictions={"where": {"archived": False}}),
        )
    """

    def __init__(self, config: Settings, renderer: Renderer | None = None) -> None:
        self.page_size = config.app.query or DEFAULT_PAGE_SIZE
        self.timeout = config.app.persistence_timeout
        self.renderer = renderer or ColumnRenderer()

    def build_controller(
        self,
        entity: QueryableEntity,
        reference_models: Sequence[QueryableEntity] | None = None,
        options: ControllerOptions | None = None,
    ) -> CrudController:
        for handle in (entity, *(reference_models or ())):
            if not isinstance(handle, QueryableEntity):
                raise TypeError(f"{handle!r} does not implement QueryableEntity")
        return CrudController(
            entity,
            reference_models or (),
            options or ControllerOptions(),
            page_size=self.page_size,
            timeout=self.timeout,
            renderer=self.renderer,
        )
