"""Route registration for a CRUD controller.

``register_crud_routes`` mounts the five operations of one controller::

    GET    {collection}             -> controller.all
    POST   {collection}             -> controller.create
    GET    {collection}/{<id_field>} -> controller.get
    PUT    {collection}/{<id_field>} -> controller.update
    DELETE {collection}/{<id_field>} -> controller.delete

Path parameters are not declared on the endpoint functions: the controller
reads them from ``request.path_params`` and validates them itself, so the
same endpoints serve any reference chain.
"""

from typing import Any

from fastapi import APIRouter, Request

from entity_crud.dependencies import DB, CurrentUserId
from entity_crud.exceptions import ValidationError
from entity_crud.schemas.envelope import EntityResponse, ListResponse, MutationResponse
from entity_crud.services.controller import CrudController, RequestContext


async def _json_object(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _query(request: Request) -> dict[str, str]:
    """Query string as a flat mapping; each key may appear once."""
    params = request.query_params
    for key in params.keys():
        if len(params.getlist(key)) > 1:
            raise ValidationError(f"Query parameter {key} is repeated")
    return dict(params)


def _context(request: Request, db: Any, **kwargs: Any) -> RequestContext:
    return RequestContext(
        db=db,
        path_params=dict(request.path_params),
        query=_query(request),
        **kwargs,
    )


def register_crud_routes(router: APIRouter, controller: CrudController, collection_path: str) -> None:
    entity = controller.entity
    item_path = f"{collection_path}/{{{entity.id_field}}}"
    route_name = entity.id_field.removesuffix("_id")

    async def list_entities(request: Request, db: DB) -> ListResponse:
        envelope = await controller.all(_context(request, db))
        return ListResponse.from_envelope(envelope)

    async def get_entity(request: Request, db: DB) -> EntityResponse:
        envelope = await controller.get(_context(request, db))
        return EntityResponse.from_envelope(envelope)

    async def create_entity(request: Request, db: DB, user_id: CurrentUserId) -> MutationResponse:
        ctx = _context(request, db, body=await _json_object(request), user_id=user_id)
        return MutationResponse.from_envelope(await controller.create(ctx))

    async def update_entity(request: Request, db: DB, user_id: CurrentUserId) -> MutationResponse:
        ctx = _context(request, db, body=await _json_object(request), user_id=user_id)
        return MutationResponse.from_envelope(await controller.update(ctx))

    async def delete_entity(request: Request, db: DB, user_id: CurrentUserId) -> MutationResponse:
        envelope = await controller.delete(_context(request, db, user_id=user_id))
        return MutationResponse.from_envelope(envelope)

    routes = [
        (collection_path, list_entities, "GET", ListResponse, f"List {entity.name} records"),
        (collection_path, create_entity, "POST", MutationResponse, f"Create a {entity.name}"),
        (item_path, get_entity, "GET", EntityResponse, f"Get a {entity.name}"),
        (item_path, update_entity, "PUT", MutationResponse, f"Update a {entity.name}"),
        (item_path, delete_entity, "DELETE", MutationResponse, f"Delete a {entity.name}"),
    ]
    for path, endpoint, method, response_model, summary in routes:
        router.add_api_route(
            path,
            endpoint,
            methods=[method],
            response_model=response_model,
            status_code=200,
            summary=summary,
            name=f"{endpoint.__name__}_{route_name}",
        )
