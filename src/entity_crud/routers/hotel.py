"""Hotel and deal endpoints.

Deals are nested under their hotel; an archived deal can't be deleted.
"""

from fastapi import APIRouter

from entity_crud.config import settings
from entity_crud.models import Deal, Hotel
from entity_crud.repositories.entity import ModelRepository
from entity_crud.routers.crud import register_crud_routes
from entity_crud.services.controller import ControllerHelper, ControllerOptions

helper = ControllerHelper(settings)

hotels = ModelRepository(Hotel)
deals = ModelRepository(Deal)

hotel_controller = helper.build_controller(hotels, options=ControllerOptions(filtering=True))
deal_controller = helper.build_controller(
    deals,
    [hotels],
    ControllerOptions(filtering=True, deletion_restrictions={"where": {"archived": False}}),
)

router = APIRouter()
register_crud_routes(router, hotel_controller, "/hotels")
register_crud_routes(router, deal_controller, "/hotels/{hotel_id}/deals")
