"""Endpoints événements et plan de salle (session backend requise)."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from orderbridge.errors import ValidationError
from orderbridge.events import service as events_service
from orderbridge.upstream.client import BackendClient, require_backend_client

router = APIRouter(tags=["Events"])


class AvailabilityRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    price_type_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("priceTypeId", "price_type_id"))
    num_seats: Optional[int] = Field(default=None, validation_alias=AliasChoices("numSeats", "num_seats"))


@router.get("/events/upcoming")
def upcoming_events(movePage: Optional[int] = None, client: BackendClient = Depends(require_backend_client)) -> Dict[str, Any]:
    """Recherche paginée: movePage=1 page suivante, -1 page précédente, sinon nouvelle recherche."""
    return events_service.upcoming(client, movePage)


@router.get("/events/{performance_id}")
def get_event(performance_id: str, client: BackendClient = Depends(require_backend_client)) -> Dict[str, Any]:
    return events_service.performance(client, performance_id)


@router.post("/map/availability/{performance_id}")
def map_availability(
    performance_id: str,
    body: Optional[AvailabilityRequest] = None,
    client: BackendClient = Depends(require_backend_client),
) -> Any:
    body = body or AvailabilityRequest()
    if not body.price_type_id:
        raise ValidationError("priceTypeId")
    if not body.num_seats:
        raise ValidationError("numSeats")
    return events_service.best_available(client, performance_id, body.price_type_id, body.num_seats)


@router.post("/map/pricing/{performance_id}")
def map_pricing(performance_id: str, client: BackendClient = Depends(require_backend_client)) -> Dict[str, Any]:
    return events_service.pricing(client, performance_id)
