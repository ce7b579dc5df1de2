"""
Endpoints de la commande courante.
- /checkout: pipeline complet (client -> paiement -> livraison/moyen -> jeton client -> détails)
- /order, /details: lecture de la commande et des paiements
- /removeSeat: retire une admission
- /getMyAccountDetails: fiche du client connecté
Toutes ces routes exigent une session backend (401 sinon).
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from orderbridge import config
from orderbridge.errors import ValidationError
from orderbridge.orders import service as orders_service
from orderbridge.orders.models import CheckoutRequest, RemoveSeatRequest
from orderbridge.upstream.client import BackendClient, require_backend_client

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Order"])


@router.post("/checkout")
def checkout(body: Optional[CheckoutRequest] = None, client: BackendClient = Depends(require_backend_client)) -> Dict[str, Any]:
    body = body or CheckoutRequest()
    if body.delivery_method in (None, ""):
        raise ValidationError("deliveryMethod")
    if body.payment_method in (None, ""):
        raise ValidationError("paymentMethod")

    customer_number = body.customer_number or client.session.customer_number or config.DEFAULT_CUSTOMER_NUMBER
    result = orders_service.checkout(
        client,
        body.delivery_method,
        body.payment_method,
        body.pa_response_url or config.PA_RESPONSE_URL,
        customer_number,
        cardholder_name=body.cardholder_name,
        swipe_indicator=config.SWIPE_INDICATOR or None,
    )
    return result.to_dict()


@router.get("/order")
def get_order(client: BackendClient = Depends(require_backend_client)) -> Dict[str, Any]:
    return orders_service.order_summary(client)


@router.get("/details")
def get_payment_details(client: BackendClient = Depends(require_backend_client)) -> Dict[str, Any]:
    return orders_service.payment_details(client)


@router.post("/removeSeat")
def remove_seat(body: Optional[RemoveSeatRequest] = None, client: BackendClient = Depends(require_backend_client)) -> Dict[str, Any]:
    body = body or RemoveSeatRequest()
    if not body.admission_id:
        raise ValidationError("admissionId")
    return orders_service.remove_admission(client, body.admission_id)


@router.post("/getMyAccountDetails")
def get_my_account_details(client: BackendClient = Depends(require_backend_client)) -> Dict[str, Any]:
    return orders_service.account_details(client)
