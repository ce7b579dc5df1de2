import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from orderbridge import config
from orderbridge.errors import ValidationError
from orderbridge.payments import gateway
from orderbridge.payments.models import (
    AdyenPaymentRequest,
    ClientConfigRequest,
    PaymentIdRequest,
    ThreeDSResponseRequest,
    TransactionRequest,
)
from orderbridge.payments.service import PaymentCompletion
from orderbridge.payments.threeds import encode_pa_response
from orderbridge.upstream.client import BackendClient, get_backend_client, require_backend_client, require_path

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Payments"])


def _payment_id(client: BackendClient, requested: Optional[str]) -> str:
    """paymentId de la requête, sinon celui mémorisé par le dernier checkout de la session."""
    payment_id = requested or client.session.payment_id
    if not payment_id:
        raise ValidationError("paymentID")
    return payment_id


def _completion(client: BackendClient) -> PaymentCompletion:
    return PaymentCompletion(client, require_path("ORDER_PATH"))


@router.post("/transaction")
def process_transaction(body: Optional[TransactionRequest] = None, client: BackendClient = Depends(require_backend_client)) -> Dict[str, Any]:
    """
    Finalise la commande (champs hébergés: la carte est déjà captée côté client).
    - 200 {success, redirectUrl, transactionDetails} si la commande est insérée
    - 402 "3ds required" si le backend exige un challenge
    - statut du backend sinon
    """
    body = body or TransactionRequest()
    completion = _completion(client)
    payment_id = _payment_id(client, body.payment_id)
    logger.info("payments.transaction payment_id=%s", payment_id)
    return completion.finalize(payment_id, body.payment_method)


@router.post("/processAdyenPayment")
def process_adyen_payment(body: Optional[AdyenPaymentRequest] = None, client: BackendClient = Depends(require_backend_client)) -> Dict[str, Any]:
    """Dépose le blob du drop-in dans external_payment_data, vérifie l'écho puis finalise."""
    body = body or AdyenPaymentRequest()
    completion = _completion(client)
    if body.external_data in (None, ""):
        raise ValidationError("externalData")
    payment_id = _payment_id(client, body.payment_id)
    logger.info("payments.adyen payment_id=%s", payment_id)
    return completion.process_external(payment_id, body.external_data)


@router.post("/processThreeDSResponse")
def process_three_ds_response(body: Optional[ThreeDSResponseRequest] = None, client: BackendClient = Depends(require_backend_client)) -> Dict[str, Any]:
    """
    Retour du challenge 3DS.
    - pa_response_information déjà encodée, ou `query` brute encodée ici
    - pa_response_URL: celle de la requête, sinon PA_RESPONSE_URL
    """
    body = body or ThreeDSResponseRequest()
    completion = _completion(client)
    payment_id = _payment_id(client, body.payment_id)
    information = body.pa_response_information
    if not information and body.query:
        information = encode_pa_response(body.query)
    if not information:
        raise ValidationError("pa_response_information")
    response_url = body.pa_response_url or config.PA_RESPONSE_URL
    logger.info("payments.3ds_response payment_id=%s", payment_id)
    return completion.submit_challenge_response(payment_id, information, response_url)


@router.post("/getPaymentClientConfig")
def get_payment_client_config(body: Optional[ClientConfigRequest] = None, client: BackendClient = Depends(get_backend_client)) -> Dict[str, Any]:
    """Configuration du drop-in; toujours 200 (config de repli si pas de session ou backend en échec)."""
    body = body or ClientConfigRequest()
    return gateway.client_config(client, body.payment_method_id)


@router.post("/getPaymentResponse")
def get_payment_response(body: Optional[PaymentIdRequest] = None, client: BackendClient = Depends(require_backend_client)) -> Dict[str, Any]:
    body = body or PaymentIdRequest()
    require_path("ORDER_PATH")
    return gateway.gateway_config(client, _payment_id(client, body.payment_id))


@router.post("/getPaymentMethodType")
def get_payment_method_type(body: Optional[PaymentIdRequest] = None, client: BackendClient = Depends(require_backend_client)) -> Dict[str, Any]:
    body = body or PaymentIdRequest()
    require_path("ORDER_PATH")
    return gateway.payment_method_type(client, _payment_id(client, body.payment_id))
