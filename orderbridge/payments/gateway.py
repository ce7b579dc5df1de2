"""
Passerelle de paiement (Adyen) vue depuis l'Order API.
- client_config: configuration du drop-in (clé client, environnement...), avec repli de test
- gateway_config: paymentmethod_gateway_config d'un paiement (JSON des moyens de paiement)
- payment_method_type: paymentmethod_type d'un paiement
"""
import json
import logging
from typing import Any, Dict, Optional

from orderbridge import config
from orderbridge.errors import BackendCallFailed, BackendUnreachable, InvalidBackendResponse, NotFound
from orderbridge.payments.stepup import STEP_UP_CODE
from orderbridge.upstream.client import BackendClient, BackendResult, require_path
from orderbridge.upstream.payloads import action, envelope, first_value, payment_key, return_value

logger = logging.getLogger(__name__)

PAYMENT_METHOD_OBJECT = "myPaymentMethod"


def fallback_client_config(**extra: Any) -> Dict[str, Any]:
    cfg: Dict[str, Any] = {
        "environment": config.GATEWAY_FALLBACK_ENVIRONMENT,
        "clientKey": config.GATEWAY_FALLBACK_CLIENT_KEY,
        "countryCode": config.GATEWAY_FALLBACK_COUNTRY,
        "currency": config.GATEWAY_FALLBACK_CURRENCY,
    }
    cfg.update(extra)
    return cfg


def parse_client_config(body: Any) -> Optional[Dict[str, Any]]:
    """Extrait la config Adyen de return[0].values[0].value (JSON {config: {...}}); None si absente."""
    raw = return_value(body, "getPaymentClientConfig")
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("gateway.client_config unparseable value")
        return None
    adyen = parsed.get("config") if isinstance(parsed, dict) else None
    if not adyen:
        return None
    return {
        "environment": adyen.get("adyen_env") or config.GATEWAY_FALLBACK_ENVIRONMENT,
        "clientKey": adyen.get("adyen_client_key") or config.GATEWAY_FALLBACK_CLIENT_KEY,
        "countryCode": config.GATEWAY_FALLBACK_COUNTRY,
        "currency": config.GATEWAY_FALLBACK_CURRENCY,
        "showPayButton": adyen.get("adyen_showpaybutton") or False,
        "hostedFieldUps": adyen.get("hosted_field_ups") or False,
        "hostedPageUps": adyen.get("hosted_page_ups") or False,
        "phoneServiceUps": adyen.get("phone_service_ups") or False,
        "adyenGatewayType": adyen.get("adyen_gateway_type") or False,
        "deviceFingerprint": adyen.get("device_fingerprint"),
        "rawConfig": adyen,
    }


def client_config(client: BackendClient, payment_method_id: Optional[str]) -> Dict[str, Any]:
    """Ne lève jamais pour les cas attendus: toute indisponibilité renvoie la config de repli."""
    if not payment_method_id:
        return fallback_client_config()
    if not client.session.is_authenticated or not config.PAYMENT_METHOD_PATH:
        logger.info("gateway.client_config fallback reason=no_session_or_path")
        return fallback_client_config()

    payload = envelope(
        actions=[action("getPaymentClientConfig", {"payment_method_id": payment_method_id}, [STEP_UP_CODE])],
        object_name=PAYMENT_METHOD_OBJECT,
    )
    try:
        result = client.send(config.PAYMENT_METHOD_PATH, payload)
    except BackendUnreachable as e:
        return fallback_client_config(error=e.error, details=e.details)
    if not result.ok:
        logger.warning("gateway.client_config status=%s", result.status)
        return fallback_client_config(apiError=result.data)
    parsed = parse_client_config(result.data)
    if parsed is None:
        return fallback_client_config(apiResponse=result.data, fallback=True)
    return parsed


def _order_field(client: BackendClient, key: str, failure: str) -> BackendResult:
    result = client.send(require_path("ORDER_PATH"), envelope(get=[key]))
    if not isinstance(result.data, dict):
        raise InvalidBackendResponse(details=result.data)
    if not result.ok:
        raise BackendCallFailed(failure, result)
    return result


def gateway_config(client: BackendClient, payment_id: str) -> Dict[str, Any]:
    key = payment_key(payment_id, "paymentmethod_gateway_config")
    result = _order_field(client, key, "Failed to fetch payment gateway config")
    field = result.field(key)
    if not field:
        raise NotFound("Payment gateway config not found", paymentID=payment_id, rawResponse=result.data)

    response: Dict[str, Any] = {"success": True, "paymentID": payment_id, "gatewayConfig": field, "rawResponse": result.data}
    methods_json = first_value(field, ("standard", "display", "input"))
    if not methods_json:
        response["warning"] = "No payment methods configuration found"
        return response
    try:
        response["paymentMethodsResponse"] = json.loads(methods_json)
    except (TypeError, ValueError) as e:
        response["parseError"] = str(e)
    return response


def payment_method_type(client: BackendClient, payment_id: str) -> Dict[str, Any]:
    key = payment_key(payment_id, "paymentmethod_type")
    result = _order_field(client, key, "Failed to fetch payment method type")
    field = result.field(key)
    if not field:
        raise NotFound("Payment method type not found", paymentID=payment_id, rawResponse=result.data)
    return {"success": True, "paymentID": payment_id, "paymentMethodType": field, "rawResponse": result.data}
