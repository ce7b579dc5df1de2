"""
Lecture et retouches de la commande courante (hors pipeline de checkout).
La commande est implicite: le backend suit « la commande en cours » de la session.
"""
import logging
from typing import Any, Dict

from orderbridge.errors import BackendCallFailed, InvalidBackendResponse, OrderBridgeError
from orderbridge.orders.pipeline import CheckoutResult, OrderPipeline
from orderbridge.upstream.client import BackendClient, require_path
from orderbridge.upstream.payloads import action, data_section, envelope, standard

logger = logging.getLogger(__name__)

SEAT_REMOVAL_WARNING = 5414
CUSTOMER_OBJECT = "myCustomer"


def checkout(
    client: BackendClient,
    delivery_method: Any,
    payment_method: Any,
    pa_response_url: str,
    customer_number: str,
    cardholder_name=None,
    swipe_indicator=None,
) -> CheckoutResult:
    pipeline = OrderPipeline(client, require_path("ORDER_PATH"))
    result = pipeline.run(
        customer_number,
        delivery_method,
        payment_method,
        pa_response_url,
        cardholder_name=cardholder_name,
        swipe_indicator=swipe_indicator,
    )
    # Le paymentId reste valable pour /transaction, /processAdyenPayment et le retour 3DS
    client.session.payment_id = result.payment_id
    return result


def order_summary(client: BackendClient) -> Dict[str, Any]:
    result = client.send(require_path("ORDER_PATH"), envelope(get=["Order", "Admissions"]))
    if not result.ok:
        raise BackendCallFailed("Failed to fetch order details", result)
    return {
        "success": True,
        "order": data_section(result.data, "Order"),
        "rawResponse": result.data,
        "admissions": data_section(result.data, "Admissions"),
    }


def payment_details(client: BackendClient) -> Dict[str, Any]:
    result = client.send(require_path("ORDER_PATH"), envelope(get=["Payments"]))
    if not isinstance(result.data, dict):
        raise InvalidBackendResponse("Invalid JSON from upstream", details=result.data)
    if not result.ok:
        raise BackendCallFailed("Failed to fetch payment details", result)
    return {"success": True, "payments": data_section(result.data, "Payments"), "rawResponse": result.data}


def remove_admission(client: BackendClient, admission_id: str) -> Dict[str, Any]:
    payload = envelope(
        actions=[action("manageAdmissions", {"removeAdmissionID": [admission_id]}, [SEAT_REMOVAL_WARNING])],
        get=["Order", "Admissions", "AvailablePaymentMethods", "DeliveryMethodDetails", "Seats"],
    )
    result = client.send(require_path("ORDER_PATH"), payload)
    if not result.ok:
        raise BackendCallFailed("Failed to remove admission", result)
    logger.info("orders.remove_seat admission_id=%s", admission_id)
    return {"success": True, "response": result.data}


def account_details(client: BackendClient) -> Dict[str, Any]:
    """customer_id de la session backend, puis chargement du client (Customer, Payments, Addresses)."""
    user_path = require_path("USER_PATH")
    customer_path = require_path("CUSTOMER_PATH")

    who = client.send(user_path, {"session": {"get": ["customer_id"]}})
    if not who.ok:
        raise BackendCallFailed("Failed to retrieve customer_id from session", who)
    customer_id = standard(who.field("customer_id"))
    if not customer_id and isinstance(who.data, dict):
        customer_id = standard(who.data.get("customer_id"))
    if not customer_id:
        raise OrderBridgeError(
            "Customer ID not found in session",
            status_code=400,
            success=False,
            message="Customer ID not found in session",
        )

    payload = envelope(
        actions=[action("load", {"Customer::customer_id": customer_id})],
        get=["Customer", "Payments", "Addresses"],
        object_name=CUSTOMER_OBJECT,
    )
    result = client.send(customer_path, payload)
    if not result.ok:
        raise BackendCallFailed("Failed to load customer details", result)
    return {"success": True, "response": result.data}
