"""
Pipeline de mutation de commande (checkout).

Enchaîne les appels backend qui amènent la commande de « sièges choisis » à « jeton client émis »:
  1) addCustomer            -> rattache le client
  2) get Payments           -> cherche un paiement existant (clé "state" ignorée)
  3) addPayment             -> seulement si aucun paiement n'existe
  4) set                    -> mode de livraison, moyen de paiement, porteur de carte
  5) getPaymentClientToken  -> jeton client + URL de retour 3DS
  6) get Payments::<id>     -> détails du paiement (server_to_client_token, pa_request_URL, ...)
Tout appel non-2xx stoppe la séquence (PipelineStepFailed tagué avec l'étape), sans rollback:
le backend reste la source de vérité et la commande reprend là où elle s'est arrêtée.
"""
import logging
from typing import Any, Dict, Optional

from orderbridge.errors import NoPaymentIdAllocated, PipelineStepFailed
from orderbridge.upstream.client import BackendClient, BackendResult
from orderbridge.upstream.payloads import action, data_section, envelope, payment_key, standard

logger = logging.getLogger(__name__)

STEP_ATTACH_CUSTOMER = "addCustomer"
STEP_CHECK_PAYMENT = "checkPayments"
STEP_ADD_PAYMENT = "addPayment"
STEP_CONFIGURE = "set delivery/payment"
STEP_CLIENT_TOKEN = "getPaymentClientToken"
STEP_PAYMENT_DETAILS = "getPaymentDetails"


def find_payment_id(payments: Dict[str, Any]) -> Optional[str]:
    """Premier payment_id non vide d'une map Payments (la clé "state" est une métadonnée)."""
    for key, record in (payments or {}).items():
        if key == "state" or not isinstance(record, dict):
            continue
        payment_id = standard(record.get("payment_id"))
        if payment_id:
            return str(payment_id)
    return None


class CheckoutResult:
    def __init__(self, payment_id: str, payment_details: Any, reused_payment: bool):
        self.payment_id = payment_id
        self.payment_details = payment_details
        self.reused_payment = reused_payment

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paymentId": self.payment_id,
            "paymentID": self.payment_id,
            "payment_details": self.payment_details,
            "reusedPayment": self.reused_payment,
        }


class OrderPipeline:
    def __init__(self, client: BackendClient, order_path: str):
        self.client = client
        self.order_path = order_path

    def _call(self, step: str, payload: Dict[str, Any]) -> BackendResult:
        result = self.client.send(self.order_path, payload)
        logger.info("orders.pipeline step=%s status=%s", step, result.status)
        if not result.ok:
            raise PipelineStepFailed(step, result)
        return result

    def attach_customer(self, customer_number: str) -> BackendResult:
        payload = envelope(
            actions=[action("addCustomer", {"Customer::customer_number": customer_number})],
            get=["Order::order_number", "Payments"],
        )
        return self._call(STEP_ATTACH_CUSTOMER, payload)

    def existing_payment_id(self) -> Optional[str]:
        result = self._call(STEP_CHECK_PAYMENT, envelope(get=["Payments"]))
        return find_payment_id(data_section(result.data, "Payments"))

    def allocate_payment(self) -> str:
        result = self._call(STEP_ADD_PAYMENT, envelope(actions=[action("addPayment")], get=["Payments"]))
        payment_id = find_payment_id(data_section(result.data, "Payments"))
        if not payment_id:
            raise NoPaymentIdAllocated(details=result.data)
        return payment_id

    def ensure_payment(self):
        """Retourne (payment_id, réutilisé?): addPayment n'est appelé que si aucun paiement n'existe."""
        payment_id = self.existing_payment_id()
        if payment_id:
            logger.info("orders.pipeline reuse payment_id=%s", payment_id)
            return payment_id, True
        return self.allocate_payment(), False

    def configure_payment(
        self,
        payment_id: str,
        delivery_method: Any,
        payment_method: Any,
        cardholder_name: Optional[str] = None,
        swipe_indicator: Optional[str] = None,
    ) -> BackendResult:
        fields: Dict[str, Any] = {
            "Order::deliverymethod_id": delivery_method,
            payment_key(payment_id, "active_payment"): payment_method,
        }
        if swipe_indicator:
            fields[payment_key(payment_id, "swipe_indicator")] = swipe_indicator
        if cardholder_name:
            fields[payment_key(payment_id, "cardholder_name")] = cardholder_name
        payload = envelope(set_fields=fields, get=["Order::order_number", "Payments"])
        return self._call(STEP_CONFIGURE, payload)

    def request_client_token(self, payment_id: str, pa_response_url: str) -> BackendResult:
        payload = envelope(
            actions=[action("getPaymentClientToken", {"payment_id": payment_id, "pa_response_URL": pa_response_url})],
            get=["Order::order_number", "Payments"],
        )
        return self._call(STEP_CLIENT_TOKEN, payload)

    def fetch_payment_details(self, payment_id: str) -> Any:
        key = payment_key(payment_id)
        result = self._call(STEP_PAYMENT_DETAILS, envelope(get=[key]))
        return result.field(key)

    def run(
        self,
        customer_number: str,
        delivery_method: Any,
        payment_method: Any,
        pa_response_url: str,
        cardholder_name: Optional[str] = None,
        swipe_indicator: Optional[str] = None,
    ) -> CheckoutResult:
        self.attach_customer(customer_number)
        payment_id, reused = self.ensure_payment()
        self.configure_payment(payment_id, delivery_method, payment_method, cardholder_name, swipe_indicator)
        self.request_client_token(payment_id, pa_response_url)
        details = self.fetch_payment_details(payment_id)
        logger.info("orders.pipeline done payment_id=%s reused=%s", payment_id, reused)
        return CheckoutResult(payment_id, details, reused)
