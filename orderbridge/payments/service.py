"""
Finalisation du paiement et machine à états 3DS.

États: Initiated -> DataSubmitted -> Finalized
                                  -> ChallengeRequired -> ChallengeSubmitted -> Finalized
                                  -> Failed
Entrées:
  - finalize()                 : champs hébergés, la carte est déjà captée côté client -> insert
  - process_external()         : blob passerelle (Adyen drop-in) -> set external_payment_data,
                                 vérification de l'écho, puis insert
  - submit_challenge_response(): retour du challenge 3DS -> set pa_response_* puis insert
Aucune relance automatique: tout échec hors step-up est terminal et remonté tel quel.
"""
import logging
import random
import string
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from orderbridge.errors import BackendCallFailed, StepUpRequired, VerificationFailed
from orderbridge.payments.stepup import SOFT_WARNING_CODES, InsertOutcome, classify_insert
from orderbridge.payments.threeds import unwrap_json_field
from orderbridge.upstream.client import BackendClient, BackendResult
from orderbridge.upstream.payloads import action, data_section, envelope, first_value, payment_key, standard

logger = logging.getLogger(__name__)

_TXN_ALPHABET = string.digits + string.ascii_uppercase


class PaymentState(str, Enum):
    INITIATED = "Initiated"
    DATA_SUBMITTED = "DataSubmitted"
    CHALLENGE_REQUIRED = "ChallengeRequired"
    CHALLENGE_SUBMITTED = "ChallengeSubmitted"
    FINALIZED = "Finalized"
    FAILED = "Failed"


def make_transaction_id(now_ms: Optional[int] = None) -> str:
    """Jeton d'affichage TXN-<epoch-ms>-<6 car. base36>; aucune signification côté backend."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(random.choices(_TXN_ALPHABET, k=6))
    return f"TXN-{now_ms}-{suffix}"


def order_number_of(result: BackendResult) -> Optional[str]:
    value = standard(result.field("Order::order_number"))
    return str(value) if value else None


def finalized_payload(order_number: Optional[str], payment_method: str, backend_data: Any) -> Dict[str, Any]:
    transaction_id = make_transaction_id()
    order_id = order_number or transaction_id
    return {
        "success": True,
        "orderId": order_id,
        "transactionId": transaction_id,
        "redirectUrl": f"/viewOrder.html?orderId={order_id}&transactionId={transaction_id}",
        "transactionDetails": {
            "success": True,
            "transactionId": transaction_id,
            "orderId": order_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "paymentMethod": payment_method or "N/A",
            "status": "completed",
            "backendResponse": backend_data,
        },
    }


class PaymentCompletion:
    def __init__(self, client: BackendClient, order_path: str):
        self.client = client
        self.order_path = order_path
        self.state = PaymentState.INITIATED

    def _transition(self, state: PaymentState, payment_id: Optional[str]) -> None:
        logger.info("payments.state %s -> %s payment_id=%s", self.state.value, state.value, payment_id)
        self.state = state

    def insert_order(self) -> BackendResult:
        """Finalisation: action insert, avertissements doux acceptés."""
        payload = envelope(
            actions=[action("insert", {"notification": "correspondence"}, SOFT_WARNING_CODES)],
            get=["Order::order_number", "Payments"],
        )
        return self.client.send(self.order_path, payload, follow_redirects=False)

    def _complete(
        self,
        payment_id: str,
        payment_method: str,
        result: BackendResult,
        failure: str = "Transaction failed",
        **extra: Any,
    ) -> Dict[str, Any]:
        outcome = classify_insert(result)
        if outcome is InsertOutcome.FINALIZED:
            self._transition(PaymentState.FINALIZED, payment_id)
            return finalized_payload(order_number_of(result), payment_method, result.data)
        if outcome is InsertOutcome.STEP_UP:
            self._transition(PaymentState.CHALLENGE_REQUIRED, payment_id)
            self.require_challenge(payment_id, result)
        self._transition(PaymentState.FAILED, payment_id)
        raise BackendCallFailed(failure, result, success=False, paymentID=payment_id, **extra)

    def finalize(self, payment_id: str, payment_method: str = "Credit Card") -> Dict[str, Any]:
        self._transition(PaymentState.DATA_SUBMITTED, payment_id)
        return self._complete(payment_id, payment_method, self.insert_order())

    def process_external(self, payment_id: str, external_data: Any) -> Dict[str, Any]:
        payload = envelope(set_fields={payment_key(payment_id, "external_payment_data"): external_data}, get=["Payments"])
        result = self.client.send(self.order_path, payload)
        if not result.ok:
            self._transition(PaymentState.FAILED, payment_id)
            raise BackendCallFailed("Failed to process Adyen payment", result, success=False, paymentID=payment_id)

        payments = data_section(result.data, "Payments")
        record = payments.get(payment_id) or {}
        echoed = standard(record.get("external_payment_data")) if isinstance(record, dict) else None
        if echoed != external_data:
            logger.warning("payments.verification_failed payment_id=%s", payment_id)
            self._transition(PaymentState.FAILED, payment_id)
            raise VerificationFailed(payment_id, external_data, echoed, payments=payments, raw_response=result.data)

        self._transition(PaymentState.DATA_SUBMITTED, payment_id)
        tx = self.insert_order()
        response = self._complete(payment_id, "Adyen", tx, failure="Failed to complete transaction", externalDataSet=True)
        response.update({
            "paymentID": payment_id,
            "externalDataSet": True,
            "transactionCompleted": True,
            "externalDataVerification": {"expectedData": external_data, "actualData": echoed},
            "payments": data_section(tx.data, "Payments"),
            "message": "Adyen payment processed and transaction completed successfully",
        })
        return response

    def require_challenge(self, payment_id: str, insert_result: BackendResult):
        """Lit pa_request_information / pa_request_URL et lève StepUpRequired (402)."""
        info_key = payment_key(payment_id, "pa_request_information")
        url_key = payment_key(payment_id, "pa_request_URL")
        result = self.client.send(self.order_path, envelope(get=[info_key, url_key]))
        if not result.ok:
            self._transition(PaymentState.FAILED, payment_id)
            raise BackendCallFailed("Failed to fetch 3DS request information", result, success=False, paymentID=payment_id)
        raise StepUpRequired(
            payment_id,
            unwrap_json_field(result.field(info_key)),
            first_value(result.field(url_key)),
            raw_response=insert_result.data,
        )

    def submit_challenge_response(self, payment_id: str, pa_response_information: str, pa_response_url: str) -> Dict[str, Any]:
        self._transition(PaymentState.CHALLENGE_SUBMITTED, payment_id)
        fields = {
            payment_key(payment_id, "pa_response_information"): pa_response_information,
            payment_key(payment_id, "pa_response_URL"): pa_response_url,
        }
        result = self.client.send(self.order_path, envelope(set_fields=fields, get=["Payments"]), follow_redirects=False)
        if not result.ok:
            # La finalisation est tentée quand même: c'est elle qui fait foi
            logger.warning("payments.pa_response_set status=%s payment_id=%s", result.status, payment_id)
        return self._complete(payment_id, "3DS Payment", self.insert_order())
