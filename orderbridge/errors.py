"""
Erreurs métier du service.
- Chaque type porte son code HTTP et sait se sérialiser en JSON ({error, details?, status, ...}).
- Le rendu est centralisé dans app_setup.exceptions (handler FastAPI).
- BackendCallFailed transporte le résultat brut du backend pour la console de debug du front.
"""
from typing import Any, Dict, Optional


class OrderBridgeError(Exception):
    status_code = 500
    error = "Erreur interne"

    def __init__(
        self,
        error: Optional[str] = None,
        details: Any = None,
        status_code: Optional[int] = None,
        **extra: Any,
    ):
        self.error = error or self.error
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra
        super().__init__(self.error)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.error}
        if self.details is not None:
            payload["details"] = self.details
        payload.update(self.extra)
        return payload


class NotAuthenticated(OrderBridgeError):
    status_code = 401
    error = "Not authenticated"


class MissingConfiguration(OrderBridgeError):
    status_code = 500

    def __init__(self, name: str):
        super().__init__(f"{name} not configured")


class ValidationError(OrderBridgeError):
    status_code = 400

    def __init__(self, param: str, message: Optional[str] = None):
        self.param = param
        super().__init__(f"Missing required parameter: {param}", message=message or f"{param} is required")


class NotFound(OrderBridgeError):
    status_code = 404
    error = "Not found"


class InvalidBackendResponse(OrderBridgeError):
    """Corps non JSON là où un objet structuré est indispensable."""
    status_code = 500
    error = "Invalid response from payment API"


class BackendUnreachable(OrderBridgeError):
    status_code = 500
    error = "Backend unreachable"


class BackendCallFailed(OrderBridgeError):
    """Réponse non-2xx du backend (hors step-up): statut et corps transmis tels quels."""

    def __init__(self, error: str, result, **extra: Any):
        self.result = result
        super().__init__(error, details=result.data, status_code=result.status or 500, **extra)

    def to_payload(self) -> Dict[str, Any]:
        from orderbridge import config
        payload = super().to_payload()
        payload["status"] = self.status_code
        if config.EXPOSE_DEBUG_METADATA:
            payload.update(self.result.debug())
        return payload


class PipelineStepFailed(BackendCallFailed):
    def __init__(self, step: str, result):
        self.step = step
        super().__init__(f"Checkout failed ({step})", result, step=step)


class NoPaymentIdAllocated(OrderBridgeError):
    status_code = 500
    error = "No paymentID found after addPayment"


class StepUpRequired(OrderBridgeError):
    """Le backend exige une authentification 3DS (code 4294): 402 avec la charge du challenge."""
    status_code = 402
    error = "3ds required"

    def __init__(self, payment_id: str, pa_request_info: Any, pa_request_url: Optional[str], raw_response: Any = None):
        from orderbridge.payments.stepup import STEP_UP_CODE
        self.payment_id = payment_id
        self.pa_request_info = pa_request_info
        self.pa_request_url = pa_request_url
        super().__init__(
            success=False,
            code=STEP_UP_CODE,
            paymentId=payment_id,
            paymentID=payment_id,
            paRequestInfo=pa_request_info,
            paRequestURL=pa_request_url,
            rawResponse=raw_response,
        )


class VerificationFailed(OrderBridgeError):
    """Echo de external_payment_data différent de la valeur envoyée: échec métier « doux » (200)."""
    status_code = 200
    error = "Adyen payment data verification failed"

    def __init__(self, payment_id: str, expected: Any, actual: Any, payments: Any = None, raw_response: Any = None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            success=False,
            paymentID=payment_id,
            externalDataSet=False,
            expectedData=expected,
            actualData=actual,
            payments=payments,
            message="Adyen payment data verification failed - external data not set correctly",
            rawResponse=raw_response,
        )
