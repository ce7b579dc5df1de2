"""Corps de requête des endpoints de paiement (clés camelCase du front acceptées telles quelles)."""
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

_PAYMENT_ID = AliasChoices("paymentID", "paymentId", "payment_id")


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)


class TransactionRequest(_Body):
    payment_id: Optional[str] = Field(default=None, validation_alias=_PAYMENT_ID)
    payment_data: Any = Field(default=None, validation_alias=AliasChoices("paymentData", "payment_data"))
    order_data: Optional[Dict[str, Any]] = Field(default=None, validation_alias=AliasChoices("orderData", "order_data"))

    @property
    def payment_method(self) -> str:
        return (self.order_data or {}).get("paymentMethod") or "Credit Card"


class AdyenPaymentRequest(_Body):
    payment_id: Optional[str] = Field(default=None, validation_alias=_PAYMENT_ID)
    external_data: Any = Field(default=None, validation_alias=AliasChoices("externalData", "external_data"))


class ThreeDSResponseRequest(_Body):
    payment_id: Optional[str] = Field(default=None, validation_alias=_PAYMENT_ID)
    pa_response_information: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("pa_response_information", "paResponseInformation", "PaRes"),
    )
    pa_response_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("pa_response_URL", "paResponseURL", "pa_response_url"),
    )
    # Query string brute du retour 3DS, encodée côté serveur si l'information n'est pas fournie
    query: Optional[str] = None


class PaymentIdRequest(_Body):
    payment_id: Optional[str] = Field(default=None, validation_alias=_PAYMENT_ID)


class ClientConfigRequest(_Body):
    payment_method_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("paymentMethodId", "paymentMethodID", "payment_method_id"),
    )
