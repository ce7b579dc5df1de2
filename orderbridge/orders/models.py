from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    delivery_method: Any = Field(default=None, validation_alias=AliasChoices("deliveryMethod", "delivery_method"))
    payment_method: Any = Field(default=None, validation_alias=AliasChoices("paymentMethod", "payment_method"))
    cardholder_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("cardholderName", "cardholder_name"))
    customer_number: Optional[str] = Field(default=None, validation_alias=AliasChoices("customerNumber", "customer_number"))
    pa_response_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("paResponseURL", "pa_response_URL"))


class RemoveSeatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    admission_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("admissionId", "admissionID", "admission_id"))
