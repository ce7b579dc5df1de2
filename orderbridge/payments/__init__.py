"""
Module 'payments' (feature-first): point d'entrée public.
Réunit la finalisation de commande (machine à états 3DS), l'encodage PA-response,
la détection du step-up et les helpers de passerelle.
"""

from .stepup import STEP_UP_CODE, SOFT_WARNING_CODES, InsertOutcome, classify_insert, is_step_up_required
from .threeds import encode_pa_response, decode_pa_response, unwrap_json_field
from .service import PaymentCompletion, PaymentState, finalized_payload, make_transaction_id
from .gateway import client_config, fallback_client_config, gateway_config, payment_method_type

__all__ = [
    # step-up
    "STEP_UP_CODE",
    "SOFT_WARNING_CODES",
    "InsertOutcome",
    "classify_insert",
    "is_step_up_required",
    # 3DS
    "encode_pa_response",
    "decode_pa_response",
    "unwrap_json_field",
    # services
    "PaymentCompletion",
    "PaymentState",
    "finalized_payload",
    "make_transaction_id",
    # passerelle
    "client_config",
    "fallback_client_config",
    "gateway_config",
    "payment_method_type",
]
