"""
Classification des réponses de l'action "insert" (finalisation de commande).

- Avertissements « doux » (5008, 4224, 5388): acceptés dans la requête, jamais bloquants.
- Step-up 3DS: code 4294, lu d'abord dans la structure (exception.number, codes imbriqués).
  En dernier recours: corps texte, simple sous-chaîne; corps JSON, nombre isolé dans une
  valeur texte ("warning 4294 raised" oui, "ORD-14294" non).
"""
import re
from enum import Enum
from typing import Any, Iterator

STEP_UP_CODE = 4294
SOFT_WARNING_CODES = (5008, 4224, 5388)
_CODE_KEYS = ("number", "code", "errorCode", "warning_number")
_STEP_UP_TOKEN = re.compile(r"(?<!\d)%d(?!\d)" % STEP_UP_CODE)


class InsertOutcome(str, Enum):
    FINALIZED = "finalized"
    STEP_UP = "challenge_required"
    FAILED = "failed"


def _as_int(value: Any):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def iter_strings(body: Any) -> Iterator[str]:
    if isinstance(body, str):
        yield body
    elif isinstance(body, dict):
        for value in body.values():
            yield from iter_strings(value)
    elif isinstance(body, list):
        for item in body:
            yield from iter_strings(item)


def iter_codes(body: Any) -> Iterator[int]:
    """Parcourt un corps JSON et produit les codes numériques portés par les clés connues."""
    if isinstance(body, dict):
        for key, value in body.items():
            if key in _CODE_KEYS:
                code = _as_int(value)
                if code is not None:
                    yield code
            if isinstance(value, (dict, list)):
                yield from iter_codes(value)
    elif isinstance(body, list):
        for item in body:
            yield from iter_codes(item)


def is_step_up_required(body: Any) -> bool:
    if isinstance(body, (dict, list)):
        if isinstance(body, dict):
            exc = body.get("exception")
            if isinstance(exc, dict) and _as_int(exc.get("number")) == STEP_UP_CODE:
                return True
        if STEP_UP_CODE in iter_codes(body):
            return True
        return any(_STEP_UP_TOKEN.search(text) for text in iter_strings(body))
    if body is None:
        return False
    return str(STEP_UP_CODE) in str(body)


def classify_insert(result) -> InsertOutcome:
    if result.ok:
        return InsertOutcome.FINALIZED
    if is_step_up_required(result.data):
        return InsertOutcome.STEP_UP
    return InsertOutcome.FAILED
