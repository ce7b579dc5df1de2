"""
Enveloppes de requête de l'Order API et lecture des champs de réponse.

Requête: {actions?: [{method, params?, acceptWarnings?}], set?: {...}, get?: [...], objectName}
Réponse: {data: {champ: {standard, display?, input?}}} ou {return: [{method, values: [{name, value}]}]}
"""
from typing import Any, Dict, Iterable, List, Optional

ORDER_OBJECT = "myOrder"


def action(method: str, params: Optional[Dict[str, Any]] = None, accept_warnings: Optional[Iterable[int]] = None) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"method": method}
    if params is not None:
        entry["params"] = params
    if accept_warnings:
        entry["acceptWarnings"] = list(accept_warnings)
    return entry


def envelope(
    actions: Optional[List[Dict[str, Any]]] = None,
    set_fields: Optional[Dict[str, Any]] = None,
    get: Optional[List[str]] = None,
    object_name: Optional[str] = ORDER_OBJECT,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {}
    if actions:
        body["actions"] = actions
    if set_fields:
        body["set"] = set_fields
    if get:
        body["get"] = get
    if object_name:
        body["objectName"] = object_name
    return body


def payment_key(payment_id: str, field: Optional[str] = None) -> str:
    key = f"Payments::{payment_id}"
    return f"{key}::{field}" if field else key


def standard(field: Any) -> Any:
    """Valeur 'standard' d'un champ {standard, display, input} (None si absent)."""
    if isinstance(field, dict):
        return field.get("standard")
    return None


def first_value(field: Any, order=("standard", "input", "display")) -> Any:
    """Premier sous-champ non vide dans l'ordre donné."""
    if not isinstance(field, dict):
        return None
    for name in order:
        value = field.get(name)
        if value:
            return value
    return None


def data_section(body: Any, name: str) -> Dict[str, Any]:
    if isinstance(body, dict):
        section = (body.get("data") or {}).get(name)
        if isinstance(section, dict):
            return section
    return {}


def return_value(body: Any, method: str, name: str = "result") -> Optional[str]:
    """Valeur d'une réponse action-style: return[0].values[0] si method/name correspondent."""
    if not isinstance(body, dict):
        return None
    returns = body.get("return") or []
    if not returns or not isinstance(returns[0], dict):
        return None
    first = returns[0]
    values = first.get("values") or []
    if first.get("method") == method and values and values[0].get("name") == name:
        return values[0].get("value")
    return None
