"""
Encodage 3DS (PA response) et lecture des informations de challenge.

Format attendu par le canal PA-response du backend, pour chaque paire de la query string:
    <longueur clé sur 5 chiffres><clé><longueur valeur sur 5 chiffres><valeur>
concaténées sans séparateur. Ex: "PaRes=abc&MD=123" -> "00005PaRes00003abc00002MD00003123".
"""
import json
from typing import Any, List, Tuple
from urllib.parse import unquote

from orderbridge.upstream.payloads import first_value

LENGTH_WIDTH = 5


def encode_pa_response(query: str) -> str:
    if not query:
        return ""
    q = query[1:] if query.startswith("?") else query
    chunks = []
    for pair in q.split("&"):
        if not pair:
            continue
        key, _, raw_value = pair.partition("=")
        value = unquote(raw_value)
        chunks.append(f"{len(key):0{LENGTH_WIDTH}d}{key}{len(value):0{LENGTH_WIDTH}d}{value}")
    return "".join(chunks)


def decode_pa_response(encoded: str) -> List[Tuple[str, str]]:
    """Inverse de encode_pa_response. ValueError si une longueur annoncée déborde."""
    pairs: List[Tuple[str, str]] = []
    pos = 0

    def _read() -> str:
        nonlocal pos
        header = encoded[pos:pos + LENGTH_WIDTH]
        if len(header) != LENGTH_WIDTH or not header.isdigit():
            raise ValueError(f"Préfixe de longueur invalide à la position {pos}")
        size = int(header)
        start = pos + LENGTH_WIDTH
        chunk = encoded[start:start + size]
        if len(chunk) != size:
            raise ValueError(f"Longueur annoncée {size} hors limites à la position {pos}")
        pos = start + size
        return chunk

    while pos < len(encoded or ""):
        key = _read()
        value = _read()
        pairs.append((key, value))
    return pairs


def unwrap_json_field(field: Any) -> Any:
    """
    Décode un champ {standard|input|display} contenant du JSON parfois doublement encodé.
    - 1er json.loads; si le résultat est encore une chaîne, 2e json.loads (une seule fois).
    - Repli: chaîne brute si le 1er décodage échoue, chaîne du 1er niveau si le 2e échoue.
    """
    raw = first_value(field)
    if raw is None:
        return None
    if not isinstance(raw, str):
        return raw
    try:
        once = json.loads(raw)
    except ValueError:
        return raw
    if not isinstance(once, str):
        return once
    try:
        return json.loads(once)
    except ValueError:
        return once
