"""
Codec de cookies (fonctions pures, pas d'I/O).
- parse_set_cookie: en-tête Set-Cookie brut -> ["name=value", ...]
- merge_cookie_pairs: fusionne de nouvelles paires dans un jar "a=1; b=2" (la dernière valeur gagne)
- filter_cookie_header: même découpage que parse_set_cookie, recollé en "a=1; b=2" (entrée Set-Cookie brute)
- jar_to_header: jar "a=1; b=2" -> valeur d'en-tête Cookie (toutes les paires, noms vides ignorés)
Aucune fonction ne lève d'exception sur une entrée vide.
"""
import re
from typing import Dict, Iterable, List, Optional

# Virgule suivie d'un "name=value": ne coupe pas dans "Expires=Wed, 21 Oct 2015 ..."
_COOKIE_SPLIT = re.compile(r",(?=\s*[^;=]+=[^;]+)")


def parse_set_cookie(header_value: Optional[str]) -> List[str]:
    if not header_value:
        return []
    parts = _COOKIE_SPLIT.split(header_value)
    pairs = [p.split(";", 1)[0].strip() for p in parts]
    return [p for p in pairs if p]


def filter_cookie_header(raw: Optional[str]) -> str:
    return "; ".join(parse_set_cookie(raw))


def _jar_from_string(jar: Optional[str]) -> Dict[str, str]:
    entries: Dict[str, str] = {}
    for kv in (jar or "").split(";"):
        kv = kv.strip()
        if not kv:
            continue
        name, _, value = kv.partition("=")
        entries[name] = value
    return entries


def merge_cookie_pairs(existing_jar: Optional[str], new_pairs: Iterable[str]) -> str:
    jar = _jar_from_string(existing_jar)
    for kv in new_pairs or []:
        name, _, value = kv.partition("=")
        jar[name] = value
    return "; ".join(f"{k}={v}" for k, v in jar.items())


def jar_to_header(jar: Optional[str]) -> str:
    return "; ".join(f"{k}={v}" for k, v in _jar_from_string(jar).items() if k)
