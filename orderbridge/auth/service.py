"""
Authentification auprès de l'Order API.
- login: POST {userid, password} sur AUTH_PATH, exige `session` dans la réponse;
  UNL_USER / UNL_PASSWORD ne servent de repli que pour API_BASE (autre base: identifiants requis),
  enregistre token + cookies (Set-Cookie filtrés, sinon "session=<token>") dans la session backend.
- logout: retire la session backend du registre et l'identifiant du cookie (aucun appel distant).
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import Request

from orderbridge import config
from orderbridge.errors import BackendCallFailed, MissingConfiguration, ValidationError
from orderbridge.session.cookies import parse_set_cookie
from orderbridge.session.store import close_backend_session
from orderbridge.upstream.client import BackendClient, require_path

logger = logging.getLogger(__name__)


def cookies_from_login(headers, token: str) -> str:
    pairs: List[str] = []
    for raw in headers.get_list("set-cookie"):
        pairs.extend(parse_set_cookie(raw))
    return "; ".join(pairs) if pairs else f"session={token}"


def login(
    client: BackendClient,
    username: Optional[str] = None,
    password: Optional[str] = None,
    api_base: Optional[str] = None,
    customer_number: Optional[str] = None,
) -> Dict[str, Any]:
    auth_path = require_path("AUTH_PATH")
    default_base = (config.API_BASE or "").rstrip("/")
    base = (api_base or default_base).rstrip("/")
    if not base:
        raise MissingConfiguration("API_BASE")
    userid, secret = username, password
    # Identifiants de l'environnement: en bloc, et seulement vers l'API_BASE configurée
    if base == default_base and not (userid or secret):
        userid, secret = config.UNL_USER, config.UNL_PASSWORD
    if not userid:
        raise ValidationError("username")
    if not secret:
        raise ValidationError("password")

    result = client.send(auth_path, {"userid": userid, "password": secret}, authenticated=False, base_url=base)
    token = result.data.get("session") if isinstance(result.data, dict) else None
    if not result.ok or not token:
        logger.warning("auth.login failed status=%s user=%s", result.status, userid)
        error = BackendCallFailed("Auth failed", result)
        if result.ok:
            # 2xx sans jeton de session: identifiants refusés
            error.status_code = 401
        raise error

    session = client.session
    session.set_session(token, cookies_from_login(result.headers, token), base_url=base)
    session.customer_number = customer_number or config.DEFAULT_CUSTOMER_NUMBER
    session.payment_id = None
    logger.info("auth.login ok user=%s base=%s", userid, base)
    return {"session": token, "version": result.data.get("version")}


def logout(request: Request) -> None:
    close_backend_session(request)
    logger.info("auth.logout")


def defaults() -> Dict[str, Any]:
    """Valeurs pré-remplies du formulaire de connexion (jamais le mot de passe)."""
    return {
        "apiBase": config.API_BASE,
        "username": config.UNL_USER,
        "customerNumber": config.DEFAULT_CUSTOMER_NUMBER,
    }


def status(client: BackendClient) -> Dict[str, Any]:
    session = client.session
    return {
        "authenticated": session.is_authenticated,
        "apiBase": session.base_url or config.API_BASE or None,
        "customerNumber": session.customer_number,
        "paymentId": session.payment_id,
    }
