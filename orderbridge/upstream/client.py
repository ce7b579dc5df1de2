"""
Client de l'Order API (httpx, synchrone).

- send(): POST JSON sur base_url + path avec les en-têtes Session/Cookie de la session courante.
- Après chaque appel (et chaque saut de redirection), les Set-Cookie sont fusionnés dans la session.
- Un statut non-2xx ne lève pas d'exception: l'appelant inspecte `ok`/`status`.
- Les erreurs réseau (DNS, connexion refusée, timeout) deviennent BackendUnreachable.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import Depends, Request

from orderbridge import config
from orderbridge.errors import BackendUnreachable, MissingConfiguration, NotAuthenticated
from orderbridge.session.cookies import jar_to_header, merge_cookie_pairs, parse_set_cookie
from orderbridge.session.store import BackendSession, get_backend_session

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5

BASE_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Content-Type": "application/json",
}


def require_path(name: str) -> str:
    """Chemin backend configuré (ex: "ORDER_PATH"), MissingConfiguration sinon."""
    path = getattr(config, name, "")
    if not path:
        raise MissingConfiguration(name)
    return path


def parse_body(response: httpx.Response) -> Any:
    """JSON si possible, sinon texte brut. Ne lève jamais."""
    text = response.text
    if not text:
        return text
    try:
        return response.json()
    except ValueError:
        return text


class BackendResult:
    """Résultat uniforme d'un appel backend: {status, ok, data} + métadonnées de debug."""

    def __init__(self, status: int, data: Any, headers: Optional[httpx.Headers] = None, request: Optional[Dict[str, Any]] = None):
        self.status = status
        self.data = data
        self.headers = headers if headers is not None else httpx.Headers()
        self.request = request or {}

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def field(self, name: str) -> Any:
        """Valeur data[name] d'une réponse {data: {...}} (None si absente ou corps non structuré)."""
        if isinstance(self.data, dict):
            return (self.data.get("data") or {}).get(name)
        return None

    def debug(self) -> Dict[str, Any]:
        return {
            "request": self.request,
            "response": {"status": self.status, "data": self.data},
        }

    def __repr__(self) -> str:
        return f"BackendResult(status={self.status})"


class BackendClient:
    def __init__(self, session: BackendSession, http: httpx.Client, base_url: Optional[str] = None):
        self.session = session
        self.http = http
        self.base_url = base_url

    def _base(self) -> str:
        base = (self.base_url or self.session.base_url or config.API_BASE or "").rstrip("/")
        if not base:
            raise MissingConfiguration("API_BASE")
        return base

    def headers(self, authenticated: bool = True) -> Dict[str, str]:
        headers = dict(BASE_HEADERS)
        if authenticated:
            if self.session.token:
                headers["Session"] = self.session.token
            if self.session.cookies:
                headers["Cookie"] = jar_to_header(self.session.cookies)
        return headers

    def require_session(self) -> None:
        if not self.session.is_authenticated:
            raise NotAuthenticated()

    def _send_once(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]],
        authenticated: bool,
        trusted: bool = True,
    ) -> httpx.Response:
        # Requête construite hors du client: son cookie jar partagé n'est jamais appliqué
        request = httpx.Request(method, url, json=payload, headers=self.headers(authenticated))
        try:
            response = self.http.send(request, follow_redirects=False)
        except httpx.TransportError as e:
            logger.warning("upstream.unreachable url=%s error=%s", url, e)
            raise BackendUnreachable(details=str(e), url=url)
        finally:
            self.http.cookies.clear()
        if trusted:
            self.absorb_cookies(response)
        return response

    def send(
        self,
        path: str,
        payload: Dict[str, Any],
        follow_redirects: bool = True,
        authenticated: bool = True,
        base_url: Optional[str] = None,
    ) -> BackendResult:
        """
        POST JSON vers le backend. Les redirections sont suivies ici, saut par saut:
        chaque saut repart des cookies de la session (Set-Cookie des sauts précédents inclus).
        301/302/303 -> GET sans corps, 307/308 -> même méthode et même corps.
        """
        if not path:
            raise MissingConfiguration("backend path")
        url = f"{(base_url or '').rstrip('/') or self._base()}{path}"
        logger.debug("upstream.send url=%s payload=%s", url, payload)

        origin = httpx.URL(url)
        method, body = "POST", payload
        response = self._send_once(method, url, body, authenticated)
        hops = 0
        while follow_redirects and response.is_redirect:
            if hops >= MAX_REDIRECTS:
                logger.warning("upstream.too_many_redirects url=%s", url)
                break
            hops += 1
            if response.status_code in (301, 302, 303):
                method, body = "GET", None
            next_url = response.url.join(response.headers["location"])
            # Session et cookies ne quittent jamais l'hôte du backend
            same_origin = (next_url.scheme, next_url.host, next_url.port) == (origin.scheme, origin.host, origin.port)
            logger.debug("upstream.redirect status=%s to=%s", response.status_code, next_url)
            response = self._send_once(method, str(next_url), body, authenticated and same_origin, trusted=same_origin)

        data = parse_body(response)
        logger.info("upstream.response path=%s status=%s", path, response.status_code)
        return BackendResult(
            status=response.status_code,
            data=data,
            headers=response.headers,
            request={"url": url, "method": "POST", "body": payload},
        )

    def absorb_cookies(self, response: httpx.Response) -> None:
        """Fusionne les Set-Cookie de la réponse dans le jar de la session."""
        pairs: List[str] = []
        for raw in response.headers.get_list("set-cookie"):
            pairs.extend(parse_set_cookie(raw))
        if pairs:
            self.session.set_cookies(merge_cookie_pairs(self.session.cookies, pairs))


# --- Dépendances FastAPI ---

def get_http_client(request: Request) -> httpx.Client:
    http = getattr(request.app.state, "http", None)
    if http is None:
        http = httpx.Client(timeout=config.BACKEND_TIMEOUT)
        request.app.state.http = http
    return http


def get_backend_client(
    session: BackendSession = Depends(get_backend_session),
    http: httpx.Client = Depends(get_http_client),
) -> BackendClient:
    return BackendClient(session, http)


def require_backend_client(client: BackendClient = Depends(get_backend_client)) -> BackendClient:
    client.require_session()
    return client
