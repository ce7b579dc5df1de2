"""
Session backend (token + cookie jar) et registre des sessions.

Une BackendSession est le « Session Store » d'un acteur logique: dernière écriture gagnante,
aucune validation (l'appelant vérifie `token` avant un appel authentifié).
Le SessionRegistry associe un identifiant de session à sa BackendSession:
- SESSION_SCOPE=client: identifiant aléatoire posé dans le cookie signé (SessionMiddleware),
  chaque navigateur a sa propre session backend.
- SESSION_SCOPE=process: une seule clé "process" pour toutes les requêtes (un locataire par process).
Une entrée n'est créée qu'après un login réussi (bind_backend_session) et supprimée au logout
(close_backend_session) ou après SESSION_IDLE_TTL secondes d'inactivité.
Les autres requêtes font une lecture seule: sans entrée, elles reçoivent une session vide jetable.
"""
import logging
import secrets
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request

from orderbridge import config

logger = logging.getLogger(__name__)

PROCESS_SESSION_KEY = "process"
SESSION_ID_FIELD = "sid"


class BackendSession:
    def __init__(self):
        self.token: Optional[str] = None
        self.cookies: str = ""
        self.base_url: Optional[str] = None
        self.customer_number: Optional[str] = None
        # paymentId alloué par le dernier checkout (stable pendant tout le paiement)
        self.payment_id: Optional[str] = None

    def get_token(self) -> Optional[str]:
        return self.token

    def get_cookies(self) -> str:
        return self.cookies

    def set_session(self, token: Optional[str], cookies: str = "", base_url: Optional[str] = None) -> None:
        self.token = token
        self.cookies = cookies or ""
        if base_url:
            self.base_url = base_url

    def set_cookies(self, cookies: str) -> None:
        self.cookies = cookies or ""

    def clear(self) -> None:
        self.token = None
        self.cookies = ""
        self.base_url = None
        self.customer_number = None
        self.payment_id = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)


class SessionRegistry:
    def __init__(self, idle_ttl: Optional[int] = None, clock: Callable[[], float] = time.monotonic):
        self._sessions: Dict[str, Tuple[BackendSession, float]] = {}
        self._lock = threading.Lock()
        self._idle_ttl = idle_ttl
        self._clock = clock

    def _ttl(self) -> int:
        return config.SESSION_IDLE_TTL if self._idle_ttl is None else self._idle_ttl

    def _purge(self, now: float) -> None:
        ttl = self._ttl()
        if ttl <= 0:
            return
        expired = [k for k, (_, seen) in self._sessions.items() if now - seen > ttl]
        for key in expired:
            session, _ = self._sessions.pop(key)
            session.clear()
        if expired:
            logger.info("session.expired count=%s", len(expired))

    def find(self, key: Optional[str]) -> Optional[BackendSession]:
        """Lecture seule: la session de `key` si elle existe (et la marque active), sinon None."""
        if not key:
            return None
        with self._lock:
            now = self._clock()
            self._purge(now)
            entry = self._sessions.get(key)
            if entry is None:
                return None
            self._sessions[key] = (entry[0], now)
            return entry[0]

    def put(self, key: str, session: BackendSession) -> None:
        with self._lock:
            now = self._clock()
            self._purge(now)
            previous = self._sessions.get(key)
            self._sessions[key] = (session, now)
        if previous is not None and previous[0] is not session:
            previous[0].clear()

    def drop(self, key: Optional[str]) -> None:
        with self._lock:
            entry = self._sessions.pop(key, None) if key else None
        if entry is not None:
            entry[0].clear()

    def clear(self) -> None:
        with self._lock:
            sessions = [s for s, _ in self._sessions.values()]
            self._sessions.clear()
        for session in sessions:
            session.clear()

    def __len__(self) -> int:
        return len(self._sessions)


registry = SessionRegistry()


def session_key(request: Request, create: bool = False) -> Optional[str]:
    """Clé de registre de la requête; l'identifiant navigateur n'est émis que si `create`."""
    if config.SESSION_SCOPE == "process":
        return PROCESS_SESSION_KEY
    sid = request.session.get(SESSION_ID_FIELD)
    if not sid and create:
        sid = secrets.token_urlsafe(24)
        request.session[SESSION_ID_FIELD] = sid
        logger.debug("session.created sid=%s", sid[:6])
    return sid


def get_backend_session(request: Request) -> BackendSession:
    return registry.find(session_key(request)) or BackendSession()


def bind_backend_session(request: Request, session: BackendSession) -> None:
    """Enregistre `session` pour la requête (après un login réussi), émet l'identifiant si besoin."""
    registry.put(session_key(request, create=True), session)


def close_backend_session(request: Request) -> None:
    registry.drop(session_key(request))
    if config.SESSION_SCOPE != "process":
        request.session.pop(SESSION_ID_FIELD, None)
