import hashlib
import logging
import os
import time
from typing import Any, Dict

from fastapi import Request, Response
from redis.exceptions import RedisError

from orderbridge.config import SESSION_COOKIE_NAME
from orderbridge.errors import OrderBridgeError
from orderbridge.session.store import SESSION_ID_FIELD

logger = logging.getLogger(__name__)


class TooManyRequests(OrderBridgeError):
    status_code = 429
    error = "Too Many Requests"


def _client_key(req: Request) -> str:
    # Priorité: identifiant de session backend, cookie de session navigateur (hashés) puis IP
    token = (req.scope.get("session") or {}).get(SESSION_ID_FIELD) or req.cookies.get(SESSION_COOKIE_NAME)
    path = req.url.path
    if token:
        h = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
        return f"session:{h}:{path}"
    ip = req.client.host if req.client else "local"
    return f"ip:{ip}:{path}"


def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request, response: Response):
        # Fallback mémoire en DEV si demandé
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            now = time.time()
            key = _client_key(request)
            store = getattr(request.app.state, "_rl_store", {})
            hits = [t for t in store.get(key, []) if now - t < seconds]
            if len(hits) >= times:
                raise TooManyRequests()
            hits.append(now)
            store[key] = hits
            request.app.state._rl_store = store
            return

        # Respecter le flag global posé par le lifespan
        if getattr(request.app.state, "rate_limit_enabled", None) is not True:
            return

        from fastapi_limiter.depends import RateLimiter

        async def _identifier(req: Request) -> str:
            return _client_key(req)

        try:
            return await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
        except RedisError as e:
            # Redis indisponible après l'init: pas de 429, on journalise
            logger.warning("rate_limit.unavailable error=%s", e)
            return
    return _dep


def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)

    from fastapi_limiter import FastAPILimiter
    limiter_ready = getattr(FastAPILimiter, "redis", None) is not None

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": "redis" if limiter_ready else None,
        "localFallback": os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1",
    }
    return info
