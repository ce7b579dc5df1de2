from fastapi import APIRouter, Depends, Request

from orderbridge import config
from orderbridge.session.store import BackendSession, get_backend_session, registry
from orderbridge.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

_PATHS = ("AUTH_PATH", "ORDER_PATH", "UPCOMING_PATH", "PERFORMANCE_PATH", "MAP_PATH", "CUSTOMER_PATH", "USER_PATH", "PAYMENT_METHOD_PATH")


@router.get("")
def health_root():
    return {"ok": True}


@router.get("/backend")
def health_backend(request: Request, session: BackendSession = Depends(get_backend_session)):
    """Etat de la configuration (sans appel distant), de la session courante et du rate limiting."""
    return {
        "apiBaseConfigured": bool(config.API_BASE),
        "paths": {name: bool(getattr(config, name, "")) for name in _PATHS},
        "sessionScope": config.SESSION_SCOPE,
        "authenticated": session.is_authenticated,
        "activeSessions": len(registry),
        "rateLimit": rate_limit_health_info(request),
    }
