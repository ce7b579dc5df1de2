from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from orderbridge.session.store import bind_backend_session
from orderbridge.upstream.client import BackendClient, get_backend_client
from .service import (
    defaults as svc_defaults,
    login as svc_login,
    logout as svc_logout,
    status as svc_status,
)


def optional_rate_limit(times: int, seconds: int):
    from orderbridge.utils.rate_limit import optional_rate_limit as _rl
    return _rl(times, seconds)


router = APIRouter(tags=["Auth"])


class LoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    api_base: Optional[str] = Field(default=None, validation_alias=AliasChoices("apiBase", "api_base"))
    username: Optional[str] = None
    password: Optional[str] = None
    customer_number: Optional[str] = Field(default=None, validation_alias=AliasChoices("customerNumber", "customer_number"))


@router.post("/login", dependencies=[Depends(optional_rate_limit(times=3, seconds=60))])
def login(
    request: Request,
    req: Optional[LoginRequest] = None,
    client: BackendClient = Depends(get_backend_client),
) -> Dict[str, Any]:
    """Connexion à l'Order API.
    - Applique un rate limit (3 requêtes par 60 secondes via la dépendance).
    - Identifiants du formulaire, sinon ceux de l'environnement (UNL_USER / UNL_PASSWORD) vers API_BASE uniquement.
    - Retourne {session, version}; le jeton reste côté serveur pour les appels suivants.
    - La session backend n'est enregistrée (cookie navigateur émis) qu'après succès.
    """
    req = req or LoginRequest()
    result = svc_login(
        client,
        username=req.username,
        password=req.password,
        api_base=req.api_base,
        customer_number=req.customer_number,
    )
    bind_backend_session(request, client.session)
    return result


@router.post("/logout")
def logout(request: Request) -> Dict[str, Any]:
    svc_logout(request)
    return {"success": True}


@router.get("/auth/defaults")
def auth_defaults() -> Dict[str, Any]:
    return svc_defaults()


@router.get("/auth/status")
def auth_status(client: BackendClient = Depends(get_backend_client)) -> Dict[str, Any]:
    return svc_status(client)
