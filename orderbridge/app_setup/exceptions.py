"""
Gestionnaires d'exceptions enregistrés par la factory.
- OrderBridgeError: JSON {error, details?, status?, request?, response?, ...} avec son code HTTP.
- RequestValidationError (pydantic): 400 {error: "Missing required parameter: <champ>"}.
- HTTPException (ex: 429 du rate limiter): {error} avec le code d'origine.
- Toute autre exception: 500 {error} après journalisation de la trace.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from orderbridge.errors import OrderBridgeError

logger = logging.getLogger(__name__)


def _first_field(exc: RequestValidationError) -> str:
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        if loc:
            return ".".join(loc)
    return "body"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(OrderBridgeError)
    async def order_bridge_error(request: Request, exc: OrderBridgeError):
        if exc.status_code >= 500:
            logger.error("request.failed path=%s error=%s", request.url.path, exc.error)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        field = _first_field(exc)
        return JSONResponse(
            status_code=400,
            content={"error": f"Missing required parameter: {field}", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Erreur inattendue path=%s", request.url.path)
        return JSONResponse(status_code=500, content={"error": str(exc) or exc.__class__.__name__})
