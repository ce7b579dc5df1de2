"""Assemblage de l'application OrderBridge."""
from fastapi import FastAPI

from .exceptions import register_exception_handlers
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_security_middleware
from .routers import register_routers


def create_app() -> FastAPI:
    """
    Application neuve: le lifespan ouvre le client HTTP vers l'Order API et le rate limiting.
    Les middlewares portent le cookie de session navigateur (clé du registre des sessions backend),
    les handlers traduisent OrderBridgeError en corps {"error": ...}.
    """
    app = FastAPI(title="OrderBridge", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
