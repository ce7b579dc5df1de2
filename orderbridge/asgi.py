"""Cible ASGI des déploiements: `uvicorn orderbridge.asgi:app` (voir aussi `python -m orderbridge`)."""
from orderbridge.app import app

__all__ = ["app"]
