"""
Middlewares transverses de l'application.
- register_basic_middlewares: session signée (identifiant de session backend), CORS, TrustedHost.
- register_security_middleware: en-têtes de sécurité et CSP ouverte à la passerelle de paiement
  (Adyen), Google Pay et Apple Pay, nécessaires au drop-in et aux challenges 3DS en iframe.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from orderbridge.config import (
    ALLOWED_HOSTS,
    COOKIE_SECURE,
    CORS_ORIGINS,
    SESSION_COOKIE_NAME,
    SESSION_SECRET_KEY,
)

GATEWAY_SOURCES = ["https://*.adyen.com"]
WALLET_SOURCES = ["https://pay.google.com", "https://*.google.com", "https://*.gstatic.com", "https://applepay.cdn-apple.com", "https://*.apple.com"]


def register_basic_middlewares(app: FastAPI) -> None:
    """
    - SessionMiddleware: cookie signé portant l'identifiant de la session backend du navigateur.
    - CORSMiddleware: autorise les origines définies (dev/prod).
    - TrustedHostMiddleware: limite les hôtes acceptés (défense host header).
    """
    app.add_middleware(
        SessionMiddleware,
        secret_key=SESSION_SECRET_KEY,
        session_cookie=SESSION_COOKIE_NAME,
        same_site="lax",
        https_only=COOKIE_SECURE,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=ALLOWED_HOSTS + ["*"] if "*" in CORS_ORIGINS else ALLOWED_HOSTS,
    )


def content_security_policy() -> str:
    gateway = " ".join(GATEWAY_SOURCES)
    wallets = " ".join(WALLET_SOURCES)
    return (
        "default-src 'self'; "
        "base-uri 'self'; object-src 'none'; "
        f"script-src 'self' 'unsafe-inline' {gateway} {wallets}; "
        f"style-src 'self' 'unsafe-inline' {gateway}; "
        f"img-src 'self' data: {gateway} {wallets}; "
        f"font-src 'self' data: {gateway}; "
        f"connect-src 'self' {gateway} {wallets}; "
        f"frame-src 'self' {gateway} {wallets}; "
        f"frame-ancestors 'self' {gateway}; "
        f"child-src 'self' {gateway}"
    )


def register_security_middleware(app: FastAPI) -> None:
    csp = content_security_policy()

    @app.middleware("http")
    async def security_headers(request, call_next):
        response = await call_next(request)

        response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if COOKIE_SECURE:
            response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains; preload")
        response.headers["Content-Security-Policy"] = csp
        return response
