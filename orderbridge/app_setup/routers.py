"""
Registre central des routers.
- Auth: /login, /logout, /auth/*
- Evénements et plan de salle: /events/*, /map/*
- Commande: /checkout, /order, /details, /removeSeat, /getMyAccountDetails
- Paiement: /transaction, /processAdyenPayment, /processThreeDSResponse, /getPayment*
- Health: /health
Les chemins sont ceux qu'appelle le front (pas de préfixe de version).
"""
from fastapi import FastAPI
from orderbridge.auth.views import router as auth_router
from orderbridge.events.views import router as events_router
from orderbridge.orders.views import router as orders_router
from orderbridge.payments.views import router as payments_router
from orderbridge.health.router import router as health_router


def register_routers(app: FastAPI) -> None:
    app.include_router(auth_router)
    app.include_router(events_router)
    app.include_router(orders_router)
    app.include_router(payments_router)
    app.include_router(health_router)
