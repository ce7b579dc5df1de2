import os
import pytest
from typing import Generator

import httpx
from fastapi.testclient import TestClient

# Désactive l'init fastapi-limiter (évite toute connexion Redis pendant les tests)
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

from orderbridge import config
from orderbridge.app import app as fastapi_app
from orderbridge.session.store import BackendSession, registry
from orderbridge.upstream.client import BackendClient, get_http_client
from tests.fakes import API_BASE, FakeOrderApi


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)


@pytest.fixture(scope="session")
def app():
    return fastapi_app


# Configuration backend de test et registre de sessions vierge pour chaque test
@pytest.fixture(autouse=True)
def _backend_config(monkeypatch):
    monkeypatch.setattr(config, "API_BASE", API_BASE)
    monkeypatch.setattr(config, "UNL_USER", "demo-user")
    monkeypatch.setattr(config, "UNL_PASSWORD", "demo-pass")
    monkeypatch.setattr(config, "SESSION_SCOPE", "client")
    monkeypatch.setattr(config, "EXPOSE_DEBUG_METADATA", True)
    monkeypatch.setattr(config, "SWIPE_INDICATOR", "")
    monkeypatch.setattr(config, "DEFAULT_CUSTOMER_NUMBER", "1")
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    registry.clear()
    yield
    registry.clear()


@pytest.fixture
def fake_api() -> FakeOrderApi:
    return FakeOrderApi()


@pytest.fixture
def backend_client(fake_api) -> Generator[BackendClient, None, None]:
    """BackendClient authentifié branché sur l'Order API simulée (sans FastAPI)."""
    session = BackendSession()
    session.set_session("tok-1", "session=tok-1", base_url=API_BASE)
    http = fake_api.client()
    yield BackendClient(session, http)
    http.close()


@pytest.fixture
def client(app, fake_api) -> Generator[TestClient, None, None]:
    http = fake_api.client()
    app.dependency_overrides[get_http_client] = lambda: http
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_http_client, None)
        http.close()


@pytest.fixture
def logged_in(client, fake_api) -> TestClient:
    """Client navigateur connecté (POST /login sur l'Order API simulée)."""
    fake_api.respond("login", httpx.Response(
        200,
        json={"session": "tok-1", "version": "7.2"},
        headers=[
            ("set-cookie", "session=tok-1; Path=/; HttpOnly"),
            ("set-cookie", "cf_bm=abc; Expires=Wed, 21 Oct 2037 07:28:00 GMT; Path=/"),
        ],
    ))
    r = client.post("/login", json={})
    assert r.status_code == 200, r.text
    return client
