import json

import httpx
import pytest

from orderbridge import config
from orderbridge.errors import BackendCallFailed, InvalidBackendResponse, NotFound
from orderbridge.payments.gateway import client_config, gateway_config, parse_client_config, payment_method_type
from tests.fakes import body, ok

ADYEN = {
    "adyen_env": "live",
    "adyen_client_key": "live_KEY",
    "adyen_showpaybutton": True,
    "hosted_field_ups": True,
    "device_fingerprint": "fp-1",
}


def _client_config_body(cfg=None):
    value = json.dumps({"config": cfg if cfg is not None else ADYEN})
    return {"return": [{"method": "getPaymentClientConfig", "values": [{"name": "result", "value": value}]}]}


def test_parse_client_config_maps_fields():
    parsed = parse_client_config(_client_config_body())
    assert parsed["environment"] == "live"
    assert parsed["clientKey"] == "live_KEY"
    assert parsed["showPayButton"] is True
    assert parsed["hostedFieldUps"] is True
    assert parsed["hostedPageUps"] is False
    assert parsed["deviceFingerprint"] == "fp-1"
    assert parsed["rawConfig"] == ADYEN


def test_parse_client_config_rejects_other_shapes():
    assert parse_client_config({"return": [{"method": "other", "values": [{"name": "result", "value": "{}"}]}]}) is None
    assert parse_client_config({"return": [{"method": "getPaymentClientConfig", "values": [{"name": "result", "value": "not json"}]}]}) is None
    assert parse_client_config("text") is None


def test_client_config_without_method_id_is_fallback(backend_client, fake_api):
    cfg = client_config(backend_client, None)
    assert cfg == {
        "environment": config.GATEWAY_FALLBACK_ENVIRONMENT,
        "clientKey": config.GATEWAY_FALLBACK_CLIENT_KEY,
        "countryCode": config.GATEWAY_FALLBACK_COUNTRY,
        "currency": config.GATEWAY_FALLBACK_CURRENCY,
    }
    assert fake_api.calls == []


def test_client_config_without_session_is_fallback(backend_client, fake_api):
    backend_client.session.clear()
    cfg = client_config(backend_client, "PM1")
    assert cfg["clientKey"] == config.GATEWAY_FALLBACK_CLIENT_KEY
    assert fake_api.calls == []


def test_client_config_from_backend(backend_client, fake_api):
    fake_api.respond("getPaymentClientConfig", body(_client_config_body(), 200))
    cfg = client_config(backend_client, "PM1")
    call = fake_api.last("getPaymentClientConfig")
    assert call.path == config.PAYMENT_METHOD_PATH
    assert call.body["objectName"] == "myPaymentMethod"
    assert call.body["actions"][0]["params"] == {"payment_method_id": "PM1"}
    assert cfg["clientKey"] == "live_KEY"


def test_client_config_error_cases_fall_back(backend_client, fake_api):
    fake_api.respond("getPaymentClientConfig", body({"exception": "boom"}, 500))
    assert client_config(backend_client, "PM1")["apiError"] == {"exception": "boom"}

    fake_api.respond("getPaymentClientConfig", body({"return": []}, 200))
    cfg = client_config(backend_client, "PM1")
    assert cfg["fallback"] is True
    assert cfg["apiResponse"] == {"return": []}

    fake_api.error = httpx.ConnectError("refused")
    cfg = client_config(backend_client, "PM1")
    assert cfg["error"] == "Backend unreachable"
    assert cfg["clientKey"] == config.GATEWAY_FALLBACK_CLIENT_KEY


def test_gateway_config_parses_payment_methods(backend_client, fake_api):
    methods = {"paymentMethods": [{"type": "scheme"}]}
    key = "Payments::P1::paymentmethod_gateway_config"
    fake_api.respond(f"get:{key}", ok({key: {"standard": json.dumps(methods)}}))
    out = gateway_config(backend_client, "P1")
    assert out["success"] is True
    assert out["paymentMethodsResponse"] == methods


def test_gateway_config_warning_and_parse_error(backend_client, fake_api):
    key = "Payments::P1::paymentmethod_gateway_config"
    fake_api.respond(f"get:{key}", ok({key: {"standard": ""}}), ok({key: {"standard": "{oops"}}))
    assert gateway_config(backend_client, "P1")["warning"] == "No payment methods configuration found"
    assert "parseError" in gateway_config(backend_client, "P1")


def test_gateway_config_missing_field_is_404(backend_client, fake_api):
    with pytest.raises(NotFound) as exc:
        gateway_config(backend_client, "P1")
    assert exc.value.status_code == 404
    assert exc.value.error == "Payment gateway config not found"


def test_gateway_config_text_body_is_invalid(backend_client, fake_api):
    key = "Payments::P1::paymentmethod_gateway_config"
    fake_api.respond(f"get:{key}", httpx.Response(502, text="<html>bad gateway</html>"))
    with pytest.raises(InvalidBackendResponse):
        gateway_config(backend_client, "P1")


def test_payment_method_type(backend_client, fake_api):
    key = "Payments::P1::paymentmethod_type"
    fake_api.respond(f"get:{key}", ok({key: {"standard": "adyen"}}), body({"exception": {}}, 409))
    assert payment_method_type(backend_client, "P1")["paymentMethodType"] == {"standard": "adyen"}
    with pytest.raises(BackendCallFailed) as exc:
        payment_method_type(backend_client, "P1")
    assert exc.value.status_code == 409
