import json

from orderbridge import config
from orderbridge.payments.threeds import encode_pa_response
from tests.fakes import body, challenge_fields, echo_external_data, ok, order_inserted, script_checkout, step_up_body

CHALLENGE_KEY = "get:Payments::P1::pa_request_information"


def test_transaction_requires_payment_id(logged_in, fake_api):
    r = logged_in.post("/transaction", json={"paymentData": {"card": "hosted"}})
    assert r.status_code == 400
    assert r.json()["error"] == "Missing required parameter: paymentID"
    assert "insert" not in fake_api.keys()


def test_transaction_uses_payment_id_from_checkout(logged_in, fake_api):
    script_checkout(fake_api, "P1")
    logged_in.post("/checkout", json={"deliveryMethod": "12", "paymentMethod": "3"})
    fake_api.respond("insert", order_inserted("ORD-42"))

    r = logged_in.post("/transaction", json={"orderData": {"paymentMethod": "Visa"}})
    assert r.status_code == 200
    data = r.json()
    assert data["orderId"] == "ORD-42"
    assert data["transactionDetails"]["paymentMethod"] == "Visa"
    assert fake_api.last("insert").headers["Session"] == "tok-1"


def test_transaction_step_up_is_402(logged_in, fake_api):
    fake_api.respond("insert", body(step_up_body("P1"), 400))
    fake_api.respond(CHALLENGE_KEY, challenge_fields("P1", {"acsURL": "https://acs.test/c"}))

    r = logged_in.post("/transaction", json={"paymentID": "P1"})
    assert r.status_code == 402
    data = r.json()
    assert data["success"] is False
    assert data["error"] == "3ds required"
    assert data["code"] == 4294
    assert data["paRequestInfo"] == {"acsURL": "https://acs.test/c"}
    assert data["paRequestURL"] == "https://acs.test/challenge"


def test_transaction_failure_keeps_status(logged_in, fake_api):
    fake_api.respond("insert", body({"exception": {"number": 1001}}, 409))
    r = logged_in.post("/transaction", json={"paymentId": "P1"})
    assert r.status_code == 409
    assert r.json()["error"] == "Transaction failed"
    assert r.json()["paymentID"] == "P1"


def test_adyen_payment_requires_external_data(logged_in, fake_api):
    r = logged_in.post("/processAdyenPayment", json={"paymentID": "P1"})
    assert r.status_code == 400
    assert r.json()["error"] == "Missing required parameter: externalData"
    assert fake_api.keys() == ["login"]


def test_adyen_payment_success(logged_in, fake_api):
    fake_api.respond("set", echo_external_data("P1"))
    fake_api.respond("insert", order_inserted("ORD-5"))
    r = logged_in.post("/processAdyenPayment", json={"paymentID": "P1", "externalData": "blob"})
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert data["transactionCompleted"] is True
    assert data["orderId"] == "ORD-5"


def test_adyen_payment_verification_failure_is_soft(logged_in, fake_api):
    fake_api.respond("set", echo_external_data("P1", override="Y"))
    r = logged_in.post("/processAdyenPayment", json={"paymentID": "P1", "externalData": "X"})
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is False
    assert data["externalDataSet"] is False
    assert (data["expectedData"], data["actualData"]) == ("X", "Y")
    assert "insert" not in fake_api.keys()


def test_three_ds_response_with_encoded_information(logged_in, fake_api):
    fake_api.respond("insert", order_inserted("ORD-3"))
    r = logged_in.post("/processThreeDSResponse", json={
        "paymentId": "P1",
        "paResponseInformation": "1:a1:b",
        "paResponseURL": "https://shop.test/return",
    })
    assert r.status_code == 200
    assert r.json()["orderId"] == "ORD-3"
    assert fake_api.last("set").body["set"] == {
        "Payments::P1::pa_response_information": "1:a1:b",
        "Payments::P1::pa_response_URL": "https://shop.test/return",
    }


def test_three_ds_response_encodes_raw_query(logged_in, fake_api):
    query = "PaRes=eJzV%2Bx&MD=abc"
    logged_in.post("/processThreeDSResponse", json={"paymentID": "P1", "query": query})
    fields = fake_api.last("set").body["set"]
    assert fields["Payments::P1::pa_response_information"] == encode_pa_response(query)
    assert fields["Payments::P1::pa_response_URL"] == config.PA_RESPONSE_URL


def test_three_ds_response_requires_information(logged_in, fake_api):
    r = logged_in.post("/processThreeDSResponse", json={"paymentID": "P1"})
    assert r.status_code == 400
    assert r.json()["error"] == "Missing required parameter: pa_response_information"


def test_client_config_without_login_is_fallback(client, fake_api):
    r = client.post("/getPaymentClientConfig", json={"paymentMethodId": "PM1"})
    assert r.status_code == 200
    assert r.json()["clientKey"] == config.GATEWAY_FALLBACK_CLIENT_KEY
    assert fake_api.calls == []


def test_client_config_from_backend(logged_in, fake_api):
    value = json.dumps({"config": {"adyen_env": "live", "adyen_client_key": "live_KEY"}})
    fake_api.respond("getPaymentClientConfig", body(
        {"return": [{"method": "getPaymentClientConfig", "values": [{"name": "result", "value": value}]}]}, 200,
    ))
    data = logged_in.post("/getPaymentClientConfig", json={"paymentMethodId": 7}).json()
    assert data["environment"] == "live"
    assert data["clientKey"] == "live_KEY"
    assert fake_api.last("getPaymentClientConfig").body["actions"][0]["params"] == {"payment_method_id": "7"}


def test_payment_response_and_method_type(logged_in, fake_api):
    gw = "Payments::P1::paymentmethod_gateway_config"
    pmt = "Payments::P1::paymentmethod_type"
    fake_api.respond(f"get:{gw}", ok({gw: {"standard": json.dumps({"paymentMethods": []})}}))
    fake_api.respond(f"get:{pmt}", ok({pmt: {"standard": "adyen"}}))

    r = logged_in.post("/getPaymentResponse", json={"paymentID": "P1"})
    assert r.status_code == 200
    assert r.json()["paymentMethodsResponse"] == {"paymentMethods": []}

    r = logged_in.post("/getPaymentMethodType", json={"paymentID": "P1"})
    assert r.json()["paymentMethodType"] == {"standard": "adyen"}


def test_payment_method_type_not_found(logged_in, fake_api):
    r = logged_in.post("/getPaymentMethodType", json={"paymentID": "P1"})
    assert r.status_code == 404
    assert r.json()["error"] == "Payment method type not found"
