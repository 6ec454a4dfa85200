import base64
import re
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
import requests

from darajapay.mpesa_core import (
    AuthTokenError,
    DarajaClient,
    PaymentInitiationError,
    generate_password,
    ts_now,
)


def test_ts_now_is_fourteen_digit_utc():
    assert ts_now(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)) == "20240102030405"
    assert re.fullmatch(r"\d{14}", ts_now())


def test_generate_password_is_deterministic():
    first = generate_password("174379", "passkey", "20240102030405")
    second = generate_password("174379", "passkey", "20240102030405")
    assert first == second
    assert first.timestamp == "20240102030405"
    assert base64.b64decode(first.password).decode() == "174379passkey20240102030405"


def test_generate_password_changes_with_timestamp():
    a = generate_password("174379", "passkey", "20240102030405")
    b = generate_password("174379", "passkey", "20240102030406")
    assert a.password != b.password


def test_generate_auth_token_sends_basic_auth(settings, make_response):
    client = DarajaClient(settings)
    with patch("darajapay.mpesa_core.requests.get") as get:
        get.return_value = make_response(body={"access_token": "T1", "expires_in": "3599"})
        assert client.generate_auth_token() == "T1"

    url = get.call_args.args[0]
    headers = get.call_args.kwargs["headers"]
    assert url == "https://sandbox.safaricom.co.ke/oauth/v1/generate?grant_type=client_credentials"
    expected = base64.b64encode(b"key:secret").decode()
    assert headers["Authorization"] == f"Basic {expected}"


def test_generate_auth_token_http_error_carries_provider_body(settings, make_response):
    client = DarajaClient(settings)
    body = {"errorCode": "400.008.01", "errorMessage": "Invalid Authentication passed"}
    with patch("darajapay.mpesa_core.requests.get", return_value=make_response(400, body)):
        with pytest.raises(AuthTokenError) as exc:
            client.generate_auth_token()
    assert exc.value.message == "Failed to generate OAuth token"
    assert exc.value.details == body


def test_generate_auth_token_network_error_carries_message(settings):
    client = DarajaClient(settings)
    with patch("darajapay.mpesa_core.requests.get", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(AuthTokenError) as exc:
            client.generate_auth_token()
    assert exc.value.details == "refused"


def test_generate_auth_token_without_token_field(settings, make_response):
    client = DarajaClient(settings)
    with patch("darajapay.mpesa_core.requests.get", return_value=make_response(body={})):
        with pytest.raises(AuthTokenError):
            client.generate_auth_token()


def test_build_payload_shape(settings):
    client = DarajaClient(settings)
    material = client.generate_password("20240102030405")
    payload = client.build_payload("254708966189", 10, material)
    assert payload == {
        "BusinessShortCode": "174379",
        "Password": material.password,
        "Timestamp": "20240102030405",
        "TransactionType": "CustomerPayBillOnline",
        "Amount": 10,
        "PartyA": "254708966189",
        "PartyB": "174379",
        "PhoneNumber": "254708966189",
        "CallBackURL": "https://example.com/api/daraja/callback",
        "AccountReference": "Test",
        "TransactionDesc": "Payment",
    }


def test_stk_push_fetches_token_then_posts(settings, make_response):
    client = DarajaClient(settings)
    calls = []
    token_resp = make_response(body={"access_token": "T1"})
    push_resp = make_response(body={"ResponseCode": "0"})

    def fake_get(*args, **kwargs):
        calls.append("token")
        return token_resp

    def fake_post(*args, **kwargs):
        calls.append("push")
        return push_resp

    with patch("darajapay.mpesa_core.requests.get", side_effect=fake_get), \
            patch("darajapay.mpesa_core.requests.post", side_effect=fake_post) as post:
        assert client.stk_push("254708966189", 10) == {"ResponseCode": "0"}

    assert calls == ["token", "push"]
    assert post.call_args.args[0] == "https://sandbox.safaricom.co.ke/mpesa/stkpush/v1/processrequest"
    assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer T1"
    assert post.call_args.kwargs["json"]["PhoneNumber"] == "254708966189"


def test_stk_push_token_failure_skips_payment_call(settings):
    client = DarajaClient(settings)
    with patch("darajapay.mpesa_core.requests.get", side_effect=requests.Timeout("timed out")), \
            patch("darajapay.mpesa_core.requests.post") as post:
        with pytest.raises(AuthTokenError):
            client.stk_push("254708966189", 10)
    post.assert_not_called()


def test_stk_push_provider_rejection(settings, make_response):
    client = DarajaClient(settings)
    body = {"requestId": "1", "errorCode": "400.002.02", "errorMessage": "Bad Request - Invalid Amount"}
    with patch("darajapay.mpesa_core.requests.get", return_value=make_response(body={"access_token": "T1"})), \
            patch("darajapay.mpesa_core.requests.post", return_value=make_response(400, body)):
        with pytest.raises(PaymentInitiationError) as exc:
            client.stk_push("254708966189", 10)
    assert exc.value.details == body


def test_stk_push_non_json_error_body_falls_back_to_text(settings, make_response):
    client = DarajaClient(settings)
    bad = make_response(503, ValueError("no json"), text="Service Unavailable")
    with patch("darajapay.mpesa_core.requests.get", return_value=make_response(body={"access_token": "T1"})), \
            patch("darajapay.mpesa_core.requests.post", return_value=bad):
        with pytest.raises(PaymentInitiationError) as exc:
            client.stk_push("254708966189", 10)
    assert exc.value.details == "Service Unavailable"


def test_live_environment_uses_production_host(make_response):
    from darajapay.config import DarajaSettings

    live = DarajaSettings("k", "s", "600000", "p", "https://cb", environment="live", timeout=5.0)
    with patch("darajapay.mpesa_core.requests.get", return_value=make_response(body={"access_token": "T"})) as get:
        DarajaClient(live).generate_auth_token()
    assert get.call_args.args[0].startswith("https://api.safaricom.co.ke/")
    assert get.call_args.kwargs["timeout"] == 5.0
