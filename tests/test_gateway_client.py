"""Outbound Flow calls against a fake transport."""

import asyncio

import httpx
import pytest

from flowrelay.common.config import RelaySettings
from flowrelay.common.signing import SigningError, sign
from flowrelay.services.relay.schemas import CredentialPair, PaymentRequest
from flowrelay.services.relay.service import FlowGatewayClient, GatewayError, payment_link


ORDER = PaymentRequest.model_validate(
    {
        "commerceOrder": "orden123",
        "subject": "Compra X",
        "currency": "CLP",
        "amount": 15000,
        "email": "a@b.com",
        "urlConfirmation": "https://x/cb",
        "urlReturn": "https://x/ret",
    }
)


def test_payment_link_is_plain_join():
    assert payment_link("https://gw/pay.php", "T1") == "https://gw/pay.php?token=T1"


def test_create_order_posts_form_and_builds_link(gateway_client, fake_flow):
    payload = {"apiKey": "K1", "amount": "15000", "s": "abc"}

    link = asyncio.run(gateway_client.create_order(payload))

    assert link.payment_link == "https://gw/pay.php?token=T1"
    assert link.flow_order == 127832165
    assert fake_flow.last.method == "POST"
    assert fake_flow.last.url.path == "/api/payment/create"
    assert fake_flow.last.headers["content-type"] == "application/x-www-form-urlencoded"
    assert fake_flow.last_form() == payload


def test_create_payment_signs_with_given_credentials(gateway_client, fake_flow):
    creds = CredentialPair(public_key="K1", secret_key="S1")

    asyncio.run(gateway_client.create_payment(ORDER, creds))

    form = fake_flow.last_form()
    assert form["apiKey"] == "K1"
    assert form["amount"] == "15000"
    signed = {k: v for k, v in form.items() if k != "s"}
    assert form["s"] == sign(signed, "S1")


def test_create_payment_defaults_to_configured_credentials(gateway_client, fake_flow):
    asyncio.run(gateway_client.create_payment(ORDER))

    form = fake_flow.last_form()
    assert form["apiKey"] == "DEFAULT_KEY"
    assert form["s"] == sign(form, "DEFAULT_SECRET")


def test_missing_secret_fails_before_any_call(relay_settings, fake_flow):
    config = relay_settings.model_copy(update={"secret_key": ""})
    client = FlowGatewayClient(config, transport=httpx.MockTransport(fake_flow))

    with pytest.raises(SigningError):
        asyncio.run(client.create_payment(ORDER))
    assert fake_flow.requests == []


def test_non_2xx_raises_once_without_retry(gateway_client, fake_flow):
    fake_flow.status_code = 400
    fake_flow.body = {"code": 108, "message": "invalid signature"}

    with pytest.raises(GatewayError) as excinfo:
        asyncio.run(gateway_client.create_payment(ORDER))

    assert excinfo.value.status_code == 400
    assert "invalid signature" in excinfo.value.body
    assert len(fake_flow.requests) == 1


def test_transport_failure_raises_gateway_error(gateway_client, fake_flow):
    fake_flow.error = httpx.ConnectError("connection refused")

    with pytest.raises(GatewayError) as excinfo:
        asyncio.run(gateway_client.create_payment(ORDER))

    assert excinfo.value.status_code is None
    assert len(fake_flow.requests) == 1


def test_non_json_body_raises_gateway_error(gateway_client, fake_flow):
    fake_flow.body = "<html>maintenance</html>"

    with pytest.raises(GatewayError):
        asyncio.run(gateway_client.create_payment(ORDER))


@pytest.mark.parametrize("missing", ["url", "token", "flowOrder"])
def test_incomplete_create_response_raises(gateway_client, fake_flow, missing):
    fake_flow.body = {k: v for k, v in fake_flow.body.items() if k != missing}

    with pytest.raises(GatewayError):
        asyncio.run(gateway_client.create_payment(ORDER))


def test_get_status_sends_only_api_key_token_and_signature(gateway_client, fake_flow):
    fake_flow.body = {"flowOrder": 127832165, "status": 2, "amount": 15000}
    creds = CredentialPair(public_key="K2", secret_key="S2")

    status = asyncio.run(gateway_client.get_status("TKN", creds))

    assert status == {"flowOrder": 127832165, "status": 2, "amount": 15000}
    assert fake_flow.last.method == "GET"
    assert fake_flow.last.url.path == "/api/payment/getStatus"
    assert fake_flow.last_query() == {
        "apiKey": "K2",
        "token": "TKN",
        "s": sign({"apiKey": "K2", "token": "TKN"}, "S2"),
    }


def test_get_status_uses_default_credentials(gateway_client, fake_flow):
    fake_flow.body = {"flowOrder": 1, "status": 1}

    asyncio.run(gateway_client.get_status("TKN"))

    assert fake_flow.last_query()["apiKey"] == "DEFAULT_KEY"


def test_get_status_rejects_non_object_body(gateway_client, fake_flow):
    fake_flow.body = ["unexpected"]

    with pytest.raises(GatewayError):
        asyncio.run(gateway_client.get_status("TKN"))


def test_base_url_trailing_slash_ignored(fake_flow):
    config = RelaySettings(flow_api_url="https://gw.test/api/", api_key="K", secret_key="S")
    client = FlowGatewayClient(config, transport=httpx.MockTransport(fake_flow))

    asyncio.run(client.create_order({"apiKey": "K", "s": "x"}))

    assert str(fake_flow.last.url) == "https://gw.test/api/payment/create"


@pytest.mark.parametrize("status_code", [302, 307])
def test_redirect_on_create_is_a_failure(gateway_client, fake_flow, status_code):
    fake_flow.status_code = status_code

    with pytest.raises(GatewayError) as excinfo:
        asyncio.run(gateway_client.create_payment(ORDER))

    assert excinfo.value.status_code == status_code
    assert len(fake_flow.requests) == 1


@pytest.mark.parametrize("status_code", [302, 307])
def test_redirect_on_status_is_a_failure(gateway_client, fake_flow, status_code):
    fake_flow.status_code = status_code
    fake_flow.body = {"flowOrder": 1, "status": 2}

    with pytest.raises(GatewayError) as excinfo:
        asyncio.run(gateway_client.get_status("TKN"))

    assert excinfo.value.status_code == status_code


def test_malformed_gateway_url_raises_gateway_error(fake_flow):
    config = RelaySettings(flow_api_url="https://gw.test:notaport/api", api_key="K", secret_key="S")
    client = FlowGatewayClient(config, transport=httpx.MockTransport(fake_flow))

    with pytest.raises(GatewayError):
        asyncio.run(client.create_payment(ORDER))
    assert fake_flow.requests == []


def test_invalid_url_from_transport_raises_gateway_error(gateway_client, fake_flow):
    fake_flow.error = httpx.InvalidURL("bad url")

    with pytest.raises(GatewayError):
        asyncio.run(gateway_client.get_status("TKN"))
