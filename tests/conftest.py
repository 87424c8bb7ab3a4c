"""Shared fixtures: test settings and a fake Flow API behind httpx.MockTransport."""

from urllib.parse import parse_qsl

import httpx
import pytest

from flowrelay.common.config import RelaySettings
from flowrelay.services.relay.service import FlowGatewayClient


class FakeFlow:
    """Records every outbound request and answers with a canned response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body = {"url": "https://gw/pay.php", "token": "T1", "flowOrder": 127832165}
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_form(self) -> dict[str, str]:
        return dict(parse_qsl(self.last.content.decode("utf-8"), keep_blank_values=True))

    def last_query(self) -> dict[str, str]:
        return dict(self.last.url.params)


@pytest.fixture
def relay_settings() -> RelaySettings:
    return RelaySettings(
        flow_api_url="https://gw.test/api",
        api_key="DEFAULT_KEY",
        secret_key="DEFAULT_SECRET",
    )


@pytest.fixture
def fake_flow() -> FakeFlow:
    return FakeFlow()


@pytest.fixture
def gateway_client(relay_settings, fake_flow) -> FlowGatewayClient:
    return FlowGatewayClient(relay_settings, transport=httpx.MockTransport(fake_flow))
