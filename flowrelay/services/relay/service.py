"""Outbound calls to the Flow payment API.

One request per call, no retries: any failure is reported once to the caller
as `GatewayError`, with the upstream status and body kept for logging only.
"""

from time import perf_counter
from typing import Any

import httpx
from pydantic import ValidationError

from flowrelay.common.config import RelaySettings
from flowrelay.common.logging import logger
from flowrelay.common.metrics import gateway_latency_seconds, gateway_requests_total
from flowrelay.services.relay.params import assemble, resolve_credentials, status_params
from flowrelay.services.relay.schemas import (
    CredentialPair,
    FlowOrderCreated,
    PaymentLink,
    PaymentRequest,
)


class GatewayError(Exception):
    """Flow call failed: transport error, non-2xx, or unusable body."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def payment_link(url: str, token: str) -> str:
    """Join Flow's checkout URL and token; Flow tokens need no escaping."""

    return f"{url}?token={token}"


class FlowGatewayClient:
    """Signs and sends create-order and status requests to Flow."""

    def __init__(self, config: RelaySettings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = config.flow_api_url.rstrip("/")
        self.service_name = config.service_name
        self.default_credentials = CredentialPair(
            public_key=config.api_key,
            secret_key=config.secret_key,
        )
        self._transport = transport

    def credentials_for(self, api_key: str | None = None, secret_key: str | None = None) -> CredentialPair:
        return resolve_credentials(self.default_credentials, api_key, secret_key)

    async def _call(self, operation: str, method: str, path: str, params: dict[str, str]) -> Any:
        """Send one request and return the decoded JSON body."""

        url = f"{self.base_url}{path}"
        start = perf_counter()
        outcome = "error"
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                if method == "GET":
                    resp = await client.get(url, params=params)
                else:
                    resp = await client.post(url, data=params)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise GatewayError(f"{operation} transport failure: {exc}") from exc
        else:
            if not resp.is_success:
                raise GatewayError(
                    f"{operation} rejected by gateway",
                    status_code=resp.status_code,
                    body=resp.text,
                )
            try:
                payload = resp.json()
            except ValueError as exc:
                raise GatewayError(
                    f"{operation} returned a non-JSON body",
                    status_code=resp.status_code,
                    body=resp.text,
                ) from exc
            outcome = "success"
            return payload
        finally:
            gateway_latency_seconds.labels(service=self.service_name, operation=operation).observe(
                max(0.0, perf_counter() - start)
            )
            gateway_requests_total.labels(
                service=self.service_name,
                operation=operation,
                outcome=outcome,
            ).inc()

    async def create_order(self, payload: dict[str, str]) -> PaymentLink:
        """Submit a signed payload to `/payment/create` and build the payment link."""

        logger.info("calling flow operation=create url=%s%s", self.base_url, "/payment/create")
        logger.debug("flow create params=%s", payload)
        data = await self._call("create", "POST", "/payment/create", payload)
        logger.info("flow create response=%s", data)
        try:
            created = FlowOrderCreated.model_validate(data)
        except ValidationError as exc:
            raise GatewayError("create response missing url/token/flowOrder", body=str(data)) from exc
        return PaymentLink(
            payment_link=payment_link(created.url, created.token),
            flow_order=created.flow_order,
        )

    async def get_status(self, token: str, credentials: CredentialPair | None = None) -> dict[str, Any]:
        """Query `/payment/getStatus` for one payment token."""

        params = status_params(token, credentials or self.default_credentials)
        data = await self._call("get_status", "GET", "/payment/getStatus", params)
        if not isinstance(data, dict):
            raise GatewayError("status response is not an object", body=str(data))
        return data

    async def create_payment(
        self, request: PaymentRequest, credentials: CredentialPair | None = None
    ) -> PaymentLink:
        """Assemble, sign and submit one payment order.

        Regenerating a payment is the same call with a fresh request.
        """

        payload = assemble(request, credentials or self.default_credentials)
        return await self.create_order(payload)
