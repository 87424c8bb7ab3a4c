"""HTTP surface of the Flow relay.

Creates Flow payment orders on behalf of callers and serves the confirmation
callback and browser redirects Flow sends back. Credentials arrive in the
`x-api-key` / `x-secret-key` headers, otherwise the configured defaults are
used.
"""

from time import perf_counter
from uuid import uuid4

import uvicorn
from fastapi import Depends, FastAPI, Form, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from fastapi.security import APIKeyHeader

from flowrelay.common.config import settings
from flowrelay.common.logging import commerce_order_ctx, configure_logging, logger, token_ctx, trace_id_ctx
from flowrelay.common.metrics import (
    http_request_duration_seconds,
    http_requests_total,
    metrics_response,
    payment_links_created_total,
)
from flowrelay.common.signing import SigningError
from flowrelay.common.startup import log_startup_config
from flowrelay.common.tracing import instrument_app, setup_tracing
from flowrelay.services.relay.pages import CANCEL_PAGE, success_page
from flowrelay.services.relay.schemas import ErrorResponse, PaymentLink, PaymentRequest
from flowrelay.services.relay.service import FlowGatewayClient, GatewayError

configure_logging()
setup_tracing(settings)
log_startup_config(
    settings,
    ["service_name", "flow_api_url", "api_key", "secret_key", "host", "port", "otel_enabled"],
)
gateway = FlowGatewayClient(settings)

api_key_header = APIKeyHeader(
    name="x-api-key",
    scheme_name="ApiKeyAuth",
    description="Flow public API key",
    auto_error=False,
)
secret_key_header = APIKeyHeader(
    name="x-secret-key",
    scheme_name="SecretKeyAuth",
    description="Flow secret key",
    auto_error=False,
)

app = FastAPI(
    title="Flow Payment Relay",
    version="1.0.0",
    docs_url="/api-docs",
    description=(
        "Creates Flow payment orders, receives Flow's confirmation callback and "
        "handles payer redirects. Credentials travel in the x-api-key and "
        "x-secret-key headers; configured defaults apply when they are absent."
    ),
)
instrument_app(app)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Request could not be signed"},
    500: {"model": ErrorResponse, "description": "Gateway call failed"},
}


def get_gateway_client() -> FlowGatewayClient:
    """Dependency hook so tests can swap in a client with a fake transport."""

    return gateway


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Bind the correlation id to logs and record request count/latency."""

    trace_token = trace_id_ctx.set(request.headers.get("x-correlation-id") or str(uuid4()))
    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()
        trace_id_ctx.reset(trace_token)


async def _create_payment_link(
    route: str,
    req: PaymentRequest,
    client: FlowGatewayClient,
    api_key: str | None,
    secret_key: str | None,
    failure_message: str,
):
    commerce_order_ctx.set("" if req.commerce_order is None else str(req.commerce_order))
    credentials = client.credentials_for(api_key, secret_key)
    try:
        link = await client.create_payment(req, credentials)
    except SigningError as exc:
        logger.warning("payment request rejected route=%s reason=%s", route, exc)
        return JSONResponse(status_code=400, content={"error": "Missing secret key."})
    except GatewayError as exc:
        logger.error(
            "payment creation failed route=%s error=%s status=%s body=%s",
            route,
            exc,
            exc.status_code,
            exc.body,
        )
        return JSONResponse(status_code=500, content={"error": failure_message})
    payment_links_created_total.labels(service=settings.service_name, route=route).inc()
    return link


@app.post("/create-payment", response_model=PaymentLink, responses=ERROR_RESPONSES)
async def create_payment(
    req: PaymentRequest,
    client: FlowGatewayClient = Depends(get_gateway_client),
    api_key: str | None = Depends(api_key_header),
    secret_key: str | None = Depends(secret_key_header),
):
    """Create a Flow payment order and return the link the payer should open."""

    return await _create_payment_link(
        "/create-payment", req, client, api_key, secret_key, "Error processing payment creation."
    )


@app.post("/payment/regenerate", response_model=PaymentLink, responses=ERROR_RESPONSES)
async def regenerate_payment(
    req: PaymentRequest,
    client: FlowGatewayClient = Depends(get_gateway_client),
    api_key: str | None = Depends(api_key_header),
    secret_key: str | None = Depends(secret_key_header),
):
    """Retry order creation for a payment, same signing rules as `/create-payment`."""

    return await _create_payment_link(
        "/payment/regenerate", req, client, api_key, secret_key, "Error regenerating payment."
    )


@app.post("/payment/confirmation", response_class=PlainTextResponse)
async def payment_confirmation(
    token: str = Form(..., examples=["860E70A184DAED8CE346EFDA3700DA51C526695U"]),
    client: FlowGatewayClient = Depends(get_gateway_client),
    api_key: str | None = Depends(api_key_header),
    secret_key: str | None = Depends(secret_key_header),
):
    """Flow's `urlConfirmation` callback.

    The payment status is fetched and logged; the acknowledgement is the same
    whatever the status is. Inbound callbacks are not signature-checked.
    """

    token_ctx.set(token)
    logger.info("confirmation callback received")
    try:
        status = await client.get_status(token, client.credentials_for(api_key, secret_key))
    except (GatewayError, SigningError) as exc:
        logger.error(
            "confirmation status lookup failed error=%s status=%s body=%s",
            exc,
            getattr(exc, "status_code", None),
            getattr(exc, "body", None),
        )
        return PlainTextResponse("Error", status_code=500)
    logger.info("confirmation payment status=%s", status)
    return PlainTextResponse("OK")


@app.get("/payment/success", response_class=HTMLResponse)
async def payment_success(
    token: str = Query(..., description="Flow payment token"),
    client: FlowGatewayClient = Depends(get_gateway_client),
    api_key: str | None = Depends(api_key_header),
    secret_key: str | None = Depends(secret_key_header),
):
    """Payer redirect after a successful payment: show order, status and amount."""

    token_ctx.set(token)
    logger.info("success redirect received")
    try:
        status = await client.get_status(token, client.credentials_for(api_key, secret_key))
    except (GatewayError, SigningError) as exc:
        logger.error(
            "success status lookup failed error=%s status=%s body=%s",
            exc,
            getattr(exc, "status_code", None),
            getattr(exc, "body", None),
        )
        return PlainTextResponse("Error verifying payment status.", status_code=500)
    logger.info("success payment status=%s", status)
    return HTMLResponse(success_page(status))


@app.get("/payment/cancel", response_class=HTMLResponse)
def payment_cancel(request: Request):
    """Payer redirect after cancelling at Flow."""

    logger.info("cancel redirect received query=%s", dict(request.query_params))
    return HTMLResponse(CANCEL_PAGE)


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}


def run() -> None:
    """Serve the relay on the configured host and port."""

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
