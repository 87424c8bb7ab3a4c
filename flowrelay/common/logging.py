"""Structured JSON logging with request context fields."""

import logging
import sys
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

from flowrelay.common.config import settings


trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")
commerce_order_ctx: ContextVar[str] = ContextVar("commerce_order", default="")
token_ctx: ContextVar[str] = ContextVar("token", default="")

logger = logging.getLogger("flowrelay")


class ContextFilter(logging.Filter):
    """Stamp service name and per-request identifiers onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = settings.service_name
        record.trace_id = trace_id_ctx.get()
        record.commerce_order = commerce_order_ctx.get()
        record.token = token_ctx.get()
        return True


def configure_logging() -> None:
    """Install the JSON stdout handler on root and stamp relay records with context."""

    handler = logging.StreamHandler(sys.stdout)
    context_filter = ContextFilter()
    handler.addFilter(context_filter)
    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(service_name)s %(trace_id)s %(commerce_order)s %(token)s %(message)s"
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)
    if not any(isinstance(f, ContextFilter) for f in logger.filters):
        logger.addFilter(ContextFilter())
