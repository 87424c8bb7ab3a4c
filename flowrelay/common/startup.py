"""Startup-time helpers for safe config logging."""

from flowrelay.common.config import RelaySettings
from flowrelay.common.logging import logger


SECRET_MARKERS = ("KEY", "SECRET", "PASSWORD", "TOKEN")


def redact(name: str, value) -> str:
    """Hide values whose setting name looks secret-like."""

    if value is None or value == "":
        return "<unset>"
    if any(marker in name.upper() for marker in SECRET_MARKERS):
        return "<redacted>"
    return str(value)


def startup_config(config: RelaySettings, fields: list[str]) -> dict[str, str]:
    """Build the redacted field map logged at process start."""

    snapshot = {"service": config.service_name}
    for field in fields:
        snapshot[field] = redact(field, getattr(config, field, None))
    return snapshot


def log_startup_config(config: RelaySettings, fields: list[str]) -> None:
    """Log selected settings for quick troubleshooting."""

    logger.info("startup_config=%s", startup_config(config, fields))
