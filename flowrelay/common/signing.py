"""Flow request signing.

Flow authenticates every API call with an HMAC-SHA256 over a canonical
string: all parameter names except `s`, sorted, each immediately followed by
its value, with no separators. The gateway recomputes the same string from
the parameters it receives, so the text produced here and the text sent on
the wire must come from the same `stringify` conversion.
"""

import hashlib
import hmac
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from flowrelay.common.logging import logger


SIGNATURE_FIELD = "s"


class SigningError(ValueError):
    """Raised when a request cannot be signed (missing secret key)."""


def stringify(value: Any) -> str:
    """Render one parameter value the way it is signed and transmitted.

    Numbers come out as plain decimals: no exponent, no grouping and no
    padded fraction digits.
    """

    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (float, Decimal)):
        number = Decimal(str(value)).normalize()
        return format(number, "f")
    return str(value)


def canonical_string(params: Mapping[str, Any]) -> str:
    """Concatenate sorted `key + value` pairs, skipping the signature field."""

    keys = sorted(key for key in params if key != SIGNATURE_FIELD)
    return "".join(f"{key}{stringify(params[key])}" for key in keys)


def sign(params: Mapping[str, Any], secret: str | None) -> str:
    """Return the lowercase hex HMAC-SHA256 of the canonical string."""

    if not secret:
        raise SigningError("secret key is required to sign gateway requests")
    string_to_sign = canonical_string(params)
    logger.debug("string_to_sign=%s", string_to_sign)
    return hmac.new(
        secret.encode("utf-8"),
        string_to_sign.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
