"""Build the exact parameter sets sent to Flow.

Absent request fields never reach the signed set: an empty string or a
literal "None" would change the canonical string and Flow would reject the
signature.
"""

from flowrelay.common.signing import SIGNATURE_FIELD, sign, stringify
from flowrelay.services.relay.schemas import CredentialPair, PaymentRequest


def resolve_credentials(
    default: CredentialPair,
    api_key: str | None = None,
    secret_key: str | None = None,
) -> CredentialPair:
    """Use caller-supplied keys, falling back to the default pair per key."""

    return CredentialPair(
        public_key=api_key or default.public_key,
        secret_key=secret_key or default.secret_key,
    )


def signable_params(request: PaymentRequest, credentials: CredentialPair) -> dict[str, str]:
    """`apiKey` followed by every present request field, in wire form."""

    params = {"apiKey": credentials.public_key}
    for name, value in request.wire_fields().items():
        params[name] = stringify(value)
    return params


def _with_signature(params: dict[str, str], credentials: CredentialPair) -> dict[str, str]:
    signed = dict(params)
    signed[SIGNATURE_FIELD] = sign(params, credentials.secret_key)
    return signed


def assemble(request: PaymentRequest, credentials: CredentialPair) -> dict[str, str]:
    """Signed payload for `/payment/create`."""

    return _with_signature(signable_params(request, credentials), credentials)


def status_params(token: str, credentials: CredentialPair) -> dict[str, str]:
    """Signed payload for `/payment/getStatus`: only `apiKey` and `token`."""

    return _with_signature({"apiKey": credentials.public_key, "token": token}, credentials)
