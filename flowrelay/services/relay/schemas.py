"""Request/response schemas for the relay endpoints and the Flow API."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Opaque to the relay: forwarded exactly as received.
FieldValue = str | bool | int | float


class CredentialPair(BaseModel):
    """Public/secret key pair identifying the merchant to Flow."""

    model_config = ConfigDict(frozen=True)

    public_key: str
    secret_key: str


class PaymentRequest(BaseModel):
    """Payload accepted by `POST /create-payment` and `POST /payment/regenerate`.

    Field names on the wire are Flow's: camelCase except `payment_currency`.
    Nothing is required here; Flow decides what is missing.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    commerce_order: FieldValue | None = Field(default=None, examples=["orden123"])
    subject: FieldValue | None = Field(default=None, examples=["Compra de producto X"])
    currency: FieldValue | None = Field(default=None, examples=["CLP"])
    amount: FieldValue | None = Field(default=None, examples=[15000])
    email: FieldValue | None = Field(default=None, examples=["cliente@ejemplo.com"])
    url_confirmation: FieldValue | None = Field(default=None, examples=["https://tuservidor.com/callback"])
    url_return: FieldValue | None = Field(default=None, examples=["https://tuservidor.com/retorno"])
    optional: FieldValue | None = Field(default=None, examples=["{}"])
    timeout: FieldValue | None = Field(default=None, examples=[300])
    merchant_id: FieldValue | None = Field(default=None, examples=["MERC123"])
    payment_currency: FieldValue | None = Field(
        default=None,
        alias="payment_currency",
        validation_alias=AliasChoices("payment_currency", "paymentCurrency"),
        examples=["CLP"],
    )

    def wire_fields(self) -> dict[str, FieldValue]:
        """Present fields keyed by their Flow parameter names."""

        return self.model_dump(by_alias=True, exclude_none=True)


class FlowOrderCreated(BaseModel):
    """Fields Flow must return from `/payment/create`."""

    model_config = ConfigDict(populate_by_name=True)

    url: str
    token: str
    flow_order: int = Field(alias="flowOrder")


class PaymentLink(BaseModel):
    """What API consumers get back after a payment order is created."""

    model_config = ConfigDict(populate_by_name=True)

    payment_link: str = Field(
        alias="paymentLink",
        examples=["https://www.flow.cl/app/web/pay.php?token=860E70A184DAED8CE346EFDA3700DA51C526695U"],
    )
    flow_order: int = Field(alias="flowOrder", examples=[127832165])


class ErrorResponse(BaseModel):
    """Generic error body; gateway details stay in the logs."""

    error: str
