"""Environment-driven settings for the relay process.

Loaded once at startup and never mutated afterwards. Every value can be
overridden through environment variables (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class RelaySettings(BaseSettings):
    """Typed, read-only view of runtime configuration."""

    service_name: str = "flow-relay"
    log_level: str = "INFO"
    flow_api_url: str = "https://www.flow.cl/api"
    # Default credential pair, used when a request carries no key headers.
    api_key: str = "TU_API_KEY"
    secret_key: str = "TU_SECRET_KEY"
    host: str = "0.0.0.0"
    port: int = 3000
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)


settings = RelaySettings()
