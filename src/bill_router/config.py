"""Application configuration via environment variables with BILL_ prefix."""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Bill routing pipeline configuration.

    All settings are read from environment variables prefixed with ``BILL_``.
    Secrets (API keys, connection strings) are wrapped in ``SecretStr`` so they
    are never accidentally logged or serialised.
    """

    model_config = SettingsConfigDict(env_prefix="BILL_")

    # ── Billing API ──────────────────────────────────────────────────────
    onebill_api_key: SecretStr = SecretStr("")
    electricity_endpoint: str = "https://api.onebill.ie/api/electricity-file"
    gas_endpoint: str = "https://api.onebill.ie/api/gas-file"
    meter_endpoint: str = "https://api.onebill.ie/api/meter-file"
    http_timeout: float = Field(default=60.0, gt=0)

    # ── Vision extraction (OpenAI-compatible gateway) ────────────────────
    llm_api_key: SecretStr = SecretStr("")
    llm_base_url: str = "https://ai.gateway.lovable.dev/v1"
    extraction_model: str = "google/gemini-2.5-pro"
    llm_temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    llm_timeout: int = 120

    # ── Uploaded files ───────────────────────────────────────────────────
    # Public base URL that ``file_path`` references are resolved against
    file_base_url: str = ""

    # ── Endpoint configuration store ─────────────────────────────────────
    # Leave empty to route with the endpoints above only
    database_url: SecretStr = SecretStr("")

    # ── Routing thresholds ───────────────────────────────────────────────
    indicator_threshold: int = Field(default=3, ge=1, le=6)
    strong_indicator_min: int = Field(default=4, ge=1, le=6)
    weak_indicator_max: int = Field(default=2, ge=0, le=6)
    meter_photo_indicator_max: int = Field(default=1, ge=0, le=6)
    electricity_only_suppliers: list[str] = Field(
        default=["electric ireland", "esb networks", "esb energy", "energia"]
    )
    gas_only_suppliers: list[str] = Field(default=["flogas", "natural gas"])

    # ── Retry ────────────────────────────────────────────────────────────
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=0.5, ge=0.0)

    # ── API ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = Field(default=["*"])
