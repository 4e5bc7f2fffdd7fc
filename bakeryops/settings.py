# bakeryops/settings.py
from __future__ import annotations
from typing import List, Optional
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
import logging
import os

_DEFAULT_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def _parse_cors(v: Optional[str | List[str]]) -> List[str]:
    """
    Accept JSON array (e.g. '["http://localhost:3000"]') or
    comma-separated string ('http://localhost:3000,http://127.0.0.1:3000').
    """
    if v is None:
        return list(_DEFAULT_ORIGINS)
    if isinstance(v, list):
        return v
    s = v.strip()
    if not s:
        return list(_DEFAULT_ORIGINS)
    # try JSON first
    try:
        parsed = json.loads(s)
        if isinstance(parsed, list) and all(isinstance(x, str) for x in parsed):
            return parsed
    except json.JSONDecodeError:
        pass
    # fallback: comma separated
    return [p.strip() for p in s.split(",") if p.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",   # ignore unknown env keys instead of raising
    )

    # --- API ---
    api_host: str = Field(default="127.0.0.1", validation_alias=AliasChoices("API_HOST",))
    api_port: int = Field(default=8000,        validation_alias=AliasChoices("API_PORT",))
    cors_origins_raw: Optional[str | List[str]] = Field(
        default=None, validation_alias=AliasChoices("CORS_ORIGINS",)
    )
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL",))

    # --- Store backend ---
    # "firestore" talks to Firebase; "memory" keeps everything in-process (dev/tests)
    store_backend: str = Field(
        default="firestore", validation_alias=AliasChoices("STORE_BACKEND",)
    )

    # --- Firebase ---
    firebase_project_id: str = Field(
        default="sst-bakery",
        validation_alias=AliasChoices("FIREBASE_PROJECT_ID",)
    )
    google_application_credentials: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_APPLICATION_CREDENTIALS",)
    )
    storage_bucket: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FIREBASE_STORAGE_BUCKET", "STORAGE_BUCKET")
    )

    # --- Orders / POS ---
    tax_rate: float = Field(default=0.18, validation_alias=AliasChoices("TAX_RATE",))
    guest_email: str = Field(
        default="guest@fooddelivery.com", validation_alias=AliasChoices("GUEST_EMAIL",)
    )
    receipt_store_name: str = Field(
        default="SST BAKERY", validation_alias=AliasChoices("RECEIPT_STORE_NAME",)
    )
    receipt_timezone: str = Field(
        default="Asia/Kolkata", validation_alias=AliasChoices("RECEIPT_TIMEZONE",)
    )

    # --- Pending-order alert ---
    enable_order_poller: bool = Field(
        default=True, validation_alias=AliasChoices("ENABLE_ORDER_POLLER",)
    )
    poll_interval_seconds: float = Field(
        default=5.0, validation_alias=AliasChoices("POLL_INTERVAL_SECONDS",)
    )
    alert_sound_url: str = Field(
        default="/zomato_ring_5.mp3", validation_alias=AliasChoices("ALERT_SOUND_URL",)
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors(self.cors_origins_raw)


def setup_logging() -> None:
    """Configure root logging from LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# singleton
settings = Settings()

# Make sure GOOGLE_APPLICATION_CREDENTIALS is exported for firebase_admin
if settings.google_application_credentials:
    os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = settings.google_application_credentials
