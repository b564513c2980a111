"""Business settings for the rentals domain.

Framework configuration lives in ``domain.toml``; everything here is read
from environment variables so deployments can tune fees, secrets and
adapters without touching code.
"""

import os
from dataclasses import dataclass
from decimal import Decimal

_settings = None


@dataclass(frozen=True)
class Settings:
    delivery_fee: int
    processing_fee_rate: Decimal
    deposit_amount: int
    max_write_attempts: int
    external_timeout: float
    webhook_secret: str
    operations_email: str
    currency: str = "USD"


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def load_settings() -> Settings:
    """Build a Settings instance from the current environment."""
    return Settings(
        delivery_fee=_int_env("RENTALS_DELIVERY_FEE_CENTS", 2000),
        processing_fee_rate=Decimal(os.environ.get("RENTALS_PROCESSING_FEE_RATE", "0.03")),
        deposit_amount=_int_env("RENTALS_DEPOSIT_CENTS", 0),
        max_write_attempts=max(1, _int_env("RENTALS_MAX_WRITE_ATTEMPTS", 3)),
        external_timeout=float(os.environ.get("RENTALS_EXTERNAL_TIMEOUT_SECONDS", "10")),
        webhook_secret=os.environ.get("SIGNATURE_WEBHOOK_SECRET", ""),
        operations_email=os.environ.get("OPERATIONS_EMAIL", "operations@example.com"),
    )


def get_settings() -> Settings:
    """Return the process-wide settings (loaded once)."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Override the active settings (useful for tests)."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Drop cached settings so the next access re-reads the environment."""
    global _settings
    _settings = None
