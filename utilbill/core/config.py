"""Application configuration settings."""

import os
from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_database_url() -> str:
    """Get the default database URL, using a mounted volume path if available."""
    if os.path.isdir("/data"):
        return "sqlite:////data/utilbill.db"
    return "sqlite:///./utilbill.db"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    PROJECT_NAME: str = "Utilbill"
    VERSION: str = "0.1.0"
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = _get_default_database_url()

    # Billing defaults, overridable per request
    DEFAULT_TAX_RATE_PERCENT: Decimal = Decimal("0")
    DEFAULT_OTHER_CAM_COSTS: Decimal = Decimal("0")

    # Drop is_cam line items from invoice requests when the invoice service
    # computes CAM on its own
    STRIP_CAM_FROM_INVOICE: bool = False

    # Remote contract API; the database contract store is used when unset
    CONTRACT_API_URL: str | None = None

    # Max concurrent per-unit lookups during a building billing run
    BATCH_CONCURRENCY: int = 8

    # Bill metered utilities at the flat rate for units without a meter
    METERED_MINIMUM_CHARGE: bool = True


settings = Settings()
