"""
PS Hunter - Configuration & Constants

Every endpoint, credential, retry budget and storage key lives here.
No hardcoded values in pipeline logic.

Usage:
    from pshunter.config import settings
"""

from __future__ import annotations

from decimal import Decimal

from pydantic_settings import BaseSettings


# ---------------------------------------------------------------------------
# Static tables
# ---------------------------------------------------------------------------

# Display currencies offered to the user. The fallback rate table below must
# cover every one of them.
SUPPORTED_CURRENCIES: tuple[str, ...] = (
    "USD", "EUR", "GBP", "SGD", "IDR", "TRY", "MYR", "JPY", "PHP",
)

# Approximate USD-based rates used whenever the live rate endpoint fails.
FALLBACK_RATES: dict[str, Decimal] = {
    "USD": Decimal("1"),
    "SGD": Decimal("1.34"),
    "TRY": Decimal("32.5"),
    "IDR": Decimal("15600"),
    "EUR": Decimal("0.92"),
    "GBP": Decimal("0.79"),
    "MYR": Decimal("4.75"),
    "JPY": Decimal("150.0"),
    "PHP": Decimal("56.0"),
}


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """
    Central configuration for PS Hunter.

    Loads from environment variables (and .env) with fallback defaults.
    """

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # -----------------------------------------------------------------------
    # AI price search (Anthropic)
    # -----------------------------------------------------------------------
    ANTHROPIC_API_KEY: str = ""
    PRICE_MODEL_ID: str = "claude-sonnet-4-5"
    PRICE_MAX_TOKENS: int = 2048
    PRICE_FETCH_MAX_ATTEMPTS: int = 3
    PRICE_FETCH_BASE_BACKOFF_SECONDS: float = 2.0

    # -----------------------------------------------------------------------
    # Metadata (RAWG)
    # -----------------------------------------------------------------------
    RAWG_API_KEY: str = ""
    RAWG_BASE_URL: str = "https://api.rawg.io/api"

    # -----------------------------------------------------------------------
    # Exchange rates
    # -----------------------------------------------------------------------
    EXCHANGERATE_API_URL: str = "https://api.exchangerate-api.com/v4/latest"
    BASE_CURRENCY: str = "USD"
    FOREX_CACHE_TTL_SECONDS: int = 3600  # one refresh per session in practice

    HTTP_TIMEOUT_SECONDS: float = 10.0

    # -----------------------------------------------------------------------
    # Local persistence
    # -----------------------------------------------------------------------
    DATA_DIR: str = ".pshunter"
    HISTORY_STORAGE_KEY: str = "ps_price_history_v1"
    CURRENCY_PREFERENCE_KEY: str = "targetCurrency"

    # -----------------------------------------------------------------------
    # Display
    # -----------------------------------------------------------------------
    DEFAULT_CURRENCY: str = "USD"
    DISPLAY_LOCALE: str = "en_US"
    LOG_LEVEL: str = "INFO"


# Singleton instance
settings = Settings()
