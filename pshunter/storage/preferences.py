"""
PS Hunter - Display Currency Preference

Remembers the currency the user last compared prices in.
"""

from __future__ import annotations

import structlog

from pshunter.config import SUPPORTED_CURRENCIES, settings
from pshunter.errors import StorageError, ValidationError
from pshunter.storage.backends import KeyValueStore

logger = structlog.get_logger(__name__)


def load_target_currency(storage: KeyValueStore) -> str:
    """Saved currency when it is supported, else settings.DEFAULT_CURRENCY."""
    try:
        saved = storage.get(settings.CURRENCY_PREFERENCE_KEY)
    except StorageError as e:
        logger.warning("preference_read_failed", error=str(e))
        saved = None

    if saved and saved.strip().upper() in SUPPORTED_CURRENCIES:
        return saved.strip().upper()
    return settings.DEFAULT_CURRENCY


def save_target_currency(storage: KeyValueStore, currency: str) -> str:
    """
    Persist the display currency.

    Raises:
        ValidationError: currency is not one of SUPPORTED_CURRENCIES.
    """
    code = currency.strip().upper()
    if code not in SUPPORTED_CURRENCIES:
        raise ValidationError(
            f"Unsupported currency {currency!r}; choose one of {', '.join(SUPPORTED_CURRENCIES)}."
        )

    try:
        storage.set(settings.CURRENCY_PREFERENCE_KEY, code)
    except StorageError as e:
        logger.warning("preference_write_failed", currency=code, error=str(e))
    return code
