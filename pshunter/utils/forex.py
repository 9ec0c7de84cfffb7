"""
PS Hunter - Currency Conversion & Exchange Rates

All rates are expressed relative to one base currency (USD, rate 1).
Converting goes amount -> base -> target: amount / rate(from) * rate(to).
A currency missing from the table is treated as rate 1 so one unknown code
never blocks a whole comparison.

Money values use Decimal; no rounding happens during conversion, only when
formatting for display.

fetch_exchange_rates() is async, caches a successful table in memory for
FOREX_CACHE_TTL_SECONDS and falls back to FALLBACK_RATES on any failure. It
never raises.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import httpx
import structlog
from babel.numbers import format_currency
from pydantic import BaseModel, Field, ValidationError, field_validator

from pshunter.config import FALLBACK_RATES, settings
from pshunter.models.game import to_decimal

logger = structlog.get_logger(__name__)

ExchangeRates = dict[str, Decimal]

# Module-level cache (in-memory, not persisted across restarts)
_rates_cache: dict[str, Any] = {}


class ExchangeRatePayload(BaseModel):
    """Subset of the rate endpoint response we rely on."""

    base: str | None = None
    rates: dict[str, Decimal] = Field(...)

    @field_validator("rates", mode="before")
    @classmethod
    def parse_rates(cls, v: Any) -> dict[str, Decimal]:
        if not isinstance(v, dict) or not v:
            raise ValueError("rates must be a non-empty mapping")
        rates = {str(code).upper(): to_decimal(rate) for code, rate in v.items()}
        for code, rate in rates.items():
            if not rate.is_finite() or rate <= 0:
                raise ValueError(f"rate for {code} must be a positive number, got {rate}")
        return rates


def _rate(rates: ExchangeRates, currency: str) -> Decimal:
    rate = rates.get(currency.upper())
    if not rate:
        return Decimal("1")
    return rate


def convert_price(
    amount: Decimal,
    from_currency: str,
    to_currency: str,
    rates: ExchangeRates,
) -> Decimal:
    """
    Convert an amount between two currencies via the base currency.

    Args:
        amount: Amount in from_currency.
        from_currency: ISO code of the amount's currency.
        to_currency: ISO code to convert into.
        rates: Rate table relative to the base currency.

    Returns:
        Unrounded amount in to_currency.

    Examples:
        >>> convert_price(Decimal("32.5"), "TRY", "USD", {"USD": Decimal("1"), "TRY": Decimal("32.5")})
        Decimal('1')
    """
    amount = Decimal(str(amount))
    from_rate = _rate(rates, from_currency)
    to_rate = _rate(rates, to_currency)

    amount_in_base = amount / from_rate
    return amount_in_base * to_rate


def format_price(
    amount: Decimal,
    currency: str,
    locale: str | None = None,
) -> str:
    """
    Format an amount for display, always with two fraction digits.

    currency_digits=False makes the locale pattern (0.00) win over the
    currency's own digit count, so JPY and IDR also show two decimals.
    """
    return format_currency(
        Decimal(str(amount)),
        currency.upper(),
        locale=locale or settings.DISPLAY_LOCALE,
        currency_digits=False,
    )


def _fallback(reason: str, **context: Any) -> ExchangeRates:
    logger.warning(
        "rates_fetch_failed_using_fallback",
        reason=reason,
        currencies=len(FALLBACK_RATES),
        source="forex",
        **context,
    )
    return dict(FALLBACK_RATES)


async def fetch_exchange_rates(
    client: httpx.AsyncClient | None = None,
) -> ExchangeRates:
    """
    Return the current rate table relative to settings.BASE_CURRENCY.

    Uses a live API with an in-memory cache. Falls back to FALLBACK_RATES on
    transport failure, non-success status or malformed payload.

    Args:
        client: Optional shared httpx client. A short-lived one is created
            when omitted.
    """
    now = datetime.now(timezone.utc)
    if _rates_cache:
        age_seconds = (now - _rates_cache["fetched_at"]).total_seconds()
        if age_seconds < settings.FOREX_CACHE_TTL_SECONDS:
            logger.debug(
                "rates_cache_hit",
                age_seconds=int(age_seconds),
                source="forex",
            )
            return dict(_rates_cache["rates"])

    url = f"{settings.EXCHANGERATE_API_URL}/{settings.BASE_CURRENCY}"

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as own_client:
                response = await own_client.get(url)
        else:
            response = await client.get(url)
        response.raise_for_status()
        payload = ExchangeRatePayload.model_validate(response.json())
    except httpx.HTTPStatusError as e:
        return _fallback("http_status", status_code=e.response.status_code)
    except httpx.HTTPError as e:
        return _fallback("transport", error=str(e))
    except (ValueError, ValidationError) as e:
        return _fallback("malformed_payload", error=str(e)[:200])

    rates = payload.rates
    rates[settings.BASE_CURRENCY.upper()] = Decimal("1")

    _rates_cache["rates"] = rates
    _rates_cache["fetched_at"] = now

    logger.info(
        "rates_refreshed",
        base=settings.BASE_CURRENCY,
        currencies=len(rates),
        source="forex",
    )
    return dict(rates)
