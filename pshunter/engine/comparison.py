"""
PS Hunter - Regional Price Comparison

Turns a search result into rows ranked by price in one target currency.

Discount:
    discount_percent = round((original - amount) / original * 100), half up
    original falls back to amount when missing or non-positive
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

import structlog
from pydantic import BaseModel

from pshunter.models.game import PriceInfo
from pshunter.models.region import RegionCode, find_region
from pshunter.utils.forex import ExchangeRates, convert_price

logger = structlog.get_logger(__name__)

DEFAULT_BEST_REGION = RegionCode.US.value


class RegionQuote(BaseModel):
    """One row of the ranked comparison."""

    region_code: RegionCode
    region_name: str
    currency: str
    amount: Decimal
    original_amount: Decimal
    target_currency: str
    converted_amount: Decimal
    converted_original_amount: Decimal
    is_on_sale: bool
    discount_percent: int
    is_best_price: bool = False


def calculate_discount_percent(amount: Decimal, original_amount: Decimal) -> int:
    if original_amount <= 0 or original_amount <= amount:
        return 0
    ratio = (original_amount - amount) / original_amount * Decimal("100")
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _quote(price: PriceInfo, target_currency: str, rates: ExchangeRates) -> RegionQuote:
    original = price.original_amount if price.original_amount and price.original_amount > 0 else price.amount
    region = find_region(price.region_code)

    return RegionQuote(
        region_code=price.region_code,
        region_name=region.name if region else price.region,
        currency=price.currency,
        amount=price.amount,
        original_amount=original,
        target_currency=target_currency,
        converted_amount=convert_price(price.amount, price.currency, target_currency, rates),
        converted_original_amount=convert_price(original, price.currency, target_currency, rates),
        is_on_sale=original > price.amount,
        discount_percent=calculate_discount_percent(price.amount, original),
    )


def rank_prices(
    prices: Iterable[PriceInfo],
    target_currency: str,
    rates: ExchangeRates,
) -> list[RegionQuote]:
    """
    Convert every price into target_currency and sort cheapest first.

    Every row whose converted amount equals the cheapest one is flagged
    is_best_price.
    """
    target_currency = target_currency.upper()
    quotes = sorted(
        (_quote(price, target_currency, rates) for price in prices),
        key=lambda q: q.converted_amount,
    )
    if not quotes:
        return []

    best = quotes[0].converted_amount
    for quote in quotes:
        quote.is_best_price = quote.converted_amount == best

    logger.debug(
        "prices_ranked",
        target_currency=target_currency,
        rows=len(quotes),
        best_region=quotes[0].region_code.value,
    )
    return quotes


def best_region_code(quotes: list[RegionQuote]) -> str:
    """Region whose history is shown first: the cheapest, else US."""
    if not quotes:
        return DEFAULT_BEST_REGION
    return quotes[0].region_code.value
