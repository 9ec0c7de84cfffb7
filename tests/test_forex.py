"""
PS Hunter - Currency Conversion & Exchange Rate Tests

Conversion goes through the base currency: amount / rate(from) * rate(to).
A currency missing from the table counts as rate 1.
The rate source never raises: any failure yields the fallback table.
"""

from __future__ import annotations

from decimal import Decimal
from itertools import permutations
from unittest.mock import patch

import httpx
import pytest
import respx

from pshunter.config import FALLBACK_RATES, SUPPORTED_CURRENCIES, settings
from pshunter.utils import forex
from pshunter.utils.forex import convert_price, fetch_exchange_rates, format_price

RATES_URL = f"{settings.EXCHANGERATE_API_URL}/{settings.BASE_CURRENCY}"

RATES = {
    "USD": Decimal("1"),
    "TRY": Decimal("32.5"),
    "IDR": Decimal("15600"),
    "EUR": Decimal("0.92"),
}


class TestConvertPrice:
    """amount / rate(from) * rate(to)."""

    def test_foreign_to_base(self) -> None:
        """650 TRY at 32.5 TRY/USD is 20 USD."""
        result = convert_price(Decimal("650"), "TRY", "USD", RATES)
        assert result == Decimal("20")

    def test_base_to_foreign(self) -> None:
        result = convert_price(Decimal("10"), "USD", "IDR", RATES)
        assert result == Decimal("156000")

    def test_cross_rate_goes_through_base(self) -> None:
        """100 EUR -> USD -> TRY: 100 / 0.92 * 32.5."""
        result = convert_price(Decimal("100"), "EUR", "TRY", RATES)
        expected = Decimal("100") / Decimal("0.92") * Decimal("32.5")
        assert result == expected

    def test_missing_currency_is_identity_rate(self) -> None:
        """Unknown source currency is treated as rate 1, never an error."""
        result = convert_price(Decimal("50"), "XYZ", "USD", RATES)
        assert result == Decimal("50")

    def test_zero_rate_is_treated_as_missing(self) -> None:
        rates = {"USD": Decimal("1"), "TRY": Decimal("0")}
        assert convert_price(Decimal("12"), "TRY", "USD", rates) == Decimal("12")

    def test_currency_codes_are_case_insensitive(self) -> None:
        assert convert_price(Decimal("650"), "try", "usd", RATES) == Decimal("20")

    def test_accepts_float_amounts(self) -> None:
        """Floats are routed through str() so 0.1 stays 0.1."""
        assert convert_price(0.1, "USD", "USD", RATES) == Decimal("0.1")

    def test_round_trip_every_pair(self) -> None:
        """convert(convert(X, A, B), B, A) == X within precision."""
        amount = Decimal("59.99")
        for a, b in permutations(FALLBACK_RATES, 2):
            there = convert_price(amount, a, b, FALLBACK_RATES)
            back = convert_price(there, b, a, FALLBACK_RATES)
            assert abs(back - amount) < Decimal("1e-12"), (a, b, back)


class TestFormatPrice:
    """Locale-aware formatting, always two fraction digits."""

    def test_usd(self) -> None:
        assert format_price(Decimal("49.99"), "USD") == "$49.99"

    def test_eur_grouping_and_padding(self) -> None:
        assert format_price(Decimal("1234.5"), "EUR") == "€1,234.50"

    def test_zero_digit_currency_still_shows_two_digits(self) -> None:
        """JPY normally has no minor unit; display keeps two."""
        assert format_price(Decimal("1500"), "JPY") == "¥1,500.00"

    def test_code_shown_when_no_local_symbol(self) -> None:
        formatted = format_price(Decimal("12.5"), "SGD")
        assert "SGD" in formatted
        assert formatted.endswith("12.50")

    def test_rounds_to_cents(self) -> None:
        assert format_price(Decimal("19.999"), "USD") == "$20.00"

    def test_every_supported_currency_formats(self) -> None:
        for currency in SUPPORTED_CURRENCIES:
            formatted = format_price(Decimal("1"), currency)
            assert formatted.endswith("1.00"), (currency, formatted)


class TestFallbackTable:
    def test_covers_every_supported_currency(self) -> None:
        assert set(SUPPORTED_CURRENCIES) <= set(FALLBACK_RATES)

    def test_base_rate_is_one(self) -> None:
        assert FALLBACK_RATES[settings.BASE_CURRENCY] == Decimal("1")


class TestFetchExchangeRates:
    """Live rates with in-memory cache; never raises."""

    @pytest.mark.asyncio
    async def test_success_returns_live_table(self) -> None:
        payload = {"base": "USD", "rates": {"USD": 1, "SGD": 1.35, "TRY": 34.1, "IDR": 16250}}
        with respx.mock:
            respx.get(RATES_URL).mock(return_value=httpx.Response(200, json=payload))
            rates = await fetch_exchange_rates()

        assert rates["SGD"] == Decimal("1.35")
        assert rates["TRY"] == Decimal("34.1")
        assert rates["USD"] == Decimal("1")

    @pytest.mark.asyncio
    async def test_server_error_uses_fallback(self) -> None:
        with respx.mock:
            respx.get(RATES_URL).mock(return_value=httpx.Response(500, json={"error": "down"}))
            rates = await fetch_exchange_rates()

        assert rates == FALLBACK_RATES

    @pytest.mark.asyncio
    async def test_transport_error_uses_fallback(self) -> None:
        with respx.mock:
            respx.get(RATES_URL).mock(side_effect=httpx.ConnectError("no route"))
            rates = await fetch_exchange_rates()

        assert rates == FALLBACK_RATES

    @pytest.mark.asyncio
    async def test_malformed_json_uses_fallback(self) -> None:
        with respx.mock:
            respx.get(RATES_URL).mock(return_value=httpx.Response(200, text="<html>oops</html>"))
            rates = await fetch_exchange_rates()

        assert rates == FALLBACK_RATES

    @pytest.mark.asyncio
    async def test_missing_rates_key_uses_fallback(self) -> None:
        with respx.mock:
            respx.get(RATES_URL).mock(return_value=httpx.Response(200, json={"result": "error"}))
            rates = await fetch_exchange_rates()

        assert rates == FALLBACK_RATES

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_rate", [-32.5, 0, "NaN"])
    async def test_non_positive_rate_uses_fallback(self, bad_rate) -> None:
        payload = {"base": "USD", "rates": {"USD": 1, "TRY": bad_rate, "EUR": 0.92}}
        with respx.mock:
            respx.get(RATES_URL).mock(return_value=httpx.Response(200, json=payload))
            rates = await fetch_exchange_rates()

        assert rates == FALLBACK_RATES
        assert forex._rates_cache == {}

    @pytest.mark.asyncio
    async def test_fallback_is_a_copy(self) -> None:
        """Callers mutating the returned table never touch FALLBACK_RATES."""
        with respx.mock:
            respx.get(RATES_URL).mock(return_value=httpx.Response(503))
            rates = await fetch_exchange_rates()

        rates["USD"] = Decimal("99")
        assert FALLBACK_RATES["USD"] == Decimal("1")

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self) -> None:
        payload = {"rates": {"USD": 1, "EUR": 0.9}}
        with respx.mock:
            route = respx.get(RATES_URL).mock(return_value=httpx.Response(200, json=payload))
            first = await fetch_exchange_rates()
            second = await fetch_exchange_rates()

        assert first == second
        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_fallback_is_not_cached(self) -> None:
        payload = {"rates": {"USD": 1, "EUR": 0.9}}
        with respx.mock:
            route = respx.get(RATES_URL).mock(
                side_effect=[httpx.Response(500), httpx.Response(200, json=payload)]
            )
            first = await fetch_exchange_rates()
            second = await fetch_exchange_rates()

        assert first == FALLBACK_RATES
        assert second["EUR"] == Decimal("0.9")
        assert route.call_count == 2

    @pytest.mark.asyncio
    async def test_expired_cache_triggers_refresh(self) -> None:
        payload = {"rates": {"USD": 1, "EUR": 0.9}}
        with patch.object(forex.settings, "FOREX_CACHE_TTL_SECONDS", 0):
            with respx.mock:
                route = respx.get(RATES_URL).mock(return_value=httpx.Response(200, json=payload))
                await fetch_exchange_rates()
                await fetch_exchange_rates()

        assert route.call_count == 2
