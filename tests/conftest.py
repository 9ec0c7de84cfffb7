"""
PS Hunter - Shared pytest Fixtures & Configuration

Provides common fixtures for all test modules:
- In-memory key-value storage
- Provider payloads and a scripted Anthropic client
- Isolation of the module-level exchange-rate cache
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Callable, Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest

from pshunter.pipeline.prices import PRICE_TOOL_NAME
from pshunter.storage.backends import InMemoryStore
from pshunter.utils import forex


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for anyio tests."""
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_rates_cache() -> Iterator[None]:
    """The exchange-rate cache is module-level; isolate every test."""
    forex._rates_cache.clear()
    yield
    forex._rates_cache.clear()


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def price_payload() -> dict[str, Any]:
    """Tool input as the AI provider would report it for all four regions."""
    return {
        "title": "ELDEN RING",
        "description": "Rise, Tarnished, and brave the Lands Between.",
        "coverImageUrl": "https://example.com/ai-cover.jpg",
        "prices": [
            {"region": "United States", "regionCode": "US", "currency": "USD", "amount": 39.99, "originalAmount": 59.99},
            {"region": "Singapore", "regionCode": "SG", "currency": "SGD", "amount": 69.9, "originalAmount": 69.9},
            {"region": "Turkey", "regionCode": "TR", "currency": "TRY", "amount": 0, "originalAmount": 0},
            {"region": "Indonesia", "regionCode": "ID", "currency": "IDR", "amount": 729000},
        ],
    }


@pytest.fixture
def make_tool_response() -> Callable[[dict[str, Any] | None], SimpleNamespace]:
    """Build a Messages API response carrying one forced tool call."""

    def _make(tool_input: dict[str, Any] | None) -> SimpleNamespace:
        if tool_input is None:
            return SimpleNamespace(content=[], stop_reason="end_turn")
        return SimpleNamespace(
            content=[SimpleNamespace(type="tool_use", name=PRICE_TOOL_NAME, input=tool_input)],
            stop_reason="tool_use",
        )

    return _make


@pytest.fixture
def make_anthropic_client() -> Callable[..., MagicMock]:
    """
    Anthropic client whose messages.create walks through outcomes in order.

    Each outcome is either an exception instance (raised) or a response.
    """

    def _make(*outcomes: Any) -> MagicMock:
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=list(outcomes))
        return client

    return _make
