"""
PS Hunter - AI Price Fetcher (Anthropic)

Asks the model for a game's canonical title, a short description and the
current/original price in each requested PlayStation Store region. The
answer is forced through a single tool whose input_schema is the fixed
output schema, then validated again with pydantic before it is trusted.

Failure classes:
    429 / 503 / 529  -> TransientProviderError, retried with backoff
    other API errors -> TerminalProviderError, raised immediately
    empty / invalid  -> SchemaViolation, raised immediately
"""

from __future__ import annotations

from typing import Any, Iterable

import anthropic
import structlog
from pydantic import ValidationError as PydanticValidationError

from pshunter.config import settings
from pshunter.errors import (
    ConfigurationError,
    ProviderError,
    SchemaViolation,
    TerminalProviderError,
    TransientProviderError,
    ValidationError,
)
from pshunter.models.game import GameData
from pshunter.models.region import REGIONS, Region, RegionCode, find_region
from pshunter.utils.retry import RetryPolicy

logger = structlog.get_logger(__name__)

# 529 is Anthropic's own "overloaded" status; treated like 503.
RETRYABLE_STATUS_CODES = frozenset({429, 503, 529})

PRICE_TOOL_NAME = "report_game_prices"

PRICE_OUTPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "Official game title"},
        "description": {"type": "string", "description": "Short description"},
        "coverImageUrl": {"type": "string", "description": "URL of the game cover art"},
        "prices": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "region": {"type": "string", "description": "Region name"},
                    "regionCode": {"type": "string", "enum": [code.value for code in RegionCode]},
                    "currency": {"type": "string", "description": "Currency code"},
                    "amount": {"type": "number", "description": "Current price"},
                    "originalAmount": {"type": "number", "description": "Original price"},
                },
                "required": ["region", "regionCode", "currency", "amount"],
            },
        },
    },
    "required": ["title", "description", "prices"],
}


def is_transient_provider_error(exc: BaseException) -> bool:
    return isinstance(exc, TransientProviderError)


def classify_status_error(exc: anthropic.APIStatusError) -> ProviderError:
    """Map an API status failure onto the retryable/terminal split."""
    status_code = exc.status_code
    if status_code in RETRYABLE_STATUS_CODES:
        return TransientProviderError(
            f"AI provider busy ({status_code}): {exc.message}",
            status_code=status_code,
        )
    return TerminalProviderError(
        f"AI provider rejected the request ({status_code}): {exc.message}",
        status_code=status_code,
    )


def resolve_regions(region_codes: Iterable[str]) -> list[Region]:
    """
    Turn requested codes into registry regions, in registry order.

    Raises:
        ValidationError: when a code is unknown or nothing was requested.
    """
    requested: set[RegionCode] = set()
    for code in region_codes:
        region = find_region(code)
        if region is None:
            raise ValidationError(f"Unsupported region code: {code!r}")
        requested.add(region.code)

    if not requested:
        raise ValidationError("Please select at least one region.")

    return [region for region in REGIONS if region.code in requested]


def build_prompt(query: str, regions: list[Region]) -> str:
    region_lines = "\n".join(
        f"{i}. {region.name} (Store currency: {region.default_currency})"
        for i, region in enumerate(regions, start=1)
    )
    return (
        "You are a PlayStation Store price checking assistant.\n\n"
        f'TARGET GAME: "{query}"\n\n'
        "TASK:\n"
        "1. Identify the exact PlayStation game title.\n"
        "2. Write a short, exciting description of the game (max 25 words).\n"
        "3. Find the CURRENT digital price of the game in these PlayStation Store regions:\n"
        f"{region_lines}\n\n"
        "For each region:\n"
        "- amount is the current (sale) price.\n"
        "- originalAmount is the regular price.\n"
        "- If the game is not on sale, amount and originalAmount are equal.\n"
        "- If the game is not listed in a region, still include it with amount 0.\n\n"
        f"Report the result with the {PRICE_TOOL_NAME} tool."
    )


def _extract_tool_input(response: Any) -> dict[str, Any] | None:
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "tool_use" and getattr(block, "name", None) == PRICE_TOOL_NAME:
            tool_input = getattr(block, "input", None)
            if isinstance(tool_input, dict) and tool_input:
                return tool_input
    return None


class AIPriceFetcher:
    """
    Structured price search against the Anthropic Messages API.

    The SDK's own retries are disabled (max_retries=0) so the RetryPolicy is
    the only place attempts are repeated.

    Usage:
        fetcher = AIPriceFetcher()
        game = await fetcher.fetch_prices("Elden Ring", {"US", "TR"})
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: Any | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        self._api_key = api_key if api_key is not None else settings.ANTHROPIC_API_KEY
        self._model = model or settings.PRICE_MODEL_ID
        self._client = client
        self._retry_policy = retry_policy or RetryPolicy(
            max_attempts=settings.PRICE_FETCH_MAX_ATTEMPTS,
            base_delay=settings.PRICE_FETCH_BASE_BACKOFF_SECONDS,
            is_retryable=is_transient_provider_error,
        )

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self._api_key,
                max_retries=0,
                timeout=60.0,
            )
        return self._client

    async def _attempt(self, query: str, regions: list[Region]) -> GameData:
        """One request/validate round trip. No retries here."""
        client = self._get_client()
        try:
            response = await client.messages.create(
                model=self._model,
                max_tokens=settings.PRICE_MAX_TOKENS,
                tools=[{
                    "name": PRICE_TOOL_NAME,
                    "description": "Report the game's title, description and regional prices.",
                    "input_schema": PRICE_OUTPUT_SCHEMA,
                }],
                tool_choice={"type": "tool", "name": PRICE_TOOL_NAME},
                messages=[{"role": "user", "content": build_prompt(query, regions)}],
            )
        except anthropic.APIStatusError as e:
            raise classify_status_error(e) from e
        except anthropic.APIConnectionError as e:
            raise TerminalProviderError(f"AI provider unreachable: {e}") from e

        tool_input = _extract_tool_input(response)
        if tool_input is None:
            raise SchemaViolation("No response from AI provider")

        try:
            return GameData.model_validate(tool_input)
        except PydanticValidationError as e:
            logger.warning(
                "price_response_schema_violation",
                query=query,
                errors=e.error_count(),
                source="anthropic",
            )
            raise SchemaViolation(f"AI response did not match the price schema: {e}") from e

    async def fetch_prices(self, query: str, region_codes: Iterable[str]) -> GameData:
        """
        Fetch title, description and per-region prices for a game.

        Args:
            query: Free-text game name.
            region_codes: Region codes to price (subset of US, SG, TR, ID).

        Returns:
            Uncleaned GameData exactly as the provider reported it.

        Raises:
            ConfigurationError: ANTHROPIC_API_KEY is not set.
            ValidationError: no or unknown region codes.
            SchemaViolation: empty or malformed provider response.
            TerminalProviderError: non-retryable failure, or still busy
                after the last attempt.
        """
        if not self._api_key:
            raise ConfigurationError(
                "Anthropic API key is missing. Set ANTHROPIC_API_KEY in the environment or .env."
            )

        regions = resolve_regions(region_codes)
        logger.info(
            "price_fetch_start",
            query=query,
            regions=[region.code.value for region in regions],
            model=self._model,
            source="anthropic",
        )

        try:
            game = await self._retry_policy.run(
                lambda: self._attempt(query, regions),
                name="fetch_prices",
            )
        except TransientProviderError as e:
            attempts = self._retry_policy.max_attempts
            raise TerminalProviderError(
                f"AI provider still unavailable after {attempts} attempts: {e}",
                status_code=e.status_code,
                attempts=attempts,
            ) from e

        logger.info(
            "price_fetch_complete",
            query=query,
            title=game.title,
            prices_count=len(game.prices),
            source="anthropic",
        )
        return game
