"""
PS Hunter - Price Reconciler

Runs the metadata lookup and the AI price search concurrently, then merges
them with fixed precedence:

    - the AI result is the base and always owns the description
    - metadata title / cover image overlay the AI values when present

and cleans the prices:

    - amount <= 0 means "not sold in that region" and is dropped
    - a missing or smaller original price is set to the current price
      (never show a discount that does not exist)

Zero surviving prices is a valid result ("found the game, no live price").
"""

from __future__ import annotations

import asyncio
from typing import Iterable

import structlog

from pshunter.errors import ValidationError
from pshunter.models.game import GameData, GameMetadata, PriceInfo
from pshunter.pipeline.metadata import MetadataFetcher
from pshunter.pipeline.prices import AIPriceFetcher, resolve_regions

logger = structlog.get_logger(__name__)


def merge_results(ai_result: GameData, metadata: GameMetadata) -> GameData:
    """Overlay present metadata fields onto the AI result."""
    updates: dict[str, str] = {}
    if metadata.title:
        updates["title"] = metadata.title
    if metadata.cover_image_url:
        updates["cover_image_url"] = metadata.cover_image_url
    return ai_result.model_copy(update=updates, deep=True)


def _normalize_price(price: PriceInfo) -> PriceInfo:
    if price.original_amount is None or price.original_amount < price.amount:
        return price.model_copy(update={"original_amount": price.amount})
    return price


def clean_prices(game: GameData) -> GameData:
    """
    Drop unavailable regions and normalize original prices.

    Idempotent: cleaning an already-clean GameData returns an equal one.
    """
    cleaned = [_normalize_price(price) for price in game.prices if price.amount > 0]
    return game.model_copy(update={"prices": cleaned})


class PriceReconciler:
    """
    Combines the two sources into one GameData per search.

    Holds no mutable state between calls, so it can be invoked repeatedly
    without locking.
    """

    def __init__(
        self,
        metadata_fetcher: MetadataFetcher | None = None,
        price_fetcher: AIPriceFetcher | None = None,
    ):
        self._metadata_fetcher = metadata_fetcher or MetadataFetcher()
        self._price_fetcher = price_fetcher or AIPriceFetcher()

    async def search_game_prices(self, query: str, region_codes: Iterable[str]) -> GameData:
        """
        Search one game across the selected regions.

        Raises:
            ValidationError: blank query, empty or unknown region selection.
                Raised before any network activity.
            ConfigurationError, SchemaViolation, TerminalProviderError:
                propagated from the AI price fetcher.
        """
        query = query.strip() if query else ""
        if not query:
            raise ValidationError("Please enter a game title to search.")

        codes = list(region_codes)
        if not codes:
            raise ValidationError("Please select at least one region.")
        regions = resolve_regions(codes)
        requested = {region.code for region in regions}

        logger.info(
            "search_start",
            query=query,
            regions=sorted(code.value for code in requested),
        )

        # Both fetches always run to completion before a price error propagates
        metadata, ai_result = await asyncio.gather(
            self._metadata_fetcher.fetch_metadata(query),
            self._price_fetcher.fetch_prices(query, [region.code.value for region in regions]),
            return_exceptions=True,
        )
        if isinstance(ai_result, BaseException):
            raise ai_result
        if isinstance(metadata, BaseException):
            logger.warning(
                "search_metadata_failed",
                query=query,
                error=str(metadata),
                error_type=type(metadata).__name__,
            )
            metadata = GameMetadata()

        merged = merge_results(ai_result, metadata)
        unrequested = [p for p in merged.prices if p.region_code not in requested]
        if unrequested:
            logger.warning(
                "search_dropped_unrequested_regions",
                query=query,
                regions=[p.region_code.value for p in unrequested],
            )
            merged = merged.model_copy(
                update={"prices": [p for p in merged.prices if p.region_code in requested]}
            )

        result = clean_prices(merged)

        logger.info(
            "search_complete",
            query=query,
            title=result.title,
            metadata_used=not metadata.is_empty,
            prices_reported=len(ai_result.prices),
            prices_kept=len(result.prices),
        )
        return result


async def search_game_prices(query: str, region_codes: Iterable[str]) -> GameData:
    """Convenience entry point using default fetchers built from settings."""
    return await PriceReconciler().search_game_prices(query, region_codes)
