"""
PS Hunter - Metadata Fetcher (RAWG)

Best-effort lookup of a game's canonical title and cover art. This is an
enrichment source, not a dependency: every failure path collapses to an
empty GameMetadata and fetch_metadata() never raises.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field

from pshunter.config import settings
from pshunter.models.game import GameMetadata

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Pydantic Response Models
# ---------------------------------------------------------------------------


class RawgGame(BaseModel):
    """The two fields we consume from a RAWG search hit."""

    name: str | None = None
    background_image: str | None = None


class RawgSearchResponse(BaseModel):
    results: list[RawgGame] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


class MetadataFetcher:
    """
    Async client for the RAWG games search.

    Usage:
        async with MetadataFetcher() as fetcher:
            metadata = await fetcher.fetch_metadata("elden ring")

    Outside a context block each call opens its own short-lived client.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self._api_key = api_key if api_key is not None else settings.RAWG_API_KEY
        self._base_url = base_url or settings.RAWG_BASE_URL
        self._timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> MetadataFetcher:
        self._client = httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _search(self, query: str) -> httpx.Response:
        params = {"key": self._api_key, "search": query, "page_size": 1}
        if self._client is not None:
            return await self._client.get("/games", params=params)
        async with httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout) as client:
            return await client.get("/games", params=params)

    async def fetch_metadata(self, query: str) -> GameMetadata:
        """
        Look up canonical title and cover image for a free-text query.

        Returns:
            GameMetadata, empty when no key is configured, the service is
            unavailable or nothing matched.
        """
        if not self._api_key:
            logger.info("metadata_skipped_no_api_key", source="rawg")
            return GameMetadata()

        try:
            response = await self._search(query)
        except httpx.HTTPError as e:
            logger.warning("metadata_request_error", query=query, error=str(e), source="rawg")
            return GameMetadata()

        if not response.is_success:
            logger.warning(
                "metadata_http_error",
                query=query,
                status_code=response.status_code,
                source="rawg",
            )
            return GameMetadata()

        try:
            parsed = RawgSearchResponse.model_validate(response.json())
        except ValueError as e:
            logger.warning("metadata_parse_error", query=query, error=str(e)[:200], source="rawg")
            return GameMetadata()

        if not parsed.results:
            logger.info("metadata_no_results", query=query, source="rawg")
            return GameMetadata()

        first = parsed.results[0]
        metadata = GameMetadata(title=first.name or None, cover_image_url=first.background_image or None)

        logger.info(
            "metadata_fetch_complete",
            query=query,
            title=metadata.title,
            has_cover=metadata.cover_image_url is not None,
            source="rawg",
        )
        return metadata
