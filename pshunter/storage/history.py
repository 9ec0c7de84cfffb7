"""
PS Hunter - Price History Store

Per (game, region) time series keyed by calendar day. Recording twice on the
same day amends the last point instead of adding one; a new day appends.
Points are only ever appended or amended at the tail, so each series stays in
chronological order.

History is best-effort telemetry: unreadable or corrupted documents read as
empty, and write failures are logged and swallowed. The read-modify-write is
not locked; callers serialize searches.
"""

from __future__ import annotations

import datetime as dt
from typing import Iterable

import structlog
from pydantic import ValidationError as PydanticValidationError

from pshunter.config import settings
from pshunter.errors import StorageError
from pshunter.models.game import PriceInfo
from pshunter.models.history import HistoryDocument, HistoryPoint, history_document_adapter
from pshunter.models.region import RegionCode
from pshunter.storage.backends import KeyValueStore

logger = structlog.get_logger(__name__)


def normalize_title(title: str) -> str:
    """Lookup key for a game: trimmed and case-folded."""
    return title.strip().casefold()


def _as_day(today: dt.date | str | None) -> dt.date:
    if today is None:
        return dt.datetime.now(dt.timezone.utc).date()
    if isinstance(today, dt.datetime):
        return today.date()
    if isinstance(today, dt.date):
        return today
    return dt.date.fromisoformat(today)


def _region_key(region_code: RegionCode | str) -> str:
    if isinstance(region_code, RegionCode):
        return region_code.value
    return str(region_code).strip().upper()


class PriceHistoryStore:
    """
    Usage:
        history = PriceHistoryStore(JsonFileStore(settings.DATA_DIR))
        history.record("Elden Ring", game.prices)
        points = history.query("elden ring", "US")
    """

    def __init__(self, storage: KeyValueStore, key: str | None = None) -> None:
        self._storage = storage
        self._key = key or settings.HISTORY_STORAGE_KEY

    def _load(self) -> HistoryDocument:
        try:
            raw = self._storage.get(self._key)
        except StorageError as e:
            logger.warning("history_read_failed", key=self._key, error=str(e))
            return {}

        if not raw:
            return {}

        try:
            return history_document_adapter.validate_json(raw)
        except PydanticValidationError as e:
            logger.warning(
                "history_document_corrupted",
                key=self._key,
                errors=e.error_count(),
            )
            return {}

    def record(
        self,
        title: str,
        prices: Iterable[PriceInfo],
        today: dt.date | str | None = None,
    ) -> None:
        """
        Add one search's prices to the history as a single write.

        Args:
            title: Game title; normalized before use as the key.
            prices: Cleaned price entries from one search.
            today: Calendar day of the observation (date or "YYYY-MM-DD").
                Defaults to the current UTC day.
        """
        key = normalize_title(title)
        prices = list(prices)
        if not key or not prices:
            logger.debug("history_record_skipped", title=title, prices_count=len(prices))
            return

        try:
            day = _as_day(today)
        except ValueError as e:
            logger.error("history_record_bad_date", title=title, today=str(today), error=str(e))
            return

        document = self._load()
        game_series = document.setdefault(key, {})

        for price in prices:
            series = game_series.setdefault(_region_key(price.region_code), [])
            if series and series[-1].date == day:
                series[-1] = HistoryPoint(date=day, amount=price.amount)
            else:
                series.append(HistoryPoint(date=day, amount=price.amount))

        try:
            payload = history_document_adapter.dump_json(document).decode("utf-8")
            self._storage.set(self._key, payload)
        except StorageError as e:
            logger.error("history_write_failed", key=self._key, game=key, error=str(e))
            return

        logger.info(
            "history_recorded",
            game=key,
            date=day.isoformat(),
            regions=[_region_key(p.region_code) for p in prices],
        )

    def query(self, title: str, region_code: RegionCode | str) -> list[HistoryPoint]:
        """Return the chronological series for (game, region); empty when unknown."""
        document = self._load()
        return list(document.get(normalize_title(title), {}).get(_region_key(region_code), []))

    def regions(self, title: str) -> list[str]:
        """Region codes that have at least one point for the game."""
        game_series = self._load().get(normalize_title(title), {})
        return [code for code, series in game_series.items() if series]
