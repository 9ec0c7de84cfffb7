"""
PS Hunter - Application Entrypoint

Configures structlog, runs one price search and prints the ranked regional
comparison in the chosen currency.

Run via:
    python -m pshunter.main "Elden Ring"
    python -m pshunter.main "FC 25" --regions US,TR --currency EUR --history
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import structlog

from pshunter import __version__
from pshunter.config import SUPPORTED_CURRENCIES, settings
from pshunter.engine.comparison import RegionQuote, best_region_code, rank_prices
from pshunter.errors import (
    ConfigurationError,
    PSHunterError,
    SchemaViolation,
    TerminalProviderError,
    ValidationError,
)
from pshunter.models.game import GameData
from pshunter.models.region import list_regions
from pshunter.pipeline.reconciler import PriceReconciler
from pshunter.storage.backends import JsonFileStore, KeyValueStore
from pshunter.storage.history import PriceHistoryStore
from pshunter.storage.preferences import load_target_currency, save_target_currency
from pshunter.utils.forex import fetch_exchange_rates, format_price


# ---------------------------------------------------------------------------
# Structlog Configuration
# ---------------------------------------------------------------------------


def _configure_logging(log_level: str = "INFO") -> None:
    """
    Set up structured logging with JSON output on stderr.

    stdout is reserved for the comparison table.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Error Messages
# ---------------------------------------------------------------------------


def describe_search_error(exc: BaseException) -> str:
    """User-facing guidance for a failed search."""
    if isinstance(exc, ValidationError):
        return str(exc)
    if isinstance(exc, ConfigurationError):
        return f"API key is missing. {exc}"
    if isinstance(exc, TerminalProviderError):
        if exc.status_code == 429:
            return "API quota exceeded. Please try again in a minute."
        if exc.status_code in (503, 529):
            return "AI service overloaded. We retried, but it's very busy right now."
        if exc.status_code is None:
            return "Network error. Please check your internet connection."
    if isinstance(exc, SchemaViolation):
        return "The AI returned an unexpected answer. Please try again."
    return "Something went wrong. Please try again."


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def render_comparison(game: GameData, quotes: list[RegionQuote]) -> str:
    lines = [game.title, game.description]
    if game.cover_image_url:
        lines.append(game.cover_image_url)
    lines.append("")

    if not quotes:
        lines.append("Found the game, but no region has a live price.")
        return "\n".join(lines)

    for quote in quotes:
        row = (
            f"{quote.region_name:<15} "
            f"{format_price(quote.converted_amount, quote.target_currency):>14}  "
            f"({format_price(quote.amount, quote.currency)})"
        )
        if quote.is_on_sale:
            row += f"  -{quote.discount_percent}% from {format_price(quote.converted_original_amount, quote.target_currency)}"
        if quote.is_best_price:
            row += "  BEST PRICE"
        lines.append(row)
    return "\n".join(lines)


def render_history(history: PriceHistoryStore, game: GameData, quotes: list[RegionQuote]) -> str:
    currencies = {quote.region_code.value: quote.currency for quote in quotes}
    first = best_region_code(quotes)
    codes = [first] + [code for code in history.regions(game.title) if code != first]

    lines = ["", "Price history"]
    for code in codes:
        points = history.query(game.title, code)
        if not points:
            continue
        currency = currencies.get(code, settings.BASE_CURRENCY)
        trail = ", ".join(f"{p.date.isoformat()} {format_price(p.amount, currency)}" for p in points)
        lines.append(f"  {code}: {trail}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


async def run_search(
    query: str,
    region_codes: list[str],
    currency: str | None,
    show_history: bool,
    storage: KeyValueStore,
    reconciler: PriceReconciler | None = None,
) -> int:
    """
    One user-initiated search. Returns the process exit code.

    Rates and prices are fetched concurrently; neither rate lookup nor
    history persistence can fail the search.
    """
    logger = structlog.get_logger(__name__)
    reconciler = reconciler or PriceReconciler()

    try:
        target_currency = save_target_currency(storage, currency) if currency else load_target_currency(storage)
        rates, game = await asyncio.gather(
            fetch_exchange_rates(),
            reconciler.search_game_prices(query, region_codes),
        )
    except PSHunterError as e:
        logger.error("search_failed", query=query, error=str(e), error_type=type(e).__name__)
        print(describe_search_error(e), file=sys.stderr)
        return 1

    history = PriceHistoryStore(storage)
    if game.prices:
        history.record(game.title, game.prices)

    quotes = rank_prices(game.prices, target_currency, rates)
    print(render_comparison(game, quotes))
    if show_history:
        print(render_history(history, game, quotes))
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    region_codes = [region.code.value for region in list_regions()]
    parser = argparse.ArgumentParser(
        description="Compare PlayStation Store prices for a game across regions.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m pshunter.main "Elden Ring"
  python -m pshunter.main "Black Myth: Wukong" --regions US,TR,ID --currency EUR
  python -m pshunter.main "Spider-Man 2" --history
""",
    )
    parser.add_argument("query", help="Game title to search for.")
    parser.add_argument(
        "--regions",
        type=str,
        default=",".join(region_codes),
        help=f"Comma-separated region codes (default: {','.join(region_codes)}).",
    )
    parser.add_argument(
        "--currency",
        type=str.upper,
        default=None,
        choices=SUPPORTED_CURRENCIES,
        help="Display currency; remembered for next time (default: last used, else USD).",
    )
    parser.add_argument(
        "--history",
        action="store_true",
        help="Also print recorded price history for the game.",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path(settings.DATA_DIR),
        help=f"Where history and preferences are kept (default: {settings.DATA_DIR}).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    _configure_logging(log_level=settings.LOG_LEVEL)
    logger = structlog.get_logger(__name__)
    logger.info("pshunter_startup", version=__version__)

    if not settings.ANTHROPIC_API_KEY:
        logger.warning("config_anthropic_api_key_missing")
    if not settings.RAWG_API_KEY:
        logger.info("config_rawg_api_key_missing", note="metadata enrichment disabled")

    region_codes = [code.strip() for code in args.regions.split(",") if code.strip()]
    storage = JsonFileStore(args.data_dir)

    try:
        return asyncio.run(
            run_search(args.query, region_codes, args.currency, args.history, storage)
        )
    except KeyboardInterrupt:
        logger.info("pshunter_interrupted_by_user")
        return 130


# ---------------------------------------------------------------------------
# CLI Entry
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    sys.exit(main())
