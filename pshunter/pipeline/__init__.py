"""PS Hunter - Price acquisition pipeline."""

from pshunter.pipeline.metadata import MetadataFetcher
from pshunter.pipeline.prices import AIPriceFetcher
from pshunter.pipeline.reconciler import (
    PriceReconciler,
    clean_prices,
    merge_results,
    search_game_prices,
)

__all__ = [
    "AIPriceFetcher",
    "MetadataFetcher",
    "PriceReconciler",
    "clean_prices",
    "merge_results",
    "search_game_prices",
]
