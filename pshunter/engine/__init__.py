from pshunter.engine.comparison import (
    RegionQuote,
    best_region_code,
    calculate_discount_percent,
    rank_prices,
)

__all__ = [
    "RegionQuote",
    "best_region_code",
    "calculate_discount_percent",
    "rank_prices",
]
