"""
Models package - export the data model.
"""

from pshunter.models.game import GameData, GameMetadata, PriceInfo
from pshunter.models.history import HistoryPoint
from pshunter.models.region import REGIONS, Region, RegionCode, find_region, list_regions

__all__ = [
    "GameData",
    "GameMetadata",
    "HistoryPoint",
    "PriceInfo",
    "REGIONS",
    "Region",
    "RegionCode",
    "find_region",
    "list_regions",
]
