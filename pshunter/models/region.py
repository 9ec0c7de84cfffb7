"""
PS Hunter - Region Registry

Static list of supported PlayStation Store territories. Pure data.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple


class RegionCode(str, Enum):
    """Storefront territory codes accepted everywhere in the pipeline."""
    US = "US"
    SG = "SG"
    TR = "TR"
    ID = "ID"


class Region(NamedTuple):
    code: RegionCode
    name: str
    default_currency: str


REGIONS: tuple[Region, ...] = (
    Region(RegionCode.US, "United States", "USD"),
    Region(RegionCode.SG, "Singapore", "SGD"),
    Region(RegionCode.TR, "Turkey", "TRY"),
    Region(RegionCode.ID, "Indonesia", "IDR"),
)

_BY_CODE: dict[str, Region] = {region.code.value: region for region in REGIONS}


def list_regions() -> list[Region]:
    """Return every supported region in registry order."""
    return list(REGIONS)


def find_region(code: str) -> Region | None:
    """Look up a region by code (case-insensitive). None when unknown."""
    if isinstance(code, RegionCode):
        code = code.value
    return _BY_CODE.get(str(code).strip().upper())
