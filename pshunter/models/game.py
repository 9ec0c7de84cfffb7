"""
PS Hunter - Game & Price Models

Pydantic models for the price-search result. Provider responses are
untrusted input: they are validated against these models and anything that
does not fit is rejected rather than defaulted.

Wire format uses camelCase (regionCode, originalAmount, coverImageUrl);
Python code uses the snake_case attribute names.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pshunter.models.region import RegionCode


def to_decimal(v: Any) -> Decimal:
    if isinstance(v, bool):
        raise ValueError("price must be a number, not a boolean")
    try:
        return Decimal(str(v))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"invalid price value: {v!r}") from e


class PriceInfo(BaseModel):
    """Current and original price of a game in one region."""

    model_config = ConfigDict(populate_by_name=True)

    region: str = Field(..., description="Region display name")
    region_code: RegionCode = Field(..., alias="regionCode")
    currency: str = Field(..., description="ISO currency code of the store")
    amount: Decimal = Field(..., description="Current (sale) price")
    original_amount: Decimal | None = Field(default=None, alias="originalAmount")

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, v: Any) -> Decimal:
        """Money never goes through float arithmetic."""
        return to_decimal(v)

    @field_validator("original_amount", mode="before")
    @classmethod
    def parse_original_amount(cls, v: Any) -> Decimal | None:
        if v is None or v == "":
            return None
        return to_decimal(v)


class GameData(BaseModel):
    """Result of one price search."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    cover_image_url: str | None = Field(default=None, alias="coverImageUrl")
    prices: list[PriceInfo]


class GameMetadata(BaseModel):
    """Partial result from the metadata catalog: canonical title and art."""

    title: str | None = None
    cover_image_url: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.title and not self.cover_image_url
