"""
PS Hunter - Price History Models

One HistoryPoint per (game, region, calendar day). The persisted document is
{normalized_title: {region_code: [{"date": "YYYY-MM-DD", "amount": 39.99}]}}.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, TypeAdapter, field_serializer, field_validator

from pshunter.models.game import to_decimal


class HistoryPoint(BaseModel):
    """Price observed for one region on one calendar day."""

    date: dt.date
    amount: Decimal

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> float:
        # Stored as a JSON number, not a string
        return float(amount)


HistoryDocument = dict[str, dict[str, list[HistoryPoint]]]

history_document_adapter: TypeAdapter[HistoryDocument] = TypeAdapter(HistoryDocument)
