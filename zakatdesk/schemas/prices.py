from __future__ import annotations

import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PriceQuote(BaseModel):
    """Result of one adapter call, prices already in USD per gram."""

    gold_per_gram: Optional[float] = None
    silver_per_gram: Optional[float] = None
    observed_at: Optional[datetime.datetime] = None
    source: str
    derived_silver: bool = False


class PriceSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    gold_per_gram: float = 0.0
    silver_per_gram: float = 0.0
    last_updated: Optional[datetime.datetime] = None
    is_loading: bool = False
    error: Optional[str] = None
    source: str = ""

    @classmethod
    def loading(cls) -> PriceSnapshot:
        return cls(is_loading=True)
