from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ZakatInput(BaseModel):
    currency: str = "INR"
    gold: float = Field(default=0.0, ge=0)
    cash: float = Field(default=0.0, ge=0)
    investments: float = Field(default=0.0, ge=0)
    business: float = Field(default=0.0, ge=0)
    debts: float = Field(default=0.0, ge=0)


class ZakatResult(BaseModel):
    currency: str
    gold_per_gram: Optional[float] = None
    silver_per_gram: Optional[float] = None
    nisab_gold: Optional[float] = None
    nisab_silver: Optional[float] = None
    nisab_threshold: Optional[float] = None
    total_assets: float
    total_debts: float
    net_wealth: float
    is_obligatory: bool
    zakat_due: float
    source: str = ""
    error: Optional[str] = None
