from __future__ import annotations

import datetime
from typing import Dict, List

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PricingSettings(BaseModel):
    troy_ounce_grams: float = 31.1035
    tola_grams: float = 11.664
    exchange_rates: Dict[str, float] = Field(
        default_factory=lambda: {
            "USD": 1.0,
            "INR": 83.5,
            "SAR": 3.75,
            "GBP": 0.79,
            "EUR": 0.92,
        }
    )
    # Spot prices exclude India's import duty, AIDC and GST.
    premium_factor: float = 1.1869
    premium_currencies: List[str] = Field(default_factory=lambda: ["INR"])
    gold_silver_ratio: float = 86.0


class ProviderSettings(BaseModel):
    freegold_url: str = "https://freegoldapi.com/data/latest.json"
    gold_api_base_url: str = "https://api.gold-api.com"
    goldprice_url: str = "https://data-asg.goldprice.org/dbXRates/USD"
    timeout_seconds: float | None = 10.0
    source_order: List[str] = Field(
        default_factory=lambda: ["freegoldapi", "gold_api", "goldprice"]
    )


class FallbackSettings(BaseModel):
    gold_per_oz: float = 4980.0
    silver_per_oz: float = 78.0
    as_of: datetime.datetime = datetime.datetime(2026, 2, 19, 13, 0, 0, tzinfo=datetime.UTC)
    as_of_label: str = "Feb 2026"
    source_label: str = "Estimated Rates"


class ZakatSettings(BaseModel):
    nisab_gold_grams: float = 87.48
    nisab_silver_grams: float = 612.36
    rate: float = 0.025


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ZAKATDESK_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    refresh_interval_seconds: float = Field(
        default=300.0,
        validation_alias=AliasChoices(
            "REFRESH_INTERVAL_SECONDS", "ZAKATDESK_REFRESH_INTERVAL_SECONDS"
        ),
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "ZAKATDESK_LOG_LEVEL"),
    )

    pricing: PricingSettings = Field(default_factory=PricingSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    fallback: FallbackSettings = Field(default_factory=FallbackSettings)
    zakat: ZakatSettings = Field(default_factory=ZakatSettings)


settings = Settings()
