from __future__ import annotations

import asyncio
import datetime

import httpx

from zakatdesk.config.settings import settings
from zakatdesk.pricing.units import oz_to_gram
from zakatdesk.providers.base import get_json, require_price
from zakatdesk.schemas.prices import PriceQuote


_PRICE_PATH = "/price/{code}"


class GoldApiAdapter:
    """Gold and silver from api.gold-api.com, both requests in flight at once."""

    name = "gold_api"
    label = "api.gold-api.com"

    def __init__(self, base_url: str | None = None) -> None:
        self.base_url = (base_url or settings.providers.gold_api_base_url).rstrip("/")

    def _build_url(self, code: str) -> str:
        return f"{self.base_url}{_PRICE_PATH.format(code=code)}"

    async def fetch(self, client: httpx.AsyncClient) -> PriceQuote:
        gold_url = self._build_url("XAU")
        silver_url = self._build_url("XAG")
        gold_payload, silver_payload = await asyncio.gather(
            get_json(client, gold_url),
            get_json(client, silver_url),
        )
        return PriceQuote(
            gold_per_gram=oz_to_gram(require_price(gold_payload, "price", gold_url)),
            silver_per_gram=oz_to_gram(require_price(silver_payload, "price", silver_url)),
            observed_at=datetime.datetime.now(tz=datetime.UTC),
            source=self.label,
        )
