from __future__ import annotations

import datetime

import httpx

from zakatdesk.config.settings import settings
from zakatdesk.pricing.units import oz_to_gram
from zakatdesk.providers.base import ParseError, get_json, require_price
from zakatdesk.schemas.prices import PriceQuote


def _parse_ts(value: object) -> datetime.datetime | None:
    # goldprice.org reports epoch milliseconds.
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return None
    try:
        return datetime.datetime.fromtimestamp(value / 1000, tz=datetime.UTC)
    except (OverflowError, OSError, ValueError):
        return None


class GoldPriceAdapter:
    name = "goldprice"
    label = "GoldPrice.org"

    def __init__(self, url: str | None = None) -> None:
        self.url = url or settings.providers.goldprice_url

    async def fetch(self, client: httpx.AsyncClient) -> PriceQuote:
        payload = await get_json(client, self.url)
        if not isinstance(payload, dict):
            raise ParseError(f"{self.url}: expected an object")
        items = payload.get("items")
        if not isinstance(items, list) or not items:
            raise ParseError(f"{self.url}: missing items")
        item = items[0]
        gold_per_gram = oz_to_gram(require_price(item, "xauPrice", self.url))
        # Silver is optional here; a gold-only quote is completed by the selector.
        try:
            silver_per_gram = oz_to_gram(require_price(item, "xagPrice", self.url))
        except ParseError:
            silver_per_gram = None
        return PriceQuote(
            gold_per_gram=gold_per_gram,
            silver_per_gram=silver_per_gram,
            observed_at=_parse_ts(payload.get("ts")) or datetime.datetime.now(tz=datetime.UTC),
            source=self.label,
        )
