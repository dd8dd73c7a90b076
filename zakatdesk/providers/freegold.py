from __future__ import annotations

import datetime
import logging

import httpx

from zakatdesk.config.settings import settings
from zakatdesk.pricing.units import oz_to_gram
from zakatdesk.providers.base import ParseError, ProviderError, get_json, require_price
from zakatdesk.schemas.prices import PriceQuote

logger = logging.getLogger(__name__)

_YAHOO_MARKER = "yahoo_finance"


def _parse_date(value: object) -> datetime.datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.UTC)
    return parsed


def source_label(raw_source: object) -> str:
    if isinstance(raw_source, str) and _YAHOO_MARKER in raw_source:
        return "Yahoo Finance (via FreeGoldAPI)"
    return "FreeGoldAPI"


class FreeGoldAdapter:
    """Gold from the FreeGoldAPI time series, silver from a second endpoint.

    FreeGoldAPI only publishes gold. When the silver endpoint is unavailable
    the silver price is derived from gold with a fixed gold/silver ratio and
    the quote is still reported as a success.
    """

    name = "freegoldapi"

    def __init__(
        self,
        url: str | None = None,
        silver_url: str | None = None,
        gold_silver_ratio: float | None = None,
    ) -> None:
        self.url = url or settings.providers.freegold_url
        self.silver_url = silver_url or (
            settings.providers.gold_api_base_url.rstrip("/") + "/price/XAG"
        )
        self.gold_silver_ratio = gold_silver_ratio or settings.pricing.gold_silver_ratio

    async def fetch(self, client: httpx.AsyncClient) -> PriceQuote:
        payload = await get_json(client, self.url)
        if not isinstance(payload, list) or not payload:
            raise ParseError(f"{self.url}: expected a non-empty list of records")
        latest = payload[-1]
        gold_per_gram = oz_to_gram(require_price(latest, "price", self.url))

        derived = False
        try:
            silver_payload = await get_json(client, self.silver_url)
            silver_per_gram = oz_to_gram(require_price(silver_payload, "price", self.silver_url))
        except ProviderError as exc:
            logger.warning("Falling back to computed silver ratio: %s", exc)
            silver_per_gram = gold_per_gram / self.gold_silver_ratio
            derived = True

        observed_at = _parse_date(latest.get("date")) or datetime.datetime.now(tz=datetime.UTC)
        return PriceQuote(
            gold_per_gram=gold_per_gram,
            silver_per_gram=silver_per_gram,
            observed_at=observed_at,
            source=source_label(latest.get("source")),
            derived_silver=derived,
        )
