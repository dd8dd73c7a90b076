from __future__ import annotations

import logging
import math
from typing import Callable, Dict, Iterable, List, Sequence

import httpx

from zakatdesk.config.settings import settings
from zakatdesk.pricing.units import oz_to_gram
from zakatdesk.providers.base import ParseError, PriceAdapter, ProviderError
from zakatdesk.providers.freegold import FreeGoldAdapter
from zakatdesk.providers.goldapi import GoldApiAdapter
from zakatdesk.providers.goldprice import GoldPriceAdapter
from zakatdesk.schemas.prices import PriceQuote, PriceSnapshot

logger = logging.getLogger(__name__)

ADAPTERS: Dict[str, Callable[[], PriceAdapter]] = {
    FreeGoldAdapter.name: FreeGoldAdapter,
    GoldApiAdapter.name: GoldApiAdapter,
    GoldPriceAdapter.name: GoldPriceAdapter,
}


def build_adapters(names: Iterable[str] | None = None) -> List[PriceAdapter]:
    configured = list(names) if names is not None else settings.providers.source_order
    adapters: List[PriceAdapter] = []
    seen = set()
    for raw_name in configured:
        name = raw_name.strip().lower()
        if not name or name in seen:
            continue
        factory = ADAPTERS.get(name)
        if factory is None:
            logger.warning("Unknown price source %r ignored", raw_name)
            continue
        adapters.append(factory())
        seen.add(name)
    return adapters


def static_fallback_snapshot() -> PriceSnapshot:
    fallback = settings.fallback
    return PriceSnapshot(
        gold_per_gram=oz_to_gram(fallback.gold_per_oz),
        silver_per_gram=oz_to_gram(fallback.silver_per_oz),
        last_updated=fallback.as_of,
        is_loading=False,
        error=f"Live rates unavailable. Using estimated rates ({fallback.as_of_label}).",
        source=fallback.source_label,
    )


def _snapshot_from_quote(quote: PriceQuote) -> PriceSnapshot:
    if not quote.gold_per_gram or not math.isfinite(quote.gold_per_gram):
        raise ParseError(f"{quote.source}: quote has no gold price")
    silver_per_gram = quote.silver_per_gram
    if not silver_per_gram or not math.isfinite(silver_per_gram):
        logger.warning("%s returned no silver price, deriving from gold", quote.source)
        silver_per_gram = quote.gold_per_gram / settings.pricing.gold_silver_ratio
    return PriceSnapshot(
        gold_per_gram=quote.gold_per_gram,
        silver_per_gram=silver_per_gram,
        last_updated=quote.observed_at,
        is_loading=False,
        error=None,
        source=quote.source,
    )


async def fetch_with_fallback(
    adapters: Sequence[PriceAdapter], client: httpx.AsyncClient
) -> PriceSnapshot:
    for adapter in adapters:
        try:
            quote = await adapter.fetch(client)
            snapshot = _snapshot_from_quote(quote)
        except ProviderError as exc:
            logger.warning("Price source %s failed: %s", adapter.name, exc)
            continue
        except Exception:
            logger.exception("Price source %s raised unexpectedly", adapter.name)
            continue
        logger.info("Prices resolved from %s (%s)", adapter.name, snapshot.source)
        return snapshot

    logger.error("All price sources failed, using estimated rates")
    return static_fallback_snapshot()
