from __future__ import annotations

from typing import Optional

from zakatdesk.config.settings import settings
from zakatdesk.pricing.units import PremiumPolicy, convert_currency, weight_to_grams
from zakatdesk.schemas.prices import PriceSnapshot
from zakatdesk.schemas.zakat import ZakatInput, ZakatResult


def local_price_per_gram(
    usd_per_gram: float,
    snapshot: PriceSnapshot,
    currency: str,
    premium_policy: PremiumPolicy | None = None,
) -> Optional[float]:
    if snapshot.is_loading or not usd_per_gram:
        return None
    return convert_currency(usd_per_gram, currency, premium_policy)


def metal_value(weight: float, unit: str, price_per_gram: Optional[float]) -> float:
    if weight < 0:
        raise ValueError("Metal weight must be positive.")
    return weight_to_grams(weight, unit) * (price_per_gram or 0.0)


def nisab_threshold(
    gold_per_gram: Optional[float], silver_per_gram: Optional[float]
) -> Optional[float]:
    zakat = settings.zakat
    nisab_gold = zakat.nisab_gold_grams * gold_per_gram if gold_per_gram else None
    nisab_silver = zakat.nisab_silver_grams * silver_per_gram if silver_per_gram else None
    if nisab_gold is not None and nisab_silver is not None:
        return min(nisab_gold, nisab_silver)
    return nisab_silver if nisab_silver is not None else nisab_gold


def calculate_zakat(
    inputs: ZakatInput,
    snapshot: PriceSnapshot,
    premium_policy: PremiumPolicy | None = None,
) -> ZakatResult:
    zakat = settings.zakat
    gold_per_gram = local_price_per_gram(
        snapshot.gold_per_gram, snapshot, inputs.currency, premium_policy
    )
    silver_per_gram = local_price_per_gram(
        snapshot.silver_per_gram, snapshot, inputs.currency, premium_policy
    )

    total_assets = inputs.gold + inputs.cash + inputs.investments + inputs.business
    net_wealth = max(0.0, total_assets - inputs.debts)
    threshold = nisab_threshold(gold_per_gram, silver_per_gram)
    is_obligatory = threshold is not None and net_wealth >= threshold

    return ZakatResult(
        currency=inputs.currency.upper(),
        gold_per_gram=gold_per_gram,
        silver_per_gram=silver_per_gram,
        nisab_gold=zakat.nisab_gold_grams * gold_per_gram if gold_per_gram else None,
        nisab_silver=zakat.nisab_silver_grams * silver_per_gram if silver_per_gram else None,
        nisab_threshold=threshold,
        total_assets=total_assets,
        total_debts=inputs.debts,
        net_wealth=net_wealth,
        is_obligatory=is_obligatory,
        zakat_due=net_wealth * zakat.rate if is_obligatory else 0.0,
        source=snapshot.source,
        error=snapshot.error,
    )
