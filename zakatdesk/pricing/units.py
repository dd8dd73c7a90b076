from __future__ import annotations

from dataclasses import dataclass, field

from zakatdesk.config.settings import settings


@dataclass(frozen=True)
class PremiumPolicy:
    """Regional markup applied on top of the converted spot price."""

    factor: float = 1.0
    currencies: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_settings(cls) -> PremiumPolicy:
        return cls(
            factor=settings.pricing.premium_factor,
            currencies=frozenset(
                code.strip().upper() for code in settings.pricing.premium_currencies
            ),
        )

    @classmethod
    def disabled(cls) -> PremiumPolicy:
        return cls()

    def applies_to(self, currency_code: str) -> bool:
        return currency_code.strip().upper() in self.currencies


def oz_to_gram(price_per_oz: float) -> float:
    return price_per_oz / settings.pricing.troy_ounce_grams


def tola_to_gram(weight: float) -> float:
    return weight * settings.pricing.tola_grams


def weight_to_grams(weight: float, unit: str) -> float:
    normalized = unit.strip().lower()
    if normalized in ("g", "gram", "grams"):
        return weight
    if normalized in ("tola", "tolas"):
        return tola_to_gram(weight)
    raise ValueError(f"Unsupported weight unit: {unit}")


def exchange_rate(currency_code: str) -> float:
    # Unknown codes fall back to USD.
    return settings.pricing.exchange_rates.get(currency_code.strip().upper(), 1.0)


def convert_currency(
    usd_per_gram: float,
    currency_code: str,
    premium_policy: PremiumPolicy | None = None,
) -> float:
    policy = premium_policy if premium_policy is not None else PremiumPolicy.from_settings()
    converted = usd_per_gram * exchange_rate(currency_code)
    if policy.applies_to(currency_code):
        converted *= policy.factor
    return converted
