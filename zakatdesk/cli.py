from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List, Optional

from zakatdesk.config.settings import settings
from zakatdesk.jobs.refresh import PriceRefresher
from zakatdesk.pricing.units import PremiumPolicy, convert_currency
from zakatdesk.schemas.prices import PriceSnapshot
from zakatdesk.schemas.zakat import ZakatInput, ZakatResult
from zakatdesk.zakat.calculator import calculate_zakat, local_price_per_gram, metal_value

logger = logging.getLogger(__name__)


def _format_amount(value: Optional[float], currency: str) -> str:
    if value is None:
        return "n/a"
    return f"{currency} {value:,.2f}"


def _premium_policy(args: argparse.Namespace) -> PremiumPolicy:
    if getattr(args, "no_premium", False):
        return PremiumPolicy.disabled()
    return PremiumPolicy.from_settings()


def format_snapshot(snapshot: PriceSnapshot, currency: str, policy: PremiumPolicy) -> str:
    if snapshot.is_loading:
        return "Fetching live rates..."
    lines = [f"Source: {snapshot.source or 'unknown'}"]
    if snapshot.last_updated:
        lines.append(f"Updated: {snapshot.last_updated.isoformat()}")
    if snapshot.error:
        lines.append(f"Notice: {snapshot.error}")
    lines.append(
        "Gold/g: "
        + _format_amount(convert_currency(snapshot.gold_per_gram, currency, policy), currency)
    )
    lines.append(
        "Silver/g: "
        + _format_amount(convert_currency(snapshot.silver_per_gram, currency, policy), currency)
    )
    return "\n".join(lines)


def format_result(result: ZakatResult) -> str:
    currency = result.currency
    lines = [
        f"Source: {result.source or 'unknown'}",
        f"Nisab (gold): {_format_amount(result.nisab_gold, currency)}",
        f"Nisab (silver): {_format_amount(result.nisab_silver, currency)}",
        f"Nisab threshold: {_format_amount(result.nisab_threshold, currency)}",
        f"Total assets: {_format_amount(result.total_assets, currency)}",
        f"Debts: {_format_amount(result.total_debts, currency)}",
        f"Net zakatable wealth: {_format_amount(result.net_wealth, currency)}",
    ]
    if result.error:
        lines.insert(1, f"Notice: {result.error}")
    if result.nisab_threshold is None:
        lines.append("Nisab rates unavailable.")
    elif result.is_obligatory:
        lines.append(
            f"Zakat due ({settings.zakat.rate:.1%}): "
            f"{_format_amount(result.zakat_due, currency)}"
        )
    else:
        lines.append("Net wealth is below Nisab. No Zakat is due.")
    return "\n".join(lines)


async def _fetch_snapshot(policy: PremiumPolicy) -> PriceSnapshot:
    refresher = PriceRefresher(premium_policy=policy)
    try:
        await refresher.refresh_once()
    finally:
        await refresher.stop()
    return refresher.snapshot


def _run_prices(args: argparse.Namespace) -> int:
    policy = _premium_policy(args)
    snapshot = asyncio.run(_fetch_snapshot(policy))
    print(format_snapshot(snapshot, args.currency, policy))
    return 0


def _run_calc(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    policy = _premium_policy(args)
    try:
        inputs = ZakatInput(
            currency=args.currency,
            gold=args.gold,
            cash=args.cash,
            investments=args.investments,
            business=args.business,
            debts=args.debts,
        )
        metal_value(args.gold_weight, args.gold_unit, None)
        metal_value(args.silver_weight, args.silver_unit, None)
    except ValueError as exc:
        parser.error(str(exc))

    snapshot = asyncio.run(_fetch_snapshot(policy))
    metals = inputs.gold
    if args.gold_weight:
        metals += metal_value(
            args.gold_weight,
            args.gold_unit,
            local_price_per_gram(snapshot.gold_per_gram, snapshot, args.currency, policy),
        )
    if args.silver_weight:
        metals += metal_value(
            args.silver_weight,
            args.silver_unit,
            local_price_per_gram(snapshot.silver_per_gram, snapshot, args.currency, policy),
        )
    inputs = inputs.model_copy(update={"gold": metals})
    print(format_result(calculate_zakat(inputs, snapshot, policy)))
    return 0


async def _watch(currency: str, policy: PremiumPolicy) -> None:
    refresher = PriceRefresher(premium_policy=policy)
    refresher.subscribe(
        lambda snapshot: print(format_snapshot(snapshot, currency, policy) + "\n", flush=True)
    )
    async with refresher:
        await asyncio.Event().wait()


def _run_watch(args: argparse.Namespace) -> int:
    try:
        asyncio.run(_watch(args.currency, _premium_policy(args)))
    except KeyboardInterrupt:
        logger.info("Stopped watching prices")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zakatdesk", description="Live gold/silver prices, Nisab and Zakat."
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_currency_args(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--currency", default="INR", type=str.upper, help="Display currency code")
        sub.add_argument(
            "--no-premium",
            action="store_true",
            help="Do not apply the regional import premium",
        )

    prices = subparsers.add_parser("prices", help="Fetch current prices once")
    add_currency_args(prices)

    calc = subparsers.add_parser("calc", help="Compute Nisab and Zakat due")
    add_currency_args(calc)
    for name, help_text in (
        ("gold", "Value of gold/silver jewellery and coins"),
        ("cash", "Bank accounts and cash at home"),
        ("investments", "Stocks, mutual funds, crypto"),
        ("business", "Inventory and trade goods value"),
        ("debts", "Outstanding debts to deduct"),
    ):
        calc.add_argument(f"--{name}", type=float, default=0.0, help=help_text)
    calc.add_argument("--gold-weight", type=float, default=0.0)
    calc.add_argument("--gold-unit", choices=["g", "tola"], default="g")
    calc.add_argument("--silver-weight", type=float, default=0.0)
    calc.add_argument("--silver-unit", choices=["g", "tola"], default="g")

    watch = subparsers.add_parser("watch", help="Print prices on every refresh")
    add_currency_args(watch)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.command == "prices":
        return _run_prices(args)
    if args.command == "calc":
        return _run_calc(args, parser)
    return _run_watch(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
