import asyncio
import datetime

import httpx
import pytest

from zakatdesk.providers.base import ParseError, TransportError
from zakatdesk.providers.freegold import FreeGoldAdapter
from zakatdesk.providers.goldapi import GoldApiAdapter
from zakatdesk.providers.goldprice import GoldPriceAdapter

OZ = 31.1035


def make_client(routes: dict) -> httpx.AsyncClient:
    """Client answering from ``routes``: url -> (status, json) or exception."""
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        calls.append(url)
        route = routes.get(url)
        if route is None:
            return httpx.Response(404)
        if isinstance(route, Exception):
            raise route
        status, body = route
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client.calls = calls  # type: ignore[attr-defined]
    return client


async def _fetch(adapter, routes: dict):
    async with make_client(routes) as client:
        return await adapter.fetch(client)


FREEGOLD_URL = "https://freegoldapi.com/data/latest.json"
XAU_URL = "https://api.gold-api.com/price/XAU"
XAG_URL = "https://api.gold-api.com/price/XAG"
GOLDPRICE_URL = "https://data-asg.goldprice.org/dbXRates/USD"


def test_freegold_uses_latest_record_and_yahoo_label() -> None:
    routes = {
        FREEGOLD_URL: (
            200,
            [
                {"date": "2026-01-01", "price": 4000.0, "source": "lbma"},
                {"date": "2026-03-02", "price": 5000.0, "source": "yahoo_finance"},
            ],
        ),
        XAG_URL: (200, {"price": 80.0}),
    }
    quote = asyncio.run(_fetch(FreeGoldAdapter(), routes))

    assert quote.gold_per_gram == pytest.approx(5000.0 / OZ)
    assert quote.silver_per_gram == pytest.approx(80.0 / OZ)
    assert quote.source == "Yahoo Finance (via FreeGoldAPI)"
    assert quote.observed_at == datetime.datetime(2026, 3, 2, tzinfo=datetime.UTC)
    assert quote.derived_silver is False


def test_freegold_plain_label_for_other_sources() -> None:
    routes = {
        FREEGOLD_URL: (200, [{"date": "2026-03-02", "price": 5000.0, "source": "lbma"}]),
        XAG_URL: (200, {"price": 80.0}),
    }
    quote = asyncio.run(_fetch(FreeGoldAdapter(), routes))
    assert quote.source == "FreeGoldAPI"


def test_freegold_derives_silver_when_secondary_fails() -> None:
    routes = {
        FREEGOLD_URL: (200, [{"date": "2026-03-02", "price": 4300.0, "source": "x"}]),
        XAG_URL: (503, {}),
    }
    quote = asyncio.run(_fetch(FreeGoldAdapter(), routes))

    assert quote.silver_per_gram == pytest.approx(quote.gold_per_gram / 86)
    assert quote.derived_silver is True


def test_freegold_derives_silver_on_network_error() -> None:
    routes = {
        FREEGOLD_URL: (200, [{"date": "bad-date", "price": 4300.0, "source": "x"}]),
        XAG_URL: httpx.ConnectError("boom"),
    }
    quote = asyncio.run(_fetch(FreeGoldAdapter(), routes))

    assert quote.derived_silver is True
    assert quote.observed_at is not None


def test_freegold_transport_error() -> None:
    with pytest.raises(TransportError) as excinfo:
        asyncio.run(_fetch(FreeGoldAdapter(), {FREEGOLD_URL: (500, {})}))
    assert excinfo.value.status_code == 500


@pytest.mark.parametrize(
    "body",
    [
        "not json",
        [],
        {"price": 1},
        [{"price": "abc"}],
        [{"price": 0}],
        '[{"price": NaN}]',
        '[{"price": Infinity}]',
    ],
)
def test_freegold_parse_errors(body) -> None:
    with pytest.raises(ParseError):
        asyncio.run(_fetch(FreeGoldAdapter(), {FREEGOLD_URL: (200, body)}))


def test_gold_api_requests_both_metals() -> None:
    routes = {XAU_URL: (200, {"price": 4980.0}), XAG_URL: (200, {"price": 78.0})}

    async def run():
        async with make_client(routes) as client:
            quote = await GoldApiAdapter().fetch(client)
            return quote, client.calls

    quote, calls = asyncio.run(run())

    assert sorted(calls) == sorted([XAU_URL, XAG_URL])
    assert quote.gold_per_gram == pytest.approx(4980.0 / OZ)
    assert quote.silver_per_gram == pytest.approx(78.0 / OZ)
    assert quote.source == "api.gold-api.com"


def test_gold_api_fails_when_either_metal_fails() -> None:
    routes = {XAU_URL: (200, {"price": 4980.0}), XAG_URL: (429, {})}
    with pytest.raises(TransportError):
        asyncio.run(_fetch(GoldApiAdapter(), routes))

    routes = {XAU_URL: (200, "<html>"), XAG_URL: (200, {"price": 78.0})}
    with pytest.raises(ParseError):
        asyncio.run(_fetch(GoldApiAdapter(), routes))


def test_goldprice_reads_both_metals_and_timestamp() -> None:
    routes = {
        GOLDPRICE_URL: (
            200,
            {"ts": 1767225600000, "items": [{"xauPrice": 4500.0, "xagPrice": 60.0}]},
        )
    }
    quote = asyncio.run(_fetch(GoldPriceAdapter(), routes))

    assert quote.gold_per_gram == pytest.approx(4500.0 / OZ)
    assert quote.silver_per_gram == pytest.approx(60.0 / OZ)
    assert quote.observed_at == datetime.datetime(2026, 1, 1, tzinfo=datetime.UTC)
    assert quote.source == "GoldPrice.org"


def test_goldprice_partial_quote_without_silver() -> None:
    routes = {GOLDPRICE_URL: (200, {"items": [{"xauPrice": 4500.0}]})}
    quote = asyncio.run(_fetch(GoldPriceAdapter(), routes))

    assert quote.silver_per_gram is None
    assert quote.gold_per_gram == pytest.approx(4500.0 / OZ)


def test_goldprice_missing_items() -> None:
    with pytest.raises(ParseError):
        asyncio.run(_fetch(GoldPriceAdapter(), {GOLDPRICE_URL: (200, {"items": []})}))


def test_gold_api_rejects_non_finite_price() -> None:
    routes = {XAU_URL: (200, '{"price": NaN}'), XAG_URL: (200, {"price": 78.0})}
    with pytest.raises(ParseError):
        asyncio.run(_fetch(GoldApiAdapter(), routes))
