from __future__ import annotations

import json
import math
from typing import Any, Protocol

import httpx

from zakatdesk.schemas.prices import PriceQuote


class ProviderError(Exception):
    """Raised by an adapter when it cannot produce a quote."""


class TransportError(ProviderError):
    def __init__(self, url: str, status_code: int | None = None, detail: str = "") -> None:
        self.url = url
        self.status_code = status_code
        message = f"{url}: HTTP {status_code}" if status_code else f"{url}: {detail}"
        super().__init__(message)


class ParseError(ProviderError):
    pass


class PriceAdapter(Protocol):
    name: str

    async def fetch(self, client: httpx.AsyncClient) -> PriceQuote: ...


async def get_json(client: httpx.AsyncClient, url: str) -> Any:
    try:
        response = await client.get(url)
    except httpx.HTTPError as exc:
        raise TransportError(url, detail=str(exc) or exc.__class__.__name__) from exc
    if not response.is_success:
        raise TransportError(url, status_code=response.status_code)
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError(f"{url}: invalid JSON body") from exc


def require_price(payload: Any, key: str, url: str) -> float:
    if not isinstance(payload, dict):
        raise ParseError(f"{url}: expected an object, got {type(payload).__name__}")
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"{url}: missing numeric field {key!r}")
    if not math.isfinite(value):
        raise ParseError(f"{url}: non-finite price in {key!r}")
    if value <= 0:
        raise ParseError(f"{url}: non-positive price in {key!r}")
    return float(value)
