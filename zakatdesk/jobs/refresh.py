from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable, Sequence

import httpx

from zakatdesk.config.settings import settings
from zakatdesk.pricing.units import PremiumPolicy, convert_currency
from zakatdesk.providers.base import PriceAdapter
from zakatdesk.providers.selector import build_adapters, fetch_with_fallback
from zakatdesk.schemas.prices import PriceSnapshot
from zakatdesk.store import PriceStore, Subscriber

logger = logging.getLogger(__name__)


def build_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=settings.providers.timeout_seconds,
        follow_redirects=True,
    )


class PriceRefresher:
    """Runs the fallback chain now and then on a fixed interval.

    Passes are serialized: the loop waits for a pass to finish before it
    sleeps, and a manual ``refresh_once()`` queues behind any pass in flight.
    A slow provider delays the next tick instead of overlapping it. After
    ``stop()`` no pass publishes, including one already in flight.
    """

    def __init__(
        self,
        store: PriceStore | None = None,
        adapters: Sequence[PriceAdapter] | None = None,
        interval_seconds: float | None = None,
        client: httpx.AsyncClient | None = None,
        premium_policy: PremiumPolicy | None = None,
    ) -> None:
        self.store = store if store is not None else PriceStore()
        self.adapters = list(adapters) if adapters is not None else build_adapters()
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else settings.refresh_interval_seconds
        )
        self.premium_policy = (
            premium_policy if premium_policy is not None else PremiumPolicy.from_settings()
        )
        self._client = client
        self._owns_client = client is None
        self._task: asyncio.Task | None = None
        self._cancelled = False
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> PriceSnapshot:
        return self.store.get_current()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self.store.subscribe(callback)

    def convert_currency(self, usd_per_gram: float, currency_code: str) -> float:
        return convert_currency(usd_per_gram, currency_code, self.premium_policy)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = build_client()
        return self._client

    async def refresh_once(self) -> PriceSnapshot | None:
        async with self._lock:
            try:
                snapshot = await fetch_with_fallback(self.adapters, self._get_client())
            except Exception:
                logger.exception("Price refresh failed")
                if not self._cancelled:
                    self.store.mark_failed("Unable to refresh live rates.")
                return None
            if self._cancelled:
                logger.debug("Refresher stopped, discarding snapshot from %s", snapshot.source)
                return None
            self.store.publish(snapshot)
            return snapshot

    async def _run(self) -> None:
        while not self._cancelled:
            await self.refresh_once()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._cancelled = False
        logger.info(
            "Starting price refresh every %ss with sources %s",
            self.interval_seconds,
            [adapter.name for adapter in self.adapters],
        )
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        self._cancelled = True
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> PriceRefresher:
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
