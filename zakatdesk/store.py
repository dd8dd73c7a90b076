from __future__ import annotations

import logging
from typing import Callable, List

from zakatdesk.schemas.prices import PriceSnapshot

logger = logging.getLogger(__name__)

Subscriber = Callable[[PriceSnapshot], None]


class PriceStore:
    """Holds the live snapshot and notifies subscribers on every replacement."""

    def __init__(self, initial: PriceSnapshot | None = None) -> None:
        self._snapshot = initial if initial is not None else PriceSnapshot.loading()
        self._subscribers: List[Subscriber] = []

    def get_current(self) -> PriceSnapshot:
        return self._snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, snapshot: PriceSnapshot) -> None:
        self._snapshot = snapshot
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Price subscriber %r failed", callback)

    def mark_failed(self, message: str) -> None:
        # Keeps the last known prices, only the status fields change.
        self.publish(
            self._snapshot.model_copy(update={"is_loading": False, "error": message})
        )
