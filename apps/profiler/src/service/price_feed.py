"""
Simulated price feed for the broker UI.

The feed owns its state: a bounded history (ring buffer) seeded at
construction and advanced by `tick()`.
"""

from __future__ import annotations

import random
import threading
from collections import deque
from datetime import datetime, timedelta
from typing import Callable, Deque, List, Optional

from pydantic import BaseModel

from apps.profiler.src.infra.keys import utc_now


class PricePoint(BaseModel):
    price: float
    timestamp: datetime


class PriceTick(BaseModel):
    price: float
    timestamp: datetime
    history: List[PricePoint]


class PriceFeed:
    def __init__(
        self,
        initial_price: float = 100.0,
        seed_points: int = 20,
        max_points: int = 50,
        max_change: float = 0.05,
        seed_interval_sec: int = 30,
        seed: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._rng = random.Random(seed)
        self._max_change = max_change
        self._clock = clock
        self._lock = threading.Lock()
        self._history: Deque[PricePoint] = deque(maxlen=max_points)
        self._last = round(initial_price, 2)

        now = clock()
        oldest = now - timedelta(seconds=seed_interval_sec * (seed_points - 1))
        self._history.append(PricePoint(price=self._last, timestamp=oldest))
        for i in range(1, seed_points):
            self._history.append(
                PricePoint(
                    price=self._step(),
                    timestamp=oldest + timedelta(seconds=seed_interval_sec * i),
                )
            )

    def _step(self) -> float:
        change = (self._rng.random() - 0.5) * 2 * self._max_change
        self._last = round(self._last * (1 + change), 2)
        return self._last

    @property
    def last_price(self) -> float:
        return self._last

    def history(self) -> List[PricePoint]:
        with self._lock:
            return list(self._history)

    def tick(self) -> PriceTick:
        """Advance the price by one random step and return it with the history."""
        with self._lock:
            point = PricePoint(price=self._step(), timestamp=self._clock())
            self._history.append(point)
            return PriceTick(price=point.price, timestamp=point.timestamp, history=list(self._history))
