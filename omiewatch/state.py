"""Process-wide threshold and last trend value, shared with the HTTP surface."""

import threading
from dataclasses import dataclass

from omiewatch.config import DEFAULT_MAX_VALUE


@dataclass(frozen=True)
class Snapshot:
    max_value: float
    last_trend: float | None


class WatchState:
    """Lock-guarded cell; last writer wins."""

    def __init__(self, max_value: float = DEFAULT_MAX_VALUE):
        self._lock = threading.Lock()
        self._max_value = float(max_value)
        self._last_trend: float | None = None

    @property
    def max_value(self) -> float:
        with self._lock:
            return self._max_value

    @max_value.setter
    def max_value(self, value: float) -> None:
        with self._lock:
            self._max_value = float(value)

    @property
    def last_trend(self) -> float | None:
        with self._lock:
            return self._last_trend

    @last_trend.setter
    def last_trend(self, value: float) -> None:
        with self._lock:
            self._last_trend = float(value)

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(max_value=self._max_value, last_trend=self._last_trend)
