"""Short-horizon EWMA trend over recent average prices."""

import logging
from datetime import date, timedelta
from typing import Sequence

from omiewatch.errors import InsufficientDataError
from omiewatch.models import TrendResult, WindowPolicy
from omiewatch.storage import RecordStore

logger = logging.getLogger(__name__)

WARMUP_SAMPLES = 10
HISTORY_DAYS = 30


class VariableEWMA:
    """
    Exponentially weighted moving average with decay 2 / (span + 1).

    The first WARMUP_SAMPLES values seed the average with their plain mean;
    `value` stays 0.0 until more than WARMUP_SAMPLES values were added.
    """

    def __init__(self, span: float = 5):
        self.decay = 2 / (span + 1)
        self._value = 0.0
        self._count = 0

    def add(self, sample: float) -> None:
        if self._count < WARMUP_SAMPLES:
            self._count += 1
            self._value += sample
            return
        if self._count == WARMUP_SAMPLES:
            self._count += 1
            self._value = self._value / WARMUP_SAMPLES
        self._value = sample * self.decay + self._value * (1 - self.decay)

    @property
    def value(self) -> float:
        if self._count <= WARMUP_SAMPLES:
            return 0.0
        return self._value


def compute_trend(
    values: Sequence[float],
    *,
    window: int = 14,
    span: float = 5,
    policy: WindowPolicy = WindowPolicy.CLAMP,
) -> TrendResult:
    """
    Feed the last `window` values, newest first, into a VariableEWMA.

    `values` must be ordered oldest to newest. Shorter history is handled
    according to `policy`.
    """
    available = len(values)
    partial = available < window
    if partial:
        if policy is WindowPolicy.STRICT:
            raise InsufficientDataError(
                f"trend needs {window} daily averages, only {available} stored"
            )
        logger.warning("Only %d of %d averages available for trend", available, window)

    ewma = VariableEWMA(span)
    for sample in reversed(values[max(available - window, 0):]):
        ewma.add(float(sample))

    return TrendResult(
        value=ewma.value,
        samples=min(available, window),
        window=window,
        partial=partial and policy is WindowPolicy.PARTIAL,
    )


def analyze(
    store: RecordStore,
    today: date | None = None,
    *,
    window: int = 14,
    span: float = 5,
    policy: WindowPolicy = WindowPolicy.CLAMP,
) -> TrendResult:
    """Trend over the averages stored for the last 30 days, today included."""
    today = today or date.today()
    start = today - timedelta(days=HISTORY_DAYS - 1)
    values = store.select_avg_in_range(start, today)
    logger.debug("Trend input: %d averages between %s and %s", len(values), start, today)
    return compute_trend(values, window=window, span=span, policy=policy)
