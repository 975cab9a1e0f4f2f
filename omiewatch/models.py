"""Data models for price ingestion and trend runs."""

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


@dataclass(frozen=True)
class PriceRecord:
    """One daily min/avg/max observation."""

    identity: str
    date: date
    min: Decimal
    avg: Decimal
    max: Decimal
    observed_at: datetime


@dataclass(frozen=True)
class Period:
    """Calendar month covered by one published file."""

    year: int
    month: int
    first_day: date
    last_day: date

    @classmethod
    def containing(cls, day: date) -> "Period":
        last = calendar.monthrange(day.year, day.month)[1]
        return cls(
            year=day.year,
            month=day.month,
            first_day=date(day.year, day.month, 1),
            last_day=date(day.year, day.month, last),
        )


class WindowPolicy(str, Enum):
    """What to do when history is shorter than the trend window."""

    CLAMP = "clamp"
    STRICT = "strict"
    PARTIAL = "partial"


@dataclass(frozen=True)
class TrendResult:
    """Smoothed trend over the most recent averages."""

    value: float
    samples: int
    window: int
    partial: bool = False


class RunStage(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PARSING = "parsing"
    PERSISTING = "persisting"
    ANALYZING = "analyzing"
    ALERTING = "alerting"
    DONE = "done"


class RunStatus(str, Enum):
    """Terminal result of a run."""

    DONE = "done"
    ALERTED = "alerted"
    FETCH_FAILED = "fetch_failed"
    EMPTY = "empty"
    PERSIST_FAILED = "persist_failed"
    QUERY_FAILED = "query_failed"


@dataclass
class RunOutcome:
    """Summary of one fetch → parse → persist → analyze → alert run."""

    status: RunStatus
    stage: RunStage
    period: Period
    parsed: int = 0
    inserted: int = 0
    trend: TrendResult | None = None
    threshold: float | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in (RunStatus.DONE, RunStatus.ALERTED)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "stage": self.stage.value,
            "period": {
                "first_day": self.period.first_day.isoformat(),
                "last_day": self.period.last_day.isoformat(),
            },
            "parsed": self.parsed,
            "inserted": self.inserted,
            "trend": self.trend.value if self.trend else None,
            "trend_samples": self.trend.samples if self.trend else 0,
            "partial": self.trend.partial if self.trend else False,
            "threshold": self.threshold,
            "error": self.error,
        }
