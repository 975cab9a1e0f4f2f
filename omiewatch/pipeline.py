"""One ingestion run: fetch → parse → persist → analyze → threshold check."""

import logging
from datetime import date, datetime, timezone
from typing import Callable

from omiewatch.comparator import exceeds_threshold
from omiewatch.config import Settings
from omiewatch.errors import FetchError, PersistError, QueryError
from omiewatch.fetchers.omie import fetch_period
from omiewatch.models import Period, RunOutcome, RunStage, RunStatus
from omiewatch.notifiers import format_alert, format_failure
from omiewatch.parser import parse_table
from omiewatch.state import WatchState
from omiewatch.storage import RecordStore
from omiewatch.trend import analyze

logger = logging.getLogger(__name__)

Notifier = Callable[[str], bool]
Fetcher = Callable[..., str]


def _report(notify: Notifier, message: str) -> None:
    """Delivery failures are logged and never affect the run."""
    try:
        if not notify(message):
            logger.warning("Notification not delivered")
    except Exception:
        logger.exception("Notifier raised while sending message")


def _fail(
    outcome: RunOutcome, status: RunStatus, error: Exception, notify: Notifier
) -> RunOutcome:
    outcome.status = status
    outcome.error = str(error)
    logger.error("Run failed while %s: %s", outcome.stage.value, error)
    _report(notify, format_failure(f"{outcome.stage.value}: {error}"))
    return outcome


def run_once(
    store: RecordStore,
    notify: Notifier,
    state: WatchState,
    *,
    today: date | None = None,
    fetch: Fetcher = fetch_period,
    settings: Settings | None = None,
) -> RunOutcome:
    """
    Ingest the current month's file and check the price trend.

    Pipeline errors never escape: each one ends the run and is reported through
    `notify`. Records written before a persistence error are kept.
    """
    settings = settings or Settings()
    today = today or settings.today()
    period = Period.containing(today)
    outcome = RunOutcome(status=RunStatus.DONE, stage=RunStage.IDLE, period=period)

    outcome.stage = RunStage.FETCHING
    try:
        raw = fetch(period, template=settings.url_template, timeout=settings.fetch_timeout)
    except FetchError as e:
        return _fail(outcome, RunStatus.FETCH_FAILED, e, notify)

    outcome.stage = RunStage.PARSING
    records = parse_table(
        raw,
        observed_at=datetime.now(timezone.utc),
        include_date=settings.identity_includes_date,
    )
    outcome.parsed = len(records)
    if not records:
        outcome.status = RunStatus.EMPTY
        outcome.error = "no entries parsed"
        logger.error("error downloading data: 0 entries for %s", period.first_day.strftime("%m/%Y"))
        _report(notify, format_failure("error downloading data: no entries parsed"))
        return outcome

    outcome.stage = RunStage.PERSISTING
    try:
        for record in records:
            if store.upsert_if_absent(record):
                outcome.inserted += 1
    except PersistError as e:
        return _fail(outcome, RunStatus.PERSIST_FAILED, e, notify)
    logger.info("Stored %d new of %d parsed entries", outcome.inserted, outcome.parsed)

    outcome.stage = RunStage.ANALYZING
    try:
        trend = analyze(
            store,
            today,
            window=settings.trend_window,
            span=settings.trend_span,
            policy=settings.window_policy,
        )
    except QueryError as e:
        return _fail(outcome, RunStatus.QUERY_FAILED, e, notify)
    outcome.trend = trend
    state.last_trend = trend.value
    max_value = state.snapshot().max_value
    outcome.threshold = max_value

    if exceeds_threshold(trend, max_value):
        outcome.stage = RunStage.ALERTING
        outcome.status = RunStatus.ALERTED
        logger.info("🚨 ALERT: trend %.2f above max %.2f", trend.value, max_value)
        _report(notify, format_alert(trend.value, max_value))
    else:
        if trend.partial:
            logger.warning(
                "Trend %.2f from %d/%d samples is partial, alert check skipped",
                trend.value, trend.samples, trend.window,
            )
        outcome.stage = RunStage.DONE
    logger.info("scrape finished, average value %f", trend.value)
    return outcome
