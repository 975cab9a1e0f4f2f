"""Entry point: first run, daily scheduler and HTTP control surface."""

import logging
import sys
from functools import partial
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parents[1] / ".env")

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from omiewatch.api import create_app
from omiewatch.config import Settings
from omiewatch.notifiers import notify
from omiewatch.pipeline import run_once
from omiewatch.state import WatchState
from omiewatch.storage import PriceStore

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def scheduled_run(store: PriceStore, state: WatchState, settings: Settings) -> None:
    """Scheduler job; failures are logged, the process keeps running."""
    try:
        outcome = run_once(store, notify, state, settings=settings)
        logger.info("Scheduled run finished: %s", outcome.status.value)
    except Exception as e:
        logger.exception("Scheduled run error: %s", e)


def start_scheduler(job, settings: Settings) -> BackgroundScheduler:
    hour, minute = settings.schedule_hour_minute
    scheduler = BackgroundScheduler(timezone=settings.schedule_tz)
    scheduler.add_job(
        job,
        trigger=CronTrigger(hour=hour, minute=minute),
        id="daily_update",
        max_instances=1,
        misfire_grace_time=3600,
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler: daily at %02d:%02d %s", hour, minute, settings.schedule_tz)
    return scheduler


def main() -> None:
    """Initialize DB, run once immediately, start the scheduler and serve the API."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    store = PriceStore(settings.db_path)
    store.init_db()
    state = WatchState(store.load_threshold(settings.default_max_value))
    logger.info("🚀 omiewatch started, max value %.2f", state.max_value)

    job = partial(scheduled_run, store, state, settings)
    job()
    scheduler = start_scheduler(job, settings)

    app = create_app(state, store, partial(run_once, store, notify, state, settings=settings))
    try:
        app.run(host=settings.api_host, port=settings.api_port)
    finally:
        scheduler.shutdown(wait=False)


if __name__ == "__main__":
    main()
