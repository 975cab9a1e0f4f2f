"""Runtime settings read from the environment."""

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from omiewatch.models import WindowPolicy

logger = logging.getLogger(__name__)

DEFAULT_URL_TEMPLATE = (
    "https://www.omie.es/sites/default/files/dados/AGNO_{year}/MES_{month}/TXT/"
    "INT_MERCADO_DIARIO_MIN_MAX_1_{first_day}_{last_day}.TXT"
)
DEFAULT_MAX_VALUE = 130.0


def _env_float(name: str, default: float) -> float:
    val = os.environ.get(name)
    if val is None or val == "":
        return default
    try:
        return float(val)
    except ValueError:
        logger.warning("%s=%r is not a number, using %s", name, val, default)
        return default


def _env_int(name: str, default: int) -> int:
    val = os.environ.get(name)
    if val is None or val == "":
        return default
    try:
        return int(val)
    except ValueError:
        logger.warning("%s=%r is not an integer, using %s", name, val, default)
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


def _env_policy(name: str) -> WindowPolicy:
    val = os.environ.get(name, WindowPolicy.CLAMP.value).lower()
    try:
        return WindowPolicy(val)
    except ValueError:
        logger.warning("%s=%r is not one of clamp/strict/partial, using clamp", name, val)
        return WindowPolicy.CLAMP


@dataclass(frozen=True)
class Settings:
    db_path: Path = Path("data/omiewatch.db")
    url_template: str = DEFAULT_URL_TEMPLATE
    fetch_timeout: float = 30.0
    default_max_value: float = DEFAULT_MAX_VALUE
    trend_window: int = 14
    trend_span: int = 5
    window_policy: WindowPolicy = WindowPolicy.CLAMP
    identity_includes_date: bool = False
    schedule_time: str = "07:30"
    schedule_tz: str = "UTC"
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            db_path=Path(os.environ.get("DB_PATH", "data/omiewatch.db")),
            url_template=os.environ.get("OMIE_URL_TEMPLATE", DEFAULT_URL_TEMPLATE),
            fetch_timeout=_env_float("FETCH_TIMEOUT_SECONDS", 30.0),
            default_max_value=_env_float("DEFAULT_MAX_VALUE", DEFAULT_MAX_VALUE),
            trend_window=_env_int("TREND_WINDOW", 14),
            trend_span=_env_int("TREND_SPAN", 5),
            window_policy=_env_policy("TREND_WINDOW_POLICY"),
            identity_includes_date=_env_bool("OMIEWATCH_IDENTITY_INCLUDES_DATE"),
            schedule_time=os.environ.get("SCHEDULE_TIME", "07:30"),
            schedule_tz=os.environ.get("SCHED_TZ", "UTC"),
            api_host=os.environ.get("API_HOST", "0.0.0.0"),
            api_port=_env_int("API_PORT", 8080),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )

    def today(self) -> date:
        """Current date in the scheduler's timezone."""
        try:
            return datetime.now(ZoneInfo(self.schedule_tz)).date()
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("SCHED_TZ=%r is not a known timezone, using local date", self.schedule_tz)
            return date.today()

    @property
    def schedule_hour_minute(self) -> tuple[int, int]:
        """Parse SCHEDULE_TIME ("HH:MM"); malformed values fall back to 07:30."""
        try:
            hour, minute = (int(part) for part in self.schedule_time.split(":", 1))
        except ValueError:
            logger.warning("SCHEDULE_TIME=%r is not HH:MM, using 07:30", self.schedule_time)
            return 7, 30
        if not (0 <= hour < 24 and 0 <= minute < 60):
            logger.warning("SCHEDULE_TIME=%r out of range, using 07:30", self.schedule_time)
            return 7, 30
        return hour, minute
