"""Shared fixtures for omiewatch tests."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from omiewatch.models import PriceRecord
from omiewatch.parser import record_identity
from omiewatch.storage import PriceStore

OBSERVED_AT = datetime(2023, 5, 20, 7, 30, tzinfo=timezone.utc)

SAMPLE_TABLE = (
    "OMIE - Mercado de electricidad;Fecha Emisión :20/05/2023 - 13:05;;;\n"
    "Fecha;Precio mínimo;Precio medio;Precio máximo;\n"
    "01/05/23;40,00;45,50;50,00;\n"
    "02/05/23;38,10;60,25;98,00;\n"
    "03/05/23;12,00;30,75;44,20;\n"
)


@pytest.fixture
def sample_table() -> str:
    return SAMPLE_TABLE


@pytest.fixture
def store(tmp_path) -> PriceStore:
    s = PriceStore(tmp_path / "prices.db")
    s.init_db()
    return s


def make_record(day: date, avg: str, low: str = "1,00", high: str = "999,00") -> PriceRecord:
    return PriceRecord(
        identity=record_identity(low, avg, high, day.isoformat()),
        date=day,
        min=Decimal(low.replace(",", ".")),
        avg=Decimal(avg.replace(",", ".")),
        max=Decimal(high.replace(",", ".")),
        observed_at=OBSERVED_AT,
    )


class RecordingNotifier:
    """Collects messages instead of sending them."""

    def __init__(self, delivered: bool = True):
        self.messages: list[str] = []
        self.delivered = delivered

    def __call__(self, message: str) -> bool:
        self.messages.append(message)
        return self.delivered


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
