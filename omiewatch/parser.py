"""Parse the OMIE min/avg/max table into PriceRecords."""

import csv
import hashlib
import io
import logging
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterator

from omiewatch.errors import ParseSkip
from omiewatch.models import PriceRecord

logger = logging.getLogger(__name__)

DELIMITER = ";"
FIELDS_PER_ROW = 5
HEADER_ROWS = 2
DATE_FORMAT = "%d/%m/%y"

PRICE_RE = re.compile(r"[+-]?(?:\d+(?:[.,]\d*)?|[.,]\d+)(?:[eE][+-]?\d+)?", re.ASCII)
DATE_RE = re.compile(r"\d{2}/\d{2}/\d{2}", re.ASCII)


def read_rows(text: str) -> Iterator[list[str]]:
    """
    Yield data rows of the raw table.

    The first two rows (title and column headers) are always skipped.
    Rows without exactly five fields are dropped before normalization.
    """
    reader = csv.reader(io.StringIO(text), delimiter=DELIMITER)
    row_num = 0
    while True:
        row_num += 1
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            if row_num > HEADER_ROWS:
                logger.warning("line %d: %s", reader.line_num, e)
            continue
        if row_num <= HEADER_ROWS:
            continue
        if not row:
            continue
        if len(row) != FIELDS_PER_ROW:
            logger.warning(
                "line %d: expected %d fields, got %d", reader.line_num, FIELDS_PER_ROW, len(row)
            )
            continue
        yield row


def record_identity(min_raw: str, avg_raw: str, max_raw: str, date_raw: str | None = None) -> str:
    """sha256 hex digest of the raw price strings (and optionally the raw date)."""
    content = f"{min_raw}{avg_raw}{max_raw}"
    if date_raw is not None:
        content += date_raw
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def _parse_price(raw: str) -> Decimal:
    if not PRICE_RE.fullmatch(raw):
        raise ParseSkip(f"invalid price {raw!r}")
    try:
        value = Decimal(raw.replace(",", "."))
    except InvalidOperation as e:
        raise ParseSkip(f"invalid price {raw!r}") from e
    if not value.is_finite():
        raise ParseSkip(f"invalid price {raw!r}")
    return value


def parse_row(row: list[str], observed_at: datetime, include_date: bool = False) -> PriceRecord:
    """Normalize one five-field row. Raises ParseSkip if it cannot be used."""
    date_raw, min_raw, avg_raw, max_raw = row[0], row[1], row[2], row[3]

    minimum = _parse_price(min_raw)
    average = _parse_price(avg_raw)
    maximum = _parse_price(max_raw)
    if not DATE_RE.fullmatch(date_raw):
        raise ParseSkip(f"invalid date {date_raw!r}")
    try:
        day = datetime.strptime(date_raw, DATE_FORMAT).date()
    except ValueError as e:
        raise ParseSkip(f"invalid date {date_raw!r}") from e

    return PriceRecord(
        identity=record_identity(min_raw, avg_raw, max_raw, date_raw if include_date else None),
        date=day,
        min=minimum,
        avg=average,
        max=maximum,
        observed_at=observed_at,
    )


def parse_table(
    text: str,
    *,
    observed_at: datetime | None = None,
    include_date: bool = False,
) -> list[PriceRecord]:
    """
    Turn the raw file body into PriceRecords.

    Malformed rows are skipped; the rest of the batch is kept. An empty list
    means nothing parseable was found, which callers treat differently from a
    failed download.
    """
    observed_at = observed_at or datetime.now(timezone.utc)
    records: list[PriceRecord] = []
    for row in read_rows(text):
        try:
            records.append(parse_row(row, observed_at, include_date))
        except ParseSkip as e:
            logger.debug("skipping row %r: %s", row, e)
    return records
