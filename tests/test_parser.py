import hashlib
from datetime import date
from decimal import Decimal

from conftest import OBSERVED_AT

from omiewatch.parser import parse_table, read_rows, record_identity

HEADER = "OMIE;titulo;;;\nFecha;Min;Medio;Max;\n"


def test_single_row_end_to_end():
    text = HEADER + "01/05/23;40,00;45,50;50,00;extra\n"
    records = parse_table(text, observed_at=OBSERVED_AT)

    assert len(records) == 1
    rec = records[0]
    assert rec.date == date(2023, 5, 1)
    assert rec.min == Decimal("40.00")
    assert rec.avg == Decimal("45.50")
    assert rec.max == Decimal("50.00")
    assert rec.identity == hashlib.sha256(b"40,0045,5050,00").hexdigest()
    assert rec.observed_at == OBSERVED_AT


def test_prices_are_fixed_point(sample_table):
    records = parse_table(sample_table, observed_at=OBSERVED_AT)
    assert [r.avg for r in records] == [Decimal("45.50"), Decimal("60.25"), Decimal("30.75")]
    assert all(isinstance(r.max, Decimal) for r in records)


def test_identity_ignores_date():
    text = HEADER + "01/05/23;40,00;45,50;50,00;\n" + "17/05/23;40,00;45,50;50,00;\n"
    first, second = parse_table(text, observed_at=OBSERVED_AT)
    assert first.date != second.date
    assert first.identity == second.identity


def test_identity_can_include_date():
    text = HEADER + "01/05/23;40,00;45,50;50,00;\n" + "17/05/23;40,00;45,50;50,00;\n"
    first, second = parse_table(text, observed_at=OBSERVED_AT, include_date=True)
    assert first.identity != second.identity
    assert first.identity == record_identity("40,00", "45,50", "50,00", "01/05/23")


def test_identity_uses_raw_strings():
    # "45,5" and "45,50" are the same number but different raw text
    assert record_identity("40,00", "45,5", "50,00") != record_identity("40,00", "45,50", "50,00")
    assert len(record_identity("1", "2", "3")) == 64


def test_bad_rows_do_not_affect_siblings():
    text = HEADER + (
        "01/05/23;40,00;45,50;50,00;\n"
        "02/05/23;n/a;45,50;50,00;\n"
        "03/05/23;40,00;;50,00;\n"
        "04/05/23;40,00;45,50;NaN;\n"
        "31/02/23;40,00;45,50;50,00;\n"
        "2023-05-06;40,00;45,50;50,00;\n"
        "07/05/23;41,00;46,00;52,00;\n"
    )
    records = parse_table(text, observed_at=OBSERVED_AT)
    assert [r.date for r in records] == [date(2023, 5, 1), date(2023, 5, 7)]


def test_wrong_field_count_is_excluded():
    text = HEADER + (
        "01/05/23;40,00;45,50;50,00\n"
        "02/05/23;40,00;45,50;50,00;;\n"
        "\n"
        "03/05/23;40,00;45,50;50,00;\n"
    )
    rows = list(read_rows(text))
    assert rows == [["03/05/23", "40,00", "45,50", "50,00", ""]]


def test_header_rows_always_skipped():
    # data-shaped header rows are still dropped
    text = "01/05/23;40,00;45,50;50,00;\n02/05/23;40,00;45,50;50,00;\n"
    assert parse_table(text, observed_at=OBSERVED_AT) == []


def test_short_input_yields_nothing():
    assert parse_table("", observed_at=OBSERVED_AT) == []
    assert parse_table("only one line;;;;\n", observed_at=OBSERVED_AT) == []
    assert parse_table(HEADER, observed_at=OBSERVED_AT) == []


def test_min_avg_max_order_not_enforced():
    text = HEADER + "01/05/23;90,00;45,50;10,00;\n"
    (rec,) = parse_table(text, observed_at=OBSERVED_AT)
    assert rec.min > rec.max


def test_reader_error_skips_only_that_row():
    oversized = "02/05/23;" + "9" * 200000 + ";1,00;1,00;\n"
    text = HEADER + "01/05/23;40,00;45,50;50,00;\n" + oversized + "03/05/23;41,00;46,00;52,00;\n"

    records = parse_table(text, observed_at=OBSERVED_AT)
    assert [r.date for r in records] == [date(2023, 5, 1), date(2023, 5, 3)]


def test_price_format_is_strict():
    text = HEADER + (
        "01/05/23;1_000,00;45,50;50,00;\n"
        "02/05/23; 40,00;45,50;50,00;\n"
        "03/05/23;40,00;45,50 ;50,00;\n"
        "04/05/23;40,00;45,50;Infinity;\n"
        "05/05/23;-3,50;45,50;50,00;\n"
        "06/05/23;40;45.5;5e1;\n"
    )
    records = parse_table(text, observed_at=OBSERVED_AT)
    assert [r.date for r in records] == [date(2023, 5, 5), date(2023, 5, 6)]
    assert records[0].min == Decimal("-3.50")
    assert records[1].max == Decimal("5e1")


def test_date_needs_two_digit_fields():
    text = HEADER + (
        "1/5/23;40,00;45,50;50,00;\n"
        "01/05/2023;40,00;45,50;50,00;\n"
        "02/05/23;40,00;45,50;50,00;\n"
    )
    records = parse_table(text, observed_at=OBSERVED_AT)
    assert [r.date for r in records] == [date(2023, 5, 2)]
