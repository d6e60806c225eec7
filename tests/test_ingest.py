# ruff: noqa: E501
from decimal import Decimal

from spend_analytics import (
    IngestConfig,
    IngestErrorKind,
    IngestResult,
    IngestWarningKind,
    ingest,
    ingest_path,
)
from spend_analytics.ingest import transaction_fingerprint
from tests.helpers.factories import HEADER, dedent_csv, make_tx


def _ingest(text: str, **cfg) -> IngestResult:
    return ingest(text.encode("utf-8"), "upload.csv", IngestConfig(**cfg) if cfg else None)


def test_scenario_a_two_valid_rows(scenario_a_csv):
    result = _ingest(scenario_a_csv)
    assert result.errors == ()
    assert result.warnings == ()
    assert [tx.description for tx in result.transactions] == ["Coffee Shop", "Grocery"]
    assert result.transactions[0].amount_usd == Decimal("-4.50")
    assert result.transactions[1].cashback_earned == Decimal("1.50")
    assert result.rows_read == 2
    assert result.ok


def test_scenario_b_blank_description_rejects_only_that_row():
    csv_text = dedent_csv(
        f"""
        {HEADER}
        2024-01-15,purchase,Coffee Shop,completed,-4.50,1234,Jane Doe,,,0.05,Dining
        2024-01-16,purchase,,completed,20.00,1234,Jane Doe,,,,Dining
        2024-02-01,purchase,Grocery,completed,150.00,1234,Jane Doe,,,1.50,Groceries
        """
    )
    result = _ingest(csv_text)
    assert [tx.description for tx in result.transactions] == ["Coffee Shop", "Grocery"]
    assert len(result.errors) == 1
    err = result.errors[0]
    assert err.kind is IngestErrorKind.VALIDATION_FAILED
    assert err.row == 3
    assert err.column == "description"
    assert "description" in err.message
    assert not result.rejected


def test_scenario_c_blank_category_becomes_uncategorized():
    csv_text = dedent_csv(
        f"""
        {HEADER}
        2024-01-15,purchase,Coffee Shop,completed,-4.50,1234,Jane Doe,,,0.05,Dining
        2024-01-20,purchase,Bookstore,completed,30.00,1234,Jane Doe,,,,
        """
    )
    result = _ingest(csv_text)
    assert result.errors == ()
    assert result.transactions[1].category == "Uncategorized"
    assert len(result.warnings) == 1
    assert result.warnings[0].kind is IngestWarningKind.MISSING_CATEGORY
    assert result.warnings[0].row == 3


def test_scenario_d_missing_status_column_aborts():
    csv_text = dedent_csv(
        """
        timestamp,type,description,amount USD,card,card holder name
        2024-01-15,purchase,Coffee Shop,-4.50,1234,Jane Doe
        not-a-date,purchase,,oops,1234,Jane Doe
        """
    )
    result = _ingest(csv_text)
    assert result.transactions == ()
    assert len(result.errors) == 1
    err = result.errors[0]
    assert err.kind is IngestErrorKind.MISSING_COLUMN
    assert err.column == "status"
    assert err.message == 'Required column "status" is missing from CSV'
    assert result.rejected


def test_every_missing_column_is_reported():
    result = _ingest("timestamp,description\n2024-01-15,Coffee\n")
    assert [e.column for e in result.errors] == [
        "type",
        "status",
        "amount USD",
        "card",
        "card holder name",
    ]
    assert all(e.kind is IngestErrorKind.MISSING_COLUMN for e in result.errors)


def test_header_synonyms_and_optional_columns():
    csv_text = dedent_csv(
        """
        Date,Transaction Type,Merchant,Status,Amount,Card Number,Cardholder
        01/15/2024,purchase,"Cafe ""Luna"", Downtown",completed,"$1,204.50",1234,Jane Doe
        """
    )
    result = _ingest(csv_text)
    assert result.errors == ()
    tx = result.transactions[0]
    assert tx.description == 'Cafe "Luna", Downtown'
    assert tx.amount_usd == Decimal("1204.50")
    assert tx.category == "Uncategorized"
    assert tx.cashback_earned is None


def test_quoted_field_with_embedded_newline_keeps_row_numbers():
    csv_text = (
        HEADER
        + '\n2024-01-15,purchase,"Two\nLines",completed,5.00,1234,Jane Doe,,,,Dining'
        + "\n2024-01-16,purchase,,completed,5.00,1234,Jane Doe,,,,Dining\n"
    )
    result = _ingest(csv_text)
    assert result.transactions[0].description == "Two\nLines"
    assert result.errors[0].row == 3


def test_blank_lines_are_skipped():
    csv_text = HEADER + "\n\n2024-01-15,purchase,Coffee,completed,1.00,1234,Jane Doe,,,,Dining\n,,,,\n"
    result = _ingest(csv_text)
    assert len(result.transactions) == 1
    assert result.errors == ()


def test_utf8_bom_is_ignored(scenario_a_csv):
    result = ingest(("\ufeff" + scenario_a_csv).encode("utf-8"), "upload.csv")
    assert len(result.transactions) == 2


def test_header_only_file_is_empty():
    result = _ingest(HEADER + "\n")
    assert result.errors[0].kind is IngestErrorKind.EMPTY_FILE
    assert result.errors[0].message == "CSV file contains no data rows"


def test_zero_byte_file_is_empty():
    result = ingest(b"", "upload.csv")
    assert result.errors[0].kind is IngestErrorKind.EMPTY_FILE
    assert result.transactions == ()


def test_oversized_file_is_rejected(scenario_a_csv):
    result = _ingest(scenario_a_csv, max_file_size_bytes=10)
    assert result.transactions == ()
    assert result.errors[0].kind is IngestErrorKind.VALIDATION_FAILED
    assert "exceeds maximum allowed size" in result.errors[0].message


def test_non_csv_filename_is_rejected(scenario_a_csv):
    result = ingest(scenario_a_csv.encode("utf-8"), "statement.xlsx")
    assert result.errors[0].kind is IngestErrorKind.VALIDATION_FAILED
    assert "csv" in result.errors[0].message.lower()


def test_filename_is_optional(scenario_a_csv):
    assert len(ingest(scenario_a_csv.encode("utf-8")).transactions) == 2


def test_binary_content_is_rejected():
    result = ingest(b"\x89PNG\r\n\x1a\n\x00\x00\xff\xfe", "upload.csv")
    assert result.errors[0].kind is IngestErrorKind.VALIDATION_FAILED
    assert result.rejected


def test_invalid_rows_do_not_stop_the_pass():
    csv_text = dedent_csv(
        f"""
        {HEADER}
        someday,purchase,A,completed,1.00,1234,Jane Doe,,,,Dining
        2024-01-15,purchase,B,completed,lots,1234,Jane Doe,,,,Dining
        2024-01-16,purchase,C,completed,3.00,1234,Jane Doe,,,,Dining
        """
    )
    result = _ingest(csv_text)
    assert [tx.description for tx in result.transactions] == ["C"]
    assert [(e.kind, e.row) for e in result.errors] == [
        (IngestErrorKind.INVALID_DATA_TYPE, 2),
        (IngestErrorKind.INVALID_DATA_TYPE, 3),
    ]


def test_all_rows_invalid_is_rejected():
    result = _ingest(HEADER + "\nsomeday,purchase,A,completed,1.00,1234,Jane Doe,,,,Dining\n")
    assert result.transactions == ()
    assert result.rejected


def test_short_rows_leave_trailing_optionals_empty():
    result = _ingest(HEADER + "\n2024-01-15,purchase,A,completed,1.00,1234,Jane Doe\n")
    tx = result.transactions[0]
    assert tx.category == "Uncategorized"
    assert tx.original_currency is None


def test_row_count_advisory():
    rows = "\n".join(
        f"2024-01-{d:02d},purchase,Item {d},completed,1.00,1234,Jane Doe,,,,Misc" for d in range(1, 5)
    )
    result = _ingest(HEADER + "\n" + rows, max_transactions=3)
    assert len(result.transactions) == 4
    assert result.warnings[-1].kind is IngestWarningKind.LARGE_TRANSACTION
    assert result.warnings[-1].row == 0
    assert "exceeds recommended maximum" in result.warnings[-1].message


def test_strict_mode_discards_everything_on_a_warning():
    csv_text = dedent_csv(
        f"""
        {HEADER}
        2024-01-15,purchase,Coffee Shop,completed,-4.50,1234,Jane Doe,,,0.05,Dining
        2024-01-20,purchase,Bookstore,completed,30.00,1234,Jane Doe,,,,
        """
    )
    result = _ingest(csv_text, strict_mode=True)
    assert result.transactions == ()
    assert result.warnings == ()
    assert [e.kind for e in result.errors] == [IngestErrorKind.VALIDATION_FAILED]
    assert result.errors[0].row == 3
    assert result.rejected


def test_strict_mode_keeps_valid_rows_when_only_row_errors():
    csv_text = HEADER + "\n2024-01-15,purchase,A,completed,1.00,1234,Jane Doe,,,,Dining\nbad,purchase,B,completed,1.00,1234,Jane Doe,,,,Dining\n"
    result = _ingest(csv_text, strict_mode=True)
    assert [tx.description for tx in result.transactions] == ["A"]
    assert [(e.kind, e.row) for e in result.errors] == [(IngestErrorKind.INVALID_DATA_TYPE, 3)]
    assert result.warnings == ()
    assert not result.rejected


def test_strict_mode_with_clean_file_keeps_everything(scenario_a_csv):
    result = _ingest(scenario_a_csv, strict_mode=True)
    assert len(result.transactions) == 2
    assert result.ok


def test_duplicate_detection_is_opt_in():
    row = "2024-01-15,purchase,Coffee Shop,completed,4.50,1234,Jane Doe,,,,Dining"
    csv_text = "\n".join([HEADER, row, row.replace("Coffee Shop", "COFFEE SHOP")])

    assert _ingest(csv_text).warnings == ()

    result = _ingest(csv_text, detect_duplicates=True)
    assert len(result.transactions) == 2
    assert len(result.warnings) == 1
    warning = result.warnings[0]
    assert warning.kind is IngestWarningKind.DUPLICATE_TRANSACTION
    assert warning.row == 3
    assert warning.message == "Row 3: Possible duplicate of row 2"


def test_fingerprint_ignores_category_but_not_card():
    a = make_tx(category="Dining")
    assert transaction_fingerprint(a) == transaction_fingerprint(make_tx(category="Travel"))
    assert transaction_fingerprint(a) != transaction_fingerprint(make_tx(card="9999"))


def test_ingest_is_deterministic(scenario_a_csv):
    assert _ingest(scenario_a_csv) == _ingest(scenario_a_csv)


def test_ingest_path_reads_file(tmp_path, scenario_a_csv):
    path = tmp_path / "jan.csv"
    path.write_text(scenario_a_csv, encoding="utf-8")
    assert len(ingest_path(path).transactions) == 2


def test_ingest_path_reports_unreadable_file(tmp_path):
    result = ingest_path(tmp_path / "missing.csv")
    assert result.rejected
    assert result.errors[0].kind is IngestErrorKind.VALIDATION_FAILED
    assert "Could not read" in result.errors[0].message
