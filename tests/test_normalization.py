"""Tests for statement normalization."""

import pytest
from datetime import date, datetime
from decimal import Decimal

import xlwt
from openpyxl import Workbook

from ledgerflow.domain.entities import (
    ColumnMapping,
    StatementRow,
    TransactionStatus,
    TransactionType,
)
from ledgerflow.domain.errors import UnsupportedFileTypeError, ValidationError
from ledgerflow.domain.normalization import (
    DEFAULT_DESCRIPTION,
    NormalizationEngine,
    compute_row_hash,
    detect_columns,
    extract_row,
    normalize_row,
)

from conftest import ORG_ID


@pytest.fixture
def engine():
    return NormalizationEngine()


def _write(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return str(path)


class TestDetectColumns:
    """Tests for header vocabulary matching."""

    def test_standard_headers(self):
        mapping = detect_columns(["Date", "Description", "Debit", "Credit", "Balance", "Ref No"])

        assert mapping == ColumnMapping(
            date="Date",
            description="Description",
            debit="Debit",
            credit="Credit",
            balance="Balance",
            reference="Ref No",
        )

    def test_bank_specific_headers(self):
        mapping = detect_columns(
            ["Txn Date", "Particulars", "Withdrawal Amt", "Deposit Amt", "Closing Balance", "Cheque No"]
        )

        assert mapping.date == "Txn Date"
        assert mapping.description == "Particulars"
        assert mapping.debit == "Withdrawal Amt"
        assert mapping.credit == "Deposit Amt"
        assert mapping.balance == "Closing Balance"
        assert mapping.reference == "Cheque No"
        assert mapping.amount is None

    def test_matching_is_case_insensitive(self):
        mapping = detect_columns(["DATE", "NARRATIVE", "AMOUNT"])

        assert mapping.date == "DATE"
        assert mapping.description == "NARRATIVE"
        assert mapping.amount == "AMOUNT"
        assert mapping.debit is None
        assert mapping.credit is None

    def test_dr_cr_abbreviations(self):
        mapping = detect_columns(["Date", "Details", "Dr", "Cr"])

        assert mapping.debit == "Dr"
        assert mapping.credit == "Cr"
        assert mapping.description is None

    def test_last_matching_header_wins(self):
        mapping = detect_columns(["Value Date", "Posting Date", "Description"])

        assert mapping.date == "Posting Date"

    def test_value_date_column_used_over_txn_date(self):
        mapping = detect_columns(["Txn Date", "Value Date", "Description", "Debit", "Credit"])

        assert mapping.date == "Value Date"
        assert mapping.debit == "Debit"
        assert mapping.credit == "Credit"

    def test_header_claimed_by_first_field_in_vocabulary_order(self):
        # "Debit Amount" matches both debit and amount; debit comes first
        mapping = detect_columns(["Date", "Debit Amount", "Credit Amount"])

        assert mapping.debit == "Debit Amount"
        assert mapping.credit == "Credit Amount"
        assert mapping.amount is None

    def test_unknown_and_empty_headers_ignored(self):
        mapping = detect_columns(["", "Branch", "Date"])

        assert mapping == ColumnMapping(date="Date")


class TestNormalizeRow:
    """Tests for per-row side resolution and dropping."""

    def _row(self, **values):
        return StatementRow(raw=dict(values), **values)

    def test_debit_column(self):
        row = normalize_row(self._row(date="01/05/2024", description="ATM Withdrawal", debit="500.00", credit=""))

        assert row.type == TransactionType.DEBIT
        assert row.amount == Decimal("500.00")
        assert row.date == date(2024, 1, 5)
        assert row.description == "ATM Withdrawal"

    def test_credit_column(self):
        row = normalize_row(self._row(date="2024-02-01", description="Fees", debit="", credit="$1,250.50"))

        assert row.type == TransactionType.CREDIT
        assert row.amount == Decimal("1250.50")

    def test_credit_wins_when_both_sides_filled(self):
        row = normalize_row(self._row(date="2024-02-01", debit="10.00", credit="20.00"))

        assert row.type == TransactionType.CREDIT
        assert row.amount == Decimal("20.00")

    def test_negative_side_values_stored_unsigned(self):
        row = normalize_row(self._row(date="2024-02-01", debit="-75.00"))

        assert row.type == TransactionType.DEBIT
        assert row.amount == Decimal("75.00")

    def test_signed_amount_negative_is_debit(self):
        row = normalize_row(self._row(date="2024-02-01", amount="-40.00"))

        assert row.type == TransactionType.DEBIT
        assert row.amount == Decimal("40.00")

    def test_signed_amount_positive_is_credit(self):
        row = normalize_row(self._row(date="2024-02-01", amount="40.00"))

        assert row.type == TransactionType.CREDIT
        assert row.amount == Decimal("40.00")

    def test_debit_credit_take_precedence_over_amount(self):
        row = normalize_row(self._row(date="2024-02-01", debit="15.00", amount="99.00"))

        assert row.type == TransactionType.DEBIT
        assert row.amount == Decimal("15.00")

    def test_amount_used_when_debit_credit_empty(self):
        row = normalize_row(self._row(date="2024-02-01", debit="", credit="0.00", amount="-3.00"))

        assert row.type == TransactionType.DEBIT
        assert row.amount == Decimal("3.00")

    def test_unparseable_date_dropped(self):
        assert normalize_row(self._row(date="not a date", debit="10.00")) is None

    def test_missing_date_dropped(self):
        assert normalize_row(self._row(debit="10.00")) is None

    def test_zero_amount_dropped(self):
        assert normalize_row(self._row(date="2024-02-01", debit="0.00", credit="0")) is None

    def test_unparseable_amount_treated_as_absent(self):
        assert normalize_row(self._row(date="2024-02-01", debit="n/a")) is None

    def test_default_description(self):
        row = normalize_row(self._row(date="2024-02-01", credit="5", description="  "))

        assert row.description == DEFAULT_DESCRIPTION

    def test_optional_balance_and_reference(self):
        row = normalize_row(
            self._row(date="2024-02-01", credit="5", balance="1,000.00", reference=451)
        )

        assert row.balance == Decimal("1000.00")
        assert row.reference == "451"

    def test_spreadsheet_values(self):
        row = normalize_row(self._row(date=datetime(2024, 3, 9, 0, 0), debit=12.5))

        assert row.date == date(2024, 3, 9)
        assert row.amount == Decimal("12.5")


class TestRowHash:
    """Tests for row fingerprints."""

    def test_hash_is_stable(self):
        raw = {"Date": "01/05/2024", "Debit": "500.00"}

        assert compute_row_hash(raw, 1) == compute_row_hash(dict(raw), 1)
        assert len(compute_row_hash(raw, 1)) == 64

    def test_hash_scoped_to_statement(self):
        raw = {"Date": "01/05/2024", "Debit": "500.00"}

        assert compute_row_hash(raw, 1) != compute_row_hash(raw, 2)

    def test_hash_covers_all_raw_values(self):
        assert compute_row_hash({"Date": "x", "Memo": "a"}, 1) != compute_row_hash(
            {"Date": "x", "Memo": "b"}, 1
        )

    def test_hash_accepts_spreadsheet_values(self):
        assert compute_row_hash({"Date": datetime(2024, 1, 1), "Amount": 5.5}, 3)


class TestNormalizeStatement:
    """Tests for file-level normalization."""

    def test_atm_withdrawal_csv(self, engine, tmp_path):
        path = _write(tmp_path, "stmt.csv", 'Date,Description,Debit,Credit\n01/05/2024,"ATM Withdrawal",500.00,\n')

        drafts = engine.normalize_statement(path, statement_id=7, organization_id=ORG_ID)

        assert len(drafts) == 1
        draft = drafts[0]
        assert draft.type == TransactionType.DEBIT
        assert draft.amount == Decimal("500.00")
        assert draft.description == "ATM Withdrawal"
        assert draft.statement_id == 7
        assert draft.organization_id == ORG_ID
        assert draft.status == TransactionStatus.PENDING
        assert draft.confidence_score == Decimal("0")
        assert draft.suggested_account_id is None

    def test_bad_row_dropped_not_raised(self, engine, tmp_path):
        path = _write(
            tmp_path,
            "stmt.csv",
            "Date,Description,Debit,Credit\nyesterday-ish,Broken,10.00,\n2024-01-06,Valid,,20.00\n",
        )

        drafts = engine.normalize_statement(path, statement_id=1, organization_id=ORG_ID)

        assert len(drafts) == 1
        assert drafts[0].description == "Valid"
        assert drafts[0].type == TransactionType.CREDIT

    def test_bank_statement_fixture(self, engine, fixtures_dir):
        drafts = engine.normalize_statement(
            str(fixtures_dir / "bank_statement.csv"), statement_id=1, organization_id=ORG_ID
        )

        # One row has no date and one has zero amounts
        assert len(drafts) == 5
        assert [d.type for d in drafts] == [
            TransactionType.CREDIT,
            TransactionType.DEBIT,
            TransactionType.DEBIT,
            TransactionType.DEBIT,
            TransactionType.CREDIT,
        ]
        assert drafts[1].amount == Decimal("18000.00")
        assert drafts[1].reference == "000451"
        assert drafts[3].amount == Decimal("3250.75")
        assert drafts[3].balance == Decimal("61259.25")
        assert len({d.row_hash for d in drafts}) == 5

    def test_semicolon_signed_amount_fixture(self, engine, fixtures_dir):
        drafts = engine.normalize_statement(
            str(fixtures_dir / "signed_amounts.csv"), statement_id=1, organization_id=ORG_ID
        )

        assert [(d.type, d.amount) for d in drafts] == [
            (TransactionType.DEBIT, Decimal("40000.00")),
            (TransactionType.CREDIT, Decimal("15000.00")),
            (TransactionType.DEBIT, Decimal("12.50")),
        ]
        assert drafts[0].reference == "SAL0301"
        assert drafts[2].reference is None

    def test_utf8_bom_header(self, engine, tmp_path):
        path = tmp_path / "bom.csv"
        path.write_bytes("\ufeffDate,Description,Amount\n2024-01-01,Fee,100\n".encode("utf-8"))

        drafts = engine.normalize_statement(str(path), statement_id=1, organization_id=ORG_ID)

        assert len(drafts) == 1
        assert drafts[0].date == date(2024, 1, 1)

    def test_header_only_csv(self, engine, tmp_path):
        path = _write(tmp_path, "empty.csv", "Date,Description,Amount\n")

        assert engine.normalize_statement(path, statement_id=1, organization_id=ORG_ID) == []

    def test_blank_lines_skipped(self, engine, tmp_path):
        path = _write(tmp_path, "blank.csv", "Date,Description,Amount\n,,\n\n2024-01-01,Fee,100\n")

        assert len(engine.normalize_statement(path, statement_id=1, organization_id=ORG_ID)) == 1

    def test_same_rows_hash_differently_across_statements(self, engine, tmp_path):
        path = _write(tmp_path, "stmt.csv", "Date,Description,Amount\n2024-01-01,Fee,100\n")

        first = engine.normalize_statement(path, statement_id=1, organization_id=ORG_ID)
        second = engine.normalize_statement(path, statement_id=2, organization_id=ORG_ID)

        assert first[0].row_hash != second[0].row_hash

    def test_xlsx_statement(self, engine, tmp_path):
        wb = Workbook()
        ws = wb.active
        ws.append([None, None, None])
        ws.append(["Transaction Date", "Narrative", "Debit", "Credit", "Balance"])
        ws.append([datetime(2024, 4, 1), "Rent April", 18000, None, 50000])
        ws.append([datetime(2024, 4, 2), "Fees", None, 2500.5, 52500.5])
        ws.append([None, None, None, None, None])
        ws.append(["bad", "Dropped", 1, None, None])
        path = tmp_path / "stmt.xlsx"
        wb.save(path)

        drafts = engine.normalize_statement(str(path), statement_id=1, organization_id=ORG_ID)

        assert len(drafts) == 2
        assert drafts[0].date == date(2024, 4, 1)
        assert drafts[0].type == TransactionType.DEBIT
        assert drafts[0].amount == Decimal("18000")
        assert drafts[1].type == TransactionType.CREDIT
        assert drafts[1].amount == Decimal("2500.5")
        assert drafts[1].balance == Decimal("52500.5")

    def test_xls_statement(self, engine, tmp_path):
        book = xlwt.Workbook()
        sheet = book.add_sheet("Statement")
        date_style = xlwt.easyxf(num_format_str="DD/MM/YYYY")
        for col, header in enumerate(["Value Date", "Particulars", "Withdrawal", "Deposit", "Balance"]):
            sheet.write(1, col, header)
        sheet.write(2, 0, datetime(2024, 4, 1), date_style)
        sheet.write(2, 1, "Rent April")
        sheet.write(2, 2, 18000)
        sheet.write(2, 4, 50000)
        sheet.write(3, 0, datetime(2024, 4, 2), date_style)
        sheet.write(3, 1, "Fees")
        sheet.write(3, 3, 2500.5)
        sheet.write(3, 4, 52500.5)
        sheet.write(5, 0, "bad")
        sheet.write(5, 1, "Dropped")
        sheet.write(5, 2, 1)
        path = tmp_path / "stmt.xls"
        book.save(str(path))

        drafts = engine.normalize_statement(str(path), statement_id=1, organization_id=ORG_ID)

        assert len(drafts) == 2
        assert drafts[0].date == date(2024, 4, 1)
        assert drafts[0].description == "Rent April"
        assert drafts[0].type == TransactionType.DEBIT
        assert drafts[0].amount == Decimal("18000")
        assert drafts[1].date == date(2024, 4, 2)
        assert drafts[1].type == TransactionType.CREDIT
        assert drafts[1].amount == Decimal("2500.5")
        assert drafts[1].balance == Decimal("52500.5")

    def test_unreadable_spreadsheet_raises_validation_error(self, engine, tmp_path):
        path = tmp_path / "legacy.xls"
        path.write_bytes(b"\xd0\xcf\x11\xe0 not a zip workbook")

        with pytest.raises(ValidationError, match="Could not read spreadsheet"):
            engine.normalize_statement(str(path), statement_id=1, organization_id=ORG_ID)

    def test_pdf_yields_no_rows(self, engine, tmp_path, monkeypatch):
        class _Page:
            def extract_text(self):
                return "01/05/2024 ATM Withdrawal 500.00\nPage 1 of 1"

        class _Pdf:
            pages = [_Page()]

            def __enter__(self):
                return self

            def __exit__(self, *args):
                return False

        monkeypatch.setattr("ledgerflow.domain.normalization.pdfplumber.open", lambda path: _Pdf())
        path = tmp_path / "stmt.pdf"
        path.write_bytes(b"%PDF-1.4")

        assert engine.normalize_statement(str(path), statement_id=1, organization_id=ORG_ID) == []

    def test_unsupported_extension(self, engine, tmp_path):
        path = _write(tmp_path, "stmt.txt", "Date,Amount\n2024-01-01,5\n")

        with pytest.raises(UnsupportedFileTypeError, match=r"\.txt"):
            engine.normalize_statement(path, statement_id=1, organization_id=ORG_ID)

    def test_extension_match_is_case_insensitive(self, engine, tmp_path):
        path = _write(tmp_path, "STMT.CSV", "Date,Amount\n2024-01-01,5\n")

        assert len(engine.normalize_statement(path, statement_id=1, organization_id=ORG_ID)) == 1


def test_extract_row_uses_mapping():
    record = {"Date": "2024-01-01", "Memo": "Fee", "Amount": "5"}
    mapping = ColumnMapping(date="Date", description="Memo", amount="Amount")

    row = extract_row(record, mapping)

    assert row.raw is record
    assert row.date == "2024-01-01"
    assert row.description == "Fee"
    assert row.amount == "5"
    assert row.debit is None
