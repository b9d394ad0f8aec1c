"""Bank statement normalization.

Turns CSV, Excel and PDF statements into pending bank transaction drafts with
a common shape, whatever column names the issuing bank uses.
"""

import csv
import hashlib
import json
import re
import zipfile
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

import pdfplumber
import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ledgerflow.domain.entities import (
    BankTransactionDraft,
    ColumnMapping,
    NormalizedRow,
    StatementRow,
    TransactionType,
)
from ledgerflow.domain.errors import (
    UnsupportedFileTypeError,
    ValidationError,
    unsupported_file_type,
)
from ledgerflow.logger import get_logger
from ledgerflow.utils.amount_parser import parse_amount
from ledgerflow.utils.date_parser import parse_statement_date

logger = get_logger(__name__)

CSV_EXTENSIONS = (".csv",)
EXCEL_EXTENSIONS = (".xls", ".xlsx")
PDF_EXTENSIONS = (".pdf",)
SUPPORTED_EXTENSIONS = CSV_EXTENSIONS + EXCEL_EXTENSIONS + PDF_EXTENSIONS

# Checked in order for every header; the first field whose keyword is a
# substring of the lower-cased header claims it.
COLUMN_VOCABULARY: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("date", ("date", "txn date")),
    ("description", ("description", "narrative", "particulars")),
    ("debit", ("debit", "withdrawal", "dr")),
    ("credit", ("credit", "deposit", "cr")),
    ("amount", ("amount",)),
    ("balance", ("balance",)),
    ("reference", ("ref", "cheque")),
)

DEFAULT_DESCRIPTION = "No description"

_PDF_DATE = re.compile(r"\d{2}[/\-]\d{2}[/\-]\d{4}")
_PDF_MONEY = re.compile(r"[\d,]+\.\d{2}")


def detect_columns(headers: list[str]) -> ColumnMapping:
    """Map header names to semantic fields.

    Matching is a case-insensitive substring test against COLUMN_VOCABULARY.
    Each header claims at most one field, the first in vocabulary order it
    matches. When several headers match the same field, the rightmost one
    wins, so "Txn Date, Value Date" reads dates from "Value Date".

    Args:
        headers: Header row as read from the file

    Returns:
        ColumnMapping with the original header text per detected field
    """
    found: dict[str, str] = {}
    for header in headers:
        if header is None:
            continue
        lowered = str(header).strip().lower()
        if not lowered:
            continue
        for field_name, keywords in COLUMN_VOCABULARY:
            if any(keyword in lowered for keyword in keywords):
                found[field_name] = header
                break
    return ColumnMapping(**found)


def extract_row(record: dict[str, Any], mapping: ColumnMapping) -> StatementRow:
    """Pick the mapped cells out of one raw record."""

    def cell(header: Optional[str]) -> Any:
        return record.get(header) if header is not None else None

    return StatementRow(
        raw=record,
        date=cell(mapping.date),
        description=cell(mapping.description),
        debit=cell(mapping.debit),
        credit=cell(mapping.credit),
        amount=cell(mapping.amount),
        balance=cell(mapping.balance),
        reference=cell(mapping.reference),
    )


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _optional_amount(value: Any) -> Optional[Decimal]:
    """Parse an amount cell, treating blank or unparseable cells as absent."""
    if _is_blank(value):
        return None
    try:
        return parse_amount(value)
    except ValueError:
        return None


def normalize_row(row: StatementRow) -> Optional[NormalizedRow]:
    """Resolve a statement row into a dated, signed transaction.

    Returns None when the row must be dropped: no parseable date, or a
    resolved amount of zero.

    Side resolution: a nonzero debit cell makes a debit, a nonzero credit cell
    makes a credit (credit wins when both are filled), and only when neither
    yields an amount is a signed amount column used: negative is a debit,
    anything else a credit. Stored amounts are always unsigned.
    """
    try:
        txn_date = parse_statement_date(row.date)
    except ValueError:
        logger.debug("row dropped", reason="unparseable date", value=row.date)
        return None

    amount = Decimal("0")
    txn_type = TransactionType.DEBIT

    debit = _optional_amount(row.debit)
    if debit:
        amount = abs(debit)
        txn_type = TransactionType.DEBIT

    credit = _optional_amount(row.credit)
    if credit:
        amount = abs(credit)
        txn_type = TransactionType.CREDIT

    if not amount:
        signed = _optional_amount(row.amount)
        if signed is not None:
            amount = abs(signed)
            txn_type = TransactionType.DEBIT if signed < 0 else TransactionType.CREDIT

    if amount == 0:
        logger.debug("row dropped", reason="zero amount", date=str(txn_date))
        return None

    description = DEFAULT_DESCRIPTION if _is_blank(row.description) else str(row.description).strip()
    reference = None if _is_blank(row.reference) else str(row.reference).strip()

    return NormalizedRow(
        date=txn_date,
        description=description,
        amount=amount,
        type=txn_type,
        raw=row.raw,
        balance=_optional_amount(row.balance),
        reference=reference,
    )


def compute_row_hash(raw: dict[str, Any], statement_id: int) -> str:
    """Fingerprint a raw record within its statement.

    The hash covers the original cell values in column order plus the
    statement ID, so identical lines in different statements hash differently.
    """
    payload = json.dumps(raw, default=str, ensure_ascii=False) + str(statement_id)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _sheet_records(rows: Iterable[Sequence[Any]]) -> tuple[list[str], list[dict[str, Any]]]:
    """Turn spreadsheet rows into (headers, records).

    The first non-blank row is the header row. Columns with an empty header
    are ignored and rows with no values are skipped.
    """
    headers: list[str] = []
    records = []
    for values in rows:
        if not headers:
            if all(_is_blank(v) for v in values):
                continue
            headers = ["" if v is None else str(v).strip() for v in values]
            continue

        record = {}
        for header, value in zip(headers, values):
            if not header:
                continue
            if value is None:
                value = ""
            elif isinstance(value, str):
                value = value.strip()
            record[header] = value
        if all(_is_blank(v) for v in record.values()):
            continue
        records.append(record)

    return [h for h in headers if h], records


def _xls_value(cell: xlrd.sheet.Cell, datemode: int) -> Any:
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate.xldate_as_datetime(cell.value, datemode)
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    return cell.value


class NormalizationEngine:
    """Parses statement files into pending transaction drafts.

    The engine holds no state, so one instance can serve any number of
    statements concurrently.
    """

    def normalize_statement(
        self, file_path: str, statement_id: int, organization_id: int
    ) -> list[BankTransactionDraft]:
        """Normalize a statement file.

        Args:
            file_path: Path to the stored statement file
            statement_id: Parent statement ID
            organization_id: Owning organization

        Returns:
            Pending drafts with zero confidence and no account assignment

        Raises:
            UnsupportedFileTypeError: If the extension is not supported
            ValidationError: If a spreadsheet cannot be opened
        """
        headers, records = self.read_records(file_path)
        if not records:
            return []

        mapping = detect_columns(headers)
        logger.debug("columns detected", statement_id=statement_id, mapping=mapping)

        drafts = []
        for record in records:
            row = normalize_row(extract_row(record, mapping))
            if row is None:
                continue
            drafts.append(
                BankTransactionDraft(
                    organization_id=organization_id,
                    statement_id=statement_id,
                    date=row.date,
                    description=row.description,
                    amount=row.amount,
                    type=row.type,
                    balance=row.balance,
                    reference=row.reference,
                    row_hash=compute_row_hash(row.raw, statement_id),
                )
            )

        logger.info(
            "statement normalized",
            statement_id=statement_id,
            records=len(records),
            transactions=len(drafts),
            dropped=len(records) - len(drafts),
        )
        return drafts

    def read_records(self, file_path: str) -> tuple[list[str], list[dict[str, Any]]]:
        """Dispatch on file extension and return (headers, records)."""
        extension = Path(file_path).suffix.lower()

        if extension in CSV_EXTENSIONS:
            return self._read_csv(file_path)
        if extension in EXCEL_EXTENSIONS:
            return self._read_excel(file_path)
        if extension in PDF_EXTENSIONS:
            return self._read_pdf(file_path)
        raise UnsupportedFileTypeError(unsupported_file_type(extension))

    def _read_csv(self, file_path: str) -> tuple[list[str], list[dict[str, Any]]]:
        with open(file_path, "r", encoding="utf-8-sig", newline="") as f:
            # Try to detect delimiter
            sample = f.read(4096)
            f.seek(0)
            try:
                dialect = csv.Sniffer().sniff(sample, delimiters=",;\t|")
            except csv.Error:
                dialect = csv.excel

            reader = csv.DictReader(f, dialect=dialect)
            if reader.fieldnames is None:
                return [], []
            headers = [name.strip() for name in reader.fieldnames]

            records = []
            for raw in reader:
                record = {}
                for header, value in zip(headers, (raw.get(name) for name in reader.fieldnames)):
                    record[header] = value.strip() if isinstance(value, str) else ""
                if all(not value for value in record.values()):
                    continue
                records.append(record)

        return headers, records

    def _read_excel(self, file_path: str) -> tuple[list[str], list[dict[str, Any]]]:
        if Path(file_path).suffix.lower() == ".xls":
            return self._read_xls(file_path)

        try:
            workbook = load_workbook(file_path, read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError) as e:
            raise ValidationError(f"Could not read spreadsheet '{Path(file_path).name}': {e}") from e

        try:
            if not workbook.worksheets:
                return [], []
            return _sheet_records(workbook.worksheets[0].iter_rows(values_only=True))
        finally:
            workbook.close()

    def _read_xls(self, file_path: str) -> tuple[list[str], list[dict[str, Any]]]:
        # Legacy BIFF workbooks; openpyxl only reads the zip-based formats
        try:
            workbook = xlrd.open_workbook(file_path, on_demand=True)
        except xlrd.XLRDError as e:
            raise ValidationError(f"Could not read spreadsheet '{Path(file_path).name}': {e}") from e

        try:
            if workbook.nsheets == 0:
                return [], []
            sheet = workbook.sheet_by_index(0)
            rows = (
                [_xls_value(cell, workbook.datemode) for cell in sheet.row(index)]
                for index in range(sheet.nrows)
            )
            return _sheet_records(rows)
        finally:
            workbook.release_resources()

    def _read_pdf(self, file_path: str) -> tuple[list[str], list[dict[str, Any]]]:
        # Layouts vary per bank; text is only inspected, no rows are produced.
        with pdfplumber.open(file_path) as pdf:
            text = "\n".join(page.extract_text() or "" for page in pdf.pages)

        candidates = [
            line
            for line in text.splitlines()
            if _PDF_DATE.search(line) and _PDF_MONEY.search(line)
        ]
        logger.warning(
            "pdf statement layout not supported",
            file=Path(file_path).name,
            candidate_lines=len(candidates),
        )
        return [], []
