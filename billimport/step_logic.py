import csv
from collections.abc import Iterator, Sequence
from datetime import datetime
import math
from pathlib import Path

from billimport.schemas import BillRecord, Chunk, RawBillRow, ValidationResult


def ingest_rows(input_path: Path) -> list[RawBillRow]:
    if not input_path.exists():
        raise FileNotFoundError(f"input file not found: {input_path}")

    rows: list[RawBillRow] = []
    with input_path.open("r", encoding="utf-8", newline="") as infile:
        reader = csv.DictReader(infile)
        for row_number, record in enumerate(reader, start=1):
            data = {
                str(key).strip(): (value.strip() if isinstance(value, str) else value)
                for key, value in record.items()
                if key is not None
            }
            rows.append(RawBillRow(row_number=row_number, data=data))
    return rows


def _is_billing_month(value: str) -> bool:
    try:
        datetime.strptime(value, "%Y-%m")
    except ValueError:
        return False
    return len(value) == 7


def validate_row(row: RawBillRow) -> ValidationResult:
    data = row.data
    consumer_no = str(data.get("consumer_no") or "").strip()
    area = str(data.get("area") or "").strip()
    billing_month = str(data.get("billing_month") or "").strip()

    if not consumer_no:
        return ValidationResult.invalid(row, "consumer_no is required")
    if not area:
        return ValidationResult.invalid(row, "area is required")
    if not _is_billing_month(billing_month):
        return ValidationResult.invalid(row, "billing_month must be YYYY-MM")

    try:
        units_consumed = int(data.get("units_consumed"))
    except (TypeError, ValueError):
        return ValidationResult.invalid(row, "units_consumed must be a non-negative integer")
    if units_consumed < 0:
        return ValidationResult.invalid(row, "units_consumed must be a non-negative integer")

    try:
        amount_due = float(data.get("amount_due"))
    except (TypeError, ValueError):
        return ValidationResult.invalid(row, "amount_due must be a non-negative number")
    if not math.isfinite(amount_due) or amount_due < 0:
        return ValidationResult.invalid(row, "amount_due must be a non-negative number")

    return ValidationResult.valid(
        row,
        BillRecord(
            consumer_no=consumer_no,
            area=area.upper(),
            consumer_name=str(data.get("consumer_name") or "").strip(),
            billing_month=billing_month,
            units_consumed=units_consumed,
            amount_due=round(amount_due, 2),
        ),
    )


def validate_rows(rows: Sequence[RawBillRow]) -> list[ValidationResult]:
    return [validate_row(row) for row in rows]


def chunked(results: Sequence[ValidationResult], size: int) -> Iterator[Chunk]:
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(results), size):
        yield Chunk(results[start:start + size])
