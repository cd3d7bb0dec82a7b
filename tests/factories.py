import threading

from billimport.schemas import BillRecord, FailedRecord, RawBillRow, ValidationResult


def make_bill(consumer_no: str, area: str = "NORTH", **overrides) -> BillRecord:
    fields = {
        "consumer_no": consumer_no,
        "area": area,
        "consumer_name": f"Consumer {consumer_no}",
        "billing_month": "2026-09",
        "units_consumed": 120,
        "amount_due": 845.5,
    }
    fields.update(overrides)
    return BillRecord(**fields)


def valid_result(row_number: int, bill: BillRecord) -> ValidationResult:
    raw = RawBillRow(row_number=row_number, data={"consumer_no": bill.consumer_no, "area": bill.area})
    return ValidationResult.valid(raw, bill)


def invalid_result(row_number: int, message: str) -> ValidationResult:
    return ValidationResult.invalid(RawBillRow(row_number=row_number, data={"consumer_no": ""}), message)


class FakeStore:
    # failures maps consumer_no to the exception raised for it.

    def __init__(self, failures: dict[str, Exception] | None = None, batch_error: Exception | None = None) -> None:
        self.failures = failures or {}
        self.batch_error = batch_error
        self.persisted: list[BillRecord] = []
        self.batches: list[list[FailedRecord]] = []
        self.threads: set[str] = set()
        self._lock = threading.Lock()

    def persist_one(self, bill: BillRecord) -> None:
        with self._lock:
            self.threads.add(threading.current_thread().name)
        error = self.failures.get(bill.consumer_no)
        if error is not None:
            raise error
        with self._lock:
            self.persisted.append(bill)

    def persist_failed_batch(self, records: list[FailedRecord]) -> None:
        if self.batch_error is not None:
            raise self.batch_error
        with self._lock:
            self.batches.append(list(records))
