import json
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from billimport.db_models import ElectricityBill, FailedElectricityBill
from billimport.retry import run_with_retries
from billimport.schemas import BillRecord, FailedRecord, ValidationResult


def is_transient(exc: Exception) -> bool:
    # Lock timeouts and dropped connections; constraint violations never recover on retry.
    return isinstance(exc, OperationalError)


def to_failed_record(result: ValidationResult, job_id: int) -> FailedRecord:
    return FailedRecord(
        job_id=job_id,
        row_number=result.row_number,
        raw_payload=json.dumps(dict(result.raw_data.data), sort_keys=True, default=str),
        error_message=result.error_message or "",
    )


class RecordStore:
    # A session per call, so one store is shared by every writer thread.
    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        max_retries: int = 2,
        backoff_seconds: float = 0.1,
    ) -> None:
        self.session_factory = session_factory
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds

    def persist_one(self, bill: BillRecord) -> None:
        # IntegrityError keeps the driver message on exc.orig for classification.
        self._with_retries(lambda: self._insert([_bill_row(bill)]))

    def persist_failed_batch(self, records: Sequence[FailedRecord]) -> None:
        self._with_retries(lambda: self._insert([_failed_row(record) for record in records]))

    def count_bills(self) -> int:
        with self.session_factory() as db:
            return db.execute(select(func.count()).select_from(ElectricityBill)).scalar_one()

    def failed_records_for_job(self, job_id: int) -> list[FailedRecord]:
        stmt = (
            select(FailedElectricityBill)
            .where(FailedElectricityBill.job_execution_id == job_id)
            .order_by(FailedElectricityBill.row_number)
        )
        with self.session_factory() as db:
            return [
                FailedRecord(
                    job_id=row.job_execution_id,
                    row_number=row.row_number,
                    raw_payload=row.raw_data,
                    error_message=row.error_message,
                )
                for row in db.execute(stmt).scalars()
            ]

    def _insert(self, rows: list[object]) -> None:
        with self.session_factory() as db:
            db.add_all(rows)
            try:
                db.commit()
            except Exception:
                db.rollback()
                raise

    def _with_retries(self, fn) -> None:
        run_with_retries(
            fn,
            max_retries=self.max_retries,
            backoff_seconds=self.backoff_seconds,
            should_retry=is_transient,
        )


def _bill_row(bill: BillRecord) -> ElectricityBill:
    return ElectricityBill(
        consumer_no=bill.consumer_no,
        area=bill.area,
        consumer_name=bill.consumer_name,
        billing_month=bill.billing_month,
        units_consumed=bill.units_consumed,
        amount_due=bill.amount_due,
    )


def _failed_row(record: FailedRecord) -> FailedElectricityBill:
    return FailedElectricityBill(
        job_execution_id=record.job_id,
        row_number=record.row_number,
        raw_data=record.raw_payload,
        error_message=record.error_message,
    )
