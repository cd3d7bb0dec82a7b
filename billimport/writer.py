from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
import logging
import os
from typing import Protocol

from billimport.classify import translate_persist_error
from billimport.schemas import BillRecord, ChunkSummary, FailedRecord, ValidationResult
from billimport.store import to_failed_record
from billimport.tracker import JobExecutionTracker


logger = logging.getLogger(__name__)

MAX_DEFAULT_WORKERS = 8


class BillStore(Protocol):
    def persist_one(self, bill: BillRecord) -> None: ...

    def persist_failed_batch(self, records: list[FailedRecord]) -> None: ...


def default_worker_count() -> int:
    return min(os.cpu_count() or 1, MAX_DEFAULT_WORKERS)


class ChunkWriter:
    # Only a failed dead-letter flush escapes write(); per-record errors become failures.
    def __init__(
        self,
        store: BillStore,
        tracker: JobExecutionTracker,
        *,
        max_workers: int | None = None,
    ) -> None:
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.store = store
        self.tracker = tracker
        self.job_id = tracker.job_execution_id
        self.max_workers = max_workers or default_worker_count()

    def write(self, chunk: Iterable[ValidationResult]) -> ChunkSummary:
        items = list(chunk)
        valid = [item for item in items if item.is_valid]
        failures = [item for item in items if not item.is_valid]

        success_count = 0
        if valid:
            # Outcomes come back per item and are merged after the pool joins.
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(valid))) as pool:
                for outcome in pool.map(self._persist, valid):
                    if outcome is None:
                        success_count += 1
                    else:
                        failures.append(outcome)

        if failures:
            self.store.persist_failed_batch([to_failed_record(item, self.job_id) for item in failures])

        total_written = self.tracker.increment_write_count(success_count)
        total_filtered = self.tracker.increment_filter_count(len(failures))

        logger.info(
            ">>> Job ID: %s | Chunk Success: %s | Chunk Failed: %s | Total Written: %s | Total Filtered: %s",
            self.job_id,
            success_count,
            len(failures),
            total_written,
            total_filtered,
            extra={
                "job_id": self.job_id,
                "chunk_success": success_count,
                "chunk_failed": len(failures),
                "total_written": total_written,
                "total_filtered": total_filtered,
            },
        )
        return ChunkSummary(
            job_id=self.job_id,
            success_count=success_count,
            failure_count=len(failures),
            total_written=total_written,
            total_filtered=total_filtered,
            failures=tuple(failures),
        )

    def _persist(self, result: ValidationResult) -> ValidationResult | None:
        try:
            self.store.persist_one(result.validated_entity)
        except Exception as exc:
            reason = translate_persist_error(exc)
            logger.error(
                "Job %s | Row %s: %s",
                self.job_id,
                result.row_number,
                reason,
                extra={"job_id": self.job_id, "row_number": result.row_number, "reason": reason},
            )
            return result.as_failure(reason)
        return None
