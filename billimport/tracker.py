import threading

from sqlalchemy import update
from sqlalchemy.orm import InstrumentedAttribute, Session, sessionmaker

from billimport.db_models import JobExecution, utc_now


class JobExecutionTracker:
    def __init__(self, session_factory: sessionmaker[Session], job_execution_id: int) -> None:
        self.session_factory = session_factory
        self.job_execution_id = job_execution_id
        self._lock = threading.Lock()

        with session_factory() as db:
            execution = db.get(JobExecution, job_execution_id)
            if execution is None:
                raise LookupError(f"job execution {job_execution_id} not found")
            self._write_count = execution.write_count
            self._filter_count = execution.filter_count

    @property
    def write_count(self) -> int:
        with self._lock:
            return self._write_count

    @property
    def filter_count(self) -> int:
        with self._lock:
            return self._filter_count

    def increment_write_count(self, delta: int) -> int:
        with self._lock:
            total = self._add(JobExecution.write_count, delta)
            if total is not None:
                self._write_count = total
            return self._write_count

    def increment_filter_count(self, delta: int) -> int:
        with self._lock:
            total = self._add(JobExecution.filter_count, delta)
            if total is not None:
                self._filter_count = total
            return self._filter_count

    def _add(self, column: InstrumentedAttribute[int], delta: int) -> int | None:
        if delta < 0:
            raise ValueError(f"counter delta must be non-negative, got {delta}")
        if delta == 0:
            return None

        # Other trackers may share the execution; the stored total is the one to report.
        stmt = (
            update(JobExecution)
            .where(JobExecution.id == self.job_execution_id)
            .values({column: column + delta, JobExecution.last_updated: utc_now()})
            .returning(column)
        )
        with self.session_factory() as db:
            total = db.execute(stmt).scalar_one()
            db.commit()
        return total
