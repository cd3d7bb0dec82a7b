from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from billimport.db_models import JobExecution, utc_now
from billimport.schemas import RUNNING_STATUSES, JobStatus


def create_job_execution(db: Session, *, job_name: str) -> JobExecution:
    now = utc_now()
    execution = JobExecution(
        job_name=job_name,
        status=JobStatus.STARTED.value,
        exit_code="EXECUTING",
        start_time=now,
        last_updated=now,
    )
    db.add(execution)
    db.commit()
    db.refresh(execution)
    return execution


def find_running_executions(db: Session, job_name: str) -> Sequence[JobExecution]:
    stmt = (
        select(JobExecution)
        .where(
            JobExecution.job_name == job_name,
            JobExecution.status.in_([status.value for status in RUNNING_STATUSES]),
        )
        .order_by(JobExecution.id)
    )
    return db.execute(stmt).scalars().all()


def set_read_count(db: Session, execution: JobExecution, read_count: int) -> None:
    execution.read_count = read_count
    execution.last_updated = utc_now()
    db.commit()


def mark_job_completed(db: Session, execution: JobExecution) -> None:
    _finish(db, execution, JobStatus.COMPLETED, exit_description=None)


def mark_job_failed(db: Session, execution: JobExecution, *, exit_description: str) -> None:
    _finish(db, execution, JobStatus.FAILED, exit_description=exit_description)


def _finish(db: Session, execution: JobExecution, status: JobStatus, *, exit_description: str | None) -> None:
    # Counters are owned by the tracker and may have moved since this instance was loaded.
    db.refresh(execution)
    finished_at = utc_now()
    execution.status = status.value
    execution.exit_code = status.value
    execution.exit_description = exit_description
    execution.end_time = finished_at
    execution.last_updated = finished_at
    db.commit()
