import logging

from sqlalchemy.orm import Session, sessionmaker

from billimport.db_models import utc_now
from billimport.job_store import find_running_executions
from billimport.schemas import JobStatus


logger = logging.getLogger(__name__)

RESTART_DESCRIPTION = "System restart detected."


def recover_stuck_jobs(session_factory: sessionmaker[Session], job_name: str) -> list[int]:
    # Metadata repair only; the aborted work is not resumed.
    logger.info("checking for stuck job executions", extra={"job_name": job_name})

    recovered: list[int] = []
    with session_factory() as db:
        for execution in find_running_executions(db, job_name):
            logger.warning(
                "found stuck job execution %s, marking as FAILED",
                execution.id,
                extra={"job_execution_id": execution.id, "previous_status": execution.status},
            )
            now = utc_now()
            execution.status = JobStatus.FAILED.value
            execution.exit_code = JobStatus.FAILED.value
            execution.exit_description = RESTART_DESCRIPTION
            execution.end_time = now
            execution.last_updated = now
            recovered.append(execution.id)
        db.commit()

    return recovered
