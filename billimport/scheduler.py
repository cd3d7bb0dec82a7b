from datetime import UTC, date, datetime
import logging
from pathlib import Path

from apscheduler.schedulers.blocking import BlockingScheduler
from sqlalchemy.orm import Session, sessionmaker

from billimport.config import Settings
from billimport.pipeline import ImportJobRunner
from billimport.schemas import JobStatus


logger = logging.getLogger(__name__)


def daily_input_path(settings: Settings, run_date: date) -> Path:
    return Path(settings.input_dir) / f"bills-{run_date.isoformat()}.csv"


def _run_daily_import(settings: Settings, session_factory: sessionmaker[Session]) -> None:
    input_path = daily_input_path(settings, datetime.now(UTC).date())

    runner = ImportJobRunner(settings, session_factory)
    result = runner.run(input_path)
    if result.status == JobStatus.FAILED.value:
        logger.error(
            "scheduled import failed",
            extra={
                "job_execution_id": result.job_execution_id,
                "input_path": result.input_path,
                "error": result.error,
            },
        )
        return
    logger.info(
        "scheduled import completed",
        extra={
            "job_execution_id": result.job_execution_id,
            "write_count": result.write_count,
            "filter_count": result.filter_count,
        },
    )


def start_scheduler(settings: Settings, session_factory: sessionmaker[Session], *, run_now: bool = False) -> None:
    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        _run_daily_import,
        "cron",
        args=[settings, session_factory],
        hour=settings.schedule_hour_utc,
        minute=settings.schedule_minute_utc,
        id="daily_bill_import",
        replace_existing=True,
        # A second trigger must not overlap a run still writing chunks.
        max_instances=1,
    )

    logger.info(
        "scheduler started",
        extra={
            "schedule_hour_utc": settings.schedule_hour_utc,
            "schedule_minute_utc": settings.schedule_minute_utc,
        },
    )

    if run_now:
        _run_daily_import(settings, session_factory)

    scheduler.start()
