from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

from billimport.config import Settings
from billimport.database import build_session_factory
from billimport.job_store import create_job_execution
from billimport.pipeline import ImportJobRunner
from billimport.store import RecordStore
from billimport.tracker import JobExecutionTracker


@pytest.fixture()
def temp_workspace(tmp_path: Path) -> Path:
    (tmp_path / "data" / "input").mkdir(parents=True, exist_ok=True)
    return tmp_path


@pytest.fixture()
def test_settings(temp_workspace: Path) -> Settings:
    return Settings(
        app_name="billimport",
        database_url=f"sqlite:///{temp_workspace / 'test.db'}",
        log_level="INFO",
        input_dir=str(temp_workspace / "data" / "input"),
        job_name="importElectricityBillJob",
        chunk_size=3,
        writer_max_workers=4,
        max_persist_retries=1,
        retry_backoff_seconds=0,
        schedule_hour_utc=2,
        schedule_minute_utc=0,
    )


@pytest.fixture()
def session_factory(test_settings: Settings) -> sessionmaker[Session]:
    return build_session_factory(test_settings.database_url)


@pytest.fixture()
def store(session_factory: sessionmaker[Session]) -> RecordStore:
    return RecordStore(session_factory, max_retries=1, backoff_seconds=0)


@pytest.fixture()
def runner(test_settings: Settings, session_factory: sessionmaker[Session]) -> ImportJobRunner:
    return ImportJobRunner(test_settings, session_factory)


@pytest.fixture()
def tracker(session_factory: sessionmaker[Session], test_settings: Settings) -> JobExecutionTracker:
    with session_factory() as db:
        execution = create_job_execution(db, job_name=test_settings.job_name)
    return JobExecutionTracker(session_factory, execution.id)
