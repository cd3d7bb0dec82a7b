import logging
from pathlib import Path

from sqlalchemy.orm import Session, sessionmaker

from billimport.config import Settings
from billimport.db_models import JobExecution
from billimport.job_store import create_job_execution, mark_job_completed, mark_job_failed, set_read_count
from billimport.schemas import ImportResult
from billimport.step_logic import chunked, ingest_rows, validate_rows
from billimport.store import RecordStore
from billimport.tracker import JobExecutionTracker
from billimport.writer import ChunkWriter


logger = logging.getLogger(__name__)


class ImportJobRunner:
    def __init__(self, settings: Settings, session_factory: sessionmaker[Session]) -> None:
        self.settings = settings
        self.session_factory = session_factory
        self.store = RecordStore(
            session_factory,
            max_retries=settings.max_persist_retries,
            backoff_seconds=settings.retry_backoff_seconds,
        )

    def run(self, input_path: Path) -> ImportResult:
        with self.session_factory() as db:
            execution = create_job_execution(db, job_name=self.settings.job_name)
            logger.info(
                "import job started",
                extra={"job_execution_id": execution.id, "input_path": str(input_path)},
            )

            try:
                results = validate_rows(ingest_rows(input_path))
                set_read_count(db, execution, len(results))

                writer = ChunkWriter(
                    self.store,
                    JobExecutionTracker(self.session_factory, execution.id),
                    max_workers=self.settings.writer_max_workers or None,
                )
                # Chunks go out one at a time; only records inside a chunk run in parallel.
                for chunk in chunked(results, self.settings.chunk_size):
                    writer.write(chunk)

                mark_job_completed(db, execution)
            except Exception as exc:
                db.rollback()
                mark_job_failed(db, execution, exit_description=str(exc))
                logger.exception("import job failed", extra={"job_execution_id": execution.id})

            return self._result_from_execution(execution, input_path)

    def _result_from_execution(self, execution: JobExecution, input_path: Path) -> ImportResult:
        return ImportResult(
            job_execution_id=execution.id,
            job_name=execution.job_name,
            input_path=str(input_path),
            status=execution.status,
            read_count=execution.read_count,
            write_count=execution.write_count,
            filter_count=execution.filter_count,
            error=execution.exit_description,
        )
