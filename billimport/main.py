import argparse
import logging
from pathlib import Path

from billimport.config import get_settings
from billimport.database import build_session_factory
from billimport.maintenance import recover_stuck_jobs
from billimport.pipeline import ImportJobRunner
from billimport.scheduler import start_scheduler
from billimport.schemas import JobStatus


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import electricity bills in chunks")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="import one bill file")
    run_parser.add_argument("--input", required=True, help="Path to the bill CSV file")

    subparsers.add_parser("recover", help="only fail job executions left running by a previous process")

    schedule_parser = subparsers.add_parser("schedule", help="start daily scheduler")
    schedule_parser.add_argument("--run-now", action="store_true", help="also run once immediately")

    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    session_factory = build_session_factory(settings.database_url)
    # Must run before any new execution is created.
    recovered = recover_stuck_jobs(session_factory, settings.job_name)
    if args.command == "recover":
        print(f"job_name={settings.job_name} recovered={len(recovered)}")
        return

    if args.command == "schedule":
        start_scheduler(settings, session_factory, run_now=args.run_now)
        return

    runner = ImportJobRunner(settings, session_factory)
    result = runner.run(Path(args.input))

    print(
        "job_execution_id={job_id} job_name={job_name} status={status} read={read} written={written} filtered={filtered}".format(
            job_id=result.job_execution_id,
            job_name=result.job_name,
            status=result.status,
            read=result.read_count,
            written=result.write_count,
            filtered=result.filter_count,
        )
    )
    if result.status == JobStatus.FAILED.value:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
