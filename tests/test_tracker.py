from concurrent.futures import ThreadPoolExecutor

import pytest

from billimport.db_models import JobExecution
from billimport.tracker import JobExecutionTracker


def test_increments_are_persisted(tracker, session_factory) -> None:
    tracker.increment_filter_count(2)
    tracker.increment_filter_count(3)
    tracker.increment_write_count(7)

    with session_factory() as db:
        execution = db.get(JobExecution, tracker.job_execution_id)
        assert execution.filter_count == 5
        assert execution.write_count == 7


def test_new_tracker_resumes_from_stored_counts(tracker, session_factory) -> None:
    tracker.increment_filter_count(4)

    reloaded = JobExecutionTracker(session_factory, tracker.job_execution_id)
    assert reloaded.filter_count == 4
    assert reloaded.increment_filter_count(1) == 5


def test_negative_delta_is_rejected(tracker) -> None:
    tracker.increment_filter_count(1)
    with pytest.raises(ValueError):
        tracker.increment_filter_count(-1)
    assert tracker.filter_count == 1


def test_zero_delta_leaves_last_updated_alone(tracker, session_factory) -> None:
    with session_factory() as db:
        before = db.get(JobExecution, tracker.job_execution_id).last_updated

    assert tracker.increment_write_count(0) == 0

    with session_factory() as db:
        assert db.get(JobExecution, tracker.job_execution_id).last_updated == before


def test_concurrent_increments_are_not_lost(tracker, session_factory) -> None:
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda _: tracker.increment_filter_count(1), range(50)))

    assert tracker.filter_count == 50
    with session_factory() as db:
        assert db.get(JobExecution, tracker.job_execution_id).filter_count == 50


def test_unknown_execution_raises(session_factory) -> None:
    with pytest.raises(LookupError):
        JobExecutionTracker(session_factory, 999)


def test_trackers_sharing_an_execution_report_stored_totals(tracker, session_factory) -> None:
    other = JobExecutionTracker(session_factory, tracker.job_execution_id)

    assert tracker.increment_filter_count(1) == 1
    assert other.increment_filter_count(1) == 2
    assert tracker.increment_filter_count(3) == 5
    assert other.filter_count == 2
    assert other.increment_write_count(4) == 4
    assert tracker.increment_write_count(1) == 5
