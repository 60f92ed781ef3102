from datetime import datetime, timedelta

import pytest

from core.cron_logger import cleanup_timed_out_jobs, create_cron_execution, with_cron_logging
from models import CronJobExecution, CronJobStatus


def test_with_cron_logging_records_success(test_db):
    result = with_cron_logging("daily-challenge", "scheduled", lambda: {"when": datetime(2024, 1, 2)}, db=test_db)

    assert result == {"when": datetime(2024, 1, 2)}
    execution = test_db.query(CronJobExecution).one()
    assert execution.status == CronJobStatus.SUCCESS
    assert execution.result == {"success": True, "data": {"when": "2024-01-02T00:00:00"}}
    assert execution.completed_at is not None
    assert execution.duration_ms >= 0


def test_with_cron_logging_records_failure_and_reraises(test_db):
    def broken():
        raise ValueError("no final clue")

    with pytest.raises(ValueError):
        with_cron_logging("daily-challenge", "admin-1", broken, db=test_db)

    execution = test_db.query(CronJobExecution).one()
    assert execution.status == CronJobStatus.FAILED
    assert execution.error == "no final clue"
    assert execution.triggered_by == "admin-1"


def test_cleanup_marks_stale_running_jobs(test_db):
    stale_id = create_cron_execution(test_db, "fetch-questions")
    fresh_id = create_cron_execution(test_db, "fetch-questions")
    stale = test_db.query(CronJobExecution).filter(CronJobExecution.id == stale_id).one()
    stale.started_at = datetime.utcnow() - timedelta(minutes=30)
    test_db.commit()

    assert cleanup_timed_out_jobs(test_db) == 1

    test_db.expire_all()
    assert test_db.query(CronJobExecution).filter(CronJobExecution.id == stale_id).one().error == "Job timed out"
    fresh = test_db.query(CronJobExecution).filter(CronJobExecution.id == fresh_id).one()
    assert fresh.status == CronJobStatus.RUNNING
