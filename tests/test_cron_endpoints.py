from datetime import datetime, timedelta

from conftest import CRON_SECRET
from models import CronJobExecution, CronJobStatus, GuestSession, GuestSessionType

AUTH = {"Authorization": f"Bearer {CRON_SECRET}"}


def test_cron_routes_require_secret(anon_client):
    assert anon_client.get("/api/cron/cleanup-guest-sessions").status_code == 401
    wrong = anon_client.get("/api/cron/cleanup-guest-sessions", headers={"Authorization": "Bearer nope"})
    assert wrong.status_code == 401


def test_non_ascii_secret_is_rejected(anon_client):
    response = anon_client.get("/api/cron/daily-challenge", headers={"X-Secret": "caf\u00e9".encode("utf-8")})

    assert response.status_code == 401


def test_cleanup_runs_and_records_execution(anon_client, test_db):
    test_db.add(GuestSession(
        type=GuestSessionType.RANDOM_QUESTION, expires_at=datetime.utcnow() - timedelta(hours=1)
    ))
    test_db.add(GuestSession(
        type=GuestSessionType.RANDOM_QUESTION, expires_at=datetime.utcnow() + timedelta(hours=1)
    ))
    test_db.commit()

    response = anon_client.get("/api/cron/cleanup-guest-sessions", headers={"X-Secret": CRON_SECRET})

    assert response.status_code == 200
    assert response.json() == {"success": True, "deleted": 1}
    assert test_db.query(GuestSession).count() == 1
    execution = test_db.query(CronJobExecution).one()
    assert execution.job_name == "cleanup-guest-sessions"
    assert execution.status == CronJobStatus.SUCCESS
    assert execution.triggered_by == "scheduled"


def test_skip_logging_header(anon_client, test_db, monkeypatch):
    monkeypatch.setattr("routers.cron.service.run_cron_job", lambda key, db: {"created": 2})

    response = anon_client.get(
        "/api/cron/daily-challenge",
        headers={**AUTH, "X-Skip-Cron-Logging": "true", "X-Triggered-By": "admin-1"},
    )

    assert response.json() == {"success": True, "created": 2}
    assert test_db.query(CronJobExecution).count() == 0


def test_failed_job_returns_500(anon_client, test_db, monkeypatch):
    def explode(key, db):
        raise RuntimeError("j-archive down")

    monkeypatch.setattr("routers.cron.service.run_cron_job", explode)

    response = anon_client.get("/api/cron/fetch-questions", headers={**AUTH, "X-Triggered-By": "manual"})

    assert response.status_code == 500
    assert response.json()["error"] == "Job fetch-questions failed: j-archive down"
    execution = test_db.query(CronJobExecution).one()
    assert (execution.status, execution.triggered_by) == (CronJobStatus.FAILED, "manual")
