from datetime import datetime, timedelta

import pytest

from models import (
    AnswerDispute,
    AnswerOverride,
    CronJobExecution,
    CronJobStatus,
    DisputeMode,
    DisputeStatus,
    Game,
    GameHistory,
    GameQuestion,
    GameStatus,
    GuestConfig,
    IssueCategory,
    IssueReport,
    IssueReportStatus,
    JeopardyRound,
    OverrideSource,
    User,
    UserProgress,
)


@pytest.fixture
def dispute(test_db, current_user, questions):
    created = datetime.utcnow()
    test_db.add(GameHistory(
        user_id=current_user.id,
        question_id=questions["Tokyo"].id,
        correct=False,
        points=0,
        user_answer="Edo",
        timestamp=created - timedelta(seconds=5),
    ))
    row = AnswerDispute(
        user_id=current_user.id,
        question_id=questions["Tokyo"].id,
        mode=DisputeMode.PRACTICE,
        round=JeopardyRound.SINGLE,
        user_answer="Edo",
        created_at=created,
    )
    test_db.add(row)
    test_db.commit()
    return row


def test_admin_routes_reject_regular_users(client):
    response = client.get("/api/admin/disputes")

    assert response.status_code == 403
    assert response.json()["error"] == "Admin access required for this endpoint"


def test_list_disputes_and_stats(admin_client, dispute):
    body = admin_client.get("/api/admin/disputes", params={"status": "PENDING"}).json()

    assert [d["id"] for d in body["disputes"]] == [dispute.id]
    assert body["disputes"][0]["user"]["displayName"] == "QuizWhiz"
    assert body["pagination"] == {"page": 1, "pageSize": 20, "total": 1, "totalPages": 1}
    assert admin_client.get("/api/admin/disputes/stats").json() == {"pendingCount": 1}


def test_approve_dispute_creates_override_and_regrades(admin_client, test_db, current_user, admin_user, dispute):
    response = admin_client.post(f"/api/admin/disputes/{dispute.id}/approve", json={"adminComment": "Old name"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Dispute approved and stats updated"}

    test_db.expire_all()
    resolved = test_db.query(AnswerDispute).filter(AnswerDispute.id == dispute.id).one()
    assert resolved.status == DisputeStatus.APPROVED
    assert resolved.admin_id == admin_user.id
    override = test_db.query(AnswerOverride).filter(AnswerOverride.id == resolved.override_id).one()
    assert (override.text, override.source) == ("edo", OverrideSource.DISPUTE)

    history = test_db.query(GameHistory).filter(GameHistory.user_id == current_user.id).one()
    assert (history.correct, history.points) == (True, 400)
    progress = test_db.query(UserProgress).filter(UserProgress.user_id == current_user.id).one()
    assert (progress.correct, progress.total, progress.points) == (1, 1, 400)

    again = admin_client.post(f"/api/admin/disputes/{dispute.id}/approve", json={})
    assert again.status_code == 400
    assert again.json()["error"] == "Dispute has already been resolved"


def test_approve_game_dispute_credits_score(admin_client, test_db, current_user, questions):
    game = Game(
        user_id=current_user.id,
        seed="dispute-seed",
        config={"mode": "random"},
        status=GameStatus.IN_PROGRESS,
        current_round=JeopardyRound.SINGLE,
        current_score=200,
    )
    test_db.add(game)
    test_db.flush()
    test_db.add(GameQuestion(game_id=game.id, question_id=questions["Tokyo"].id, answered=True, correct=False))
    row = AnswerDispute(
        user_id=current_user.id,
        question_id=questions["Tokyo"].id,
        game_id=game.id,
        mode=DisputeMode.GAME,
        round=JeopardyRound.SINGLE,
        user_answer="Tokio",
    )
    test_db.add(row)
    test_db.commit()

    admin_client.post(f"/api/admin/disputes/{row.id}/approve", json={})

    test_db.expire_all()
    assert test_db.query(Game).filter(Game.id == game.id).one().current_score == 600


def test_reject_dispute(admin_client, test_db, dispute):
    response = admin_client.post(f"/api/admin/disputes/{dispute.id}/reject", json={"adminComment": "No"})

    assert response.json()["message"] == "Dispute rejected"
    test_db.expire_all()
    assert test_db.query(AnswerDispute).filter(AnswerDispute.id == dispute.id).one().status == DisputeStatus.REJECTED
    assert test_db.query(AnswerOverride).count() == 0


def test_unknown_dispute_returns_404(admin_client):
    assert admin_client.post("/api/admin/disputes/missing/reject", json={}).status_code == 404


def test_update_issue_status_and_note(admin_client, test_db, current_user):
    issue = IssueReport(
        user_id=current_user.id,
        subject="Typo",
        message="There is a typo in the Paris clue.",
        category=IssueCategory.CONTENT,
    )
    test_db.add(issue)
    test_db.commit()
    assert admin_client.get("/api/admin/issues/stats").json() == {"openCount": 1}

    resolved = admin_client.patch(
        f"/api/admin/issues/{issue.id}", json={"status": "RESOLVED", "adminNote": "Fixed"}
    ).json()["issue"]
    assert resolved["status"] == "RESOLVED"
    assert resolved["resolvedAt"] is not None
    assert resolved["adminNote"] == "Fixed"
    assert resolved["email"] == "test1@example.com"

    reopened = admin_client.patch(f"/api/admin/issues/{issue.id}", json={"status": "OPEN", "adminNote": ""})
    body = reopened.json()["issue"]
    assert body["resolvedAt"] is None
    assert body["adminNote"] is None
    assert test_db.query(IssueReport).filter(IssueReport.status == IssueReportStatus.OPEN).count() == 1


def test_list_users_search(admin_client):
    body = admin_client.get("/api/admin/users", params={"search": "trivia"}).json()

    assert [u["email"] for u in body["users"]] == ["test2@example.com"]
    assert body["totalCount"] == 1
    assert body["users"][0]["inProgressGames"] == []


def test_delete_user_removes_related_rows(make_client, test_db, current_user, admin_user, questions):
    client = make_client(current_user)
    client.post("/api/games/quick-play")
    client.post(
        "/api/answers/grade",
        json={"questionId": questions["Paris"].id, "mode": "PRACTICE", "round": "SINGLE", "userAnswer": "Paris"},
    )
    user_id = current_user.id

    admin_client = make_client(admin_user)
    response = admin_client.delete(f"/api/admin/users/{user_id}")

    assert response.status_code == 200
    assert response.json()["message"] == "User and all related data deleted successfully"
    assert test_db.query(User).filter(User.id == user_id).first() is None
    assert test_db.query(Game).filter(Game.user_id == user_id).count() == 0
    assert test_db.query(GameHistory).filter(GameHistory.user_id == user_id).count() == 0
    assert admin_client.delete(f"/api/admin/users/{user_id}").status_code == 404


def test_guest_config_update_and_null_rejection(admin_client, test_db):
    response = admin_client.put(
        "/api/admin/guest-config",
        json={"dailyChallengeGuestEnabled": True, "randomGameMaxCategoriesBeforeAuth": None},
    )
    assert response.status_code == 200
    assert response.json()["dailyChallengeGuestEnabled"] is True

    response = admin_client.put("/api/admin/guest-config", json={"timeToAuthenticateMinutes": None})
    assert response.status_code == 400
    assert response.json() == {"error": "timeToAuthenticateMinutes cannot be null", "code": "VALIDATION_ERROR"}
    test_db.expire_all()
    assert test_db.query(GuestConfig).one().time_to_authenticate_minutes == 1440


def test_cron_job_listing(admin_client):
    body = admin_client.get("/api/admin/cron-jobs").json()

    assert {job["key"] for job in body["jobs"]} == {
        "daily-challenge",
        "fetch-questions",
        "fetch-games",
        "cleanup-guest-sessions",
    }
    assert body["executions"] == []
    assert body["timedOutCount"] == 0


def test_trigger_cron_job(admin_client, test_db, admin_user, monkeypatch):
    monkeypatch.setattr("routers.admin.service.run_cron_job", lambda key, db: {"generated": 3})

    response = admin_client.post("/api/admin/cron-jobs/daily-challenge/trigger")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Job daily-challenge triggered successfully",
        "result": {"generated": 3},
    }
    execution = test_db.query(CronJobExecution).one()
    assert execution.status == CronJobStatus.SUCCESS
    assert execution.triggered_by == admin_user.id


def test_trigger_rejects_unknown_and_internal_jobs(admin_client):
    unknown = admin_client.post("/api/admin/cron-jobs/reindex/trigger")
    assert unknown.status_code == 400
    assert unknown.json()["error"] == "Unknown cron job: reindex"

    internal = admin_client.post("/api/admin/cron-jobs/fetch-games/trigger")
    assert internal.status_code == 400
    assert internal.json()["error"] == "Job fetch-games cannot be triggered manually (internal cron only)"


def test_trigger_failure_is_recorded(admin_client, test_db, monkeypatch):
    def explode(key, db):
        raise RuntimeError("scraper offline")

    monkeypatch.setattr("routers.admin.service.run_cron_job", explode)

    response = admin_client.post("/api/admin/cron-jobs/fetch-questions/trigger")

    assert response.status_code == 500
    assert response.json()["error"] == "Job fetch-questions failed: scraper offline"
    execution = test_db.query(CronJobExecution).one()
    assert execution.status == CronJobStatus.FAILED
    assert execution.error == "scraper offline"


class MissingGameScraper:
    def parse_game_by_date(self, date_value):
        return None

    def parse_game_by_id(self, game_id):
        return None

    def get_current_season(self):
        return 41


def test_fetch_game_validation(admin_client):
    assert admin_client.get("/api/admin/fetch-game").json()["error"] == "Either date or gameId must be provided"
    assert admin_client.get("/api/admin/fetch-game", params={"date": "01/02/2024"}).status_code == 400
    future = admin_client.get("/api/admin/fetch-game", params={"date": "2999-01-01"})
    assert future.json()["error"] == "Cannot fetch games from the future"


def test_fetch_game_not_found(admin_client, monkeypatch):
    monkeypatch.setattr("routers.admin.service.JArchiveScraper", MissingGameScraper)

    preview = admin_client.get("/api/admin/fetch-game", params={"gameId": "123"}).json()
    assert preview == {"success": False, "message": "No game found for 123", "game": None, "currentSeason": 41}

    imported = admin_client.post("/api/admin/fetch-game", json={"gameId": "123"})
    assert imported.status_code == 404


def test_approve_backfills_missing_user_answer(admin_client, test_db, current_user, questions):
    created = datetime.utcnow()
    test_db.add(GameHistory(
        user_id=current_user.id,
        question_id=questions["Tokyo"].id,
        correct=False,
        points=0,
        user_answer=None,
        timestamp=created - timedelta(seconds=10),
    ))
    row = AnswerDispute(
        user_id=current_user.id,
        question_id=questions["Tokyo"].id,
        mode=DisputeMode.PRACTICE,
        round=JeopardyRound.SINGLE,
        user_answer="Edo",
        created_at=created,
    )
    test_db.add(row)
    test_db.commit()

    admin_client.post(f"/api/admin/disputes/{row.id}/approve", json={})

    test_db.expire_all()
    history = test_db.query(GameHistory).filter(GameHistory.user_id == current_user.id).one()
    assert (history.correct, history.user_answer) == (True, "Edo")
