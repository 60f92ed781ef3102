from datetime import datetime, timedelta

from models import GameHistory, UserProgress


def test_me_requires_authentication(anon_client):
    response = anon_client.get("/api/user/me")

    assert response.status_code == 401
    assert response.json() == {"error": "Authorization token missing.", "code": "UNAUTHORIZED"}


def test_me_returns_profile(client, current_user):
    response = client.get("/api/user/me")

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["id"] == current_user.id
    assert user["displayName"] == "QuizWhiz"
    assert user["role"] == "USER"


def test_update_display_name_normalizes_whitespace(client, test_db, current_user):
    response = client.patch("/api/user/display-name", json={"displayName": "  Trivia   Fan  "})

    assert response.status_code == 200
    assert response.json()["displayName"] == "Trivia Fan"
    test_db.refresh(current_user)
    assert current_user.display_name == "Trivia Fan"


def test_reserved_display_name_is_rejected(client):
    response = client.post("/api/user/display-name", json={"displayName": "Admin"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "This display name is reserved and cannot be used"
    assert body["reason"] == "reserved"


def test_spoiler_settings_roundtrip(client):
    response = client.post(
        "/api/user/spoiler-settings",
        json={"spoilerBlockEnabled": True, "spoilerBlockDate": "2024-03-01"},
    )

    assert response.status_code == 200
    assert response.json()["spoilerBlockEnabled"] is True
    assert response.json()["spoilerBlockDate"] == "2024-03-01"

    cleared = client.post("/api/user/spoiler-settings", json={"spoilerBlockDate": None})
    assert cleared.json()["spoilerBlockDate"] is None
    assert cleared.json()["spoilerBlockEnabled"] is True


def test_activity_requires_path(client):
    response = client.post("/api/user/activity", json={})

    assert response.status_code == 400
    assert response.json()["error"] == "path is required and must be a string"


def test_activity_is_throttled(client, test_db, current_user):
    current_user.last_online_at = datetime.utcnow() - timedelta(seconds=5)
    test_db.commit()

    response = client.post("/api/user/activity", json={"path": "/play"})

    assert response.json() == {"success": True, "skipped": True}


def test_activity_records_path(client, test_db, current_user):
    current_user.last_online_at = datetime.utcnow() - timedelta(minutes=5)
    test_db.commit()

    response = client.post("/api/user/activity", json={"path": "/practice"})

    assert response.json() == {"success": True}
    test_db.refresh(current_user)
    assert current_user.last_seen_path == "/practice"


def test_reset_deletes_history_and_progress(client, test_db, current_user, questions):
    paris = questions["Paris"]
    test_db.add(GameHistory(user_id=current_user.id, question_id=paris.id, correct=True, points=200))
    test_db.add(UserProgress(
        user_id=current_user.id, category_id=paris.category_id, question_id=paris.id, correct=1, total=1, points=200,
    ))
    test_db.commit()

    response = client.post("/api/user/reset")

    assert response.json() == {"success": True}
    assert test_db.query(GameHistory).filter(GameHistory.user_id == current_user.id).count() == 0
    assert test_db.query(UserProgress).filter(UserProgress.user_id == current_user.id).count() == 0
