from datetime import date, timedelta

import pytest

from models import DailyChallenge, GuestConfig, GuestSession, UserDailyChallenge
from routers.daily_challenge.service import compute_streaks
from utils.daily_challenge_dates import get_active_challenge_date


@pytest.fixture
def challenge(test_db, questions):
    row = DailyChallenge(
        date=get_active_challenge_date(),
        question_id=questions["Mars"].id,
        air_date=questions["Mars"].air_date,
        episode_game_id="6501",
    )
    test_db.add(row)
    test_db.commit()
    return row


@pytest.fixture
def archived_challenge(test_db, questions):
    row = DailyChallenge(
        date=get_active_challenge_date() - timedelta(days=2),
        question_id=questions["Rome"].id,
        air_date=questions["Rome"].air_date,
        episode_game_id="6500",
    )
    test_db.add(row)
    test_db.commit()
    return row


def test_get_daily_challenge(anon_client, challenge):
    response = anon_client.get("/api/daily-challenge")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == challenge.id
    assert body["question"]["category"] == "SCIENCE"
    assert body["userAnswer"] is None
    assert body["guestConfig"] == {"guestEnabled": False, "guestAppearsOnLeaderboard": False}


def test_submit_answer_records_completion_once(client, test_db, current_user, challenge):
    response = client.post("/api/daily-challenge", json={"answer": "What is Mars?"})

    assert response.status_code == 200
    body = response.json()
    assert (body["correct"], body["answer"]) == (True, "Mars")
    assert "FIRST_DAILY_CHALLENGE" in [a["code"] for a in body["newlyUnlockedAchievements"]]

    again = client.post("/api/daily-challenge", json={"answer": "Venus"})
    assert again.json() == {"correct": True, "alreadyAnswered": True}
    assert test_db.query(UserDailyChallenge).filter(UserDailyChallenge.user_id == current_user.id).count() == 1


def test_guest_submit_requires_auth_when_disabled(anon_client, challenge):
    response = anon_client.post("/api/daily-challenge", json={"answer": "Mars"})

    assert response.status_code == 401
    assert response.json()["requiresAuth"] is True


def test_guest_submit_creates_session_when_enabled(anon_client, test_db, challenge):
    config = test_db.query(GuestConfig).filter(GuestConfig.id == "default").one()
    config.daily_challenge_guest_enabled = True
    test_db.commit()

    response = anon_client.post("/api/daily-challenge", json={"answer": "Jupiter"})

    assert response.status_code == 200
    body = response.json()
    assert body["correct"] is False
    assert body["requiresAuth"] is True
    session = test_db.query(GuestSession).filter(GuestSession.id == body["guestSessionId"]).one()
    assert session.data["challengeId"] == challenge.id


def test_leaderboard_ranks_completions(client, make_client, other_user, challenge):
    client.post("/api/daily-challenge", json={"answer": "Mars"})
    make_client(other_user).post("/api/daily-challenge", json={"answer": "Venus"})

    response = make_client().get("/api/daily-challenge/leaderboard")

    body = response.json()
    assert body["totalAttempted"] == 2
    assert body["totalCorrect"] == 1
    assert [(row["rank"], row["displayName"]) for row in body["leaderboard"]] == [(1, "QuizWhiz"), (2, "TriviaBuff")]


def test_leaderboard_rejects_bad_date(anon_client):
    response = anon_client.get("/api/daily-challenge/leaderboard", params={"date": "yesterday"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid date format"


def test_archive_answer_and_stats(client, challenge, archived_challenge):
    archive = client.get("/api/daily-challenge/archive").json()
    assert {c["id"] for c in archive["challenges"]} == {challenge.id, archived_challenge.id}

    response = client.post(
        "/api/daily-challenge/archive/submit", json={"challengeId": archived_challenge.id, "answer": "Rome"}
    )
    assert response.json()["correct"] is True
    client.post("/api/daily-challenge", json={"answer": "Mars"})

    stats = client.get("/api/daily-challenge/stats").json()
    assert stats["totalCompleted"] == 2
    assert stats["accuracy"] == 100
    assert stats["participationStreak"]["longest"] == 1


def test_archive_rejects_old_challenges(client, test_db, questions):
    old = DailyChallenge(date=date(2020, 1, 1), question_id=questions["water"].id)
    test_db.add(old)
    test_db.commit()

    response = client.post("/api/daily-challenge/archive/submit", json={"challengeId": old.id, "answer": "water"})

    assert response.status_code == 400
    assert response.json()["error"] == "Challenge is outside the 7-day archive window"


def test_compute_streaks():
    day = date(2024, 3, 1)
    entries = [
        (day, True),
        (day + timedelta(days=1), True),
        (day + timedelta(days=2), False),
        (day + timedelta(days=3), True),
        (day + timedelta(days=5), True),
    ]

    participation, correctness = compute_streaks(entries)

    assert participation == {"current": 1, "longest": 4}
    assert correctness == {"current": 1, "longest": 2}
