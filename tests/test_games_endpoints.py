from datetime import date, timedelta

import pytest

from models import (
    AnswerDispute, Category, DisputeMode, DisputeStatus, Game, GameHistory, GameStatus, GuestGameQuestion,
    JeopardyRound, Question,
)


def _create(client, **payload):
    response = client.post("/api/games", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_quick_play_creates_random_game(client, test_db, current_user):
    response = client.post("/api/games/quick-play")

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "IN_PROGRESS"
    assert body["currentRound"] == "SINGLE"
    assert body["config"]["mode"] == "random"
    assert body["config"]["spoilerProtection"]["enabled"] is False

    game = test_db.query(Game).filter(Game.id == body["id"]).one()
    assert game.user_id == current_user.id


def test_create_game_validates_mode_inputs(client):
    response = client.post("/api/games", json={"mode": "knowledge"})
    assert response.status_code == 400
    assert response.json()["error"] == "Knowledge mode requires at least one category"

    response = client.post("/api/games", json={"mode": "date"})
    assert response.status_code == 400

    response = client.post("/api/games", json={"rounds": {"single": False, "double": False}})
    assert response.status_code == 400


def test_double_only_game_starts_in_double(client):
    body = _create(client, rounds={"single": False, "double": True, "final": False})

    assert body["currentRound"] == "DOUBLE"


def test_answer_action_updates_score_and_history(client, test_db, current_user, questions):
    game = _create(client)

    response = client.patch(
        f"/api/games/{game['id']}/state",
        json={"action": "answer", "questionId": questions["Paris"].id, "correct": True, "pointsEarned": 200},
    )

    assert response.status_code == 200
    assert response.json()["currentScore"] == 200
    history = test_db.query(GameHistory).filter(GameHistory.user_id == current_user.id).all()
    assert [(h.question_id, h.correct, h.points) for h in history] == [(questions["Paris"].id, True, 200)]


def test_unknown_action_is_rejected(client):
    game = _create(client)

    response = client.patch(f"/api/games/{game['id']}/state", json={"action": "teleport"})

    assert response.status_code == 400
    assert response.json()["error"].startswith("Unknown action: teleport")


def test_completed_game_rejects_state_updates(client, test_db):
    game = _create(client)
    complete = client.patch(f"/api/games/{game['id']}/state", json={"action": "complete", "finalScore": 1200})
    assert complete.status_code == 200
    assert test_db.query(Game).filter(Game.id == game["id"]).one().status == GameStatus.COMPLETED

    response = client.patch(
        f"/api/games/{game['id']}/state", json={"action": "advance_round", "newRound": "DOUBLE"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot update a completed or abandoned game"

    completed = client.get("/api/games/completed").json()["games"]
    assert [g["id"] for g in completed] == [game["id"]]


def test_private_game_is_hidden_from_other_users(client, make_client, other_user):
    game = _create(client)

    other = make_client(other_user)
    assert other.get(f"/api/games/{game['id']}").status_code == 403
    assert other.patch(f"/api/games/{game['id']}", json={"currentScore": 5}).status_code == 403


def test_abandon_removes_game_from_resumable(client):
    game = _create(client)
    assert [g["id"] for g in client.get("/api/games/resumable").json()["games"]] == [game["id"]]

    response = client.delete(f"/api/games/{game['id']}")

    assert response.status_code == 200
    assert client.get("/api/games/resumable").json()["games"] == []


def test_seed_preview_and_clone(client, make_client, other_user):
    game = _create(client, mode="knowledge", categories=["SCIENCE_AND_NATURE"])

    preview = make_client().get(f"/api/games/by-seed/{game['seed']}")
    assert preview.status_code == 200
    assert preview.json()["createdBy"] == "QuizWhiz"

    cloned = make_client(other_user).post(f"/api/games/by-seed/{game['seed']}")
    assert cloned.status_code == 201
    body = cloned.json()
    assert body["seed"] != game["seed"]
    assert body["config"]["originalSeed"] == game["seed"]
    assert body["config"]["categories"] == ["SCIENCE_AND_NATURE"]


def test_unknown_seed_returns_404(anon_client):
    response = anon_client.get("/api/games/by-seed/nope")

    assert response.status_code == 404
    assert response.json()["error"] == "No game found with this seed"


def test_guest_game_allows_one_answer_then_requires_auth(anon_client, test_db, questions):
    created = anon_client.post("/api/games/guest-quick-play")
    assert created.status_code == 201
    guest_game_id = created.json()["guestGameId"]

    first = anon_client.post(
        f"/api/games/guest/{guest_game_id}/answer",
        json={"questionId": questions["Paris"].id, "answer": "What is Paris?"},
    )
    assert first.status_code == 200
    assert first.json()["correct"] is True
    assert first.json()["currentScore"] == 200
    assert first.json()["limitReached"] is True

    second = anon_client.post(
        f"/api/games/guest/{guest_game_id}/answer",
        json={"questionId": questions["Tokyo"].id, "answer": "Osaka"},
    )
    assert second.status_code == 403
    assert second.json()["requiresAuth"] is True
    assert test_db.query(GuestGameQuestion).count() == 1


def test_guest_game_repeat_answer_is_idempotent(anon_client, questions):
    guest_game_id = anon_client.post("/api/games/guest-quick-play").json()["guestGameId"]
    url = f"/api/games/guest/{guest_game_id}/answer"
    anon_client.post(url, json={"questionId": questions["Paris"].id, "answer": "Paris"})

    response = anon_client.post(url, json={"questionId": questions["Paris"].id, "answer": "London"})

    assert response.status_code == 200
    assert response.json() == {"correct": True, "alreadyAnswered": True, "currentScore": 200}


@pytest.fixture
def older_final(test_db):
    capitals = test_db.query(Category).filter(Category.name == "WORLD CAPITALS").one()
    question = Question(
        question="This planned city became Australia's capital in 1913",
        answer="Canberra",
        category_id=capitals.id,
        knowledge_category=capitals.knowledge_category,
        round=JeopardyRound.FINAL,
        air_date=date(2019, 5, 1),
    )
    test_db.add(question)
    test_db.commit()
    return question


def _block_from(test_db, user, cutoff):
    user.spoiler_block_enabled = True
    user.spoiler_block_date = cutoff
    test_db.commit()


def test_final_clue_for_anonymous_player(anon_client):
    response = anon_client.get("/api/game/final")

    assert response.status_code == 200
    body = response.json()
    assert body["answer"] == "Mars"
    assert body["category"]["name"] == "SCIENCE"
    assert set(body) == {"id", "question", "answer", "category"}


def test_final_clue_respects_spoiler_cutoff(client, test_db, current_user, older_final):
    _block_from(test_db, current_user, date(2020, 1, 1))

    response = client.get("/api/game/final")

    assert response.json()["answer"] == "Canberra"


def test_final_clue_none_left_mentions_cutoff(client, test_db, current_user, questions, older_final):
    _block_from(test_db, current_user, date(2020, 1, 1))

    response = client.get(
        "/api/game/final",
        params={"finalCategoryMode": "specificCategory", "finalCategoryId": questions["Mars"].category_id},
    )

    assert response.status_code == 404
    assert "blocks questions from January 1, 2020 and later" in response.json()["error"]


def test_final_clue_by_episode_date_ignores_cutoff(client, test_db, current_user, older_final):
    _block_from(test_db, current_user, date(2020, 1, 1))

    response = client.get("/api/game/final", params={"mode": "date", "date": "2020-01-07"})

    assert response.json()["answer"] == "Mars"


def test_resuming_blocked_final_clue_is_rejected(client, test_db, current_user, questions):
    _block_from(test_db, current_user, date(2020, 1, 1))

    response = client.get("/api/game/final", params={"questionId": questions["Mars"].id})

    assert response.status_code == 400
    assert "(blocking January 1, 2020 and later)" in response.json()["error"]
    missing = client.get("/api/game/final", params={"questionId": "nope"})
    assert missing.status_code == 404
    assert missing.json()["error"] == "Final Jeopardy question not found"


def test_seeded_game_always_gets_same_final(client, older_final):
    game = _create(client, rounds={"single": True, "double": True, "final": True})

    picks = {client.get("/api/game/final", params={"gameId": game["id"]}).json()["id"] for _ in range(3)}

    assert len(picks) == 1


def test_available_dates_newest_first(anon_client, older_final):
    response = anon_client.get("/api/game/available-dates")

    assert response.json() == {"dates": ["2020-01-07", "2020-01-06", "2019-05-01"]}


def test_approved_disputes_since_game_start(client, test_db, current_user, questions):
    game = _create(client)
    started = test_db.query(Game).filter(Game.id == game["id"]).one().created_at
    for answer, status, resolved in [
        ("Rome", DisputeStatus.APPROVED, started + timedelta(seconds=30)),
        ("Tokyo", DisputeStatus.REJECTED, started + timedelta(seconds=40)),
        ("Mars", DisputeStatus.APPROVED, started - timedelta(days=1)),
    ]:
        question = questions[answer]
        test_db.add(AnswerDispute(
            user_id=current_user.id,
            question_id=question.id,
            game_id=game["id"],
            mode=DisputeMode.GAME,
            round=question.round,
            user_answer="guess",
            status=status,
            resolved_at=resolved,
        ))
    test_db.commit()

    response = client.get(f"/api/games/{game['id']}/approved-disputes")

    assert response.status_code == 200
    disputes = response.json()["approvedDisputes"]
    assert [(d["questionId"], d["points"]) for d in disputes] == [(questions["Rome"].id, 800)]


def test_approved_disputes_only_for_owner(make_client, current_user, other_user):
    game = _create(make_client(current_user))

    response = make_client(other_user).get(f"/api/games/{game['id']}/approved-disputes")

    assert response.status_code == 403
    assert response.json()["error"] == "You can only check disputes for your own games"
