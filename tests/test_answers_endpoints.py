from models import AnswerDispute, AnswerOverride, DisputeStatus, GameHistory, OverrideSource, UserProgress


def _grade(client, question, answer, **extra):
    payload = {"questionId": question.id, "mode": "PRACTICE", "round": "SINGLE", "userAnswer": answer}
    payload.update(extra)
    return client.post("/api/answers/grade", json=payload)


def test_practice_grade_records_history_and_progress(client, test_db, current_user, questions):
    response = _grade(client, questions["Paris"], "what is paris")

    assert response.status_code == 200
    body = response.json()
    unlocked = body.pop("unlockedAchievements")
    assert body == {"correct": True, "storedPoints": 200, "canDispute": False, "disputeContext": None}
    assert [a["code"] for a in unlocked] == ["FIRST_CORRECT"]
    progress = test_db.query(UserProgress).filter(UserProgress.user_id == current_user.id).one()
    assert (progress.correct, progress.total, progress.points) == (1, 1, 200)


def test_practice_correct_answer_only_pays_once(client, test_db, current_user, questions):
    _grade(client, questions["Paris"], "Paris")
    _grade(client, questions["Paris"], "Paris")

    points = [h.points for h in test_db.query(GameHistory).filter(GameHistory.user_id == current_user.id)]
    assert sorted(points) == [0, 200]
    progress = test_db.query(UserProgress).filter(UserProgress.user_id == current_user.id).one()
    assert (progress.correct, progress.total) == (1, 1)


def test_wrong_answer_offers_dispute_context(client, questions):
    response = _grade(client, questions["Tokyo"], "Osaka")

    body = response.json()
    assert body["correct"] is False
    assert body["storedPoints"] == 0
    assert body["canDispute"] is True
    assert body["disputeContext"]["userAnswer"] == "Osaka"


def test_override_is_accepted(client, test_db, admin_user, questions):
    test_db.add(AnswerOverride(
        question_id=questions["Tokyo"].id,
        text="Edo",
        created_by_user_id=admin_user.id,
        source=OverrideSource.ADMIN,
    ))
    test_db.commit()

    assert _grade(client, questions["Tokyo"], "edo").json()["correct"] is True


def test_game_grade_uses_displayed_value(client, questions):
    game = client.post("/api/games", json={}).json()

    response = _grade(
        client, questions["Rome"], "Rome", mode="GAME", round="DOUBLE", gameId=game["id"], pointsEarned=1600
    )

    assert response.json()["storedPoints"] == 1600
    assert client.get(f"/api/games/{game['id']}").json()["currentScore"] == 1600


def test_grade_unknown_question_returns_404(client):
    response = client.post(
        "/api/answers/grade",
        json={"questionId": "missing", "mode": "PRACTICE", "round": "SINGLE", "userAnswer": "x"},
    )

    assert response.status_code == 404


def test_dispute_create_and_duplicate(client, test_db, questions):
    payload = {"questionId": questions["Tokyo"].id, "mode": "PRACTICE", "round": "SINGLE", "userAnswer": " Edo "}

    first = client.post("/api/answers/disputes", json=payload)
    assert first.status_code == 201
    dispute = test_db.query(AnswerDispute).filter(AnswerDispute.id == first.json()["disputeId"]).one()
    assert dispute.user_answer == "Edo"
    assert dispute.status == DisputeStatus.PENDING

    duplicate = client.post("/api/answers/disputes", json=payload)
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "A pending dispute already exists for this answer"

    listed = client.get("/api/answers/disputes").json()["disputes"]
    assert [d["question"]["answer"] for d in listed] == ["Tokyo"]
