from datetime import date

from models import GuestSession, GuestSessionType


def test_categories_are_public_and_counted(anon_client):
    response = anon_client.get("/api/categories")

    assert response.status_code == 200
    rows = response.json()
    assert [row["name"] for row in rows] == ["SCIENCE", "WORLD CAPITALS"]
    assert all(row["_count"]["questions"] == 3 for row in rows)


def test_categories_respect_spoiler_cutoff(client, test_db, current_user):
    current_user.spoiler_block_enabled = True
    current_user.spoiler_block_date = date(2020, 1, 7)
    test_db.commit()

    response = client.get("/api/categories")

    assert response.status_code == 200
    assert [row["name"] for row in response.json()] == ["WORLD CAPITALS"]


def test_category_search(anon_client):
    assert anon_client.get("/api/categories/search", params={"q": "c"}).json() == []

    rows = anon_client.get("/api/categories/search", params={"q": "cap"}).json()
    assert [row["name"] for row in rows] == ["WORLD CAPITALS"]


def test_list_questions_filters_by_knowledge_category(anon_client):
    response = anon_client.get("/api/questions", params={"knowledgeCategory": "SCIENCE_AND_NATURE"})

    assert response.status_code == 200
    body = response.json()
    assert body["pagination"]["total"] == 3
    assert body["pagination"]["totalPages"] == 1
    assert {q["answer"] for q in body["questions"]} == {"gold", "water", "Mars"}


def test_question_detail_requires_auth(anon_client, questions):
    response = anon_client.get(f"/api/questions/{questions['Paris'].id}")

    assert response.status_code == 401


def test_unknown_question_returns_404(client):
    response = client.get("/api/questions/does-not-exist")

    assert response.status_code == 404
    assert response.json()["error"] == "Question not found"


def test_practice_shuffle_stays_in_knowledge_category(anon_client):
    response = anon_client.get("/api/practice/shuffle", params={"category": "GEOGRAPHY_AND_HISTORY"})

    assert response.status_code == 200
    body = response.json()
    assert body["answer"] in {"Paris", "Tokyo", "Rome"}
    assert body["originalCategory"] == "WORLD CAPITALS"


def test_guest_question_never_serves_final(anon_client):
    for _ in range(10):
        response = anon_client.get("/api/practice/guest-question")
        assert response.status_code == 200
        assert response.json()["answer"] != "Mars"


def test_guest_question_complete_creates_session(anon_client, test_db, questions):
    response = anon_client.post(
        "/api/practice/guest-question/complete",
        json={"questionId": questions["Paris"].id, "correct": True, "points": 200, "rawAnswer": "paris"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["limitReached"] is True

    session = test_db.query(GuestSession).filter(GuestSession.id == body["guestSessionId"]).one()
    assert session.type == GuestSessionType.RANDOM_QUESTION
    assert session.data["categoryName"] == "WORLD CAPITALS"


def test_guest_question_complete_blocks_second_answer(anon_client, questions):
    first = anon_client.post(
        "/api/practice/guest-question/complete",
        json={"questionId": questions["Paris"].id, "correct": True, "points": 200},
    ).json()

    response = anon_client.post(
        "/api/practice/guest-question/complete",
        json={
            "guestSessionId": first["guestSessionId"],
            "questionId": questions["Tokyo"].id,
            "correct": False,
            "points": 0,
        },
    )

    assert response.status_code == 403
    assert response.json()["requiresAuth"] is True
