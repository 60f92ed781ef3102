from datetime import datetime, timedelta

from models import (
    DailyChallenge,
    Game,
    GameHistory,
    GameStatus,
    GuestGame,
    GuestGameQuestion,
    GuestSession,
    GuestSessionType,
    JeopardyRound,
    UserDailyChallenge,
    UserProgress,
)
from utils.guest_sessions import claim_guest_session, get_guest_session_stats


def _session(test_db, session_type, data=None, expires_in=timedelta(hours=1)):
    session = GuestSession(type=session_type, data=data, expires_at=datetime.utcnow() + expires_in)
    test_db.add(session)
    test_db.commit()
    return session


def test_claim_random_question_records_history(client, test_db, current_user, questions):
    session = _session(test_db, GuestSessionType.RANDOM_QUESTION, {
        "questionId": questions["Paris"].id,
        "correct": True,
        "points": 200,
        "userAnswer": "paris",
        "knowledgeCategory": "GEOGRAPHY_AND_HISTORY",
        "categoryName": "WORLD CAPITALS",
    })

    response = client.post("/api/guest-sessions/claim", json={"guestSessionId": session.id})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["redirectPath"].startswith("/practice/category?knowledgeCategory=GEOGRAPHY_AND_HISTORY")
    assert body["redirectPath"].endswith(f"&question={questions['Paris'].id}")

    history = test_db.query(GameHistory).filter(GameHistory.user_id == current_user.id).one()
    assert (history.correct, history.points, history.user_answer) == (True, 200, "paris")
    test_db.refresh(session)
    assert session.claimed_by_user_id == current_user.id
    assert session.claimed_at is not None


def test_claim_random_question_accepts_float_points(client, test_db, current_user, questions):
    session = _session(test_db, GuestSessionType.RANDOM_QUESTION, {
        "questionId": questions["Tokyo"].id,
        "correct": True,
        "points": 400.0,
        "userAnswer": "tokyo",
    })

    client.post("/api/guest-sessions/claim", json={"guestSessionId": session.id})

    history = test_db.query(GameHistory).filter(GameHistory.user_id == current_user.id).one()
    assert (history.correct, history.points) == (True, 400)


def test_claim_daily_challenge_creates_completion(client, test_db, current_user, questions):
    challenge = DailyChallenge(date=datetime.utcnow().date(), question_id=questions["Mars"].id)
    test_db.add(challenge)
    test_db.commit()
    session = _session(test_db, GuestSessionType.DAILY_CHALLENGE, {
        "challengeId": challenge.id,
        "correct": False,
        "userAnswer": "Venus",
    })

    body = client.post("/api/guest-sessions/claim", json={"guestSessionId": session.id}).json()

    assert body["challengeId"] == challenge.id
    assert body["redirectPath"] == "/daily-challenge"
    completion = test_db.query(UserDailyChallenge).filter(UserDailyChallenge.user_id == current_user.id).one()
    assert completion.correct is False
    assert completion.user_answer == "Venus"


def test_claim_random_game_copies_answers(client, test_db, current_user, questions):
    session = _session(test_db, GuestSessionType.RANDOM_GAME)
    guest_game = GuestGame(
        guest_session_id=session.id,
        seed="guest-seed",
        config={"mode": "random"},
        status=GameStatus.IN_PROGRESS,
        current_round=JeopardyRound.SINGLE,
        current_score=-400,
    )
    test_db.add(guest_game)
    test_db.flush()
    test_db.add(GuestGameQuestion(
        guest_game_id=guest_game.id, question_id=questions["Tokyo"].id, answered=True, correct=False
    ))
    test_db.commit()

    body = client.post("/api/guest-sessions/claim", json={"guestSessionId": session.id}).json()

    game = test_db.query(Game).filter(Game.id == body["gameId"]).one()
    assert game.user_id == current_user.id
    assert game.seed == "guest-seed"
    assert game.current_score == -400
    assert [(gq.question_id, gq.correct) for gq in game.questions] == [(questions["Tokyo"].id, False)]
    progress = test_db.query(UserProgress).filter(UserProgress.user_id == current_user.id).one()
    assert (progress.correct, progress.total, progress.points) == (0, 1, -400)


def test_claim_rejects_expired_and_claimed_sessions(client, test_db, current_user, questions):
    expired = _session(test_db, GuestSessionType.RANDOM_QUESTION, {}, expires_in=timedelta(minutes=-1))

    response = client.post("/api/guest-sessions/claim", json={"guestSessionId": expired.id})
    assert response.status_code == 400
    assert response.json()["error"] == "Session not found, expired, or already claimed"

    session = _session(test_db, GuestSessionType.RANDOM_QUESTION, {})
    assert claim_guest_session(test_db, session.id, current_user.id)["success"] is True
    assert claim_guest_session(test_db, session.id, current_user.id)["success"] is False


def test_claim_requires_auth(anon_client):
    assert anon_client.post("/api/guest-sessions/claim", json={"guestSessionId": "x"}).status_code == 401


def test_guest_session_stats(test_db, current_user):
    now = datetime.utcnow()
    _session(test_db, GuestSessionType.RANDOM_QUESTION)
    _session(test_db, GuestSessionType.RANDOM_GAME, expires_in=timedelta(minutes=-5))
    claimed = _session(test_db, GuestSessionType.DAILY_CHALLENGE)
    claimed.claimed_at = now
    claimed.claimed_by_user_id = current_user.id
    test_db.commit()

    stats = get_guest_session_stats(test_db, now=now)

    assert stats["active"] == 1
    assert stats["claimed"] == 1
    assert stats["expired"] == 1
