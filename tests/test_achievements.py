from datetime import date, datetime, timedelta

import pytz

from models import DailyChallenge, GameHistory, UserAchievement, UserDailyChallenge
from utils.achievements import (
    ACHIEVEMENT_DEFINITIONS,
    ACHIEVEMENTS_BY_CODE,
    DAILY_CHALLENGE_COMPLETED,
    EVENT_TO_ACHIEVEMENTS,
    QUESTION_ANSWERED,
    AchievementEvent,
    calculate_achievement_progress,
    check_and_unlock_achievements,
    daily_challenge_streak,
)
from utils.daily_challenge_dates import get_today_in_app_timezone


def _history(test_db, user, question, correct, count=1):
    for _ in range(count):
        test_db.add(GameHistory(user_id=user.id, question_id=question.id, correct=correct, points=0))
    test_db.commit()


def _complete_game(client, questions, final_score):
    game = client.post("/api/games", json={}).json()
    client.patch(
        f"/api/games/{game['id']}/state",
        json={"action": "answer", "questionId": questions["Paris"].id, "correct": True, "pointsEarned": 200},
    )
    response = client.patch(f"/api/games/{game['id']}/state", json={"action": "complete", "finalScore": final_score})
    assert response.status_code == 200
    return response.json()


def test_definitions_cover_every_event_code():
    codes = [a.code for a in ACHIEVEMENT_DEFINITIONS]

    assert len(codes) == len(set(codes)) == 52
    for event_codes in EVENT_TO_ACHIEVEMENTS.values():
        assert set(event_codes) <= set(ACHIEVEMENTS_BY_CODE)
    assert sum(1 for a in ACHIEVEMENT_DEFINITIONS if a.is_hidden) == 6


def test_progress_for_count_based_codes():
    assert calculate_achievement_progress("STREAK_7", {"currentStreak": 3}) == {
        "current": 3,
        "target": 7,
        "percent": 43,
        "displayText": "3 / 7 days",
    }
    assert calculate_achievement_progress("QUESTIONS_1000", {"questionsAnswered": 1500})["displayText"] == (
        "1,000 / 1,000 questions"
    )
    assert calculate_achievement_progress("PERFECT_GAME", {}) is None


def test_first_correct_unlocks_once(test_db, current_user, questions):
    _history(test_db, current_user, questions["Paris"], True)

    first = check_and_unlock_achievements(test_db, current_user, AchievementEvent(QUESTION_ANSWERED))
    again = check_and_unlock_achievements(test_db, current_user, AchievementEvent(QUESTION_ANSWERED))

    assert first == ["FIRST_CORRECT"]
    assert again == []
    assert test_db.query(UserAchievement).filter(UserAchievement.user_id == current_user.id).count() == 1


def test_accuracy_needs_a_full_sample(test_db, current_user, questions):
    _history(test_db, current_user, questions["Tokyo"], False, count=9)
    _history(test_db, current_user, questions["Paris"], True, count=40)

    assert "ACCURACY_80_PERCENT" not in check_and_unlock_achievements(
        test_db, current_user, AchievementEvent(QUESTION_ANSWERED)
    )

    _history(test_db, current_user, questions["Paris"], True)
    unlocked = check_and_unlock_achievements(test_db, current_user, AchievementEvent(QUESTION_ANSWERED))

    assert "ACCURACY_80_PERCENT" in unlocked
    assert "QUESTIONS_50" in unlocked
    assert "ACCURACY_90_PERCENT" not in unlocked


def test_final_clue_counts_toward_final_achievement(test_db, current_user, questions):
    _history(test_db, current_user, questions["Mars"], True)

    unlocked = check_and_unlock_achievements(test_db, current_user, AchievementEvent(QUESTION_ANSWERED))

    assert "FINAL_JEOPARDY_CORRECT" in unlocked
    assert "FINAL_JEOPARDY_STREAK_5" not in unlocked


def test_daily_challenge_streak_stops_at_gap(test_db, current_user, questions):
    active = date(2024, 3, 10)
    days = [active, active - timedelta(days=1), active - timedelta(days=2), active - timedelta(days=4)]
    answers = ["Paris", "Tokyo", "Rome", "gold"]
    for day, answer in zip(days, answers):
        challenge = DailyChallenge(date=day, question_id=questions[answer].id)
        test_db.add(challenge)
        test_db.flush()
        test_db.add(UserDailyChallenge(user_id=current_user.id, challenge_id=challenge.id, correct=True))
    test_db.commit()

    assert daily_challenge_streak(test_db, current_user.id, active) == 3
    # Today's challenge not done yet: yesterday's run still counts
    assert daily_challenge_streak(test_db, current_user.id, active + timedelta(days=1)) == 3
    assert daily_challenge_streak(test_db, current_user.id, active + timedelta(days=2)) == 0


def test_night_owl_uses_app_timezone(test_db, current_user):
    # 06:30 UTC is 01:30 in New York
    late = datetime(2024, 3, 5, 6, 30, tzinfo=pytz.utc)
    morning = datetime(2024, 3, 5, 14, 30, tzinfo=pytz.utc)

    assert check_and_unlock_achievements(
        test_db, current_user, AchievementEvent(DAILY_CHALLENGE_COMPLETED, now=morning)
    ) == []
    assert check_and_unlock_achievements(
        test_db, current_user, AchievementEvent(DAILY_CHALLENGE_COMPLETED, now=late)
    ) == ["DAILY_CHALLENGE_MIDNIGHT"]


def test_completing_game_reports_new_achievements(client, questions):
    body = _complete_game(client, questions, 1984)

    codes = {a["code"] for a in body["newlyUnlockedAchievements"]}
    assert codes == {"FIRST_GAME", "FIRST_PERFECT_ROUND", "PERFECT_ROUND", "PERFECT_GAME", "SCORE_1984"}


def test_returning_player_after_a_long_break(client, test_db, current_user, questions):
    current_user.last_game_date = get_today_in_app_timezone() - timedelta(days=10)
    current_user.current_streak = 5
    test_db.commit()

    body = _complete_game(client, questions, 0)

    assert "RETURNING_PLAYER" in [a["code"] for a in body["newlyUnlockedAchievements"]]
    assert current_user.current_streak == 1


def test_list_achievements_marks_unlocked_and_progress(client, test_db, current_user):
    test_db.add(UserAchievement(user_id=current_user.id, code="FIRST_GAME"))
    current_user.current_streak = 2
    test_db.commit()

    response = client.get("/api/achievements")

    assert response.status_code == 200
    body = response.json()
    assert (body["unlockedCount"], body["totalCount"]) == (1, 52)
    by_code = {a["code"]: a for a in body["achievements"]}
    assert by_code["FIRST_GAME"]["unlocked"] is True
    assert by_code["FIRST_GAME"]["progress"] is None
    assert by_code["STREAK_3"]["progress"]["displayText"] == "2 / 3 days"
    names = [a["name"] for a in body["achievements"]]
    assert names == sorted(names)


def test_leaderboard_badges_pick_recent_showcase_icons(client, test_db, current_user, other_user):
    start = datetime(2024, 1, 1)
    for offset, code in enumerate(["STREAK_30", "FIRST_GAME", "QUESTIONS_500", "PERFECT_GAME", "STREAK_14"]):
        test_db.add(UserAchievement(user_id=current_user.id, code=code, unlocked_at=start + timedelta(days=offset)))
    test_db.commit()

    response = client.get("/api/leaderboard/achievements", params={"userIds": f"{current_user.id},{other_user.id}"})

    assert response.status_code == 200
    icons = [ACHIEVEMENTS_BY_CODE[code].icon for code in ("STREAK_14", "PERFECT_GAME", "QUESTIONS_500")]
    assert response.json() == {current_user.id: icons}
    assert client.get("/api/leaderboard/achievements").json() == {}


def test_profile_achievement_needs_name_and_icon(client, test_db, current_user):
    assert client.post("/api/user/check-profile-achievement").json() == {"unlocked": False, "achievements": []}

    current_user.selected_icon = "🦉"
    test_db.commit()
    body = client.post("/api/user/check-profile-achievement").json()

    assert body["unlocked"] is True
    assert [a["code"] for a in body["achievements"]] == ["PROFILE_CUSTOMIZED"]
    assert client.post("/api/user/check-profile-achievement").json()["unlocked"] is False


def test_achievement_routes_require_auth(anon_client):
    assert anon_client.get("/api/achievements").status_code == 401
    assert anon_client.get("/api/leaderboard/achievements").status_code == 401
