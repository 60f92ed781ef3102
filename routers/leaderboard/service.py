"""Leaderboard and statistics service layer."""

import logging
from datetime import datetime, timedelta
from operator import itemgetter

from fastapi import HTTPException, status

from utils.achievements import leaderboard_badges, list_achievements_for_user
from utils.game_config import high_score_mode_label, round_badges
from utils.scoring import get_stats_points

from . import repository as leaderboard_repository

logger = logging.getLogger(__name__)

TIMEFRAME_DAYS = {"week": 7, "month": 30, "year": 365}
ANONYMOUS_PLAYER = "Anonymous Player"


def get_leaderboard(db, *, limit: int):
    rows = leaderboard_repository.leaderboard_rows(db, limit=limit)
    leaderboard = [
        {
            "id": user_id,
            "displayName": display_name or ANONYMOUS_PLAYER,
            "selectedIcon": selected_icon,
            "correctAnswers": correct,
            "totalAnswered": answered,
            "totalPoints": int(points),
            "avgPointsPerCorrect": round(int(points) / correct, 2) if correct else 0,
        }
        for user_id, display_name, selected_icon, correct, answered, points in rows
    ]
    return {"leaderboard": leaderboard, "updatedAt": datetime.utcnow().isoformat()}


def get_high_scores(db, *, limit: int, timeframe: str, now=None):
    now = now or datetime.utcnow()
    days = TIMEFRAME_DAYS.get(timeframe)
    since = now - timedelta(days=days) if days else None

    games = leaderboard_repository.high_score_games(db, since=since, limit=limit)
    high_scores = []
    for rank, game in enumerate(games, start=1):
        answered = sum(1 for gq in game.questions if gq.answered)
        correct = sum(1 for gq in game.questions if gq.correct is True)
        high_scores.append({
            "id": game.id,
            "rank": rank,
            "userId": game.user_id,
            "displayName": game.user.display_name or ANONYMOUS_PLAYER,
            "selectedIcon": game.user.selected_icon,
            "score": game.current_score,
            "gameMode": high_score_mode_label(game.config),
            "roundsPlayed": round_badges(game.config),
            "questionsCorrect": correct,
            "questionsTotal": answered,
            "accuracy": round(correct / answered * 100) if answered else 0,
            "completedAt": game.updated_at,
            "seed": game.seed,
        })
    return {"highScores": high_scores, "timeframe": timeframe, "updatedAt": now.isoformat()}


def _points(history) -> int:
    question = history.question
    return get_stats_points(question.round, question.value, history.correct)


def get_user_stats(db, user):
    latest = leaderboard_repository.latest_answers(db, user_id=user.id)
    correct_rows = [h for h in latest if h.correct]

    knowledge_stats = []
    for knowledge, total in leaderboard_repository.knowledge_category_totals(db):
        in_area = [h for h in correct_rows if h.question.knowledge_category == knowledge]
        knowledge_stats.append({
            "categoryName": knowledge.value.replace("_", " "),
            "correct": len(in_area),
            "total": total,
            "points": sum(_points(h) for h in in_area),
        })

    per_category = {}
    for h in correct_rows:
        entry = per_category.setdefault(h.question.category_id, [0, 0])
        entry[0] += 1
        entry[1] += _points(h)

    category_stats = []
    total_questions = 0
    for category_id, name, total, latest_air_date in leaderboard_repository.category_totals(db):
        correct, points = per_category.get(category_id, (0, 0))
        total_questions += total
        category_stats.append({
            "categoryName": name,
            "correct": correct,
            "total": total,
            "points": points,
            "mostRecentAirDate": latest_air_date,
        })

    return {
        "totalPoints": sum(_points(h) for h in correct_rows),
        "totalQuestions": total_questions,
        "totalAnswered": len(latest),
        "correctAnswers": len(correct_rows),
        "tripleStumpersAnswered": sum(1 for h in correct_rows if h.question.was_triple_stumper),
        "knowledgeCategoryStats": knowledge_stats,
        "categoryStats": category_stats,
    }


def get_category_stats(db, user, *, name):
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category name is required")

    category = leaderboard_repository.get_category_by_name(db, name=name)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    questions = leaderboard_repository.list_category_questions(db, category_id=category.id)
    correct_ids = leaderboard_repository.correctly_answered_ids(
        db, user_id=user.id, question_ids=[q.id for q in questions]
    )
    # Clue text stays hidden until the user has answered it correctly
    details = [
        {
            "id": q.id,
            "question": q.question if q.id in correct_ids else None,
            "answer": q.answer if q.id in correct_ids else None,
            "value": q.value,
            "airDate": q.air_date,
            "correct": q.id in correct_ids,
        }
        for q in questions
    ]
    return {
        "questions": details,
        "totalQuestions": len(details),
        "correctQuestions": len(correct_ids),
    }


def _history_entry(history, last_incorrect) -> dict:
    question = history.question
    return {
        "id": question.id,
        "correct": history.correct,
        "points": _points(history),
        "timestamp": history.timestamp,
        "question": question.question,
        "answer": question.answer,
        "value": question.value,
        "airDate": question.air_date,
        "wasTripleStumper": question.was_triple_stumper,
        "round": question.round.value,
        "categoryName": question.category.name,
        "lastIncorrectUserAnswer": last_incorrect.get(question.id),
    }


def get_history(db, user, *, history_type: str, tab=None):
    latest = leaderboard_repository.latest_answers(db, user_id=user.id)
    last_incorrect = leaderboard_repository.last_incorrect_answers(db, user_id=user.id)
    entries = [_history_entry(h, last_incorrect) for h in latest]

    by_points = itemgetter("points")
    by_recent = itemgetter("timestamp")

    if history_type == "points":
        questions = sorted((e for e in entries if e["correct"]), key=by_points, reverse=True)
    elif history_type == "tripleStumpers":
        questions = sorted(
            (e for e in entries if e["correct"] and e["wasTripleStumper"]), key=by_points, reverse=True
        )
    else:
        # "attempted" defaults to the incorrect tab, "correct" to the correct tab
        if history_type == "attempted":
            want_correct = tab == "correct"
        else:
            want_correct = tab != "incorrect"
        questions = sorted((e for e in entries if e["correct"] == want_correct), key=by_recent, reverse=True)

    summary_pool = [e for e in entries if e["wasTripleStumper"]] if history_type == "tripleStumpers" else entries
    return {
        "questions": questions,
        "summary": {
            "totalCorrect": sum(1 for e in summary_pool if e["correct"]),
            "totalIncorrect": sum(1 for e in summary_pool if not e["correct"]),
            "totalTripleStumpers": sum(1 for e in summary_pool if e["correct"] and e["wasTripleStumper"]),
            "totalAttempted": len(summary_pool),
        },
    }


def get_round_history(db, user, *, round_name: str):
    """Latest answer per clue in one round, grouped by category, newest first."""
    latest = leaderboard_repository.latest_answers(db, user_id=user.id)
    last_incorrect = leaderboard_repository.last_incorrect_answers(db, user_id=user.id)
    in_round = sorted(
        (h for h in latest if h.question.round.value == round_name),
        key=lambda h: h.timestamp,
        reverse=True,
    )

    categories = {}
    for history in in_round:
        question = history.question
        entry = categories.setdefault(question.category_id, {
            "categoryId": question.category_id,
            "categoryName": question.category.name,
            "questions": [],
            "correct": 0,
            "incorrect": 0,
        })
        entry["questions"].append(_history_entry(history, last_incorrect))
        entry["correct" if history.correct else "incorrect"] += 1

    correct = sum(1 for h in in_round if h.correct)
    return {
        "round": round_name,
        # Insertion order follows the newest answer in each category
        "categories": list(categories.values()),
        "summary": {
            "totalCorrect": correct,
            "totalIncorrect": len(in_round) - correct,
            "totalAttempted": len(in_round),
            "totalPoints": sum(_points(h) for h in in_round),
        },
    }


def get_category_knowledge(db, *, name):
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category name is required")

    category = leaderboard_repository.get_category_by_name(db, name=name)
    if category is None or leaderboard_repository.count_category_questions(db, category_id=category.id) == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found or has no questions")
    return {"categoryId": category.id, "knowledgeCategory": category.knowledge_category.value}


# ---------- Achievements ----------

def list_achievements(db, user):
    return list_achievements_for_user(db, user)


def get_leaderboard_achievements(db, *, user_ids):
    ids = [part.strip() for part in (user_ids or "").split(",") if part.strip()]
    return leaderboard_badges(db, ids)
