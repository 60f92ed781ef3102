"""Games service layer."""

import logging

from fastapi import HTTPException, status

from core.errors import ApiError
from models import (
    GameHistory,
    GameQuestion,
    GameStatus,
    GameVisibility,
    GuestGameQuestion,
    GuestSessionType,
    JeopardyRound,
)
from utils.achievements import GAME_COMPLETED, STREAK_UPDATED, AchievementEvent, check_events, describe_unlocked
from utils.answer_checker import check_answer
from utils.daily_challenge_dates import get_today_in_app_timezone
from utils.game_config import (
    expected_question_count,
    game_label,
    generate_seed,
    round_badges,
    round_labels,
    starting_round,
)
from utils.game_board import BoardUnavailableError, FinalParams, select_final_clue, serialize_final_clue
from utils.game_progress import update_streak
from utils.guest_sessions import check_guest_limit, create_guest_session, get_guest_config, is_session_usable
from utils.scoring import DEFAULT_STATS_CLUE_VALUE, get_stats_points
from utils.spoiler import (
    DISABLED_POLICY,
    compute_user_effective_cutoff,
    format_cutoff_date,
    policy_for_game,
    to_stored_policy,
    would_violate_spoiler_policy,
)

from . import repository as games_repository

logger = logging.getLogger(__name__)

COMPLETED_GAMES_LIMIT = 10
VALID_ACTIONS = ("answer", "advance_round", "complete", "update_final_jeopardy")


def _percent(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole > 0 else 0


def _stored_policy(db, user_id):
    return to_stored_policy(compute_user_effective_cutoff(db, user_id))


def _created(game) -> dict:
    return {
        "id": game.id,
        "seed": game.seed,
        "status": game.status.value,
        "currentRound": game.current_round.value,
        "config": game.config,
    }


def quick_play(db, user):
    config = {
        "mode": "random",
        "rounds": {"single": True, "double": True, "final": False},
        "spoilerProtection": _stored_policy(db, user.id),
    }
    game = games_repository.create_game(
        db, user_id=user.id, seed=generate_seed(), config=config, current_round="SINGLE"
    )
    db.commit()
    db.refresh(game)
    logger.info(f"GAME_CREATED | game_id={game.id} | user_id={user.id} | mode=random | quick_play=true")
    return _created(game)


def create_game(db, user, *, payload):
    if payload.mode == "knowledge" and not payload.categories:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Knowledge mode requires at least one category")
    if payload.mode == "custom" and not payload.categoryIds:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Custom mode requires at least one category id")
    if payload.mode == "date" and not payload.date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Date mode requires a date")
    if not (payload.rounds.single or payload.rounds.double):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="At least one of single or double rounds is required")

    config = {"mode": payload.mode, "rounds": payload.rounds.model_dump()}
    if payload.categories:
        config["categories"] = payload.categories
    if payload.categoryIds:
        config["categoryIds"] = payload.categoryIds
    if payload.date:
        config["date"] = payload.date.isoformat()
    if payload.finalCategoryMode:
        config["finalCategoryMode"] = payload.finalCategoryMode
    if payload.finalCategoryMode == "specificCategory" and payload.finalCategoryId:
        config["finalCategoryId"] = payload.finalCategoryId
    config["spoilerProtection"] = _stored_policy(db, user.id)

    game = games_repository.create_game(
        db,
        user_id=user.id,
        seed=generate_seed(),
        config=config,
        current_round=starting_round(config),
        visibility=payload.visibility,
    )
    db.commit()
    db.refresh(game)
    logger.info(f"GAME_CREATED | game_id={game.id} | user_id={user.id} | mode={payload.mode}")
    return _created(game)


def _category_summary(game) -> list:
    categories = {}
    for gq in game.questions:
        category = gq.question.category
        entry = categories.setdefault(category.id, {"id": category.id, "name": category.name, "answeredCount": 0})
        if gq.answered:
            entry["answeredCount"] += 1
    return list(categories.values())


def summarize_game(game) -> dict:
    """Card shown on the resume and history screens."""
    config = game.config or {}
    expected = expected_question_count(config)
    answered = sum(1 for gq in game.questions if gq.answered)
    correct = sum(1 for gq in game.questions if gq.correct is True)
    return {
        "id": game.id,
        "seed": game.seed,
        "label": game_label(config),
        "status": game.status.value,
        "currentRound": game.current_round.value,
        "currentScore": game.current_score,
        "roundBadges": round_badges(config),
        "categories": _category_summary(game),
        "progress": {
            "totalQuestions": expected,
            "answeredQuestions": answered,
            "correctQuestions": correct,
            "percentComplete": _percent(answered, expected),
        },
        "createdAt": game.created_at,
        "updatedAt": game.updated_at,
    }


def list_resumable_games(db, user):
    games = games_repository.list_user_games(db, user_id=user.id, status=GameStatus.IN_PROGRESS)
    return {"games": [summarize_game(g) for g in games]}


def list_completed_games(db, user):
    games = games_repository.list_user_games(
        db, user_id=user.id, status=GameStatus.COMPLETED, limit=COMPLETED_GAMES_LIMIT
    )
    return {"games": [summarize_game(g) for g in games]}


def _load_game(db, game_id, *, with_questions=False):
    game = games_repository.get_game(db, game_id=game_id, with_questions=with_questions)
    if game is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return game


def _load_owned_game(db, user, game_id, action_label):
    game = _load_game(db, game_id)
    if game.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"You can only {action_label} your own games")
    return game


def get_game(db, user, *, game_id):
    game = _load_game(db, game_id, with_questions=True)
    user_id = user.id if user else None
    is_participant = user_id is not None and user_id in (game.user_id, game.opponent_user_id)
    if not is_participant and game.visibility == GameVisibility.PRIVATE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have access to this game")

    questions = {}
    for gq in game.questions:
        questions[gq.question_id] = {
            "id": gq.id,
            "answered": gq.answered,
            "correct": gq.correct,
            "questionId": gq.question_id,
            "categoryId": gq.question.category_id,
            "categoryName": gq.question.category.name,
        }

    total = len(game.questions)
    answered = sum(1 for gq in game.questions if gq.answered)
    correct = sum(1 for gq in game.questions if gq.correct is True)
    owner = game.user
    return {
        "id": game.id,
        "seed": game.seed,
        "config": game.config,
        "status": game.status.value,
        "currentRound": game.current_round.value,
        "currentScore": game.current_score,
        "visibility": game.visibility.value,
        "owner": {
            "id": owner.id,
            "displayName": owner.display_name,
            "selectedIcon": owner.selected_icon,
        } if owner else None,
        "isOwner": user_id == game.user_id,
        "questions": questions,
        "stats": {
            "totalQuestions": total,
            "answeredQuestions": answered,
            "correctQuestions": correct,
            "percentComplete": _percent(answered, total),
        },
        "createdAt": game.created_at,
        "updatedAt": game.updated_at,
    }


def update_game(db, user, *, game_id, payload):
    game = _load_owned_game(db, user, game_id, "update")

    if payload.status is not None:
        game.status = GameStatus(payload.status)
        if game.status in (GameStatus.COMPLETED, GameStatus.ABANDONED):
            game.completed = True
    if payload.currentRound is not None:
        game.current_round = JeopardyRound(payload.currentRound)
    if payload.currentScore is not None:
        game.current_score = payload.currentScore
    if payload.visibility is not None:
        game.visibility = GameVisibility(payload.visibility)

    db.commit()
    db.refresh(game)
    return {
        "id": game.id,
        "status": game.status.value,
        "currentRound": game.current_round.value,
        "currentScore": game.current_score,
        "visibility": game.visibility.value,
        "updatedAt": game.updated_at,
    }


def abandon_game(db, user, *, game_id):
    game = _load_owned_game(db, user, game_id, "delete")
    game.status = GameStatus.ABANDONED
    game.completed = True
    db.commit()
    logger.info(f"GAME_ABANDONED | game_id={game_id} | user_id={user.id}")
    return {"success": True, "message": "Game abandoned"}


# ---------- State actions ----------

def _bad_request(message):
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def _answer_action(db, user, game, payload):
    if not payload.questionId or payload.correct is None or payload.pointsEarned is None:
        raise _bad_request("Invalid answer data")

    gq = games_repository.get_game_question(db, game_id=game.id, question_id=payload.questionId)
    if gq is None:
        gq = GameQuestion(game_id=game.id, question_id=payload.questionId)
        db.add(gq)
    gq.answered = True
    gq.correct = payload.correct

    points = payload.pointsEarned if payload.correct else 0
    game.current_score += points

    db.add(GameHistory(user_id=user.id, question_id=payload.questionId, correct=payload.correct, points=points))
    db.commit()
    return {"success": True, "currentScore": game.current_score, "questionAnswered": payload.questionId}


def _advance_round_action(db, user, game, payload):
    if payload.newRound is None:
        raise _bad_request("Invalid round data")

    game.current_round = JeopardyRound(payload.newRound)
    if payload.newRound == "FINAL" and payload.finalJeopardyQuestionId:
        game.config = {**(game.config or {}), "finalJeopardyQuestionId": payload.finalJeopardyQuestionId}
    db.commit()
    return {"success": True, "currentRound": payload.newRound}


def _complete_action(db, user, game, payload):
    if payload.finalScore is None:
        raise _bad_request("Invalid completion data")

    game.status = GameStatus.COMPLETED
    game.completed = True
    game.score = payload.finalScore
    game.current_score = payload.finalScore
    today = get_today_in_app_timezone()
    previous = user.last_game_date
    update_streak(user, today)
    db.commit()
    logger.info(f"GAME_COMPLETED | game_id={game.id} | user_id={user.id} | score={payload.finalScore}")

    unlocked = check_events(db, user, [
        AchievementEvent(GAME_COMPLETED, game_id=game.id, final_score=payload.finalScore),
        AchievementEvent(STREAK_UPDATED, days_since_last_game=(today - previous).days if previous else None),
    ])
    return {
        "success": True,
        "status": GameStatus.COMPLETED.value,
        "finalScore": payload.finalScore,
        "newlyUnlockedAchievements": describe_unlocked(unlocked),
    }


def _final_jeopardy_action(db, user, game, payload):
    config = dict(game.config or {})
    if payload.stage is not None:
        config["finalJeopardyStage"] = payload.stage
    if payload.wager is not None:
        config["finalJeopardyWager"] = payload.wager
    game.config = config
    db.commit()
    return {"success": True, "stage": payload.stage, "wager": payload.wager}


_STATE_ACTIONS = {
    "answer": _answer_action,
    "advance_round": _advance_round_action,
    "complete": _complete_action,
    "update_final_jeopardy": _final_jeopardy_action,
}


def update_game_state(db, user, *, game_id, payload):
    game = _load_owned_game(db, user, game_id, "update")
    if game.status != GameStatus.IN_PROGRESS:
        raise _bad_request("Cannot update a completed or abandoned game")

    handler = _STATE_ACTIONS.get(payload.action)
    if handler is None:
        raise _bad_request(
            f"Unknown action: {payload.action}. Valid actions are: {', '.join(VALID_ACTIONS)}"
        )
    return handler(db, user, game, payload)


# ---------- Seed sharing ----------

def _load_seed_game(db, seed):
    game = games_repository.get_game_by_seed(db, seed=seed)
    if game is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No game found with this seed")
    return game


def preview_seed(db, *, seed):
    game = _load_seed_game(db, seed)
    config = game.config or {}
    return {
        "seed": game.seed,
        "label": game_label(config),
        "mode": config.get("mode"),
        "rounds": round_labels(config),
        "createdBy": (game.user.display_name if game.user else None) or "Anonymous",
        "createdAt": game.created_at,
    }


def clone_from_seed(db, user, *, seed):
    original = _load_seed_game(db, seed)
    config = {
        **(original.config or {}),
        "originalSeed": seed,
        "spoilerProtection": _stored_policy(db, user.id),
    }
    game = games_repository.create_game(
        db, user_id=user.id, seed=generate_seed(), config=config, current_round=starting_round(config)
    )
    db.commit()
    db.refresh(game)
    logger.info(f"GAME_CLONED | game_id={game.id} | original_seed={seed} | user_id={user.id}")
    return _created(game)


# ---------- Guest games ----------

def guest_quick_play(db):
    seed = generate_seed()
    config = {
        "mode": "random",
        "rounds": {"single": True, "double": True, "final": False},
        "spoilerProtection": to_stored_policy(DISABLED_POLICY),
    }
    session = create_guest_session(db, GuestSessionType.RANDOM_GAME, {"seed": seed, "config": config})
    guest_game = games_repository.create_guest_game(db, guest_session_id=session.id, seed=seed, config=config)
    db.commit()
    db.refresh(guest_game)
    db.refresh(session)
    logger.info(f"GUEST_GAME_CREATED | guest_game_id={guest_game.id} | session={session.id}")
    return {
        "guestSessionId": session.id,
        "guestGameId": guest_game.id,
        "seed": guest_game.seed,
        "status": guest_game.status.value,
        "currentRound": guest_game.current_round.value,
        "expiresAt": session.expires_at.isoformat(),
    }


def _load_usable_guest_game(db, guest_game_id):
    guest_game = games_repository.get_guest_game(db, guest_game_id=guest_game_id)
    if guest_game is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Guest game not found")
    if not is_session_usable(guest_game.guest_session):
        raise ApiError(status.HTTP_403_FORBIDDEN, "Guest session expired or already claimed", requiresAuth=True)
    return guest_game


def answer_guest_question(db, *, guest_game_id, payload):
    guest_game = _load_usable_guest_game(db, guest_game_id)
    question = games_repository.get_question(db, question_id=payload.questionId)
    if question is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")

    answered = [gq for gq in guest_game.questions if gq.answered]
    previous = next((gq for gq in answered if gq.question_id == payload.questionId), None)
    if previous is not None:
        return {"correct": previous.correct, "alreadyAnswered": True, "currentScore": guest_game.current_score}

    # A new category or round only counts against the limit when it is not already in play
    categories = {gq.question.category.name for gq in answered}
    rounds = {gq.question.round for gq in answered}
    limit = check_guest_limit(
        db,
        GuestSessionType.RANDOM_GAME,
        len(answered),
        category_count=len(categories) if question.category.name not in categories else None,
        round_count=len(rounds) if question.round not in rounds else None,
    )
    if not limit.allowed:
        raise ApiError(
            status.HTTP_403_FORBIDDEN, limit.reason or "Guest limit reached", requiresAuth=True, limitReached=True
        )

    correct = check_answer(payload.answer, question.answer)
    value = question.value or 0
    points = value if correct else -value

    db.add(GuestGameQuestion(guest_game_id=guest_game.id, question_id=question.id, answered=True, correct=correct))
    guest_game.current_score += points
    db.commit()

    limit_reached = len(answered) + 1 >= get_guest_config(db).random_game_max_questions_before_auth
    return {
        "correct": correct,
        "answer": question.answer,
        "points": points,
        "currentScore": guest_game.current_score,
        "limitReached": limit_reached,
        "requiresAuth": limit_reached,
    }


def get_guest_game_state(db, *, guest_game_id):
    guest_game = _load_usable_guest_game(db, guest_game_id)
    answered_count = sum(1 for gq in guest_game.questions if gq.answered)
    limit_reached = answered_count >= get_guest_config(db).random_game_max_questions_before_auth
    return {
        "id": guest_game.id,
        "guestSessionId": guest_game.guest_session_id,
        "seed": guest_game.seed,
        "status": guest_game.status.value,
        "currentRound": guest_game.current_round.value,
        "currentScore": guest_game.current_score,
        "config": guest_game.config,
        "answeredCount": answered_count,
        "limitReached": limit_reached,
        "requiresAuth": limit_reached,
        "expiresAt": guest_game.guest_session.expires_at.isoformat(),
    }


# ---------- Final Jeopardy & dates ----------

def _split(value):
    return [part for part in (value or "").split(",") if part]


def get_final_clue(db, user, *, game_id=None, question_id=None, mode=None, final_category_mode=None,
                   final_category_id=None, categories=None, category_ids=None, final_date=None):
    seed = None
    if game_id:
        game = games_repository.get_game(db, game_id=game_id)
        policy = policy_for_game(db, game) if game else DISABLED_POLICY
        seed = game.seed if game else None
    elif user is not None:
        policy = compute_user_effective_cutoff(db, user.id)
    else:
        policy = DISABLED_POLICY

    if question_id:
        question = games_repository.get_question(db, question_id=question_id)
        if question is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Final Jeopardy question not found")
        # Resuming a game must not surface a clue its spoiler settings now block
        if would_violate_spoiler_policy(question.air_date, policy):
            raise _bad_request(
                "This Final Jeopardy question is from an episode that would violate the game's spoiler protection "
                f"(blocking {format_cutoff_date(policy)} and later). "
                "The game cannot be resumed with current settings."
            )
        return serialize_final_clue(question)

    params = FinalParams(
        mode=mode,
        seed=seed,
        categories=_split(categories),
        category_ids=_split(category_ids),
        date=final_date,
        final_category_mode=final_category_mode or "shuffle",
        final_category_id=final_category_id,
        game_id=game_id,
    )
    try:
        return select_final_clue(db, params, policy)
    except BoardUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def list_available_dates(db):
    return {"dates": [d.isoformat() for d in games_repository.list_air_dates(db)]}


def get_approved_disputes(db, user, *, game_id):
    """Approved game-mode disputes resolved since the game started, for syncing the live score."""
    game = _load_owned_game(db, user, game_id, "check disputes for")
    disputes = games_repository.approved_game_disputes(db, game_id=game.id, since=game.created_at)
    return {
        "approvedDisputes": [
            {
                "questionId": dispute.question_id,
                "points": get_stats_points(
                    dispute.question.round, dispute.question.value or DEFAULT_STATS_CLUE_VALUE, True
                ),
                "resolvedAt": dispute.resolved_at,
            }
            for dispute in disputes
        ]
    }
