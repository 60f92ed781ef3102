"""Answers service layer."""

import logging

from fastapi import HTTPException, status

from models import AnswerDispute, DisputeMode, GameHistory, JeopardyRound
from utils.achievements import QUESTION_ANSWERED, AchievementEvent, check_and_unlock_achievements, describe_unlocked
from utils.answer_overrides import get_question_overrides, is_answer_accepted_with_overrides
from utils.game_progress import upsert_user_progress
from utils.scoring import DEFAULT_STATS_CLUE_VALUE

from . import repository as answers_repository

logger = logging.getLogger(__name__)


def _stored_points(payload, question, correct: bool) -> int:
    if not correct:
        return 0
    if payload.mode == "GAME" and payload.pointsEarned is not None:
        return payload.pointsEarned
    return question.value or DEFAULT_STATS_CLUE_VALUE


def _apply_game_result(db, user, payload, correct, points):
    game = answers_repository.get_game(db, game_id=payload.gameId)
    if game is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    if game.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only answer in your own games")

    answers_repository.mark_game_question(db, game_id=game.id, question_id=payload.questionId, correct=correct)
    if correct and points > 0:
        game.current_score += points


def grade_answer(db, user, *, payload):
    """Grade against the canonical answer plus overrides and persist the result."""
    question = answers_repository.get_question(db, question_id=payload.questionId)
    if question is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")

    overrides = get_question_overrides(db, question.id)
    correct = is_answer_accepted_with_overrides(payload.userAnswer, question.answer, overrides)
    stored_points = _stored_points(payload, question, correct)

    try:
        if payload.mode == "GAME" and payload.gameId:
            _apply_game_result(db, user, payload, correct, stored_points)

        # Practice never pays twice for the same question
        already_correct = payload.mode == "PRACTICE" and answers_repository.has_correct_history(
            db, user_id=user.id, question_id=question.id
        )
        award = correct and not already_correct
        awarded_points = stored_points if award else 0

        db.add(GameHistory(
            user_id=user.id,
            question_id=question.id,
            correct=correct,
            points=awarded_points,
            user_answer=payload.userAnswer,
        ))

        if payload.mode == "PRACTICE" or not payload.gameId:
            upsert_user_progress(
                db,
                user_id=user.id,
                question=question,
                correct_increment=1 if award else 0,
                total_increment=0 if already_correct else 1,
                points=awarded_points,
            )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"ANSWER_GRADED | user_id={user.id} | question_id={question.id} | mode={payload.mode} | correct={correct}"
    )
    dispute_context = None
    if not correct:
        dispute_context = {
            "questionId": question.id,
            "gameId": payload.gameId,
            "round": payload.round,
            "userAnswer": payload.userAnswer,
            "mode": payload.mode,
        }
    unlocked = check_and_unlock_achievements(db, user, AchievementEvent(QUESTION_ANSWERED))
    return {
        "correct": correct,
        "storedPoints": stored_points,
        "canDispute": not correct,
        "disputeContext": dispute_context,
        "unlockedAchievements": describe_unlocked(unlocked),
    }


def create_dispute(db, user, *, payload):
    question = answers_repository.get_question(db, question_id=payload.questionId)
    if question is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Question not found")

    mode = DisputeMode(payload.mode)
    existing = answers_repository.find_pending_dispute(
        db, user_id=user.id, question_id=question.id, mode=mode, game_id=payload.gameId
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="A pending dispute already exists for this answer")

    dispute = AnswerDispute(
        user_id=user.id,
        question_id=question.id,
        game_id=payload.gameId,
        mode=mode,
        round=JeopardyRound(payload.round),
        user_answer=payload.userAnswer.strip(),
        system_was_correct=payload.systemWasCorrect,
    )
    db.add(dispute)
    db.commit()
    db.refresh(dispute)
    logger.info(f"DISPUTE_CREATED | dispute_id={dispute.id} | user_id={user.id} | question_id={question.id}")
    return {"success": True, "disputeId": dispute.id}


def serialize_dispute(dispute) -> dict:
    question = dispute.question
    return {
        "id": dispute.id,
        "questionId": dispute.question_id,
        "gameId": dispute.game_id,
        "mode": dispute.mode.value,
        "round": dispute.round.value,
        "userAnswer": dispute.user_answer,
        "systemWasCorrect": dispute.system_was_correct,
        "status": dispute.status.value,
        "adminComment": dispute.admin_comment,
        "createdAt": dispute.created_at,
        "resolvedAt": dispute.resolved_at,
        "question": {
            "id": question.id,
            "question": question.question,
            "answer": question.answer,
            "category": question.category.name if question.category else None,
        } if question else None,
    }


def list_disputes(db, user):
    disputes = answers_repository.list_user_disputes(db, user_id=user.id)
    return {"disputes": [serialize_dispute(d) for d in disputes]}
