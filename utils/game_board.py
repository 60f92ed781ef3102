"""
Game board generation.

A board is up to five categories with up to five clues each, drawn from one
round. Boards built from a seed are deterministic: the same seed, round and
spoiler policy always produce the same categories, so they are cached.
"""

import logging
import random
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.cache import default_cache, make_cache_key
from core.config import BOARD_CACHE_TTL_SECONDS
from models import Category, Game, GameQuestion, JeopardyRound, KnowledgeCategory, Question
from utils.spoiler import SpoilerPolicy, apply_air_date_filter, format_cutoff_date

logger = logging.getLogger(__name__)

CATEGORIES_PER_BOARD = 5
QUESTIONS_PER_CATEGORY = 5
MIN_BOARD_QUESTIONS = 3
TRIPLE_STUMPER = "TRIPLE_STUMPER"
BOARD_CACHE_NAMESPACE = "board"


class BoardUnavailableError(LookupError):
    """Not enough eligible content to build the requested board."""


@dataclass
class BoardParams:
    mode: Optional[str] = None
    round: str = "SINGLE"
    seed: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    category_ids: List[str] = field(default_factory=list)
    date: Optional[date] = None
    category_filter: Optional[str] = None
    game_id: Optional[str] = None


def resolve_round(round_param: Optional[str], is_double: bool = False) -> str:
    """Prefer an explicit SINGLE/DOUBLE, fall back to the legacy isDouble flag."""
    if round_param in ("SINGLE", "DOUBLE"):
        return round_param
    return "DOUBLE" if is_double else "SINGLE"


def seeded_shuffle(items: List[str], seed: str) -> List[str]:
    result = list(items)
    random.Random(seed).shuffle(result)
    return result


def _base_query(db: Session, params: BoardParams, policy: SpoilerPolicy):
    query = db.query(Question).filter(Question.round == JeopardyRound(params.round))
    return apply_air_date_filter(query, policy)


def _mode_filter(query, params: BoardParams):
    if params.mode == "knowledge" and params.categories:
        areas = [KnowledgeCategory(c) for c in params.categories if c in KnowledgeCategory.__members__]
        query = query.filter(Question.knowledge_category.in_(areas))
    elif params.mode == "custom" and params.category_ids:
        query = query.filter(Question.category_id.in_(params.category_ids))
    elif params.mode == "date" and params.date:
        query = query.filter(Question.air_date == params.date)
    return query


def _category_ids_with_questions(query) -> List[str]:
    rows = (
        query.with_entities(Question.category_id, func.count(Question.id))
        .group_by(Question.category_id)
        .order_by(Question.category_id)
        .all()
    )
    return [category_id for category_id, count in rows if count > 0]


def _shuffle_or_sample(ids: List[str], params: BoardParams) -> List[str]:
    if params.seed:
        return seeded_shuffle(ids, f"{params.seed}{params.round}")
    shuffled = list(ids)
    random.shuffle(shuffled)
    return shuffled


def select_challenge_categories(
    db: Session, eligible_ids: List[str], user_id: str, params: BoardParams
) -> List[str]:
    """Favor categories with the most unanswered triple stumpers for this user."""
    if len(eligible_ids) <= CATEGORIES_PER_BOARD:
        return list(eligible_ids)

    totals = dict(
        db.query(Question.category_id, func.count(Question.id))
        .filter(
            Question.category_id.in_(eligible_ids),
            Question.round == JeopardyRound(params.round),
            Question.was_triple_stumper.is_(True),
        )
        .group_by(Question.category_id)
        .all()
    )
    answered = dict(
        db.query(Question.category_id, func.count(GameQuestion.id))
        .join(GameQuestion, GameQuestion.question_id == Question.id)
        .join(Game, Game.id == GameQuestion.game_id)
        .filter(
            Game.user_id == user_id,
            GameQuestion.answered.is_(True),
            Question.category_id.in_(eligible_ids),
            Question.round == JeopardyRound(params.round),
            Question.was_triple_stumper.is_(True),
        )
        .group_by(Question.category_id)
        .all()
    )

    tiers: Dict[str, List[str]] = defaultdict(list)
    for category_id in sorted(totals):
        unanswered = totals[category_id] - answered.get(category_id, 0)
        if unanswered >= 3:
            tiers["three"].append(category_id)
        elif unanswered == 2:
            tiers["two"].append(category_id)
        elif unanswered == 1:
            tiers["one"].append(category_id)
        tiers["any"].append(category_id)

    selected: List[str] = []
    for tier in ("three", "two", "one", "any"):
        for category_id in _shuffle_or_sample(tiers[tier], params):
            if category_id not in selected:
                selected.append(category_id)
    return selected[:CATEGORIES_PER_BOARD]


def _pick_questions(db: Session, category_id: str, query, params: BoardParams) -> List[Question]:
    scoped = query.filter(Question.category_id == category_id)
    if params.mode == "date":
        return scoped.order_by(Question.value.asc()).limit(QUESTIONS_PER_CATEGORY).all()

    date_groups = (
        scoped.filter(Question.air_date.isnot(None))
        .with_entities(Question.air_date, func.count(Question.id).label("n"))
        .group_by(Question.air_date)
        .order_by(func.count(Question.id).desc(), Question.air_date.desc())
        .all()
    )
    best_date = next((d for d, n in date_groups if n >= QUESTIONS_PER_CATEGORY), None)
    if best_date is None and date_groups:
        best_date = date_groups[0][0]
    if best_date is not None:
        scoped = scoped.filter(Question.air_date == best_date)
    return scoped.order_by(Question.value.asc()).limit(QUESTIONS_PER_CATEGORY).all()


def serialize_board_question(question: Question) -> dict:
    return {
        "id": question.id,
        "question": question.question,
        "answer": question.answer,
        "value": question.value,
        "isDoubleJeopardy": question.is_double_jeopardy,
        "wasTripleStumper": question.was_triple_stumper,
        "categoryId": question.category_id,
    }


def _no_categories_message(policy: SpoilerPolicy) -> str:
    cutoff = format_cutoff_date(policy)
    if cutoff:
        return (
            f"No eligible categories found. Your spoiler protection blocks questions from {cutoff} and later. "
            "Try selecting an earlier episode date or adjusting your spoiler settings."
        )
    return "No eligible categories found"


def _too_few_questions_message(policy: SpoilerPolicy, total: int, category_count: int) -> str:
    cutoff = format_cutoff_date(policy)
    if cutoff:
        return (
            f"Not enough questions available under your spoiler protection settings (blocking {cutoff} and later). "
            f"Found {total} questions across {category_count} categories, but need at least {MIN_BOARD_QUESTIONS}. "
            "Try selecting an earlier episode date or adjusting your spoiler settings."
        )
    return (
        f"Not enough questions available. Found {total} questions across {category_count} categories, "
        f"but need at least {MIN_BOARD_QUESTIONS} total questions."
    )


def board_cache_key(params: BoardParams, policy: SpoilerPolicy) -> Optional[str]:
    # Unseeded boards are random per request
    if not params.seed and not params.game_id:
        return None
    return make_cache_key(BOARD_CACHE_NAMESPACE, {
        "gameId": params.game_id,
        "seed": params.seed,
        "round": params.round,
        "mode": params.mode,
        "date": params.date,
        "categories": params.categories,
        "categoryIds": params.category_ids,
        "categoryFilter": params.category_filter,
        "cutoff": policy.cutoff_date if policy.active else None,
    })


def build_game_board(
    db: Session,
    params: BoardParams,
    policy: SpoilerPolicy,
    *,
    user_id: Optional[str] = None,
) -> List[dict]:
    """Categories with their clues for one round; raises BoardUnavailableError."""
    cache_key = board_cache_key(params, policy)
    if cache_key:
        cached = default_cache.get(cache_key)
        if cached is not None:
            return cached

    base = _base_query(db, params, policy)
    query = _mode_filter(base, params)
    challenge = params.category_filter == TRIPLE_STUMPER
    if challenge:
        query = query.filter(Question.was_triple_stumper.is_(True))

    stumper_ids = _category_ids_with_questions(query)
    eligible_ids = list(stumper_ids)

    if challenge and len(eligible_ids) < CATEGORIES_PER_BOARD:
        have = set(eligible_ids)
        fallback = [cid for cid in _category_ids_with_questions(base) if cid not in have]
        eligible_ids += fallback[:CATEGORIES_PER_BOARD - len(eligible_ids)]
        logger.info(f"BOARD_CHALLENGE_FALLBACK | triple_stumper={len(stumper_ids)} | total={len(eligible_ids)}")

    if not eligible_ids:
        raise BoardUnavailableError(_no_categories_message(policy))

    if params.mode == "custom":
        selected = [cid for cid in params.category_ids if cid in eligible_ids]
    elif params.mode == "date":
        selected = eligible_ids
    elif challenge and user_id:
        selected = select_challenge_categories(db, eligible_ids, user_id, params)
        if not selected:
            selected = _shuffle_or_sample(eligible_ids, params)[:CATEGORIES_PER_BOARD]
    elif len(eligible_ids) <= CATEGORIES_PER_BOARD:
        selected = eligible_ids
    else:
        selected = _shuffle_or_sample(eligible_ids, params)[:CATEGORIES_PER_BOARD]

    names = dict(db.query(Category.id, Category.name).filter(Category.id.in_(selected)).all())
    stumper_set = set(stumper_ids)

    board = []
    for category_id in selected:
        # Fallback categories in challenge mode are not limited to triple stumpers
        scope = query if category_id in stumper_set else _mode_filter(base, params)
        questions = _pick_questions(db, category_id, scope, params)
        board.append({
            "id": category_id,
            "name": names.get(category_id, "Unknown"),
            "questions": [serialize_board_question(q) for q in questions],
        })

    if params.mode != "custom":
        board.sort(key=lambda c: c["name"].lower())

    total = sum(len(c["questions"]) for c in board)
    if total < MIN_BOARD_QUESTIONS:
        raise BoardUnavailableError(_too_few_questions_message(policy, total, len(board)))

    if cache_key:
        default_cache.set(cache_key, board, ttl_seconds=BOARD_CACHE_TTL_SECONDS)
    return board


# ---------- Final Jeopardy ----------

FINAL_CACHE_NAMESPACE = "final"


@dataclass
class FinalParams:
    mode: Optional[str] = None
    seed: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    category_ids: List[str] = field(default_factory=list)
    date: Optional[date] = None
    final_category_mode: str = "shuffle"
    final_category_id: Optional[str] = None
    game_id: Optional[str] = None


def serialize_final_clue(question: Question) -> dict:
    return {
        "id": question.id,
        "question": question.question,
        "answer": question.answer,
        "category": {"id": question.category.id, "name": question.category.name},
    }


def _final_query(db: Session, params: FinalParams, policy: SpoilerPolicy):
    # Picking a specific episode's final bypasses the spoiler filter
    by_episode = params.date is not None and (params.mode == "date" or params.final_category_mode == "byDate")
    if by_episode:
        query = db.query(Question).filter(Question.round == JeopardyRound.FINAL, Question.air_date == params.date)
    else:
        query = apply_air_date_filter(db.query(Question).filter(Question.round == JeopardyRound.FINAL), policy)
        query = _mode_filter(query, BoardParams(
            mode=params.mode, categories=params.categories, category_ids=params.category_ids,
        ))
    if params.final_category_mode == "specificCategory" and params.final_category_id:
        query = query.filter(Question.category_id == params.final_category_id)
    return query


def final_cache_key(params: FinalParams, policy: SpoilerPolicy) -> Optional[str]:
    if not params.seed:
        return None
    return make_cache_key(FINAL_CACHE_NAMESPACE, {
        "gameId": params.game_id,
        "seed": params.seed,
        "mode": params.mode,
        "date": params.date,
        "categories": params.categories,
        "categoryIds": params.category_ids,
        "finalCategoryMode": params.final_category_mode,
        "finalCategoryId": params.final_category_id,
        "cutoff": policy.cutoff_date if policy.active else None,
    })


def _no_final_message(policy: SpoilerPolicy) -> str:
    cutoff = format_cutoff_date(policy)
    if cutoff:
        return (
            "No Final Jeopardy questions found matching the criteria. "
            f"Your spoiler protection blocks questions from {cutoff} and later. "
            "Try selecting an earlier episode date or adjusting your spoiler settings."
        )
    return "No Final Jeopardy questions found matching the criteria"


def select_final_clue(db: Session, params: FinalParams, policy: SpoilerPolicy) -> dict:
    """
    One Final Jeopardy clue for a game.

    Seeded games always get the same clue for the same settings; otherwise the
    pick is random. Raises BoardUnavailableError when nothing matches.
    """
    cache_key = final_cache_key(params, policy)
    if cache_key:
        cached = default_cache.get(cache_key)
        if cached is not None:
            return cached

    query = _final_query(db, params, policy)
    total = query.count()
    if total == 0:
        raise BoardUnavailableError(_no_final_message(policy))

    if params.seed:
        index = random.Random(f"{params.seed}FINAL").randrange(total)
    else:
        index = random.randrange(total)
    question = query.order_by(Question.id).offset(index).first()
    logger.info(f"FINAL_SELECTED | question_id={question.id} | candidates={total} | seeded={bool(params.seed)}")

    clue = serialize_final_clue(question)
    if cache_key:
        default_cache.set(cache_key, clue, ttl_seconds=BOARD_CACHE_TTL_SECONDS)
    return clue
