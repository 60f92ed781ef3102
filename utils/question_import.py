"""Persist scraped games into Category/Question rows."""

import logging
from datetime import date
from typing import Optional, Union

from sqlalchemy.orm import Session

from models import Category, Difficulty, JeopardyRound, KnowledgeCategory, Question
from utils.jarchive_scraper import ParsedGame

logger = logging.getLogger(__name__)


def parse_air_date(value: Union[str, date, None]) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def upsert_category(db: Session, name: str, knowledge_category: Optional[str] = None) -> Category:
    category = db.query(Category).filter(Category.name == name).first()
    if category is None:
        category = Category(
            name=name,
            knowledge_category=KnowledgeCategory(knowledge_category or "GENERAL_KNOWLEDGE"),
        )
        db.add(category)
        db.flush()
    return category


def save_game_to_database(
    db: Session,
    game: ParsedGame,
    air_date: Union[str, date, None],
    *,
    season: Optional[int] = None,
    match_round: bool = True,
) -> dict:
    """
    Insert every question of `game`, skipping ones already stored.

    A question is a duplicate when its text and air date match (and its round,
    unless `match_round` is False). Commits once at the end.
    """
    aired = parse_air_date(air_date)
    created = 0
    skipped = 0

    try:
        for parsed in game.questions:
            round_value = JeopardyRound(parsed.round or "SINGLE")
            dup = db.query(Question.id).filter(Question.question == parsed.question, Question.air_date == aired)
            if match_round:
                dup = dup.filter(Question.round == round_value)
            if dup.first() is not None:
                skipped += 1
                continue

            category = upsert_category(db, parsed.category, parsed.knowledge_category)
            db.add(Question(
                question=parsed.question,
                answer=parsed.answer,
                value=parsed.value,
                difficulty=Difficulty(parsed.difficulty or "MEDIUM"),
                knowledge_category=KnowledgeCategory(parsed.knowledge_category or "GENERAL_KNOWLEDGE"),
                category_id=category.id,
                air_date=aired,
                season=season,
                episode_id=game.game_id,
                round=round_value,
                is_double_jeopardy=round_value == JeopardyRound.DOUBLE,
                was_triple_stumper=bool(parsed.was_triple_stumper),
            ))
            created += 1
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"GAME_SAVED | game_id={game.game_id} | air_date={aired} | created={created} | skipped={skipped}")
    return {"created": created, "skipped": skipped}


def push_game_to_database(db: Session, game: ParsedGame, *, season: Optional[int] = None) -> dict:
    """Admin push: dedupe on text + air date only, as the admin tool always has."""
    return save_game_to_database(db, game, game.air_date, season=season, match_round=False)
