"""Questions repository layer."""

import random
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload


def list_categories_with_counts(db: Session, *, policy, knowledge_category: Optional[str] = None,
                                name_contains: Optional[str] = None, limit: Optional[int] = None,
                                offset: int = 0):
    from models import Category, KnowledgeCategory, Question
    from utils.spoiler import apply_air_date_filter

    query = (
        db.query(Category.id, Category.name, Category.knowledge_category, func.count(Question.id))
        .join(Question, Question.category_id == Category.id)
    )
    query = apply_air_date_filter(query, policy)
    if knowledge_category:
        query = query.filter(Category.knowledge_category == KnowledgeCategory(knowledge_category))
    if name_contains:
        query = query.filter(func.lower(Category.name).contains(name_contains.lower()))
    query = query.group_by(Category.id, Category.name, Category.knowledge_category).order_by(Category.name.asc())
    if offset:
        query = query.offset(offset)
    if limit:
        query = query.limit(limit)
    return query.all()


def build_question_query(db: Session, *, policy, category=None, knowledge_category=None, difficulty=None,
                         air_date_from=None, air_date_to=None):
    from models import Category, Difficulty, KnowledgeCategory, Question
    from utils.spoiler import apply_air_date_filter

    query = apply_air_date_filter(db.query(Question), policy)
    if category:
        query = query.join(Category, Category.id == Question.category_id).filter(Category.name == category)
    if knowledge_category:
        query = query.filter(Question.knowledge_category == KnowledgeCategory(knowledge_category))
    if difficulty:
        query = query.filter(Question.difficulty == Difficulty(difficulty))
    if air_date_from:
        query = query.filter(Question.air_date >= air_date_from)
    if air_date_to:
        query = query.filter(Question.air_date <= air_date_to)
    return query


def page_questions(query, *, page: int, limit: int):
    from models import Question

    return (
        query.options(joinedload(Question.category))
        .order_by(Question.air_date.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )


def get_question(db: Session, *, question_id: str):
    from models import Question

    return (
        db.query(Question)
        .options(joinedload(Question.category))
        .filter(Question.id == question_id)
        .first()
    )


def random_question(query):
    """Pick one row uniformly from `query` using count + offset."""
    count = query.count()
    if count == 0:
        return None
    return query.offset(random.randrange(count)).limit(1).first()


def shuffle_query(db: Session, *, policy, knowledge_category=None, round_name=None, exclude_id=None,
                  exclude_final=False):
    from models import JeopardyRound, KnowledgeCategory, Question
    from utils.spoiler import apply_air_date_filter

    query = apply_air_date_filter(db.query(Question), policy)
    if knowledge_category:
        query = query.filter(Question.knowledge_category == KnowledgeCategory(knowledge_category))
    if round_name:
        query = query.filter(Question.round == JeopardyRound(round_name))
    if exclude_final:
        query = query.filter(Question.round != JeopardyRound.FINAL)
    if exclude_id:
        query = query.filter(Question.id != exclude_id)
    return query.order_by(Question.id)
