"""Admin/dispute approved alternate answers."""

import re
from typing import List, Sequence

from sqlalchemy.orm import Session

from models import AnswerOverride
from utils.answer_checker import check_answer, strip_accents

_DASHES = re.compile("[\u2010-\u2015\u2212\uFE58\uFE63\uFF0D-]")


def normalize_answer_for_override(answer: str) -> str:
    """Normalize override text the same way the checker normalizes answers (articles kept)."""
    text = strip_accents(answer).lower()
    text = _DASHES.sub(" ", text)
    text = re.sub(r"[^a-z0-9\s&]", "", text)
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"\s*&\s*", " and ", text)
    return text.strip()


def get_question_overrides(db: Session, question_id: str) -> List[AnswerOverride]:
    return (
        db.query(AnswerOverride)
        .filter(AnswerOverride.question_id == question_id)
        .order_by(AnswerOverride.created_at.asc())
        .all()
    )


def is_answer_accepted_with_overrides(
    user_answer: str, canonical_answer: str, overrides: Sequence[AnswerOverride]
) -> bool:
    return check_answer(user_answer, canonical_answer, [o.text for o in overrides])
