"""
Load question content from JSON files into the database.

Run with:
    python scripts/data_loader.py sample             # write and load the sample file
    python scripts/data_loader.py load <file-path>   # load questions from a JSON file
    python scripts/data_loader.py clear --confirm    # delete all content and answer history
"""

import argparse
import json
import logging
import os
import random
import sys
from collections import OrderedDict
from typing import Iterable, List, Optional, Tuple

# Add parent directory to path to allow imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session

from core.db import get_db_context
from models import Difficulty, GameHistory, KnowledgeCategory, Question, UserProgress
from utils.question_import import parse_air_date, upsert_category

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

BATCH_SIZE = 100
DEFAULT_SAMPLE_PATH = os.path.join("data", "sample_questions.json")

SAMPLE_QUESTIONS = [
    {
        "category": "SCIENCE & NATURE",
        "question": "This element's atomic number 79 & symbol Au comes from the Latin word for 'shining dawn'",
        "answer": "Gold",
        "value": 400,
    },
    {
        "category": "SCIENCE & NATURE",
        "question": "The speed of light is approximately 186,282 of these units per second",
        "answer": "Miles",
        "value": 600,
    },
    {
        "category": "BUSINESS & FINANCE",
        "question": "This fruit-named tech company became the first U.S. company to reach a $1 trillion market cap",
        "answer": "Apple",
        "value": 800,
    },
    {
        "category": "BUSINESS & FINANCE",
        "question": "TSLA is the stock symbol for this electric car company",
        "answer": "Tesla",
        "value": 400,
    },
    {
        "category": "GEOGRAPHY",
        "question": "The United Kingdom consists of Great Britain & this island to its west",
        "answer": "Ireland",
        "value": 200,
    },
]


def determine_difficulty(value: Optional[int]) -> Tuple[Difficulty, int]:
    """Difficulty for a clue value; a missing value gets a random one in the board range."""
    if not value:
        value = random.randint(200, 999)
    if value <= 400:
        return Difficulty.EASY, value
    if value <= 800:
        return Difficulty.MEDIUM, value
    return Difficulty.HARD, value


def group_questions(questions: Iterable[dict]) -> "OrderedDict[Tuple[str, Optional[str]], List[dict]]":
    groups: "OrderedDict[Tuple[str, Optional[str]], List[dict]]" = OrderedDict()
    for raw in questions:
        groups.setdefault((raw["category"], raw.get("airDate")), []).append(raw)
    return groups


def _is_duplicate(db: Session, category_id: str, raw: dict) -> bool:
    query = db.query(Question.id).filter(
        Question.category_id == category_id,
        Question.question == raw["question"],
        Question.answer == raw["answer"],
        Question.air_date == parse_air_date(raw.get("airDate")),
    )
    return query.first() is not None


def load_questions(db: Session, questions: List[dict]) -> dict:
    """Insert questions grouped by category and air date, skipping ones already stored."""
    created = skipped = 0
    logger.info(f"Processing {len(questions)} questions...")

    for (category_name, air_date), group in group_questions(questions).items():
        # every question in a group shares the first one's knowledge category
        knowledge = group[0].get("knowledgeCategory") or KnowledgeCategory.GENERAL_KNOWLEDGE.value
        category = upsert_category(db, category_name, knowledge)

        for start in range(0, len(group), BATCH_SIZE):
            for raw in group[start:start + BATCH_SIZE]:
                if _is_duplicate(db, category.id, raw):
                    skipped += 1
                    continue
                difficulty, value = determine_difficulty(raw.get("value"))
                db.add(Question(
                    question=raw["question"],
                    answer=raw["answer"],
                    value=value,
                    difficulty=difficulty,
                    category_id=category.id,
                    knowledge_category=KnowledgeCategory(knowledge),
                    air_date=parse_air_date(air_date),
                    season=raw.get("season"),
                    episode_id=raw.get("episodeId"),
                    was_triple_stumper=bool(raw.get("wasTripleStumper")),
                ))
                created += 1
            db.commit()

        logger.info(f"Processed category: {category_name}")

    logger.info(f"Data import completed | created={created} | skipped={skipped}")
    return {"created": created, "skipped": skipped}


def read_questions(file_path: str) -> List[dict]:
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return data if isinstance(data, list) else [data]


def write_sample_file(file_path: str = DEFAULT_SAMPLE_PATH) -> str:
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(SAMPLE_QUESTIONS, f, indent=2)
    return file_path


def clear_all_data(db: Session) -> None:
    """Delete answer history, progress, questions and categories."""
    from models import (
        AnswerDispute, AnswerOverride, Category, DailyChallenge, GameQuestion, GuestGameQuestion,
        IssueReport, UserDailyChallenge,
    )

    db.query(IssueReport).update({IssueReport.question_id: None}, synchronize_session=False)
    for model in (
        AnswerDispute, AnswerOverride, UserDailyChallenge, DailyChallenge, GameQuestion, GuestGameQuestion,
        GameHistory, UserProgress, Question, Category,
    ):
        db.query(model).delete(synchronize_session=False)
    db.commit()
    logger.info("All data cleared")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Load question content into the database")
    sub = parser.add_subparsers(dest="command", required=True)

    sample = sub.add_parser("sample", help="Write the sample question file and load it")
    sample.add_argument("--output", default=DEFAULT_SAMPLE_PATH)

    load = sub.add_parser("load", help="Load questions from a JSON file")
    load.add_argument("file_path")

    clear = sub.add_parser("clear", help="Delete all content and answer history")
    clear.add_argument("--confirm", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "clear" and not args.confirm:
        logger.warning("Please add --confirm to clear all data")
        return 1

    with get_db_context() as db:
        if args.command == "sample":
            path = write_sample_file(args.output)
            load_questions(db, read_questions(path))
        elif args.command == "load":
            load_questions(db, read_questions(args.file_path))
        else:
            clear_all_data(db)
    return 0


if __name__ == "__main__":
    sys.exit(main())
