"""
Backfill historical Jeopardy! clues from J-Archive into a JSON file.

Games are fetched one at a time with a delay between requests, deduplicated
by content hash and checkpointed so an interrupted run can pick up again.

Run with:
    python scripts/backfill_jarchive.py --start-season 35 --end-season 40
    python scripts/backfill_jarchive.py --start-date 2020-01-01 --end-date 2024-12-31 --append --resume
"""

import argparse
import hashlib
import json
import logging
import os
import re
import sys
import time
import uuid
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Set

# Add parent directory to path to allow imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import requests
from bs4 import BeautifulSoup

from config import JARCHIVE_BASE_URL, JARCHIVE_TIMEOUT_SECONDS
from utils.jarchive_scraper import DEFAULT_USER_AGENT, JArchiveScraper, parse_game_html

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

PROGRESS_FILE = os.path.join("data", ".backfill-progress.json")
DEFAULT_OUTPUT = os.path.join("data", "jeopardy_questions.json")
MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 5
MAX_ERRORS = 50
CHECKPOINT_EVERY = 10
# Board values were doubled on this date; older games are scaled up to match.
VALUES_DOUBLED_ON = date(2001, 11, 26)

KNOWLEDGE_PATTERNS = [
    ("ARTS_AND_LITERATURE", 3, r"\b(novel|book|author|poem|poetry|playwright|fiction|literature|literary)\b"),
    ("ARTS_AND_LITERATURE", 3, r"\b(art|artist|painting|sculpture|museum|gallery|exhibition)\b"),
    ("GEOGRAPHY_AND_HISTORY", 2, r"\b(capital|continent|river|mountain|ocean|sea|country|nation)\b"),
    ("GEOGRAPHY_AND_HISTORY", 2, r"\b(ancient|historical|empire|dynasty|civilization|war|battle|president)\b"),
    ("ENTERTAINMENT", 3, r"\b(movie|film|actor|actress|director|tv|television|song|album|band)\b"),
    ("SCIENCE_AND_NATURE", 3, r"\b(biology|chemistry|physics|astronomy|scientist|experiment|element)\b"),
    ("SCIENCE_AND_NATURE", 2, r"\b(animal|plant|species|ecosystem|habitat|wildlife)\b"),
    ("SPORTS_AND_LEISURE", 3, r"\b(baseball|football|basketball|soccer|tennis|golf|olympics?|athlete)\b"),
]


class GameNotFound(Exception):
    pass


def analyze_content(text: str) -> str:
    """Weighted keyword vote; weak signals fall back to GENERAL_KNOWLEDGE."""
    scores: Dict[str, int] = {}
    for knowledge, weight, pattern in KNOWLEDGE_PATTERNS:
        if re.search(pattern, text, re.IGNORECASE):
            scores[knowledge] = scores.get(knowledge, 0) + weight

    best, best_score = "GENERAL_KNOWLEDGE", 0
    for knowledge, score in scores.items():
        if score > best_score:
            best, best_score = knowledge, score
    return best if best_score > 2 else "GENERAL_KNOWLEDGE"


def determine_knowledge_category(category_name: str, clues: Iterable[dict]) -> str:
    # the category name counts three times as much as any single clue
    combined = f"{category_name} {category_name} {category_name} " + " ".join(
        f"{c['question']} {c['answer']}" for c in clues
    )
    return analyze_content(combined)


def question_hash(question: dict) -> str:
    key = f"{question['question']}|{question['answer']}|{question['category']}".lower()
    return hashlib.md5(key.encode("utf-8")).hexdigest()


def episode_fields(game_id: int) -> dict:
    text = str(game_id)
    if len(text) < 3:
        return {"season": None, "episodeId": None}
    season, episode = int(text[:-2]), int(text[-2:])
    return {"season": season, "episodeId": f"S{season:02d}E{episode:03d}"}


def fetch_with_retry(session: requests.Session, url: str, *, retries: int = MAX_RETRIES,
                     retry_delay: float = RETRY_DELAY_SECONDS, timeout: float = JARCHIVE_TIMEOUT_SECONDS) -> str:
    last_error: Optional[Exception] = None
    for attempt in range(1, retries + 1):
        try:
            response = session.get(url, timeout=timeout)
            if response.status_code == 404:
                raise GameNotFound(url)
            if response.status_code == 429:
                logger.warning(f"Rate limited, waiting {retry_delay * 2}s...")
                time.sleep(retry_delay * 2)
                continue
            response.raise_for_status()
            return response.text
        except requests.RequestException as e:
            last_error = e
            if attempt < retries:
                logger.warning(f"Retry {attempt}/{retries} after error: {e}")
                time.sleep(retry_delay)
    if last_error is not None:
        raise last_error
    raise RuntimeError("Max retries exceeded")


def scrape_game(session: requests.Session, game_id: int, *, base_url: str = JARCHIVE_BASE_URL) -> List[dict]:
    """All regular-round clues of one game, or [] when the page has no air date."""
    html = fetch_with_retry(session, f"{base_url.rstrip('/')}/showgame.php?game_id={game_id}")
    soup = BeautifulSoup(html, "html.parser")

    title = soup.title.get_text() if soup.title else ""
    match = re.search(r"aired\s+(\d{4}-\d{2}-\d{2})", title)
    if not match:
        return []
    air_date = match.group(1)
    multiplier = 2 if date.fromisoformat(air_date) < VALUES_DOUBLED_ON else 1

    parsed = parse_game_html(soup, str(game_id))
    episode = episode_fields(game_id)
    questions: List[dict] = []
    for category in parsed.categories:
        if category.round == "FINAL":
            continue
        clues = [
            {
                "question": q.question,
                "answer": q.answer,
                "value": q.value * multiplier,
                "wasTripleStumper": q.was_triple_stumper,
            }
            for q in category.questions
            if q.question and q.answer and q.answer != "[Answer not found]"
        ]
        if not clues:
            continue
        knowledge = determine_knowledge_category(category.name, clues)
        for clue in clues:
            questions.append({
                "id": str(uuid.uuid4()),
                **clue,
                "category": category.name,
                "knowledgeCategory": knowledge,
                "airDate": air_date,
                "season": episode["season"],
                "episodeId": episode["episodeId"],
                "isDoubleJeopardy": category.round == "DOUBLE",
                "round": category.round,
            })
    return questions


def load_progress(path: str = PROGRESS_FILE) -> Optional[dict]:
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading progress: {e}")
        return None


def save_progress(progress: dict, path: str = PROGRESS_FILE) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(progress, f, indent=2)


def write_questions(path: str, questions: List[dict]) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(questions, f, indent=2)


def _in_range(air_date: str, start: Optional[str], end: Optional[str]) -> bool:
    return (not start or air_date >= start) and (not end or air_date <= end)


def backfill(
    *,
    start_season: int,
    end_season: Optional[int] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    output: str = DEFAULT_OUTPUT,
    append: bool = False,
    resume: bool = False,
    delay_ms: int = 1500,
    progress_path: str = PROGRESS_FILE,
    session: Optional[requests.Session] = None,
    base_url: str = JARCHIVE_BASE_URL,
) -> dict:
    session = session or requests.Session()
    session.headers.update({"User-Agent": DEFAULT_USER_AGENT})
    scraper = JArchiveScraper(base_url=base_url, session=session)

    all_questions: List[dict] = []
    seen: Set[str] = set()
    if append and os.path.exists(output):
        with open(output, "r", encoding="utf-8") as f:
            all_questions = json.load(f)
        seen.update(question_hash(q) for q in all_questions)
        logger.info(f"{len(all_questions)} existing questions loaded")

    processed: Set[int] = set()
    if resume:
        progress = load_progress(progress_path)
        if progress:
            processed.update(progress.get("processedGameIds", []))
            logger.info(f"Resuming from game {progress.get('lastGameId')} | {len(processed)} games already processed")

    if end_season is None:
        end_season = scraper.get_current_season() or start_season

    games_processed = questions_added = errors = 0
    aborted = False
    for season in range(end_season, start_season - 1, -1):
        season_games = scraper.get_season_games(season)
        logger.info(f"Season {season}: found {len(season_games)} games")

        for info in sorted(season_games, key=lambda g: int(g.game_id)):
            game_id = int(info.game_id)
            if game_id in processed or not _in_range(info.air_date, start_date, end_date):
                continue

            try:
                questions = scrape_game(session, game_id, base_url=base_url)
            except GameNotFound:
                continue
            except (requests.RequestException, RuntimeError, ValueError) as e:
                errors += 1
                logger.error(f"Error processing game {game_id}: {e}")
                if errors > MAX_ERRORS:
                    logger.error("Too many errors, stopping...")
                    aborted = True
                    break
                continue

            fresh = []
            for question in questions:
                digest = question_hash(question)
                if digest not in seen:
                    seen.add(digest)
                    fresh.append(question)
            if fresh:
                all_questions.extend(fresh)
                questions_added += len(fresh)
                logger.info(f"Game {game_id} ({info.air_date}): {len(fresh)} questions")

            processed.add(game_id)
            games_processed += 1
            if games_processed % CHECKPOINT_EVERY == 0:
                save_progress({
                    "lastGameId": game_id,
                    "processedGameIds": sorted(processed),
                    "totalQuestions": len(all_questions),
                    "lastUpdated": datetime.utcnow().isoformat(),
                }, progress_path)
                write_questions(output, all_questions)

            if delay_ms:
                time.sleep(delay_ms / 1000)
        if aborted:
            break

    write_questions(output, all_questions)
    if not aborted and os.path.exists(progress_path):
        os.remove(progress_path)

    summary = {
        "gamesProcessed": games_processed,
        "questionsAdded": questions_added,
        "totalQuestions": len(all_questions),
        "errors": errors,
        "aborted": aborted,
        "output": output,
    }
    logger.info(f"BACKFILL_COMPLETE | {summary}")
    return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Backfill J-Archive clues into a JSON file")
    parser.add_argument("--start-season", type=int, default=1)
    parser.add_argument("--end-season", type=int, default=None, help="Defaults to the current season")
    parser.add_argument("--start-date", default=None, help="Only keep games aired on or after YYYY-MM-DD")
    parser.add_argument("--end-date", default=None, help="Only keep games aired on or before YYYY-MM-DD")
    parser.add_argument("--output", default=DEFAULT_OUTPUT)
    parser.add_argument("--append", action="store_true", help="Add to the existing output file")
    parser.add_argument("--resume", action="store_true", help="Skip games recorded in the progress checkpoint")
    parser.add_argument("--delay", type=int, default=1500, help="Delay between requests in ms")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        backfill(
            start_season=args.start_season,
            end_season=args.end_season,
            start_date=args.start_date,
            end_date=args.end_date,
            output=args.output,
            append=args.append,
            resume=args.resume,
            delay_ms=args.delay,
        )
    except Exception as e:
        logger.error(f"Backfill failed: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
