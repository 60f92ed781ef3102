"""
Daily challenge generation and J-Archive content refresh.

Each day's challenge is the Final Jeopardy clue of one historical episode.
Episodes come from the admin-configured seasons (default: roughly 1-3 years
ago), must have aired at least `daily_challenge_min_lookback_days` before the
challenge date, and are not reused within 365 days. A question is never used
for two challenges.
"""

import logging
import time
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import JARCHIVE_REQUEST_DELAY_SECONDS
from models import DailyChallenge, JeopardyRound, Question
from utils.daily_challenge_dates import get_today_in_app_timezone
from utils.guest_sessions import get_guest_config
from utils.jarchive_scraper import JArchiveScraper
from utils.question_import import save_game_to_database

logger = logging.getLogger(__name__)

EPISODE_REUSE_WINDOW_DAYS = 365
DAYS_TO_GENERATE = 8
RECENT_GAME_DAYS = 7
FIRST_SEASON_YEAR_OFFSET = 1983  # season 1 aired in 1984


def default_seasons(for_date: date) -> List[int]:
    return [
        year - FIRST_SEASON_YEAR_OFFSET
        for year in range(for_date.year - 3, for_date.year)
        if year - FIRST_SEASON_YEAR_OFFSET > 0
    ]


def episode_index(for_date: date, attempt: int, count: int) -> int:
    return (for_date.year + for_date.month + for_date.day + attempt) % count


def _find_final_question(db: Session, air_date: date, episode_id: str) -> Optional[Question]:
    return (
        db.query(Question)
        .filter(
            Question.round == JeopardyRound.FINAL,
            Question.air_date == air_date,
            Question.episode_id == episode_id,
        )
        .first()
    )


def _is_date_conflict(error: IntegrityError) -> bool:
    text = str(error.orig).lower()
    if "question_id" in text:
        return False
    return "date" in text


def setup_daily_challenge(
    db: Session,
    for_date: date,
    max_retries: int = 5,
    scraper: Optional[JArchiveScraper] = None,
) -> Optional[DailyChallenge]:
    """Create the challenge for `for_date`; None when no eligible episode works out."""
    scraper = scraper or JArchiveScraper()
    config = get_guest_config(db)
    min_lookback_days = config.daily_challenge_min_lookback_days or 365

    seasons = config.daily_challenge_seasons if isinstance(config.daily_challenge_seasons, list) else None
    seasons = seasons or default_seasons(for_date)
    if not seasons:
        logger.error(f"DAILY_CHALLENGE_NO_SEASONS | date={for_date}")
        return None

    attempted_episodes = set()

    for attempt in range(max_retries):
        used_question_ids = {row[0] for row in db.query(DailyChallenge.question_id).distinct().all()}
        window_start = for_date - timedelta(days=EPISODE_REUSE_WINDOW_DAYS)
        recent = (
            db.query(DailyChallenge.episode_game_id, DailyChallenge.air_date)
            .filter(DailyChallenge.date >= window_start)
            .all()
        )
        excluded_episodes = {episode for episode, _ in recent if episode} | attempted_episodes
        excluded_air_dates = {aired.isoformat() for _, aired in recent if aired}

        episodes = []
        for season in seasons:
            episodes.extend(scraper.get_season_games(season))
        if not episodes:
            logger.error(f"DAILY_CHALLENGE_NO_EPISODES | date={for_date} | seasons={seasons}")
            return None

        newest_allowed = (for_date - timedelta(days=min_lookback_days)).isoformat()
        eligible = sorted(
            (
                e for e in episodes
                if e.air_date < newest_allowed
                and e.game_id not in excluded_episodes
                and e.air_date not in excluded_air_dates
            ),
            key=lambda e: e.air_date,
            reverse=True,
        )
        if not eligible:
            logger.error(f"DAILY_CHALLENGE_NO_ELIGIBLE_EPISODES | date={for_date} | episodes={len(episodes)}")
            return None

        episode = eligible[episode_index(for_date, attempt, len(eligible))]
        aired = date.fromisoformat(episode.air_date)
        logger.info(
            f"DAILY_CHALLENGE_EPISODE | date={for_date} | attempt={attempt + 1} | "
            f"game_id={episode.game_id} | air_date={episode.air_date} | eligible={len(eligible)}"
        )

        question = _find_final_question(db, aired, episode.game_id)
        if question is None:
            game = scraper.parse_game_by_id(episode.game_id)
            if game is None or not game.questions:
                logger.warning(f"DAILY_CHALLENGE_DOWNLOAD_FAILED | date={for_date} | game_id={episode.game_id}")
                attempted_episodes.add(episode.game_id)
                continue
            save_game_to_database(db, game, aired)
            question = _find_final_question(db, aired, episode.game_id)
            if question is None:
                logger.warning(f"DAILY_CHALLENGE_NO_FINAL | date={for_date} | game_id={episode.game_id}")
                attempted_episodes.add(episode.game_id)
                continue

        if question.id in used_question_ids:
            logger.warning(f"DAILY_CHALLENGE_QUESTION_USED | date={for_date} | question_id={question.id}")
            attempted_episodes.add(episode.game_id)
            continue

        challenge = DailyChallenge(
            date=for_date,
            question_id=question.id,
            air_date=question.air_date,
            episode_game_id=episode.game_id,
        )
        db.add(challenge)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if _is_date_conflict(e):
                logger.info(f"DAILY_CHALLENGE_EXISTS | date={for_date}")
                return db.query(DailyChallenge).filter(DailyChallenge.date == for_date).first()
            logger.warning(f"DAILY_CHALLENGE_CONFLICT | date={for_date} | attempt={attempt + 1} | error={e.orig}")
            attempted_episodes.add(episode.game_id)
            continue

        db.refresh(challenge)
        logger.info(
            f"DAILY_CHALLENGE_CREATED | date={for_date} | question_id={question.id} | game_id={episode.game_id}"
        )
        return challenge

    return None


def get_or_create_challenge(
    db: Session, for_date: date, scraper: Optional[JArchiveScraper] = None
) -> Optional[DailyChallenge]:
    challenge = db.query(DailyChallenge).filter(DailyChallenge.date == for_date).first()
    if challenge is not None:
        return challenge
    return setup_daily_challenge(db, for_date, scraper=scraper)


def _challenge_summary(day: date, status: str, challenge: Optional[DailyChallenge] = None, error=None) -> dict:
    entry = {"date": day.isoformat(), "status": status}
    if challenge is not None:
        entry["questionId"] = challenge.question_id
        entry["airDate"] = challenge.air_date.isoformat() if challenge.air_date else None
    if error:
        entry["error"] = error
    return entry


def generate_upcoming_challenges(
    db: Session,
    *,
    days: int = DAYS_TO_GENERATE,
    start: Optional[date] = None,
    scraper: Optional[JArchiveScraper] = None,
) -> dict:
    """Ensure a challenge exists for `start` and the following days."""
    start = start or get_today_in_app_timezone()
    scraper = scraper or JArchiveScraper()
    created = skipped = errors = 0
    results = []

    for offset in range(days):
        day = start + timedelta(days=offset)
        existing = db.query(DailyChallenge).filter(DailyChallenge.date == day).first()
        if existing is not None:
            skipped += 1
            results.append(_challenge_summary(day, "skipped", existing))
            continue

        try:
            challenge = setup_daily_challenge(db, day, scraper=scraper)
        except IntegrityError:
            db.rollback()
            skipped += 1
            existing = db.query(DailyChallenge).filter(DailyChallenge.date == day).first()
            results.append(_challenge_summary(day, "skipped", existing, error="Race condition"))
            continue
        except Exception as e:
            db.rollback()
            errors += 1
            logger.error(f"DAILY_CHALLENGE_GENERATION_ERROR | date={day} | error={e}", exc_info=True)
            results.append(_challenge_summary(day, "error", error=str(e)))
            continue

        if challenge is None:
            errors += 1
            results.append(_challenge_summary(day, "error", error="Failed to create challenge"))
        else:
            created += 1
            results.append(_challenge_summary(day, "created", challenge))

    logger.info(f"DAILY_CHALLENGE_GENERATION | created={created} | skipped={skipped} | errors={errors}")
    return {
        "success": True,
        "message": f"Generated daily challenges: {created} created, {skipped} skipped, {errors} errors",
        "created": created,
        "skipped": skipped,
        "errors": errors,
        "results": results,
    }


def fetch_game_for_date(db: Session, target: date, scraper: JArchiveScraper, *, match_round: bool = True) -> dict:
    game = scraper.parse_game_by_date(target.isoformat())
    if game is None or not game.questions:
        logger.info(f"JARCHIVE_NO_GAME | date={target}")
        return {"date": target.isoformat(), "found": False, "created": 0, "skipped": 0}
    saved = save_game_to_database(db, game, target, match_round=match_round)
    return {"date": target.isoformat(), "found": True, "gameId": game.game_id, **saved}


def fetch_yesterday_questions(
    db: Session, *, today: Optional[date] = None, scraper: Optional[JArchiveScraper] = None
) -> dict:
    today = today or get_today_in_app_timezone()
    result = fetch_game_for_date(db, today - timedelta(days=1), scraper or JArchiveScraper())
    return {
        "success": True,
        "message": "Questions fetched and updated successfully" if result["found"] else "No game found",
        **result,
    }


def fetch_recent_games(
    db: Session,
    *,
    days: int = RECENT_GAME_DAYS,
    today: Optional[date] = None,
    delay_seconds: float = JARCHIVE_REQUEST_DELAY_SECONDS,
    scraper: Optional[JArchiveScraper] = None,
) -> dict:
    """Fetch and store the games of the last `days` days, today included."""
    today = today or get_today_in_app_timezone()
    scraper = scraper or JArchiveScraper()
    total_created = total_skipped = total_errors = 0

    for offset in range(days):
        target = today - timedelta(days=offset)
        try:
            result = fetch_game_for_date(db, target, scraper, match_round=False)
        except Exception as e:
            total_errors += 1
            logger.error(f"FETCH_GAMES_ERROR | date={target} | error={e}")
            continue

        if not result["found"]:
            total_skipped += 1
            continue
        total_created += result["created"]
        total_skipped += result["skipped"]
        if delay_seconds:
            time.sleep(delay_seconds)

    logger.info(f"FETCH_GAMES_DONE | created={total_created} | skipped={total_skipped} | errors={total_errors}")
    return {"created": total_created, "skipped": total_skipped, "errors": total_errors}
