"""
Achievement definitions and unlock checks.

Definitions live here as constants; only unlocks are stored, one
UserAchievement row per (user, code). Each event type checks the subset of
codes listed in EVENT_TO_ACHIEVEMENTS, and callers report whatever was newly
unlocked back to the client.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import distinct, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import (
    DailyChallenge,
    Game,
    GameHistory,
    GameQuestion,
    GameStatus,
    JeopardyRound,
    KnowledgeCategory,
    Question,
    User,
    UserAchievement,
    UserDailyChallenge,
)
from utils.daily_challenge_dates import _local_now, get_active_challenge_date

logger = logging.getLogger(__name__)

GAME_COMPLETED = "game_completed"
QUESTION_ANSWERED = "question_answered"
DAILY_CHALLENGE_COMPLETED = "daily_challenge_completed"
STREAK_UPDATED = "streak_updated"
PROFILE_UPDATED = "profile_updated"

ACCURACY_SAMPLE_SIZE = 500
CATEGORY_MASTER_TARGET = 50
RETURNING_PLAYER_GAP_DAYS = 7
MIDNIGHT_WINDOW_END_HOUR = 3
LEADERBOARD_BADGE_LIMIT = 3
LEADERBOARD_MIN_TIER = 3


@dataclass(frozen=True)
class AchievementDefinition:
    code: str
    name: str
    description: str
    icon: str
    category: str
    tier: int
    is_hidden: bool = False

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "category": self.category,
            "tier": self.tier,
            "isHidden": self.is_hidden,
        }


def _a(code, name, description, icon, category, tier, hidden=False):
    return AchievementDefinition(code, name, description, icon, category, tier, hidden)


ACHIEVEMENT_DEFINITIONS: List[AchievementDefinition] = [
    # Onboarding
    _a("FIRST_GAME", "Welcome to the Stage", "Complete your first game", "🎬", "onboarding", 1),
    _a("FIRST_CORRECT", "In the Black", "Answer your first question correctly", "✅", "onboarding", 1),
    _a("FIRST_DAILY_CHALLENGE", "Daily Debut", "Complete your first daily challenge", "📆", "onboarding", 1),
    _a("FIRST_TRIPLE_STUMPER", "Stumped No More", "Answer your first triple stumper correctly", "🧩",
       "onboarding", 1),
    _a("FIRST_PERFECT_ROUND", "Flawless First", "Answer every question correctly in a single round", "✨",
       "onboarding", 2),
    _a("PROFILE_CUSTOMIZED", "Make It Yours", "Customize your display name and icon", "🎨", "onboarding", 1),
    # Streaks
    _a("STREAK_3", "Getting Started", "Maintain a 3-day playing streak", "🌱", "streak", 1),
    _a("STREAK_7", "Week Warrior", "Maintain a 7-day playing streak", "🔥", "streak", 2),
    _a("STREAK_14", "Fortnight Focus", "Maintain a 14-day playing streak", "⚡", "streak", 3),
    _a("STREAK_30", "Monthly Master", "Maintain a 30-day playing streak", "💪", "streak", 4),
    _a("STREAK_100", "Centurion", "Maintain a 100-day playing streak", "👑", "streak", 5),
    _a("DAILY_CHALLENGE_STREAK_3", "Daily Devotee", "Complete 3 daily challenges in a row", "📅", "streak", 1),
    _a("DAILY_CHALLENGE_STREAK_7", "Week of Wisdom", "Complete 7 daily challenges in a row", "📆", "streak", 2),
    _a("DAILY_CHALLENGE_STREAK_30", "Month of Mastery", "Complete 30 daily challenges in a row", "🗓️",
       "streak", 4),
    _a("RETURNING_PLAYER", "Back in the Game", "Return after not playing for 7+ days", "🔄", "streak", 1),
    # Volume
    _a("QUESTIONS_50", "Getting Warmed Up", "Answer 50 questions", "📚", "volume", 1),
    _a("QUESTIONS_100", "Century Club", "Answer 100 questions", "💯", "volume", 2),
    _a("QUESTIONS_500", "Half a Grand", "Answer 500 questions", "📖", "volume", 3),
    _a("QUESTIONS_1000", "Millennium Master", "Answer 1,000 questions", "🌟", "volume", 4),
    _a("QUESTIONS_5000", "Knowledge Keeper", "Answer 5,000 questions", "📜", "volume", 5),
    _a("TRIPLE_STUMPER_10", "Stumper Solver", "Answer 10 triple stumpers correctly", "🧠", "volume", 2),
    _a("TRIPLE_STUMPER_50", "Stumper Specialist", "Answer 50 triple stumpers correctly", "🎯", "volume", 3),
    _a("TRIPLE_STUMPER_100", "Stumper Sage", "Answer 100 triple stumpers correctly", "🏛️", "volume", 4),
    _a("GAMES_COMPLETED_10", "Regular Player", "Complete 10 games", "🎮", "volume", 2),
    _a("GAMES_COMPLETED_50", "Dedicated Competitor", "Complete 50 games", "🎯", "volume", 3),
    _a("GAMES_COMPLETED_100", "Century of Games", "Complete 100 games", "🏆", "volume", 4),
    # Skill
    _a("PERFECT_ROUND", "Perfect Round", "Answer every question correctly in a single round", "⭐", "skill", 2),
    _a("PERFECT_GAME", "Flawless Victory", "Answer every question correctly in a complete game", "💎", "skill", 5),
    _a("SCORE_5000", "Five Grand", "Score $5,000 or more in a single game", "💵", "skill", 1),
    _a("SCORE_10000", "Ten Thousand Club", "Score $10,000 or more in a single game", "💰", "skill", 2),
    _a("SCORE_15000", "Fifteen Grand", "Score $15,000 or more in a single game", "💸", "skill", 3),
    _a("SCORE_20000", "Twenty Grand", "Score $20,000 or more in a single game", "🏆", "skill", 4),
    _a("SCORE_30000", "Thirty Grand", "Score $30,000 or more in a single game", "👑", "skill", 5),
    _a("ACCURACY_80_PERCENT", "Sharp Shooter", "Achieve 80% accuracy across 50+ questions", "🎯", "skill", 2),
    _a("ACCURACY_90_PERCENT", "Precision Master", "Achieve 90% accuracy across 100+ questions", "🎖️",
       "skill", 3),
    _a("ACCURACY_95_PERCENT", "Near Perfect", "Achieve 95% accuracy across 200+ questions", "💫", "skill", 4),
    _a("FINAL_JEOPARDY_CORRECT", "Final Answer", "Answer a Final Jeopardy question correctly", "🎭", "skill", 2),
    _a("FINAL_JEOPARDY_STREAK_5", "Final Five", "Answer 5 Final Jeopardy questions correctly", "🎪", "skill", 3),
    # Knowledge
    _a("CATEGORY_MASTER_GEOGRAPHY", "World Traveler", "Answer 50 Geography & History questions correctly",
       "🌍", "knowledge", 2),
    _a("CATEGORY_MASTER_ENTERTAINMENT", "Pop Culture Pro", "Answer 50 Entertainment questions correctly",
       "🎬", "knowledge", 2),
    _a("CATEGORY_MASTER_ARTS", "Renaissance Mind", "Answer 50 Arts & Literature questions correctly",
       "🎨", "knowledge", 2),
    _a("CATEGORY_MASTER_SCIENCE", "Science Scholar", "Answer 50 Science & Nature questions correctly",
       "🔬", "knowledge", 2),
    _a("CATEGORY_MASTER_SPORTS", "Sports Savant", "Answer 50 Sports & Leisure questions correctly",
       "⚽", "knowledge", 2),
    _a("CATEGORY_MASTER_GENERAL", "Generalist", "Answer 50 General Knowledge questions correctly",
       "📚", "knowledge", 2),
    _a("ALL_CATEGORIES_MASTER", "Renaissance Person", "Master all six knowledge categories (50+ correct in each)",
       "🎓", "knowledge", 4),
    # Hidden
    _a("STREAK_69", "Nice", "Maintain a 69-day playing streak", "😏", "hidden", 3, True),
    _a("QUESTIONS_1337", "Leet Knowledge", "Answer 1,337 questions", "💻", "hidden", 3, True),
    _a("SCORE_1984", "Big Brother", "Score exactly $1,984 in a game", "📖", "hidden", 2, True),
    _a("DAILY_CHALLENGE_MIDNIGHT", "Night Owl", "Complete a daily challenge between midnight and 3 AM", "🦉",
       "hidden", 1, True),
    _a("PERFECT_ROUND_DOUBLE_JEOPARDY", "Double Down", "Answer every question correctly in a Double Jeopardy round",
       "⚡", "hidden", 4, True),
    _a("ALL_HIDDEN", "Secret Keeper", "Unlock all hidden achievements", "🔐", "hidden", 5, True),
]

ACHIEVEMENTS_BY_CODE: Dict[str, AchievementDefinition] = {a.code: a for a in ACHIEVEMENT_DEFINITIONS}

HIDDEN_CODES = [a.code for a in ACHIEVEMENT_DEFINITIONS if a.is_hidden and a.code != "ALL_HIDDEN"]

# Always shown next to a leaderboard name, whatever their tier
LEADERBOARD_SHOWCASE_CODES = (
    "STREAK_30", "STREAK_100", "QUESTIONS_1000", "QUESTIONS_5000", "PERFECT_GAME", "ALL_CATEGORIES_MASTER",
)

# code -> (stats key, target, unit)
COUNT_THRESHOLDS = {
    "FIRST_GAME": ("gamesCompleted", 1, "games"),
    "FIRST_CORRECT": ("correctAnswers", 1, "questions"),
    "FIRST_DAILY_CHALLENGE": ("dailyChallengesCompleted", 1, "daily challenges"),
    "FIRST_TRIPLE_STUMPER": ("tripleStumpers", 1, "triple stumpers"),
    "STREAK_3": ("currentStreak", 3, "days"),
    "STREAK_7": ("currentStreak", 7, "days"),
    "STREAK_14": ("currentStreak", 14, "days"),
    "STREAK_30": ("currentStreak", 30, "days"),
    "STREAK_69": ("currentStreak", 69, "days"),
    "STREAK_100": ("currentStreak", 100, "days"),
    "DAILY_CHALLENGE_STREAK_3": ("dailyChallengeStreak", 3, "days"),
    "DAILY_CHALLENGE_STREAK_7": ("dailyChallengeStreak", 7, "days"),
    "DAILY_CHALLENGE_STREAK_30": ("dailyChallengeStreak", 30, "days"),
    "QUESTIONS_50": ("questionsAnswered", 50, "questions"),
    "QUESTIONS_100": ("questionsAnswered", 100, "questions"),
    "QUESTIONS_500": ("questionsAnswered", 500, "questions"),
    "QUESTIONS_1000": ("questionsAnswered", 1000, "questions"),
    "QUESTIONS_1337": ("questionsAnswered", 1337, "questions"),
    "QUESTIONS_5000": ("questionsAnswered", 5000, "questions"),
    "TRIPLE_STUMPER_10": ("tripleStumpers", 10, "triple stumpers"),
    "TRIPLE_STUMPER_50": ("tripleStumpers", 50, "triple stumpers"),
    "TRIPLE_STUMPER_100": ("tripleStumpers", 100, "triple stumpers"),
    "GAMES_COMPLETED_10": ("gamesCompleted", 10, "games"),
    "GAMES_COMPLETED_50": ("gamesCompleted", 50, "games"),
    "GAMES_COMPLETED_100": ("gamesCompleted", 100, "games"),
    "FINAL_JEOPARDY_CORRECT": ("finalJeopardyCorrect", 1, "Final Jeopardy clues"),
    "FINAL_JEOPARDY_STREAK_5": ("finalJeopardyCorrect", 5, "Final Jeopardy clues"),
}

SCORE_THRESHOLDS = {
    "SCORE_5000": 5000,
    "SCORE_10000": 10000,
    "SCORE_15000": 15000,
    "SCORE_20000": 20000,
    "SCORE_30000": 30000,
}

# code -> (most recent answers considered, required ratio)
ACCURACY_THRESHOLDS = {
    "ACCURACY_80_PERCENT": (50, 0.8),
    "ACCURACY_90_PERCENT": (100, 0.9),
    "ACCURACY_95_PERCENT": (200, 0.95),
}

CATEGORY_MASTER_AREAS = {
    "CATEGORY_MASTER_GEOGRAPHY": KnowledgeCategory.GEOGRAPHY_AND_HISTORY,
    "CATEGORY_MASTER_ENTERTAINMENT": KnowledgeCategory.ENTERTAINMENT,
    "CATEGORY_MASTER_ARTS": KnowledgeCategory.ARTS_AND_LITERATURE,
    "CATEGORY_MASTER_SCIENCE": KnowledgeCategory.SCIENCE_AND_NATURE,
    "CATEGORY_MASTER_SPORTS": KnowledgeCategory.SPORTS_AND_LEISURE,
    "CATEGORY_MASTER_GENERAL": KnowledgeCategory.GENERAL_KNOWLEDGE,
}

EVENT_TO_ACHIEVEMENTS: Dict[str, List[str]] = {
    GAME_COMPLETED: [
        "FIRST_GAME", "FIRST_PERFECT_ROUND", "PERFECT_ROUND", "PERFECT_GAME", "PERFECT_ROUND_DOUBLE_JEOPARDY",
        *SCORE_THRESHOLDS, "SCORE_1984", "GAMES_COMPLETED_10", "GAMES_COMPLETED_50", "GAMES_COMPLETED_100",
    ],
    QUESTION_ANSWERED: [
        "FIRST_CORRECT", "FIRST_TRIPLE_STUMPER",
        "QUESTIONS_50", "QUESTIONS_100", "QUESTIONS_500", "QUESTIONS_1000", "QUESTIONS_1337", "QUESTIONS_5000",
        "TRIPLE_STUMPER_10", "TRIPLE_STUMPER_50", "TRIPLE_STUMPER_100",
        *ACCURACY_THRESHOLDS, "FINAL_JEOPARDY_CORRECT", "FINAL_JEOPARDY_STREAK_5",
        *CATEGORY_MASTER_AREAS, "ALL_CATEGORIES_MASTER",
    ],
    DAILY_CHALLENGE_COMPLETED: [
        "FIRST_DAILY_CHALLENGE", "DAILY_CHALLENGE_STREAK_3", "DAILY_CHALLENGE_STREAK_7",
        "DAILY_CHALLENGE_STREAK_30", "DAILY_CHALLENGE_MIDNIGHT",
    ],
    STREAK_UPDATED: [
        "STREAK_3", "STREAK_7", "STREAK_14", "STREAK_30", "STREAK_69", "STREAK_100", "RETURNING_PLAYER",
    ],
    PROFILE_UPDATED: ["PROFILE_CUSTOMIZED"],
}


@dataclass
class AchievementEvent:
    """What just happened; optional fields only matter to some event types."""
    type: str
    game_id: Optional[str] = None
    final_score: Optional[int] = None
    days_since_last_game: Optional[int] = None
    now: Optional[datetime] = None


# ---------- Stats ----------

def daily_challenge_streak(db: Session, user_id: str, active_date: date) -> int:
    """
    Consecutive completed daily challenges ending at the active challenge date.

    A streak that ended yesterday still counts until today's challenge is missed.

    Args:
        db: Database session
        user_id: User id
        active_date: Current challenge date (see get_active_challenge_date)

    Returns:
        Number of consecutive challenge days completed
    """
    completed = {
        challenge_date
        for (challenge_date,) in (
            db.query(DailyChallenge.date)
            .join(UserDailyChallenge, UserDailyChallenge.challenge_id == DailyChallenge.id)
            .filter(UserDailyChallenge.user_id == user_id, DailyChallenge.date <= active_date)
            .all()
        )
    }
    day = active_date if active_date in completed else active_date - timedelta(days=1)
    streak = 0
    while day in completed:
        streak += 1
        day -= timedelta(days=1)
    return streak


def knowledge_area_counts(db: Session, user_id: str) -> Dict[KnowledgeCategory, int]:
    """Distinct correctly answered questions per knowledge area."""
    rows = (
        db.query(Question.knowledge_category, func.count(distinct(GameHistory.question_id)))
        .select_from(GameHistory)
        .join(Question, Question.id == GameHistory.question_id)
        .filter(GameHistory.user_id == user_id, GameHistory.correct.is_(True))
        .group_by(Question.knowledge_category)
        .all()
    )
    return {area: count for area, count in rows}


def recent_results(db: Session, user_id: str) -> List[bool]:
    """Correct flags of the user's latest answers, newest first."""
    rows = (
        db.query(GameHistory.correct)
        .filter(GameHistory.user_id == user_id)
        .order_by(GameHistory.timestamp.desc())
        .limit(ACCURACY_SAMPLE_SIZE)
        .all()
    )
    return [bool(correct) for (correct,) in rows]


def _distinct_correct(db: Session, user_id: str, *criteria) -> int:
    return (
        db.query(func.count(distinct(GameHistory.question_id)))
        .join(Question, Question.id == GameHistory.question_id)
        .filter(GameHistory.user_id == user_id, GameHistory.correct.is_(True), *criteria)
        .scalar()
        or 0
    )


def get_achievement_stats(db: Session, user: User, now: Optional[datetime] = None) -> dict:
    """
    Counters the count-based achievements compare against.

    Args:
        db: Database session
        user: User object
        now: Reference instant for the daily challenge streak

    Returns:
        Dictionary keyed by the stats names used in COUNT_THRESHOLDS
    """
    answered = db.query(func.count(GameHistory.id)).filter(GameHistory.user_id == user.id).scalar() or 0
    correct = (
        db.query(func.count(GameHistory.id))
        .filter(GameHistory.user_id == user.id, GameHistory.correct.is_(True))
        .scalar()
        or 0
    )
    games = (
        db.query(func.count(Game.id))
        .filter(Game.user_id == user.id, Game.status == GameStatus.COMPLETED)
        .scalar()
        or 0
    )
    challenges = (
        db.query(func.count(UserDailyChallenge.id)).filter(UserDailyChallenge.user_id == user.id).scalar() or 0
    )
    stats = {
        "questionsAnswered": answered,
        "correctAnswers": correct,
        "gamesCompleted": games,
        "dailyChallengesCompleted": challenges,
        "dailyChallengeStreak": daily_challenge_streak(db, user.id, get_active_challenge_date(now)),
        "currentStreak": user.current_streak or 0,
        "tripleStumpers": _distinct_correct(db, user.id, Question.was_triple_stumper.is_(True)),
        "finalJeopardyCorrect": _distinct_correct(db, user.id, Question.round == JeopardyRound.FINAL),
    }
    logger.debug(f"ACHIEVEMENT_STATS | user_id={user.id} | {stats}")
    return stats


def _game_results(db: Session, game_id: str, round_name: Optional[JeopardyRound] = None) -> List[GameQuestion]:
    query = db.query(GameQuestion).filter(GameQuestion.game_id == game_id)
    if round_name is not None:
        query = query.join(Question, Question.id == GameQuestion.question_id).filter(Question.round == round_name)
    return query.all()


def is_perfect_round(db: Session, game_id: str, round_name: Optional[JeopardyRound] = None) -> bool:
    """At least one clue answered and every answered clue correct."""
    answered = [gq for gq in _game_results(db, game_id, round_name) if gq.answered]
    return bool(answered) and all(gq.correct is True for gq in answered)


def is_perfect_game(db: Session, game_id: str) -> bool:
    results = _game_results(db, game_id)
    return bool(results) and all(gq.answered and gq.correct is True for gq in results)


# ---------- Checks ----------

class _Checker:
    """Evaluates codes for one user and event, loading stats at most once."""

    def __init__(self, db: Session, user: User, event: AchievementEvent):
        self.db = db
        self.user = user
        self.event = event
        self._stats = None
        self._areas = None
        self._recent = None

    @property
    def stats(self) -> dict:
        if self._stats is None:
            self._stats = get_achievement_stats(self.db, self.user, self.event.now)
        return self._stats

    @property
    def areas(self) -> Dict[KnowledgeCategory, int]:
        if self._areas is None:
            self._areas = knowledge_area_counts(self.db, self.user.id)
        return self._areas

    @property
    def recent(self) -> List[bool]:
        if self._recent is None:
            self._recent = recent_results(self.db, self.user.id)
        return self._recent

    def qualifies(self, code: str) -> bool:
        event = self.event
        if code in COUNT_THRESHOLDS:
            key, target, _ = COUNT_THRESHOLDS[code]
            return self.stats[key] >= target
        if code in SCORE_THRESHOLDS:
            return event.final_score is not None and event.final_score >= SCORE_THRESHOLDS[code]
        if code == "SCORE_1984":
            return event.final_score == 1984
        if code in ACCURACY_THRESHOLDS:
            window, ratio = ACCURACY_THRESHOLDS[code]
            sample = self.recent[:window]
            return len(sample) >= window and sum(sample) / window >= ratio
        if code in CATEGORY_MASTER_AREAS:
            return self.areas.get(CATEGORY_MASTER_AREAS[code], 0) >= CATEGORY_MASTER_TARGET
        if code == "ALL_CATEGORIES_MASTER":
            return all(self.areas.get(area, 0) >= CATEGORY_MASTER_TARGET for area in KnowledgeCategory)
        if code in ("PERFECT_ROUND", "FIRST_PERFECT_ROUND"):
            return event.game_id is not None and is_perfect_round(self.db, event.game_id)
        if code == "PERFECT_ROUND_DOUBLE_JEOPARDY":
            return event.game_id is not None and is_perfect_round(self.db, event.game_id, JeopardyRound.DOUBLE)
        if code == "PERFECT_GAME":
            return event.game_id is not None and is_perfect_game(self.db, event.game_id)
        if code == "RETURNING_PLAYER":
            gap = event.days_since_last_game
            return gap is not None and gap >= RETURNING_PLAYER_GAP_DAYS and self.user.current_streak == 1
        if code == "DAILY_CHALLENGE_MIDNIGHT":
            return _local_now(event.now).hour < MIDNIGHT_WINDOW_END_HOUR
        if code == "PROFILE_CUSTOMIZED":
            return bool(self.user.display_name) and bool(self.user.selected_icon)
        return False


def unlocked_codes(db: Session, user_id: str) -> Dict[str, datetime]:
    rows = (
        db.query(UserAchievement.code, UserAchievement.unlocked_at)
        .filter(UserAchievement.user_id == user_id)
        .all()
    )
    return {code: unlocked_at for code, unlocked_at in rows}


def check_and_unlock_achievements(db: Session, user: User, event: AchievementEvent) -> List[str]:
    """
    Unlock every achievement the event newly qualifies the user for.

    Commits on success. A concurrent request unlocking the same code hits the
    (user_id, code) unique constraint; that is rolled back and reported as
    nothing new.

    Args:
        db: Database session
        user: User object
        event: The event that triggered the check

    Returns:
        Codes unlocked by this call, in check order
    """
    candidates = EVENT_TO_ACHIEVEMENTS.get(event.type, [])
    already = unlocked_codes(db, user.id)
    pending = [code for code in candidates if code not in already]
    if not pending:
        return []

    checker = _Checker(db, user, event)
    newly = [code for code in pending if checker.qualifies(code)]

    if newly and "ALL_HIDDEN" not in already:
        have = set(already) | set(newly)
        if all(code in have for code in HIDDEN_CODES):
            newly.append("ALL_HIDDEN")

    if not newly:
        return []

    for code in newly:
        db.add(UserAchievement(user_id=user.id, code=code))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"ACHIEVEMENT_RACE | user_id={user.id} | event={event.type} | codes={','.join(newly)}")
        return []

    logger.info(f"ACHIEVEMENTS_UNLOCKED | user_id={user.id} | event={event.type} | codes={','.join(newly)}")
    return newly


def check_events(db: Session, user: User, events: List[AchievementEvent]) -> List[str]:
    newly: List[str] = []
    for event in events:
        newly.extend(check_and_unlock_achievements(db, user, event))
    return newly


def describe_unlocked(codes: List[str]) -> List[dict]:
    """Definitions for newly unlocked codes, as returned to the client."""
    return [ACHIEVEMENTS_BY_CODE[code].to_dict() for code in codes if code in ACHIEVEMENTS_BY_CODE]


# ---------- Progress ----------

def calculate_achievement_progress(code: str, stats: dict) -> Optional[dict]:
    """
    Progress toward a count-based achievement.

    Args:
        code: Achievement code
        stats: Output of get_achievement_stats

    Returns:
        Dictionary with current, target, percent and displayText, or None when
        the achievement is not count-based
    """
    threshold = COUNT_THRESHOLDS.get(code)
    if threshold is None:
        return None
    key, target, unit = threshold
    current = min(stats.get(key, 0), target)
    return {
        "current": current,
        "target": target,
        "percent": round(current / target * 100),
        "displayText": f"{current:,} / {target:,} {unit}",
    }


def list_achievements_for_user(db: Session, user: User, now: Optional[datetime] = None) -> dict:
    unlocked = unlocked_codes(db, user.id)
    stats = get_achievement_stats(db, user, now)

    achievements = []
    for definition in sorted(ACHIEVEMENT_DEFINITIONS, key=lambda a: a.name):
        unlocked_at = unlocked.get(definition.code)
        entry = definition.to_dict()
        entry["unlocked"] = unlocked_at is not None
        entry["unlockedAt"] = unlocked_at
        entry["progress"] = None if unlocked_at else calculate_achievement_progress(definition.code, stats)
        achievements.append(entry)

    return {
        "achievements": achievements,
        "unlockedCount": sum(1 for code in unlocked if code in ACHIEVEMENTS_BY_CODE),
        "totalCount": len(ACHIEVEMENT_DEFINITIONS),
    }


def leaderboard_badges(db: Session, user_ids: List[str]) -> Dict[str, List[str]]:
    """Up to three showcase icons per user, most recent unlock first."""
    if not user_ids:
        return {}
    showcase = {
        a.code for a in ACHIEVEMENT_DEFINITIONS
        if a.tier >= LEADERBOARD_MIN_TIER or a.code in LEADERBOARD_SHOWCASE_CODES
    }
    rows = (
        db.query(UserAchievement.user_id, UserAchievement.code)
        .filter(UserAchievement.user_id.in_(user_ids), UserAchievement.code.in_(showcase))
        .order_by(UserAchievement.unlocked_at.desc(), UserAchievement.code)
        .all()
    )
    badges: Dict[str, List[str]] = {}
    for user_id, code in rows:
        icons = badges.setdefault(user_id, [])
        if len(icons) < LEADERBOARD_BADGE_LIMIT:
            icons.append(ACHIEVEMENTS_BY_CODE[code].icon)
    return badges
