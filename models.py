import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, Enum as SQLEnum, ForeignKey, Index, Integer, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from core.db import Base


def generate_id():
    return str(uuid.uuid4())


# =================================
#  Enums
# =================================
class UserRole(str, PyEnum):
    USER = "USER"
    ADMIN = "ADMIN"


class Difficulty(str, PyEnum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class KnowledgeCategory(str, PyEnum):
    GEOGRAPHY_AND_HISTORY = "GEOGRAPHY_AND_HISTORY"
    ENTERTAINMENT = "ENTERTAINMENT"
    ARTS_AND_LITERATURE = "ARTS_AND_LITERATURE"
    SCIENCE_AND_NATURE = "SCIENCE_AND_NATURE"
    SPORTS_AND_LEISURE = "SPORTS_AND_LEISURE"
    GENERAL_KNOWLEDGE = "GENERAL_KNOWLEDGE"


class JeopardyRound(str, PyEnum):
    SINGLE = "SINGLE"
    DOUBLE = "DOUBLE"
    FINAL = "FINAL"


class GameStatus(str, PyEnum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ABANDONED = "ABANDONED"


class GameVisibility(str, PyEnum):
    PRIVATE = "PRIVATE"
    UNLISTED = "UNLISTED"
    PUBLIC = "PUBLIC"


class DisputeStatus(str, PyEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class DisputeMode(str, PyEnum):
    GAME = "GAME"
    PRACTICE = "PRACTICE"


class OverrideSource(str, PyEnum):
    ADMIN = "ADMIN"
    DISPUTE = "DISPUTE"


class CronJobStatus(str, PyEnum):
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class GuestSessionType(str, PyEnum):
    RANDOM_QUESTION = "RANDOM_QUESTION"
    RANDOM_GAME = "RANDOM_GAME"
    DAILY_CHALLENGE = "DAILY_CHALLENGE"


class IssueCategory(str, PyEnum):
    BUG = "BUG"
    CONTENT = "CONTENT"
    FEATURE_REQUEST = "FEATURE_REQUEST"
    ACCOUNT = "ACCOUNT"
    QUESTION = "QUESTION"
    OTHER = "OTHER"


class IssueReportStatus(str, PyEnum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    DISMISSED = "DISMISSED"


# =================================
#  Users Table
# =================================
class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_id)
    descope_user_id = Column(String, unique=True, index=True, nullable=True)
    email = Column(String, unique=True, index=True, nullable=False)
    display_name = Column(String, nullable=True)
    selected_icon = Column(String, nullable=True)
    role = Column(SQLEnum(UserRole, name="user_role"), nullable=False, default=UserRole.USER)

    # Spoiler protection
    spoiler_block_enabled = Column(Boolean, nullable=False, default=False)
    spoiler_block_date = Column(Date, nullable=True)
    last_spoiler_prompt = Column(DateTime, nullable=True)

    # Streaks
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    last_game_date = Column(Date, nullable=True)

    # Activity tracking
    last_online_at = Column(DateTime, nullable=True, index=True)
    last_seen_path = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    games = relationship("Game", back_populates="user", foreign_keys="Game.user_id")
    game_history = relationship("GameHistory", back_populates="user")
    progress = relationship("UserProgress", back_populates="user")
    daily_challenges = relationship("UserDailyChallenge", back_populates="user")


# =================================
#  Question Content
# =================================
class Category(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, unique=True, index=True, nullable=False)
    knowledge_category = Column(
        SQLEnum(KnowledgeCategory, name="knowledge_category"),
        nullable=False,
        default=KnowledgeCategory.GENERAL_KNOWLEDGE,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    questions = relationship("Question", back_populates="category")


class Question(Base):
    __tablename__ = "questions"

    id = Column(String, primary_key=True, default=generate_id)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    value = Column(Integer, nullable=True)
    difficulty = Column(SQLEnum(Difficulty, name="difficulty"), nullable=False, default=Difficulty.MEDIUM)
    category_id = Column(String, ForeignKey("categories.id"), nullable=False, index=True)
    knowledge_category = Column(
        SQLEnum(KnowledgeCategory, name="knowledge_category"),
        nullable=False,
        default=KnowledgeCategory.GENERAL_KNOWLEDGE,
    )
    air_date = Column(Date, nullable=True, index=True)
    season = Column(Integer, nullable=True)
    episode_id = Column(String, nullable=True, index=True)
    round = Column(SQLEnum(JeopardyRound, name="jeopardy_round"), nullable=False, default=JeopardyRound.SINGLE)
    is_double_jeopardy = Column(Boolean, nullable=False, default=False)  # legacy mirror of round
    was_triple_stumper = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    category = relationship("Category", back_populates="questions")

    __table_args__ = (
        Index("ix_questions_round_air_date", "round", "air_date"),
    )


# =================================
#  Games
# =================================
class Game(Base):
    __tablename__ = "games"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    opponent_user_id = Column(String, ForeignKey("users.id"), nullable=True)
    seed = Column(String, unique=True, index=True, nullable=True)
    config = Column(JSON, nullable=True)
    status = Column(SQLEnum(GameStatus, name="game_status"), nullable=False, default=GameStatus.IN_PROGRESS)
    current_round = Column(SQLEnum(JeopardyRound, name="jeopardy_round"), nullable=False, default=JeopardyRound.SINGLE)
    current_score = Column(Integer, nullable=False, default=0)
    score = Column(Integer, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)
    use_knowledge_categories = Column(Boolean, nullable=False, default=False)
    visibility = Column(SQLEnum(GameVisibility, name="game_visibility"), nullable=False, default=GameVisibility.PRIVATE)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="games", foreign_keys=[user_id])
    opponent = relationship("User", foreign_keys=[opponent_user_id])
    questions = relationship("GameQuestion", back_populates="game", cascade="all, delete-orphan")


class GameQuestion(Base):
    __tablename__ = "game_questions"

    id = Column(String, primary_key=True, default=generate_id)
    game_id = Column(String, ForeignKey("games.id"), nullable=False, index=True)
    question_id = Column(String, ForeignKey("questions.id"), nullable=False)
    answered = Column(Boolean, nullable=False, default=False)
    correct = Column(Boolean, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    game = relationship("Game", back_populates="questions")
    question = relationship("Question")

    __table_args__ = (
        UniqueConstraint("game_id", "question_id", name="uq_game_question"),
    )


# =================================
#  Answer History & Progress
# =================================
class GameHistory(Base):
    """One row per answer a user submits, in any mode."""
    __tablename__ = "game_history"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    question_id = Column(String, ForeignKey("questions.id"), nullable=False, index=True)
    correct = Column(Boolean, nullable=False)
    points = Column(Integer, nullable=False, default=0)
    user_answer = Column(Text, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="game_history")
    question = relationship("Question")


class UserProgress(Base):
    """Per-user, per-category answer counters."""
    __tablename__ = "user_progress"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(String, ForeignKey("categories.id"), nullable=False)
    question_id = Column(String, ForeignKey("questions.id"), nullable=False)
    correct = Column(Integer, nullable=False, default=0)
    total = Column(Integer, nullable=False, default=0)
    points = Column(Integer, nullable=False, default=0)

    user = relationship("User", back_populates="progress")
    category = relationship("Category")

    __table_args__ = (
        UniqueConstraint("user_id", "category_id", name="uq_user_progress_category"),
    )


# =================================
#  Guest Play
# =================================
class GuestConfig(Base):
    """Singleton row (id='default') with the limits applied to anonymous play."""
    __tablename__ = "guest_config"

    id = Column(String, primary_key=True, default="default")
    random_game_max_questions_before_auth = Column(Integer, nullable=False, default=1)
    random_game_max_categories_before_auth = Column(Integer, nullable=True)
    random_game_max_rounds_before_auth = Column(Integer, nullable=True)
    random_game_max_games_before_auth = Column(Integer, nullable=False, default=0)
    random_question_max_questions_before_auth = Column(Integer, nullable=False, default=1)
    random_question_max_categories_before_auth = Column(Integer, nullable=True)
    daily_challenge_guest_enabled = Column(Boolean, nullable=False, default=False)
    daily_challenge_guest_appears_on_leaderboard = Column(Boolean, nullable=False, default=False)
    daily_challenge_min_lookback_days = Column(Integer, nullable=False, default=365)
    daily_challenge_seasons = Column(JSON, nullable=True)
    time_to_authenticate_minutes = Column(Integer, nullable=False, default=1440)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class GuestSession(Base):
    __tablename__ = "guest_sessions"

    id = Column(String, primary_key=True, default=generate_id)
    type = Column(SQLEnum(GuestSessionType, name="guest_session_type"), nullable=False)
    data = Column(JSON, nullable=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    claimed_at = Column(DateTime, nullable=True)
    claimed_by_user_id = Column(String, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    guest_game = relationship(
        "GuestGame", back_populates="guest_session", uselist=False, cascade="all, delete-orphan"
    )


class GuestGame(Base):
    __tablename__ = "guest_games"

    id = Column(String, primary_key=True, default=generate_id)
    guest_session_id = Column(String, ForeignKey("guest_sessions.id"), unique=True, nullable=False)
    seed = Column(String, nullable=True)
    config = Column(JSON, nullable=True)
    status = Column(SQLEnum(GameStatus, name="game_status"), nullable=False, default=GameStatus.IN_PROGRESS)
    current_round = Column(SQLEnum(JeopardyRound, name="jeopardy_round"), nullable=False, default=JeopardyRound.SINGLE)
    current_score = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    guest_session = relationship("GuestSession", back_populates="guest_game")
    questions = relationship("GuestGameQuestion", back_populates="guest_game", cascade="all, delete-orphan")


class GuestGameQuestion(Base):
    __tablename__ = "guest_game_questions"

    id = Column(String, primary_key=True, default=generate_id)
    guest_game_id = Column(String, ForeignKey("guest_games.id"), nullable=False, index=True)
    question_id = Column(String, ForeignKey("questions.id"), nullable=False)
    answered = Column(Boolean, nullable=False, default=False)
    correct = Column(Boolean, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    guest_game = relationship("GuestGame", back_populates="questions")
    question = relationship("Question")

    __table_args__ = (
        UniqueConstraint("guest_game_id", "question_id", name="uq_guest_game_question"),
    )


# =================================
#  Daily Challenge
# =================================
class DailyChallenge(Base):
    __tablename__ = "daily_challenges"

    id = Column(String, primary_key=True, default=generate_id)
    date = Column(Date, unique=True, index=True, nullable=False)
    question_id = Column(String, ForeignKey("questions.id"), unique=True, nullable=False)
    air_date = Column(Date, nullable=True)
    episode_game_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    question = relationship("Question")
    completions = relationship("UserDailyChallenge", back_populates="challenge")


class UserDailyChallenge(Base):
    __tablename__ = "user_daily_challenges"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    challenge_id = Column(String, ForeignKey("daily_challenges.id"), nullable=False, index=True)
    correct = Column(Boolean, nullable=False)
    user_answer = Column(Text, nullable=True)
    completed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="daily_challenges")
    challenge = relationship("DailyChallenge", back_populates="completions")

    __table_args__ = (
        UniqueConstraint("user_id", "challenge_id", name="uq_user_daily_challenge"),
    )


# =================================
#  Achievements
# =================================
class UserAchievement(Base):
    """An unlocked achievement; definitions live in utils/achievements.py."""
    __tablename__ = "user_achievements"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    code = Column(String, nullable=False, index=True)
    unlocked_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("user_id", "code", name="uq_user_achievement"),
    )


# =================================
#  Answer Overrides & Disputes
# =================================
class AnswerOverride(Base):
    """An extra accepted answer for a question."""
    __tablename__ = "answer_overrides"

    id = Column(String, primary_key=True, default=generate_id)
    question_id = Column(String, ForeignKey("questions.id"), nullable=False, index=True)
    text = Column(String, nullable=False)
    created_by_user_id = Column(String, ForeignKey("users.id"), nullable=False)
    source = Column(SQLEnum(OverrideSource, name="override_source"), nullable=False, default=OverrideSource.ADMIN)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("question_id", "text", name="uq_answer_override_text"),
    )


class AnswerDispute(Base):
    __tablename__ = "answer_disputes"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    question_id = Column(String, ForeignKey("questions.id"), nullable=False, index=True)
    game_id = Column(String, ForeignKey("games.id"), nullable=True)
    mode = Column(SQLEnum(DisputeMode, name="dispute_mode"), nullable=False)
    round = Column(SQLEnum(JeopardyRound, name="jeopardy_round"), nullable=False)
    user_answer = Column(Text, nullable=False)
    system_was_correct = Column(Boolean, nullable=False, default=False)
    status = Column(SQLEnum(DisputeStatus, name="dispute_status"), nullable=False, default=DisputeStatus.PENDING, index=True)
    admin_id = Column(String, ForeignKey("users.id"), nullable=True)
    admin_comment = Column(Text, nullable=True)
    override_id = Column(String, ForeignKey("answer_overrides.id"), nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", foreign_keys=[user_id])
    admin = relationship("User", foreign_keys=[admin_id])
    question = relationship("Question")
    override = relationship("AnswerOverride")


# =================================
#  Issue Reports
# =================================
class IssueReport(Base):
    __tablename__ = "issue_reports"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=True, index=True)
    email = Column(String, nullable=True)
    subject = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    category = Column(SQLEnum(IssueCategory, name="issue_category"), nullable=False, default=IssueCategory.OTHER)
    status = Column(SQLEnum(IssueReportStatus, name="issue_report_status"), nullable=False, default=IssueReportStatus.OPEN, index=True)
    page_url = Column(String, nullable=True)
    question_id = Column(String, ForeignKey("questions.id"), nullable=True)
    game_id = Column(String, ForeignKey("games.id"), nullable=True)
    user_agent = Column(String, nullable=True)
    admin_note = Column(Text, nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User")


# =================================
#  Cron Job Executions (audit)
# =================================
class CronJobExecution(Base):
    __tablename__ = "cron_job_executions"

    id = Column(String, primary_key=True, default=generate_id)
    job_name = Column(String, nullable=False, index=True)
    status = Column(SQLEnum(CronJobStatus, name="cron_job_status"), nullable=False, default=CronJobStatus.RUNNING, index=True)
    triggered_by = Column(String, nullable=False, default="scheduled")
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    completed_at = Column(DateTime, nullable=True)
    duration_ms = Column(Integer, nullable=True)
    result = Column(JSON, nullable=True)
    error = Column(Text, nullable=True)
