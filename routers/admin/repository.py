"""Admin repository layer."""

from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload


# ---------- Disputes ----------

def page_disputes(db: Session, *, status=None, mode=None, page: int = 1, page_size: int = 20):
    from models import AnswerDispute, Question

    query = db.query(AnswerDispute)
    if status:
        query = query.filter(AnswerDispute.status == status)
    if mode:
        query = query.filter(AnswerDispute.mode == mode)
    total = query.count()
    disputes = (
        query.options(
            joinedload(AnswerDispute.user),
            joinedload(AnswerDispute.admin),
            joinedload(AnswerDispute.override),
            joinedload(AnswerDispute.question).joinedload(Question.category),
        )
        .order_by(AnswerDispute.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return disputes, total


def count_pending_disputes(db: Session) -> int:
    from models import AnswerDispute, DisputeStatus

    return db.query(func.count(AnswerDispute.id)).filter(AnswerDispute.status == DisputeStatus.PENDING).scalar() or 0


def get_dispute(db: Session, *, dispute_id: str):
    from models import AnswerDispute

    return (
        db.query(AnswerDispute)
        .options(joinedload(AnswerDispute.question))
        .filter(AnswerDispute.id == dispute_id)
        .first()
    )


def get_override(db: Session, *, question_id: str, text: str):
    from models import AnswerOverride

    return (
        db.query(AnswerOverride)
        .filter(AnswerOverride.question_id == question_id, AnswerOverride.text == text)
        .first()
    )


def incorrect_histories(db: Session, *, user_id: str, question_id: str,
                        since: Optional[datetime] = None, until: Optional[datetime] = None) -> List:
    from models import GameHistory

    query = db.query(GameHistory).filter(
        GameHistory.user_id == user_id,
        GameHistory.question_id == question_id,
        GameHistory.correct.is_(False),
    )
    if since is not None:
        query = query.filter(GameHistory.timestamp >= since)
    if until is not None:
        query = query.filter(GameHistory.timestamp <= until)
    return query.order_by(GameHistory.timestamp.asc()).all()


def category_histories(db: Session, *, user_id: str, category_id: str) -> List:
    from models import GameHistory, Question

    return (
        db.query(GameHistory)
        .join(Question, Question.id == GameHistory.question_id)
        .options(joinedload(GameHistory.question))
        .filter(GameHistory.user_id == user_id, Question.category_id == category_id)
        .all()
    )


def get_user_progress(db: Session, *, user_id: str, category_id: str):
    from models import UserProgress

    return (
        db.query(UserProgress)
        .filter(UserProgress.user_id == user_id, UserProgress.category_id == category_id)
        .first()
    )


def get_game_question(db: Session, *, game_id: str, question_id: str):
    from models import GameQuestion

    return (
        db.query(GameQuestion)
        .filter(GameQuestion.game_id == game_id, GameQuestion.question_id == question_id)
        .first()
    )


# ---------- Issues ----------

def page_issues(db: Session, *, status=None, category=None, page: int = 1, page_size: int = 20):
    from models import IssueReport

    query = db.query(IssueReport)
    if status:
        query = query.filter(IssueReport.status == status)
    if category:
        query = query.filter(IssueReport.category == category)
    total = query.count()
    issues = (
        query.options(joinedload(IssueReport.user))
        .order_by(IssueReport.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return issues, total


def get_issue(db: Session, *, issue_id: str):
    from models import IssueReport

    return db.query(IssueReport).options(joinedload(IssueReport.user)).filter(IssueReport.id == issue_id).first()


def count_open_issues(db: Session) -> int:
    from models import IssueReport, IssueReportStatus

    return (
        db.query(func.count(IssueReport.id))
        .filter(IssueReport.status.in_([IssueReportStatus.OPEN, IssueReportStatus.IN_PROGRESS]))
        .scalar()
        or 0
    )


# ---------- Users ----------

def search_users(db: Session, *, search: Optional[str], limit: int, offset: int):
    from models import User

    query = db.query(User)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(or_(func.lower(User.email).like(pattern), func.lower(User.display_name).like(pattern)))
    total = query.count()
    users = (
        query.order_by(User.last_online_at.desc().nullslast(), User.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return users, total


def in_progress_games_for(db: Session, *, user_ids: List[str]) -> List:
    from models import Game, GameStatus

    if not user_ids:
        return []
    return (
        db.query(Game)
        .filter(Game.user_id.in_(user_ids), Game.status == GameStatus.IN_PROGRESS)
        .order_by(Game.updated_at.desc())
        .all()
    )


def delete_user_data(db: Session, *, user_id: str) -> None:
    """Remove everything owned by the user and null out references to them (no commit)."""
    from models import (
        AnswerDispute,
        AnswerOverride,
        Game,
        GameHistory,
        GameQuestion,
        GuestSession,
        IssueReport,
        User,
        UserAchievement,
        UserDailyChallenge,
        UserProgress,
    )

    game_ids = [gid for (gid,) in db.query(Game.id).filter(Game.user_id == user_id).all()]
    if game_ids:
        db.query(AnswerDispute).filter(AnswerDispute.game_id.in_(game_ids)).update(
            {AnswerDispute.game_id: None}, synchronize_session=False
        )
        db.query(IssueReport).filter(IssueReport.game_id.in_(game_ids)).update(
            {IssueReport.game_id: None}, synchronize_session=False
        )
        db.query(GameQuestion).filter(GameQuestion.game_id.in_(game_ids)).delete(synchronize_session=False)
        db.query(Game).filter(Game.id.in_(game_ids)).delete(synchronize_session=False)

    db.query(Game).filter(Game.opponent_user_id == user_id).update(
        {Game.opponent_user_id: None}, synchronize_session=False
    )
    db.query(GameHistory).filter(GameHistory.user_id == user_id).delete(synchronize_session=False)
    db.query(UserProgress).filter(UserProgress.user_id == user_id).delete(synchronize_session=False)
    db.query(UserDailyChallenge).filter(UserDailyChallenge.user_id == user_id).delete(synchronize_session=False)
    db.query(UserAchievement).filter(UserAchievement.user_id == user_id).delete(synchronize_session=False)
    db.query(AnswerDispute).filter(AnswerDispute.user_id == user_id).delete(synchronize_session=False)
    db.query(AnswerDispute).filter(AnswerDispute.admin_id == user_id).update(
        {AnswerDispute.admin_id: None}, synchronize_session=False
    )

    override_ids = [oid for (oid,) in db.query(AnswerOverride.id).filter(AnswerOverride.created_by_user_id == user_id).all()]
    if override_ids:
        db.query(AnswerDispute).filter(AnswerDispute.override_id.in_(override_ids)).update(
            {AnswerDispute.override_id: None}, synchronize_session=False
        )
        db.query(AnswerOverride).filter(AnswerOverride.id.in_(override_ids)).delete(synchronize_session=False)

    db.query(GuestSession).filter(GuestSession.claimed_by_user_id == user_id).update(
        {GuestSession.claimed_by_user_id: None}, synchronize_session=False
    )
    db.query(IssueReport).filter(IssueReport.user_id == user_id).update(
        {IssueReport.user_id: None}, synchronize_session=False
    )
    db.query(User).filter(User.id == user_id).delete(synchronize_session=False)


# ---------- Cron executions ----------

def list_cron_executions(db: Session, *, job_name=None, status=None, limit: int = 50) -> List:
    from models import CronJobExecution

    query = db.query(CronJobExecution)
    if job_name:
        query = query.filter(CronJobExecution.job_name == job_name)
    if status:
        query = query.filter(CronJobExecution.status == status)
    return query.order_by(CronJobExecution.started_at.desc()).limit(limit).all()


def cron_status_counts(db: Session):
    from models import CronJobExecution

    return (
        db.query(CronJobExecution.job_name, CronJobExecution.status, func.count(CronJobExecution.id))
        .group_by(CronJobExecution.job_name, CronJobExecution.status)
        .all()
    )


def latest_cron_execution(db: Session, *, job_name: str):
    from models import CronJobExecution

    return (
        db.query(CronJobExecution)
        .filter(CronJobExecution.job_name == job_name)
        .order_by(CronJobExecution.started_at.desc())
        .first()
    )


# ---------- Daily challenges ----------

def challenges_between(db: Session, *, start: date, end: date) -> List:
    from models import DailyChallenge

    return (
        db.query(DailyChallenge)
        .options(joinedload(DailyChallenge.completions))
        .filter(DailyChallenge.date >= start, DailyChallenge.date <= end)
        .order_by(DailyChallenge.date.asc())
        .all()
    )


def used_challenge_question_ids(db: Session) -> List[str]:
    from models import DailyChallenge

    return [qid for (qid,) in db.query(DailyChallenge.question_id).all()]


def final_question_air_date_range(db: Session):
    from models import JeopardyRound, Question

    return (
        db.query(func.min(Question.air_date), func.max(Question.air_date))
        .filter(Question.round == JeopardyRound.FINAL, Question.air_date.isnot(None))
        .one()
    )


def count_final_questions(db: Session, *, exclude_ids=None, start: Optional[date] = None,
                          end: Optional[date] = None) -> int:
    from models import JeopardyRound, Question

    query = db.query(func.count(Question.id)).filter(
        Question.round == JeopardyRound.FINAL, Question.air_date.isnot(None)
    )
    if exclude_ids:
        query = query.filter(Question.id.notin_(list(exclude_ids)))
    if start is not None:
        query = query.filter(Question.air_date >= start)
    if end is not None:
        query = query.filter(Question.air_date <= end)
    return query.scalar() or 0


def recent_challenges(db: Session, *, limit: int = 100) -> List:
    from models import DailyChallenge

    return db.query(DailyChallenge).order_by(DailyChallenge.date.desc()).limit(limit).all()


def window_start(today: date, days: int) -> date:
    return today - timedelta(days=days)
