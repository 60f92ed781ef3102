"""Admin service layer."""

import logging
import math
from collections import Counter, defaultdict
from datetime import datetime, timedelta

from fastapi import HTTPException, status

from core.cron_logger import cleanup_timed_out_jobs, with_cron_logging
from core.errors import ApiError
from core.users import get_user_by_id
from models import AnswerOverride, DisputeMode, DisputeStatus, IssueReportStatus, OverrideSource, UserProgress
from utils.answer_checker import check_answer
from utils.answer_overrides import get_question_overrides, normalize_answer_for_override
from utils.cron_jobs import CRON_JOBS, get_cron_job, run_cron_job
from utils.daily_challenge_dates import get_today_in_app_timezone
from utils.guest_sessions import (
    get_guest_config as util_get_guest_config,
    get_guest_session_stats as util_get_guest_session_stats,
    serialize_guest_config,
    update_guest_config as util_update_guest_config,
)
from utils.jarchive_scraper import JArchiveScraper, is_future_date, is_valid_date_format
from utils.logging_helpers import log_info
from utils.question_import import push_game_to_database
from utils.scoring import DEFAULT_STATS_CLUE_VALUE, get_stats_points

from . import repository as admin_repository

logger = logging.getLogger(__name__)

DISPUTE_MATCH_WINDOW = timedelta(seconds=60)
UPCOMING_CHALLENGE_DAYS = 30
PREFERRED_POOL_MIN_DAYS = 730
PREFERRED_POOL_MAX_DAYS = 1825
NON_NULLABLE_GUEST_FIELDS = (
    "randomGameMaxQuestionsBeforeAuth",
    "randomGameMaxGamesBeforeAuth",
    "randomQuestionMaxQuestionsBeforeAuth",
    "dailyChallengeGuestEnabled",
    "dailyChallengeGuestAppearsOnLeaderboard",
    "dailyChallengeMinLookbackDays",
    "timeToAuthenticateMinutes",
)


def _pagination(page: int, page_size: int, total: int) -> dict:
    return {
        "page": page,
        "pageSize": page_size,
        "total": total,
        "totalPages": math.ceil(total / page_size) if page_size else 0,
    }


def _user_summary(user):
    if user is None:
        return None
    return {"id": user.id, "email": user.email, "displayName": user.display_name}


# ---------- Disputes ----------

def serialize_dispute(dispute) -> dict:
    question = dispute.question
    return {
        "id": dispute.id,
        "userId": dispute.user_id,
        "questionId": dispute.question_id,
        "gameId": dispute.game_id,
        "mode": dispute.mode.value,
        "round": dispute.round.value,
        "userAnswer": dispute.user_answer,
        "systemWasCorrect": dispute.system_was_correct,
        "status": dispute.status.value,
        "adminComment": dispute.admin_comment,
        "overrideText": dispute.override.text if dispute.override else None,
        "createdAt": dispute.created_at,
        "resolvedAt": dispute.resolved_at,
        "user": _user_summary(dispute.user),
        "admin": _user_summary(dispute.admin),
        "question": {
            "id": question.id,
            "question": question.question,
            "answer": question.answer,
            "value": question.value,
            "airDate": question.air_date,
            "category": question.category.name if question.category else None,
        } if question else None,
    }


def list_disputes(db, *, status_filter=None, mode=None, page: int = 1, page_size: int = 20):
    disputes, total = admin_repository.page_disputes(
        db, status=status_filter, mode=mode, page=page, page_size=page_size
    )
    return {
        "disputes": [serialize_dispute(d) for d in disputes],
        "pagination": _pagination(page, page_size, total),
    }


def get_dispute_stats(db):
    return {"pendingCount": admin_repository.count_pending_disputes(db)}


def _pending_dispute(db, dispute_id: str):
    dispute = admin_repository.get_dispute(db, dispute_id=dispute_id)
    if dispute is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dispute not found")
    if dispute.status != DisputeStatus.PENDING:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Dispute has already been resolved")
    return dispute


def _find_or_create_override(db, admin, dispute, text: str):
    override = admin_repository.get_override(db, question_id=dispute.question_id, text=text)
    if override is None:
        override = AnswerOverride(
            question_id=dispute.question_id,
            text=text,
            created_by_user_id=admin.id,
            source=OverrideSource.DISPUTE,
            notes=f"Created from dispute {dispute.id}",
        )
        db.add(override)
        db.flush()
    return override


def _regrade_histories(db, dispute, question, accepted_texts) -> int:
    """Flip the user's incorrect answers to this question that now pass."""
    fixed = {}
    for history in admin_repository.incorrect_histories(db, user_id=dispute.user_id, question_id=question.id):
        if history.user_answer and check_answer(history.user_answer, question.answer, accepted_texts):
            fixed[history.id] = history

    # Histories recorded without the typed answer are matched by time instead
    if check_answer(dispute.user_answer, question.answer, accepted_texts):
        for history in admin_repository.incorrect_histories(
            db,
            user_id=dispute.user_id,
            question_id=question.id,
            since=dispute.created_at - DISPUTE_MATCH_WINDOW,
            until=dispute.created_at + DISPUTE_MATCH_WINDOW,
        ):
            fixed[history.id] = history

    for history in fixed.values():
        history.correct = True
        history.user_answer = history.user_answer or dispute.user_answer
        history.points = get_stats_points(question.round, question.value or DEFAULT_STATS_CLUE_VALUE, True)
    db.flush()
    return len(fixed)


def _recompute_category_progress(db, user_id: str, question) -> None:
    histories = admin_repository.category_histories(db, user_id=user_id, category_id=question.category_id)
    correct = sum(1 for h in histories if h.correct)
    points = sum(get_stats_points(h.question.round, h.question.value, h.correct) for h in histories)

    progress = admin_repository.get_user_progress(db, user_id=user_id, category_id=question.category_id)
    if progress is None:
        progress = UserProgress(user_id=user_id, category_id=question.category_id, question_id=question.id)
        db.add(progress)
    progress.correct = correct
    progress.total = len(histories)
    progress.points = points


def _credit_game(db, dispute, question) -> None:
    game_question = admin_repository.get_game_question(db, game_id=dispute.game_id, question_id=question.id)
    if game_question is None or game_question.correct:
        return
    game_question.answered = True
    game_question.correct = True
    game_question.game.current_score += get_stats_points(question.round, question.value, True)


def approve_dispute(db, admin, *, dispute_id: str, payload):
    dispute = _pending_dispute(db, dispute_id)
    question = dispute.question

    override_text = normalize_answer_for_override(payload.overrideText or dispute.user_answer)
    if not override_text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Override text cannot be empty")

    try:
        override = _find_or_create_override(db, admin, dispute, override_text)

        dispute.status = DisputeStatus.APPROVED
        dispute.admin_id = admin.id
        dispute.admin_comment = payload.adminComment
        dispute.override_id = override.id
        dispute.resolved_at = datetime.utcnow()

        accepted_texts = [o.text for o in get_question_overrides(db, question.id)]
        fixed = _regrade_histories(db, dispute, question, accepted_texts)
        _recompute_category_progress(db, dispute.user_id, question)

        if dispute.mode == DisputeMode.GAME and dispute.game_id:
            _credit_game(db, dispute, question)

        db.commit()
    except Exception:
        db.rollback()
        raise

    log_info(logger, "DISPUTE_APPROVED", admin.id, dispute_id=dispute.id, histories_fixed=fixed)
    return {"success": True, "message": "Dispute approved and stats updated"}


def reject_dispute(db, admin, *, dispute_id: str, payload):
    dispute = _pending_dispute(db, dispute_id)
    dispute.status = DisputeStatus.REJECTED
    dispute.admin_id = admin.id
    dispute.admin_comment = payload.adminComment
    dispute.resolved_at = datetime.utcnow()
    db.commit()
    log_info(logger, "DISPUTE_REJECTED", admin.id, dispute_id=dispute.id)
    return {"success": True, "message": "Dispute rejected"}


# ---------- Issues ----------

def serialize_issue(issue) -> dict:
    return {
        "id": issue.id,
        "userId": issue.user_id,
        "email": issue.email or (issue.user.email if issue.user else None),
        "subject": issue.subject,
        "message": issue.message,
        "category": issue.category.value,
        "status": issue.status.value,
        "pageUrl": issue.page_url,
        "questionId": issue.question_id,
        "gameId": issue.game_id,
        "userAgent": issue.user_agent,
        "adminNote": issue.admin_note,
        "resolvedAt": issue.resolved_at,
        "createdAt": issue.created_at,
        "updatedAt": issue.updated_at,
        "user": _user_summary(issue.user),
    }


def list_issues(db, *, status_filter=None, category=None, page: int = 1, page_size: int = 20):
    issues, total = admin_repository.page_issues(
        db, status=status_filter, category=category, page=page, page_size=page_size
    )
    return {"issues": [serialize_issue(i) for i in issues], "pagination": _pagination(page, page_size, total)}


def update_issue(db, admin, *, issue_id: str, payload):
    issue = admin_repository.get_issue(db, issue_id=issue_id)
    if issue is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Issue not found")

    if payload.status is not None:
        issue.status = payload.status
        if payload.status in (IssueReportStatus.RESOLVED, IssueReportStatus.DISMISSED):
            issue.resolved_at = issue.resolved_at or datetime.utcnow()
        else:
            issue.resolved_at = None
    if "adminNote" in payload.model_fields_set:
        issue.admin_note = payload.adminNote or None

    db.commit()
    db.refresh(issue)
    logger.info(f"ISSUE_UPDATED | issue_id={issue.id} | admin_id={admin.id} | status={issue.status.value}")
    return {"success": True, "issue": serialize_issue(issue)}


def get_issue_stats(db):
    return {"openCount": admin_repository.count_open_issues(db)}


# ---------- Users ----------

def _serialize_admin_user(user, games) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "displayName": user.display_name,
        "selectedIcon": user.selected_icon,
        "role": user.role.value,
        "currentStreak": user.current_streak,
        "longestStreak": user.longest_streak,
        "lastGameDate": user.last_game_date,
        "lastOnlineAt": user.last_online_at,
        "lastSeenPath": user.last_seen_path,
        "createdAt": user.created_at,
        "inProgressGames": [
            {
                "id": game.id,
                "currentRound": game.current_round.value,
                "currentScore": game.current_score,
                "updatedAt": game.updated_at,
            }
            for game in games
        ],
    }


def list_users(db, *, search=None, limit: int = 100, offset: int = 0):
    users, total = admin_repository.search_users(db, search=search, limit=limit, offset=offset)
    games_by_user = defaultdict(list)
    for game in admin_repository.in_progress_games_for(db, user_ids=[u.id for u in users]):
        games_by_user[game.user_id].append(game)
    return {
        "users": [_serialize_admin_user(u, games_by_user[u.id]) for u in users],
        "totalCount": total,
        "limit": limit,
        "offset": offset,
    }


def delete_user(db, admin, *, user_id: str):
    user = get_user_by_id(db, user_id=user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    try:
        admin_repository.delete_user_data(db, user_id=user.id)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"USER_DELETE_FAILED | user_id={user_id} | admin_id={admin.id}", exc_info=True)
        raise
    db.expire_all()

    log_info(logger, "USER_DELETED", admin.id, deleted_user_id=user_id)
    return {"success": True, "message": "User and all related data deleted successfully"}


# ---------- Guest config ----------

def get_guest_config(db):
    return serialize_guest_config(util_get_guest_config(db))


def update_guest_config(db, admin, *, payload):
    changes = payload.model_dump(exclude_unset=True)
    for field in NON_NULLABLE_GUEST_FIELDS:
        if field in changes and changes[field] is None:
            raise ApiError(status.HTTP_400_BAD_REQUEST, f"{field} cannot be null", code="VALIDATION_ERROR")
    config = util_update_guest_config(db, changes)
    logger.info(f"GUEST_CONFIG_UPDATED | admin_id={admin.id} | fields={sorted(changes)}")
    return serialize_guest_config(config)


def get_guest_stats(db):
    return util_get_guest_session_stats(db)


# ---------- Cron jobs ----------

def serialize_execution(execution):
    if execution is None:
        return None
    return {
        "id": execution.id,
        "jobName": execution.job_name,
        "status": execution.status.value,
        "triggeredBy": execution.triggered_by,
        "startedAt": execution.started_at,
        "completedAt": execution.completed_at,
        "durationMs": execution.duration_ms,
        "result": execution.result,
        "error": execution.error,
    }


def list_cron_jobs(db, *, job_name=None, status_filter=None, limit: int = 50):
    timed_out = cleanup_timed_out_jobs(db)
    executions = admin_repository.list_cron_executions(db, job_name=job_name, status=status_filter, limit=limit)
    stats = {
        f"{name}:{getattr(job_status, 'value', job_status)}": count
        for name, job_status, count in admin_repository.cron_status_counts(db)
    }
    latest = {
        key: serialize_execution(admin_repository.latest_cron_execution(db, job_name=key))
        for key in CRON_JOBS
    }
    return {
        "executions": [serialize_execution(e) for e in executions],
        "stats": stats,
        "latestExecutions": latest,
        "jobs": [job.to_dict() for job in CRON_JOBS.values()],
        "timedOutCount": timed_out,
    }


def trigger_cron_job(db, admin, *, job_name: str):
    job = get_cron_job(job_name)
    if job is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown cron job: {job_name}")
    if not job.endpoint:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Job {job_name} cannot be triggered manually (internal cron only)",
        )

    try:
        result = with_cron_logging(job_name, admin.id, lambda: run_cron_job(job_name, db), db=db)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Job {job_name} failed: {e}"
        ) from e
    return {"success": True, "message": f"Job {job_name} triggered successfully", "result": result}


# ---------- Daily challenges ----------

def _serialize_challenge(challenge) -> dict:
    question = challenge.question
    return {
        "id": challenge.id,
        "date": challenge.date,
        "questionId": challenge.question_id,
        "airDate": challenge.air_date,
        "episodeGameId": challenge.episode_game_id,
        "completionCount": len(challenge.completions),
        "question": {
            "question": question.question,
            "answer": question.answer,
            "category": question.category.name if question.category else None,
        } if question else None,
    }


def _pool_stats(db, today) -> dict:
    used_ids = set(admin_repository.used_challenge_question_ids(db))
    earliest, latest = admin_repository.final_question_air_date_range(db)
    total = admin_repository.count_final_questions(db)
    preferred = admin_repository.count_final_questions(
        db,
        exclude_ids=used_ids,
        start=admin_repository.window_start(today, PREFERRED_POOL_MAX_DAYS),
        end=admin_repository.window_start(today, PREFERRED_POOL_MIN_DAYS),
    )
    return {
        "totalFinalQuestions": total,
        "usedQuestions": len(used_ids),
        "availableQuestions": max(total - len(used_ids), 0),
        "preferredWindowAvailable": preferred,
        "preferredWindowDays": [PREFERRED_POOL_MIN_DAYS, PREFERRED_POOL_MAX_DAYS],
        "airDateRange": {"earliest": earliest, "latest": latest},
    }


def _duplicate_episodes(challenges) -> list:
    """Episodes that supplied more than one challenge."""
    counts = Counter(c.episode_game_id for c in challenges if c.episode_game_id)
    return [
        {
            "episodeGameId": episode,
            "dates": sorted(c.date for c in challenges if c.episode_game_id == episode),
        }
        for episode, count in counts.items()
        if count > 1
    ]


def get_daily_challenges_overview(db):
    today = get_today_in_app_timezone()
    end = today + timedelta(days=UPCOMING_CHALLENGE_DAYS - 1)
    upcoming = admin_repository.challenges_between(db, start=today, end=end)
    serialized = [_serialize_challenge(c) for c in upcoming]
    today_challenge = next((c for c in serialized if c["date"] == today), None)
    recent = admin_repository.recent_challenges(db, limit=100)

    return {
        "challenges": serialized,
        "stats": {
            "daysCovered": len(serialized),
            "daysNeeded": UPCOMING_CHALLENGE_DAYS,
            "coverage": round(len(serialized) / UPCOMING_CHALLENGE_DAYS * 100),
            "totalCompletions": sum(c["completionCount"] for c in serialized),
            "todayChallenge": today_challenge,
        },
        "poolStats": _pool_stats(db, today),
        "duplicates": _duplicate_episodes(recent),
        "recentChallenges": [
            {"id": c.id, "date": c.date, "questionId": c.question_id, "airDate": c.air_date,
             "episodeGameId": c.episode_game_id}
            for c in recent
        ],
    }


# ---------- J-Archive content ----------

def _check_fetch_date(date_value: str) -> None:
    if not is_valid_date_format(date_value):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid date format. Use YYYY-MM-DD")
    if is_future_date(date_value):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot fetch games from the future")


def _scrape(scraper, *, date_value, game_id):
    if game_id:
        return scraper.parse_game_by_id(game_id)
    return scraper.parse_game_by_date(date_value)


def preview_jarchive_game(*, date_value=None, game_id=None, scraper=None):
    if not date_value and not game_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Either date or gameId must be provided")
    if date_value and not game_id:
        _check_fetch_date(date_value)

    scraper = scraper or JArchiveScraper()
    game = _scrape(scraper, date_value=date_value, game_id=game_id)
    if game is None:
        return {
            "success": False,
            "message": f"No game found for {game_id or date_value}",
            "game": None,
            "currentSeason": scraper.get_current_season(),
        }

    return {
        "success": True,
        "game": {
            "gameId": game.game_id,
            "showNumber": game.show_number,
            "airDate": game.air_date,
            "title": game.title,
            "questionCount": game.question_count,
            "categories": [{"name": c.name, "round": c.round, "questionCount": len(c.questions)}
                           for c in game.categories],
            "questions": [q.to_dict() for q in game.questions],
        },
    }


def import_jarchive_game(db, admin, *, payload, scraper=None):
    date_value = payload.date.isoformat() if payload.date else None
    if not date_value and not payload.gameId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Either date or gameId must be provided")
    if date_value and not payload.gameId:
        _check_fetch_date(date_value)

    scraper = scraper or JArchiveScraper()
    game = _scrape(scraper, date_value=date_value, game_id=payload.gameId)
    if game is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail=f"No game found for {payload.gameId or date_value}")
    if not game.air_date:
        game.air_date = date_value
    if not game.air_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Could not determine the game's air date")

    result = push_game_to_database(db, game, season=payload.season)
    logger.info(
        f"JARCHIVE_PUSHED | game_id={game.game_id} | admin_id={admin.id} | "
        f"created={result['created']} | skipped={result['skipped']}"
    )
    return {
        "success": True,
        "message": f"Imported {result['created']} questions ({result['skipped']} already present)",
        "gameId": game.game_id,
        "airDate": game.air_date,
        **result,
    }
