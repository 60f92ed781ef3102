"""Games repository layer."""

from typing import List, Optional

from sqlalchemy.orm import Session, joinedload


def get_game(db: Session, *, game_id: str, with_questions: bool = False):
    from models import Game, GameQuestion, Question

    query = db.query(Game).filter(Game.id == game_id)
    if with_questions:
        query = query.options(
            joinedload(Game.questions).joinedload(GameQuestion.question).joinedload(Question.category)
        )
    return query.first()


def get_game_by_seed(db: Session, *, seed: str):
    from models import Game

    return db.query(Game).filter(Game.seed == seed).first()


def list_user_games(db: Session, *, user_id: str, status, limit: Optional[int] = None) -> List:
    from models import Game, GameQuestion, Question

    query = (
        db.query(Game)
        .options(joinedload(Game.questions).joinedload(GameQuestion.question).joinedload(Question.category))
        .filter(Game.user_id == user_id, Game.status == status)
        .order_by(Game.updated_at.desc())
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def create_game(db: Session, *, user_id: str, seed: str, config: dict, current_round: str,
                visibility: str = "PRIVATE"):
    from models import Game, GameStatus, GameVisibility, JeopardyRound

    game = Game(
        user_id=user_id,
        seed=seed,
        config=config,
        status=GameStatus.IN_PROGRESS,
        current_round=JeopardyRound(current_round),
        current_score=0,
        visibility=GameVisibility(visibility),
        use_knowledge_categories=config.get("mode") == "knowledge",
    )
    db.add(game)
    db.flush()
    return game


def get_game_question(db: Session, *, game_id: str, question_id: str):
    from models import GameQuestion

    return (
        db.query(GameQuestion)
        .filter(GameQuestion.game_id == game_id, GameQuestion.question_id == question_id)
        .first()
    )


def get_question(db: Session, *, question_id: str):
    from models import Question

    return db.query(Question).options(joinedload(Question.category)).filter(Question.id == question_id).first()


def get_guest_game(db: Session, *, guest_game_id: str):
    from models import GuestGame, GuestGameQuestion, Question

    return (
        db.query(GuestGame)
        .options(
            joinedload(GuestGame.guest_session),
            joinedload(GuestGame.questions).joinedload(GuestGameQuestion.question).joinedload(Question.category),
        )
        .filter(GuestGame.id == guest_game_id)
        .first()
    )


def create_guest_game(db: Session, *, guest_session_id: str, seed: str, config: dict):
    from models import GameStatus, GuestGame, JeopardyRound

    guest_game = GuestGame(
        guest_session_id=guest_session_id,
        seed=seed,
        config=config,
        status=GameStatus.IN_PROGRESS,
        current_round=JeopardyRound.SINGLE,
        current_score=0,
    )
    db.add(guest_game)
    db.flush()
    return guest_game


def list_air_dates(db: Session) -> List:
    from models import Question

    rows = (
        db.query(Question.air_date)
        .filter(Question.air_date.isnot(None))
        .distinct()
        .order_by(Question.air_date.desc())
        .all()
    )
    return [air_date for (air_date,) in rows]


def approved_game_disputes(db: Session, *, game_id: str, since) -> List:
    from models import AnswerDispute, DisputeMode, DisputeStatus

    return (
        db.query(AnswerDispute)
        .options(joinedload(AnswerDispute.question))
        .filter(
            AnswerDispute.game_id == game_id,
            AnswerDispute.status == DisputeStatus.APPROVED,
            AnswerDispute.mode == DisputeMode.GAME,
            AnswerDispute.resolved_at >= since,
        )
        .order_by(AnswerDispute.resolved_at.desc())
        .all()
    )
