"""
Spoiler protection.

A policy blocks questions whose air date is on or after a cutoff. When
several users share a game, the most restrictive (earliest) cutoff among the
users who enabled protection wins. Games snapshot their policy into
``config["spoilerProtection"]`` at creation so later profile edits do not
change an in-flight board.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Union

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models import Game, Question, User


@dataclass(frozen=True)
class SpoilerPolicy:
    enabled: bool = False
    cutoff_date: Optional[date] = None

    @property
    def active(self) -> bool:
        return self.enabled and self.cutoff_date is not None


DISABLED_POLICY = SpoilerPolicy()


def _today() -> date:
    return datetime.utcnow().date()


def policy_for_user(user: Optional[User], *, today: Optional[date] = None) -> SpoilerPolicy:
    """Effective policy for one user; enabled without a date means 'start of today'."""
    if user is None or not user.spoiler_block_enabled:
        return DISABLED_POLICY
    return SpoilerPolicy(enabled=True, cutoff_date=user.spoiler_block_date or today or _today())


def compute_user_effective_cutoff(db: Session, user_id: str) -> SpoilerPolicy:
    user = db.query(User).filter(User.id == user_id).first()
    return policy_for_user(user)


def combine_policies(policies: Iterable[SpoilerPolicy]) -> SpoilerPolicy:
    enabled = [p for p in policies if p.enabled]
    if not enabled:
        return DISABLED_POLICY
    cutoffs = [p.cutoff_date for p in enabled if p.cutoff_date is not None]
    return SpoilerPolicy(enabled=True, cutoff_date=min(cutoffs) if cutoffs else _today())


def compute_combined_spoiler_policy(db: Session, user_ids: Iterable[str]) -> SpoilerPolicy:
    ids = [uid for uid in user_ids if uid]
    if not ids:
        return DISABLED_POLICY
    users = db.query(User).filter(User.id.in_(ids)).all()
    return combine_policies(policy_for_user(u) for u in users)


def to_stored_policy(policy: SpoilerPolicy) -> dict:
    return {
        "enabled": policy.enabled,
        "cutoffDate": policy.cutoff_date.isoformat() if policy.cutoff_date else None,
    }


def from_stored_policy(stored: Optional[dict]) -> SpoilerPolicy:
    if not stored:
        return DISABLED_POLICY
    raw = stored.get("cutoffDate")
    cutoff = None
    if raw:
        # Accept both date-only and full ISO timestamps
        cutoff = date.fromisoformat(str(raw)[:10])
    return SpoilerPolicy(enabled=bool(stored.get("enabled")), cutoff_date=cutoff)


def get_game_spoiler_policy(db: Session, game_id: str) -> SpoilerPolicy:
    game = db.query(Game).filter(Game.id == game_id).first()
    if game is None:
        return DISABLED_POLICY
    return policy_for_game(db, game)


def policy_for_game(db: Session, game: Game) -> SpoilerPolicy:
    stored = (game.config or {}).get("spoilerProtection")
    if stored:
        return from_stored_policy(stored)
    return compute_combined_spoiler_policy(db, [game.user_id, game.opponent_user_id])


def apply_air_date_filter(query, policy: SpoilerPolicy, column=Question.air_date):
    """Restrict a query to rows aired before the cutoff (unknown air dates pass)."""
    if not policy.active:
        return query
    return query.filter(or_(column.is_(None), column < policy.cutoff_date))


def would_violate_spoiler_policy(value: Union[date, datetime, str, None], policy: SpoilerPolicy) -> bool:
    if not policy.active or not value:
        return False
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    if isinstance(value, datetime):
        value = value.date()
    return value >= policy.cutoff_date


def format_cutoff_date(policy: SpoilerPolicy) -> Optional[str]:
    if not policy.active:
        return None
    cutoff = policy.cutoff_date
    return f"{cutoff.strftime('%B')} {cutoff.day}, {cutoff.year}"
