"""Helpers that read the JSON `config` stored on Game/GuestGame rows."""

import secrets
import string
from datetime import date
from typing import List, Optional

DEFAULT_ROUNDS = {"single": True, "double": True, "final": False}
QUESTIONS_PER_ROUND = 30  # 6 categories x 5 clues

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_SEED_ALPHABET = string.ascii_letters + string.digits + "_-"


def generate_seed(length: int = 10) -> str:
    return "".join(secrets.choice(_SEED_ALPHABET) for _ in range(length))


def get_rounds(config: Optional[dict]) -> dict:
    rounds = (config or {}).get("rounds") or DEFAULT_ROUNDS
    return {
        "single": bool(rounds.get("single")),
        "double": bool(rounds.get("double")),
        "final": bool(rounds.get("final")),
    }


def starting_round(config: Optional[dict]) -> str:
    rounds = get_rounds(config)
    if rounds["single"]:
        return "SINGLE"
    if rounds["double"]:
        return "DOUBLE"
    return "SINGLE"


def expected_question_count(config: Optional[dict], *, include_final: bool = True) -> int:
    rounds = get_rounds(config)
    total = 0
    if rounds["single"]:
        total += QUESTIONS_PER_ROUND
    if rounds["double"]:
        total += QUESTIONS_PER_ROUND
    if include_final and rounds["final"]:
        total += 1
    return total


def round_badges(config: Optional[dict]) -> List[str]:
    rounds = get_rounds(config)
    return [label for key, label in (("single", "Single"), ("double", "Double"), ("final", "Final")) if rounds[key]]


def round_labels(config: Optional[dict]) -> List[str]:
    return [f"{badge} Jeopardy" for badge in round_badges(config)]


def rounds_played(config: Optional[dict]) -> int:
    return len(round_badges(config))


def _short_date(value: str) -> Optional[str]:
    try:
        parsed = date.fromisoformat(value[:10])
    except (TypeError, ValueError):
        return None
    return f"{MONTH_ABBR[parsed.month - 1]} {parsed.day}, {parsed.year}"


def game_label(config: Optional[dict]) -> str:
    cfg = config or {}
    mode = cfg.get("mode")
    if not mode:
        return "Game"

    if mode == "random":
        return "Random Categories"
    if mode == "knowledge":
        areas = cfg.get("categories") or []
        if len(areas) == 1:
            return areas[0].replace("_", " ")
        if len(areas) > 1:
            return f"{len(areas)} Knowledge Areas"
        return "Knowledge Game"
    if mode == "custom":
        return f"Custom ({len(cfg.get('categoryIds') or [])} categories)"
    if mode == "date":
        short = _short_date(cfg.get("date") or "")
        return f"Episode: {short}" if short else "Date Game"
    return "Game"


def high_score_mode_label(config: Optional[dict]) -> str:
    cfg = config or {}
    mode = cfg.get("mode")
    if mode == "random":
        return "Random"
    if mode == "knowledge":
        areas = cfg.get("categories") or []
        if len(areas) == 1:
            return areas[0].replace("_", " ").title()
        return f"{len(areas)} Knowledge Areas"
    if mode == "custom":
        return "Custom Categories"
    if mode == "date":
        return _short_date(cfg.get("date") or "") or "Classic"
    return "Classic"
