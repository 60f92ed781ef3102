"""Display name normalization, validation and random defaults."""

import random
import re
from dataclasses import dataclass
from typing import Optional

MIN_LENGTH = 3
MAX_LENGTH = 20

RESERVED_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^admin$", r"^administrator$", r"^moderator$", r"^mod$", r"^staff$", r"^official$",
        r"^support$", r"^help$", r"^jeopardy$", r"^jeopardy!$",
        r"^jeopardy\s+", r"^official\s+", r"^staff\s+", r"^admin\s+",
        r"^system$", r"^bot$", r"^anonymous$", r"^guest$",
    )
]

ADJECTIVES = ("Quick", "Clever", "Bright", "Sharp", "Smart", "Witty", "Wise", "Bold", "Eager", "Grand")
NOUNS = ("Scholar", "Thinker", "Master", "Champion", "Expert", "Genius", "Sage", "Mind", "Brain", "Ace")

_ALLOWED_PUNCTUATION = set(" ._-")
_REPEATED_CHAR = re.compile(r"^(.)\1{4,}$")


@dataclass
class DisplayNameValidation:
    ok: bool
    normalized: Optional[str] = None
    code: Optional[str] = None
    message: Optional[str] = None


def _invalid(code: str, message: str) -> DisplayNameValidation:
    return DisplayNameValidation(ok=False, code=code, message=message)


def normalize_display_name(name: str) -> str:
    return " ".join(name.split())


def is_reserved_name(name: str) -> bool:
    lowered = normalize_display_name(name).lower()
    return any(pattern.search(lowered) for pattern in RESERVED_PATTERNS)


def validate_display_name(name: str) -> DisplayNameValidation:
    normalized = normalize_display_name(name or "")

    if not normalized:
        return _invalid("empty", "Display name cannot be empty")
    if len(normalized) < MIN_LENGTH:
        return _invalid("too_short", f"Display name must be at least {MIN_LENGTH} characters")
    if len(normalized) > MAX_LENGTH:
        return _invalid("too_long", f"Display name must be {MAX_LENGTH} characters or less")

    # str.isalnum covers unicode letters and digits
    if not all(ch.isalnum() or ch in _ALLOWED_PUNCTUATION for ch in normalized):
        return _invalid(
            "invalid_chars",
            "Display name can only contain letters, numbers, spaces, and the characters: . _ -",
        )
    if not any(ch.isalpha() for ch in normalized):
        return _invalid("invalid_chars", "Display name must contain at least one letter")
    if is_reserved_name(normalized):
        return _invalid("reserved", "This display name is reserved and cannot be used")
    if _REPEATED_CHAR.match(normalized):
        return _invalid("invalid_chars", "Display name contains invalid patterns")

    return DisplayNameValidation(ok=True, normalized=normalized)


def generate_random_display_name(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return f"{rng.choice(ADJECTIVES)}{rng.choice(NOUNS)}"
