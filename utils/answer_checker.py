"""
Rule-based answer matching for Jeopardy-style responses.

Matching tolerates the usual response phrasing ("What is ..."), leading
articles and honorifics, parenthetical alternates ("Lincoln (or Honest Abe)")
and small typos (Jaro-Winkler similarity).
"""

import re
import unicodedata
from typing import Iterable, List, Optional

ARTICLES = ("a", "an", "the")

TITLE_PREFIXES = (
    "mr", "mrs", "ms", "miss", "dr", "doctor", "prof", "professor",
    "mt", "mount", "st", "saint", "sir", "dame", "lord", "lady",
)

EXACT_SIMILARITY = 0.93
EXACT_LENGTH_RATIO = 0.85
FALLBACK_SIMILARITY = 0.90
FALLBACK_LENGTH_RATIO = 0.8

_DASHES = re.compile("[\u2010-\u2015\u2212\uFE58\uFE63\uFF0D-]")
_QUOTES = re.compile("['\"\u2018\u2019\u201c\u201d]")
_NON_WORD = re.compile(r"[^a-z0-9\s&]")
_QUESTION_PHRASE = re.compile(r"^(what|who|where|when)\s+(is|are|was|were)\s+", re.IGNORECASE)
_QUESTION_CONTRACTION = re.compile("^(what|who|where|when)['\u2019]s\\s+", re.IGNORECASE)


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_text(text: str) -> str:
    text = strip_accents(text).lower()
    text = _DASHES.sub(" ", text)
    text = _QUOTES.sub("", text)
    text = _NON_WORD.sub("", text)
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"\s*&\s*", " and ", text)
    return text.strip()


def strip_articles(text: str) -> str:
    words = normalize_text(text).split(" ")
    while len(words) > 1 and words[0] in ARTICLES:
        words.pop(0)
    return " ".join(words)


def strip_question_phrase(text: str) -> str:
    stripped = text.strip()
    stripped = _QUESTION_CONTRACTION.sub("", stripped)
    stripped = _QUESTION_PHRASE.sub("", stripped)
    return stripped.strip()


def strip_title_prefix(text: str) -> str:
    words = text.strip().split()
    if len(words) > 1:
        first = re.sub(r"[.,]", "", words[0].lower())
        if first in TITLE_PREFIXES:
            return " ".join(words[1:])
    return text


def parenthetical_variants(text: str) -> List[str]:
    variants = [text]

    # "Lincoln (or Honest Abe)"
    end = re.match(r"^(.+?)\s*\((.+?)\)\s*$", text)
    if end:
        variants.append(end.group(1).strip())
        content = end.group(2).strip()
        if content.lower().startswith("or "):
            content = content[3:].strip()
        if content:
            variants.append(content)

    # "(Robert) Pattinson"
    start = re.match(r"^\((.+?)\)\s+(.+)$", text)
    if start:
        variants.append(start.group(2).strip())
        variants.append(f"{start.group(1).strip()} {start.group(2).strip()}")

    # "the (Cincinnati) Reds"
    mid = re.match(r"^(.+?)\s*\((.+?)\)\s*(.+)$", text)
    if mid and not end and not start:
        before, content, after = (g.strip() for g in mid.groups())
        variants.extend([f"{before} {after}", f"{before} {content} {after}", after, f"{content} {after}"])

    seen = []
    for variant in variants:
        if variant and variant not in seen:
            seen.append(variant)
    return seen


def jaro_winkler(s1: str, s2: str) -> float:
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    match_window = max(len(s1), len(s2)) // 2 - 1
    s1_matches = [False] * len(s1)
    s2_matches = [False] * len(s2)
    matches = 0

    for i, ch in enumerate(s1):
        lo = max(0, i - match_window)
        hi = min(i + match_window + 1, len(s2))
        for j in range(lo, hi):
            if s2_matches[j] or ch != s2[j]:
                continue
            s1_matches[i] = s2_matches[j] = True
            matches += 1
            break

    if not matches:
        return 0.0

    transpositions = 0
    k = 0
    for i, ch in enumerate(s1):
        if not s1_matches[i]:
            continue
        while not s2_matches[k]:
            k += 1
        if ch != s2[k]:
            transpositions += 1
        k += 1

    jaro = (matches / len(s1) + matches / len(s2) + (matches - transpositions / 2) / matches) / 3

    prefix = 0
    for a, b in zip(s1[:4], s2[:4]):
        if a != b:
            break
        prefix += 1

    return jaro + prefix * 0.1 * (1 - jaro)


def _is_close_typo(user: str, correct: str, *, min_similarity: float, min_ratio: float) -> bool:
    if not user or not correct:
        return False
    ratio = min(len(user), len(correct)) / max(len(user), len(correct))
    return (
        jaro_winkler(user, correct) >= min_similarity
        and ratio >= min_ratio
        and user[0] == correct[0]
    )


def exact_match(user_answer: str, correct_answer: str) -> bool:
    user = strip_question_phrase(user_answer)
    correct = strip_question_phrase(correct_answer)
    if not user or not correct:
        return False

    for uv in parenthetical_variants(user):
        for cv in parenthetical_variants(correct):
            for u in (uv, strip_title_prefix(uv)):
                for c in (cv, strip_title_prefix(cv)):
                    norm_u = strip_articles(u)
                    norm_c = strip_articles(c)
                    if norm_u == norm_c:
                        return True

                    # hyphen/space variations
                    comp_u = norm_u.replace(" ", "")
                    comp_c = norm_c.replace(" ", "")
                    if comp_u == comp_c:
                        return True

                    if _is_close_typo(
                        comp_u, comp_c, min_similarity=EXACT_SIMILARITY, min_ratio=EXACT_LENGTH_RATIO
                    ):
                        return True
    return False


def fallback_match(user_answer: str, correct_answer: str, overrides: Optional[Iterable[str]] = None) -> bool:
    user = strip_question_phrase(user_answer)
    correct = strip_question_phrase(correct_answer)

    user_variants = [v for base in parenthetical_variants(user) for v in (base, strip_title_prefix(base))]
    correct_variants = [v for base in parenthetical_variants(correct) for v in (base, strip_title_prefix(base))]

    for uv in user_variants:
        for cv in correct_variants:
            norm_u = strip_articles(uv)
            norm_c = strip_articles(cv)
            if norm_u == norm_c:
                return True

            # Last name only for a 2-3 word name
            u_words = norm_u.split()
            c_words = norm_c.split()
            if len(u_words) == 1 and 2 <= len(c_words) <= 3 and u_words[0] == c_words[-1]:
                return True

            if _is_close_typo(
                norm_u.replace(" ", ""),
                norm_c.replace(" ", ""),
                min_similarity=FALLBACK_SIMILARITY,
                min_ratio=FALLBACK_LENGTH_RATIO,
            ):
                return True

    for override in overrides or ():
        if fallback_match(user_answer, override):
            return True
    return False


def check_answer(user_answer: str, correct_answer: str, overrides: Optional[Iterable[str]] = None) -> bool:
    """True when `user_answer` is an acceptable response to `correct_answer` or any override."""
    overrides = list(overrides or ())
    if not strip_question_phrase(user_answer) or not strip_question_phrase(correct_answer):
        return False

    if exact_match(user_answer, correct_answer):
        return True

    for override in overrides:
        if exact_match(user_answer, override):
            return True

    return fallback_match(user_answer, correct_answer, overrides)


def calculate_points(user_answer: str, correct_answer: str, point_value: int) -> int:
    return point_value if check_answer(user_answer, correct_answer) else 0
