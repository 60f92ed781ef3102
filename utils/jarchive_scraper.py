"""
J-Archive scraper.

Fetches season listings and game pages from j-archive.com and parses them
into plain dataclasses. Network failures are logged and surface as empty
results so callers (cron jobs, admin tools) can skip a date and move on.
"""

import logging
import re
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

import requests
from bs4 import BeautifulSoup

from core.config import JARCHIVE_BASE_URL, JARCHIVE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

MAX_SEASONS_TO_SEARCH = 5

MONTHS = {
    "January": 1, "February": 2, "March": 3, "April": 4, "May": 5, "June": 6,
    "July": 7, "August": 8, "September": 9, "October": 10, "November": 11, "December": 12,
}

# Checked in order; first hit wins.
KNOWLEDGE_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("GEOGRAPHY_AND_HISTORY", (
        "history", "geography", "world", "capital", "president", "war",
        "country", "nation", "state", "city", "ancient", "century",
    )),
    ("ENTERTAINMENT", (
        "movie", "film", "tv", "television", "actor", "music",
        "song", "singer", "band", "celebrity", "hollywood", "broadway",
    )),
    ("ARTS_AND_LITERATURE", (
        "art", "literature", "book", "author", "poet", "novel",
        "painting", "sculpture", "museum", "literary",
    )),
    ("SCIENCE_AND_NATURE", (
        "science", "nature", "animal", "biology", "physics", "chemistry",
        "math", "medicine", "health", "space", "planet", "element",
    )),
    ("SPORTS_AND_LEISURE", (
        "sport", "game", "olympic", "athlete", "team", "baseball",
        "football", "basketball", "hockey", "soccer", "golf", "tennis",
    )),
]


@dataclass
class ParsedQuestion:
    question: str
    answer: str
    value: int
    category: str
    round: str
    difficulty: str
    knowledge_category: str
    was_triple_stumper: bool = False

    def to_dict(self) -> dict:
        return {
            "question": self.question,
            "answer": self.answer,
            "value": self.value,
            "category": self.category,
            "round": self.round,
            "difficulty": self.difficulty,
            "knowledgeCategory": self.knowledge_category,
            "wasTripleStumper": self.was_triple_stumper,
        }


@dataclass
class ParsedCategory:
    name: str
    round: str
    questions: List[ParsedQuestion] = field(default_factory=list)


@dataclass
class ParsedGame:
    game_id: str
    show_number: Optional[str]
    air_date: Optional[str]
    title: str
    categories: List[ParsedCategory]
    questions: List[ParsedQuestion]

    @property
    def question_count(self) -> int:
        return len(self.questions)


@dataclass
class SeasonGame:
    game_id: str
    show_number: str
    air_date: str
    taped_date: Optional[str]
    url: str

    def to_dict(self) -> dict:
        return asdict(self)


def classify_knowledge_category(category_name: str) -> str:
    lower = category_name.lower()
    for knowledge_category, keywords in KNOWLEDGE_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return knowledge_category
    return "GENERAL_KNOWLEDGE"


def classify_difficulty(value: int, round_name: str) -> str:
    if round_name == "FINAL":
        return "HARD"
    if round_name == "DOUBLE":
        # $400 - $2000
        if value <= 800:
            return "EASY"
        if value <= 1200:
            return "MEDIUM"
        return "HARD"
    # $200 - $1000
    if value <= 400:
        return "EASY"
    if value <= 600:
        return "MEDIUM"
    return "HARD"


def extract_air_date_from_title(title: str) -> Optional[str]:
    """'Show #9428 - Wednesday, November 5, 2025' -> '2025-11-05'"""
    match = re.search(r"(\w+day),?\s+(\w+)\s+(\d+),?\s+(\d{4})", title)
    if not match:
        return None
    month = MONTHS.get(match.group(2), 1)
    return f"{match.group(4)}-{month:02d}-{int(match.group(3)):02d}"


def extract_show_number(title: str) -> Optional[str]:
    match = re.search(r"#(\d+)", title)
    return match.group(1) if match else None


def is_valid_date_format(value: str) -> bool:
    return bool(re.fullmatch(r"\d{4}-\d{2}-\d{2}", value or ""))


def is_future_date(value: str, today: Optional[date] = None) -> bool:
    today = today or datetime.utcnow().date()
    return value > today.isoformat()


def legacy_to_round(is_double_jeopardy: bool, is_final_jeopardy: bool = False) -> str:
    if is_final_jeopardy:
        return "FINAL"
    return "DOUBLE" if is_double_jeopardy else "SINGLE"


def _text(element) -> str:
    return element.get_text(" ", strip=True) if element is not None else ""


class JArchiveScraper:
    """Thin client around a requests.Session pointed at j-archive.com."""

    def __init__(self, base_url: str = JARCHIVE_BASE_URL, timeout: float = JARCHIVE_TIMEOUT_SECONDS, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": DEFAULT_USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        })

    def _get_soup(self, path: str) -> BeautifulSoup:
        url = f"{self.base_url}/{path.lstrip('/')}"
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return BeautifulSoup(response.content, "html.parser")

    # ---- seasons -----------------------------------------------------

    def discover_seasons(self) -> List[int]:
        try:
            soup = self._get_soup("/listseasons.php")
        except requests.RequestException as e:
            logger.error(f"JARCHIVE_SEASONS_FAILED | error={e}")
            return []

        seasons = set()
        for link in soup.find_all("a", href=True):
            match = re.search(r"showseason\.php\?season=(\d+)", link["href"])
            if match:
                seasons.add(int(match.group(1)))
        return sorted(seasons, reverse=True)

    def get_current_season(self) -> Optional[int]:
        try:
            soup = self._get_soup("/")
        except requests.RequestException as e:
            logger.error(f"JARCHIVE_HOMEPAGE_FAILED | error={e}")
            return None

        for link in soup.find_all("a"):
            href = link.get("href") or ""
            if "current season" in link.get_text().lower() or "season=" in href:
                match = re.search(r"season=(\d+)", href)
                if match:
                    return int(match.group(1))

        seasons = self.discover_seasons()
        return seasons[0] if seasons else None

    def get_season_games(self, season_number: int) -> List[SeasonGame]:
        try:
            soup = self._get_soup(f"/showseason.php?season={season_number}")
        except requests.RequestException as e:
            logger.error(f"JARCHIVE_SEASON_FAILED | season={season_number} | error={e}")
            return []

        games = []
        for link in soup.find_all("a", href=True):
            href = link["href"]
            game_id_match = re.search(r"game_id=(\d+)", href)
            if not game_id_match:
                continue
            text = link.get_text(" ", strip=True)
            air_date_match = re.search(r"aired\s+(\d{4}-\d{2}-\d{2})", text)
            if not air_date_match:
                continue
            show_number_match = re.search(r"#(\d+)", text)
            taped_match = re.search(r"Taped\s+(\d{4}-\d{2}-\d{2})", link.get("title") or "")
            games.append(SeasonGame(
                game_id=game_id_match.group(1),
                show_number=show_number_match.group(1) if show_number_match else "",
                air_date=air_date_match.group(1),
                taped_date=taped_match.group(1) if taped_match else None,
                url=href if href.startswith("http") else f"{self.base_url}/{href}",
            ))
        return games

    def find_game_by_date(self, target_date: str) -> Optional[SeasonGame]:
        target_year = int(target_date.split("-")[0])
        current = self.get_current_season()
        if not current:
            logger.error("JARCHIVE_NO_CURRENT_SEASON")
            return None

        searched = 0
        season = current
        while season > 0 and searched < MAX_SEASONS_TO_SEARCH:
            games = self.get_season_games(season)
            for game in games:
                if game.air_date == target_date:
                    logger.info(f"JARCHIVE_GAME_FOUND | date={target_date} | game_id={game.game_id} | season={season}")
                    return game

            if games:
                oldest_year = int(games[-1].air_date.split("-")[0])
                if oldest_year < target_year - 1:
                    break
            searched += 1
            season -= 1

        logger.info(f"JARCHIVE_GAME_NOT_FOUND | date={target_date} | seasons_searched={searched}")
        return None

    # ---- games -------------------------------------------------------

    def parse_game_by_id(self, game_id: str) -> Optional[ParsedGame]:
        try:
            soup = self._get_soup(f"/showgame.php?game_id={game_id}")
        except requests.RequestException as e:
            logger.error(f"JARCHIVE_GAME_FAILED | game_id={game_id} | error={e}")
            return None
        return parse_game_html(soup, game_id)

    def parse_game_by_date(self, target_date: str) -> Optional[ParsedGame]:
        info = self.find_game_by_date(target_date)
        if info is None:
            return None
        game = self.parse_game_by_id(info.game_id)
        if game is not None and not game.air_date:
            game.air_date = target_date
        return game


def parse_game_html(soup: BeautifulSoup, game_id: str) -> ParsedGame:
    title_el = soup.select_one("#game_title") or soup.find("h1")
    title = _text(title_el)

    categories: List[ParsedCategory] = []
    questions: List[ParsedQuestion] = []
    for selector, round_name in (
        ("#jeopardy_round", "SINGLE"),
        ("#double_jeopardy_round", "DOUBLE"),
        ("#final_jeopardy_round", "FINAL"),
    ):
        round_categories, round_questions = parse_round(soup, selector, round_name)
        categories.extend(round_categories)
        questions.extend(round_questions)

    return ParsedGame(
        game_id=str(game_id),
        show_number=extract_show_number(title),
        air_date=extract_air_date_from_title(title),
        title=title,
        categories=categories,
        questions=questions,
    )


def parse_round(soup: BeautifulSoup, selector: str, round_name: str):
    round_el = soup.select_one(selector)
    if round_el is None:
        return [], []

    if round_name == "FINAL":
        category_name = _text(round_el.select_one(".category_name")) or "Final Jeopardy"
        clue_text = _text(round_el.select_one(".clue_text"))
        if not clue_text:
            return [], []
        response_text = _text(round_el.select_one(".correct_response"))
        question = ParsedQuestion(
            question=clue_text,
            answer=response_text or "[Answer not found]",
            value=0,
            category=category_name,
            round="FINAL",
            difficulty="HARD",
            knowledge_category=classify_knowledge_category(category_name),
            was_triple_stumper="triple stumper" in round_el.get_text(" ").lower(),
        )
        return [ParsedCategory(name=category_name, round="FINAL", questions=[question])], [question]

    prefix = "DJ" if round_name == "DOUBLE" else "J"
    base_value = 400 if round_name == "DOUBLE" else 200
    names = [_text(el) for el in round_el.select(".category_name")]

    by_name: Dict[str, ParsedCategory] = {}
    questions: List[ParsedQuestion] = []
    for category_idx in range(1, 7):
        name = names[category_idx - 1] if category_idx <= len(names) and names[category_idx - 1] else f"Category {category_idx}"
        category = by_name.setdefault(name, ParsedCategory(name=name, round=round_name))

        for row_idx in range(1, 6):
            clue_id = f"clue_{prefix}_{category_idx}_{row_idx}"
            clue_text = _text(soup.find(id=clue_id))
            if not clue_text:
                continue

            response_el = soup.find(id=f"{clue_id}_r")
            answer = _text(response_el.select_one(".correct_response")) if response_el is not None else ""
            value = base_value * row_idx
            question = ParsedQuestion(
                question=clue_text,
                answer=answer or "[Answer not found]",
                value=value,
                category=name,
                round=round_name,
                difficulty=classify_difficulty(value, round_name),
                knowledge_category=classify_knowledge_category(name),
                was_triple_stumper=response_el is not None and "triple stumper" in response_el.get_text(" ").lower(),
            )
            questions.append(question)
            category.questions.append(question)

    return list(by_name.values()), questions
