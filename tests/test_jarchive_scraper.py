from datetime import date

import pytest
import requests

from utils.jarchive_scraper import (
    JArchiveScraper,
    classify_difficulty,
    classify_knowledge_category,
    extract_air_date_from_title,
    is_future_date,
    is_valid_date_format,
)

GAME_HTML = """
<html><body>
<div id="game_title"><h1>Show #8123 - Monday, January 6, 2020</h1></div>
<div id="jeopardy_round">
  <td class="category_name">WORLD CAPITALS</td>
  <td class="category_name">POTENT POTABLES</td>
  <td id="clue_J_1_1">This city on the Seine is France's capital</td>
  <div id="clue_J_1_1_r"><em class="correct_response">Paris</em></div>
  <td id="clue_J_1_2">Japan's capital</td>
  <div id="clue_J_1_2_r"><em class="correct_response">Tokyo</em><td>Triple Stumper</td></div>
  <td id="clue_J_2_1">A gin and tonic garnish</td>
</div>
<div id="double_jeopardy_round">
  <td class="category_name">PLANETS</td>
  <td id="clue_DJ_1_3">The red one</td>
  <div id="clue_DJ_1_3_r"><em class="correct_response">Mars</em></div>
</div>
<div id="final_jeopardy_round">
  <td class="category_name">AUTHORS</td>
  <td class="clue_text">He wrote "Moby-Dick"</td>
  <em class="correct_response">Herman Melville</em>
</div>
</body></html>
"""

SEASON_HTML = """
<html><body>
<a href="showgame.php?game_id=6501" title="Taped 2019-12-01">#8124, aired 2020-01-07</a>
<a href="showgame.php?game_id=6500">#8123, aired 2020-01-06</a>
<a href="showplayer.php?player_id=1">Someone</a>
</body></html>
"""

HOME_HTML = '<html><body><a href="showseason.php?season=36">Current season</a></body></html>'


class FakeResponse:
    def __init__(self, text, status_code=200):
        self.content = text.encode()
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, pages):
        self.pages = pages
        self.headers = {}
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        for fragment, body in self.pages.items():
            if url.endswith(fragment):
                return FakeResponse(body)
        return FakeResponse("", status_code=404)


@pytest.fixture
def scraper():
    session = FakeSession({
        "showgame.php?game_id=6500": GAME_HTML,
        "showseason.php?season=36": SEASON_HTML,
        "j-archive.test/": HOME_HTML,
    })
    return JArchiveScraper(base_url="https://j-archive.test", session=session)


def test_parse_game_by_id(scraper):
    game = scraper.parse_game_by_id("6500")

    assert game.show_number == "8123"
    assert game.air_date == "2020-01-06"
    assert [(q.round, q.category, q.value, q.answer) for q in game.questions] == [
        ("SINGLE", "WORLD CAPITALS", 200, "Paris"),
        ("SINGLE", "WORLD CAPITALS", 400, "Tokyo"),
        ("SINGLE", "POTENT POTABLES", 200, "[Answer not found]"),
        ("DOUBLE", "PLANETS", 1200, "Mars"),
        ("FINAL", "AUTHORS", 0, "Herman Melville"),
    ]
    assert game.questions[1].was_triple_stumper is True
    assert game.questions[0].knowledge_category == "GEOGRAPHY_AND_HISTORY"
    assert game.questions[3].difficulty == "MEDIUM"


def test_parse_game_by_id_handles_http_errors(scraper):
    assert scraper.parse_game_by_id("999") is None


def test_season_games_and_date_lookup(scraper):
    games = scraper.get_season_games(36)

    assert [(g.game_id, g.show_number, g.air_date) for g in games] == [
        ("6501", "8124", "2020-01-07"),
        ("6500", "8123", "2020-01-06"),
    ]
    assert games[0].taped_date == "2019-12-01"
    assert scraper.get_current_season() == 36
    assert scraper.parse_game_by_date("2020-01-06").game_id == "6500"


def test_title_and_date_helpers():
    assert extract_air_date_from_title("Show #9428 - Wednesday, November 5, 2025") == "2025-11-05"
    assert extract_air_date_from_title("No date here") is None
    assert is_valid_date_format("2024-02-29")
    assert not is_valid_date_format("02/29/2024")
    assert is_future_date("2024-03-02", today=date(2024, 3, 1))
    assert not is_future_date("2024-03-01", today=date(2024, 3, 1))


@pytest.mark.parametrize("value,round_name,expected", [
    (200, "SINGLE", "EASY"),
    (600, "SINGLE", "MEDIUM"),
    (1000, "SINGLE", "HARD"),
    (800, "DOUBLE", "EASY"),
    (1200, "DOUBLE", "MEDIUM"),
    (2000, "DOUBLE", "HARD"),
    (0, "FINAL", "HARD"),
])
def test_classify_difficulty(value, round_name, expected):
    assert classify_difficulty(value, round_name) == expected


def test_classify_knowledge_category():
    assert classify_knowledge_category("FAMOUS PAINTINGS") == "ARTS_AND_LITERATURE"
    assert classify_knowledge_category("POTPOURRI") == "GENERAL_KNOWLEDGE"
