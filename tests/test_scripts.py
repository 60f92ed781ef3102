import json
from datetime import date

import pytest
import requests

from models import Category, Difficulty, Question
from scripts import backfill_jarchive, data_loader


class StubResponse:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")


class StubSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = 0

    def get(self, url, timeout=None):
        self.calls += 1
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.mark.parametrize("value,expected", [
    (200, Difficulty.EASY),
    (400, Difficulty.EASY),
    (600, Difficulty.MEDIUM),
    (800, Difficulty.MEDIUM),
    (1000, Difficulty.HARD),
])
def test_determine_difficulty(value, expected):
    assert data_loader.determine_difficulty(value) == (expected, value)


def test_missing_value_gets_board_value():
    difficulty, value = data_loader.determine_difficulty(None)

    assert 200 <= value <= 999
    assert difficulty in (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)


def test_load_questions_skips_duplicates(test_db):
    rows = [
        {"category": "OPERA", "question": "Verdi wrote this opera about an Ethiopian princess",
         "answer": "Aida", "value": 400, "airDate": "2021-05-04", "knowledgeCategory": "ARTS_AND_LITERATURE"},
        {"category": "OPERA", "question": "Bizet's cigarette-factory heroine",
         "answer": "Carmen", "value": 1000, "airDate": "2021-05-04"},
    ]

    assert data_loader.load_questions(test_db, rows) == {"created": 2, "skipped": 0}
    assert data_loader.load_questions(test_db, rows) == {"created": 0, "skipped": 2}

    category = test_db.query(Category).filter(Category.name == "OPERA").one()
    carmen = test_db.query(Question).filter(Question.answer == "Carmen").one()
    assert carmen.category_id == category.id
    assert carmen.difficulty == Difficulty.HARD
    assert carmen.air_date == date(2021, 5, 4)


def test_sample_file_round_trips(tmp_path):
    path = data_loader.write_sample_file(str(tmp_path / "sample.json"))

    with open(path) as f:
        assert json.load(f) == data_loader.SAMPLE_QUESTIONS
    assert len(data_loader.read_questions(path)) == 5


def test_parser_requires_a_command():
    parser = data_loader.build_parser()

    assert parser.parse_args(["clear", "--confirm"]).confirm is True
    with pytest.raises(SystemExit):
        parser.parse_args([])


def test_clear_requires_confirmation():
    assert data_loader.main(["clear"]) == 1


def test_analyze_content_needs_a_strong_signal():
    assert backfill_jarchive.analyze_content("A famous novel by this author") == "ARTS_AND_LITERATURE"
    assert backfill_jarchive.analyze_content("This river") == "GENERAL_KNOWLEDGE"
    assert backfill_jarchive.analyze_content("This river ran through the ancient empire") == "GEOGRAPHY_AND_HISTORY"


def test_category_name_drives_knowledge_category():
    clues = [{"question": "He hit 61 homers in 1961", "answer": "Roger Maris"}]

    assert backfill_jarchive.determine_knowledge_category("BASEBALL", clues) == "SPORTS_AND_LEISURE"


def test_question_hash_ignores_case():
    lower = {"question": "q", "answer": "a", "category": "c"}
    upper = {"question": "Q", "answer": "A", "category": "C"}

    assert backfill_jarchive.question_hash(lower) == backfill_jarchive.question_hash(upper)


def test_episode_fields():
    assert backfill_jarchive.episode_fields(4123) == {"season": 41, "episodeId": "S41E023"}
    assert backfill_jarchive.episode_fields(12) == {"season": None, "episodeId": None}


def test_fetch_with_retry_recovers_from_errors(monkeypatch):
    monkeypatch.setattr(backfill_jarchive.time, "sleep", lambda seconds: None)
    session = StubSession(requests.ConnectionError("reset"), StubResponse(429), StubResponse(200, "<html/>"))

    assert backfill_jarchive.fetch_with_retry(session, "https://j-archive.test/x") == "<html/>"
    assert session.calls == 3


def test_fetch_with_retry_raises_not_found():
    with pytest.raises(backfill_jarchive.GameNotFound):
        backfill_jarchive.fetch_with_retry(StubSession(StubResponse(404)), "https://j-archive.test/x")


def test_fetch_with_retry_gives_up(monkeypatch):
    monkeypatch.setattr(backfill_jarchive.time, "sleep", lambda seconds: None)
    session = StubSession(*[requests.Timeout("slow")] * 3)

    with pytest.raises(requests.Timeout):
        backfill_jarchive.fetch_with_retry(session, "https://j-archive.test/x", retries=3)
