from datetime import date, datetime

import pytest
import pytz

from models import JeopardyRound
from utils.daily_challenge_dates import (
    get_active_challenge_date,
    get_next_challenge_time,
    get_today_in_app_timezone,
    is_challenge_unlocked,
    parse_challenge_date,
)
from utils.game_progress import is_weekday, update_streak
from utils.scoring import get_stats_points


def test_challenge_unlocks_at_nine_new_york_time():
    # 13:00 UTC in January is 08:00 EST
    assert get_active_challenge_date(datetime(2024, 1, 15, 13, 0)) == date(2024, 1, 14)
    assert get_active_challenge_date(datetime(2024, 1, 15, 14, 0)) == date(2024, 1, 15)


def test_today_uses_app_timezone():
    # 03:00 UTC is still the previous evening in New York
    assert get_today_in_app_timezone(datetime(2024, 1, 15, 3, 0)) == date(2024, 1, 14)


def test_next_challenge_time_respects_dst():
    winter = get_next_challenge_time(datetime(2024, 1, 15, 13, 0))
    summer = get_next_challenge_time(datetime(2024, 7, 1, 12, 0))
    assert winter == pytz.utc.localize(datetime(2024, 1, 15, 14, 0))
    assert summer == pytz.utc.localize(datetime(2024, 7, 1, 13, 0))


def test_next_challenge_time_rolls_to_tomorrow_after_unlock():
    assert get_next_challenge_time(datetime(2024, 1, 15, 15, 0)) == pytz.utc.localize(datetime(2024, 1, 16, 14, 0))


def test_is_challenge_unlocked():
    now = datetime(2024, 1, 15, 13, 0)
    assert is_challenge_unlocked(date(2024, 1, 14), now) is True
    assert is_challenge_unlocked(date(2024, 1, 15), now) is False


def test_parse_challenge_date():
    assert parse_challenge_date("2024-02-29") == date(2024, 2, 29)
    with pytest.raises(ValueError):
        parse_challenge_date("02/29/2024")


@pytest.mark.parametrize(
    "round_name, value, correct, expected",
    [
        (JeopardyRound.SINGLE, 400, True, 400),
        ("DOUBLE", 1200, True, 1200),
        ("SINGLE", None, True, 200),
        ("FINAL", 0, True, 2000),
        (JeopardyRound.FINAL, 5000, True, 2000),
        ("SINGLE", 800, False, 0),
    ],
)
def test_stats_points(round_name, value, correct, expected):
    assert get_stats_points(round_name, value, correct) == expected


def test_weekday_detection():
    assert is_weekday(date(2024, 1, 15)) is True   # Monday
    assert is_weekday(date(2024, 1, 13)) is False  # Saturday
