"""
Daily challenge timing.

Challenges unlock at 9:00 AM in the app timezone (America/New_York by
default). Before that moment the previous calendar day's challenge is still
the active one.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

from core.config import APP_TIMEZONE

UNLOCK_HOUR = 9


def _tz():
    return pytz.timezone(APP_TIMEZONE)


def _local_now(now: Optional[datetime] = None) -> datetime:
    if now is None:
        now = datetime.now(pytz.utc)
    elif now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(_tz())


def get_today_in_app_timezone(now: Optional[datetime] = None) -> date:
    return _local_now(now).date()


def get_active_challenge_date(now: Optional[datetime] = None) -> date:
    local = _local_now(now)
    if local.hour < UNLOCK_HOUR:
        return local.date() - timedelta(days=1)
    return local.date()


def get_next_challenge_time(now: Optional[datetime] = None) -> datetime:
    """UTC instant of the next 9 AM unlock."""
    local = _local_now(now)
    unlock_day = local.date()
    if local.hour >= UNLOCK_HOUR:
        unlock_day += timedelta(days=1)
    # localize() picks the correct DST offset for that calendar day
    unlock_local = _tz().localize(datetime.combine(unlock_day, time(UNLOCK_HOUR, 0)))
    return unlock_local.astimezone(pytz.utc)


def is_challenge_unlocked(challenge_date: date, now: Optional[datetime] = None) -> bool:
    return get_active_challenge_date(now) >= challenge_date


def parse_challenge_date(value: str) -> date:
    """Parse a YYYY-MM-DD key; raises ValueError on bad input."""
    return datetime.strptime(value, "%Y-%m-%d").date()
