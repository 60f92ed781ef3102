"""
Points used for statistics and leaderboards.

Stored GameHistory points may reflect wagers; stats normalize them so a Final
Jeopardy answer is always worth FINAL_STATS_CLUE_VALUE.
"""

from typing import Optional

DEFAULT_STATS_CLUE_VALUE = 200
FINAL_STATS_CLUE_VALUE = 2000


def get_stats_points(round_name, face_value: Optional[int], correct: bool) -> int:
    if not correct:
        return 0
    if str(getattr(round_name, "value", round_name)) == "FINAL":
        return FINAL_STATS_CLUE_VALUE
    return face_value if face_value is not None else DEFAULT_STATS_CLUE_VALUE
