"""
Big Quest Streak Tracking

The streak counts consecutive calendar days with a completed Big Quest:
- Quest completed the day after lastQuestDate: streak continues (+1)
- Any gap (or no previous quest): streak restarts at 1
- A second completion on the same day is refused by the caller, so it
  never reaches this rule
"""

from datetime import date, timedelta
from typing import Any, Dict, Optional
import logging

from mindquest.utils.datetime_helpers import day_of
from mindquest.utils.snapshot import safe_int

logger = logging.getLogger(__name__)


def next_streak(previous_streak: Any, last_quest_date: Optional[str], today: date) -> int:
    """
    Compute the streak after completing a Big Quest today

    Args:
        previous_streak: Stored streak (absent or malformed counts as 0)
        last_quest_date: Stored YYYY-MM-DD of the previous Big Quest, or None
        today: Today's local date

    Returns:
        The new streak value (always >= 1)
    """
    yesterday = (today - timedelta(days=1)).isoformat()
    if day_of(last_quest_date) == yesterday:
        return safe_int(previous_streak) + 1
    return 1


def quest_completed_today(snapshot: Dict[str, Any], today: date) -> bool:
    """True if the stored lastQuestDate is today"""
    return day_of(snapshot.get("lastQuestDate")) == today.isoformat()


def describe_streak(previous_streak: Any, new_streak: int) -> str:
    """Short user-facing streak message"""
    if new_streak == 1 and safe_int(previous_streak) > 1:
        return f"Streak reset. Previous: {safe_int(previous_streak)} days. Starting fresh! Day 1 💪"
    if new_streak == 1:
        return "Streak started! Day 1 🎉"
    return f"Streak continues! Day {new_streak} 🔥"
