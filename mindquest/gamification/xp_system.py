"""
XP and Leveling System

Leveling Curve:
- The XP needed to leave level L is an arithmetic series with base 200 and
  per-level increment 20: threshold(L) = L/2 * (2*200 + (L-1)*20)
- threshold(1) = 200, threshold(2) = 420, threshold(3) = 660, ...
- XP is cumulative and never resets between levels; there is no level cap

XP Award Rules:
- Small daily task: 10 XP
- Mood check-in (first of the day): 5 XP
- Big Quest: 50 XP
- Hydration goal (8/8): 20 XP
- All five fitness tasks: 25 XP
- Each newly earned badge: 25 XP bonus
"""

from typing import Dict, Optional, Tuple
import logging

from mindquest.exceptions import ValidationError

logger = logging.getLogger(__name__)

BASE_XP = 200
XP_INCREMENT = 20

XP_REWARDS = {
    "task": 10,
    "mood": 5,
    "quest": 50,
    "hydration": 20,
    "fitness": 25,
}


def xp_threshold_for_level(level: int) -> int:
    """
    Total XP at which a user leaves the given level

    Returns 0 for level <= 0. The series sum is always an exact integer
    because (2*BASE_XP + (level-1)*XP_INCREMENT) is even.
    """
    if level <= 0:
        return 0
    return level * (2 * BASE_XP + (level - 1) * XP_INCREMENT) // 2


def apply_xp(amount: int, level: Optional[int], xp: Optional[int]) -> Tuple[int, int]:
    """
    Add XP and recompute the level

    Args:
        amount: XP to add (must be >= 0)
        level: Current level (absent means 1)
        xp: Current cumulative XP (absent means 0)

    Returns:
        (new_level, new_xp). The level only ever goes up.
    """
    if amount < 0:
        raise ValidationError(message="XP amount cannot be negative", field="amount", value=amount)

    current_level = level or 1
    new_xp = (xp or 0) + amount
    new_level = current_level

    while new_xp >= xp_threshold_for_level(new_level):
        new_level += 1

    if new_level > current_level:
        logger.info(f"Level up: {current_level} -> {new_level} ({new_xp} XP)")

    return new_level, new_xp


def level_progress(level: Optional[int], xp: Optional[int]) -> Dict[str, float]:
    """
    Progress through the current level, for the XP bar

    Returns:
        {
            'level': int,
            'xp': int,
            'xp_in_current_level': int,
            'xp_needed_for_level': int,
            'progress_fraction': float (0.0 - 1.0)
        }
    """
    current_level = level or 1
    current_xp = xp or 0
    level_start = xp_threshold_for_level(current_level - 1) if current_level > 1 else 0
    level_end = xp_threshold_for_level(current_level)

    xp_in_level = current_xp - level_start
    xp_needed = level_end - level_start
    fraction = xp_in_level / xp_needed if xp_needed > 0 else 0.0

    return {
        "level": current_level,
        "xp": current_xp,
        "xp_in_current_level": xp_in_level,
        "xp_needed_for_level": xp_needed,
        "progress_fraction": max(0.0, min(1.0, fraction)),
    }
