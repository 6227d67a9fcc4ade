"""
Gamification rules for MindQuest

This package holds the pure progression rules:
- XP curve and leveling
- Badge rule table
- Big Quest streaks
- World map nodes and sequential unlocks
- Static fallback content

Nothing here performs I/O; services in mindquest.services apply these rules
and persist the results.
"""

from mindquest.gamification.xp_system import apply_xp, level_progress, xp_threshold_for_level
from mindquest.gamification.achievement_system import (
    BADGE_BONUS_XP,
    BADGES,
    find_new_badges,
    merge_badges,
)
from mindquest.gamification.streak_system import next_streak
from mindquest.gamification.world_map import MAP_NODES, next_node_to_unlock, nodes_for_path

__all__ = [
    "apply_xp",
    "level_progress",
    "xp_threshold_for_level",
    "BADGE_BONUS_XP",
    "BADGES",
    "find_new_badges",
    "merge_badges",
    "next_streak",
    "MAP_NODES",
    "next_node_to_unlock",
    "nodes_for_path",
]
