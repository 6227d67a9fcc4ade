"""
Badge (Achievement) System

Badges are a static, ordered table of rules. Each rule is a pure predicate
over a user progress snapshot; only the ids of earned badges are persisted.

Categories:
- quests: completed Big Quest nodes
- journaling: journal entry counts
- consistency: Big Quest streak
- fitness: daily fitness challenges

Every newly earned badge pays BADGE_BONUS_XP on top of the XP of the action
that earned it, in the same write.
"""

from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional
import logging

from mindquest.gamification.world_map import NODES_PER_PATH, is_fitness_node
from mindquest.utils.snapshot import safe_dict, safe_int, safe_list

logger = logging.getLogger(__name__)

BADGE_BONUS_XP = 25

Snapshot = Dict[str, Any]


class BadgeRule(NamedTuple):
    id: str
    name: str
    description: str
    category: str
    check: Callable[[Snapshot], bool]


def _completed_nodes(data: Snapshot) -> List[Any]:
    return safe_list(data.get("completedNodes"))


def _path_nodes_completed(data: Snapshot) -> int:
    return len([n for n in _completed_nodes(data) if isinstance(n, str) and not is_fitness_node(n)])


def _journal_count(data: Snapshot) -> int:
    return len(safe_list(data.get("journal")))


def _fitness_day_completed(data: Snapshot) -> bool:
    tasks = safe_list(safe_dict(data.get("dailyFitness")).get("tasks"))
    return bool(tasks) and all(safe_dict(task).get("completed") is True for task in tasks)


BADGES: List[BadgeRule] = [
    # Quests
    BadgeRule("first_quest", "First Quest", "Complete your first Big Quest.", "quests",
              lambda data: len(_completed_nodes(data)) >= 1),
    BadgeRule("pathfinder", "Pathfinder", "Complete 3 Big Quests.", "quests",
              lambda data: len(_completed_nodes(data)) >= 3),
    BadgeRule("trailblazer", "Trailblazer", "Complete all nodes on your path.", "quests",
              lambda data: _path_nodes_completed(data) >= NODES_PER_PATH),
    # Journaling
    BadgeRule("scribe", "Scribe", "Write your first journal entry.", "journaling",
              lambda data: _journal_count(data) >= 1),
    BadgeRule("diarist", "Diarist", "Write 5 journal entries.", "journaling",
              lambda data: _journal_count(data) >= 5),
    BadgeRule("storyteller", "Storyteller", "Write 15 journal entries.", "journaling",
              lambda data: _journal_count(data) >= 15),
    # Consistency
    BadgeRule("week_streak", "Week Streak", "Maintain a 7-day quest streak.", "consistency",
              lambda data: safe_int(data.get("streak")) >= 7),
    BadgeRule("month_streak", "Month Streak", "Maintain a 30-day quest streak.", "consistency",
              lambda data: safe_int(data.get("streak")) >= 30),
    # Fitness
    BadgeRule("first_steps", "First Steps", "Complete your first day of fitness challenges.", "fitness",
              _fitness_day_completed),
    BadgeRule("energizer", "Energizer", "Complete fitness challenges 5 times.", "fitness",
              lambda data: safe_int(data.get("fitnessCompletions")) >= 5),
]

_BADGES_BY_ID = {badge.id: badge for badge in BADGES}


def get_badge(badge_id: str) -> Optional[BadgeRule]:
    return _BADGES_BY_ID.get(badge_id)


def find_new_badges(snapshot: Snapshot, held: Optional[Iterable[str]] = None) -> List[str]:
    """
    Evaluate every badge rule against a snapshot

    Args:
        snapshot: User progress snapshot (already including the action's changes)
        held: Badge ids the user already has (defaults to snapshot['badges'])

    Returns:
        Ids of badges whose rule is satisfied and which are not held yet,
        in table order
    """
    held_ids = set(safe_list(snapshot.get("badges")) if held is None else held)
    newly_earned = []

    for badge in BADGES:
        if badge.id in held_ids:
            continue
        try:
            earned = bool(badge.check(snapshot))
        except (TypeError, AttributeError) as e:
            # Malformed nested fields count as "not earned"
            logger.warning(f"Badge rule {badge.id} could not evaluate snapshot: {e}")
            earned = False
        if earned:
            newly_earned.append(badge.id)

    return newly_earned


def merge_badges(held: Any, new_badges: Iterable[str]) -> List[str]:
    """Append new badge ids to the held list, keeping order and dropping duplicates"""
    merged = list(safe_list(held))
    for badge_id in new_badges:
        if badge_id not in merged:
            merged.append(badge_id)
    return merged


def badge_bonus_xp(new_badges: List[str]) -> int:
    return len(new_badges) * BADGE_BONUS_XP


def badge_names(badge_ids: Iterable[str]) -> List[str]:
    """Display names for badge ids (unknown ids are skipped)"""
    return [badge.name for badge in (get_badge(badge_id) for badge_id in badge_ids) if badge]
