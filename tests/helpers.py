"""Shared snapshot builders and the fixed test clock"""
from datetime import datetime, timezone

# Fixed "now" for every service under test: Wednesday 2024-05-15, 09:30 UTC
FIXED_NOW = datetime(2024, 5, 15, 9, 30, tzinfo=timezone.utc)
TODAY = "2024-05-15"
YESTERDAY = "2024-05-14"


def fixed_clock() -> datetime:
    return FIXED_NOW


def make_daily_content(date=TODAY, completed=(False, False, False), all_done=False):
    """Daily content with tasks t1 (simple), t2 (journaling), t3 (simple)"""
    categories = ["Resilience", "Focus", "Positivity"]
    return {
        "date": date,
        "tasks": [
            {
                "id": f"t{i + 1}",
                "category": categories[i],
                "text": f"Task {i + 1}",
                "isJournaling": i == 1,
                "completed": completed[i],
            }
            for i in range(3)
        ],
        "bigQuest": {"path": "resilience", "text": "Walk for ten minutes and notice three sounds."},
        "allSmallTasksCompleted": all_done,
    }


def make_daily_fitness(date=TODAY, completed=(False,) * 5):
    return {
        "date": date,
        "tasks": [
            {"id": f"f{level}", "text": f"Exercise {level}", "level": level, "completed": completed[level - 1]}
            for level in range(1, 6)
        ],
    }
