"""
Static Game Content

Fallback pools used when daily content cannot be generated, plus the fixed
reference tables for moods, paths and avatars.
"""

from typing import Dict, List, NamedTuple, Optional


class PoolTask(NamedTuple):
    text: str
    is_journaling: bool


# Daily small tasks, keyed by task category.
# Each category holds exactly one journaling-tagged entry.
FALLBACK_TASKS_POOL: Dict[str, List[PoolTask]] = {
    "Resilience": [
        PoolTask("Take a moment to identify one small thing you can control right now, and tidy it up.", False),
        PoolTask("Write down a challenge you've overcome in the past. What strength did you show?", True),
        PoolTask("Think of a time you felt strong. What did that feel like in your body? "
                 "Try to sit in that feeling for a minute.", False),
    ],
    "Focus": [
        PoolTask("For five minutes, put your phone in another room and focus on a single, non-digital task.", False),
        PoolTask("Describe a place where you feel calm and focused. What makes it that way?", True),
        PoolTask("Listen to a song without any distractions. Try to pick out one instrument "
                 "and follow it all the way through.", False),
    ],
    "Positivity": [
        PoolTask("Find something in nature (a cloud, a plant, a bird) and watch it for a full minute.", False),
        PoolTask("Jot down one nice thing someone did for you recently, no matter how small.", True),
        PoolTask("Send a quick message to a friend simply saying you're thinking of them.", False),
    ],
}

# Category whose journaling entry is forced in when no draw is a journaling task
JOURNALING_FALLBACK_CATEGORY = "Resilience"

FALLBACK_BIG_QUEST_TEXT = (
    "Spend 10 minutes organizing or simplifying one part of your digital life "
    "(like clearing old files or sorting bookmarks), then note how it felt."
)

# Fitness tasks by intensity level (1 = gentle warm-up, 5 = cool-down)
FITNESS_TASKS_POOL: Dict[int, List[str]] = {
    1: ["Complete 5 minutes of gentle, full-body stretching.",
        "Do 3 minutes of neck, shoulder, and wrist rolls."],
    2: ["Perform 20 jumping jacks to get your heart rate up.",
        "Do 15 high knees on each side."],
    3: ["Go for a 10-minute brisk walk, either outside or in place.",
        "Complete 3 sets of 10 bodyweight squats."],
    4: ["Hold a 45-second plank to engage your core.",
        "Perform 2 sets of 8 push-ups (on knees if needed)."],
    5: ["Follow a 5-minute cool-down stretch video.",
        "Practice 3 minutes of deep belly breathing to relax."],
}


class Mood(NamedTuple):
    value: int
    label: str
    prompt: str


MOODS: List[Mood] = [
    Mood(5, "Fantastic", "Fantastic! What's putting a smile on your face today?"),
    Mood(4, "Good", "Glad to see you're feeling good. Want to write about it?"),
    Mood(3, "Neutral", "Feeling neutral is perfectly okay. What's on your mind?"),
    Mood(2, "Down", "It's okay to feel down. What's contributing to this feeling?"),
    Mood(1, "Angry", "It's valid to feel this way. Writing about it might help."),
]

LOW_MOOD_THRESHOLD = 2

SUPPORT_RESOURCE_URL = "https://www.who.int/health-topics/mental-health"


def get_mood(value: int) -> Optional[Mood]:
    return next((mood for mood in MOODS if mood.value == value), None)


class PathInfo(NamedTuple):
    id: str
    name: str
    description: str


PATHS: List[PathInfo] = [
    PathInfo("resilience", "Resilience", "Build strength to navigate life's challenges."),
    PathInfo("focus", "Focus", "Sharpen your concentration and be more present."),
    PathInfo("positivity", "Positivity", "Cultivate a more optimistic and grateful outlook."),
]


class Avatar(NamedTuple):
    id: int
    name: str
    url: str


AVATARS: List[Avatar] = [
    Avatar(1, "Whispering Woods",
           "https://images.unsplash.com/photo-1448375240586-882707db888b?q=80&w=1956&auto=format&fit=crop"),
    Avatar(2, "Harmony Valley",
           "https://images.unsplash.com/photo-1509099395498-a26c959ba0b7?q=80&w=1960&auto=format&fit=crop"),
    Avatar(3, "Mountain Peak",
           "https://images.unsplash.com/photo-1486870591958-9b9d0d1dda99?q=80&w=1976&auto=format&fit=crop"),
    Avatar(4, "Golden Dunes",
           "https://images.unsplash.com/photo-1473580044384-7ba9967e16a0?q=80&w=2070&auto=format&fit=crop"),
]


def get_avatar(avatar_id: int) -> Optional[Avatar]:
    return next((avatar for avatar in AVATARS if avatar.id == avatar_id), None)
