"""Generation endpoint client and prompt builders"""

from mindquest.generation.client import GenerationClient, extract_candidate_text, parse_generated_json
from mindquest.generation.prompts import (
    build_daily_tasks_prompt,
    build_fitness_prompt,
    build_insight_prompt,
)

__all__ = [
    "GenerationClient",
    "extract_candidate_text",
    "parse_generated_json",
    "build_daily_tasks_prompt",
    "build_fitness_prompt",
    "build_insight_prompt",
]
