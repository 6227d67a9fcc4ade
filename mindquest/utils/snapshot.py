"""Tolerant accessors for user progress snapshots

Snapshots are plain dicts as delivered by the document store. Older or
hand-edited documents may be missing fields or hold the wrong type, so every
reader goes through these helpers instead of indexing directly.
"""
import time
from typing import Any, Dict, List
from uuid import uuid4


def safe_list(value: Any) -> List[Any]:
    """Return value if it is a list, otherwise an empty list"""
    return value if isinstance(value, list) else []


def safe_dict(value: Any) -> Dict[str, Any]:
    """Return value if it is a dict, otherwise an empty dict"""
    return value if isinstance(value, dict) else {}


def safe_int(value: Any, default: int = 0) -> int:
    """Return value as an int counter, falling back to default"""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return default


def generate_unique_id() -> str:
    """Unique id for tasks and journal entries: id-<epoch ms>-<9 hex chars>"""
    return f"id-{int(time.time() * 1000)}-{uuid4().hex[:9]}"
