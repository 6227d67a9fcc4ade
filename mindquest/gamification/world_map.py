"""
World Map

Static node reference data: six ordered nodes per path. Completing all of a
day's small tasks unlocks the next node of the user's path; completing a
Big Quest on an unlocked node marks it completed.

Node ids starting with FITNESS_NODE_PREFIX are synthetic fitness pseudo-nodes
and never count towards path progress.
"""

from typing import Iterable, List, NamedTuple, Optional

FITNESS_NODE_PREFIX = "fit"
NODES_PER_PATH = 6


class MapNode(NamedTuple):
    id: str
    name: str
    path: str
    top: str
    left: str


MAP_NODES: List[MapNode] = [
    # Resilience
    MapNode("r1", "Steadfast Stone", "resilience", "10%", "50%"),
    MapNode("r2", "Grit Grove", "resilience", "25%", "30%"),
    MapNode("r3", "Unbending Mountain", "resilience", "40%", "70%"),
    MapNode("r4", "Anchor Point", "resilience", "55%", "40%"),
    MapNode("r5", "The Summit of Self", "resilience", "70%", "60%"),
    MapNode("r6", "Resilient River", "resilience", "85%", "30%"),
    # Focus
    MapNode("f1", "Quiet Clearing", "focus", "10%", "50%"),
    MapNode("f2", "Concentration Creek", "focus", "25%", "70%"),
    MapNode("f3", "Mindful Monolith", "focus", "40%", "30%"),
    MapNode("f4", "The Focused Eye", "focus", "55%", "60%"),
    MapNode("f5", "Deep Work Depths", "focus", "70%", "40%"),
    MapNode("f6", "Clarity Peak", "focus", "85%", "70%"),
    # Positivity
    MapNode("p1", "Gratitude Gardens", "positivity", "10%", "50%"),
    MapNode("p2", "Sun-Kissed Summit", "positivity", "25%", "30%"),
    MapNode("p3", "Joyful Spring", "positivity", "40%", "70%"),
    MapNode("p4", "Kindness Meadow", "positivity", "55%", "40%"),
    MapNode("p5", "The Optimist's Outlook", "positivity", "70%", "60%"),
    MapNode("p6", "Serenity Shore", "positivity", "85%", "30%"),
]

_NODES_BY_ID = {node.id: node for node in MAP_NODES}


def is_fitness_node(node_id: str) -> bool:
    return node_id.startswith(FITNESS_NODE_PREFIX)


def get_node(node_id: str) -> Optional[MapNode]:
    return _NODES_BY_ID.get(node_id)


def nodes_for_path(path: str) -> List[MapNode]:
    """Nodes of one path in unlock order"""
    return [node for node in MAP_NODES if node.path == path]


def path_unlocked_count(unlocked_nodes: Iterable[str]) -> int:
    """Number of unlocked nodes, fitness pseudo-nodes excluded"""
    return len([n for n in unlocked_nodes if isinstance(n, str) and not is_fitness_node(n)])


def next_node_to_unlock(path: str, unlocked_nodes: Iterable[str]) -> Optional[MapNode]:
    """
    The node unlocked by the next all-tasks-completed event

    Unlocking is strictly sequential: with N path nodes unlocked, node N is
    next. Returns None once the whole path is unlocked.
    """
    path_nodes = nodes_for_path(path)
    unlocked_count = path_unlocked_count(unlocked_nodes)
    if unlocked_count >= len(path_nodes):
        return None
    return path_nodes[unlocked_count]


def is_fitness_hub_unlocked(completed_nodes: Iterable[str]) -> bool:
    """The fitness hub opens with the first completed Big Quest"""
    return any(True for _ in completed_nodes)
