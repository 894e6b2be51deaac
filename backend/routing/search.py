# backend/routing/search.py
"""
Path search over the road graph.

Every algorithm has the same signature

    search(start, end, graph, node_coords=None) -> SearchResult

where graph is the networkx.Graph from network.graph_builder (edge weight in
meters under "weight") and node_coords maps node id -> Coordinate. A result
with path=None means the end node is unreachable from the start node.

  - dfs:           depth-first, no optimality guarantee
  - dijkstra:      shortest path by edge length
  - a_star:        Dijkstra ordered by f = g (+ optional heuristic)
  - turn_dijkstra: Dijkstra with a bearing-based turn penalty per edge
"""

import heapq
import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from network.geo import bearing, distance

from .turns import FIRST_MOVE_PENALTY, turn_angle, turn_penalty

INF = float("inf")


@dataclass
class SearchResult:
    path: Optional[List[str]]
    visited: List[str]
    distance_km: Optional[float] = None
    duration_ms: Optional[float] = None

    @property
    def found(self) -> bool:
        return self.path is not None


def _reconstruct_path(came_from: Dict[str, str], end: str) -> List[str]:
    path = [end]
    node = end
    while node in came_from:
        node = came_from[node]
        path.append(node)
    path.reverse()
    return path


# -------------------------
# Depth-first search
# -------------------------
def dfs(start, end, graph, node_coords=None) -> SearchResult:
    """
    Stack based depth-first search.
    A node may be pushed several times but is expanded once; every pop is
    recorded as visited. came_from keeps the first node that discovered a
    neighbor, not the node it was eventually popped from.
    """
    stack = [start]
    expanded = set()
    came_from = {}
    visited = {}  # insertion ordered set

    while stack:
        current = stack.pop()
        visited[current] = None

        if current == end:
            return SearchResult(_reconstruct_path(came_from, current), list(visited))

        if current in expanded:
            continue
        expanded.add(current)

        for neighbor in graph[current]:
            if neighbor not in expanded:
                stack.append(neighbor)
                came_from.setdefault(neighbor, current)

    return SearchResult(None, list(visited))


# -------------------------
# Best-first core (Dijkstra / A* / turn-aware)
# -------------------------
EdgeCost = Callable[[str, str, float, Dict[str, str]], float]
Heuristic = Callable[[str, str], float]


def _best_first(start, end, graph, edge_cost: Optional[EdgeCost] = None,
                heuristic: Optional[Heuristic] = None) -> SearchResult:
    """
    Shared Dijkstra loop on a binary heap.
    Duplicate heap entries for a node are allowed; entries whose g is worse
    than the current best distance are dropped on pop.
    """
    dist = {start: 0.0}  # missing = infinity
    previous: Dict[str, str] = {}
    visited = {}
    tie = itertools.count()

    h = heuristic(start, end) if heuristic else 0.0
    frontier = [(h, next(tie), 0.0, start)]

    while frontier:
        _, _, g, current = heapq.heappop(frontier)
        if g > dist[current]:
            continue

        visited[current] = None

        if current == end:
            return SearchResult(_reconstruct_path(previous, current), list(visited))

        for neighbor, attrs in graph[current].items():
            weight = attrs["weight"]
            cost = edge_cost(current, neighbor, weight, previous) if edge_cost else weight
            alt = g + cost
            if alt < dist.get(neighbor, INF):
                dist[neighbor] = alt
                previous[neighbor] = current
                f = alt + heuristic(neighbor, end) if heuristic else alt
                heapq.heappush(frontier, (f, next(tie), alt, neighbor))

    return SearchResult(None, list(visited))


def dijkstra(start, end, graph, node_coords=None) -> SearchResult:
    """Classic Dijkstra on non-negative edge lengths."""
    return _best_first(start, end, graph)


def a_star(start, end, graph, node_coords=None, heuristic: Optional[Heuristic] = None) -> SearchResult:
    """
    A* ordered by f = g + h.

    Without a heuristic f = g and the search expands exactly like Dijkstra;
    that is the default routing behavior. Pass straight_line_heuristic() for
    a goal-directed search.
    """
    return _best_first(start, end, graph, heuristic=heuristic)


def straight_line_heuristic(node_coords) -> Heuristic:
    """Great-circle distance to the goal; admissible for length weights."""
    def h(node, goal):
        return distance(node_coords[node], node_coords[goal])
    return h


def turn_dijkstra(start, end, graph, node_coords=None) -> SearchResult:
    """
    Dijkstra where each edge costs length x turn penalty.
    The turn is measured between the heading into `current` (from its
    predecessor) and the heading towards the neighbor.
    """
    if node_coords is None:
        raise ValueError("turn_dijkstra needs node coordinates")

    def edge_cost(current, neighbor, weight, previous):
        pred = previous.get(current)
        if pred is None:
            return weight * FIRST_MOVE_PENALTY
        incoming = bearing(node_coords[pred], node_coords[current])
        outgoing = bearing(node_coords[current], node_coords[neighbor])
        return weight * turn_penalty(turn_angle(incoming, outgoing))

    return _best_first(start, end, graph, edge_cost=edge_cost)


# -------------------------
# Dispatch
# -------------------------
class Algorithm(str, Enum):
    DFS = "dfs"
    DIJKSTRA = "dijkstra"
    ASTAR = "astar"
    TURN = "turn"

    @classmethod
    def parse(cls, name) -> "Algorithm":
        """Accept the wire names and a few aliases; raises ValueError otherwise."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            valid = ", ".join(a.value for a in cls)
            raise ValueError(f"Unknown algorithm {name!r}, expected one of: {valid}")


_ALIASES = {
    "depth-first": "dfs",
    "a*": "astar",
    "a_star": "astar",
    "a-star": "astar",
    "turn_dijkstra": "turn",
    "turn-dijkstra": "turn",
    "right": "turn",
}

SEARCHES = {
    Algorithm.DFS: dfs,
    Algorithm.DIJKSTRA: dijkstra,
    Algorithm.ASTAR: a_star,
    Algorithm.TURN: turn_dijkstra,
}


def run_search(algorithm, start, end, graph, node_coords=None, heuristic=False) -> SearchResult:
    """Run the selected algorithm. heuristic=True turns A* into a goal-directed search."""
    algorithm = Algorithm.parse(algorithm)
    if algorithm is Algorithm.ASTAR and heuristic:
        if node_coords is None:
            raise ValueError("A* heuristic needs node coordinates")
        return a_star(start, end, graph, node_coords, heuristic=straight_line_heuristic(node_coords))
    return SEARCHES[algorithm](start, end, graph, node_coords)
