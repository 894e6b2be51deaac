import logging
import time
from dataclasses import dataclass
from typing import List

from network.geo import Coordinate, decode_node_id, distance

from .errors import GraphEmpty
from .nearest import nearest_node
from .search import Algorithm, SearchResult, run_search

logger = logging.getLogger(__name__)


@dataclass
class Route:
    algorithm: Algorithm
    start_node: str
    end_node: str
    result: SearchResult

    @property
    def coordinates(self) -> List[Coordinate]:
        if not self.result.found:
            return []
        return [decode_node_id(nid) for nid in self.result.path]

    def to_dict(self) -> dict:
        """JSON shape returned by the HTTP API."""
        out = {
            "algorithm": self.algorithm.value,
            "startNode": self.start_node,
            "endNode": self.end_node,
            "path": self.result.path,
            "coordinates": [[c.lat, c.lon] for c in self.coordinates],
            "visitedNodes": self.result.visited,
            "distanceKm": self.result.distance_km,
            "durationMs": self.result.duration_ms,
        }
        if not self.result.found:
            out["error"] = "No route found"
        return out


def path_length_m(path: List[str]) -> float:
    """Sum of great-circle lengths between consecutive path nodes."""
    coords = [decode_node_id(nid) for nid in path]
    return sum(distance(a, b) for a, b in zip(coords[:-1], coords[1:]))


def assemble_route(result: SearchResult, duration_ms: float) -> SearchResult:
    """Attach distance (km, 2 decimals) and search duration to a search result."""
    result.duration_ms = duration_ms
    if result.found:
        result.distance_km = round(path_length_m(result.path) / 1000, 2)
    return result


def compute_route(start: Coordinate, end: Coordinate, algorithm, road_graph, heuristic: bool = False) -> Route:
    """
    Snap start/end to the nearest graph nodes, run the search and assemble
    the result. Raises GraphEmpty when the graph has no nodes.
    """
    algorithm = Algorithm.parse(algorithm)
    G, node_coords = road_graph

    start_node = nearest_node(start, node_coords)
    end_node = nearest_node(end, node_coords)
    if start_node is None or end_node is None:
        raise GraphEmpty("Points too far from the road network")

    t0 = time.perf_counter()
    result = run_search(algorithm, start_node, end_node, G, node_coords, heuristic=heuristic)
    duration_ms = (time.perf_counter() - t0) * 1000

    assemble_route(result, round(duration_ms, 3))
    logger.debug(
        "%s %s -> %s: %s nodes visited in %.1f ms",
        algorithm.value, start_node, end_node, len(result.visited), duration_ms,
    )
    return Route(algorithm, start_node, end_node, result)
