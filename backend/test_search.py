import random

import networkx as nx
import pytest

from network.geo import Coordinate, distance, node_id
from network.graph_builder import build_road_graph
from routing.nearest import nearest_node
from routing.route import assemble_route
from routing.search import (
    Algorithm,
    a_star,
    dfs,
    dijkstra,
    run_search,
    straight_line_heuristic,
    turn_dijkstra,
)
from routing.turns import (
    LEFT_TURN_PENALTY,
    RIGHT_TURN_PENALTY,
    SHARP_TURN_PENALTY,
    STRAIGHT_PENALTY,
    turn_angle,
    turn_penalty,
)


def path_cost(G, path):
    return sum(G[u][v]["weight"] for u, v in zip(path[:-1], path[1:]))


@pytest.fixture
def grid():
    """6x6 street grid around Norrebro with a few diagonal shortcuts."""
    lats = [55.690 + 0.002 * i for i in range(6)]
    lons = [12.540 + 0.003 * j for j in range(6)]
    segments = [[(lat, lon) for lon in lons] for lat in lats]
    segments += [[(lat, lon) for lat in lats] for lon in lons]
    segments += [
        [(lats[0], lons[0]), (lats[2], lons[1]), (lats[4], lons[3])],
        [(lats[5], lons[0]), (lats[3], lons[2]), (lats[1], lons[5])],
    ]
    return build_road_graph(segments)


# -------------------------
# Shared contract
# -------------------------
@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_single_edge_graph(algorithm):
    a, b = Coordinate(55.60, 12.50), Coordinate(55.61, 12.52)
    G, coords = build_road_graph([[a, b]])
    w = G[node_id(a)][node_id(b)]["weight"]

    result = run_search(algorithm, node_id(a), node_id(b), G, coords)
    assemble_route(result, 0.1)

    assert result.path == [node_id(a), node_id(b)]
    assert result.distance_km == pytest.approx(w / 1000, abs=0.005)
    assert result.duration_ms == 0.1


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_start_equals_end(algorithm, grid):
    G, coords = grid
    start = next(iter(G.nodes))

    result = run_search(algorithm, start, start, G, coords)

    assert result.path == [start]
    assert result.visited == [start]


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_unreachable_returns_no_path(algorithm):
    island_a = [(55.60, 12.50), (55.60, 12.51), (55.60, 12.52)]
    island_b = [(55.70, 12.50), (55.70, 12.51)]
    G, coords = build_road_graph([island_a, island_b])

    result = run_search(algorithm, node_id(island_a[0]), node_id(island_b[1]), G, coords)
    assemble_route(result, 1.0)

    assert result.path is None
    assert not result.found
    assert result.distance_km is None
    assert set(result.visited) == {node_id(p) for p in island_a}


def test_optimal_searches_never_worse_than_dfs(grid):
    G, coords = grid
    nodes = list(G.nodes)
    rng = random.Random(5)

    for _ in range(25):
        start, end = rng.sample(nodes, 2)
        baseline = path_cost(G, dfs(start, end, G).path)
        best = path_cost(G, dijkstra(start, end, G).path)

        assert best <= baseline + 1e-6
        assert path_cost(G, a_star(start, end, G).path) == pytest.approx(best)
        informed = a_star(start, end, G, coords, heuristic=straight_line_heuristic(coords))
        assert path_cost(G, informed.path) == pytest.approx(best)


def test_dijkstra_matches_networkx(grid):
    G, _ = grid
    nodes = list(G.nodes)
    start, end = nodes[0], nodes[-1]

    expected = nx.shortest_path_length(G, start, end, weight="weight")
    assert path_cost(G, dijkstra(start, end, G).path) == pytest.approx(expected)


def test_astar_without_heuristic_expands_like_dijkstra(grid):
    G, _ = grid
    nodes = list(G.nodes)
    start, end = nodes[3], nodes[-4]

    assert a_star(start, end, G).visited == dijkstra(start, end, G).visited


def test_run_search_heuristic_flag_only_affects_astar(grid):
    G, coords = grid
    nodes = list(G.nodes)
    start, end = nodes[0], nodes[-1]

    plain = run_search("astar", start, end, G, coords)
    informed = run_search("astar", start, end, G, coords, heuristic=True)
    assert path_cost(G, informed.path) == pytest.approx(path_cost(G, plain.path))
    assert len(informed.visited) <= len(plain.visited)

    assert run_search("dijkstra", start, end, G, coords, heuristic=True).visited == \
        dijkstra(start, end, G).visited


# -------------------------
# DFS specifics
# -------------------------
def _graph(edges):
    G = nx.Graph()
    for u, v, w in edges:
        G.add_edge(u, v, weight=w)
    return G


def test_dfs_keeps_first_discoverer():
    # a sees x before p; the stack then expands p, which pushes x again
    G = _graph([("a", "x", 1.0), ("a", "p", 1.0), ("p", "x", 1.0)])

    result = dfs("a", "x", G)

    assert result.visited == ["a", "p", "x"]
    assert result.path == ["a", "x"]


def test_dfs_is_not_shortest():
    # "b" is pushed last, so the stack dives into the long detour first
    G = _graph([("s", "a", 1.0), ("a", "t", 1.0), ("s", "b", 100.0), ("b", "t", 100.0)])

    assert dfs("s", "t", G).path == ["s", "b", "t"]
    assert dijkstra("s", "t", G).path == ["s", "a", "t"]


def test_dijkstra_handles_duplicate_frontier_entries():
    # b is first reached at 10 via the direct edge, then improved to 2 via c
    G = _graph([("a", "b", 10.0), ("a", "c", 1.0), ("c", "b", 1.0), ("b", "d", 1.0)])

    result = dijkstra("a", "d", G)

    assert result.path == ["a", "c", "b", "d"]
    assert result.visited == ["a", "c", "b", "d"]


# -------------------------
# Turn-aware Dijkstra
# -------------------------
NE = (55.61, 12.51)
NW = (55.61, 12.50)
SE = (55.60, 12.51)
SW = (55.60, 12.50)


def test_turn_dijkstra_prefers_right_turns():
    # NE -> NW -> SW turns left; NE -> SE -> SW turns right.
    # The left route is also slightly shorter (the northern side is shorter).
    G, coords = build_road_graph([[NE, NW, SW], [NE, SE, SW]])
    start, end = node_id(NE), node_id(SW)

    assert dijkstra(start, end, G).path == [node_id(NE), node_id(NW), node_id(SW)]
    assert turn_dijkstra(start, end, G, coords).path == [node_id(NE), node_id(SE), node_id(SW)]


def test_turn_dijkstra_first_move_is_unpenalized():
    G, coords = build_road_graph([[NE, NW]])
    result = turn_dijkstra(node_id(NE), node_id(NW), G, coords)
    assemble_route(result, 0.0)

    assert result.path == [node_id(NE), node_id(NW)]
    assert result.distance_km == pytest.approx(distance(NE, NW) / 1000, abs=0.005)


def test_turn_dijkstra_needs_coordinates():
    G, _ = build_road_graph([[NE, NW]])
    with pytest.raises(ValueError):
        turn_dijkstra(node_id(NE), node_id(NW), G)


def test_turn_angle_normalization():
    assert turn_angle(350.0, 10.0) == pytest.approx(20.0)
    assert turn_angle(10.0, 350.0) == pytest.approx(-20.0)
    assert turn_angle(90.0, 270.0) == pytest.approx(180.0)
    assert turn_angle(270.0, 90.0) == pytest.approx(180.0)
    assert turn_angle(0.0, 0.0) == 0.0
    assert -180.0 < turn_angle(123.0, 303.0001) <= 180.0


def test_turn_penalty_table():
    assert turn_penalty(45.0) == RIGHT_TURN_PENALTY == 0.00001
    assert turn_penalty(0.0) == STRAIGHT_PENALTY == 100.0
    assert turn_penalty(-0.5) == LEFT_TURN_PENALTY == 500000.0
    assert turn_penalty(-90.0) == LEFT_TURN_PENALTY
    assert turn_penalty(-90.5) == SHARP_TURN_PENALTY == 100000.0
    assert turn_penalty(-179.0) == SHARP_TURN_PENALTY


# -------------------------
# Dispatch
# -------------------------
def test_algorithm_parse():
    assert Algorithm.parse("dfs") is Algorithm.DFS
    assert Algorithm.parse("Dijkstra") is Algorithm.DIJKSTRA
    assert Algorithm.parse("a*") is Algorithm.ASTAR
    assert Algorithm.parse("turn_dijkstra") is Algorithm.TURN
    assert Algorithm.parse(Algorithm.TURN) is Algorithm.TURN
    with pytest.raises(ValueError):
        Algorithm.parse("bellman-ford")


# -------------------------
# Nearest node
# -------------------------
def test_nearest_node_empty():
    assert nearest_node(Coordinate(55.6, 12.5), {}) is None


def test_nearest_node_matches_brute_force(grid):
    _, coords = grid
    rng = random.Random(9)

    for _ in range(30):
        q = Coordinate(rng.uniform(55.68, 55.71), rng.uniform(12.53, 12.56))
        found = nearest_node(q, coords)
        best = min(distance(q, c) for c in coords.values())
        assert distance(q, coords[found]) == pytest.approx(best)


def test_nearest_node_has_no_distance_limit(grid):
    _, coords = grid
    far_away = Coordinate(0.0, 0.0)

    found = nearest_node(far_away, coords)

    assert found is not None
    assert distance(far_away, coords[found]) == min(distance(far_away, c) for c in coords.values())


def test_nearest_node_tie_takes_first():
    coords = {"east": Coordinate(0.0, 1.0), "west": Coordinate(0.0, -1.0)}
    assert nearest_node(Coordinate(0.0, 0.0), coords) == "east"
