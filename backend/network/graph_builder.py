import logging
from typing import Dict, Iterable, Tuple

import networkx as nx

from .geo import Coordinate, distance, node_id

logger = logging.getLogger(__name__)

NodeCoords = Dict[str, Coordinate]
RoadGraph = Tuple[nx.Graph, NodeCoords]


def build_road_graph(segments: Iterable) -> RoadGraph:
    """
    Convert road segments into a weighted undirected NetworkX graph.
    Nodes = canonical node ids of every coordinate
    Edges = consecutive coordinate pairs, weight = haversine length in meters

    Each segment is either a RoadSegment or a plain sequence of (lat, lon).
    Returns (graph, node_coords).
    """
    G = nx.Graph()
    node_coords: NodeCoords = {}

    for segment in segments:
        coords = getattr(segment, "geometry", segment)

        prev_id = None
        prev = None
        for point in coords:
            coord = Coordinate(float(point[0]), float(point[1]))
            nid = node_id(coord)

            # Add node (idempotent across segments)
            if nid not in node_coords:
                node_coords[nid] = coord
                G.add_node(nid, lat=coord.lat, lon=coord.lon)

            # Re-adding an existing pair overwrites its weight
            if prev_id is not None:
                G.add_edge(prev_id, nid, weight=distance(prev, coord))

            prev_id, prev = nid, coord

    logger.info("Graph created: %d nodes, %d edges", G.number_of_nodes(), G.number_of_edges())
    return G, node_coords


def node_coords_from_graph(G: nx.Graph) -> NodeCoords:
    """Rebuild the node-id -> Coordinate table from node attributes."""
    return {nid: Coordinate(data["lat"], data["lon"]) for nid, data in G.nodes(data=True)}
