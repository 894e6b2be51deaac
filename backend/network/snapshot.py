# backend/network/snapshot.py
"""On-disk snapshot of a built road graph (node-link JSON)."""

import json
import logging
import os
import tempfile
from typing import Optional

from networkx.readwrite import json_graph

from .graph_builder import RoadGraph, node_coords_from_graph

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


def load_snapshot(path: str) -> Optional[RoadGraph]:
    """
    Load (graph, node_coords) from path.
    Returns None when there is no snapshot or it cannot be read, so the
    caller falls back to a fresh build.
    """
    if not path or not os.path.exists(path):
        return None

    logger.info("Loading graph snapshot from %s", path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        if payload.get("version") != SNAPSHOT_VERSION:
            logger.warning("Ignoring snapshot %s with version %r", path, payload.get("version"))
            return None
        G = json_graph.node_link_graph(payload["graph"], edges="edges")
        node_coords = node_coords_from_graph(G)
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
        logger.warning("Snapshot %s is unreadable, rebuilding: %s", path, e)
        return None

    logger.info("Snapshot loaded: %d nodes, %d edges", G.number_of_nodes(), G.number_of_edges())
    return G, node_coords


def save_snapshot(road_graph: RoadGraph, path: str) -> None:
    """Write the graph atomically: temp file in the same directory, then rename."""
    G, _ = road_graph
    payload = {
        "version": SNAPSHOT_VERSION,
        "graph": json_graph.node_link_data(G, edges="edges"),
    }

    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".graph-", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f)
        os.replace(tmp_path, path)
    except BaseException:
        os.unlink(tmp_path)
        raise

    logger.info("Graph snapshot saved to %s", path)
