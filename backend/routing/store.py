# backend/routing/store.py
"""
Process-wide holder of the road graph.

Lifecycle:
    uninitialized -> building -> ready
                              -> failed (next get() retries)
    ready -> building -> ready   only through an explicit rebuild()

At most one build runs at a time. Readers never take the lock once the
graph is ready; the graph is never mutated after it is published.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from network.graph_builder import RoadGraph
from network.snapshot import load_snapshot, save_snapshot

from .errors import GraphNotReady

logger = logging.getLogger(__name__)


class GraphState(str, Enum):
    UNINITIALIZED = "uninitialized"
    BUILDING = "building"
    READY = "ready"
    FAILED = "failed"


class GraphStore:
    def __init__(self, builder: Callable[[], RoadGraph], snapshot_path: Optional[str] = None):
        """
        builder: callable returning (graph, node_coords) from the road source
        snapshot_path: JSON snapshot to load before building and to save after;
                       None or "" disables snapshots
        """
        self._builder = builder
        self.snapshot_path = snapshot_path or None
        self._lock = threading.Lock()
        self._graph: Optional[RoadGraph] = None
        self.state = GraphState.UNINITIALIZED
        self.last_error: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self._graph is not None

    def get(self, wait: bool = True) -> RoadGraph:
        """
        Return the graph, loading or building it on first use.
        wait=False raises GraphNotReady instead of blocking on another
        thread's build.
        """
        graph = self._graph
        if graph is not None:
            return graph

        if not self._lock.acquire(blocking=wait):
            raise GraphNotReady("Road graph is being built, try again shortly")
        try:
            # another thread may have finished while we waited
            if self._graph is None:
                self._graph = self._load_or_build(use_snapshot=True)
            return self._graph
        finally:
            self._lock.release()

    def rebuild(self) -> RoadGraph:
        """Build from the road source again, ignoring the snapshot."""
        with self._lock:
            graph = self._load_or_build(use_snapshot=False)
            self._graph = graph
            return graph

    def stats(self) -> dict:
        graph = self._graph
        G = graph[0] if graph is not None else None
        return {
            "state": self.state.value,
            "nodes": G.number_of_nodes() if G is not None else 0,
            "edges": G.number_of_edges() if G is not None else 0,
            "error": self.last_error,
        }

    # -------------------------
    # Internals (lock held)
    # -------------------------
    def _load_or_build(self, use_snapshot: bool) -> RoadGraph:
        previous_state = self.state
        self.state = GraphState.BUILDING

        if use_snapshot and self.snapshot_path:
            graph = load_snapshot(self.snapshot_path)
            if graph is not None:
                self.state = GraphState.READY
                self.last_error = None
                return graph

        logger.info("Building road graph...")
        try:
            graph = self._builder()
        except Exception as e:
            # a failed rebuild keeps serving the previous graph
            self.state = GraphState.READY if previous_state is GraphState.READY else GraphState.FAILED
            self.last_error = str(e)
            logger.error("Road graph build failed: %s", e)
            raise

        if self.snapshot_path:
            try:
                save_snapshot(graph, self.snapshot_path)
            except OSError as e:
                logger.warning("Could not save graph snapshot to %s: %s", self.snapshot_path, e)

        self.state = GraphState.READY
        self.last_error = None
        return graph
