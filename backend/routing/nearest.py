from typing import Mapping, Optional

from network.geo import Coordinate, distance


def nearest_node(point: Coordinate, node_coords: Mapping[str, Coordinate]) -> Optional[str]:
    """
    Find the graph node closest to a (lat, lon) coordinate.
    Exhaustive scan over every node; returns None only for an empty index.
    On ties the first node encountered wins.
    """
    min_dist = float("inf")
    nearest = None

    for nid, coord in node_coords.items():
        dist = distance(point, coord)
        if nearest is None or dist < min_dist:
            min_dist = dist
            nearest = nid

    return nearest
