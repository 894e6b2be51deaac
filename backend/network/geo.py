# backend/network/geo.py
"""
Geodesy helpers on a spherical Earth.

All coordinates are (lat, lon) in degrees. Graph nodes are identified by a
canonical string built from the coordinate, see node_id().
"""

import math
from typing import NamedTuple

EARTH_RADIUS_M = 6371000  # spherical Earth radius in meters

# OSM stores coordinates with 7 decimals; node ids use the same precision
NODE_ID_DECIMALS = 7


class Coordinate(NamedTuple):
    lat: float
    lon: float


def distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle (haversine) distance in meters between two coordinates."""
    lat1, lon1 = a
    lat2, lon2 = b
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    hav = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # rounding can push hav slightly outside [0, 1] near identical/antipodal points
    hav = min(1.0, max(0.0, hav))
    c = 2 * math.atan2(math.sqrt(hav), math.sqrt(1 - hav))
    return EARTH_RADIUS_M * c


def bearing(a: Coordinate, b: Coordinate) -> float:
    """Initial compass bearing from a to b, in degrees within [0, 360)."""
    lat1, lon1 = a
    lat2, lon2 = b
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dlambda = math.radians(lon2 - lon1)

    y = math.sin(dlambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlambda)
    theta = math.degrees(math.atan2(y, x))
    return (theta + 360) % 360


def node_id(coord) -> str:
    """
    Canonical node key for a coordinate: "<lat>,<lon>" with fixed decimals.

    Two coordinates map to the same node only if their encodings are
    identical. Points closer than the encoding precision collapse together,
    points further apart stay distinct even at the same physical location.
    """
    lat, lon = coord
    return f"{float(lat):.{NODE_ID_DECIMALS}f},{float(lon):.{NODE_ID_DECIMALS}f}"


def decode_node_id(nid: str) -> Coordinate:
    """Inverse of node_id()."""
    lat, lon = nid.split(",")
    return Coordinate(float(lat), float(lon))


def validate_coordinate(lat, lon) -> Coordinate:
    """Return a Coordinate or raise ValueError for NaN / out-of-range values."""
    try:
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        raise ValueError(f"Coordinate must be numeric, got ({lat!r}, {lon!r})")

    if math.isnan(lat) or math.isnan(lon):
        raise ValueError("Coordinate contains NaN")
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"Latitude out of range: {lat}")
    if not -180.0 <= lon <= 180.0:
        raise ValueError(f"Longitude out of range: {lon}")
    return Coordinate(lat, lon)
