# backend/network/road_loader.py
"""
Road data sources.

Two ways to obtain road geometry, both returning a list of RoadSegment:
  1) fetch_osm_roads(): query the Overpass API for highway ways inside a bbox
  2) load_roads_geojson(): read a local GeoJSON file of LineStrings

Any failure is raised as DataSourceUnavailable so that a graph is never
built from partial data.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import geopandas as gpd
import requests
from shapely.geometry import LineString, MultiLineString

from routing.errors import DataSourceUnavailable

from .geo import Coordinate

logger = logging.getLogger(__name__)

OVERPASS_URL = "https://overpass-api.de/api/interpreter"

# Greater Copenhagen (south, west, north, east)
DEFAULT_BBOX = (55.55, 12.45, 55.75, 12.65)
DEFAULT_HIGHWAY_CLASSES = ("primary", "secondary", "tertiary", "residential")

BBox = Tuple[float, float, float, float]


@dataclass(frozen=True)
class RoadSegment:
    geometry: List[Coordinate]
    highway: Optional[str] = None


def build_overpass_query(bbox: BBox, highway_classes: Sequence[str], server_timeout: int = 180) -> str:
    south, west, north, east = bbox
    classes = "|".join(highway_classes)
    return (
        f"[out:json][timeout:{server_timeout}];\n"
        f'way["highway"~"^({classes})$"]({south},{west},{north},{east});\n'
        "out geom;"
    )


def parse_overpass_elements(elements) -> List[RoadSegment]:
    """Convert Overpass 'out geom' way elements to RoadSegments."""
    segments = []
    for element in elements:
        if element.get("type", "way") != "way":
            continue
        geometry = element.get("geometry") or []
        coords = [
            Coordinate(float(p["lat"]), float(p["lon"]))
            for p in geometry
            if p is not None and "lat" in p and "lon" in p
        ]
        if len(coords) < 2:
            continue
        highway = (element.get("tags") or {}).get("highway")
        segments.append(RoadSegment(coords, highway))
    return segments


def fetch_osm_roads(
    bbox: BBox = DEFAULT_BBOX,
    highway_classes: Sequence[str] = DEFAULT_HIGHWAY_CLASSES,
    url: str = OVERPASS_URL,
    timeout: float = 120,
) -> List[RoadSegment]:
    """
    Fetch highway ways from Overpass.

    timeout is the HTTP timeout in seconds; the server-side query timeout is
    set to the same value so Overpass gives up before we do.
    """
    query = build_overpass_query(bbox, highway_classes, server_timeout=int(timeout))
    logger.info("Fetching roads from Overpass %s bbox=%s", url, bbox)

    try:
        response = requests.get(url, params={"data": query}, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as e:
        raise DataSourceUnavailable(f"Overpass request failed: {e}") from e
    except ValueError as e:
        raise DataSourceUnavailable(f"Overpass returned invalid JSON: {e}") from e

    elements = payload.get("elements") if isinstance(payload, dict) else None
    if not isinstance(elements, list):
        raise DataSourceUnavailable("Overpass response has no 'elements' list")

    try:
        segments = parse_overpass_elements(elements)
    except (TypeError, ValueError, KeyError, AttributeError) as e:
        raise DataSourceUnavailable(f"Malformed Overpass element: {e}") from e

    logger.info("Fetched %d road segments from Overpass", len(segments))
    return segments


def load_roads_geojson(geojson_path: str) -> List[RoadSegment]:
    """
    Read road LineStrings from a GeoJSON file.
    GeoJSON stores (lon, lat); segments are returned as (lat, lon).
    """
    if not os.path.exists(geojson_path):
        raise DataSourceUnavailable(f"Roads GeoJSON not found: {geojson_path}")

    logger.info("Loading roads...")
    try:
        roads = gpd.read_file(geojson_path)
    except Exception as e:
        raise DataSourceUnavailable(f"Could not read {geojson_path}: {e}") from e

    segments = []
    for _, row in roads.iterrows():
        geom = row.geometry

        if geom is None or geom.is_empty:
            continue

        # Normalize geometry → always get a list of LineStrings
        if isinstance(geom, LineString):
            lines = [geom]
        elif isinstance(geom, MultiLineString):
            lines = list(geom.geoms)
        else:
            # Skip other geometry types (Point, Polygon, GeometryCollection, etc.)
            continue

        highway = row.get("highway") if "highway" in row else None
        if not isinstance(highway, str):
            highway = None

        for line in lines:
            coords = [Coordinate(pt[1], pt[0]) for pt in line.coords]
            if len(coords) >= 2:
                segments.append(RoadSegment(coords, highway))

    logger.info("Loaded %d road segments from %s", len(segments), geojson_path)
    return segments
