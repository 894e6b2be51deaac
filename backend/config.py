# backend/config.py
"""
Default settings, loaded with app.config.from_object().
Every key can be overridden with a ROUTER_<KEY> environment variable,
e.g. ROUTER_OVERPASS_TIMEOUT=60 or ROUTER_ASTAR_HEURISTIC=true.
"""


class DefaultConfig:
    # Graph snapshot cache; "" disables it
    GRAPH_SNAPSHOT_PATH = "storkbh_graph.json"

    # Road source: a local GeoJSON file wins over Overpass when set
    ROADS_GEOJSON = None
    OVERPASS_URL = "https://overpass-api.de/api/interpreter"
    OVERPASS_TIMEOUT = 120  # seconds
    OVERPASS_BBOX = (55.55, 12.45, 55.75, 12.65)  # south, west, north, east
    HIGHWAY_CLASSES = ("primary", "secondary", "tertiary", "residential")

    # Block requests while the graph builds (False = answer 503 immediately)
    GRAPH_WAIT_FOR_BUILD = True

    # A* uses f = g unless this is set
    ASTAR_HEURISTIC = False

    # Required in X-Admin-Token for /api/graph/rebuild when set
    ADMIN_TOKEN = None

    LOG_LEVEL = "INFO"
    PORT = 8080
