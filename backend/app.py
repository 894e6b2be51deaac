import logging

import click
from flask import Blueprint, Flask, current_app, jsonify, request
from flask_cors import CORS

from config import DefaultConfig
from network.geo import validate_coordinate
from network.graph_builder import build_road_graph
from network.road_loader import fetch_osm_roads, load_roads_geojson
from routing.errors import DataSourceUnavailable, GraphEmpty, GraphNotReady
from routing.route import compute_route
from routing.search import Algorithm
from routing.store import GraphStore

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__, cli_group=None)


def make_graph_builder(config):
    """Return a callable that fetches roads from the configured source and builds the graph."""
    def build():
        geojson_path = config.get("ROADS_GEOJSON")
        if geojson_path:
            segments = load_roads_geojson(geojson_path)
        else:
            segments = fetch_osm_roads(
                bbox=tuple(config["OVERPASS_BBOX"]),
                highway_classes=tuple(config["HIGHWAY_CLASSES"]),
                url=config["OVERPASS_URL"],
                timeout=float(config["OVERPASS_TIMEOUT"]),
            )
        return build_road_graph(segments)
    return build


def _store() -> GraphStore:
    return current_app.extensions["graph_store"]


# ============================================================
# ROUTING API
# ============================================================
@api.route("/api/route", methods=["POST"])
def route():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "Expected a JSON object body"}), 400

    try:
        start = validate_coordinate(body.get("startLat"), body.get("startLng"))
        end = validate_coordinate(body.get("endLat"), body.get("endLng"))
        algorithm = Algorithm.parse(body.get("algorithm") or Algorithm.ASTAR)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    try:
        road_graph = _store().get(wait=current_app.config["GRAPH_WAIT_FOR_BUILD"])
    except GraphNotReady as e:
        return jsonify({"error": str(e)}), 503
    except DataSourceUnavailable as e:
        return jsonify({"error": f"Road data unavailable: {e}"}), 503

    try:
        result = compute_route(
            start, end, algorithm, road_graph,
            heuristic=bool(current_app.config["ASTAR_HEURISTIC"]),
        )
    except GraphEmpty as e:
        return jsonify({"error": str(e)}), 404

    return jsonify(result.to_dict())


# ============================================================
# GRAPH LIFECYCLE
# ============================================================
@api.route("/api/graph/status", methods=["GET"])
def graph_status():
    return jsonify(_store().stats())


@api.route("/api/graph/rebuild", methods=["POST"])
def rebuild_graph():
    token = current_app.config.get("ADMIN_TOKEN")
    if token and request.headers.get("X-Admin-Token") != token:
        return jsonify({"error": "Invalid admin token"}), 403

    try:
        G, _ = _store().rebuild()
    except DataSourceUnavailable as e:
        return jsonify({"error": f"Road data unavailable: {e}"}), 503

    return jsonify({
        "status": "rebuilt",
        "nodes": G.number_of_nodes(),
        "edges": G.number_of_edges(),
    })


@api.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"})


@api.cli.command("build-graph")
@click.option("--rebuild", is_flag=True, help="Ignore the snapshot and fetch roads again.")
def build_graph_command(rebuild):
    """Build the road graph (or load the snapshot) ahead of serving."""
    store = _store()
    G, _ = store.rebuild() if rebuild else store.get()
    click.echo(f"Graph ready: {G.number_of_nodes()} nodes, {G.number_of_edges()} edges")


# ============================================================
# APP FACTORY
# ============================================================
def create_app(config=None, store=None):
    """
    config: mapping applied on top of DefaultConfig and ROUTER_* env vars
    store: GraphStore to use instead of one built from the config
    """
    app = Flask(__name__)
    app.config.from_object(DefaultConfig)
    app.config.from_prefixed_env("ROUTER")
    if config:
        app.config.update(config)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    CORS(app)

    if store is None:
        store = GraphStore(make_graph_builder(app.config), app.config["GRAPH_SNAPSHOT_PATH"])
    app.extensions["graph_store"] = store

    app.register_blueprint(api)
    return app


app = create_app()


# ============================================================
# RUN SERVER
# ============================================================
if __name__ == "__main__":
    app.run(port=app.config["PORT"], debug=True)
