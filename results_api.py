#!/usr/bin/env python3
"""
Election Trends API Server
Read-only JSON views over the local-body registry, aggregated trends and map tiles
"""

import dataclasses
import logging
import traceback

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.utils import secure_filename

from lsg_trends import registry as reg
from lsg_trends.config import load_settings
from lsg_trends.errors import DataLoadError, MapDataError, TrendsError
from lsg_trends.geometry import style_features, style_ward_features
from lsg_trends.sources import (
    QueryCache,
    district_map_location,
    load_map,
    load_registry,
    load_trend_results,
    state_map_location,
    ward_map_location,
)

settings = load_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)  # the dashboard frontend is served from another origin

cache = QueryCache()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _maybe_refresh():
    if request.args.get("refresh") in ("1", "true", "yes"):
        cache.invalidate()


def _registry():
    return load_registry(settings, cache)


def _trends():
    registry = _registry()
    results = load_trend_results(settings, cache)
    return reg.join_results(registry.local_bodies, results), results


def result_json(result):
    out = dataclasses.asdict(result)
    out["candidate_count"] = result.candidate_count
    out["vote_share"] = result.vote_share
    return out


def local_body_json(lb):
    return dataclasses.asdict(lb)


def _safe_part(value):
    part = secure_filename(value or "")
    if not part:
        raise MapDataError(f"Invalid map path component: {value!r}")
    return part


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.route("/api/health", methods=["GET"])
def health_check():
    return jsonify({
        "status": "healthy",
        "data_root": settings.data_root,
        "trends_url": settings.trends_url,
        "cached_queries": len(cache),
    })


@app.route("/api/summary", methods=["GET"])
def summary():
    """KPI tile values."""
    _maybe_refresh()
    registry = _registry()
    return jsonify(reg.dashboard_counts(registry.local_bodies, registry.wards, registry.polling_stations))


@app.route("/api/districts", methods=["GET"])
def districts():
    _maybe_refresh()
    kpi = request.args.get("kpi") or None
    registry = _registry()
    try:
        rows = reg.district_table(registry.local_bodies, registry.wards, registry.polling_stations, kpi)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"kpi": kpi, "rows": rows})


@app.route("/api/local-bodies", methods=["GET"])
def local_bodies():
    _maybe_refresh()
    registry = _registry()
    term = request.args.get("q", "")
    if term:
        lbs = reg.search_local_bodies(registry.local_bodies, term,
                                      limit=request.args.get("limit", 10, type=int))
    else:
        lbs = reg.filter_local_bodies(registry.local_bodies,
                                      district=request.args.get("district") or None,
                                      lb_type=request.args.get("type") or None)
    results = load_trend_results(settings, cache)
    return jsonify({"local_bodies": reg.local_body_summaries(lbs, results)})


@app.route("/api/local-bodies/<lb_code>", methods=["GET"])
def local_body_detail(lb_code):
    registry = _registry()
    lb = reg.index_by_code(registry.local_bodies).get(lb_code)
    if lb is None:
        return jsonify({"error": "Local body not found", "lb_code": lb_code}), 404
    stats = reg.local_body_stats(lb, registry.local_bodies, registry.wards, registry.polling_stations)
    return jsonify({"local_body": local_body_json(lb), "stats": stats})


@app.route("/api/trends", methods=["GET"])
def trends():
    _maybe_refresh()
    joined, _ = _trends()
    return jsonify({
        "count": len(joined),
        "results": [result_json(r) for r in joined.values()],
    })


@app.route("/api/trends/<lb_code>", methods=["GET"])
def trend_detail(lb_code):
    joined, _ = _trends()
    result = joined.get(lb_code)
    # no trends yet is a valid state, not an error
    return jsonify({"lb_code": lb_code, "result": result_json(result) if result else None})


@app.route("/api/maps/state/<tab>", methods=["GET"])
def state_map(tab):
    _, results = _trends()
    collection = load_map(settings, state_map_location(settings, tab), cache)
    return jsonify(style_features(collection, results))


@app.route("/api/maps/district/<district>/<tab>", methods=["GET"])
def district_map(district, tab):
    _, results = _trends()
    location = district_map_location(settings, _safe_part(district), tab)
    return jsonify(style_features(load_map(settings, location, cache), results))


@app.route("/api/maps/local-body/<lb_code>", methods=["GET"])
def local_body_map(lb_code):
    registry = _registry()
    lb = reg.index_by_code(registry.local_bodies).get(lb_code)
    if lb is None:
        return jsonify({"error": "Local body not found", "lb_code": lb_code}), 404
    _, results = _trends()
    location = ward_map_location(settings, _safe_part(lb.district), _safe_part(lb.lb_code))
    return jsonify(style_ward_features(load_map(settings, location, cache), results.get(lb_code)))


# ---------------------------------------------------------------------------
# Error handlers: API paths always answer JSON
# ---------------------------------------------------------------------------
@app.errorhandler(TrendsError)
def handle_trends_error(e):
    if isinstance(e, DataLoadError):
        logger.error("Registry load failed: %s", e)
        return jsonify({"error": "Registry data unavailable", "source": e.source, "detail": str(e.reason)}), 503
    if isinstance(e, MapDataError):
        return jsonify({"error": str(e)}), 404
    logger.exception("Unhandled %s", type(e).__name__)
    return jsonify({"error": str(e), "type": type(e).__name__}), 500


@app.errorhandler(500)
def handle_500(e):
    if request.path.startswith("/api/"):
        return jsonify({
            "error": "Internal server error",
            "exception": str(e),
            "trace_tail": traceback.format_exc().splitlines()[-5:],
        }), 500
    return e


if __name__ == "__main__":
    print("🚀 Starting Election Trends API Server...")
    print(f"📂 Data root: {settings.data_root}")
    print(f"📈 Trends feed: {settings.trends_url}")
    app.run(debug=False, host=settings.api_host, port=settings.api_port)
