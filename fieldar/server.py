"""Flask application feeding sensor samples into the overlay session."""

import io
import math
from datetime import datetime, timezone

from flask import Flask, jsonify, request, send_file

from .features import (FeatureCollection, collection_bounds,
                       collection_from_mapping, collection_to_mapping,
                       list_features)
from .sensors import (PositionSample, SensorHub, SensorPermissionDenied,
                      SensorUnavailable, derive_heading)
from .session import OverlaySession
from .styles import options_from_mapping

app = Flask(__name__)

hub = SensorHub()
session = OverlaySession(hub)

POSITION_ERRORS = {
    "denied": SensorPermissionDenied,
    "unavailable": SensorUnavailable,
}


def _finite(value, name: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{name} must be finite")
    return number


def _optional(data: dict, key: str) -> float | None:
    value = data.get(key)
    return None if value is None else _finite(value, key)


def _features_body(collection: FeatureCollection) -> dict:
    return {"features": list_features(collection),
            "bounds": collection_bounds(collection),
            "collection": collection_to_mapping(collection)}


@app.route("/api/status")
def status():
    return jsonify(session.telemetry())


@app.route("/api/session/activate", methods=["POST"])
def activate():
    session.activate()
    return jsonify(session.telemetry())


@app.route("/api/session/deactivate", methods=["POST"])
def deactivate():
    session.deactivate()
    return jsonify(session.telemetry())


@app.route("/api/position", methods=["POST"])
def position():
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Expected a JSON object"}), 400

    if "error" in data:
        kind = data["error"]
        if kind not in POSITION_ERRORS:
            return jsonify({"error": f"error must be one of {list(POSITION_ERRORS)}"}), 400
        hub.publish_position_error(POSITION_ERRORS[kind](data.get("message", kind)))
        return jsonify(session.telemetry())

    try:
        sample = PositionSample(
            latitude=_finite(data["latitude"], "latitude"),
            longitude=_finite(data["longitude"], "longitude"),
            altitude=_optional(data, "altitude"),
            accuracy=_optional(data, "accuracy"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        return jsonify({"error": f"Invalid parameters: {exc}"}), 400

    if not -90.0 <= sample.latitude <= 90.0:
        return jsonify({"error": "latitude must be within [-90, 90]"}), 400

    hub.publish_position(sample)
    return jsonify(session.telemetry())


@app.route("/api/heading", methods=["POST"])
def heading():
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Expected a JSON object"}), 400

    if "heading" in data:
        try:
            value = _optional(data, "heading")
        except (TypeError, ValueError) as exc:
            return jsonify({"error": f"Invalid parameters: {exc}"}), 400
    else:
        value = derive_heading(data)

    hub.publish_heading(value)
    return jsonify(session.telemetry())


@app.route("/api/features", methods=["PUT"])
def put_features():
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Expected a GeoJSON object"}), 400
    features = data.get("features")
    if data.get("type") == "FeatureCollection" and not isinstance(features, list):
        return jsonify({"error": "features must be a list"}), 400

    collection = collection_from_mapping(data)
    session.set_features(collection)
    return jsonify(_features_body(collection))


@app.route("/api/features", methods=["GET"])
def get_features():
    return jsonify(_features_body(session.features))


@app.route("/api/options", methods=["GET"])
def get_options():
    return jsonify(session.options.to_mapping())


@app.route("/api/options", methods=["PUT"])
def put_options():
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Expected a JSON object"}), 400
    try:
        options = options_from_mapping(data, session.options)
    except (TypeError, ValueError) as exc:
        return jsonify({"error": f"Invalid options: {exc}"}), 400
    session.set_options(options)
    return jsonify(options.to_mapping())


@app.route("/api/hud")
def hud():
    return jsonify(session.layout.to_mapping())


@app.route("/api/hud.png")
def hud_png():
    return send_file(io.BytesIO(session.hud_png()), mimetype="image/png")


@app.route("/api/scene.dxf")
def scene_dxf():
    # ezdxf.write requires a text stream
    stream = io.StringIO()
    session.write_scene(stream)
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return send_file(
        io.BytesIO(stream.getvalue().encode("utf-8")),
        download_name=f"fieldar_scene_{ts}.dxf",
        as_attachment=True,
        mimetype="application/dxf",
    )
