"""HTTP control surface: threshold config, last trend, manual run."""

import logging
import math
from typing import Callable

from flask import Flask, jsonify, request

from omiewatch.errors import PersistError
from omiewatch.models import RunOutcome
from omiewatch.state import WatchState
from omiewatch.storage import PriceStore

logger = logging.getLogger(__name__)


def create_app(state: WatchState, store: PriceStore, trigger: Callable[[], RunOutcome]) -> Flask:
    """
    Build the Flask app.

    `trigger` runs one pipeline pass synchronously and returns its outcome.
    """
    app = Flask(__name__)

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    @app.route("/config", methods=["GET"])
    def get_config():
        return jsonify({"config": {"max_value": state.snapshot().max_value}})

    @app.route("/config", methods=["POST"])
    def set_config():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid JSON"}), 400
        value = data.get("max_value")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return jsonify({"error": "max_value must be a finite number"}), 400
        try:
            value = float(value)
        except OverflowError:
            return jsonify({"error": "max_value must be a finite number"}), 400
        if not math.isfinite(value):
            return jsonify({"error": "max_value must be a finite number"}), 400

        try:
            store.save_threshold(value)
        except PersistError as e:
            logger.error("Failed to save threshold: %s", e)
            return jsonify({"error": "could not save config"}), 500
        state.max_value = value
        logger.info("Threshold updated to %.2f", value)
        return jsonify({"message": "JSON saved successfully", "config": {"max_value": state.max_value}})

    @app.route("/last", methods=["GET"])
    def last():
        snap = state.snapshot()
        return jsonify({"last_avg_value": snap.last_trend, "max_value": snap.max_value})

    @app.route("/update", methods=["GET"])
    def update():
        outcome = trigger()
        status = 200 if outcome.ok else 502
        return jsonify({"message": "updated" if outcome.ok else "run failed", "run": outcome.to_dict()}), status

    return app
