"""
Flask application factory for the FLOP API.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from flask import Flask, Response, g, jsonify
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from flop.api.token_bp import token_bp
from flop.core.contracts.flop_token import FlopToken
from flop.core.structured_logger import correlation_id
from flop.core.token_metrics import TokenMetrics

logger = logging.getLogger(__name__)


def create_app(token: FlopToken, metrics: Optional[TokenMetrics] = None) -> Flask:
    """
    Build the API application around a token instance.

    Args:
        token: Token served by every endpoint
        metrics: Metrics exported at /metrics (defaults to ``token.metrics``)
    """
    app = Flask(__name__)
    metrics = metrics or token.metrics

    @app.before_request
    def _setup_context() -> None:
        g.api_context = {"token": token, "metrics": metrics}
        correlation_id.set(uuid.uuid4().hex[:16])

    @app.route("/health", methods=["GET"])
    def health() -> Any:
        return jsonify({"status": "ok", "symbol": token.symbol})

    @app.route("/metrics", methods=["GET"])
    def prometheus_metrics() -> Any:
        if metrics is None:
            return jsonify({"success": False, "error": "Metrics disabled", "code": "metrics_disabled"}), 404
        if token.total_supply:
            metrics.total_supply.set(token.total_supply)
        return Response(generate_latest(metrics.registry), mimetype=CONTENT_TYPE_LATEST)

    app.register_blueprint(token_bp, url_prefix="/token")

    logger.info(
        "FLOP API initialized",
        extra={"event": "api.initialized", "token": token.address, "metrics": metrics is not None},
    )
    return app
