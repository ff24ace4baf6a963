"""Same-origin relay endpoint: ``POST /api/generate``.

Keeps the upstream API key on the server.  Request body ``{prompt, model?}``;
response ``{text, usage, model}`` on success or ``{error, details?}`` with a
non-2xx status.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Flask, jsonify, request

from monoassist.config import get_settings
from monoassist.core.log import request_context, timed
from monoassist.providers import UpstreamError, get_provider

logger = logging.getLogger(__name__)

relay_bp = Blueprint("relay", __name__, url_prefix="/api")

# Every method is routed here so non-POST gets a JSON 405 instead of Flask's HTML page.
_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


@relay_bp.route("/generate", methods=_ALL_METHODS)
def generate():
    if request.method != "POST":
        return jsonify({"error": "Method not allowed"}), 405

    settings = get_settings()
    if not settings.openrouter_api_key:
        logger.error("Relay called without OPENROUTER_API_KEY configured")
        return jsonify({"error": "API key not configured"}), 500

    body = request.get_json(silent=True) or {}
    prompt = body.get("prompt") if isinstance(body, dict) else None
    if not prompt or not isinstance(prompt, str):
        return jsonify({"error": "Invalid prompt"}), 400
    model = body.get("model") or settings.default_model
    if not isinstance(model, str):
        return jsonify({"error": "Invalid model"}), 400

    with request_context():
        try:
            provider = get_provider(api_key=settings.openrouter_api_key)
            with timed("relay_generate", model=model):
                completion = provider.complete(prompt, model=model)
        except UpstreamError as exc:
            logger.error("Upstream error %s: %s", exc.status, exc.details or exc.message)
            payload = {"error": exc.message}
            if exc.details:
                payload["details"] = exc.details
            return jsonify(payload), exc.status
        except Exception as exc:
            logger.exception("Relay failure")
            return jsonify({"error": "Internal server error", "message": str(exc)}), 500

    usage = completion.usage.model_dump(by_alias=True) if completion.usage else None
    return jsonify({"text": completion.text, "usage": usage, "model": completion.model}), 200


def create_relay_app(url_prefix: str = "/api") -> Flask:
    """Flask app serving only the relay.

    ``main.py`` mounts it under ``/api`` next to the Mesop app and passes an
    empty *url_prefix*; tests use the default.
    """
    app = Flask(__name__)
    app.register_blueprint(relay_bp, url_prefix=url_prefix)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    return app
