"""Health check endpoints."""
import logging

from flask import Blueprint, current_app

from idbridge.core.errors import REMOTE_ERRORS

bp = Blueprint("health", __name__)

logger = logging.getLogger(__name__)


@bp.route("/health")
def health_check():
    """Basic health check endpoint."""
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Readiness check: the directory must accept our service account and answer."""
    try:
        client = current_app.config["DIRECTORY_CLIENT_FACTORY"]()
        client.get("/groups", params={"max": 1})
    except REMOTE_ERRORS as exc:
        logger.warning("[ready] Directory not reachable: %s", exc)
        return ("directory unavailable", 503, {"Content-Type": "text/plain"})
    return ("ready", 200, {"Content-Type": "text/plain"})
