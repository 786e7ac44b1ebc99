"""Error handlers for the application.

Every response body is JSON of the form ``{"message": "api_errors.<code>", ...}``.
"""
import logging

import requests
from flask import jsonify
from werkzeug.exceptions import HTTPException

from idbridge.core.errors import IncompleteOperationError, ValidationError
from idbridge.core.keycloak import KeycloakAPIError, KeycloakError

logger = logging.getLogger(__name__)

# Directory statuses passed through to callers; anything else becomes a 502
PASSTHROUGH_STATUSES = {
    404: "api_errors.not_found",
    409: "api_errors.conflict",
}


def error_body(code: str, error_message: str = None) -> dict:
    body = {"message": f"api_errors.{code}"}
    if error_message is not None:
        body["errorMessage"] = error_message
    return body


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(ValidationError)
    def validation_failed(error: ValidationError):
        logger.info("[api] Validation failed: %s", error)
        return jsonify(error_body("validation_failed", str(error))), 400

    @app.errorhandler(IncompleteOperationError)
    def operation_incomplete(error: IncompleteOperationError):
        logger.error("[api] Operation left incomplete: %s", error)
        return jsonify(error.to_dict()), 502

    @app.errorhandler(KeycloakAPIError)
    def directory_error(error: KeycloakAPIError):
        if error.status_code in PASSTHROUGH_STATUSES:
            logger.info("[api] Directory returned %s for %s", error.status_code, error.endpoint)
            return jsonify({"message": PASSTHROUGH_STATUSES[error.status_code]}), error.status_code
        logger.error("[api] Directory failure: %s", error)
        return jsonify(error_body("upstream_failure", str(error))), 502

    @app.errorhandler(KeycloakError)
    def directory_protocol_error(error: KeycloakError):
        logger.error("[api] Unexpected directory response: %s", error)
        return jsonify(error_body("upstream_failure", str(error))), 502

    @app.errorhandler(requests.RequestException)
    def directory_unreachable(error: requests.RequestException):
        logger.error("[api] Directory unreachable: %s", error)
        return jsonify(error_body("upstream_failure", str(error))), 502

    @app.errorhandler(404)
    def not_found(error):
        return jsonify(error_body("not_found")), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify(error_body("method_not_allowed")), 405

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # Pass through HTTP errors
        if isinstance(error, HTTPException):
            return error

        logger.error("[api] Unhandled exception: %s", error, exc_info=True)
        return jsonify(error_body("internal_error")), 500
