"""User endpoints: listing, joiner, reads, mover and password resets.

Architecture:
    /users/* -> idbridge.core.provisioning_service / reconciliation -> idbridge.core.keycloak -> Keycloak

Users are never deleted through this API; DELETE always answers 405.
"""

from __future__ import annotations
import logging

from flask import Blueprint, current_app, g, jsonify, request

from idbridge.api.decorators import get_paired_provisioner, with_directory
from idbridge.api.errors import error_body
from idbridge.core.projection import project_user, project_users
from idbridge.core.provisioning_service import provision_user, reset_temporary_password
from idbridge.core.reconciliation import update_user

bp = Blueprint("users", __name__)

logger = logging.getLogger(__name__)


def _config():
    return current_app.config["APP_CONFIG"]


def _read_projected(user_id: str) -> dict:
    record = g.users.get_user(user_id)
    groups = g.users.get_user_groups(user_id)
    return project_user(record, groups, _config().facets)


@bp.route("/users", methods=["GET"])
@with_directory
def list_users():
    """List users; query parameters are passed through to Keycloak unchanged."""
    records = g.users.list_users(request.args.to_dict())
    return jsonify(project_users(records)), 200


@bp.route("/users", methods=["POST"])
@with_directory
def create_user():
    """Create a new user (Joiner).

    `skipSecondaryAccount: true` (the boolean, not a string) suppresses the
    paired Directus account.

    Returns:
        201 Created with {id, secondaryAccountId?, temporaryPassword, ...fields}
    """
    cfg = _config()
    payload = request.get_json(silent=True)
    result = provision_user(
        payload,
        users=g.users,
        groups=g.groups,
        facets=cfg.facets,
        paired=get_paired_provisioner(),
        password_length=cfg.temp_password_length,
    )
    if result.memberships.unresolved:
        logger.info("[joiner] Unresolved groups for %s: %s", result.user_id, result.memberships.unresolved)
    return jsonify(result.to_response()), 201


@bp.route("/users/<user_id>", methods=["GET"])
@with_directory
def get_user(user_id: str):
    """Return a user with association, type and profiles derived from its groups."""
    return jsonify(_read_projected(user_id)), 200


@bp.route("/users/<user_id>", methods=["PATCH"])
@with_directory
def patch_user(user_id: str):
    """Partially update a user (Mover) and return the re-read record.

    `enabled` defaults to true: a body that leaves it out re-enables a
    disabled user. Send `"enabled": false` to keep a user disabled.
    """
    payload = request.get_json(silent=True)
    update_user(
        user_id,
        payload,
        users=g.users,
        groups=g.groups,
        facets=_config().facets,
    )
    return jsonify(_read_projected(user_id)), 200


@bp.route("/users/<user_id>", methods=["DELETE"])
def delete_user(user_id: str):
    """Deletion is not offered; identities are deactivated through PATCH instead."""
    logger.info("[leaver] Rejected DELETE for user %s", user_id)
    return jsonify(error_body("method_not_allowed")), 405


@bp.route("/users/<user_id>/password", methods=["POST"])
@with_directory
def reset_password(user_id: str):
    """Set a fresh temporary password and return it once."""
    password = reset_temporary_password(g.users, user_id, _config().temp_password_length)
    return jsonify({"temporaryPassword": password}), 200
