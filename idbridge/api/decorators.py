"""
Request wrapper supplying an authenticated directory client per request.

Every handler that talks to Keycloak is decorated with ``@with_directory``.
The wrapper builds a fresh client from the factory stored on the app
(``DIRECTORY_CLIENT_FACTORY``) and exposes the realm services on ``g``:

    g.directory   KeycloakClient (or any object with get/post/put/delete)
    g.users       UserService bound to it
    g.groups      GroupService bound to it

Failures while building the client propagate to the error handlers like any
other directory failure.
"""

import logging
from functools import wraps
from typing import Optional

from flask import current_app, g

from idbridge.core.keycloak import GroupService, UserService
from idbridge.core.paired_accounts import PairedAccountProvisioner

logger = logging.getLogger(__name__)


def with_directory(fn):
    """
    Decorator binding per-request Keycloak services to ``g``.

    Example:
        @bp.route("/users/<user_id>")
        @with_directory
        def get_user(user_id):
            return jsonify(g.users.get_user(user_id))
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        factory = current_app.config["DIRECTORY_CLIENT_FACTORY"]
        client = factory()
        g.directory = client
        g.users = UserService(client)
        g.groups = GroupService(client)
        return fn(*args, **kwargs)

    return wrapper


def get_paired_provisioner() -> Optional[PairedAccountProvisioner]:
    """
    Build the paired-account provisioner for the current request.

    Returns:
        PairedAccountProvisioner, or None when no secondary store is configured
    """
    store_factory = current_app.config.get("SECONDARY_STORE_FACTORY")
    store = store_factory() if store_factory else None
    if store is None:
        return None

    cfg = current_app.config["APP_CONFIG"]
    return PairedAccountProvisioner(
        store,
        cfg.facets,
        mapping_collection=cfg.role_mapping_collection,
        provider=cfg.secondary_provider,
    )
