"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, error handlers and collaborators.
"""
from __future__ import annotations
import logging
from typing import Callable, Optional

from flask import Flask

from idbridge.config import AppConfig, load_settings
from idbridge.core.directus import DirectusClient
from idbridge.core.keycloak import create_service_client

logger = logging.getLogger(__name__)


def directory_client_factory(cfg: AppConfig) -> Callable:
    """Return a callable building an authenticated Keycloak client."""
    def build():
        return create_service_client(
            cfg.keycloak_url,
            cfg.keycloak_realm,
            cfg.keycloak_service_realm,
            cfg.keycloak_service_client_id,
            cfg.keycloak_service_client_secret,
            timeout=cfg.request_timeout,
        )

    return build


def secondary_store_factory(cfg: AppConfig) -> Callable:
    """Return a callable building the Directus store, or returning None when disabled."""
    def build():
        if not cfg.paired_accounts_enabled:
            return None
        return DirectusClient(cfg.directus_url, cfg.directus_token, timeout=cfg.request_timeout)

    return build


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(
    cfg: Optional[AppConfig] = None,
    client_factory: Optional[Callable] = None,
    store_factory: Optional[Callable] = None,
) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings; loaded from the environment when omitted
        client_factory: Zero-argument callable returning a directory client
        store_factory: Zero-argument callable returning the secondary store or None
    """
    if cfg is None:
        cfg = load_settings()

    logging.basicConfig(
        level=cfg.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.config["DEMO_MODE"] = cfg.demo_mode
    app.config["DIRECTORY_CLIENT_FACTORY"] = client_factory or directory_client_factory(cfg)
    app.config["SECONDARY_STORE_FACTORY"] = store_factory or secondary_store_factory(cfg)

    # Register blueprints
    from idbridge.api import catalog, errors, health, users

    app.register_blueprint(health.bp)
    app.register_blueprint(users.bp)
    app.register_blueprint(catalog.bp)

    # Register error handlers
    errors.register_error_handlers(app)

    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    logger.info("[flask_app] Mode=%s", mode_label)
    logger.info("[flask_app] Realm=%s at %s", cfg.keycloak_realm, cfg.keycloak_url)
    if cfg.demo_mode:
        logger.warning("[flask_app] Demo mode active - do not deploy with demo credentials")

    return app
