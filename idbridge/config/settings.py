"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from idbridge.core.group_catalog import FacetConfig
from idbridge.core.paired_accounts import DEFAULT_MAPPING_COLLECTION, DEFAULT_PROVIDER
from idbridge.core.passwords import DEFAULT_TEMP_PASSWORD_LENGTH

logger = logging.getLogger(__name__)

SECRETS_DIR = Path("/run/secrets")


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Returns:
        Secret value or None if not found
    """
    secret_file = SECRETS_DIR / secret_name
    if secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
        except OSError as exc:
            logger.warning("[settings] Failed to read %s: %s", secret_file, exc)
        else:
            if secret_value:
                logger.info("[settings] Loaded %s from %s", secret_name, SECRETS_DIR)
                return secret_value

    if env_var:
        return os.environ.get(env_var) or None
    return None


def _split_list(raw: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _parse_aliases(raw: str) -> dict[str, str]:
    """Parse "management:staff,lead:staff" into {"management": "staff", "lead": "staff"}."""
    aliases = {}
    for pair in _split_list(raw):
        source, sep, target = pair.partition(":")
        if not sep or not source.strip() or not target.strip():
            raise RuntimeError(f"Invalid FACET_TYPE_ROLE_ALIASES entry '{pair}' (expected source:target)")
        aliases[source.strip()] = target.strip()
    return aliases


def _required(var_name: str, value: Optional[str], demo_default: Optional[str], demo_mode: bool) -> str:
    if value:
        return value
    if demo_mode and demo_default is not None:
        logger.info("[demo-mode] Using default for %s", var_name)
        return demo_default
    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


@dataclass
class AppConfig:
    """Application configuration container."""
    demo_mode: bool = False

    # Keycloak
    keycloak_url: str = "http://keycloak:8080"
    keycloak_realm: str = "campus"
    keycloak_service_realm: str = "campus"
    keycloak_service_client_id: str = "idbridge"
    keycloak_service_client_secret: str = ""
    request_timeout: float = 5

    # Directus (paired accounts); disabled when directus_url is empty
    directus_url: str = ""
    directus_token: str = ""
    role_mapping_collection: str = DEFAULT_MAPPING_COLLECTION
    secondary_provider: str = DEFAULT_PROVIDER

    # Provisioning
    facets: FacetConfig = field(default_factory=FacetConfig)
    temp_password_length: int = DEFAULT_TEMP_PASSWORD_LENGTH

    log_level: str = "INFO"

    @property
    def paired_accounts_enabled(self) -> bool:
        return bool(self.directus_url and self.directus_token)


def load_facets() -> FacetConfig:
    """Build the facet configuration from FACET_* variables, keeping defaults for unset ones."""
    defaults = FacetConfig()
    associations = os.environ.get("FACET_ASSOCIATIONS")
    types = os.environ.get("FACET_TYPES")
    aliases = os.environ.get("FACET_TYPE_ROLE_ALIASES")
    try:
        return FacetConfig(
            associations=_split_list(associations) if associations is not None else defaults.associations,
            types=_split_list(types) if types is not None else defaults.types,
            profile_prefix=os.environ.get("FACET_PROFILE_PREFIX", defaults.profile_prefix),
            type_role_aliases=_parse_aliases(aliases) if aliases is not None else defaults.type_role_aliases,
        )
    except ValueError as exc:
        raise RuntimeError(f"Invalid facet configuration: {exc}") from exc


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    keycloak_url = _required(
        "KEYCLOAK_URL",
        os.environ.get("KEYCLOAK_URL"),
        demo_default="http://127.0.0.1:8080",
        demo_mode=demo_mode,
    )
    keycloak_realm = os.environ.get("KEYCLOAK_REALM", "campus")
    keycloak_service_client_secret = _required(
        "KEYCLOAK_SERVICE_CLIENT_SECRET",
        _load_secret_from_file("keycloak_service_client_secret", "KEYCLOAK_SERVICE_CLIENT_SECRET"),
        demo_default="demo-service-secret",
        demo_mode=demo_mode,
    )

    directus_url = os.environ.get("DIRECTUS_URL", "").strip()
    directus_token = _load_secret_from_file("directus_token", "DIRECTUS_TOKEN") or ""
    if directus_url and not directus_token:
        raise RuntimeError("DIRECTUS_TOKEN is required when DIRECTUS_URL is set.")

    try:
        temp_password_length = int(os.environ.get("TEMP_PASSWORD_LENGTH", DEFAULT_TEMP_PASSWORD_LENGTH))
        request_timeout = float(os.environ.get("REQUEST_TIMEOUT", "5"))
    except ValueError as exc:
        raise RuntimeError(f"Invalid numeric setting: {exc}") from exc
    if temp_password_length < 1:
        raise RuntimeError("TEMP_PASSWORD_LENGTH must be positive.")

    cfg = AppConfig(
        demo_mode=demo_mode,
        keycloak_url=keycloak_url,
        keycloak_realm=keycloak_realm,
        keycloak_service_realm=os.environ.get("KEYCLOAK_SERVICE_REALM", keycloak_realm),
        keycloak_service_client_id=os.environ.get("KEYCLOAK_SERVICE_CLIENT_ID", "idbridge"),
        keycloak_service_client_secret=keycloak_service_client_secret,
        request_timeout=request_timeout,
        directus_url=directus_url,
        directus_token=directus_token,
        role_mapping_collection=os.environ.get("ROLE_MAPPING_COLLECTION", DEFAULT_MAPPING_COLLECTION),
        secondary_provider=os.environ.get("SECONDARY_ACCOUNT_PROVIDER", DEFAULT_PROVIDER),
        facets=load_facets(),
        temp_password_length=temp_password_length,
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    logger.info(
        "[settings] Mode=%s; realm=%s; paired accounts=%s",
        mode_label, cfg.keycloak_realm, "on" if cfg.paired_accounts_enabled else "off",
    )
    if demo_mode:
        logger.warning("[settings] Demo credentials in use. Do not deploy with these defaults.")
    return cfg
