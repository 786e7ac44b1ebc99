"""Keycloak Admin API client library.

Architecture:
- client.py: realm-scoped HTTP client with service-account authentication
- users.py: user reads, creation, updates and password resets
- groups.py: group listing and membership changes
- exceptions.py: typed exceptions for error handling

Usage:
    from idbridge.core.keycloak import create_service_client, UserService

    client = create_service_client("http://keycloak:8080", "campus", "master", "idbridge", "secret")
    user = UserService(client).get_user("4f1c...")
"""
from .client import (
    KeycloakClient,
    create_service_client,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    KeycloakError,
    KeycloakAPIError,
    MissingLocationError,
)
from .users import UserService, user_id_from_location
from .groups import GroupService

__all__ = [
    "KeycloakClient",
    "create_service_client",
    "REQUEST_TIMEOUT",
    "KeycloakError",
    "KeycloakAPIError",
    "MissingLocationError",
    "UserService",
    "user_id_from_location",
    "GroupService",
]
