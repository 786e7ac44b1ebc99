"""Keycloak user operations used by the provisioning workflows."""
from __future__ import annotations
import logging
import posixpath
from typing import Any, Optional
from urllib.parse import urlparse

from .client import KeycloakClient
from .exceptions import MissingLocationError

logger = logging.getLogger(__name__)


def user_id_from_location(location: Optional[str]) -> str:
    """Extract the user ID from the Location header of a creation response.

    >>> user_id_from_location("http://kc/admin/realms/campus/users/4f1c")
    '4f1c'
    """
    if not location:
        raise MissingLocationError("Create response has no Location header")
    user_id = posixpath.basename(urlparse(location).path.rstrip("/"))
    if not user_id:
        raise MissingLocationError(f"Cannot extract user ID from Location '{location}'")
    return user_id


class UserService:
    """Service for reading and writing Keycloak users."""

    def __init__(self, client: KeycloakClient):
        self.client = client

    def list_users(self, params: Optional[dict] = None) -> list[dict]:
        """Return user representations matching the given query parameters."""
        return self.client.get("/users", params=params or None).json() or []

    def get_user(self, user_id: str) -> dict:
        return self.client.get(f"/users/{user_id}").json()

    def create_user(self, payload: dict[str, Any]) -> str:
        """Create a user and return the ID Keycloak assigned to it.

        Args:
            payload: Keycloak user representation

        Returns:
            New user ID, read from the Location response header
        """
        resp = self.client.post("/users", json=payload)
        user_id = user_id_from_location(resp.headers.get("Location"))
        logger.info("[joiner] Created Keycloak user '%s' (id=%s)", payload.get("username"), user_id)
        return user_id

    def update_user(self, user_id: str, payload: dict[str, Any]) -> None:
        self.client.put(f"/users/{user_id}", json=payload)

    def get_user_groups(self, user_id: str) -> list[dict]:
        """Return the groups the user is a direct member of."""
        return self.client.get(f"/users/{user_id}/groups").json() or []

    def reset_password(self, user_id: str, value: str, temporary: bool = True) -> None:
        """Set a password credential; temporary ones must be changed at next login."""
        self.client.put(
            f"/users/{user_id}/reset-password",
            json={"type": "password", "value": value, "temporary": temporary},
        )
