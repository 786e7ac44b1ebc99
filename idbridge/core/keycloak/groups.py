"""Keycloak group listing and membership operations."""
from __future__ import annotations

from .client import KeycloakClient


class GroupService:
    """Service for Keycloak groups and user memberships."""

    def __init__(self, client: KeycloakClient):
        self.client = client

    def list_groups(self) -> list[dict]:
        """Return every top-level group of the realm."""
        return self.client.get("/groups").json() or []

    def add_user_to_group(self, user_id: str, group_id: str) -> None:
        """Add a user to a group. Keycloak treats repeated adds as no-ops."""
        self.client.put(f"/users/{user_id}/groups/{group_id}")

    def remove_user_from_group(self, user_id: str, group_id: str) -> None:
        self.client.delete(f"/users/{user_id}/groups/{group_id}")
