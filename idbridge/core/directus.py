"""Minimal Directus REST client for the paired-account store.

Only two operations are needed: reading items of a collection by filter and
creating a Directus user.
"""
from __future__ import annotations
import json
from typing import Any, Optional

import requests

REQUEST_TIMEOUT = 5


class DirectusError(Exception):
    """HTTP error returned by the Directus API."""

    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class DirectusClient:
    """Static-token client for the Directus REST API.

    Usage:
        store = DirectusClient("http://directus:8055", token="...")
        rows = store.read_by_query("role_group_mapping", {"groupId": {"_eq": "hsm-staff"}})
    """

    def __init__(self, base_url: str, token: str, timeout: float = REQUEST_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = {"Authorization": f"Bearer {token}"}

    def read_by_query(self, collection: str, filter: dict[str, Any], limit: Optional[int] = None) -> list[dict]:
        """Return the items of ``collection`` matching a Directus filter object."""
        params = {"filter": json.dumps(filter)}
        if limit is not None:
            params["limit"] = limit
        resp = requests.get(
            f"{self.base_url}/items/{collection}",
            params=params,
            headers=self._headers,
            timeout=self.timeout,
        )
        return self._data(resp) or []

    def create_user(self, payload: dict[str, Any]) -> str:
        """Create a Directus user and return its ID."""
        resp = requests.post(
            f"{self.base_url}/users",
            json=payload,
            headers=self._headers,
            timeout=self.timeout,
        )
        return self._data(resp)["id"]

    def _data(self, resp: requests.Response):
        if resp.status_code >= 400:
            raise DirectusError(resp.status_code, resp.text, resp.url)
        return resp.json().get("data")
