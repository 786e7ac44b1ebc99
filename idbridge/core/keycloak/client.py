"""Low-level HTTP client for the Keycloak Admin API.

Handles service-account authentication, token refresh, and realm-scoped
HTTP operations. Paths passed to get/post/put/delete are relative to the
realm admin root, e.g. ``/users`` maps to ``/admin/realms/<realm>/users``.
"""
from __future__ import annotations
from typing import Optional, Dict, Any
from datetime import datetime, timedelta

import requests

from .exceptions import KeycloakAPIError

REQUEST_TIMEOUT = 5

# Refresh the token this long before Keycloak would reject it
TOKEN_REFRESH_LEEWAY = timedelta(seconds=10)


class KeycloakClient:
    """Realm-scoped HTTP client for Keycloak Admin API.

    Usage:
        client = KeycloakClient("http://keycloak:8080", realm="campus")
        client.authenticate_service_account("master", "idbridge", "secret")
        groups = client.get("/groups").json()
    """

    def __init__(self, base_url: str, realm: str, timeout: float = REQUEST_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.realm = realm
        self.timeout = timeout
        self._token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._auth_params: Dict[str, str] = {}

    @property
    def admin_root(self) -> str:
        return f"{self.base_url}/admin/realms/{self.realm}"

    def authenticate_service_account(self, auth_realm: str, client_id: str, client_secret: str) -> str:
        """Authenticate with client credentials and remember them for refresh.

        Args:
            auth_realm: Realm where the service account client exists
            client_id: Service account client ID
            client_secret: Service account client secret

        Returns:
            Access token
        """
        self._auth_params = {
            "auth_realm": auth_realm,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        self._refresh_token()
        return self._token

    def _refresh_token(self) -> None:
        url = f"{self.base_url}/realms/{self._auth_params['auth_realm']}/protocol/openid-connect/token"
        data = {
            "grant_type": "client_credentials",
            "client_id": self._auth_params["client_id"],
            "client_secret": self._auth_params["client_secret"],
        }
        resp = requests.post(url, data=data, timeout=self.timeout)
        if resp.status_code != 200:
            raise KeycloakAPIError(resp.status_code, resp.text, url)
        body = resp.json()
        self._token = body["access_token"]
        self._token_expires_at = datetime.now() + timedelta(seconds=int(body.get("expires_in", 60)))

    def _ensure_authenticated(self) -> None:
        if not self._auth_params:
            raise KeycloakAPIError(401, "Not authenticated - call authenticate_service_account first", "")
        if not self._token or datetime.now() >= self._token_expires_at - TOKEN_REFRESH_LEEWAY:
            self._refresh_token()

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        self._ensure_authenticated()
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self._token}"
        resp = requests.request(
            method,
            f"{self.admin_root}{path}",
            headers=headers,
            timeout=self.timeout,
            **kwargs,
        )
        self._handle_error(resp)
        return resp

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Execute GET request against the realm admin API.

        Raises:
            KeycloakAPIError: On HTTP error
        """
        return self._send("GET", path, params=params)

    def post(self, path: str, json: Optional[Any] = None) -> requests.Response:
        """Execute POST request against the realm admin API.

        Raises:
            KeycloakAPIError: On HTTP error
        """
        return self._send("POST", path, json=json)

    def put(self, path: str, json: Optional[Any] = None) -> requests.Response:
        """Execute PUT request against the realm admin API.

        Raises:
            KeycloakAPIError: On HTTP error
        """
        return self._send("PUT", path, json=json)

    def delete(self, path: str) -> requests.Response:
        """Execute DELETE request against the realm admin API.

        Raises:
            KeycloakAPIError: On HTTP error
        """
        return self._send("DELETE", path)

    def _handle_error(self, resp: requests.Response) -> None:
        if resp.status_code >= 400:
            raise KeycloakAPIError(resp.status_code, resp.text, resp.url)


def create_service_client(
    base_url: str,
    realm: str,
    auth_realm: str,
    client_id: str,
    client_secret: str,
    timeout: float = REQUEST_TIMEOUT,
) -> KeycloakClient:
    """Build a client already authenticated as the service account."""
    client = KeycloakClient(base_url, realm, timeout=timeout)
    client.authenticate_service_account(auth_realm, client_id, client_secret)
    return client
