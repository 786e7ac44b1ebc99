"""Pytest shared fixtures: in-memory Keycloak admin API and Directus store."""
import itertools
import pathlib
import sys

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from idbridge.config import AppConfig
from idbridge.core.group_catalog import FacetConfig
from idbridge.core.keycloak import GroupService, KeycloakAPIError, UserService
from idbridge.flask_app import create_app


REALM_GROUPS = [
    {"id": "g-hsm", "name": "hsm"},
    {"id": "g-hst", "name": "hst"},
    {"id": "g-kisd", "name": "kisd"},
    {"id": "g-staff", "name": "staff"},
    {"id": "g-student", "name": "student"},
    {"id": "g-management", "name": "management"},
    {"id": "g-a100", "name": "gpu-a100"},
    {"id": "g-h100", "name": "gpu-h100"},
    {"id": "g-v100", "name": "gpu-v100"},
    {"id": "g-admins", "name": "admins"},
]


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Fail loudly if a unit test reaches for the real network."""
    def _refuse(*args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP call in unit test: {args} {kwargs.get('url', '')}")

    monkeypatch.setattr(requests, "request", _refuse)
    monkeypatch.setattr(requests, "get", _refuse)
    monkeypatch.setattr(requests, "post", _refuse)


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Keycloak
# ─────────────────────────────────────────────────────────────────────────────
class FakeResponse:
    def __init__(self, body=None, status_code=200, headers=None):
        self._body = body
        self.status_code = status_code
        self.headers = headers or {}

    def json(self):
        return self._body


class FakeKeycloak:
    """Realm-scoped stand-in for KeycloakClient backed by dictionaries.

    ``fail_on`` maps ``(METHOD, path)`` to an HTTP status; a matching call is
    logged in ``calls`` and then raises KeycloakAPIError with that status.
    """

    admin_root = "http://keycloak.test/admin/realms/campus"

    def __init__(self, groups=None):
        self.groups = [dict(group) for group in (groups if groups is not None else REALM_GROUPS)]
        self.users = {}
        self.memberships = {}
        self.passwords = {}
        self.calls = []
        self.fail_on = {}
        self._ids = itertools.count(1)

    # Test helpers
    def add_user(self, username="jdoe", groups=(), **fields):
        user_id = f"u-{next(self._ids)}"
        self.users[user_id] = {"id": user_id, "username": username, **fields}
        by_name = {group["name"]: group["id"] for group in self.groups}
        self.memberships[user_id] = [by_name[name] for name in groups]
        return user_id

    def group_names(self, user_id):
        by_id = {group["id"]: group["name"] for group in self.groups}
        return [by_id[group_id] for group_id in self.memberships.get(user_id, [])]

    def membership_calls(self):
        return [(method, path) for method, path in self.calls if "/groups/" in path]

    # Client surface
    def get(self, path, params=None):
        return self._dispatch("GET", path)

    def post(self, path, json=None):
        return self._dispatch("POST", path, json)

    def put(self, path, json=None):
        return self._dispatch("PUT", path, json)

    def delete(self, path):
        return self._dispatch("DELETE", path)

    def _dispatch(self, method, path, body=None):
        self.calls.append((method, path))
        if (method, path) in self.fail_on:
            raise KeycloakAPIError(self.fail_on[(method, path)], "injected failure", path)

        parts = path.strip("/").split("/")
        if parts == ["groups"] and method == "GET":
            return FakeResponse(self.groups)
        if parts[0] != "users":
            raise KeycloakAPIError(404, "Not found", path)
        if len(parts) == 1:
            if method == "GET":
                return FakeResponse(list(self.users.values()))
            if method == "POST":
                return self._create(body)

        user_id = parts[1]
        if user_id not in self.users:
            raise KeycloakAPIError(404, "User not found", path)
        if len(parts) == 2:
            if method == "GET":
                return FakeResponse(self.users[user_id])
            if method == "PUT":
                self.users[user_id].update(body or {})
                return FakeResponse(status_code=204)
            raise KeycloakAPIError(405, "Unsupported", path)
        if parts[2] == "groups":
            if len(parts) == 3:
                by_id = {group["id"]: group for group in self.groups}
                return FakeResponse([by_id[gid] for gid in self.memberships[user_id]])
            group_id = parts[3]
            current = self.memberships[user_id]
            if method == "PUT" and group_id not in current:
                current.append(group_id)
            elif method == "DELETE" and group_id in current:
                current.remove(group_id)
            return FakeResponse(status_code=204)
        if parts[2] == "reset-password" and method == "PUT":
            self.passwords[user_id] = body
            return FakeResponse(status_code=204)
        raise KeycloakAPIError(405, "Unsupported", path)

    def _create(self, body):
        if any(user.get("username") == body.get("username") for user in self.users.values()):
            raise KeycloakAPIError(409, "User exists with same username", "/users")
        user_id = f"u-{next(self._ids)}"
        self.users[user_id] = {"id": user_id, **body}
        self.memberships[user_id] = []
        return FakeResponse(status_code=201, headers={"Location": f"{self.admin_root}/users/{user_id}"})


class FakeDirectus:
    """Directus store holding a role-mapping table and created users."""

    def __init__(self, mapping=None):
        self.mapping = dict(mapping if mapping is not None else {
            "hsm-staff": "role-hsm-staff",
            "hsm-student": "role-hsm-student",
        })
        self.created = []
        self.queries = []
        self.fail_with = None

    def read_by_query(self, collection, filter, limit=None):
        self.queries.append((collection, filter))
        if self.fail_with:
            raise self.fail_with
        key = filter["groupId"]["_eq"]
        if key not in self.mapping:
            return []
        return [{"groupId": key, "roleId": self.mapping[key]}]

    def create_user(self, payload):
        self.created.append(payload)
        return f"d-{len(self.created)}"


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def facets():
    return FacetConfig()


@pytest.fixture()
def keycloak():
    return FakeKeycloak()


@pytest.fixture()
def directus():
    return FakeDirectus()


@pytest.fixture()
def users(keycloak):
    return UserService(keycloak)


@pytest.fixture()
def groups(keycloak):
    return GroupService(keycloak)


@pytest.fixture()
def app_config():
    return AppConfig(demo_mode=True, keycloak_url="http://keycloak.test", keycloak_realm="campus")


@pytest.fixture()
def app(app_config, keycloak, directus):
    flask_app = create_app(app_config, client_factory=lambda: keycloak, store_factory=lambda: directus)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app):
    """Flask test client wired to the in-memory Keycloak and Directus."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture()
def realm_groups():
    return [dict(group) for group in REALM_GROUPS]
