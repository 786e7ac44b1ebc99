import json

import pytest
import requests

from idbridge.core.directus import DirectusClient, DirectusError


class _StubResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload)
        self.url = "http://directus.test"

    def json(self):
        return self._payload


def test_read_by_query_sends_filter(monkeypatch):
    captured = {}

    def _get(url, params=None, headers=None, timeout=None):
        captured.update(url=url, params=params, headers=headers)
        return _StubResponse({"data": [{"groupId": "hsm-staff", "roleId": "r1"}]})

    monkeypatch.setattr(requests, "get", _get)
    store = DirectusClient("http://directus.test/", token="tkn")

    rows = store.read_by_query("role_group_mapping", {"groupId": {"_eq": "hsm-staff"}})

    assert rows == [{"groupId": "hsm-staff", "roleId": "r1"}]
    assert captured["url"] == "http://directus.test/items/role_group_mapping"
    assert json.loads(captured["params"]["filter"]) == {"groupId": {"_eq": "hsm-staff"}}
    assert captured["headers"]["Authorization"] == "Bearer tkn"


def test_create_user_returns_id(monkeypatch):
    monkeypatch.setattr(requests, "post", lambda url, **kwargs: _StubResponse({"data": {"id": "d-9"}}))
    assert DirectusClient("http://directus.test", token="tkn").create_user({"email": "a@b.cd"}) == "d-9"


def test_error_status_raises(monkeypatch):
    monkeypatch.setattr(requests, "post", lambda url, **kwargs: _StubResponse({"errors": []}, status_code=403))
    with pytest.raises(DirectusError) as exc_info:
        DirectusClient("http://directus.test", token="tkn").create_user({})
    assert exc_info.value.status_code == 403
