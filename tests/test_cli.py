"""Tests for the idbridge command line, wired to the in-memory Keycloak."""
import json

import pytest

from idbridge import cli
from idbridge.config import AppConfig


@pytest.fixture()
def wired(monkeypatch, keycloak, directus):
    cfg = AppConfig(demo_mode=True)
    monkeypatch.setattr(cli, "load_settings", lambda: cfg)
    monkeypatch.setattr(cli, "directory_client_factory", lambda _cfg: lambda: keycloak)
    monkeypatch.setattr(cli, "secondary_store_factory", lambda _cfg: lambda: directus)
    return keycloak


def test_create_user(wired, directus, capsys):
    code = cli.main([
        "create-user",
        "--username", "jdoe",
        "--email", "jane@example.org",
        "--first", "Jane",
        "--last", "Doe",
        "--association", "hsm",
        "--type", "staff",
        "--profile", "gpu-a100",
        "--profile", "gpu-h100",
    ])

    assert code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["id"] == "u-1"
    assert output["secondaryAccountId"] == "d-1"
    assert sorted(wired.group_names("u-1")) == ["gpu-a100", "gpu-h100", "hsm", "staff"]


def test_create_user_validation_failure_exits_non_zero(wired, capsys):
    code = cli.main([
        "create-user",
        "--username", "j doe",
        "--email", "jane@example.org",
        "--first", "Jane",
        "--last", "Doe",
        "--association", "nowhere",
        "--type", "staff",
    ])

    assert code != 0
    assert "username_invalid,association_invalid" in capsys.readouterr().err
    assert wired.calls == []


def test_reset_password(wired, capsys):
    user_id = wired.add_user()
    assert cli.main(["reset-password", "--user-id", user_id]) == 0
    output = json.loads(capsys.readouterr().out)
    assert wired.passwords[user_id]["value"] == output["temporaryPassword"]


def test_show_user(wired, capsys):
    user_id = wired.add_user(groups=["hst", "student"])
    assert cli.main(["show-user", "--user-id", user_id]) == 0
    output = json.loads(capsys.readouterr().out)
    assert output["association"] == "hst"
    assert output["type"] == "student"


def test_show_unknown_user(wired, capsys):
    assert cli.main(["show-user", "--user-id", "missing"]) == 1
    assert "404" in capsys.readouterr().err


def test_groups_by_facet(wired, capsys):
    assert cli.main(["groups", "--facet", "association"]) == 0
    assert capsys.readouterr().out.split() == ["hsm", "hst", "kisd"]


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out
