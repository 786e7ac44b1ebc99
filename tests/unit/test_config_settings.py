import pytest

from idbridge.config import settings

ENV_VARS = [
    "DEMO_MODE",
    "KEYCLOAK_URL",
    "KEYCLOAK_REALM",
    "KEYCLOAK_SERVICE_REALM",
    "KEYCLOAK_SERVICE_CLIENT_ID",
    "KEYCLOAK_SERVICE_CLIENT_SECRET",
    "DIRECTUS_URL",
    "DIRECTUS_TOKEN",
    "FACET_ASSOCIATIONS",
    "FACET_TYPES",
    "FACET_PROFILE_PREFIX",
    "FACET_TYPE_ROLE_ALIASES",
    "TEMP_PASSWORD_LENGTH",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings, "SECRETS_DIR", tmp_path)
    return tmp_path


def test_demo_mode_uses_defaults(monkeypatch):
    monkeypatch.setenv("DEMO_MODE", "true")
    cfg = settings.load_settings()

    assert cfg.demo_mode is True
    assert cfg.keycloak_url == "http://127.0.0.1:8080"
    assert cfg.keycloak_service_client_secret == "demo-service-secret"
    assert cfg.temp_password_length == 6
    assert cfg.paired_accounts_enabled is False
    assert cfg.facets.associations == ("hsm", "hst", "hfgg", "hfgo", "kisd", "ext")


def test_production_requires_keycloak_url():
    with pytest.raises(RuntimeError, match="KEYCLOAK_URL"):
        settings.load_settings()


def test_secret_file_takes_precedence(monkeypatch, clean_env):
    (clean_env / "keycloak_service_client_secret").write_text("from-file\n")
    monkeypatch.setenv("KEYCLOAK_URL", "https://sso.example.org")
    monkeypatch.setenv("KEYCLOAK_SERVICE_CLIENT_SECRET", "from-env")

    cfg = settings.load_settings()

    assert cfg.keycloak_service_client_secret == "from-file"
    assert cfg.demo_mode is False


def test_secret_falls_back_to_env(monkeypatch):
    monkeypatch.setenv("KEYCLOAK_URL", "https://sso.example.org")
    monkeypatch.setenv("KEYCLOAK_SERVICE_CLIENT_SECRET", "from-env")
    assert settings.load_settings().keycloak_service_client_secret == "from-env"


def test_facet_overrides(monkeypatch):
    monkeypatch.setenv("DEMO_MODE", "true")
    monkeypatch.setenv("FACET_ASSOCIATIONS", "north, south")
    monkeypatch.setenv("FACET_TYPES", "faculty,guest")
    monkeypatch.setenv("FACET_PROFILE_PREFIX", "hpc-")
    monkeypatch.setenv("FACET_TYPE_ROLE_ALIASES", "guest:faculty")

    facets = settings.load_settings().facets

    assert facets.associations == ("north", "south")
    assert facets.types == ("faculty", "guest")
    assert facets.profile_prefix == "hpc-"
    assert facets.role_type_name("guest") == "faculty"


@pytest.mark.parametrize(
    "name,value",
    [
        ("FACET_TYPE_ROLE_ALIASES", "management"),
        ("FACET_TYPES", "hsm"),
        ("TEMP_PASSWORD_LENGTH", "0"),
        ("TEMP_PASSWORD_LENGTH", "six"),
    ],
)
def test_invalid_values_rejected(monkeypatch, name, value):
    monkeypatch.setenv("DEMO_MODE", "true")
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError):
        settings.load_settings()


def test_directus_requires_token(monkeypatch):
    monkeypatch.setenv("DEMO_MODE", "true")
    monkeypatch.setenv("DIRECTUS_URL", "http://directus:8055")
    with pytest.raises(RuntimeError, match="DIRECTUS_TOKEN"):
        settings.load_settings()

    monkeypatch.setenv("DIRECTUS_TOKEN", "tkn")
    assert settings.load_settings().paired_accounts_enabled is True
