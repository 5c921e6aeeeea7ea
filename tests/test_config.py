from datetime import timedelta

import pytest
import structlog
import yaml

from tokenauth.auth.passwords import hash_password
from tokenauth.auth.service import AuthService
from tokenauth.bootstrap import build_auth_service
from tokenauth.config import MissingSecretKey, load_settings
from tokenauth.core.result import Ok
from tokenauth.infra.db import make_engine
from tokenauth.infra.sql_store import SqlCredentialStore
from tokenauth.log import configure_logging


@pytest.fixture()
def clean_env(monkeypatch, tmp_path):
    for name in (
        "TOKENAUTH_SECRET_KEY",
        "SECRET_KEY",
        "TOKENAUTH_SESSION_MAX_AGE",
        "TOKENAUTH_DATABASE_URL",
        "TOKENAUTH_USERS_PATH",
        "TOKENAUTH_DISTINGUISH_UNKNOWN_USER",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TOKENAUTH_DATA_DIR", str(tmp_path))
    return monkeypatch


def test_defaults(clean_env, tmp_path):
    settings = load_settings()
    assert settings.secret_key is None
    assert settings.max_age == timedelta(hours=6)
    assert settings.users_path == (tmp_path / "users.yml").resolve()
    assert settings.database_url.endswith("tokenauth.db")
    assert settings.distinguish_unknown_user is False


def test_env_overrides(clean_env):
    clean_env.setenv("SECRET_KEY", "fallback")
    clean_env.setenv("TOKENAUTH_SESSION_MAX_AGE", "60")
    clean_env.setenv("TOKENAUTH_DISTINGUISH_UNKNOWN_USER", "yes")
    settings = load_settings()
    assert settings.require_secret() == "fallback"
    assert settings.max_age == timedelta(seconds=60)
    assert settings.distinguish_unknown_user is True

    clean_env.setenv("TOKENAUTH_SECRET_KEY", "primary")
    assert load_settings().require_secret() == "primary"


def test_missing_secret_is_fatal(clean_env):
    settings = load_settings()
    with pytest.raises(MissingSecretKey):
        settings.require_secret()
    with pytest.raises(MissingSecretKey):
        build_auth_service(settings)


def test_build_auth_service_syncs_users_file(clean_env, tmp_path):
    (tmp_path / "users.yml").write_text(
        yaml.safe_dump({"users": {"alice": {"id": "id42", "password_hash": hash_password("correct")}}}),
        encoding="utf-8",
    )
    engine = make_engine("sqlite://")

    clean_env.setenv("TOKENAUTH_SECRET_KEY", "k")
    service = build_auth_service(load_settings(), engine=engine)

    assert isinstance(service, AuthService)
    assert SqlCredentialStore(engine).lookup_user_id("alice") == "id42"
    assert isinstance(service.login({"username": "alice", "password": "correct"}), Ok)


def test_emptied_users_file_deactivates_on_rebuild(clean_env, tmp_path):
    users_path = tmp_path / "users.yml"
    users_path.write_text(
        yaml.safe_dump({"users": {"alice": {"id": "id42", "password_hash": hash_password("correct")}}}),
        encoding="utf-8",
    )
    engine = make_engine("sqlite://")
    clean_env.setenv("TOKENAUTH_SECRET_KEY", "k")
    build_auth_service(load_settings(), engine=engine)

    users_path.write_text(yaml.safe_dump({"users": {}}), encoding="utf-8")
    service = build_auth_service(load_settings(), engine=engine)

    assert SqlCredentialStore(engine).lookup_user_id("alice") is None
    assert not isinstance(service.login({"username": "alice", "password": "correct"}), Ok)


def test_build_auth_service_creates_sqlite_file(clean_env, tmp_path):
    clean_env.setenv("TOKENAUTH_SECRET_KEY", "k")
    clean_env.setenv("TOKENAUTH_DATABASE_URL", f"sqlite:///{tmp_path / 'nested' / 'auth.db'}")
    build_auth_service(load_settings())
    assert (tmp_path / "nested" / "auth.db").exists()


@pytest.mark.parametrize("json_logs", [False, True])
def test_configure_logging(json_logs, capsys):
    configure_logging("warning", json=json_logs)
    try:
        log = structlog.get_logger()
        log.info("auth.hidden")
        log.warning("auth.visible", user_id="id42")
        out = capsys.readouterr().out
        assert "auth.hidden" not in out
        assert "auth.visible" in out
        assert "id42" in out
    finally:
        structlog.reset_defaults()
