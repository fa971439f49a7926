"""
Configuration parsing and the production startup guard.
"""
from __future__ import annotations

import os
from pathlib import Path

import pytest

from classroom.config import (
    ADMIN_BOOTSTRAP_PASSWORD_DEFAULT,
    Settings,
    ensure_secure_config_on_startup,
    load_env_file,
)

_VARS = (
    "CLASSROOM_ENV",
    "CLASSROOM_DATA_DIR",
    "CLASSROOM_DOCUMENT_BACKEND",
    "CLASSROOM_BLOB_BACKEND",
    "CLASSROOM_SESSION_BACKEND",
    "DATABASE_URL",
    "CLASSROOM_ADMIN_EMAIL",
    "CLASSROOM_ADMIN_BOOTSTRAP_PASSWORD",
    "CLASSROOM_LOGIN_DELAY_MS",
    "CLASSROOM_MAX_UPLOAD_BYTES",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_env():
    settings = Settings.from_env()

    assert settings.env == "dev" and not settings.is_prod_like
    assert settings.document_backend == "memory"
    assert settings.admin_email == "admin@classroom.local"
    assert settings.admin_bootstrap_password == ADMIN_BOOTSTRAP_PASSWORD_DEFAULT
    assert settings.login_delay_seconds == 0.5


def test_env_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CLASSROOM_DATA_DIR", "/srv/classroom")
    monkeypatch.setenv("CLASSROOM_DOCUMENT_BACKEND", "FILE")
    monkeypatch.setenv("CLASSROOM_ADMIN_EMAIL", " Owner@School.org ")
    monkeypatch.setenv("CLASSROOM_LOGIN_DELAY_MS", "0")

    settings = Settings.from_env()

    assert settings.data_dir == Path("/srv/classroom")
    assert settings.document_backend == "file"
    assert settings.admin_email == "owner@school.org"
    assert settings.login_delay_ms == 0


@pytest.mark.parametrize(
    "raw,expected",
    [("abc", 500), ("-1", 500), ("120000", 5000), ("750", 750)],
)
def test_login_delay_is_parsed_and_clamped(monkeypatch: pytest.MonkeyPatch, raw: str, expected: int):
    monkeypatch.setenv("CLASSROOM_LOGIN_DELAY_MS", raw)
    assert Settings.from_env().login_delay_ms == expected


def test_unknown_backend_falls_back_to_memory(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CLASSROOM_BLOB_BACKEND", "s3")
    assert Settings.from_env().blob_backend == "memory"


def test_max_upload_cannot_exceed_default(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CLASSROOM_MAX_UPLOAD_BYTES", str(10 * 1024**3))
    assert Settings.from_env().max_upload_bytes == 200 * 1024 * 1024


@pytest.mark.parametrize(
    "settings",
    [
        Settings(env="prod", document_backend="file"),
        Settings(env="production", document_backend="memory", admin_bootstrap_password="strong"),
        Settings(env="staging", document_backend="db", admin_bootstrap_password="strong"),
    ],
)
def test_prod_guard_refuses_insecure_config(settings: Settings):
    with pytest.raises(SystemExit):
        ensure_secure_config_on_startup(settings)


def test_prod_guard_accepts_secure_config_and_ignores_dev():
    ensure_secure_config_on_startup(Settings(env="prod", document_backend="file", admin_bootstrap_password="strong"))
    ensure_secure_config_on_startup(Settings(env="dev"))


def test_env_file_does_not_override(monkeypatch: pytest.MonkeyPatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("CLASSROOM_ENV=staging\nCLASSROOM_ADMIN_EMAIL=file@example.com\n")
    monkeypatch.setenv("CLASSROOM_ENV", "dev")

    try:
        assert load_env_file(env_file) is True
        settings = Settings.from_env()
    finally:
        # load_dotenv writes straight into os.environ
        os.environ.pop("CLASSROOM_ADMIN_EMAIL", None)

    assert settings.env == "dev"
    assert settings.admin_email == "file@example.com"
