"""
Centralized configuration for the classroom core.

Intent:
    Provide a single source of truth for store backends, the admin bootstrap
    credentials and upload limits, read from environment variables with sane
    defaults so tests and local runs need no setup.

Behavior:
    - `Settings.from_env()` reads CLASSROOM_ENV, CLASSROOM_DATA_DIR,
      CLASSROOM_{DOCUMENT,BLOB,SESSION}_BACKEND, DATABASE_URL,
      CLASSROOM_ADMIN_EMAIL, CLASSROOM_ADMIN_BOOTSTRAP_PASSWORD,
      CLASSROOM_LOGIN_DELAY_MS and CLASSROOM_MAX_UPLOAD_BYTES; invalid numbers
      fall back to defaults and are clamped.
    - `load_env_file()` loads a `.env` file via python-dotenv without
      overriding variables that are already set.
    - `ensure_secure_config_on_startup()` aborts prod-like deployments that
      still run on the default admin password or a volatile document store.

Permissions:
    Pure configuration; no external calls or privileges required.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


DOCUMENT_BACKENDS = frozenset({"memory", "file", "db"})
BLOB_BACKENDS = frozenset({"memory", "file"})
SESSION_BACKENDS = frozenset({"memory", "file"})

ADMIN_EMAIL_DEFAULT = "admin@classroom.local"
ADMIN_BOOTSTRAP_PASSWORD_DEFAULT = "admin"
LOGIN_DELAY_MS_DEFAULT = 500
LOGIN_DELAY_MS_MAX = 5000
MAX_UPLOAD_BYTES_DEFAULT = 200 * 1024 * 1024


def _parse_int_env(name: str, default: int, *, contract_max: int | None = None, allow_zero: bool = False) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value < 0 or (value == 0 and not allow_zero):
        return default
    if isinstance(contract_max, int) and contract_max > 0:
        value = min(value, contract_max)
    return value


def _choice_env(name: str, default: str, allowed: frozenset[str]) -> str:
    value = (os.getenv(name) or default).strip().lower()
    return value if value in allowed else default


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime settings; immutable once built."""

    env: str = "dev"
    data_dir: Path = Path("classroom-data")
    document_backend: str = "memory"
    blob_backend: str = "memory"
    session_backend: str = "memory"
    database_url: str | None = None
    admin_email: str = ADMIN_EMAIL_DEFAULT
    admin_bootstrap_password: str = ADMIN_BOOTSTRAP_PASSWORD_DEFAULT
    login_delay_ms: int = LOGIN_DELAY_MS_DEFAULT
    max_upload_bytes: int = MAX_UPLOAD_BYTES_DEFAULT

    @property
    def login_delay_seconds(self) -> float:
        return self.login_delay_ms / 1000.0

    @property
    def is_prod_like(self) -> bool:
        return _is_prod_like(self.env)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            env=(os.getenv("CLASSROOM_ENV") or "dev").strip().lower(),
            data_dir=Path((os.getenv("CLASSROOM_DATA_DIR") or "classroom-data").strip()),
            document_backend=_choice_env("CLASSROOM_DOCUMENT_BACKEND", "memory", DOCUMENT_BACKENDS),
            blob_backend=_choice_env("CLASSROOM_BLOB_BACKEND", "memory", BLOB_BACKENDS),
            session_backend=_choice_env("CLASSROOM_SESSION_BACKEND", "memory", SESSION_BACKENDS),
            database_url=(os.getenv("DATABASE_URL") or "").strip() or None,
            admin_email=(os.getenv("CLASSROOM_ADMIN_EMAIL") or ADMIN_EMAIL_DEFAULT).strip().lower(),
            admin_bootstrap_password=os.getenv("CLASSROOM_ADMIN_BOOTSTRAP_PASSWORD") or ADMIN_BOOTSTRAP_PASSWORD_DEFAULT,
            login_delay_ms=_parse_int_env(
                "CLASSROOM_LOGIN_DELAY_MS", LOGIN_DELAY_MS_DEFAULT, contract_max=LOGIN_DELAY_MS_MAX, allow_zero=True
            ),
            max_upload_bytes=_parse_int_env(
                "CLASSROOM_MAX_UPLOAD_BYTES", MAX_UPLOAD_BYTES_DEFAULT, contract_max=MAX_UPLOAD_BYTES_DEFAULT
            ),
        )


def load_env_file(path: str | os.PathLike[str] | None = None) -> bool:
    """Load variables from a `.env` file; existing env always wins."""
    return load_dotenv(dotenv_path=path, override=False)


def ensure_secure_config_on_startup(settings: Settings) -> None:
    """Fail fast on insecure production configuration.

    Checks (prod/stage only):
    - The admin bootstrap password must not be the well-known default.
    - The document store must be durable (not `memory`).
    - The `db` backend needs a DATABASE_URL.
    """
    if not settings.is_prod_like:
        return
    if settings.admin_bootstrap_password == ADMIN_BOOTSTRAP_PASSWORD_DEFAULT:
        raise SystemExit(
            "Refusing to start: CLASSROOM_ADMIN_BOOTSTRAP_PASSWORD is the default value in production."
        )
    if settings.document_backend == "memory":
        raise SystemExit(
            "Refusing to start: CLASSROOM_DOCUMENT_BACKEND=memory loses all data on restart."
        )
    if settings.document_backend == "db" and not settings.database_url:
        raise SystemExit("Refusing to start: CLASSROOM_DOCUMENT_BACKEND=db requires DATABASE_URL.")


__all__ = [
    "Settings",
    "load_env_file",
    "ensure_secure_config_on_startup",
    "ADMIN_EMAIL_DEFAULT",
    "ADMIN_BOOTSTRAP_PASSWORD_DEFAULT",
]
