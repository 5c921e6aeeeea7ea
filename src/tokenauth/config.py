# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Optional

DEFAULT_MAX_AGE_SECONDS = 6 * 60 * 60
DEFAULT_SALT = "tokenauth.session.v1"

_TRUE = {"1", "true", "yes", "y"}


class MissingSecretKey(RuntimeError):
    """No signing key configured; tokens can be neither issued nor validated."""


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUE


@dataclass(frozen=True)
class Settings:
    secret_key: Optional[str]
    max_age: timedelta
    signer_salt: str
    database_url: str
    users_path: Path
    distinguish_unknown_user: bool
    log_level: str
    log_json: bool

    def require_secret(self) -> str:
        if not self.secret_key:
            raise MissingSecretKey("Missing TOKENAUTH_SECRET_KEY (or SECRET_KEY) in environment")
        return self.secret_key


def load_settings() -> Settings:
    data_dir = Path(os.getenv("TOKENAUTH_DATA_DIR", "data")).resolve()
    secret = os.getenv("TOKENAUTH_SECRET_KEY") or os.getenv("SECRET_KEY") or None
    return Settings(
        secret_key=secret,
        max_age=timedelta(seconds=int(os.getenv("TOKENAUTH_SESSION_MAX_AGE", str(DEFAULT_MAX_AGE_SECONDS)))),
        signer_salt=os.getenv("TOKENAUTH_SIGNER_SALT", DEFAULT_SALT),
        database_url=os.getenv("TOKENAUTH_DATABASE_URL", f"sqlite:///{data_dir / 'tokenauth.db'}"),
        users_path=Path(os.getenv("TOKENAUTH_USERS_PATH", str(data_dir / "users.yml"))).resolve(),
        distinguish_unknown_user=_flag("TOKENAUTH_DISTINGUISH_UNKNOWN_USER"),
        log_level=os.getenv("TOKENAUTH_LOG_LEVEL", "INFO").upper(),
        log_json=_flag("TOKENAUTH_LOG_JSON"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read from the environment on first call only."""
    return load_settings()
