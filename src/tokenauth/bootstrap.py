# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from pathlib import Path
from typing import Optional

import structlog
from sqlalchemy.engine import Engine, make_url

from tokenauth.auth.service import AuthService
from tokenauth.auth.signer import TokenSigner
from tokenauth.auth.users import load_users_file
from tokenauth.config import Settings
from tokenauth.infra.db import init_db, make_engine
from tokenauth.infra.sql_store import SqlCredentialStore, SqlTokenStore

logger = structlog.get_logger()


def _ensure_sqlite_dir(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)


def build_auth_service(settings: Settings, *, engine: Optional[Engine] = None) -> AuthService:
    """Wire the signer and SQL stores; accounts from the users file, when present, are synced in.

    Raises MissingSecretKey before touching the database when no key is set.
    """
    signer = TokenSigner(settings.require_secret(), salt=settings.signer_salt)

    if engine is None:
        _ensure_sqlite_dir(settings.database_url)
        engine = make_engine(settings.database_url)
    init_db(engine)

    credentials = SqlCredentialStore(engine)
    if settings.users_path.exists():
        credentials.sync_users(load_users_file(settings.users_path).values())

    logger.info(
        "auth.service_ready",
        database=make_url(settings.database_url).render_as_string(hide_password=True),
        max_age_seconds=int(settings.max_age.total_seconds()),
    )
    return AuthService(
        signer,
        SqlTokenStore(engine),
        credentials,
        max_age=settings.max_age,
        distinguish_unknown_user=settings.distinguish_unknown_user,
    )
