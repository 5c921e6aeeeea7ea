# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from tokenauth.auth.interfaces import UserIdentity
from tokenauth.auth.passwords import burn_verification, hash_password, needs_rehash, verify_password
from tokenauth.auth.users import UserRecord
from tokenauth.core.errors import StoreError
from tokenauth.infra.db import SessionToken, User, session_scope

logger = structlog.get_logger()


def _to_db(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise StoreError(f"{operation} failed") from e


class SqlTokenStore:
    """Session records in the ``sessions`` table, resolved through ``users``."""

    def __init__(self, engine: Engine) -> None:
        self._factory = sessionmaker(bind=engine, expire_on_commit=False)

    def insert(self, token: str, user_id: str, issued_at: datetime) -> None:
        with _store_errors("session insert"):
            with session_scope(self._factory) as session:
                session.add(SessionToken(token=token, user_id=user_id, issued_at=_to_db(issued_at)))

    def lookup_valid(self, token: str, now: datetime, max_age: timedelta) -> Optional[UserIdentity]:
        cutoff = _to_db(now - max_age)
        stmt = (
            select(User.user_id, User.username)
            .join(SessionToken, SessionToken.user_id == User.user_id)
            .where(SessionToken.token == token, SessionToken.issued_at > cutoff)
        )
        with _store_errors("session lookup"):
            with session_scope(self._factory) as session:
                row = session.execute(stmt).first()
        if row is None:
            return None
        return UserIdentity(user_id=row.user_id, username=row.username)


class SqlCredentialStore:
    """Accounts in the ``users`` table with argon2 password hashes."""

    def __init__(self, engine: Engine) -> None:
        self._factory = sessionmaker(bind=engine, expire_on_commit=False)

    def _active_user(self, session, username: str) -> Optional[User]:
        row = session.scalars(select(User).where(User.username == username)).first()
        if row is None or not row.active:
            return None
        return row

    def lookup_user_id(self, username: str) -> Optional[str]:
        with _store_errors("user lookup"):
            with session_scope(self._factory) as session:
                row = self._active_user(session, username)
                return row.user_id if row else None

    def passwords_match(self, username: str, password: str) -> bool:
        with _store_errors("user lookup"):
            with session_scope(self._factory) as session:
                row = self._active_user(session, username)
                password_hash = row.password_hash if row else ""
        if not password_hash:
            burn_verification(password)
            return False
        if not verify_password(password_hash, password):
            return False
        if needs_rehash(password_hash):
            self._rehash(username, password)
        return True

    def _rehash(self, username: str, password: str) -> None:
        with _store_errors("password rehash"):
            with session_scope(self._factory) as session:
                row = self._active_user(session, username)
                if row is not None:
                    row.password_hash = hash_password(password)
        logger.info("users.password_rehashed", user_id=row.user_id if row else None)

    def add_user(
        self,
        username: str,
        password: str,
        *,
        user_id: Optional[str] = None,
        active: bool = True,
    ) -> str:
        user_id = user_id or str(uuid.uuid4())
        with _store_errors("user insert"):
            with session_scope(self._factory) as session:
                session.add(
                    User(
                        user_id=user_id,
                        username=username,
                        password_hash=hash_password(password),
                        active=active,
                    )
                )
        return user_id

    def sync_users(self, records: Iterable[UserRecord]) -> int:
        """Make the file-managed accounts match ``records``. Returns how many were written.

        Accounts previously synced but absent from ``records`` are deactivated.
        A stored hash is only replaced when the file's hash changed since the
        last sync, so a rehash done at login survives restarts.
        """
        count = 0
        seen = set()
        with _store_errors("user sync"):
            with session_scope(self._factory) as session:
                for rec in records:
                    seen.add(rec.user_id)
                    row = session.get(User, rec.user_id)
                    if row is None:
                        row = User(user_id=rec.user_id, password_hash=rec.password_hash)
                        session.add(row)
                    elif row.synced_hash != rec.password_hash:
                        row.password_hash = rec.password_hash
                    row.username = rec.username
                    row.active = rec.active
                    row.synced_hash = rec.password_hash
                    count += 1

                removed = session.scalars(
                    select(User).where(User.synced_hash.is_not(None), User.active.is_(True))
                ).all()
                deactivated = 0
                for row in removed:
                    if row.user_id not in seen:
                        row.active = False
                        deactivated += 1
        logger.info("users.synced", count=count, deactivated=deactivated)
        return count
