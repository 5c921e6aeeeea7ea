# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_PH = PasswordHasher()

# Verified against when the account does not exist, so that path costs the same.
_DUMMY_HASH = _PH.hash("tokenauth-dummy-password")


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Empty password")
    return _PH.hash(plain)


def verify_password(hash_value: str, plain: str) -> bool:
    if not hash_value or not plain:
        return False
    try:
        return _PH.verify(hash_value, plain)
    except (VerificationError, InvalidHashError):
        return False


def burn_verification(plain: str) -> None:
    verify_password(_DUMMY_HASH, plain or "-")


def needs_rehash(hash_value: str) -> bool:
    """True when ``hash_value`` was made with weaker parameters than the current hasher."""
    try:
        return _PH.check_needs_rehash(hash_value)
    except (InvalidHashError, ValueError):
        return False
