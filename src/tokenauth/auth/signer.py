# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import hashlib
from datetime import datetime, timezone

from itsdangerous import Signer

from tokenauth.config import DEFAULT_SALT, MissingSecretKey
from tokenauth.core.sanitize import SEPARATOR


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with microsecond precision; naive values are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


class TokenSigner:
    """Builds ``username$timestamp$signature`` tokens.

    The signature is HMAC-SHA256 over ``username$timestamp`` with a key
    derived from the secret and salt. Nothing here decodes tokens: validation
    goes through the token store.
    """

    def __init__(self, secret_key: str, *, salt: str = DEFAULT_SALT) -> None:
        if not secret_key:
            raise MissingSecretKey("Cannot sign session tokens without a secret key")
        self._signer = Signer(
            secret_key,
            salt=salt,
            sep=SEPARATOR,
            key_derivation="hmac",
            digest_method=hashlib.sha256,
        )

    @staticmethod
    def _payload(username: str, timestamp: str) -> str:
        return f"{username}{SEPARATOR}{timestamp}"

    def sign(self, username: str, timestamp: str) -> str:
        return self._signer.get_signature(self._payload(username, timestamp)).decode("ascii")

    def generate_token(self, username: str, timestamp: str) -> str:
        return self._signer.sign(self._payload(username, timestamp)).decode("utf-8")
