# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional, Protocol


@dataclass(frozen=True)
class UserIdentity:
    user_id: str
    username: str

    def as_dict(self) -> Dict[str, str]:
        return {"user_id": self.user_id, "username": self.username}


class TokenStore(Protocol):
    """Session records keyed by token. Implementations raise StoreError on outages."""

    def insert(self, token: str, user_id: str, issued_at: datetime) -> None:
        ...

    def lookup_valid(self, token: str, now: datetime, max_age: timedelta) -> Optional[UserIdentity]:
        """Identity for ``token`` iff its record has ``issued_at > now - max_age``."""
        ...


class CredentialVerifier(Protocol):
    def lookup_user_id(self, username: str) -> Optional[str]:
        ...

    def passwords_match(self, username: str, password: str) -> bool:
        ...
