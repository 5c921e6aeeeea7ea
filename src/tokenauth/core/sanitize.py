# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from tokenauth.core.errors import ErrorCode
from tokenauth.core.result import Err, Ok, Result

# Token field separator; usernames may not contain it.
SEPARATOR = "$"


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


def normalize_keys(content: Mapping[Any, Any]) -> Dict[str, Any]:
    """Return a plain dict with every key converted to ``str``."""
    return {str(k): v for k, v in content.items()}


def sanitize_credentials(content: Any) -> Result[Credentials]:
    """Keep only ``username`` and ``password``; anything else is dropped."""
    if not isinstance(content, Mapping):
        return Err(ErrorCode.BAD_INPUT)
    data = normalize_keys(content)
    username = data.get("username")
    password = data.get("password")
    if not isinstance(username, str) or not isinstance(password, str):
        return Err(ErrorCode.BAD_INPUT)
    username = username.strip()
    if not username or not password or SEPARATOR in username:
        return Err(ErrorCode.BAD_INPUT)
    return Ok(Credentials(username=username, password=password))
