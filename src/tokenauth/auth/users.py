# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

import yaml

_USER_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "tokenauth:users")


@dataclass(frozen=True)
class UserRecord:
    user_id: str
    username: str
    active: bool
    password_hash: str


def default_user_id(username: str) -> str:
    """Stable id for accounts declared without one."""
    return str(uuid.uuid5(_USER_ID_NAMESPACE, username))


def load_users_file(path: Path) -> Dict[str, UserRecord]:
    if not path.exists():
        return {}
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    users = (raw.get("users") or {}) if isinstance(raw, dict) else {}
    out: Dict[str, UserRecord] = {}
    for uname, udata in users.items():
        if not isinstance(udata, dict):
            continue
        username = str(uname).strip()
        if not username:
            continue
        user_id = str(udata.get("id") or "").strip() or default_user_id(username)
        out[username] = UserRecord(
            user_id=user_id,
            username=username,
            active=bool(udata.get("active", True)),
            password_hash=str(udata.get("password_hash") or "").strip(),
        )
    return out

