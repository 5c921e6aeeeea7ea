#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

import yaml

from tokenauth.auth.passwords import hash_password
from tokenauth.auth.users import default_user_id
from tokenauth.config import get_settings
from tokenauth.core.sanitize import SEPARATOR

USERS_PATH = get_settings().users_path


def main() -> None:
    USERS_PATH.parent.mkdir(parents=True, exist_ok=True)
    if USERS_PATH.exists():
        raw = yaml.safe_load(USERS_PATH.read_text(encoding="utf-8")) or {}
    else:
        raw = {"version": 1, "users": {}}

    if "users" not in raw or not isinstance(raw["users"], dict):
        raw["users"] = {}

    username = input("Username: ").strip()
    if not username or SEPARATOR in username:
        raise SystemExit(f"Invalid username (must be non-empty and not contain '{SEPARATOR}')")
    existing = raw["users"].get(username) or {}
    user_id = input(f"User id [{existing.get('id') or default_user_id(username)}]: ").strip()
    active_in = input("Active? [Y/n]: ").strip().lower()
    active = (active_in != "n")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    raw["users"][username] = {
        "id": user_id or existing.get("id") or default_user_id(username),
        "active": active,
        "password_hash": hash_password(pw1),
    }

    USERS_PATH.write_text(yaml.safe_dump(raw, sort_keys=False, allow_unicode=True), encoding="utf-8")
    print(f"OK -> {USERS_PATH}")


if __name__ == "__main__":
    main()
