# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Expected failures surfaced to callers. Never carries exception text."""

    BAD_INPUT = "bad_input"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNKNOWN_USER = "unknown_user"
    UNAUTHENTICATED = "unauthenticated"
    INTERNAL_FAILURE = "internal_failure"

    @property
    def status(self) -> int:
        return _STATUS[self]


_STATUS = {
    ErrorCode.BAD_INPUT: 400,
    ErrorCode.INVALID_CREDENTIALS: 401,
    ErrorCode.UNKNOWN_USER: 404,
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.INTERNAL_FAILURE: 500,
}


class StoreError(Exception):
    """Raised by store implementations when the backing medium fails."""
