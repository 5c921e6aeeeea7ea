# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from starlette.concurrency import run_in_threadpool

from tokenauth.auth.service import AuthenticatedPayload, AuthService
from tokenauth.bootstrap import build_auth_service
from tokenauth.config import get_settings
from tokenauth.core.errors import ErrorCode
from tokenauth.core.result import Err


class AuthFailure(Exception):
    def __init__(self, error: ErrorCode) -> None:
        super().__init__(error.value)
        self.error = error


@lru_cache(maxsize=1)
def get_auth_service() -> AuthService:
    return build_auth_service(get_settings())


def _bearer_token(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


async def read_json_object(request: Request) -> Dict[str, Any]:
    """JSON object body, ``{}`` when empty. Anything else is bad input."""
    body = await request.body()
    if not body.strip():
        return {}
    try:
        content = await request.json()
    except ValueError:
        raise AuthFailure(ErrorCode.BAD_INPUT) from None
    if not isinstance(content, dict):
        raise AuthFailure(ErrorCode.BAD_INPUT)
    return content


async def require_token(
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> AuthenticatedPayload:
    content = await read_json_object(request)
    bearer = _bearer_token(request.headers.get("authorization"))
    if bearer and "token" not in content:
        content["token"] = bearer
    result = await run_in_threadpool(service.authenticate, content)
    if isinstance(result, Err):
        raise AuthFailure(result.error)
    return result.value
