# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Login and request-authentication flows.

Both flows are a fixed sequence of steps run through ``pipeline``. Expected
failures come back as ``Err(code)``; store outages are logged and reported
as ``INTERNAL_FAILURE``.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping

import structlog

from tokenauth.auth.interfaces import CredentialVerifier, TokenStore, UserIdentity
from tokenauth.auth.signer import TokenSigner, format_timestamp
from tokenauth.config import DEFAULT_MAX_AGE_SECONDS
from tokenauth.core.errors import ErrorCode, StoreError
from tokenauth.core.result import Err, Ok, Result, pipeline
from tokenauth.core.sanitize import Credentials, normalize_keys, sanitize_credentials

logger = structlog.get_logger()

DEFAULT_MAX_AGE = timedelta(seconds=DEFAULT_MAX_AGE_SECONDS)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LoginResponse:
    token: str

    def as_dict(self) -> Dict[str, str]:
        return {"token": self.token}


@dataclass(frozen=True)
class AuthenticatedPayload:
    issuer: UserIdentity
    fields: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        out = dict(self.fields)
        out["issuer"] = self.issuer.as_dict()
        return out


@dataclass(frozen=True)
class _ResolvedLogin:
    credentials: Credentials
    user_id: str


def store_guarded(step: Callable[..., Result[Any]]) -> Callable[..., Result[Any]]:
    """Turn a StoreError raised inside ``step`` into ``Err(INTERNAL_FAILURE)``."""

    @functools.wraps(step)
    def _wrapped(*args: Any) -> Result[Any]:
        try:
            return step(*args)
        except StoreError:
            logger.exception("auth.store_failure", step=step.__name__)
            return Err(ErrorCode.INTERNAL_FAILURE)

    return _wrapped


def _require_token(content: Any) -> Result[Dict[str, Any]]:
    if not isinstance(content, Mapping):
        return Err(ErrorCode.UNAUTHENTICATED)
    payload = normalize_keys(content)
    token = payload.get("token")
    if not isinstance(token, str) or not token:
        return Err(ErrorCode.UNAUTHENTICATED)
    return Ok(payload)


class AuthService:
    def __init__(
        self,
        signer: TokenSigner,
        tokens: TokenStore,
        credentials: CredentialVerifier,
        *,
        max_age: timedelta = DEFAULT_MAX_AGE,
        clock: Callable[[], datetime] = utcnow,
        distinguish_unknown_user: bool = False,
    ) -> None:
        self._signer = signer
        self._tokens = tokens
        self._credentials = credentials
        self._max_age = max_age
        self._clock = clock
        self._distinguish_unknown_user = distinguish_unknown_user

    @property
    def max_age(self) -> timedelta:
        return self._max_age

    # -- login -------------------------------------------------------------

    def login(self, content: Any) -> Result[LoginResponse]:
        """Sanitize, resolve the user, check the password, then issue a token."""
        result = pipeline(
            content,
            sanitize_credentials,
            self._resolve_user,
            self._check_password,
            self._issue_token,
        )
        if isinstance(result, Err):
            logger.info("auth.login_failed", error=result.error.value)
        return result

    @store_guarded
    def _resolve_user(self, creds: Credentials) -> Result[_ResolvedLogin]:
        user_id = self._credentials.lookup_user_id(creds.username)
        if user_id is None:
            # Same verification cost as a wrong password.
            self._credentials.passwords_match(creds.username, creds.password)
            if self._distinguish_unknown_user:
                return Err(ErrorCode.UNKNOWN_USER)
            return Err(ErrorCode.INVALID_CREDENTIALS)
        return Ok(_ResolvedLogin(credentials=creds, user_id=user_id))

    @store_guarded
    def _check_password(self, login: _ResolvedLogin) -> Result[_ResolvedLogin]:
        creds = login.credentials
        if not self._credentials.passwords_match(creds.username, creds.password):
            return Err(ErrorCode.INVALID_CREDENTIALS)
        return Ok(login)

    @store_guarded
    def _issue_token(self, login: _ResolvedLogin) -> Result[LoginResponse]:
        now = self._clock()
        token = self._signer.generate_token(login.credentials.username, format_timestamp(now))
        self._tokens.insert(token, login.user_id, now)
        logger.info("auth.login_succeeded", user_id=login.user_id)
        return Ok(LoginResponse(token=token))

    # -- authenticate ------------------------------------------------------

    def authenticate(self, content: Any) -> Result[AuthenticatedPayload]:
        """Swap the ``token`` field for the ``issuer`` the store resolves it to."""
        return pipeline(content, _require_token, self._validate_token)

    @store_guarded
    def _validate_token(self, payload: Dict[str, Any]) -> Result[AuthenticatedPayload]:
        identity = self._tokens.lookup_valid(payload["token"], self._clock(), self._max_age)
        if identity is None:
            logger.info("auth.token_rejected")
            return Err(ErrorCode.UNAUTHENTICATED)
        fields = {k: v for k, v in payload.items() if k not in ("token", "issuer")}
        return Ok(AuthenticatedPayload(issuer=identity, fields=fields))
