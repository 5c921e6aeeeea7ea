# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from tokenauth import __version__
from tokenauth.auth.service import AuthenticatedPayload, AuthService
from tokenauth.config import get_settings
from tokenauth.core.errors import ErrorCode
from tokenauth.core.result import Err
from tokenauth.log import configure_logging
from tokenauth.permissions import AuthFailure, get_auth_service, read_json_object, require_token


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Runs in every server process, including uvicorn reload workers.
    settings = get_settings()
    configure_logging(settings.log_level, json=settings.log_json)
    yield


app = FastAPI(title="tokenauth", version=__version__, lifespan=lifespan)


def _error_response(error: ErrorCode) -> Response:
    headers = {"WWW-Authenticate": "Bearer"} if error.status == 401 else None
    return Response(status_code=error.status, headers=headers)


@app.exception_handler(AuthFailure)
async def _auth_failure_handler(request: Request, exc: AuthFailure) -> Response:
    return _error_response(exc.error)


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/login")
async def login(request: Request, service: AuthService = Depends(get_auth_service)) -> Response:
    content = await read_json_object(request)
    result = await run_in_threadpool(service.login, content)
    if isinstance(result, Err):
        return _error_response(result.error)
    return JSONResponse(result.value.as_dict())


@app.post("/whoami")
def whoami(payload: AuthenticatedPayload = Depends(require_token)) -> Dict[str, Any]:
    return payload.as_dict()
