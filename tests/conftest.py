import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from datetime import datetime, timedelta, timezone

import pytest

from tokenauth.auth.interfaces import UserIdentity
from tokenauth.auth.service import AuthService
from tokenauth.auth.signer import TokenSigner
from tokenauth.core.errors import StoreError
from tokenauth.infra.db import init_db, make_engine
from tokenauth.infra.sql_store import SqlCredentialStore, SqlTokenStore

SECRET = "test-secret-key"
T0 = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class FakeCredentials:
    """users: username -> (user_id, password)."""

    def __init__(self, users=None, fail=False):
        self.users = dict(users or {})
        self.fail = fail
        self.lookup_calls = 0
        self.match_calls = 0

    def lookup_user_id(self, username):
        self.lookup_calls += 1
        if self.fail:
            raise StoreError("user store down")
        entry = self.users.get(username)
        return entry[0] if entry else None

    def passwords_match(self, username, password):
        self.match_calls += 1
        if self.fail:
            raise StoreError("user store down")
        entry = self.users.get(username)
        return bool(entry) and entry[1] == password


class FakeTokenStore:
    def __init__(self, users=None, fail_insert=False, fail_lookup=False):
        self.records = {}
        self.users = dict(users or {})  # user_id -> username
        self.fail_insert = fail_insert
        self.fail_lookup = fail_lookup
        self.insert_calls = 0
        self.lookup_calls = 0

    def insert(self, token, user_id, issued_at):
        self.insert_calls += 1
        if self.fail_insert:
            raise StoreError("session store down")
        self.records[token] = (user_id, issued_at)

    def lookup_valid(self, token, now, max_age):
        self.lookup_calls += 1
        if self.fail_lookup:
            raise StoreError("session store down")
        rec = self.records.get(token)
        if rec is None or not rec[1] > now - max_age:
            return None
        return UserIdentity(user_id=rec[0], username=self.users.get(rec[0], ""))


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def signer() -> TokenSigner:
    return TokenSigner(SECRET)


@pytest.fixture()
def fake_credentials() -> FakeCredentials:
    return FakeCredentials({"alice": ("id42", "correct")})


@pytest.fixture()
def fake_tokens() -> FakeTokenStore:
    return FakeTokenStore({"id42": "alice"})


@pytest.fixture()
def service(signer, fake_tokens, fake_credentials, clock) -> AuthService:
    return AuthService(signer, fake_tokens, fake_credentials, clock=clock)


@pytest.fixture()
def engine():
    eng = make_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def sql_credentials(engine) -> SqlCredentialStore:
    store = SqlCredentialStore(engine)
    store.add_user("alice", "correct", user_id="id42")
    return store


@pytest.fixture()
def sql_tokens(engine) -> SqlTokenStore:
    return SqlTokenStore(engine)


@pytest.fixture()
def sql_service(signer, sql_tokens, sql_credentials, clock) -> AuthService:
    return AuthService(signer, sql_tokens, sql_credentials, clock=clock)
