import yaml

from tokenauth.auth.passwords import hash_password, verify_password
from tokenauth.auth.users import default_user_id, load_users_file


def _write_users(path, users):
    path.write_text(yaml.safe_dump({"version": 1, "users": users}), encoding="utf-8")


def test_missing_file_has_no_users(tmp_path):
    assert load_users_file(tmp_path / "users.yml") == {}


def test_load_users_file(tmp_path):
    path = tmp_path / "users.yml"
    _write_users(
        path,
        {
            "alice": {"id": "id42", "password_hash": "h1"},
            "bob": {"active": False, "password_hash": "h2"},
            "broken": "not-a-mapping",
        },
    )

    users = load_users_file(path)

    assert set(users) == {"alice", "bob"}
    assert users["alice"].user_id == "id42"
    assert users["alice"].active is True
    assert users["bob"].active is False
    assert users["bob"].user_id == default_user_id("bob")


def test_default_user_id_is_stable():
    assert default_user_id("bob") == default_user_id("bob")
    assert default_user_id("bob") != default_user_id("alice")


def test_password_hashing_round_trip():
    h = hash_password("s3cret")
    assert verify_password(h, "s3cret")
    assert not verify_password(h, "other")
    assert not verify_password("not-a-hash", "s3cret")
    assert not verify_password("", "s3cret")
