import binascii
import hashlib
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import Response

from app.errors import EmailExists, InvalidCredentials
from app.models.enums import UserRole, UserStatus
from app.models.user import RegisterRequest
from app.services.auth import (
    authenticate_user,
    get_password_hash,
    needs_rehash,
    purge_expired_sessions,
    register_user,
    resolve_session,
    start_session,
    verify_password,
)


def _legacy_pbkdf2(password: str, iterations: int = 1000) -> str:
    salt = b"0123456789abcdef"
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"pbkdf2_sha256${iterations}${binascii.hexlify(salt).decode()}${binascii.hexlify(dk).decode()}"


def test_hash_is_scrypt_and_salted():
    first = get_password_hash("secret1")
    second = get_password_hash("secret1")

    assert first.startswith("scrypt$")
    assert first != second
    assert verify_password("secret1", first)
    assert not verify_password("wrong", first)
    assert not needs_rehash(first)


def test_verify_rejects_unknown_or_malformed_hashes():
    assert not verify_password("secret1", None)
    assert not verify_password("secret1", "")
    assert not verify_password("secret1", "md5$abc")
    assert not verify_password("secret1", "scrypt$not$a$valid$hash$zz")


def test_legacy_pbkdf2_hash_verifies_and_needs_rehash():
    legacy = _legacy_pbkdf2("secret1")
    assert verify_password("secret1", legacy)
    assert not verify_password("secret2", legacy)
    assert needs_rehash(legacy)


def test_register_then_authenticate(storage):
    user = register_user(storage, RegisterRequest(email="A@X.com", password="secret1", first_name="A", last_name="B"))

    assert user.email == "a@x.com"
    assert user.role == UserRole.USER
    assert user.status == UserStatus.ACTIVE
    assert user.password != "secret1"

    assert authenticate_user(storage, "a@x.com", "secret1").id == user.id
    with pytest.raises(InvalidCredentials):
        authenticate_user(storage, "a@x.com", "wrong")


def test_register_duplicate_email_is_case_insensitive(storage):
    register_user(storage, RegisterRequest(email="dup@x.com", password="secret1"))
    with pytest.raises(EmailExists):
        register_user(storage, RegisterRequest(email="DUP@x.com", password="secret1"))


def test_authenticate_unknown_user(storage):
    with pytest.raises(InvalidCredentials):
        authenticate_user(storage, "nobody@x.com", "secret1")


def test_authenticate_rejects_inactive_user(storage):
    user = register_user(storage, RegisterRequest(email="s@x.com", password="secret1"))
    storage.update_user(user.id, {"status": UserStatus.SUSPENDED})

    with pytest.raises(InvalidCredentials):
        authenticate_user(storage, "s@x.com", "secret1")


def test_login_upgrades_legacy_hash(any_storage):
    user = any_storage.create_user({
        "email": "legacy@x.com",
        "password": _legacy_pbkdf2("secret1"),
        "role": UserRole.USER,
        "status": UserStatus.ACTIVE,
    })

    authenticate_user(any_storage, "legacy@x.com", "secret1")

    stored = any_storage.get_user(user.id).password
    assert stored.startswith("scrypt$")
    assert verify_password("secret1", stored)


def test_resolve_session_lifecycle(any_storage):
    user = register_user(any_storage, RegisterRequest(email="sess@x.com", password="secret1"))
    future = datetime.now(timezone.utc) + timedelta(days=1)
    any_storage.create_session("sid-live", user.id, future)

    session, resolved = resolve_session(any_storage, "sid-live")
    assert session.sid == "sid-live"
    assert resolved.id == user.id

    assert resolve_session(any_storage, None) == (None, None)
    assert resolve_session(any_storage, "missing") == (None, None)


def test_expired_session_is_deleted(any_storage):
    user = register_user(any_storage, RegisterRequest(email="old@x.com", password="secret1"))
    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    any_storage.create_session("sid-old", user.id, past)

    assert resolve_session(any_storage, "sid-old") == (None, None)
    assert any_storage.get_session("sid-old") is None


def test_abandoned_expired_sessions_are_purged(any_storage):
    user = register_user(any_storage, RegisterRequest(email="stale@x.com", password="secret1"))
    now = datetime.now(timezone.utc)
    for n in range(3):
        any_storage.create_session(f"sid-stale-{n}", user.id, now - timedelta(hours=n + 1))
    any_storage.create_session("sid-live", user.id, now + timedelta(days=1))

    assert purge_expired_sessions(any_storage) == 3
    assert any_storage.get_session("sid-stale-0") is None
    assert any_storage.get_session("sid-live") is not None
    assert purge_expired_sessions(any_storage) == 0


def test_new_login_purges_expired_sessions(any_storage):
    user = register_user(any_storage, RegisterRequest(email="relog@x.com", password="secret1"))
    any_storage.create_session("sid-gone", user.id, datetime.now(timezone.utc) - timedelta(days=1))

    session = start_session(any_storage, Response(), user)

    assert any_storage.get_session("sid-gone") is None
    assert any_storage.get_session(session.sid).user_id == user.id


def test_session_of_suspended_user_resolves_without_user(storage):
    user = register_user(storage, RegisterRequest(email="gone@x.com", password="secret1"))
    storage.create_session("sid-s", user.id, datetime.now(timezone.utc) + timedelta(days=1))
    storage.update_user(user.id, {"status": UserStatus.SUSPENDED})

    session, resolved = resolve_session(storage, "sid-s")
    assert session is not None
    assert resolved is None
