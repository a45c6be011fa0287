from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple
import binascii
import hashlib
import hmac
import os
import secrets

from fastapi import Depends, Request, Response

from app.config import settings
from app.errors import EmailExists, Forbidden, InvalidCredentials, NotAuthenticated
from app.models.enums import UserRole, UserStatus
from app.models.user import RegisterRequest, Session, User
from app.permissions import Capability, can
from app.services.database import get_storage
from app.services.storage import MarketplaceStorage
from app.utils.logger import logger, mask_email

# Default password hashing scheme: scrypt (memory-hard) with a random salt.
# Stored format: "scrypt$<n>$<r>$<p>$<salt_hex>$<hash_hex>".
_SCRYPT_PREFIX = "scrypt"
_SCRYPT_N = 2 ** 14
_SCRYPT_R = 8
_SCRYPT_P = 1
_SCRYPT_DKLEN = 64
_SALT_BYTES = 16

# Older accounts: "pbkdf2_sha256$<iterations>$<salt_hex>$<hash_hex>".
_PBKDF2_PREFIX = "pbkdf2_sha256"


def _scrypt(password: str, salt: bytes, n: int, r: int, p: int) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"), salt=salt, n=n, r=r, p=p,
        maxmem=256 * n * r, dklen=_SCRYPT_DKLEN,
    )


def get_password_hash(password: str) -> str:
    """Return a scrypt hash string for storage."""
    if not isinstance(password, str):
        raise TypeError("password must be a string")

    salt = os.urandom(_SALT_BYTES)
    dk = _scrypt(password, salt, _SCRYPT_N, _SCRYPT_R, _SCRYPT_P)
    salt_hex = binascii.hexlify(salt).decode("ascii")
    hash_hex = binascii.hexlify(dk).decode("ascii")
    return f"{_SCRYPT_PREFIX}${_SCRYPT_N}${_SCRYPT_R}${_SCRYPT_P}${salt_hex}${hash_hex}"


def _verify_scrypt(password: str, encoded: str) -> bool:
    try:
        _, n, r, p, salt_hex, hash_hex = encoded.split("$", 5)
        salt = binascii.unhexlify(salt_hex.encode("ascii"))
        expected = binascii.unhexlify(hash_hex.encode("ascii"))
        dk = _scrypt(password, salt, int(n), int(r), int(p))
    except (ValueError, binascii.Error):
        return False
    return hmac.compare_digest(dk, expected)


def _verify_pbkdf2(password: str, encoded: str) -> bool:
    try:
        _, iter_str, salt_hex, hash_hex = encoded.split("$", 3)
        iterations = int(iter_str)
        salt = binascii.unhexlify(salt_hex.encode("ascii"))
        expected = binascii.unhexlify(hash_hex.encode("ascii"))
    except (ValueError, binascii.Error):
        return False

    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(dk, expected)


def needs_rehash(stored: Optional[str]) -> bool:
    return not (isinstance(stored, str) and stored.startswith(_SCRYPT_PREFIX + "$"))


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify against the current scrypt format or a legacy PBKDF2 hash."""
    if not hashed_password:
        return False
    if hashed_password.startswith(_SCRYPT_PREFIX + "$"):
        return _verify_scrypt(plain_password, hashed_password)
    if hashed_password.startswith(_PBKDF2_PREFIX + "$"):
        return _verify_pbkdf2(plain_password, hashed_password)
    return False


def authenticate_user(storage: MarketplaceStorage, email: str, password: str) -> User:
    """Return the user for valid credentials or raise InvalidCredentials.

    Unknown email, wrong password and non-ACTIVE accounts all produce the same
    error code. A successful login with a legacy hash upgrades it to scrypt.
    """
    user = storage.get_user_by_email(email)
    if not user:
        logger.warning(f"Authentication failed: user not found - {mask_email(email)}")
        raise InvalidCredentials()

    if not verify_password(password, user.password):
        logger.warning(f"Authentication failed: invalid password - {mask_email(email)}")
        raise InvalidCredentials()

    if user.status != UserStatus.ACTIVE:
        logger.warning(f"Authentication failed: account {user.status.value} - {mask_email(email)}")
        raise InvalidCredentials("Account is not active")

    if needs_rehash(user.password):
        user = storage.update_user(user.id, {"password": get_password_hash(password)}) or user
        logger.info(f"Password hash upgraded to scrypt for user id={user.id}")

    logger.info(f"User authenticated successfully: id={user.id}")
    return user


def register_user(storage: MarketplaceStorage, payload: RegisterRequest) -> User:
    email = payload.email.strip().lower()
    if storage.get_user_by_email(email):
        logger.warning(f"Registration failed: email already exists - {mask_email(email)}")
        raise EmailExists()

    user = storage.create_user({
        "email": email,
        "password": get_password_hash(payload.password),
        "first_name": payload.first_name,
        "last_name": payload.last_name,
        "role": UserRole.USER,
        "status": UserStatus.ACTIVE,
    })
    logger.info(f"New user registered: id={user.id}")
    return user


# ---------------------------------------------------------------------------
# Server-side sessions
# ---------------------------------------------------------------------------

def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored is UTC.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def purge_expired_sessions(storage: MarketplaceStorage) -> int:
    """Delete every session past its expiry, including ones whose cookie is never sent again."""
    removed = storage.purge_expired_sessions(datetime.now(timezone.utc))
    if removed:
        logger.info(f"Purged {removed} expired session(s)")
    return removed


def start_session(storage: MarketplaceStorage, response: Response, user: User) -> Session:
    purge_expired_sessions(storage)
    sid = secrets.token_urlsafe(32)
    expires_at = datetime.now(timezone.utc) + timedelta(days=settings.SESSION_MAX_AGE_DAYS)
    session = storage.create_session(sid, user.id, expires_at)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=sid,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )
    return session


def end_session(storage: MarketplaceStorage, request: Request, response: Response) -> None:
    sid = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if sid:
        storage.delete_session(sid)
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def resolve_session(storage: MarketplaceStorage, sid: Optional[str]) -> Tuple[Optional[Session], Optional[User]]:
    """Look up a session id and re-fetch its user row.

    Expired sessions are deleted on sight. Users that are no longer ACTIVE
    resolve to no user.
    """
    if not sid:
        return None, None
    session = storage.get_session(sid)
    if session is None:
        return None, None
    if _as_utc(session.expires_at) <= datetime.now(timezone.utc):
        storage.delete_session(sid)
        return None, None
    user = storage.get_user(session.user_id)
    if user is None or user.status != UserStatus.ACTIVE:
        return session, None
    return session, user


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

async def get_optional_user(
    request: Request,
    storage: MarketplaceStorage = Depends(get_storage),
) -> Optional[User]:
    _, user = resolve_session(storage, request.cookies.get(settings.SESSION_COOKIE_NAME))
    return user


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise NotAuthenticated()
    return user


def require_capability(capability: Capability) -> Callable:
    async def dependency(user: User = Depends(get_current_user)) -> User:
        if not can(user, capability):
            logger.warning(f"Capability {capability.value} denied for user id={user.id} role={user.role.value}")
            raise Forbidden()
        return user

    return dependency
