"""
Authentication utilities: password hashing, JWT tokens and verification codes
"""

import hashlib
import secrets
import jwt
from datetime import datetime, timedelta
from passlib.context import CryptContext
from typing import Optional
from config.settings import settings

# Password hashing context
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto"
)

# JWT configuration
ALGORITHM = "HS256"
SESSION_TOKEN_DAYS = 7
PASSWORD_RESET_PURPOSE = "password_reset"

VERIFICATION_CODE_LENGTH = 6


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.utcnow()


def hash_password(password: str) -> str:
    """Hash a password using argon2"""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(password, password_hash)


def _require_secret() -> str:
    if not settings.jwt_secret_key:
        raise ValueError("JWT_SECRET_KEY is not set. Cannot sign or verify tokens.")
    return settings.jwt_secret_key


def create_jwt(user_id: str) -> str:
    """Create a session JWT for a user"""
    payload = {
        "sub": user_id,
        "exp": utcnow() + timedelta(days=SESSION_TOKEN_DAYS)
    }
    return jwt.encode(payload, _require_secret(), algorithm=ALGORITHM)


def decode_jwt(token: str):
    """Decode a session JWT. Returns None if invalid."""
    secret = _require_secret()
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        return None
    # Reset tokens must not double as session tokens
    if payload.get("purpose"):
        return None
    return payload


def create_expired_jwt(user_id: str, expired_seconds_ago: int = 1) -> str:
    """
    Create an expired JWT token for testing purposes.

    Args:
        user_id: User ID to include in token
        expired_seconds_ago: How many seconds ago the token should have expired (default: 1)
    """
    payload = {
        "sub": user_id,
        "exp": utcnow() - timedelta(seconds=expired_seconds_ago)
    }
    return jwt.encode(payload, _require_secret(), algorithm=ALGORITHM)


def _password_fingerprint(password_hash: str) -> str:
    return hashlib.sha256(password_hash.encode()).hexdigest()[:16]


def create_password_reset_token(user_id: int, password_hash: str) -> str:
    """
    Create a signed password reset token.

    The token carries a fingerprint of the current password hash, so it
    stops validating as soon as the password is changed.
    """
    payload = {
        "sub": str(user_id),
        "purpose": PASSWORD_RESET_PURPOSE,
        "pwd": _password_fingerprint(password_hash),
        "exp": utcnow() + timedelta(minutes=settings.password_reset_ttl_minutes),
    }
    return jwt.encode(payload, _require_secret(), algorithm=ALGORITHM)


def decode_password_reset_token(token: str) -> Optional[int]:
    """Return the user id a reset token was issued for, or None if invalid."""
    try:
        payload = jwt.decode(token, _require_secret(), algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        return None
    if payload.get("purpose") != PASSWORD_RESET_PURPOSE:
        return None
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None


def reset_token_matches_password(token: str, password_hash: str) -> bool:
    """Check that a reset token was issued against the given password hash."""
    try:
        payload = jwt.decode(token, _require_secret(), algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        return False
    return secrets.compare_digest(
        str(payload.get("pwd", "")), _password_fingerprint(password_hash)
    )


def generate_verification_code(length: int = VERIFICATION_CODE_LENGTH) -> str:
    """Random numeric code, zero padded"""
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


def verification_code_expiry(now: Optional[datetime] = None) -> datetime:
    now = now or utcnow()
    return now + timedelta(minutes=settings.verification_code_ttl_minutes)


def is_within_expiration(expires: datetime, now: Optional[datetime] = None) -> bool:
    """True while the expiry timestamp is still in the future."""
    if expires is None:
        return False
    now = now or utcnow()
    if expires.tzinfo is not None:
        expires = expires.replace(tzinfo=None) - (expires.utcoffset() or timedelta(0))
    return now < expires
