"""
Trailpost Backend — Identity: Passwords and Bearer Tokens
===========================================================

What:  Password hashing (bcrypt), token issuance/verification (PyJWT), and
       the FastAPI dependency that turns a Bearer header into a caller id.
Why:   Every authenticated route trusts exactly one thing: the user id
       embedded in a token this server signed.
How:   Tokens are HS256 JWTs with `sub` = user id and an `exp` claim.

Failure mapping:
    No Authorization header        → UnauthorizedError("No token provided")
    Bad signature / expired / junk → UnauthorizedError("Invalid token")
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from trailpost.config import settings
from trailpost.exceptions import UnauthorizedError, ValidationError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72

# auto_error=False: a missing header is reported through UnauthorizedError
# so it gets the same JSON body as every other failure
bearer_scheme = HTTPBearer(auto_error=False)


# ── Passwords ─────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    """Hash a plaintext password with a fresh salt."""
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            message=f"Password must be at most {MAX_PASSWORD_BYTES} bytes long",
            field="password",
        )
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(raw, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        logger.warning("Unreadable password hash encountered during login")
        return False


# ── Tokens ────────────────────────────────────────────────────────────────

def create_access_token(user_id: uuid.UUID, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a signed token for `user_id`.

    Args:
        user_id: The identity to embed as the `sub` claim.
        expires_delta: Lifetime override; defaults to ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    now = datetime.now(timezone.utc)
    expires = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {"sub": str(user_id), "iat": now, "exp": expires}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> uuid.UUID:
    """
    Verify a token and return the user id it carries.

    Raises:
        UnauthorizedError: signature, expiry or claim checks fail.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
        return uuid.UUID(payload["sub"])
    except (jwt.PyJWTError, ValueError) as e:
        logger.info("Rejected bearer token: %s", type(e).__name__)
        raise UnauthorizedError(message="Invalid token")


# ── FastAPI Dependency ────────────────────────────────────────────────────

async def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> uuid.UUID:
    """
    Resolve the caller's identity from the Authorization header.

    The id is also left on `request.state.user_id` for the access log.

    Usage in a route:
        async def feed(user_id: UUID = Depends(get_current_user_id)): ...
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError(message="No token provided")
    user_id = decode_access_token(credentials.credentials)
    request.state.user_id = user_id
    return user_id
