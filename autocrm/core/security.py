"""Security utilities for bearer tokens and shared secrets."""

import hmac
from datetime import datetime, timedelta, timezone

import jwt

from autocrm.core.config import settings


# =============================================================================
# Bearer Token (JWT)
# =============================================================================

def create_access_token(email: str, name: str | None = None, expires_in: timedelta | None = None) -> str:
    """
    Create signed bearer JWT for an agent.

    Always signs with current secret (JWT_SECRET).
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": email,
        "email": email,
        "iat": now,
        "exp": now + (expires_in if expires_in is not None else timedelta(hours=settings.JWT_EXPIRES_HOURS)),
    }
    if name:
        payload["name"] = name
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_access_token(token: str) -> dict:
    """
    Decode and verify bearer JWT.

    Tries current secret first, then previous (for rotation support).
    An `exp` claim is mandatory.

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"], options={"require": ["exp"]})
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore


def verify_secret(provided: str | None, expected: str | None) -> bool:
    """Constant-time comparison for shared secrets. Empty values never match."""
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())
