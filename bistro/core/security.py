"""
Bistro API — JWT token service
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt, JWTError

from bistro.core.config import get_settings
from bistro.core.errors import InvalidRequest, Unauthenticated

settings = get_settings()


def create_access_token(claims: dict[str, Any], expires_minutes: int | None = None) -> str:
    """Sign a short-lived access token. ``claims`` must carry an email."""
    email = claims.get("email")
    if not email:
        raise InvalidRequest("Token claims must include an email.")

    now = datetime.now(tz=timezone.utc)
    expire = now + timedelta(
        minutes=expires_minutes or settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    )
    payload = dict(claims)
    payload.update({
        "sub": email,
        "iat": now,
        "exp": expire,
        "type": "access",
        "jti": str(uuid.uuid4()),
    })
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT. Raises JWTError on failure."""
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


def verify_token(token: str) -> dict[str, Any]:
    try:
        claims = decode_token(token)
    except JWTError as exc:
        raise Unauthenticated(f"Invalid or expired JWT: {exc}")

    if claims.get("type") != "access" or not claims.get("email"):
        raise Unauthenticated("Token does not identify a user.")
    return claims
