"""Shared-password check and JWT bearer tokens for teachers."""
import hmac
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from app.core.config import get_settings


def verify_default_password(password: str) -> bool:
    """Constant-time comparison against the configured shared password."""
    settings = get_settings()
    return hmac.compare_digest(
        (password or "").encode("utf-8"),
        settings.default_password.encode("utf-8"),
    )


def create_access_token(subject: str | int, extra: dict[str, Any] | None = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {"sub": str(subject), "exp": expire, "type": "access"}
    if extra:
        to_encode.update(extra)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> dict | None:
    """Return the token claims, or None if the token is invalid or expired."""
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if claims.get("type") != "access":
        return None
    return claims
