import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from catalog.config import settings


def create_access_token(
    user_id: uuid.UUID,
    permissions: list[str] | None = None,
    is_superadmin: bool = False,
) -> str:
    """Mint an access token in the format the auth service issues (used by scripts and tests)."""
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user_id),
        "type": "access",
        "permissions": permissions or [],
        "is_superadmin": is_superadmin,
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict | None:
    """Decode and validate a JWT token. Returns payload or None if invalid."""
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        return payload
    except JWTError:
        return None
