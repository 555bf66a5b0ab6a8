import uuid
from dataclasses import dataclass, field

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from catalog.core.security import decode_token

bearer_scheme = HTTPBearer()


@dataclass
class CurrentUser:
    """Caller identity taken from the access token claims."""

    id: uuid.UUID
    permissions: set[str] = field(default_factory=set)
    is_superadmin: bool = False

    def has_permission(self, codename: str) -> bool:
        if self.is_superadmin:
            return True
        return codename in self.permissions


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> CurrentUser:
    """Extract and validate JWT from Authorization header, return the caller."""
    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    try:
        subject = uuid.UUID(user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    return CurrentUser(
        id=subject,
        permissions=set(payload.get("permissions") or []),
        is_superadmin=bool(payload.get("is_superadmin", False)),
    )


def require_permission(codename: str):
    """Dependency factory: checks if the caller has a specific permission.

    Usage in endpoint:
        @router.get("/product-pricing/{tier_id}")
        async def get_tier(user: CurrentUser = Depends(require_permission("pricing:read"))):
    """

    async def checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not current_user.has_permission(codename):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission required: {codename}",
            )
        return current_user

    return checker
