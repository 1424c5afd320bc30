import secrets
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from app.core.config import settings

bearer_scheme = HTTPBearer(auto_error=False)

ADMIN_ACTOR = "admin"


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> str:
    """Check the admin bearer token; returns the actor label for audit trails."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not settings.ADMIN_TOKEN or credentials is None:
        raise unauthorized
    if credentials.scheme.lower() != "bearer":
        raise unauthorized
    if not secrets.compare_digest(credentials.credentials, settings.ADMIN_TOKEN):
        raise unauthorized
    return ADMIN_ACTOR
