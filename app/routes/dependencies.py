"""
Shared route dependencies: the service container and the session user.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from app.models.user import UserProfile, UserRole
from app.services.container import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Services are not initialized"
        )
    return services


def get_bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Extract the token from 'Authorization: Bearer <token>'."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_optional_user(
    token: Optional[str] = Depends(get_bearer_token),
    services: ServiceContainer = Depends(get_services),
) -> Optional[UserProfile]:
    return services.users.get_current_user(token)


def require_user(user: Optional[UserProfile] = Depends(get_optional_user)) -> UserProfile:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Login required"
        )
    return user


def require_authority(user: UserProfile = Depends(require_user)) -> UserProfile:
    """Authority or admin accounts only."""
    if user.role not in (UserRole.AUTHORITY, UserRole.ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Authority access required"
        )
    return user


def require_admin(user: UserProfile = Depends(require_user)) -> UserProfile:
    if user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user
