"""
Authentication endpoints - email + password sessions.

Sessions are bearer tokens; send them as 'Authorization: Bearer <token>'.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.models.user import AuthResponse, LoginRequest, ResetPasswordRequest, SignupRequest, UserProfile, trust_label
from app.routes.dependencies import get_bearer_token, get_services, require_user
from app.services.container import ServiceContainer
from app.services.user_service import AuthenticationError
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _auth_response(message: str, user: UserProfile, token: Optional[str] = None) -> AuthResponse:
    return AuthResponse(
        success=True,
        message=message,
        user=user,
        trust_label=trust_label(user.trust_score),
        token=token,
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(request: SignupRequest, services: ServiceContainer = Depends(get_services)):
    """
    Create an account and open a session.

    New accounts start with a trust score of 50.
    """
    try:
        result = services.users.signup(request)
        return _auth_response("Account created", result["user"], result["token"])
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.error(f"Signup failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Signup failed: {str(e)}"
        )


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest, services: ServiceContainer = Depends(get_services)):
    try:
        result = services.users.login(request)
        return _auth_response("Logged in", result["user"], result["token"])
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except Exception as e:
        logger.error(f"Login failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Login failed: {str(e)}"
        )


@router.get("/me", response_model=AuthResponse)
def get_current_user(user: UserProfile = Depends(require_user)):
    """
    Get the session user with the latest trust score.
    """
    return _auth_response("Current user", user)


@router.post("/logout")
def logout(
    token: Optional[str] = Depends(get_bearer_token),
    services: ServiceContainer = Depends(get_services),
):
    return {"success": services.users.logout(token)}


@router.post("/reset-password")
def reset_password(request: ResetPasswordRequest, services: ServiceContainer = Depends(get_services)):
    """
    Request a password reset link (simulated: the link is only logged).
    """
    try:
        services.users.reset_password(request)
        return {"success": True, "message": "Reset link dispatched"}
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
