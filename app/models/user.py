"""
User models for authentication and trust-score reputation.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from enum import Enum
from typing import Optional

from app.models.report import ensure_utc, utc_now

MIN_TRUST_SCORE = 0
MAX_TRUST_SCORE = 100
DEFAULT_TRUST_SCORE = 50  # New sign-ups start neutral


class UserRole(str, Enum):
    CITIZEN = "CITIZEN"
    AUTHORITY = "AUTHORITY"
    ADMIN = "ADMIN"


class UserProfile(BaseModel):
    """
    Public user profile.
    trust_score is only ever changed through the trust ledger.
    """
    uid: str = Field(..., description="User identifier")
    email: str
    role: UserRole = UserRole.CITIZEN
    display_name: Optional[str] = None
    trust_score: int = Field(DEFAULT_TRUST_SCORE, ge=MIN_TRUST_SCORE, le=MAX_TRUST_SCORE)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value):
        return ensure_utc(value)


def trust_label(score: int) -> str:
    """Reputation tier shown next to a user's name."""
    if score >= 71:
        return "Veteran"
    if score >= 31:
        return "Verified"
    return "Probation"


class SignupRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=6, max_length=72)
    role: UserRole = UserRole.CITIZEN

    @field_validator("password")
    @classmethod
    def fits_bcrypt(cls, value):
        if len(value.encode("utf-8")) > 72:
            raise ValueError("Password must be at most 72 bytes")
        return value


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1, max_length=128)


class ResetPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)


class AuthResponse(BaseModel):
    """Authentication response."""
    success: bool
    message: str
    user: Optional[UserProfile] = None
    trust_label: Optional[str] = None
    token: Optional[str] = None
