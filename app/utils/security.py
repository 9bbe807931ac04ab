"""
Security utilities: password hashing, opaque tokens and privacy masking.
"""

import hmac
import logging
import secrets
from typing import Optional

import bcrypt

logger = logging.getLogger(__name__)

AUTHORITY_TOKEN_BYTES = 16
SESSION_TOKEN_BYTES = 24
BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    """Hash a password using bcrypt with a fresh per-password salt."""
    password_bytes = password.encode("utf-8")
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a password against a stored bcrypt hash; a missing or malformed hash never matches."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def generate_authority_token() -> str:
    """Opaque secret bound to one report for unauthenticated status links."""
    return secrets.token_urlsafe(AUTHORITY_TOKEN_BYTES)


def generate_session_token() -> str:
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)


def tokens_match(expected: Optional[str], provided: Optional[str]) -> bool:
    """Constant-time comparison; a missing token on either side never matches."""
    if not expected or not provided:
        return False
    return hmac.compare_digest(expected.encode(), provided.encode())


def mask_email(email: Optional[str]) -> Optional[str]:
    """
    Mask an email address for display.

    road.dept@city.gov -> r***t@city.gov

    Args:
        email: Raw address

    Returns:
        Masked address, or the input unchanged if it is not an address
    """
    if not email or "@" not in email:
        return email

    name, domain = email.split("@", 1)
    if not name:
        return f"***@{domain}"
    return f"{name[0]}***{name[-1]}@{domain}"
