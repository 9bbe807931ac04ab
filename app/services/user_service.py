"""
User Service - user registry and login sessions in Firestore.

Sessions are opaque bearer tokens held in memory. Cached session
profiles are refreshed by the trust ledger after every score change,
and get_current_user() re-reads the registry so the trust score shown
to a user is never stale.
"""

import threading
from typing import Dict, List, Optional
import logging

from pydantic import ValidationError

from app.models.user import (
    DEFAULT_TRUST_SCORE,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    UserProfile,
    UserRole,
)
from app.services.trust_ledger import USERS_COLLECTION
from app.utils.security import generate_session_token, hash_password, mask_email, verify_password

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "civicwatch"

DEMO_USERS: List[Dict] = [
    {
        "uid": "demo-citizen-id",
        "email": "citizen@civic.gov",
        "role": UserRole.CITIZEN,
        "display_name": "John Citizen",
        "trust_score": 85,
    },
    {
        "uid": "demo-authority-id",
        "email": "authority@civic.gov",
        "role": UserRole.AUTHORITY,
        "display_name": "Chief Inspector",
        "trust_score": 100,
    },
    {
        "uid": "demo-admin-id",
        "email": "admin@civic.gov",
        "role": UserRole.ADMIN,
        "display_name": "System Admin",
        "trust_score": 100,
    },
]


class AuthenticationError(Exception):
    """Raised for bad credentials, duplicate sign-ups and unknown accounts."""


class UserService:
    """
    Service for user management in Firestore.
    """

    def __init__(self, db):
        self.db = db
        self._sessions: Dict[str, UserProfile] = {}
        self._lock = threading.Lock()

    def _users(self):
        return self.db.collection(USERS_COLLECTION)

    @staticmethod
    def _normalize_email(email: str) -> str:
        return email.strip().lower()

    @staticmethod
    def _to_profile(doc) -> UserProfile:
        data = doc.to_dict()
        data["uid"] = doc.id
        return UserProfile.model_validate(data)

    def seed_demo_users(self) -> int:
        """Create the demo accounts if missing. Returns the number created."""
        created = 0
        for demo in DEMO_USERS:
            doc_ref = self._users().document(demo["uid"])
            if doc_ref.get().exists:
                continue
            profile = UserProfile(**demo)
            data = profile.model_dump(mode="json", exclude={"uid"})
            data["password_hash"] = hash_password(DEMO_PASSWORD)
            doc_ref.set(data)
            created += 1
        if created:
            logger.info(f"Seeded {created} demo user(s)")
        return created

    def get_user(self, uid: str) -> Optional[UserProfile]:
        doc = self._users().document(uid).get()
        if not doc.exists:
            return None
        return self._to_profile(doc)

    def _find_by_email(self, email: str):
        query = self._users().where("email", "==", self._normalize_email(email)).limit(1)
        for doc in query.stream():
            return doc
        return None

    def _open_session(self, profile: UserProfile) -> str:
        token = generate_session_token()
        with self._lock:
            self._sessions[token] = profile
        return token

    def signup(self, request: SignupRequest) -> Dict:
        """
        Register a new account (trust score starts at 50) and log it in.

        Returns:
            Dict with "user" (UserProfile) and "token"

        Raises:
            AuthenticationError: If the email is already registered
        """
        email = self._normalize_email(request.email)
        if self._find_by_email(email) is not None:
            raise AuthenticationError("Account already exists.")

        doc_ref = self._users().document()
        profile = UserProfile(
            uid=doc_ref.id,
            email=email,
            role=request.role,
            display_name=email.split("@")[0],
            trust_score=DEFAULT_TRUST_SCORE,
        )
        data = profile.model_dump(mode="json", exclude={"uid"})
        data["password_hash"] = hash_password(request.password)
        doc_ref.set(data)

        logger.info(f"User created: {profile.uid} ({mask_email(email)}, {profile.role.value})")
        return {"user": profile, "token": self._open_session(profile)}

    def login(self, request: LoginRequest) -> Dict:
        """
        Raises:
            AuthenticationError: On unknown email or wrong password
        """
        doc = self._find_by_email(request.email)
        if doc is None or not verify_password(request.password, doc.to_dict().get("password_hash")):
            logger.info(f"Failed login for {mask_email(self._normalize_email(request.email))}")
            raise AuthenticationError("Invalid credentials.")

        profile = self._to_profile(doc)
        logger.info(f"User logged in: {profile.uid}")
        return {"user": profile, "token": self._open_session(profile)}

    def logout(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def reset_password(self, request: ResetPasswordRequest) -> None:
        """
        Simulated reset: the link is only logged.

        Raises:
            AuthenticationError: If no account uses the email
        """
        email = self._normalize_email(request.email)
        if self._find_by_email(email) is None:
            raise AuthenticationError("Security verification failed.")
        logger.info(f"Password reset link dispatched (simulated) to {mask_email(email)}")

    def get_current_user(self, token: Optional[str]) -> Optional[UserProfile]:
        """
        Resolve a session token to the latest profile.

        The registry is re-read so the trust score is current; the cached
        profile is used only if the registry entry has disappeared.
        """
        if not token:
            return None
        with self._lock:
            cached = self._sessions.get(token)
        if cached is None:
            return None

        try:
            latest = self.get_user(cached.uid)
        except ValidationError as e:
            logger.warning(f"Stored profile for {cached.uid} is malformed: {e}")
            latest = None

        if latest is None:
            return cached
        with self._lock:
            if token in self._sessions:
                self._sessions[token] = latest
        return latest

    def refresh_session_profile(self, profile: UserProfile) -> None:
        """Trust ledger listener: update every session of this user."""
        with self._lock:
            for token, cached in self._sessions.items():
                if cached.uid == profile.uid:
                    self._sessions[token] = profile
