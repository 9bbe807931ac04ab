"""
Trust Score Ledger - the single writer of user reputation.

DESIGN PRINCIPLES:
- Scores are integers clamped to [0, 100]
- Every change is a delta; nothing sets a raw score
- Unknown users are a silent no-op (callers are never failed by reputation)
- Subscribers (session caches) are notified after every persisted change
"""

import logging
import threading
from typing import Callable, List, Optional

from app.models.report import ANONYMOUS_REPORTER
from app.models.user import DEFAULT_TRUST_SCORE, MAX_TRUST_SCORE, MIN_TRUST_SCORE, UserProfile

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


class TrustDelta:
    """Fixed reputation adjustments used by the lifecycle policy."""
    VALID_SUBMISSION = 5
    ACKNOWLEDGED = 10
    RESOLVED = 15
    REJECTED = -25
    VOTE_CAST = 2
    AI_VERIFIED_RESOLUTION = 20


def clamp_trust_score(score: int) -> int:
    return max(MIN_TRUST_SCORE, min(MAX_TRUST_SCORE, score))


class TrustScoreLedger:
    """Applies clamped deltas to user trust scores."""

    def __init__(self, db):
        self.db = db
        self._lock = threading.Lock()
        self._listeners: List[Callable[[UserProfile], None]] = []

    def subscribe(self, listener: Callable[[UserProfile], None]) -> None:
        """Register a callback invoked with the refreshed profile after each change."""
        self._listeners.append(listener)

    def get_score(self, user_id: str) -> Optional[int]:
        doc = self.db.collection(USERS_COLLECTION).document(user_id).get()
        if not doc.exists:
            return None
        return int(doc.to_dict().get("trust_score", DEFAULT_TRUST_SCORE))

    def apply_delta(self, user_id: Optional[str], delta: int) -> Optional[int]:
        """
        Add delta to a user's score and persist the clamped result.

        Args:
            user_id: Registered user id (anonymous or unknown ids are ignored)
            delta: Signed adjustment

        Returns:
            The new score, or None when no known profile matched
        """
        if not user_id or user_id == ANONYMOUS_REPORTER:
            return None

        with self._lock:
            doc_ref = self.db.collection(USERS_COLLECTION).document(user_id)
            doc = doc_ref.get()
            if not doc.exists:
                logger.debug(f"Trust delta {delta:+d} ignored: unknown user {user_id}")
                return None

            data = doc.to_dict()
            old_score = int(data.get("trust_score", DEFAULT_TRUST_SCORE))
            new_score = clamp_trust_score(old_score + delta)
            doc_ref.update({"trust_score": new_score})

        logger.info(f"Trust score for {user_id}: {old_score} -> {new_score} ({delta:+d})")

        data["uid"] = user_id
        data["trust_score"] = new_score
        profile = UserProfile.model_validate(data)
        for listener in self._listeners:
            try:
                listener(profile)
            except Exception as e:
                logger.error(f"Trust score listener failed for {user_id}: {e}", exc_info=True)

        return new_score
