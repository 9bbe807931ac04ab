"""
AI Provider Base Interface.

Defines the contract for the AI collaborator: hazard classification,
before/after re-inspection and authority email drafting.
All AI providers must implement this interface.
"""

from abc import ABC, abstractmethod
import base64
import binascii
from typing import Any, Dict, List, Tuple
import logging

from app.models.authority import AuthorityContact
from app.models.report import AIAnalysis, ReInspectionVerdict, Report

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"


class AIProviderError(Exception):
    """Raised when the AI collaborator fails or returns an unusable response."""


def decode_data_url(data_url: str) -> Tuple[str, bytes]:
    """
    Split a base64 data URL into (mime_type, raw bytes).

    Bare base64 strings are accepted and assumed to be JPEG.

    Raises:
        AIProviderError: If the payload is not valid base64
    """
    mime_type = DEFAULT_IMAGE_MIME_TYPE
    payload = data_url or ""

    if payload.startswith("data:") and "," in payload:
        header, payload = payload.split(",", 1)
        declared = header[len("data:"):].split(";")[0]
        if declared:
            mime_type = declared

    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AIProviderError(f"Image is not valid base64: {e}") from e


class ReInspectionResult:
    """
    Before/after comparison verdict.

    The external payload uses isResolved; to_verdict() maps it onto the
    internal ReInspectionVerdict explicitly.
    """

    def __init__(self, is_resolved: bool, confidence: float, summary: str):
        self.is_resolved = is_resolved
        self.confidence = confidence
        self.summary = summary

    @classmethod
    def from_external(cls, payload: Dict[str, Any]) -> "ReInspectionResult":
        if "isResolved" not in payload:
            raise AIProviderError("Re-inspection response is missing isResolved")
        return cls(
            is_resolved=bool(payload["isResolved"]),
            confidence=float(payload.get("confidence") or 0),
            summary=str(payload.get("summary") or ""),
        )

    def to_verdict(self) -> ReInspectionVerdict:
        return ReInspectionVerdict.RESOLVED if self.is_resolved else ReInspectionVerdict.NOT_RESOLVED

    def to_dict(self) -> Dict:
        return {
            "is_resolved": self.is_resolved,
            "confidence": self.confidence,
            "summary": self.summary,
            "verdict": self.to_verdict().value,
        }


class AIProvider(ABC):
    """
    Abstract base class for AI providers.

    Failures are NOT swallowed: every method raises AIProviderError and
    the caller leaves the report untouched.
    """

    @abstractmethod
    def is_enabled(self) -> bool:
        """
        Check if this AI provider is enabled.

        Returns:
            True if provider is enabled and ready, False otherwise
        """
        pass

    @abstractmethod
    def get_model_info(self) -> Dict[str, str]:
        """
        Get model information (name, version).

        Returns:
            Dict with 'name' and 'version' keys
        """
        pass

    @abstractmethod
    def analyze_hazard(self, image: str, description: str = "") -> AIAnalysis:
        """
        Classify a captured photo.

        Args:
            image: Base64 data URL
            description: Citizen's note, used as context only

        Returns:
            AIAnalysis (is_valid_issue False with rejection_reason for
            fake, blurred or unrelated images)

        Raises:
            AIProviderError: On any provider failure
        """
        pass

    @abstractmethod
    def compare_images(self, before_image: str, after_image: str) -> ReInspectionResult:
        """
        Decide whether the hazard in before_image is fixed in after_image.

        Raises:
            AIProviderError: On any provider failure
        """
        pass

    @abstractmethod
    def generate_authority_email(
        self,
        report: Report,
        contact: AuthorityContact,
        action_links: List[Tuple[str, str]],
    ) -> str:
        """
        Draft the maintenance email body sent to the routed authority.

        Args:
            report: Analysed report
            contact: Routed authority
            action_links: (status label, URL) pairs embedded in the email

        Raises:
            AIProviderError: On any provider failure
        """
        pass
