"""
Mock AI Provider - Provider used when AI is disabled or no API key is set.

Deterministic and offline. Classification is keyword based on the
report description, so local runs and demos behave predictably.
"""

from typing import Dict, List, Tuple
import logging

from app.models.authority import AuthorityContact
from app.models.report import AIAnalysis, IssueCategory, Report, Severity
from app.services.ai_plugin.base import AIProvider, ReInspectionResult, decode_data_url

logger = logging.getLogger(__name__)

CATEGORY_KEYWORDS = [
    (IssueCategory.POTHOLE, ["pothole", "hole"]),
    (IssueCategory.CRACK, ["crack", "fissure"]),
    (IssueCategory.WATERLOGGING, ["water", "flood", "drain", "waterlogging"]),
    (IssueCategory.ACCIDENT, ["accident", "collision", "crash"]),
    (IssueCategory.VEHICLE_DAMAGE, ["vehicle", "car", "bike", "tyre"]),
    (IssueCategory.FALLEN_OBJECT, ["tree", "fallen", "debris", "pole"]),
]


class MockAIProvider(AIProvider):
    """
    Rule-based provider.

    Every decodable image is treated as a valid hazard; re-inspection
    reports resolved when the follow-up photo differs from the original.
    """

    MODEL_NAME = "mock-rules-v1"
    MODEL_VERSION = "1.0.0"

    def __init__(self):
        logger.info(f"Mock AI Provider initialized: {self.MODEL_NAME}")

    def is_enabled(self) -> bool:
        """Mock provider is always enabled."""
        return True

    def get_model_info(self) -> Dict[str, str]:
        return {
            "name": self.MODEL_NAME,
            "version": self.MODEL_VERSION
        }

    def classify_text(self, text: str) -> IssueCategory:
        text_lower = (text or "").lower()
        for category, words in CATEGORY_KEYWORDS:
            if any(word in text_lower for word in words):
                return category
        return IssueCategory.OTHER

    def analyze_hazard(self, image: str, description: str = "") -> AIAnalysis:
        decode_data_url(image)
        category = self.classify_text(description)

        severity = Severity.MEDIUM
        if any(word in (description or "").lower() for word in ["urgent", "dangerous", "severe", "blocking"]):
            severity = Severity.HIGH

        return AIAnalysis(
            category=category,
            severity=severity,
            description=description or f"Possible {category.value.lower().replace('_', ' ')} hazard",
            estimated_repair_cost="Pending site survey",
            public_safety_impact="Risk to road users until repaired",
            safety_insight="Approach with caution and reduce speed",
            confidence_score=50.0,
            is_valid_issue=True,
        )

    def compare_images(self, before_image: str, after_image: str) -> ReInspectionResult:
        _, before = decode_data_url(before_image)
        _, after = decode_data_url(after_image)
        if before == after:
            return ReInspectionResult(False, 90.0, "Follow-up photo is identical to the original")
        return ReInspectionResult(True, 50.0, "Follow-up photo differs from the original")

    def generate_authority_email(
        self,
        report: Report,
        contact: AuthorityContact,
        action_links: List[Tuple[str, str]],
    ) -> str:
        analysis = report.analysis
        lines = [
            f"Dear {contact.name},",
            "",
            f"A {analysis.severity.value if analysis else 'UNKNOWN'} severity "
            f"{analysis.category.value if analysis else 'hazard'} has been reported at "
            f"{report.location.lat}, {report.location.lng}.",
            f"Map: https://www.google.com/maps?q={report.location.lat},{report.location.lng}",
        ]
        if analysis:
            lines += [
                f"Description: {analysis.description}",
                f"Estimated cost: {analysis.estimated_repair_cost}",
                f"Safety impact: {analysis.public_safety_impact}",
            ]
        lines += ["", "Update the status using the links below:"]
        lines += [f"- {label}: {url}" for label, url in action_links]
        return "\n".join(lines)
