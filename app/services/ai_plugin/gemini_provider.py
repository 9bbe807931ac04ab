"""
Gemini AI Provider - Google Gemini vision integration.

Requires GEMINI_API_KEY in environment variables.
Every failure is raised as AIProviderError; nothing is retried here.
"""

import json
import logging
from typing import Any, Dict, List, Tuple

import google.generativeai as genai

from app.core.settings import settings
from app.models.authority import AuthorityContact
from app.models.report import AIAnalysis, IssueCategory, Report
from app.services.ai_plugin.base import AIProvider, AIProviderError, ReInspectionResult, decode_data_url

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """You are a professional road safety and civic infrastructure inspector.
Analyze the provided image.

TASKS:
1. Determine if this is a genuine road safety or civic infrastructure issue.
2. Reject fake, irrelevant, blurred or unrelated images and give a rejectionReason.
3. If valid, classify the hazard as one of: {categories}.
4. Assign severity (LOW, MEDIUM, HIGH, CRITICAL).
5. Output a confidence score (0-100).
6. Provide safety impact and a technical description.
7. Estimate repair cost.
8. Generate a short AI Safety Insight.

Respond with a JSON object with keys: isValidIssue, category, severity,
description, estimatedRepairCost, publicSafetyImpact, safetyInsight,
confidenceScore, rejectionReason."""

REINSPECTION_PROMPT = """Compare the BEFORE image (first) and the AFTER image (second).
Decide if the hazard shown in the BEFORE image has been fixed.

Respond with a JSON object with keys: isResolved (boolean),
confidence (integer 0-100), summary (one sentence)."""

EMAIL_PROMPT = """Generate an urgent municipal maintenance email addressed to {authority}.

ISSUE TYPE: {category}
LOCATION: {lat}, {lng}
MAP: {map_url}
SEVERITY: {severity}
CONFIDENCE: {confidence}%
SAFETY IMPACT: {impact}

- Description: {description}
- Estimated Cost: {cost}

ACTION LINKS (include each one verbatim):
{links}
"""


class GeminiAIProvider(AIProvider):
    """Google Gemini provider for hazard analysis, re-inspection and email text."""

    MODEL_VERSION = "1.0"

    def __init__(self, api_key: str = None, model_name: str = None, timeout_seconds: float = None):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model_name = model_name or settings.GEMINI_MODEL
        self.timeout_seconds = timeout_seconds or settings.AI_TIMEOUT_SECONDS
        self.enabled = bool(self.api_key and self.api_key.strip())

        if self.enabled:
            genai.configure(api_key=self.api_key)
            logger.info(f"Gemini AI Provider initialized: {self.model_name}")
        else:
            logger.info("Gemini AI Provider disabled: No API key configured")

    def is_enabled(self) -> bool:
        return self.enabled

    def get_model_info(self) -> Dict[str, str]:
        return {
            "name": self.model_name,
            "version": self.MODEL_VERSION
        }

    def _generate(self, contents: List[Any], json_response: bool = True) -> str:
        if not self.enabled:
            raise AIProviderError("Gemini API key not configured")

        generation_config = {"temperature": 0.2}
        if json_response:
            generation_config["response_mime_type"] = "application/json"

        try:
            model = genai.GenerativeModel(self.model_name)
            response = model.generate_content(
                contents,
                generation_config=generation_config,
                request_options={"timeout": self.timeout_seconds},
            )
            text = (response.text or "").strip()
        except Exception as e:
            logger.error(f"Gemini API call failed: {e}", exc_info=True)
            raise AIProviderError(f"Gemini API error: {e}") from e

        if not text:
            raise AIProviderError("Gemini returned an empty response")
        return text

    @staticmethod
    def _image_part(data_url: str) -> Dict[str, Any]:
        mime_type, data = decode_data_url(data_url)
        return {"mime_type": mime_type, "data": data}

    @staticmethod
    def _parse_json(text: str) -> Dict[str, Any]:
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise AIProviderError(f"Gemini returned malformed JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise AIProviderError("Gemini response is not a JSON object")
        return parsed

    def analyze_hazard(self, image: str, description: str = "") -> AIAnalysis:
        prompt = ANALYSIS_PROMPT.format(categories=", ".join(c.value for c in IssueCategory))
        if description:
            prompt += f"\n\nCitizen note (context only): {description}"
        text = self._generate([prompt, self._image_part(image)])
        analysis = AIAnalysis.from_external(self._parse_json(text))
        logger.info(
            f"Gemini analysis: valid={analysis.is_valid_issue} "
            f"category={analysis.category.value} severity={analysis.severity.value}"
        )
        return analysis

    def compare_images(self, before_image: str, after_image: str) -> ReInspectionResult:
        text = self._generate([
            REINSPECTION_PROMPT,
            self._image_part(before_image),
            self._image_part(after_image),
        ])
        return ReInspectionResult.from_external(self._parse_json(text))

    def generate_authority_email(
        self,
        report: Report,
        contact: AuthorityContact,
        action_links: List[Tuple[str, str]],
    ) -> str:
        if report.analysis is None:
            raise AIProviderError("Cannot draft an authority email without an analysis")

        analysis = report.analysis
        prompt = EMAIL_PROMPT.format(
            authority=contact.name,
            category=analysis.category.value,
            lat=report.location.lat,
            lng=report.location.lng,
            map_url=f"https://www.google.com/maps?q={report.location.lat},{report.location.lng}",
            severity=analysis.severity.value,
            confidence=int(analysis.confidence_score),
            impact=analysis.public_safety_impact,
            description=analysis.description,
            cost=analysis.estimated_repair_cost,
            links="\n".join(f"- {label}: {url}" for label, url in action_links),
        )
        return self._generate([prompt], json_response=False)
