"""
AI Plug-in Architecture.

Hazard classification, before/after re-inspection and authority email
drafting behind one provider interface (Gemini or an offline mock).
"""

from app.services.ai_plugin.base import AIProvider, AIProviderError, ReInspectionResult
from app.services.ai_plugin.gemini_provider import GeminiAIProvider
from app.services.ai_plugin.mock_provider import MockAIProvider
from app.services.ai_plugin.registry import AIProviderRegistry, build_ai_provider

__all__ = [
    "AIProvider",
    "AIProviderError",
    "ReInspectionResult",
    "GeminiAIProvider",
    "MockAIProvider",
    "AIProviderRegistry",
    "build_ai_provider",
]
