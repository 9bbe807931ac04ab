"""
AI Provider Registry.

Selects the AI provider at startup from configuration.
"""

from typing import List
import logging

from app.core.settings import Settings, settings as default_settings
from app.services.ai_plugin.base import AIProvider
from app.services.ai_plugin.gemini_provider import GeminiAIProvider
from app.services.ai_plugin.mock_provider import MockAIProvider

logger = logging.getLogger(__name__)


class AIProviderRegistry:
    """
    Registry for AI providers.

    Providers are held in priority order; the first enabled one is used.
    There is no per-call fallback: a failing provider raises to the
    caller instead of silently producing mock output.
    """

    def __init__(self, config: Settings = None):
        self.config = config or default_settings
        self.providers: List[AIProvider] = []
        self._initialize_providers()

    def _initialize_providers(self):
        """Initialize available AI providers in priority order."""
        if not self.config.AI_ENABLED:
            logger.info("AI is disabled globally (AI_ENABLED=false), using mock provider only")
            self.providers.append(MockAIProvider())
            return

        if self.config.AI_PROVIDER == "gemini":
            gemini_provider = GeminiAIProvider(
                api_key=self.config.GEMINI_API_KEY,
                model_name=self.config.GEMINI_MODEL,
                timeout_seconds=self.config.AI_TIMEOUT_SECONDS,
            )
            if gemini_provider.is_enabled():
                self.providers.append(gemini_provider)
                logger.info("Gemini AI Provider registered")
        else:
            logger.warning(f"Unknown AI_PROVIDER '{self.config.AI_PROVIDER}', using mock provider")

        self.providers.append(MockAIProvider())

    def get_provider(self) -> AIProvider:
        """
        Get the best available AI provider.

        Returns:
            First enabled provider (the mock provider is always enabled)
        """
        for provider in self.providers:
            if provider.is_enabled():
                logger.info(f"Using AI provider: {provider.get_model_info()['name']}")
                return provider
        raise RuntimeError("No AI providers available")


def build_ai_provider(config: Settings = None) -> AIProvider:
    return AIProviderRegistry(config).get_provider()
