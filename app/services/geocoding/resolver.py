import logging
from typing import Optional

from app.core.settings import Settings, settings as default_settings
from .base import GeocodingProvider
from .nominatim_provider import NominatimProvider

logger = logging.getLogger(__name__)


def build_geocoding_provider(config: Settings = None) -> Optional[GeocodingProvider]:
    """
    Resolve the active geocoding provider based on settings.

    Rules:
    - GEOCODING_ENABLED=false (default): no provider, routing uses the
      report city or the coordinate box only.
    - Otherwise: Nominatim (no API key required).
    """
    config = config or default_settings
    if not config.GEOCODING_ENABLED:
        logger.info("Geocoding disabled (GEOCODING_ENABLED=false)")
        return None

    logger.info("Geocoding provider initialized: nominatim")
    return NominatimProvider(user_agent=f"{config.APP_NAME.lower().replace(' ', '-')}/{config.APP_VERSION}")
