import logging
from typing import Dict, Optional

import requests

from .base import GeocodingError, GeocodingProvider

logger = logging.getLogger(__name__)

NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"

# Address keys that name the municipality a hazard falls under, most specific first
CITY_KEYS = ("city", "town", "municipality", "village", "suburb")
DISTRICT_KEYS = ("state_district", "county")


def _first(address: Dict, keys) -> Optional[str]:
    return next((address[k] for k in keys if address.get(k)), None)


class NominatimProvider(GeocodingProvider):
    """OpenStreetMap Nominatim reverse geocoder (no API key, identifying User-Agent required)."""

    name = "nominatim"

    def __init__(self, user_agent: str = "civicwatch-hazard-hub/1.0", timeout: float = 3.0):
        super().__init__()
        self.user_agent = user_agent
        self.timeout = timeout

    def lookup(self, latitude: float, longitude: float) -> Dict[str, Optional[str]]:
        try:
            resp = requests.get(
                NOMINATIM_REVERSE_URL,
                params={"lat": latitude, "lon": longitude, "format": "json", "addressdetails": 1, "zoom": 14},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GeocodingError(str(e)) from e

        if resp.status_code != 200:
            raise GeocodingError(f"HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise GeocodingError(f"invalid JSON: {e}") from e
        if "error" in data:
            raise GeocodingError(data["error"])

        address = data.get("address") or {}
        place = {
            "formatted_address": data.get("display_name"),
            "city": _first(address, CITY_KEYS),
            "district": _first(address, DISTRICT_KEYS),
            "state": address.get("state"),
            "country": address.get("country"),
            "provider": self.name,
        }
        logger.debug(f"Nominatim placed ({latitude}, {longitude}) in {place['city'] or place['district']}")
        return place
