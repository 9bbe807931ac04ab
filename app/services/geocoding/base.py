import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class GeocodingError(Exception):
    """Raised by a provider lookup that could not produce a place."""


# ~110 m at the equator; hazards reported on the same street share a lookup
COORDINATE_PRECISION = 3


def empty_place(provider: str) -> Dict[str, Optional[str]]:
    return {
        "formatted_address": None,
        "city": None,
        "district": None,
        "state": None,
        "country": None,
        "provider": provider,
    }


class GeocodingProvider(ABC):
    """
    Reverse geocoder used by the authority directory to find the region a
    hazard was reported in when the citizen left the city blank.

    Subclasses implement lookup() and return a place dict shaped like
    empty_place(). lookup() may raise; reverse_geocode() turns any provider
    failure into an empty place so dispatch falls back to the coordinate box.
    Places are cached per rounded coordinate.
    """

    name = "unknown"

    def __init__(self):
        self._cache: Dict[Tuple[float, float], Dict[str, Optional[str]]] = {}
        self._cache_lock = threading.Lock()

    @abstractmethod
    def lookup(self, latitude: float, longitude: float) -> Dict[str, Optional[str]]:
        raise NotImplementedError

    def reverse_geocode(self, latitude: float, longitude: float) -> Dict[str, Optional[str]]:
        key = (round(latitude, COORDINATE_PRECISION), round(longitude, COORDINATE_PRECISION))
        with self._cache_lock:
            cached = self._cache.get(key)
        if cached is not None:
            return dict(cached)

        try:
            place = self.lookup(latitude, longitude)
        except GeocodingError as e:
            logger.warning(f"{self.name} reverse-geocode failed for {key}: {e}")
            return empty_place(self.name)

        # failures are never cached
        with self._cache_lock:
            self._cache[key] = dict(place)
        return place

    def resolve_city(self, latitude: float, longitude: float) -> Optional[str]:
        """Routing region for a point: city, else district, else None."""
        place = self.reverse_geocode(latitude, longitude)
        region = place.get("city") or place.get("district")
        return region.strip().title() if region and region.strip() else None
