from .base import GeocodingError, GeocodingProvider, empty_place
from .nominatim_provider import NominatimProvider
from .resolver import build_geocoding_provider

__all__ = ["GeocodingError", "GeocodingProvider", "NominatimProvider", "build_geocoding_provider", "empty_place"]
