# civic_dispatch/services/geo.py
from typing import Optional

from civic_dispatch.core.config import settings
from civic_dispatch.schemas.issue import Coordinates


def fallback_location() -> Coordinates:
    return Coordinates(lat=settings.fallback_lat, lng=settings.fallback_lng)


def resolve_location(
    coordinates: Optional[Coordinates],
    location_failed: bool = False,
    use_fallback: Optional[bool] = None,
) -> Optional[Coordinates]:
    """
    Coordinates to store for a submission. When the geolocation collaborator
    failed the configured fallback is used if enabled, otherwise the location
    stays unknown. A submission is never refused for lack of a location.
    """
    if coordinates is not None:
        return coordinates
    if use_fallback is None:
        use_fallback = settings.use_fallback_location
    if location_failed and use_fallback:
        return fallback_location()
    return None
