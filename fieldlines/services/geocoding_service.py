"""
Mapbox Geocoding API client.

Geocodes a sportsground address to (latitude, longitude).
Returns (None, None) on any failure; callers decide whether that is fatal.
"""

import logging
import os
from typing import Optional, Tuple
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

MAPBOX_GEOCODING_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places"


def _get_mapbox_token() -> Optional[str]:
    return os.environ.get("MAPBOX_ACCESS_TOKEN")


async def geocode_address(address: str) -> Tuple[Optional[float], Optional[float]]:
    """
    Geocode a free-form address using the Mapbox Geocoding API.

    Args:
        address: Address string (e.g., "1 Moore Park Rd, Moore Park NSW")

    Returns:
        Tuple of (latitude, longitude) or (None, None) if geocoding fails.
    """
    token = _get_mapbox_token()
    if not token:
        logger.warning("MAPBOX_ACCESS_TOKEN not set; skipping geocoding")
        return None, None

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.get(
                f"{MAPBOX_GEOCODING_URL}/{quote(address, safe='')}.json",
                params={"access_token": token, "limit": 1, "types": "address,poi,place"},
            )
            resp.raise_for_status()
            data = resp.json()

        features = data.get("features", [])
        if not features:
            logger.info("Geocoding returned no results for: %s", address)
            return None, None

        # Mapbox returns [longitude, latitude]
        lng, lat = features[0]["center"]
        return float(lat), float(lng)

    except Exception:
        logger.warning("Geocoding failed for address: %s", address, exc_info=True)
        return None, None
