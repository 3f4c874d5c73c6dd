"""
Approximate client location.

With mock geocoding on (the default) a deterministic point near the
business is derived from the address. Otherwise Nominatim (OpenStreetMap)
is queried; no API key is required, just a user agent string.
"""

import hashlib
import logging
from typing import Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class Geocoder:
    def __init__(
        self,
        mock: bool = True,
        base_latitude: float = 43.2557,
        base_longitude: float = -79.8711,
        base_url: str = "https://nominatim.openstreetmap.org",
        user_agent: str = "DoorwayOps/1.0",
        http: Optional[httpx.Client] = None,
    ):
        self.mock = mock
        self.base_latitude = base_latitude
        self.base_longitude = base_longitude
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.http = http or httpx.Client(timeout=5.0)

    @classmethod
    def from_config(cls, config) -> "Geocoder":
        return cls(
            mock=config.mock_geocoding,
            base_latitude=config.mock_latitude,
            base_longitude=config.mock_longitude,
            base_url=config.nominatim_base_url,
            user_agent=config.nominatim_user_agent,
        )

    def locate(self, address: str) -> Optional[Dict[str, float]]:
        if not address or not address.strip():
            return None
        if self.mock:
            return self._mock_location(address)
        return self._nominatim(address)

    def _mock_location(self, address: str) -> Dict[str, float]:
        # same address, same point; offsets stay within roughly 10km
        digest = hashlib.sha256(address.strip().lower().encode()).digest()
        lat_offset = (int.from_bytes(digest[:4], "big") / 0xFFFFFFFF - 0.5) * 0.2
        lng_offset = (int.from_bytes(digest[4:8], "big") / 0xFFFFFFFF - 0.5) * 0.2
        return {
            "lat": round(self.base_latitude + lat_offset, 6),
            "lng": round(self.base_longitude + lng_offset, 6),
        }

    def _nominatim(self, address: str) -> Optional[Dict[str, float]]:
        try:
            response = self.http.get(
                f"{self.base_url}/search",
                params={"q": address, "format": "json", "limit": 1},
                headers={"User-Agent": self.user_agent},
            )
            response.raise_for_status()
            results = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Nominatim lookup failed for '{address}': {e}")
            return None

        if not results:
            logger.info(f"No geocoding match for '{address}'")
            return None
        try:
            return {"lat": float(results[0]["lat"]), "lng": float(results[0]["lon"])}
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Unexpected Nominatim payload for '{address}'")
            return None
