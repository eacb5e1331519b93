from __future__ import annotations

import logging
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)

DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org/reverse"
DEFAULT_USER_AGENT = "CrewManager-Mobile/1.0"


def coordinates_label(latitude: float, longitude: float) -> str:
    return f"Lat: {latitude:.6f}, Lng: {longitude:.6f}"


class ReverseGeocoder(Protocol):
    def reverse(self, latitude: float, longitude: float) -> str:
        raise NotImplementedError


class NominatimGeocoder(ReverseGeocoder):
    """One GET per lookup. Never raises: failures yield a coordinates label."""

    def __init__(
        self,
        url: str = DEFAULT_GEOCODER_URL,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self._url = url
        self._user_agent = user_agent
        self._timeout = timeout
        self._http = session or requests.Session()

    def reverse(self, latitude: float, longitude: float) -> str:
        try:
            response = self._http.get(
                self._url,
                params={
                    "format": "json",
                    "lat": latitude,
                    "lon": longitude,
                    "zoom": 18,
                    "addressdetails": 1,
                },
                headers={"User-Agent": self._user_agent},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Reverse geocoding failed for %.6f,%.6f: %s", latitude, longitude, e)
            return coordinates_label(latitude, longitude)

        if isinstance(data, dict) and data.get("display_name"):
            return str(data["display_name"])
        return coordinates_label(latitude, longitude)
