# geocoding.py
# Location providers: where is the user right now, if we are allowed to know.

from __future__ import annotations

import enum
import logging
from typing import Any, Dict, Optional, Protocol

import requests

from config import get_config
from models import Coordinate

logger = logging.getLogger(__name__)

__all__ = [
    "AuthorizationState",
    "LocationProvider",
    "StaticLocationProvider",
    "GeocodedLocationProvider",
    "geocode_address",
    "reference_coordinate",
]

# Base URL for the OpenStreetMap Nominatim API
BASE_URL = "https://nominatim.openstreetmap.org/search"
REQUEST_TIMEOUT = 10


class AuthorizationState(enum.Enum):
    NOT_DETERMINED = "notDetermined"
    DENIED = "denied"
    AUTHORIZED = "authorized"


class LocationProvider(Protocol):
    def request_permission(self) -> None: ...

    def current_coordinate(self) -> Optional[Coordinate]: ...

    def authorization_state(self) -> AuthorizationState: ...


def reference_coordinate(provider: Optional[LocationProvider]) -> Optional[Coordinate]:
    """
    The coordinate to rank against, or None.

    Denied or undecided authorization is treated the same as "no fix yet";
    callers fall back to unordered results.
    """
    if provider is None:
        return None
    if provider.authorization_state() is not AuthorizationState.AUTHORIZED:
        return None
    return provider.current_coordinate()


class StaticLocationProvider:
    """A single best-known fix, e.g. from a settings screen or a test."""

    def __init__(self, coordinate: Optional[Coordinate] = None, *, grant: bool = True):
        self._coordinate = coordinate
        self._grant = grant
        self._state = AuthorizationState.NOT_DETERMINED

    def request_permission(self) -> None:
        self._state = AuthorizationState.AUTHORIZED if self._grant else AuthorizationState.DENIED

    def current_coordinate(self) -> Optional[Coordinate]:
        return self._coordinate

    def authorization_state(self) -> AuthorizationState:
        return self._state

    def update(self, coordinate: Optional[Coordinate]) -> None:
        self._coordinate = coordinate


def geocode_address(
    address: str,
    *,
    session: Optional[Any] = None,
    user_agent: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Takes a string address and sends it to the OpenStreetMap Nominatim API.
    Returns a dictionary with the full formatted address, latitude, and longitude,
    or None if nothing matched.

    ``user_agent`` defaults to the configured GEOCODER_USER_AGENT.
    """
    params = {
        "q": address,
        "format": "json",
        "limit": 1,
        "addressdetails": 1,
    }
    # OSM policy requires a User-Agent with a valid contact email
    headers = {"User-Agent": user_agent or get_config().geocoder_user_agent}

    http = session or requests
    response = http.get(BASE_URL, params=params, headers=headers, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()

    data = response.json()
    if not data:
        return None

    result = data[0]
    return {
        "display_name": result.get("display_name"),
        "lat": result.get("lat"),
        "lon": result.get("lon"),
    }


class GeocodedLocationProvider:
    """
    Resolves a typed address into the user's location, once, when permission
    is requested. Any lookup failure leaves the location unknown.
    """

    def __init__(
        self,
        address: str,
        *,
        session: Optional[Any] = None,
        user_agent: Optional[str] = None,
    ):
        self.address = address
        self._session = session
        self._user_agent = user_agent or get_config().geocoder_user_agent
        self._coordinate: Optional[Coordinate] = None
        self._state = AuthorizationState.NOT_DETERMINED
        self.display_name: Optional[str] = None

    def request_permission(self) -> None:
        if self._state is not AuthorizationState.NOT_DETERMINED:
            return
        self._state = AuthorizationState.AUTHORIZED
        try:
            found = geocode_address(self.address, session=self._session, user_agent=self._user_agent)
        except requests.RequestException as exc:
            logger.warning("Geocoding %r failed: %s", self.address, exc)
            return
        if not found:
            logger.warning("Address not found: %r", self.address)
            return
        try:
            self._coordinate = Coordinate(float(found["lat"]), float(found["lon"]))
        except (TypeError, ValueError):
            logger.warning("Geocoder returned unusable coordinates for %r: %s", self.address, found)
            return
        self.display_name = found.get("display_name")

    def current_coordinate(self) -> Optional[Coordinate]:
        return self._coordinate

    def authorization_state(self) -> AuthorizationState:
        return self._state
