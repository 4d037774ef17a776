from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol

import httpx

log = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

# Serve a cached fix if it is younger than this.
MAXIMUM_AGE_SECONDS = 600.0


class PositionErrorCode(IntEnum):
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float
    accuracy: float | None = None


class PositionError(Exception):
    """Raised by position providers; mirrors the platform error codes."""

    def __init__(self, code: PositionErrorCode, message: str = ""):
        super().__init__(message or code.name)
        self.code = code


class PositionProvider(Protocol):
    async def get_current_position(self, *, high_accuracy: bool, timeout: float, maximum_age: float) -> Coordinates: ...


class LocationError(Exception):
    def __init__(self, message: str, *, timed_out: bool = False):
        super().__init__(message)
        self.message = message
        self.timed_out = timed_out


class GeolocationError(LocationError):
    def __init__(self, message: str, *, code: PositionErrorCode | None = None):
        super().__init__(message, timed_out=code == PositionErrorCode.TIMEOUT)
        self.code = code


class GeocodingError(LocationError):
    pass


POSITION_MESSAGES = {
    PositionErrorCode.PERMISSION_DENIED: "Location permission denied. Please enable location access in your browser settings.",
    PositionErrorCode.POSITION_UNAVAILABLE: "Location unavailable. Please check your device's location settings or enter manually.",
    PositionErrorCode.TIMEOUT: "Location request timed out. Please try again or enter manually.",
}

GEOCODE_MESSAGES = {
    "REQUEST_DENIED": "Google API access denied. Please check API key and restrictions.",
    "OVER_QUERY_LIMIT": "API quota exceeded. Please try again later.",
    "ZERO_RESULTS": "No address found for your location.",
}


@dataclass(frozen=True)
class LocateAttempt:
    high_accuracy: bool
    # our own deadline; fires before the provider's
    client_timeout: float
    provider_timeout: float


LOW_ACCURACY = LocateAttempt(high_accuracy=False, client_timeout=5.0, provider_timeout=8.0)
HIGH_ACCURACY = LocateAttempt(high_accuracy=True, client_timeout=2.0, provider_timeout=4.0)


async def locate(
    provider: PositionProvider | None,
    *,
    attempts: tuple[LocateAttempt, ...] = (LOW_ACCURACY, HIGH_ACCURACY),
    maximum_age: float = MAXIMUM_AGE_SECONDS,
) -> Coordinates:
    """
    Low accuracy first (fast), then one high-accuracy try if that times out
    or reports the position unavailable. Intermediate failures are not
    surfaced; only the final one raises GeolocationError.
    """
    if provider is None:
        raise GeolocationError("Geolocation is not supported by your browser")

    code = PositionErrorCode.TIMEOUT
    for attempt in attempts:
        try:
            return await asyncio.wait_for(
                provider.get_current_position(
                    high_accuracy=attempt.high_accuracy,
                    timeout=attempt.provider_timeout,
                    maximum_age=maximum_age,
                ),
                timeout=attempt.client_timeout,
            )
        except asyncio.TimeoutError:
            code = PositionErrorCode.TIMEOUT
        except PositionError as e:
            code = e.code
            if code == PositionErrorCode.PERMISSION_DENIED:
                break
        log.info("locate: %s attempt failed with %s", "high" if attempt.high_accuracy else "low", code.name)

    raise GeolocationError(POSITION_MESSAGES[code], code=code)


class ReverseGeocoder:
    """Turns coordinates into a formatted address via the Google Geocoding API."""

    def __init__(
        self,
        api_key: str | None,
        *,
        timeout_seconds: float = 5.0,
        url: str = GEOCODE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._url = url
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds), transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def reverse(self, latitude: float, longitude: float) -> str:
        if not self._api_key:
            raise GeocodingError("Google API key not configured")

        try:
            resp = await self._client.get(
                self._url,
                params={"latlng": f"{latitude},{longitude}", "key": self._api_key},
            )
        except httpx.TimeoutException:
            raise GeocodingError("Address lookup timed out. Please try again.", timed_out=True)
        except httpx.RequestError as e:
            raise GeocodingError(f"Address lookup failed: {e}")

        if resp.status_code != 200:
            raise GeocodingError(f"Address lookup failed (HTTP {resp.status_code})")

        try:
            data = resp.json()
        except ValueError:
            raise GeocodingError("Address lookup returned an unreadable response")

        status = data.get("status")
        if status in GEOCODE_MESSAGES:
            log.warning("geocode: %s %s", status, data.get("error_message", ""))
            raise GeocodingError(GEOCODE_MESSAGES[status])
        if status != "OK":
            raise GeocodingError(f"Geocoding failed: {status} - {data.get('error_message') or 'Unknown error'}")

        results = data.get("results") or []
        if not results:
            raise GeocodingError("No address data returned from Google.")

        return results[0].get("formatted_address") or f"{latitude:.4f}, {longitude:.4f}"


@dataclass(frozen=True)
class ResolvedLocation:
    address: str
    latitude: float
    longitude: float


class LocationService:
    """Position fix plus address, retrying the whole lookup once on timeouts."""

    def __init__(
        self,
        provider: PositionProvider | None,
        geocoder: ReverseGeocoder,
        *,
        max_retries: int = 1,
        retry_delay_seconds: float = 0.3,
        attempts: tuple[LocateAttempt, ...] = (LOW_ACCURACY, HIGH_ACCURACY),
    ):
        self._provider = provider
        self._geocoder = geocoder
        self._max_retries = max_retries
        self._retry_delay = retry_delay_seconds
        self._attempts = attempts

    async def fetch_location(self) -> ResolvedLocation:
        retries = 0
        while True:
            try:
                coords = await locate(self._provider, attempts=self._attempts)
                address = await self._geocoder.reverse(coords.latitude, coords.longitude)
                return ResolvedLocation(address=address, latitude=coords.latitude, longitude=coords.longitude)
            except LocationError as e:
                if not e.timed_out or retries >= self._max_retries:
                    raise
                retries += 1
                log.info("location: timed out, retrying (%d/%d)", retries, self._max_retries)
                await asyncio.sleep(self._retry_delay)
