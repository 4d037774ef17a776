import asyncio

import httpx
import pytest

from sellfast.wizard.geolocation import (
    Coordinates,
    GeocodingError,
    GeolocationError,
    LocateAttempt,
    LocationService,
    PositionError,
    PositionErrorCode,
    ReverseGeocoder,
    locate,
)

FAST = (
    LocateAttempt(high_accuracy=False, client_timeout=0.05, provider_timeout=0.1),
    LocateAttempt(high_accuracy=True, client_timeout=0.05, provider_timeout=0.1),
)


class ScriptedProvider:
    """Plays back one outcome per call: Coordinates, a PositionError, or "hang"."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def get_current_position(self, *, high_accuracy, timeout, maximum_age):
        self.calls.append(high_accuracy)
        outcome = self.outcomes.pop(0)
        if outcome == "hang":
            await asyncio.sleep(10)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _geocoder(handler, api_key="key"):
    return ReverseGeocoder(api_key, transport=httpx.MockTransport(handler))


def _geocode_ok(request):
    return httpx.Response(200, json={"status": "OK", "results": [{"formatted_address": "1 Market St, Springfield"}]})


@pytest.mark.asyncio
async def test_low_accuracy_timeout_falls_back_to_high_accuracy():
    provider = ScriptedProvider("hang", Coordinates(40.7, -74.0))
    coords = await locate(provider, attempts=FAST)
    assert coords == Coordinates(40.7, -74.0)
    assert provider.calls == [False, True]


@pytest.mark.asyncio
async def test_permission_denied_stops_immediately():
    provider = ScriptedProvider(PositionError(PositionErrorCode.PERMISSION_DENIED))
    with pytest.raises(GeolocationError) as exc:
        await locate(provider, attempts=FAST)
    assert exc.value.code is PositionErrorCode.PERMISSION_DENIED
    assert "permission denied" in exc.value.message
    assert provider.calls == [False]


@pytest.mark.asyncio
async def test_both_attempts_time_out():
    provider = ScriptedProvider("hang", PositionError(PositionErrorCode.TIMEOUT))
    with pytest.raises(GeolocationError) as exc:
        await locate(provider, attempts=FAST)
    assert exc.value.timed_out is True
    assert exc.value.message == "Location request timed out. Please try again or enter manually."


@pytest.mark.asyncio
async def test_no_provider():
    with pytest.raises(GeolocationError, match="not supported"):
        await locate(None)


@pytest.mark.asyncio
async def test_reverse_geocode_formatted_address():
    def handler(request):
        assert request.url.params["latlng"] == "40.7,-74.0"
        assert request.url.params["key"] == "key"
        return _geocode_ok(request)

    assert await _geocoder(handler).reverse(40.7, -74.0) == "1 Market St, Springfield"


@pytest.mark.asyncio
async def test_reverse_geocode_falls_back_to_coordinates():
    def handler(request):
        return httpx.Response(200, json={"status": "OK", "results": [{}]})

    assert await _geocoder(handler).reverse(40.712776, -74.005974) == "40.7128, -74.0060"


@pytest.mark.parametrize(
    "status, message",
    [
        ("REQUEST_DENIED", "Google API access denied. Please check API key and restrictions."),
        ("OVER_QUERY_LIMIT", "API quota exceeded. Please try again later."),
        ("ZERO_RESULTS", "No address found for your location."),
        ("INVALID_REQUEST", "Geocoding failed: INVALID_REQUEST - Unknown error"),
    ],
)
@pytest.mark.asyncio
async def test_reverse_geocode_status_messages(status, message):
    geocoder = _geocoder(lambda request: httpx.Response(200, json={"status": status, "results": []}))
    with pytest.raises(GeocodingError) as exc:
        await geocoder.reverse(1.0, 2.0)
    assert exc.value.message == message


@pytest.mark.asyncio
async def test_reverse_geocode_without_key():
    with pytest.raises(GeocodingError, match="Google API key not configured"):
        await _geocoder(_geocode_ok, api_key=None).reverse(1.0, 2.0)


@pytest.mark.asyncio
async def test_service_retries_once_after_timeout():
    provider = ScriptedProvider(
        PositionError(PositionErrorCode.TIMEOUT),
        PositionError(PositionErrorCode.TIMEOUT),
        Coordinates(40.7, -74.0),
    )
    service = LocationService(provider, _geocoder(_geocode_ok), retry_delay_seconds=0, attempts=FAST)

    resolved = await service.fetch_location()
    assert resolved.address == "1 Market St, Springfield"
    assert (resolved.latitude, resolved.longitude) == (40.7, -74.0)
    assert provider.calls == [False, True, False]


@pytest.mark.asyncio
async def test_service_does_not_retry_other_failures():
    provider = ScriptedProvider(
        PositionError(PositionErrorCode.POSITION_UNAVAILABLE),
        PositionError(PositionErrorCode.POSITION_UNAVAILABLE),
    )
    service = LocationService(provider, _geocoder(_geocode_ok), retry_delay_seconds=0, attempts=FAST)
    with pytest.raises(GeolocationError) as exc:
        await service.fetch_location()
    assert exc.value.code is PositionErrorCode.POSITION_UNAVAILABLE
    assert provider.calls == [False, True]


@pytest.mark.asyncio
async def test_service_retries_geocode_timeout():
    calls = []

    def handler(request):
        calls.append(1)
        if len(calls) == 1:
            raise httpx.ReadTimeout("slow", request=request)
        return _geocode_ok(request)

    provider = ScriptedProvider(Coordinates(1.0, 2.0), Coordinates(1.0, 2.0))
    service = LocationService(provider, _geocoder(handler), retry_delay_seconds=0, attempts=FAST)
    resolved = await service.fetch_location()
    assert resolved.address == "1 Market St, Springfield"
    assert len(calls) == 2
