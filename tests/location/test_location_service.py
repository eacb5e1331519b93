from __future__ import annotations

import pytest

from crew_attendance.core.enums import LocationErrorCode
from crew_attendance.core.exceptions import LocationError
from crew_attendance.location.model import PositionFix
from crew_attendance.location.service import LocationService, location_from_reading, reported_location

from fakes import at


class StubGeocoder:
    def __init__(self):
        self.calls = []

    def reverse(self, latitude, longitude):
        self.calls.append((latitude, longitude))
        return "Via Roma 1, Milano"


class ScriptedGeolocator:
    """Returns the scripted fixes (or raises the scripted error codes) in order."""

    def __init__(self, *readings):
        self._readings = list(readings)
        self.timeouts = []

    def get_current_position(self, *, enable_high_accuracy, timeout, maximum_age):
        self.timeouts.append(timeout)
        reading = self._readings.pop(0)
        if isinstance(reading, LocationErrorCode):
            raise LocationError("gps", code=reading)
        return reading


def service(geolocator, geocoder=None, sleeps=None):
    return LocationService(
        geolocator,
        geocoder or StubGeocoder(),
        sleep=(sleeps.append if sleeps is not None else lambda _: None),
        clock=lambda: at("09:00"),
    )


def test_stops_at_first_accurate_fix():
    geo = ScriptedGeolocator(PositionFix(45.0, 9.0, 35), PositionFix(45.1, 9.1, 8), PositionFix(45.2, 9.2, 3))
    sleeps = []

    location = service(geo, sleeps=sleeps).acquire(required_accuracy=10, max_retries=3, retry_delay=2)

    assert (location.latitude, location.accuracy) == (45.1, 8)
    assert geo.timeouts == [15000, 30000]
    assert sleeps == [2]


def test_returns_best_fix_when_none_is_accurate_enough():
    geo = ScriptedGeolocator(PositionFix(45.0, 9.0, 40), PositionFix(45.1, 9.1, 25), PositionFix(45.2, 9.2, 30))

    location = service(geo).acquire(required_accuracy=10, max_retries=3)

    assert (location.latitude, location.accuracy) == (45.1, 25)


def test_errors_are_retried_while_attempts_remain():
    geo = ScriptedGeolocator(LocationErrorCode.TIMEOUT, PositionFix(45.0, 9.0, 5))

    location = service(geo).acquire(max_retries=3)

    assert location.accuracy == 5


def test_last_error_without_any_fix_maps_to_message():
    geo = ScriptedGeolocator(LocationErrorCode.TIMEOUT, LocationErrorCode.PERMISSION_DENIED)
    svc = service(geo)

    with pytest.raises(LocationError) as excinfo:
        svc.acquire(max_retries=2)

    assert excinfo.value.code == LocationErrorCode.PERMISSION_DENIED
    assert "Permesso GPS negato" in str(excinfo.value)
    assert svc.error == str(excinfo.value)
    assert svc.is_loading is False


def test_try_acquire_returns_none_on_error():
    svc = service(ScriptedGeolocator(LocationErrorCode.POSITION_UNAVAILABLE))

    assert svc.try_acquire(max_retries=1) is None
    assert "Posizione non disponibile" in svc.error


def test_location_from_browser_reading_is_geocoded():
    geocoder = StubGeocoder()

    location = location_from_reading({"latitude": 45.46, "longitude": 9.19, "accuracy": 42.4}, geocoder)

    assert location.address == "Via Roma 1, Milano"
    assert location.accuracy == 42
    assert geocoder.calls == [(45.46, 9.19)]


def test_reported_location_prefers_client_error_text():
    location, error = reported_location({"location": {"error_code": 1}, "gps_error": "GPS spento"}, StubGeocoder())

    assert location is None
    assert error == "GPS spento"


def test_reported_location_without_reading():
    location, error = reported_location({}, StubGeocoder())

    assert location is None
    assert error.startswith("Errore GPS")


def test_refresh_takes_one_loose_fix_while_active():
    geo = ScriptedGeolocator(PositionFix(45.0, 9.0, 45))
    svc = service(geo)

    location = svc.refresh_once(lambda: True)

    assert location.accuracy == 45
    assert geo.timeouts == [15000]
    assert svc.current_location == location


def test_refresh_stops_when_shift_is_over():
    geo = ScriptedGeolocator()

    assert service(geo).refresh_once(lambda: False) is None
    assert geo.timeouts == []
