from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..common.periodic import PeriodicTask
from ..core.constants import (
    DEFAULT_GPS_MAX_RETRIES,
    DEFAULT_GPS_RETRY_DELAY_SECONDS,
    DEFAULT_REQUIRED_ACCURACY_METERS,
    GPS_FIRST_ATTEMPT_TIMEOUT_MS,
    GPS_REFRESH_INTERVAL_SECONDS,
    GPS_REFRESH_REQUIRED_ACCURACY_METERS,
    GPS_RETRY_TIMEOUT_MS,
)
from ..core.enums import LocationErrorCode
from ..core.exceptions import LocationError
from .geocoding import ReverseGeocoder
from .geolocator import Geolocator, ReportedPositionGeolocator
from .model import Location, PositionFix

logger = logging.getLogger(__name__)

LOCATION_ERROR_MESSAGES = {
    LocationErrorCode.PERMISSION_DENIED: "Permesso GPS negato - Attiva GPS nelle impostazioni del telefono",
    LocationErrorCode.POSITION_UNAVAILABLE: "Posizione non disponibile - Controlla che il GPS sia attivo",
    LocationErrorCode.TIMEOUT: "Timeout GPS - Segnale debole o GPS spento. Vai all'aperto e riprova",
}
DEFAULT_LOCATION_ERROR = "Errore GPS - Controlla che il GPS sia attivo e riprova"


def location_error_message(code: Optional[int]) -> str:
    try:
        return LOCATION_ERROR_MESSAGES[LocationErrorCode(code)]
    except (ValueError, KeyError, TypeError):
        return DEFAULT_LOCATION_ERROR


class LocationService:
    """Owns the last acquired location; the only writer of that state."""

    def __init__(
        self,
        geolocator: Geolocator,
        geocoder: ReverseGeocoder,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = now_local,
    ):
        self._geolocator = geolocator
        self._geocoder = geocoder
        self._sleep = sleep
        self._clock = clock
        self._lock = threading.Lock()
        self._refresh: Optional[PeriodicTask] = None

        self.current_location: Optional[Location] = None
        self.accuracy: Optional[int] = None
        self.error: Optional[str] = None
        self.is_loading = False

    def acquire(
        self,
        required_accuracy: float = DEFAULT_REQUIRED_ACCURACY_METERS,
        max_retries: int = DEFAULT_GPS_MAX_RETRIES,
        retry_delay: float = DEFAULT_GPS_RETRY_DELAY_SECONDS,
    ) -> Location:
        """Best fix within ``max_retries`` attempts, stopping early at ``required_accuracy`` metres."""
        with self._lock:
            self.is_loading = True
            self.error = None

        best: Optional[PositionFix] = None
        for attempt in range(max_retries):
            try:
                fix = self._geolocator.get_current_position(
                    enable_high_accuracy=True,
                    timeout=GPS_FIRST_ATTEMPT_TIMEOUT_MS if attempt == 0 else GPS_RETRY_TIMEOUT_MS,
                    maximum_age=0,
                )
            except LocationError as e:
                logger.info("GPS attempt %d/%d failed (code=%s)", attempt + 1, max_retries, e.code)
                if attempt == max_retries - 1 and best is None:
                    message = location_error_message(e.code)
                    with self._lock:
                        self.error = message
                        self.is_loading = False
                    raise LocationError(message, code=e.code) from e
                if attempt < max_retries - 1:
                    self._sleep(retry_delay)
                continue

            with self._lock:
                self.accuracy = round(fix.accuracy)
            if best is None or fix.accuracy < best.accuracy:
                best = fix
            if round(fix.accuracy) <= required_accuracy:
                break
            if attempt < max_retries - 1:
                self._sleep(retry_delay)

        if best is None:
            with self._lock:
                self.error = DEFAULT_LOCATION_ERROR
                self.is_loading = False
            raise LocationError(DEFAULT_LOCATION_ERROR)

        address = self._geocoder.reverse(best.latitude, best.longitude)
        location = Location(
            latitude=best.latitude,
            longitude=best.longitude,
            address=address,
            accuracy=round(best.accuracy),
            timestamp=self._clock(),
        )
        with self._lock:
            self.current_location = location
            self.is_loading = False
        return location

    def try_acquire(self, **kwargs) -> Optional[Location]:
        """Like ``acquire`` but returns None on GPS errors (message kept in ``error``)."""
        try:
            return self.acquire(**kwargs)
        except LocationError:
            return None

    def clear(self) -> None:
        with self._lock:
            self.current_location = None
            self.error = None
            self.accuracy = None

    def refresh_once(self, while_active: Callable[[], bool]) -> Optional[Location]:
        if not while_active():
            self.stop_refresh()
            return None
        return self.try_acquire(required_accuracy=GPS_REFRESH_REQUIRED_ACCURACY_METERS, max_retries=1)

    def start_refresh(self, while_active: Callable[[], bool], *, interval: float = GPS_REFRESH_INTERVAL_SECONDS) -> None:
        """Re-acquire the position every ``interval`` seconds until ``while_active()`` turns false."""
        self.stop_refresh()
        self._refresh = PeriodicTask(interval, lambda: self.refresh_once(while_active), name="gps-refresh")
        self._refresh.start()

    def stop_refresh(self) -> None:
        task, self._refresh = self._refresh, None
        if task is not None:
            task.stop()


def location_from_reading(reading: Optional[dict], geocoder: ReverseGeocoder) -> Location:
    """Resolve one browser reading ``{latitude, longitude, accuracy}`` or ``{error_code}``."""
    if not reading:
        raise LocationError(DEFAULT_LOCATION_ERROR)
    geolocator = ReportedPositionGeolocator()
    if reading.get("error_code") is not None:
        geolocator.report_error(reading["error_code"])
    else:
        try:
            geolocator.report(reading["latitude"], reading["longitude"], reading.get("accuracy") or 0)
        except (KeyError, TypeError, ValueError):
            raise LocationError(DEFAULT_LOCATION_ERROR)
    service = LocationService(geolocator, geocoder, sleep=lambda _: None)
    return service.acquire(required_accuracy=float("inf"), max_retries=1)


def reported_location(data: dict, geocoder: ReverseGeocoder) -> tuple[Optional[Location], Optional[str]]:
    """(location, gps error message) for a request body; the client's own error text wins."""
    try:
        return location_from_reading(data.get("location"), geocoder), None
    except LocationError as e:
        return None, (data.get("gps_error") or str(e))
