from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Optional, Protocol, Union

from ..core.enums import LocationErrorCode
from ..core.exceptions import LocationError
from .model import PositionFix


class Geolocator(Protocol):
    def get_current_position(self, *, enable_high_accuracy: bool, timeout: int, maximum_age: int) -> PositionFix:
        """Return one fix or raise ``LocationError`` with a code. ``timeout`` is in ms."""

        raise NotImplementedError


class ReportedPositionGeolocator(Geolocator):
    """Geolocator fed by readings the browser posts to the web layer.

    Each reported fix (or error) is consumed by exactly one
    ``get_current_position`` call; a caller with nothing to consume waits up to
    ``timeout`` ms and then gets a timeout error.
    """

    def __init__(self):
        self._readings: Deque[Union[PositionFix, LocationErrorCode]] = deque()
        self._cond = threading.Condition()

    def report(self, latitude: float, longitude: float, accuracy: float) -> None:
        with self._cond:
            self._readings.append(PositionFix(float(latitude), float(longitude), float(accuracy)))
            self._cond.notify()

    def report_error(self, code: int) -> None:
        try:
            reading = LocationErrorCode(int(code))
        except ValueError:
            reading = LocationErrorCode.POSITION_UNAVAILABLE
        with self._cond:
            self._readings.append(reading)
            self._cond.notify()

    def get_current_position(self, *, enable_high_accuracy: bool = True, timeout: int = 15000, maximum_age: int = 0) -> PositionFix:
        with self._cond:
            if not self._cond.wait_for(lambda: bool(self._readings), timeout=timeout / 1000):
                raise LocationError("Timeout GPS", code=LocationErrorCode.TIMEOUT)
            reading = self._readings.popleft()
        if isinstance(reading, LocationErrorCode):
            raise LocationError("Errore GPS", code=reading)
        return reading

    def pending(self) -> int:
        with self._cond:
            return len(self._readings)
