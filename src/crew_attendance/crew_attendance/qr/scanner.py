"""QR decoding and the scan gate that keeps one scan from checking in twice.

The gate is an explicit state machine:

    idle --start()--> scanning --offer() accepted--> cooldown
    cooldown --finish(success=False)--> scanning
    cooldown --finish(success=True)--> idle

While in cooldown every scan is ignored. In scanning, the same code within
2 s of the last accepted one, or any code within 0.5 s, is ignored too.
"""

from __future__ import annotations

import threading
import time
from typing import BinaryIO, Callable, Dict, Optional

from PIL import Image, UnidentifiedImageError
from pyzbar.pyzbar import decode as pyzbar_decode

from ..core.constants import QR_MIN_SCAN_INTERVAL_SECONDS, QR_SAME_CODE_COOLDOWN_SECONDS
from ..core.enums import ScanState
from ..core.exceptions import ValidationError


def decode_image(stream: BinaryIO) -> str:
    """Text of the first QR code found in the image."""
    try:
        img = Image.open(stream).convert("RGB")
    except (UnidentifiedImageError, OSError):
        raise ValidationError("Immagine non valida")
    decoded = pyzbar_decode(img)
    if not decoded:
        raise ValidationError("Nessun codice QR rilevato nell'immagine")
    return decoded[0].data.decode("utf-8").strip()


class ScanGate:
    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        same_code_cooldown: float = QR_SAME_CODE_COOLDOWN_SECONDS,
        min_interval: float = QR_MIN_SCAN_INTERVAL_SECONDS,
    ):
        self._clock = clock
        self._same_code_cooldown = same_code_cooldown
        self._min_interval = min_interval
        self._lock = threading.Lock()
        self.state = ScanState.IDLE
        self._last_code = ""
        self._last_at: Optional[float] = None

    def start(self) -> None:
        with self._lock:
            self.state = ScanState.SCANNING
            self._last_code = ""
            self._last_at = None

    def stop(self) -> None:
        with self._lock:
            self.state = ScanState.IDLE
            self._last_code = ""
            self._last_at = None

    def offer(self, code: str) -> bool:
        """True when the scan should be processed; the gate then holds until ``finish``."""
        code = (code or "").strip()
        with self._lock:
            if self.state != ScanState.SCANNING or not code:
                return False
            now = self._clock()
            if self._last_at is not None:
                elapsed = now - self._last_at
                if code == self._last_code and elapsed < self._same_code_cooldown:
                    return False
                if elapsed < self._min_interval:
                    return False
            self._last_code = code
            self._last_at = now
            self.state = ScanState.COOLDOWN
            return True

    def finish(self, *, success: bool) -> None:
        with self._lock:
            if self.state != ScanState.COOLDOWN:
                return
            self.state = ScanState.IDLE if success else ScanState.SCANNING


class ScanGateRegistry:
    """One gate per crew member."""

    def __init__(self, factory: Callable[[], ScanGate] = ScanGate):
        self._factory = factory
        self._lock = threading.Lock()
        self._gates: Dict[str, ScanGate] = {}

    def for_crew(self, crew_id: str) -> ScanGate:
        with self._lock:
            gate = self._gates.get(crew_id)
            if gate is None:
                gate = self._gates[crew_id] = self._factory()
            return gate
