from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from library_portal.services.barcode_decoders import CameraError, OpenCVCamera, StaticCamera, build_decoder
from library_portal.utils.dates import utcnow

logger = logging.getLogger(__name__)

IDLE = "idle"
REQUESTING = "requesting-camera"
STREAMING = "streaming"
DETECTED = "detected"
ERROR = "error"

ERROR_MESSAGES = {
    "permission-denied": "Camera permission denied. Please allow camera access and try again.",
    "no-device": "No camera device found. Please connect a camera.",
    "in-use": "Camera is already in use by another application.",
    "constraints-unsatisfiable": "Camera constraints cannot be satisfied by available devices.",
    "unknown": "Failed to access camera. Please check your device settings.",
}


@dataclass(frozen=True)
class ScanResult:
    code: str
    format: str
    timestamp: datetime
    source: str = "camera"

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "format": self.format,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
        }


def validate_barcode(code: str) -> bool:
    if len(code) == 13 and code.isdigit():
        return True
    return bool(re.fullmatch(r"\d{9}[\dX]", code))


def barcode_format(code: str) -> str:
    if len(code) == 13 and code.isdigit():
        return "ISBN-13"
    if re.fullmatch(r"\d{9}[\dX]", code):
        return "ISBN-10"
    return "UNKNOWN"


def format_barcode(code: str) -> str:
    if len(code) == 13:
        return f"{code[:3]}-{code[3:4]}-{code[4:7]}-{code[7:12]}-{code[12:]}"
    if len(code) == 10:
        return f"{code[:1]}-{code[1:4]}-{code[4:9]}-{code[9:]}"
    return code


class BarcodeScanner:
    """
    idle -> requesting-camera -> streaming -> (detected | error) -> idle

    The camera and decoder exist only between open() and close(); every exit
    path (detection + close, error, retry) releases both.
    """

    def __init__(self, camera_factory: Callable, decoder_factory: Callable,
                 haptic: Optional[Callable[[str], None]] = None):
        self.camera_factory = camera_factory
        self.decoder_factory = decoder_factory
        self.haptic = haptic

        self.state = IDLE
        self.error: Optional[str] = None
        self.last_code: Optional[str] = None
        self._camera = None
        self._decoder = None
        self._history: List[ScanResult] = []
        self._lock = threading.RLock()

    @property
    def error_message(self) -> Optional[str]:
        return ERROR_MESSAGES.get(self.error) if self.error else None

    @property
    def has_camera(self) -> bool:
        return self._camera is not None

    def open(self) -> bool:
        with self._lock:
            if self.state in (STREAMING, DETECTED):
                return True

            self.state = REQUESTING
            self.error = None
            try:
                camera = self.camera_factory()
                self._camera = camera
                camera.open()
                self._decoder = self.decoder_factory()
            except CameraError as e:
                return self._fail(e.reason, str(e))
            except Exception as e:
                logger.exception(f"[scanner] camera init failed: {e}")
                return self._fail("unknown", str(e))

            self.state = STREAMING
            self.last_code = None
            logger.info("[scanner] camera stream started")
            return True

    def scan(self, max_frames: int = 300) -> Optional[ScanResult]:
        """Run the decode loop for up to max_frames; the first new code is emitted."""
        with self._lock:
            if self._camera is None:
                raise ValueError(f"Scanner is not streaming (state={self.state})")
            if self.state == DETECTED:
                self.state = STREAMING
            if self.state != STREAMING:
                raise ValueError(f"Scanner is not streaming (state={self.state})")

            for _ in range(max_frames):
                try:
                    frame = self._camera.read()
                except CameraError as e:
                    self._fail(e.reason, str(e))
                    return None

                code = self._decoder.decode(frame)
                if not code or code == self.last_code:
                    continue
                return self._emit(code, "camera")
            return None

    def submit_manual(self, code: str) -> ScanResult:
        """Typed-in fallback; works from any state."""
        code = (code or "").strip()
        if not code:
            raise ValueError("Barcode is required")
        with self._lock:
            return self._emit(code, "manual")

    def close(self):
        with self._lock:
            self._teardown()
            self.state = IDLE
            self.error = None
            self.last_code = None

    def retry(self) -> bool:
        self.close()
        return self.open()

    def history(self) -> List[ScanResult]:
        with self._lock:
            return sorted(self._history, key=lambda r: r.timestamp, reverse=True)

    def _emit(self, code: str, source: str) -> ScanResult:
        result = ScanResult(code, barcode_format(code), utcnow(), source)
        self.last_code = code
        # manual entry without a stream leaves idle/error as it is
        if self._camera is not None:
            self.state = DETECTED
        self._history.append(result)
        logger.info(f"[scanner] barcode detected: {code} ({source})")
        if self.haptic:
            try:
                self.haptic(code)
            except Exception as e:
                logger.warning(f"[scanner] haptic feedback failed: {e}")
        return result

    def _fail(self, reason: str, detail: str = "") -> bool:
        if reason not in ERROR_MESSAGES:
            reason = "unknown"
        logger.warning(f"[scanner] camera error: {reason} {detail}")
        self._teardown()
        self.state = ERROR
        self.error = reason
        return False

    def _teardown(self):
        camera, decoder = self._camera, self._decoder
        self._camera = None
        self._decoder = None
        try:
            if camera is not None:
                camera.release()
        finally:
            if decoder is not None:
                decoder.close()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def init_scanner(app) -> BarcodeScanner:
    decoder_name = app.config.get("SCANNER_DECODER", "pyzbar")
    seed = app.config.get("SCANNER_SEED")
    index = app.config.get("SCANNER_CAMERA_INDEX", 0)

    if decoder_name == "pyzbar":
        def camera_factory():
            return OpenCVCamera(index)
    else:
        camera_factory = StaticCamera

    scanner = BarcodeScanner(camera_factory, lambda: build_decoder(decoder_name, seed))
    app.extensions["scanner"] = scanner
    return scanner
