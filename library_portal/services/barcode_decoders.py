# library_portal/services/barcode_decoders.py
from __future__ import annotations

import logging
import random
from collections import deque
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

# Barcodes of the catalog books the simulated decoder "sees"
SAMPLE_BARCODES = [
    "9780743273565",  # The Great Gatsby
    "9780061120084",  # To Kill a Mockingbird
    "9780452284234",  # 1984
    "9780141439518",  # Pride and Prejudice
    "9780316769480",  # The Catcher in the Rye
    "9780452284241",  # Animal Farm
    "9780060850524",  # Brave New World
    "9780571056862",  # Lord of the Flies
]


class CameraError(Exception):
    """Camera could not be acquired or read. reason is one of scanner.ERROR_MESSAGES keys."""

    def __init__(self, reason: str, detail: str = ""):
        super().__init__(detail or reason)
        self.reason = reason


# ---------- cameras ----------

class OpenCVCamera:
    """Local capture device through cv2.VideoCapture."""

    def __init__(self, index: int = 0, width: int = 640, height: int = 480):
        self.index = index
        self.width = width
        self.height = height
        self._capture = None

    def open(self):
        import cv2

        capture = cv2.VideoCapture(self.index)
        if not capture.isOpened():
            capture.release()
            raise CameraError("no-device", f"camera {self.index} could not be opened")
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._capture = capture

    def read(self):
        if self._capture is None:
            raise CameraError("unknown", "camera is not open")
        ok, frame = self._capture.read()
        if not ok:
            raise CameraError("in-use", "no frame from camera")
        return frame

    def release(self):
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    @property
    def is_open(self) -> bool:
        return self._capture is not None


class StaticCamera:
    """Stand-in device for the simulated/fixture decoders: every read returns the same blank frame."""

    def __init__(self, frame=b""):
        self.frame = frame
        self.is_open = False

    def open(self):
        self.is_open = True

    def read(self):
        if not self.is_open:
            raise CameraError("unknown", "camera is not open")
        return self.frame

    def release(self):
        self.is_open = False


# ---------- decoders ----------

class PyzbarDecoder:
    name = "pyzbar"

    def __init__(self):
        from pyzbar import pyzbar

        self._pyzbar = pyzbar

    def decode(self, frame) -> Optional[str]:
        results = self._pyzbar.decode(frame)
        if not results:
            return None
        return results[0].data.decode("utf-8")

    def decode_image(self, data: bytes) -> Optional[str]:
        import cv2
        import numpy as np

        frame = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_GRAYSCALE)
        if frame is None:
            raise ValueError("Image could not be read")
        return self.decode(frame)

    def close(self):
        pass


class SimulatedDecoder:
    """Low-probability detection per frame, drawn from SAMPLE_BARCODES."""

    name = "simulated"

    def __init__(self, rng: Optional[random.Random] = None, probability: float = 0.008,
                 samples: Iterable[str] = SAMPLE_BARCODES):
        self.rng = rng or random.Random()
        self.probability = probability
        self.samples = list(samples)

    def decode(self, frame) -> Optional[str]:
        if self.rng.random() < self.probability:
            return self.rng.choice(self.samples)
        return None

    def decode_image(self, data: bytes) -> Optional[str]:
        return self.decode(data)

    def close(self):
        pass


class FixtureDecoder:
    """Returns the given codes one per frame (None = nothing found); empty afterwards."""

    name = "fixture"

    def __init__(self, codes: Iterable[Optional[str]] = ()):
        self._codes = deque(codes)
        self.closed = False

    def feed(self, *codes: Optional[str]):
        self._codes.extend(codes)

    def decode(self, frame) -> Optional[str]:
        if not self._codes:
            return None
        return self._codes.popleft()

    def decode_image(self, data: bytes) -> Optional[str]:
        return self.decode(data)

    def close(self):
        self.closed = True


def build_decoder(name: str, seed=None):
    if name == "pyzbar":
        return PyzbarDecoder()
    if name == "simulated":
        return SimulatedDecoder(rng=random.Random(seed))
    if name == "fixture":
        return FixtureDecoder()
    raise ValueError(f"Unknown barcode decoder: {name}")
