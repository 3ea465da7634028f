from __future__ import annotations

import os
import time
from typing import List, Optional, Tuple

import cv2
import numpy as np

from .config import FRAME_FPS, FRAME_HEIGHT, FRAME_WIDTH
from .exceptions import CameraError


def capture_backends() -> List[Tuple[str, Optional[int]]]:
    backends: List[Tuple[str, Optional[int]]] = [("Auto", getattr(cv2, "CAP_ANY", None))]
    if os.name == "nt":
        # DirectShow is usually steadier than Media Foundation for laptop webcams.
        backends.insert(0, ("DirectShow", getattr(cv2, "CAP_DSHOW", None)))
        backends.append(("Media Foundation", getattr(cv2, "CAP_MSMF", None)))
    return backends


class CameraStream:
    """Webcam frame source for a capture session."""

    def __init__(self, camera_index: int = 0, width: int = FRAME_WIDTH, height: int = FRAME_HEIGHT, fps: int = FRAME_FPS):
        self.camera_index = camera_index
        self.width = width
        self.height = height
        self.fps = fps
        self.cap: Optional[cv2.VideoCapture] = None
        self.backend_name: Optional[str] = None

    def __enter__(self) -> "CameraStream":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __call__(self) -> np.ndarray:
        return self.read()

    def open(self) -> None:
        attempted: List[str] = []
        for name, backend in capture_backends():
            attempted.append(name)
            cap = cv2.VideoCapture(self.camera_index) if backend is None else cv2.VideoCapture(self.camera_index, backend)
            if cap.isOpened() and self._probe(cap):
                cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
                cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
                cap.set(cv2.CAP_PROP_FPS, self.fps)
                self.cap = cap
                self.backend_name = name
                return
            cap.release()

        raise CameraError(
            f"Unable to open webcam index {self.camera_index}. Tried backends: {', '.join(attempted)}."
        )

    @staticmethod
    def _probe(cap: cv2.VideoCapture, attempts: int = 6) -> bool:
        # Some backends report opened but never deliver a frame.
        for _ in range(attempts):
            ok, frame = cap.read()
            if ok and frame is not None:
                return True
            time.sleep(0.03)
        return False

    def read(self) -> np.ndarray:
        if self.cap is None:
            raise CameraError("Webcam stream is not initialized.")

        success, frame = self.cap.read()
        if not success or frame is None:
            raise CameraError("Failed to read frame from webcam.")
        return frame

    def close(self) -> None:
        if self.cap is not None:
            self.cap.release()
            self.cap = None
