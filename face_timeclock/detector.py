from __future__ import annotations

import math
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from .config import (
    DETECTOR_SCORE_FLOOR,
    DETECTOR_UPSAMPLE,
    RECOGNITION_MODEL_PATH,
    SHAPE_MODEL_PATH,
)
from .exceptions import DetectorError
from .types import BoundingBox, Detection

try:
    import dlib
except Exception:  # pragma: no cover - runtime dependency guard
    dlib = None


class FaceDetector(ABC):
    """Finds at most one face per frame and describes it."""

    @abstractmethod
    def detect(self, frame: np.ndarray) -> Optional[Detection]:
        """Return the most confident face in ``frame`` or ``None``."""


class DlibFaceDetector(FaceDetector):
    """HOG face detector, 68-point shape predictor and 128-d ResNet descriptor."""

    def __init__(
        self,
        shape_model_path: Path = SHAPE_MODEL_PATH,
        recognition_model_path: Path = RECOGNITION_MODEL_PATH,
        upsample: int = DETECTOR_UPSAMPLE,
        score_floor: float = DETECTOR_SCORE_FLOOR,
    ):
        if dlib is None:
            raise DetectorError("dlib is required. Install the 'dlib' extra.")

        for path in (shape_model_path, recognition_model_path):
            if not Path(path).is_file():
                raise DetectorError(f"Face model file not found: {path}")

        self.upsample = max(0, int(upsample))
        self.score_floor = score_floor
        try:
            self.detector = dlib.get_frontal_face_detector()
            self.shape_predictor = dlib.shape_predictor(str(shape_model_path))
            self.encoder = dlib.face_recognition_model_v1(str(recognition_model_path))
        except Exception as exc:
            raise DetectorError(f"Failed to initialize face models: {exc}") from exc

    def detect(self, frame: np.ndarray) -> Optional[Detection]:
        try:
            rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            rects, scores, _ = self.detector.run(rgb, self.upsample, self.score_floor)
        except Exception as exc:
            raise DetectorError(f"Face detection failed: {exc}") from exc

        if not rects:
            return None

        best = int(np.argmax(scores))
        rect = rects[best]
        try:
            shape = self.shape_predictor(rgb, rect)
            descriptor = self.encoder.compute_face_descriptor(rgb, shape, 1)
        except Exception as exc:
            raise DetectorError(f"Descriptor extraction failed: {exc}") from exc

        landmarks = np.array([(point.x, point.y) for point in shape.parts()], dtype=np.float64)
        return Detection(
            box=BoundingBox(
                x=float(rect.left()),
                y=float(rect.top()),
                width=float(rect.width()),
                height=float(rect.height()),
            ),
            score=self._squash(float(scores[best])),
            landmarks=landmarks,
            descriptor=np.asarray(descriptor, dtype=np.float64),
        )

    @staticmethod
    def _squash(margin: float) -> float:
        # HOG scores are SVM margins; map them onto [0, 1].
        return 1.0 / (1.0 + math.exp(-margin))
