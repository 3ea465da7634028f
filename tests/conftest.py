import math
from typing import Optional

import numpy as np
import pytest

from face_timeclock.detector import FaceDetector
from face_timeclock.types import BoundingBox, Detection, EnrolledFace

EYE_HALF_WIDTH = 10.0
EYE_SPACING = 60.0
MOUTH_WIDTH = 50.0


def _eye(center_x: float, openness: float) -> list:
    # EAR = (2h + 2h) / (2 * 20) = h / 10
    h = openness * 10.0
    return [
        (center_x - EYE_HALF_WIDTH, 0.0),
        (center_x - 4.0, -h),
        (center_x + 4.0, -h),
        (center_x + EYE_HALF_WIDTH, 0.0),
        (center_x + 4.0, h),
        (center_x - 4.0, h),
    ]


def make_landmarks(
    eye_openness: float = 0.3,
    second_eye_openness: Optional[float] = None,
    tilt: float = 0.0,
    nose_offset_ratio: float = 0.0,
    mouth_openness: float = 0.2,
    origin: tuple = (200.0, 200.0),
) -> np.ndarray:
    if second_eye_openness is None:
        second_eye_openness = eye_openness

    points = [(-60.0 + 7.5 * i, 40.0) for i in range(17)]
    points += [(-40.0 + 5.0 * i, -20.0) for i in range(5)]
    points += [(20.0 + 5.0 * i, -20.0) for i in range(5)]

    nose_top_x = nose_offset_ratio * EYE_SPACING
    points += [(nose_top_x, 10.0)] + [(0.0, 15.0 + 2.0 * i) for i in range(8)]

    points += _eye(-EYE_SPACING / 2.0, eye_openness)
    points += _eye(EYE_SPACING / 2.0, second_eye_openness)

    gap = mouth_openness * MOUTH_WIDTH
    mouth = [(0.0, 60.0)] * 20
    mouth[0] = (-MOUTH_WIDTH / 2.0, 60.0)
    mouth[6] = (MOUTH_WIDTH / 2.0, 60.0)
    mouth[14] = (0.0, 60.0 - gap / 2.0)
    mouth[18] = (0.0, 60.0 + gap / 2.0)
    points += mouth

    assert len(points) == 68
    cos_t, sin_t = math.cos(tilt), math.sin(tilt)
    rotated = [
        (origin[0] + x * cos_t - y * sin_t, origin[1] + x * sin_t + y * cos_t)
        for x, y in points
    ]
    return np.array(rotated, dtype=np.float64)


def make_descriptor(seed: int = 0, scale: float = 0.1) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.normal(0.0, scale, size=128)


def offset_descriptor(base: np.ndarray, distance: float, axis: int = 0) -> np.ndarray:
    shifted = np.array(base, dtype=np.float64, copy=True)
    shifted[axis] += distance
    return shifted


def make_detection(
    score: float = 0.9,
    area: float = 50000.0,
    descriptor: Optional[np.ndarray] = None,
    **landmark_kwargs,
) -> Detection:
    height = 200.0
    return Detection(
        box=BoundingBox(x=100.0, y=100.0, width=area / height, height=height),
        score=score,
        landmarks=make_landmarks(**landmark_kwargs),
        descriptor=make_descriptor() if descriptor is None else descriptor,
    )


class ScriptedDetector(FaceDetector):
    """Stand-in for the external detector that replays a fixed script."""

    def __init__(self, script):
        self.script = list(script)
        self.calls = 0

    def detect(self, frame):
        index = min(self.calls, len(self.script) - 1)
        self.calls += 1
        item = self.script[index]
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def roster():
    return [
        EnrolledFace(employee_id="E1", descriptor=make_descriptor(1), name="Ada"),
        EnrolledFace(employee_id="E2", descriptor=make_descriptor(2), name="Grace"),
    ]


@pytest.fixture
def blank_frame():
    return np.zeros((480, 640, 3), dtype=np.uint8)
