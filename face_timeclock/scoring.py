"""Frame quality and liveness heuristics over 68-point face landmarks.

Landmark groups follow the iBUG 68-point layout used by the detector:
nose 27-35, first eye 36-41, second eye 42-47 and mouth 48-67.
"""

from __future__ import annotations

import math

import numpy as np

from .config import IDEAL_FACE_AREA, MIN_FACE_AREA
from .types import Detection

NOSE = slice(27, 36)
FIRST_EYE = slice(36, 42)
SECOND_EYE = slice(42, 48)
MOUTH = slice(48, 68)

TILT_LIMIT_RADIANS = 0.2
TILT_PENALTY = 0.7
YAW_OFFSET_RATIO = 0.3
YAW_PENALTY = 0.6

EYE_CLOSED = 0.2
EYE_PARTIALLY_CLOSED = 0.25
EYE_SYMMETRY_MIN = 0.5
MOUTH_OPEN_MAX = 0.5


def _distance(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.hypot(b[0] - a[0], b[1] - a[1]))


def eye_openness(eye: np.ndarray) -> float:
    """Eye aspect ratio: mean of the two vertical spans over the horizontal span."""
    horizontal = _distance(eye[0], eye[3])
    if horizontal <= 1e-9:
        return 0.0
    vertical_1 = _distance(eye[1], eye[5])
    vertical_2 = _distance(eye[2], eye[4])
    return (vertical_1 + vertical_2) / (2.0 * horizontal)


def mouth_openness(mouth: np.ndarray) -> float:
    """Inner-lip gap relative to mouth corner-to-corner width."""
    width = _distance(mouth[0], mouth[6])
    if width <= 1e-9:
        return 0.0
    return _distance(mouth[14], mouth[18]) / width


def size_factor(area: float, ideal_area: float = IDEAL_FACE_AREA) -> float:
    return 0.5 + 0.5 * min(area / ideal_area, 1.0)


def quality_score(detection: Detection, ideal_area: float = IDEAL_FACE_AREA) -> float:
    landmarks = detection.landmarks
    score = 1.0
    score *= detection.score
    score *= size_factor(detection.box.area, ideal_area)

    first_eye_center = landmarks[FIRST_EYE].mean(axis=0)
    second_eye_center = landmarks[SECOND_EYE].mean(axis=0)
    tilt = abs(
        math.atan2(
            second_eye_center[1] - first_eye_center[1],
            second_eye_center[0] - first_eye_center[0],
        )
    )
    if tilt > TILT_LIMIT_RADIANS:
        score *= TILT_PENALTY

    nose_top = landmarks[NOSE][0]
    eye_midpoint = (first_eye_center + second_eye_center) / 2.0
    horizontal_offset = abs(nose_top[0] - eye_midpoint[0])
    eye_distance = _distance(first_eye_center, second_eye_center)
    if horizontal_offset > eye_distance * YAW_OFFSET_RATIO:
        score *= YAW_PENALTY

    return min(score, 1.0)


def liveness_score(detection: Detection, min_face_area: float = MIN_FACE_AREA) -> float:
    landmarks = detection.landmarks
    score = detection.score

    if detection.box.area < min_face_area:
        score *= 0.5

    first_open = eye_openness(landmarks[FIRST_EYE])
    second_open = eye_openness(landmarks[SECOND_EYE])
    if first_open < EYE_CLOSED or second_open < EYE_CLOSED:
        score *= 0.5
    elif first_open < EYE_PARTIALLY_CLOSED or second_open < EYE_PARTIALLY_CLOSED:
        score *= 0.7

    widest = max(first_open, second_open)
    if widest > 0.0 and min(first_open, second_open) / widest < EYE_SYMMETRY_MIN:
        # Winks and printed photos tend to show one eye much more open.
        score *= 0.8

    if mouth_openness(landmarks[MOUTH]) > MOUTH_OPEN_MAX:
        score *= 0.8

    return min(score, 1.0)
