from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np


class OutcomeStatus(str, Enum):
    REJECTED = "rejected"
    PROGRESSING = "progressing"
    CONFIRMED = "confirmed"


class RejectReason(str, Enum):
    NO_FACE = "no_face"
    UNCLEAR = "unclear"
    TOO_FAR = "too_far"
    POSE = "pose"
    LIVENESS = "liveness"
    NOT_RECOGNIZED = "not_recognized"
    DUPLICATE_FACE = "duplicate_face"
    EMPTY_ROSTER = "empty_roster"


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return float(self.width) * float(self.height)


@dataclass
class Detection:
    """Single face found in one frame by the external detector.

    Attributes:
        box: Face bounding box in pixels.
        score: Detector confidence in [0, 1].
        landmarks: 68 ordered (x, y) points in the iBUG layout.
        descriptor: 128-d identity embedding.
    """

    box: BoundingBox
    score: float
    landmarks: np.ndarray
    descriptor: np.ndarray

    def __post_init__(self) -> None:
        self.landmarks = np.asarray(self.landmarks, dtype=np.float64).reshape(-1, 2)
        self.descriptor = np.asarray(self.descriptor, dtype=np.float64).reshape(-1)


@dataclass
class EnrolledFace:
    employee_id: str
    descriptor: np.ndarray
    name: Optional[str] = None

    def __post_init__(self) -> None:
        self.descriptor = np.asarray(self.descriptor, dtype=np.float64).reshape(-1)

    @property
    def display_name(self) -> str:
        return self.name or self.employee_id


@dataclass
class MatchResult:
    employee_id: str
    distance: float
    confidence: float
    ambiguous: bool = False


@dataclass
class TrackerResult:
    confirmed: bool
    employee_id: Optional[str]
    streak: int


@dataclass
class FaceAssessment:
    passed: bool
    message: str
    reason: Optional[RejectReason] = None
    quality_score: float = 0.0
    liveness_score: float = 0.0


@dataclass
class FrameOutcome:
    """What the UI layer shows for one processed frame."""

    status: OutcomeStatus
    message: str
    employee_id: Optional[str] = None
    streak: Optional[int] = None
    reason: Optional[RejectReason] = None
    confidence: Optional[float] = None
    quality_score: float = 0.0
    liveness_score: float = 0.0
    descriptor: Optional[np.ndarray] = field(default=None, repr=False)

    @property
    def confirmed(self) -> bool:
        return self.status is OutcomeStatus.CONFIRMED

    @property
    def terminal(self) -> bool:
        return self.confirmed or self.reason is RejectReason.DUPLICATE_FACE
