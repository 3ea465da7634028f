from __future__ import annotations

from typing import Optional, Sequence

from .config import (
    IDEAL_FACE_AREA,
    MIN_DETECTION_CONFIDENCE,
    MIN_FACE_AREA,
    MIN_LIVENESS_SCORE,
    MIN_QUALITY_SCORE,
)
from .logger import setup_logger
from .matcher import DescriptorMatcher
from .scoring import liveness_score, quality_score
from .tracker import ConsecutiveMatchTracker
from .types import (
    Detection,
    EnrolledFace,
    FaceAssessment,
    FrameOutcome,
    OutcomeStatus,
    RejectReason,
)

MESSAGES = {
    RejectReason.NO_FACE: "No face detected. Please position your face in the frame.",
    RejectReason.UNCLEAR: "Face unclear. Please improve lighting and hold still.",
    RejectReason.TOO_FAR: "Please move closer to the camera.",
    RejectReason.POSE: "Please face the camera directly and hold still.",
    RejectReason.LIVENESS: "Please keep your eyes open and look at the camera.",
    RejectReason.NOT_RECOGNIZED: "Face not recognized. Please sign up first.",
    RejectReason.EMPTY_ROSTER: "No enrolled employees found. Please sign up first.",
}
VERIFIED_MESSAGE = "Face verified successfully!"


class FaceQualityGate:
    """Ordered accept/reject checks applied to a single detection.

    The first failing check decides the rejection message.
    """

    def __init__(
        self,
        min_confidence: float = MIN_DETECTION_CONFIDENCE,
        min_face_area: float = MIN_FACE_AREA,
        ideal_face_area: float = IDEAL_FACE_AREA,
        min_quality: float = MIN_QUALITY_SCORE,
        min_liveness: float = MIN_LIVENESS_SCORE,
    ):
        self.min_confidence = min_confidence
        self.min_face_area = min_face_area
        self.ideal_face_area = ideal_face_area
        self.min_quality = min_quality
        self.min_liveness = min_liveness

    def evaluate(self, detection: Optional[Detection]) -> FaceAssessment:
        if detection is None:
            return self._reject(RejectReason.NO_FACE)

        if detection.score < self.min_confidence:
            return self._reject(RejectReason.UNCLEAR, quality=detection.score)

        if detection.box.area < self.min_face_area:
            return self._reject(RejectReason.TOO_FAR, quality=0.3)

        quality = quality_score(detection, ideal_area=self.ideal_face_area)
        liveness = liveness_score(detection, min_face_area=self.min_face_area)

        if quality < self.min_quality:
            return self._reject(RejectReason.POSE, quality=quality, liveness=liveness)

        if liveness < self.min_liveness:
            return self._reject(RejectReason.LIVENESS, quality=quality, liveness=liveness)

        return FaceAssessment(
            passed=True,
            message=VERIFIED_MESSAGE,
            quality_score=quality,
            liveness_score=liveness,
        )

    @staticmethod
    def _reject(reason: RejectReason, quality: float = 0.0, liveness: float = 0.0) -> FaceAssessment:
        return FaceAssessment(
            passed=False,
            message=MESSAGES[reason],
            reason=reason,
            quality_score=quality,
            liveness_score=liveness,
        )


class IdentityVerifier:
    """Turns per-frame detections into a confirmed employee identity.

    One instance belongs to one capture session. Once an identity is
    confirmed the verifier stops consuming frames until ``reset()``.
    """

    def __init__(
        self,
        roster: Sequence[EnrolledFace],
        matcher: Optional[DescriptorMatcher] = None,
        tracker: Optional[ConsecutiveMatchTracker] = None,
        gate: Optional[FaceQualityGate] = None,
    ):
        self.roster = tuple(roster)
        self.matcher = matcher or DescriptorMatcher()
        self.tracker = tracker or ConsecutiveMatchTracker()
        self.gate = gate or FaceQualityGate()
        self.logger = setup_logger(self.__class__.__name__)
        self._names = {face.employee_id: face.display_name for face in self.roster}
        self._confirmed: Optional[FrameOutcome] = None

    @property
    def required_matches(self) -> int:
        return self.tracker.required_matches

    @property
    def confirmed(self) -> Optional[FrameOutcome]:
        return self._confirmed

    def reset(self) -> None:
        self.tracker.reset()
        self._confirmed = None

    def process(self, detection: Optional[Detection]) -> FrameOutcome:
        if self._confirmed is not None:
            return self._confirmed

        if not self.roster:
            self.tracker.add_match(None)
            return FrameOutcome(
                status=OutcomeStatus.REJECTED,
                message=MESSAGES[RejectReason.EMPTY_ROSTER],
                reason=RejectReason.EMPTY_ROSTER,
                streak=0,
            )

        assessment = self.gate.evaluate(detection)
        if not assessment.passed:
            self.tracker.add_match(None)
            return FrameOutcome(
                status=OutcomeStatus.REJECTED,
                message=assessment.message,
                reason=assessment.reason,
                streak=0,
                quality_score=assessment.quality_score,
                liveness_score=assessment.liveness_score,
            )

        match = self.matcher.match(detection.descriptor, self.roster)
        if match is None:
            self.tracker.add_match(None)
            return FrameOutcome(
                status=OutcomeStatus.REJECTED,
                message=MESSAGES[RejectReason.NOT_RECOGNIZED],
                reason=RejectReason.NOT_RECOGNIZED,
                streak=0,
                quality_score=assessment.quality_score,
                liveness_score=assessment.liveness_score,
            )

        tracked = self.tracker.add_match(match.employee_id)
        name = self._names.get(match.employee_id, match.employee_id)

        if tracked.confirmed:
            outcome = FrameOutcome(
                status=OutcomeStatus.CONFIRMED,
                message=f"Welcome, {name}!",
                employee_id=match.employee_id,
                streak=tracked.streak,
                confidence=match.confidence,
                quality_score=assessment.quality_score,
                liveness_score=assessment.liveness_score,
            )
            self._confirmed = outcome
            self.logger.info(
                "Confirmed %s after %d consecutive matches (distance=%.3f, confidence=%.2f)",
                match.employee_id,
                tracked.streak,
                match.distance,
                match.confidence,
            )
            return outcome

        return FrameOutcome(
            status=OutcomeStatus.PROGRESSING,
            message=f"Verifying {name}... ({tracked.streak}/{self.required_matches})",
            employee_id=match.employee_id,
            streak=tracked.streak,
            confidence=match.confidence,
            quality_score=assessment.quality_score,
            liveness_score=assessment.liveness_score,
        )
