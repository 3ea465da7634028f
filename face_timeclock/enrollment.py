from __future__ import annotations

from typing import Optional, Sequence

from .config import ENROLLMENT_MIN_LIVENESS_SCORE
from .logger import setup_logger
from .matcher import DescriptorMatcher
from .pipeline import FaceQualityGate
from .types import Detection, EnrolledFace, FrameOutcome, OutcomeStatus, RejectReason

CAPTURED_MESSAGE = "Is this you? Please confirm."


class EnrollmentCapturer:
    """Captures one clean descriptor for a new employee.

    A face that already matches someone on the roster ends the capture as a
    duplicate instead of being enrolled twice.
    """

    def __init__(
        self,
        roster: Sequence[EnrolledFace],
        matcher: Optional[DescriptorMatcher] = None,
        gate: Optional[FaceQualityGate] = None,
    ):
        self.roster = tuple(roster)
        self.matcher = matcher or DescriptorMatcher()
        self.gate = gate or FaceQualityGate(min_liveness=ENROLLMENT_MIN_LIVENESS_SCORE)
        self.logger = setup_logger(self.__class__.__name__)
        self._names = {face.employee_id: face.display_name for face in self.roster}
        self._final: Optional[FrameOutcome] = None

    def reset(self) -> None:
        self._final = None

    def process(self, detection: Optional[Detection]) -> FrameOutcome:
        if self._final is not None:
            return self._final

        assessment = self.gate.evaluate(detection)
        if not assessment.passed:
            return FrameOutcome(
                status=OutcomeStatus.REJECTED,
                message=assessment.message,
                reason=assessment.reason,
                quality_score=assessment.quality_score,
                liveness_score=assessment.liveness_score,
            )

        existing = self.matcher.match(detection.descriptor, self.roster)
        if existing is not None:
            name = self._names.get(existing.employee_id, existing.employee_id)
            self.logger.warning("Enrollment blocked: face already registered to %s", existing.employee_id)
            self._final = FrameOutcome(
                status=OutcomeStatus.REJECTED,
                message=f"Face already registered to {name}",
                employee_id=existing.employee_id,
                reason=RejectReason.DUPLICATE_FACE,
                confidence=existing.confidence,
                quality_score=assessment.quality_score,
                liveness_score=assessment.liveness_score,
            )
            return self._final

        self._final = FrameOutcome(
            status=OutcomeStatus.CONFIRMED,
            message=CAPTURED_MESSAGE,
            quality_score=assessment.quality_score,
            liveness_score=assessment.liveness_score,
            descriptor=detection.descriptor.copy(),
        )
        return self._final
