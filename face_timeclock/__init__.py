from .detector import DlibFaceDetector, FaceDetector
from .enrollment import EnrollmentCapturer
from .matcher import DescriptorMatcher
from .pipeline import FaceQualityGate, IdentityVerifier
from .session import CaptureSession
from .tracker import ConsecutiveMatchTracker
from .types import (
    BoundingBox,
    Detection,
    EnrolledFace,
    FrameOutcome,
    MatchResult,
    OutcomeStatus,
    RejectReason,
)

__all__ = [
    "BoundingBox",
    "CaptureSession",
    "ConsecutiveMatchTracker",
    "DescriptorMatcher",
    "Detection",
    "DlibFaceDetector",
    "EnrolledFace",
    "EnrollmentCapturer",
    "FaceDetector",
    "FaceQualityGate",
    "FrameOutcome",
    "IdentityVerifier",
    "MatchResult",
    "OutcomeStatus",
    "RejectReason",
]
