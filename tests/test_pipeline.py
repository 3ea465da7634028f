import pytest

from conftest import make_descriptor, make_detection, offset_descriptor
from face_timeclock.matcher import DescriptorMatcher
from face_timeclock.pipeline import MESSAGES, FaceQualityGate, IdentityVerifier
from face_timeclock.tracker import ConsecutiveMatchTracker
from face_timeclock.types import OutcomeStatus, RejectReason


def _verifier(roster, required=1):
    return IdentityVerifier(
        roster=roster,
        matcher=DescriptorMatcher(),
        tracker=ConsecutiveMatchTracker(required_matches=required),
    )


def test_missing_detection_is_no_face():
    assessment = FaceQualityGate().evaluate(None)
    assert assessment.passed is False
    assert assessment.reason is RejectReason.NO_FACE
    assert assessment.message == "No face detected. Please position your face in the frame."


@pytest.mark.parametrize("score", [0.0, 0.2, 0.49])
def test_low_confidence_is_unclear_regardless_of_other_signals(score):
    detection = make_detection(score=score, area=5000.0, eye_openness=0.1, tilt=0.5)
    assessment = FaceQualityGate().evaluate(detection)
    assert assessment.reason is RejectReason.UNCLEAR
    assert assessment.message == "Face unclear. Please improve lighting and hold still."


@pytest.mark.parametrize("area", [100.0, 5000.0, 9999.0])
def test_small_face_asks_to_move_closer(area):
    detection = make_detection(score=0.99, area=area)
    assessment = FaceQualityGate().evaluate(detection)
    assert assessment.reason is RejectReason.TOO_FAR
    assert assessment.message == "Please move closer to the camera."


def test_poor_pose_is_rejected():
    detection = make_detection(score=0.6, area=10000.0)
    assessment = FaceQualityGate().evaluate(detection)
    assert assessment.reason is RejectReason.POSE
    assert assessment.message == "Please face the camera directly and hold still."
    assert assessment.quality_score == pytest.approx(0.6 * 0.625)


def test_closed_eyes_fail_liveness():
    detection = make_detection(score=0.7, area=50000.0, eye_openness=0.1)
    assessment = FaceQualityGate().evaluate(detection)
    assert assessment.reason is RejectReason.LIVENESS
    assert assessment.message == "Please keep your eyes open and look at the camera."
    assert assessment.liveness_score == pytest.approx(0.35)


def test_clean_frame_passes_gate():
    detection = make_detection(
        score=0.9,
        area=50000.0,
        tilt=0.05,
        nose_offset_ratio=0.1,
        eye_openness=0.3,
        mouth_openness=0.2,
    )
    assessment = FaceQualityGate().evaluate(detection)
    assert assessment.passed is True
    assert assessment.quality_score == pytest.approx(0.9)
    assert assessment.liveness_score == pytest.approx(0.9)


def test_clean_frame_with_enrolled_descriptor_confirms_on_first_frame(roster):
    detection = make_detection(
        score=0.9,
        area=50000.0,
        tilt=0.05,
        nose_offset_ratio=0.1,
        descriptor=roster[0].descriptor.copy(),
    )
    outcome = _verifier(roster, required=1).process(detection)
    assert outcome.status is OutcomeStatus.CONFIRMED
    assert outcome.employee_id == "E1"
    assert outcome.streak == 1
    assert outcome.confidence == pytest.approx(1.0)
    assert outcome.message == "Welcome, Ada!"


def test_progress_reports_streak_against_required(roster):
    verifier = _verifier(roster, required=3)
    detection = make_detection(descriptor=roster[1].descriptor.copy())

    first = verifier.process(detection)
    assert first.status is OutcomeStatus.PROGRESSING
    assert first.message == "Verifying Grace... (1/3)"

    second = verifier.process(detection)
    assert second.streak == 2

    third = verifier.process(detection)
    assert third.status is OutcomeStatus.CONFIRMED
    assert third.employee_id == "E2"


def test_rejected_frame_breaks_the_streak(roster):
    verifier = _verifier(roster, required=2)
    good = make_detection(descriptor=roster[0].descriptor.copy())
    verifier.process(good)

    rejected = verifier.process(None)
    assert rejected.status is OutcomeStatus.REJECTED
    assert rejected.streak == 0
    assert verifier.tracker.streak == 0

    assert verifier.process(good).status is OutcomeStatus.PROGRESSING


def test_unknown_face_is_not_recognized(roster):
    verifier = _verifier(roster, required=2)
    verifier.process(make_detection(descriptor=roster[0].descriptor.copy()))

    outcome = verifier.process(make_detection(descriptor=make_descriptor(42)))
    assert outcome.reason is RejectReason.NOT_RECOGNIZED
    assert outcome.message == MESSAGES[RejectReason.NOT_RECOGNIZED]
    assert verifier.tracker.streak == 0


def test_switching_candidates_restarts_progress(roster):
    verifier = _verifier(roster, required=3)
    verifier.process(make_detection(descriptor=roster[0].descriptor.copy()))
    verifier.process(make_detection(descriptor=roster[0].descriptor.copy()))

    outcome = verifier.process(make_detection(descriptor=offset_descriptor(roster[1].descriptor, 0.05)))
    assert outcome.status is OutcomeStatus.PROGRESSING
    assert outcome.employee_id == "E2"
    assert outcome.streak == 1


def test_confirmation_is_terminal_until_reset(roster):
    verifier = _verifier(roster, required=1)
    confirmed = verifier.process(make_detection(descriptor=roster[0].descriptor.copy()))

    again = verifier.process(make_detection(descriptor=roster[1].descriptor.copy()))
    assert again is confirmed
    assert verifier.tracker.streak == 1

    verifier.reset()
    assert verifier.confirmed is None
    assert verifier.process(make_detection(descriptor=roster[1].descriptor.copy())).employee_id == "E2"


def test_empty_roster_is_rejected():
    outcome = _verifier([], required=1).process(make_detection())
    assert outcome.status is OutcomeStatus.REJECTED
    assert outcome.reason is RejectReason.EMPTY_ROSTER
