import pytest

from face_timeclock.tracker import ConsecutiveMatchTracker


def test_single_required_match_confirms_immediately():
    result = ConsecutiveMatchTracker(required_matches=1).add_match("E1")
    assert result.confirmed is True
    assert result.streak == 1
    assert result.employee_id == "E1"


def test_streak_builds_until_required():
    tracker = ConsecutiveMatchTracker(required_matches=3)
    assert tracker.add_match("E1").confirmed is False
    assert tracker.add_match("E1").confirmed is False
    third = tracker.add_match("E1")
    assert third.confirmed is True
    assert third.streak == 3


def test_candidate_change_restarts_streak():
    tracker = ConsecutiveMatchTracker(required_matches=3)
    tracker.add_match("E1")
    tracker.add_match("E1")
    result = tracker.add_match("E2")
    assert result.confirmed is False
    assert result.streak == 1
    assert result.employee_id == "E2"


def test_candidate_change_does_not_confirm_even_with_one_required():
    tracker = ConsecutiveMatchTracker(required_matches=1)
    tracker.add_match("E1")
    result = tracker.add_match("E2")
    assert result.confirmed is False
    assert result.streak == 1
    assert tracker.add_match("E2").confirmed is True


def test_no_match_resets_streak():
    tracker = ConsecutiveMatchTracker(required_matches=2)
    tracker.add_match("E1")
    result = tracker.add_match(None)
    assert result.confirmed is False
    assert result.streak == 0
    assert result.employee_id is None
    assert tracker.add_match("E1").streak == 1


def test_history_is_bounded_but_streak_keeps_counting():
    tracker = ConsecutiveMatchTracker(required_matches=2)
    for _ in range(10):
        result = tracker.add_match("E1")
    assert result.streak == 10
    assert len(tracker.history) == 4


def test_reset_clears_state():
    tracker = ConsecutiveMatchTracker(required_matches=2)
    tracker.add_match("E1")
    tracker.reset()
    assert tracker.streak == 0
    assert tracker.candidate is None


@pytest.mark.parametrize("required", [0, -1])
def test_required_matches_must_be_positive(required):
    with pytest.raises(ValueError):
        ConsecutiveMatchTracker(required_matches=required)
