from datetime import datetime

import numpy as np
import pytest

from conftest import make_descriptor
from face_timeclock.database import TimeClockDatabase
from face_timeclock.exceptions import DatabaseError


@pytest.fixture
def db(tmp_path):
    return TimeClockDatabase(tmp_path / "timeclock.db")


def test_enrolled_employee_appears_in_roster(db):
    descriptor = make_descriptor(5)
    db.upsert_employee("E1", "Ada", descriptor)

    roster = db.load_roster()
    assert [face.employee_id for face in roster] == ["E1"]
    assert roster[0].name == "Ada"
    np.testing.assert_allclose(roster[0].descriptor, descriptor)


def test_upsert_replaces_face_and_name(db):
    db.upsert_employee("E1", "Ada", make_descriptor(5))
    replacement = make_descriptor(6)
    db.upsert_employee("E1", "Ada L.", replacement)

    records = db.list_employees()
    assert len(records) == 1
    assert records[0].name == "Ada L."
    np.testing.assert_allclose(db.load_roster()[0].descriptor, replacement)


def test_deactivated_employee_leaves_roster(db):
    db.upsert_employee("E1", "Ada", make_descriptor(5))
    assert db.deactivate_employee("E1") is True

    assert db.load_roster() == []
    assert [r.employee_id for r in db.list_employees(active_only=False)] == ["E1"]
    assert db.deactivate_employee("missing") is False


def test_descriptor_size_is_enforced(db):
    with pytest.raises(DatabaseError):
        db.upsert_employee("E1", "Ada", np.zeros(64))


def test_time_entry_lifecycle(db):
    db.upsert_employee("E1", "Ada", make_descriptor(5))
    entry = db.create_time_entry("E1", datetime(2026, 3, 2, 9, 0), liveness_score=0.9, latitude=1.0, longitude=2.0)
    assert entry.status == "active"
    assert db.get_active_time_entry("E1").id == entry.id

    done = db.complete_time_entry(entry.id, datetime(2026, 3, 2, 17, 0), liveness_score=0.8)
    assert done.status == "completed"
    assert done.clock_out_time == "2026-03-02T17:00:00"
    assert done.clock_in_latitude == 1.0
    assert db.get_active_time_entry("E1") is None
    assert [e.id for e in db.list_time_entries(employee_id="E1")] == [entry.id]


def test_completing_a_closed_entry_fails(db):
    db.upsert_employee("E1", "Ada", make_descriptor(5))
    entry = db.create_time_entry("E1", datetime(2026, 3, 2, 9, 0))
    db.complete_time_entry(entry.id, datetime(2026, 3, 2, 17, 0))

    with pytest.raises(DatabaseError):
        db.complete_time_entry(entry.id, datetime(2026, 3, 2, 18, 0))


def test_time_entry_requires_known_employee(db):
    with pytest.raises(DatabaseError):
        db.create_time_entry("ghost", datetime(2026, 3, 2, 9, 0))
