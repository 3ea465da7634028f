from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from .config import MAX_CLOCK_DISTANCE_METERS
from .database import TimeClockDatabase, TimeEntry
from .exceptions import ClockStateError, GeofenceError
from .geofence import GeoPoint, check_geofence
from .logger import setup_logger


class ClockService:
    """Records clock-in/clock-out for an employee whose face was confirmed."""

    def __init__(
        self,
        db: TimeClockDatabase,
        business_location: Optional[GeoPoint] = None,
        max_distance_meters: float = MAX_CLOCK_DISTANCE_METERS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.business_location = business_location
        self.max_distance_meters = max_distance_meters
        self.clock = clock
        self.logger = setup_logger(self.__class__.__name__)

    def clock_in(
        self,
        employee_id: str,
        location: Optional[GeoPoint] = None,
        liveness_score: Optional[float] = None,
    ) -> TimeEntry:
        self._require_in_range(location, "clock in")
        if self.db.get_active_time_entry(employee_id) is not None:
            raise ClockStateError(f"Employee {employee_id} is already clocked in.")

        entry = self.db.create_time_entry(
            employee_id=employee_id,
            clock_in_time=self.clock(),
            liveness_score=liveness_score,
            latitude=location.latitude if location else None,
            longitude=location.longitude if location else None,
        )
        self.logger.info("Clocked in %s (entry %s)", employee_id, entry.id)
        return entry

    def clock_out(
        self,
        employee_id: str,
        location: Optional[GeoPoint] = None,
        liveness_score: Optional[float] = None,
    ) -> TimeEntry:
        self._require_in_range(location, "clock out")
        active = self.db.get_active_time_entry(employee_id)
        if active is None:
            raise ClockStateError(f"Employee {employee_id} has no active time entry.")

        entry = self.db.complete_time_entry(
            active.id,
            clock_out_time=self.clock(),
            liveness_score=liveness_score,
            latitude=location.latitude if location else None,
            longitude=location.longitude if location else None,
        )
        self.logger.info("Clocked out %s (entry %s)", employee_id, entry.id)
        return entry

    def toggle(
        self,
        employee_id: str,
        location: Optional[GeoPoint] = None,
        liveness_score: Optional[float] = None,
    ) -> TimeEntry:
        if self.db.get_active_time_entry(employee_id) is not None:
            return self.clock_out(employee_id, location, liveness_score)
        return self.clock_in(employee_id, location, liveness_score)

    def _require_in_range(self, location: Optional[GeoPoint], action: str) -> None:
        result = check_geofence(location, self.business_location, self.max_distance_meters)
        if result.within_range:
            return
        self.logger.warning("Refused to %s: %s", action, result.message)
        raise GeofenceError(
            f"You must be within {round(self.max_distance_meters)}m of the business to {action}. {result.message}"
        )
