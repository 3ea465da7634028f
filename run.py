import argparse
import sys
from typing import Optional

from pydantic import ValidationError

from face_timeclock.camera import CameraStream
from face_timeclock.clock_service import ClockService
from face_timeclock.config import (
    CAMERA_INDEX,
    DB_PATH,
    MATCH_THRESHOLD,
    MAX_CLOCK_DISTANCE_METERS,
    POLL_INTERVAL_SECONDS,
    REQUIRED_CONSECUTIVE_MATCHES,
)
from face_timeclock.database import TimeClockDatabase
from face_timeclock.detector import DlibFaceDetector
from face_timeclock.enrollment import EnrollmentCapturer
from face_timeclock.exceptions import TimeClockError
from face_timeclock.geofence import GeoPoint
from face_timeclock.logger import setup_logger
from face_timeclock.matcher import DescriptorMatcher
from face_timeclock.pipeline import IdentityVerifier
from face_timeclock.schemas import GeoPointIn
from face_timeclock.session import CaptureSession
from face_timeclock.tracker import ConsecutiveMatchTracker
from face_timeclock.types import FrameOutcome, RejectReason


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Face-verified employee time clock"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    enroll = subparsers.add_parser("enroll", help="Capture and store an employee face")
    enroll.add_argument("--id", required=True, dest="employee_id", help="Employee ID")
    enroll.add_argument("--name", required=True, help="Employee name")
    enroll.add_argument("--camera", type=int, default=CAMERA_INDEX, help="Webcam index")
    enroll.add_argument("--timeout", type=float, default=60.0, help="Seconds to wait for a usable face")

    clock = subparsers.add_parser("clock", help="Verify a face and clock the employee in or out")
    clock.add_argument("--camera", type=int, default=CAMERA_INDEX, help="Webcam index")
    clock.add_argument("--action", choices=("auto", "in", "out"), default="auto", help="Clock action")
    clock.add_argument("--lat", type=float, default=None, help="Current latitude")
    clock.add_argument("--lon", type=float, default=None, help="Current longitude")
    clock.add_argument("--business-lat", type=float, default=None, help="Business latitude")
    clock.add_argument("--business-lon", type=float, default=None, help="Business longitude")
    clock.add_argument(
        "--max-distance",
        type=float,
        default=MAX_CLOCK_DISTANCE_METERS,
        help="Allowed distance from the business in meters",
    )
    clock.add_argument(
        "--required-matches",
        type=int,
        default=REQUIRED_CONSECUTIVE_MATCHES,
        help="Consecutive matching frames needed to confirm identity",
    )
    clock.add_argument(
        "--threshold",
        type=float,
        default=MATCH_THRESHOLD,
        help="Euclidean distance below which a face matches",
    )
    clock.add_argument("--timeout", type=float, default=60.0, help="Seconds to wait for confirmation")

    employees = subparsers.add_parser("list-employees", help="List active employees")
    employees.add_argument("--limit", type=int, default=200, help="Max rows to show")

    entries = subparsers.add_parser("entries", help="List recent time entries")
    entries.add_argument("--id", default="", dest="employee_id", help="Filter by employee ID")
    entries.add_argument("--limit", type=int, default=50, help="Max rows to show")

    return parser


def _point(lat: Optional[float], lon: Optional[float]) -> Optional[GeoPoint]:
    if lat is None or lon is None:
        return None
    try:
        checked = GeoPointIn(latitude=lat, longitude=lon)
    except ValidationError as exc:
        raise TimeClockError(f"Invalid coordinates ({lat}, {lon}): {exc.errors()[0]['msg']}") from exc
    return GeoPoint(latitude=checked.latitude, longitude=checked.longitude)


def _print_outcome(outcome: FrameOutcome) -> None:
    print(f"[{outcome.status.value}] {outcome.message}")


def _enrollment_failure(outcome: Optional[FrameOutcome]) -> Optional[str]:
    if outcome is None:
        return "Enrollment did not capture a face."
    if outcome.reason is RejectReason.DUPLICATE_FACE:
        return outcome.message
    if outcome.descriptor is None:
        return "Enrollment did not capture a face."
    return None


def _capture(processor, camera_index: int, timeout: float) -> Optional[FrameOutcome]:
    detector = DlibFaceDetector()
    with CameraStream(camera_index) as cam:
        session = CaptureSession(
            processor=processor,
            detector=detector,
            frame_source=cam.read,
            interval_seconds=POLL_INTERVAL_SECONDS,
            on_outcome=_print_outcome,
        )
        session.start()
        try:
            return session.wait(timeout=timeout)
        finally:
            session.stop()


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    logger = setup_logger("main")

    try:
        if args.command == "enroll":
            db = TimeClockDatabase(DB_PATH)
            capturer = EnrollmentCapturer(roster=db.load_roster())
            outcome = _capture(capturer, args.camera, args.timeout)
            failure = _enrollment_failure(outcome)
            if failure:
                print(failure)
                return 1
            db.upsert_employee(employee_id=args.employee_id, name=args.name, descriptor=outcome.descriptor)
            logger.info("Enrolled %s (%s)", args.employee_id, args.name)
            print(f"Employee registered successfully: {args.employee_id} ({args.name}).")
            return 0

        if args.command == "clock":
            db = TimeClockDatabase(DB_PATH)
            location = _point(args.lat, args.lon)
            business = _point(args.business_lat, args.business_lon)
            verifier = IdentityVerifier(
                roster=db.load_roster(),
                matcher=DescriptorMatcher(threshold=args.threshold),
                tracker=ConsecutiveMatchTracker(required_matches=args.required_matches),
            )
            outcome = _capture(verifier, args.camera, args.timeout)
            if outcome is None or not outcome.confirmed:
                print("No employee confirmed.")
                return 1

            service = ClockService(db, business_location=business, max_distance_meters=args.max_distance)
            if args.action == "in":
                entry = service.clock_in(outcome.employee_id, location, outcome.liveness_score)
            elif args.action == "out":
                entry = service.clock_out(outcome.employee_id, location, outcome.liveness_score)
            else:
                entry = service.toggle(outcome.employee_id, location, outcome.liveness_score)

            if entry.status == "active":
                print("Clocked in successfully!")
            else:
                print("Clocked out successfully!")
            return 0

        if args.command == "list-employees":
            db = TimeClockDatabase(DB_PATH)
            records = db.list_employees()
            if not records:
                print("No employees registered.")
                return 0

            print(f"{'Employee ID':<16} {'Face':<6} {'Name'}")
            print("-" * 52)
            for record in records[: args.limit]:
                has_face = "yes" if record.face_encoding else "no"
                print(f"{record.employee_id:<16} {has_face:<6} {record.name}")
            return 0

        if args.command == "entries":
            db = TimeClockDatabase(DB_PATH)
            rows = db.list_time_entries(employee_id=args.employee_id, limit=args.limit)
            if not rows:
                print("No time entries.")
                return 0

            print(f"{'Employee ID':<16} {'Clock in':<20} {'Clock out':<20} {'Status'}")
            print("-" * 68)
            for entry in rows:
                print(
                    f"{entry.employee_id:<16} {entry.clock_in_time:<20} "
                    f"{entry.clock_out_time or '-':<20} {entry.status}"
                )
            return 0

    except TimeClockError as exc:
        logger.error("Application error: %s", exc)
        print(f"Error: {exc}")
        return 1
    except KeyboardInterrupt:
        print("\nStopped by user.")
        return 1
    except Exception as exc:
        logger.exception("Unexpected failure")
        print(f"Unexpected error: {exc}")
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
