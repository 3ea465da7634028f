import json
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

import numpy as np

from .config import DESCRIPTOR_SIZE
from .encoding import descriptor_to_mapping
from .exceptions import DatabaseError, EncodingError
from .schemas import roster_from_rows
from .types import EnrolledFace


@dataclass
class EmployeeRecord:
    employee_id: str
    name: str
    face_encoding: Optional[dict[str, float]]
    is_active: bool
    created_at: str
    updated_at: str


@dataclass
class TimeEntry:
    id: str
    employee_id: str
    clock_in_time: str
    clock_out_time: Optional[str]
    status: str
    clock_in_liveness_score: Optional[float]
    clock_out_liveness_score: Optional[float]
    clock_in_latitude: Optional[float]
    clock_in_longitude: Optional[float]
    clock_out_latitude: Optional[float]
    clock_out_longitude: Optional[float]


class TimeClockDatabase:
    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _initialize(self) -> None:
        try:
            with self._connect() as conn:
                conn.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS employees (
                        employee_id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        face_encoding TEXT,
                        is_active INTEGER NOT NULL DEFAULT 1,
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );

                    CREATE TABLE IF NOT EXISTS time_entries (
                        id TEXT PRIMARY KEY,
                        employee_id TEXT NOT NULL,
                        clock_in_time TEXT NOT NULL,
                        clock_out_time TEXT,
                        status TEXT NOT NULL CHECK (status IN ('active', 'completed')),
                        clock_in_liveness_score REAL,
                        clock_out_liveness_score REAL,
                        clock_in_latitude REAL,
                        clock_in_longitude REAL,
                        clock_out_latitude REAL,
                        clock_out_longitude REAL,
                        FOREIGN KEY (employee_id) REFERENCES employees(employee_id)
                    );

                    CREATE INDEX IF NOT EXISTS idx_time_entries_employee_status
                        ON time_entries (employee_id, status);
                    """
                )
        except sqlite3.Error as exc:
            raise DatabaseError(f"Failed to initialize database: {exc}") from exc

    def upsert_employee(self, employee_id: str, name: str, descriptor: np.ndarray) -> None:
        vector = np.asarray(descriptor, dtype=np.float64)
        if vector.ndim != 1:
            raise DatabaseError("Descriptor must be a 1D vector.")
        if vector.size != DESCRIPTOR_SIZE:
            raise DatabaseError(f"Descriptor must have {DESCRIPTOR_SIZE} values, got {vector.size}.")

        now = datetime.now().isoformat(timespec="seconds")
        encoded = json.dumps(descriptor_to_mapping(vector))

        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO employees (
                        employee_id, name, face_encoding, is_active, created_at, updated_at
                    ) VALUES (?, ?, ?, 1, ?, ?)
                    ON CONFLICT(employee_id) DO UPDATE SET
                        name = excluded.name,
                        face_encoding = excluded.face_encoding,
                        is_active = 1,
                        updated_at = excluded.updated_at
                    """,
                    (employee_id, name, encoded, now, now),
                )
        except sqlite3.Error as exc:
            raise DatabaseError(f"Failed to save employee {employee_id}: {exc}") from exc

    def deactivate_employee(self, employee_id: str) -> bool:
        now = datetime.now().isoformat(timespec="seconds")
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "UPDATE employees SET is_active = 0, updated_at = ? WHERE employee_id = ?",
                    (now, employee_id),
                )
                return cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise DatabaseError(f"Failed to deactivate employee {employee_id}: {exc}") from exc

    def list_employees(self, active_only: bool = True) -> List[EmployeeRecord]:
        sql = """
            SELECT employee_id, name, face_encoding, is_active, created_at, updated_at
            FROM employees
        """
        if active_only:
            sql += " WHERE is_active = 1"
        sql += " ORDER BY employee_id ASC"

        try:
            with self._connect() as conn:
                rows = conn.execute(sql).fetchall()
        except sqlite3.Error as exc:
            raise DatabaseError(f"Failed to load employees: {exc}") from exc

        records: List[EmployeeRecord] = []
        for row in rows:
            try:
                encoding = json.loads(row["face_encoding"]) if row["face_encoding"] else None
            except json.JSONDecodeError as exc:
                raise EncodingError(f"Stored face encoding for {row['employee_id']} is corrupt: {exc}") from exc
            records.append(
                EmployeeRecord(
                    employee_id=row["employee_id"],
                    name=row["name"],
                    face_encoding=encoding,
                    is_active=bool(row["is_active"]),
                    created_at=row["created_at"],
                    updated_at=row["updated_at"],
                )
            )
        return records

    def load_roster(self) -> List[EnrolledFace]:
        """Active employees with a stored face, ready for matching."""
        rows = [
            {
                "id": record.employee_id,
                "name": record.name,
                "face_encoding": record.face_encoding,
                "is_active": record.is_active,
            }
            for record in self.list_employees(active_only=True)
        ]
        return roster_from_rows(rows)

    def create_time_entry(
        self,
        employee_id: str,
        clock_in_time: datetime,
        liveness_score: Optional[float] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> TimeEntry:
        entry_id = uuid.uuid4().hex
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO time_entries (
                        id, employee_id, clock_in_time, status,
                        clock_in_liveness_score, clock_in_latitude, clock_in_longitude
                    ) VALUES (?, ?, ?, 'active', ?, ?, ?)
                    """,
                    (
                        entry_id,
                        employee_id,
                        clock_in_time.isoformat(timespec="seconds"),
                        liveness_score,
                        latitude,
                        longitude,
                    ),
                )
        except sqlite3.Error as exc:
            raise DatabaseError(f"Failed to clock in {employee_id}: {exc}") from exc

        entry = self.get_time_entry(entry_id)
        if entry is None:
            raise DatabaseError(f"Time entry {entry_id} vanished after insert.")
        return entry

    def get_time_entry(self, entry_id: str) -> Optional[TimeEntry]:
        return self._fetch_one_entry("SELECT * FROM time_entries WHERE id = ?", (entry_id,))

    def get_active_time_entry(self, employee_id: str) -> Optional[TimeEntry]:
        return self._fetch_one_entry(
            """
            SELECT * FROM time_entries
            WHERE employee_id = ? AND status = 'active'
            ORDER BY clock_in_time DESC
            LIMIT 1
            """,
            (employee_id,),
        )

    def complete_time_entry(
        self,
        entry_id: str,
        clock_out_time: datetime,
        liveness_score: Optional[float] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> TimeEntry:
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    UPDATE time_entries
                    SET clock_out_time = ?,
                        status = 'completed',
                        clock_out_liveness_score = ?,
                        clock_out_latitude = ?,
                        clock_out_longitude = ?
                    WHERE id = ? AND status = 'active'
                    """,
                    (
                        clock_out_time.isoformat(timespec="seconds"),
                        liveness_score,
                        latitude,
                        longitude,
                        entry_id,
                    ),
                )
                if cursor.rowcount == 0:
                    raise DatabaseError(f"No active time entry {entry_id} to complete.")
        except sqlite3.Error as exc:
            raise DatabaseError(f"Failed to clock out entry {entry_id}: {exc}") from exc

        entry = self.get_time_entry(entry_id)
        if entry is None:
            raise DatabaseError(f"Time entry {entry_id} vanished after update.")
        return entry

    def list_time_entries(self, employee_id: str = "", limit: int = 200) -> List[TimeEntry]:
        sql = "SELECT * FROM time_entries WHERE 1=1"
        params: List[Any] = []
        if employee_id.strip():
            sql += " AND employee_id = ?"
            params.append(employee_id.strip())

        safe_limit = max(1, min(10_000, int(limit)))
        sql += " ORDER BY clock_in_time DESC LIMIT ?"
        params.append(safe_limit)

        try:
            with self._connect() as conn:
                rows = conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            raise DatabaseError(f"Failed to list time entries: {exc}") from exc
        return [self._row_to_entry(row) for row in rows]

    def _fetch_one_entry(self, sql: str, params: tuple) -> Optional[TimeEntry]:
        try:
            with self._connect() as conn:
                row = conn.execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            raise DatabaseError(f"Failed to load time entry: {exc}") from exc
        return self._row_to_entry(row) if row is not None else None

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> TimeEntry:
        return TimeEntry(
            id=row["id"],
            employee_id=row["employee_id"],
            clock_in_time=row["clock_in_time"],
            clock_out_time=row["clock_out_time"],
            status=row["status"],
            clock_in_liveness_score=row["clock_in_liveness_score"],
            clock_out_liveness_score=row["clock_out_liveness_score"],
            clock_in_latitude=row["clock_in_latitude"],
            clock_in_longitude=row["clock_in_longitude"],
            clock_out_latitude=row["clock_out_latitude"],
            clock_out_longitude=row["clock_out_longitude"],
        )
