from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import DESCRIPTOR_SIZE
from .encoding import mapping_to_descriptor
from .types import EnrolledFace


class EmployeeRow(BaseModel):
    """One persisted employee row as returned by the roster fetch."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    face_encoding: Optional[dict[str, float]] = None
    is_active: bool = True

    @property
    def display_name(self) -> Optional[str]:
        if self.first_name:
            return self.first_name
        return self.name


class GeoPointIn(BaseModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


def roster_from_rows(
    rows: Iterable[Mapping[str, Any]],
    descriptor_size: Optional[int] = DESCRIPTOR_SIZE,
) -> list[EnrolledFace]:
    roster: list[EnrolledFace] = []
    for raw in rows:
        row = EmployeeRow.model_validate(raw)
        if not row.is_active or not row.face_encoding:
            continue
        roster.append(
            EnrolledFace(
                employee_id=row.id,
                descriptor=mapping_to_descriptor(row.face_encoding, expected_size=descriptor_size),
                name=row.display_name,
            )
        )
    return roster
