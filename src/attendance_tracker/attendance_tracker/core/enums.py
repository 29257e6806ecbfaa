from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role of the caller, used for permission checks."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    SYSTEM = "system"


class AttendanceStatus(str, Enum):
    """Attendance status as stored in the database."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"

    @property
    def counts_as_attended(self) -> bool:
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


class AttendanceSource(str, Enum):
    """Provenance of a record: teacher-entered or system/self-service generated."""

    MANUAL = "MANUAL"
    AUTO = "AUTO"


class MarkMode(str, Enum):
    """How a write treats an already existing record."""

    UPSERT = "UPSERT"
    CREATE_ONLY = "CREATE_ONLY"


class MarkOutcome(str, Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    UNCHANGED_EXISTING = "UNCHANGED_EXISTING"
    LOCKED = "LOCKED"
