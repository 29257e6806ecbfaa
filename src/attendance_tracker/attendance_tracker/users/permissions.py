from __future__ import annotations

import logging
from typing import Callable, Optional

from ..core.enums import AttendanceSource, AttendanceStatus, Role
from ..core.exceptions import AuthorizationError
from ..enrollment.model import Student
from .model import Actor

logger = logging.getLogger(__name__)

# (teacher_id, course_id, batch_id, section_id) -> bool
TeachesLookup = Callable[[int, int, int, int], bool]


def can_mark(
    actor: Actor,
    *,
    student: Optional[Student],
    course_id: int,
    status: AttendanceStatus,
    source: AttendanceSource,
    teaches: TeachesLookup,
) -> bool:
    if actor.role == Role.ADMIN:
        return True

    if actor.role == Role.SYSTEM:
        return source == AttendanceSource.AUTO

    if actor.role == Role.TEACHER:
        if source != AttendanceSource.MANUAL or actor.teacher_id is None or student is None:
            return False
        return teaches(actor.teacher_id, int(course_id), student.batch_id, student.section_id)

    if actor.role == Role.STUDENT:
        return (
            student is not None
            and actor.student_id == student.student_id
            and source == AttendanceSource.AUTO
            and status == AttendanceStatus.PRESENT
        )

    return False


def require_mark_permission(
    actor: Actor,
    *,
    student: Optional[Student],
    course_id: int,
    status: AttendanceStatus,
    source: AttendanceSource,
    teaches: TeachesLookup,
) -> None:
    if not can_mark(actor, student=student, course_id=course_id, status=status, source=source, teaches=teaches):
        logger.warning(
            "Permission denied: %s %s may not mark student %s for course %s (%s/%s)",
            actor.role.value, actor.user_id,
            student.student_id if student else None, course_id, status.value, source.value,
        )
        raise AuthorizationError("You are not allowed to mark attendance for this student")


def can_annotate(actor: Actor, *, student: Optional[Student], course_id: int, teaches: TeachesLookup) -> bool:
    if actor.role == Role.ADMIN:
        return True
    if actor.role == Role.TEACHER and actor.teacher_id is not None and student is not None:
        return teaches(actor.teacher_id, int(course_id), student.batch_id, student.section_id)
    return False
