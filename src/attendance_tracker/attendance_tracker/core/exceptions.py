class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced student, course or section does not exist."""


class DuplicateKeyError(DomainError):
    """Raised by repositories when an insert hits a unique index."""


class ConcurrencyError(DomainError):
    """Raised when a conditional update keeps losing to concurrent writers."""


class LockedError(DomainError):
    """Attempted edit of a locked attendance record.

    The ledger returns this inside a MarkResult instead of raising it.
    """

    def __init__(self, student_id: int, course_id: int, attendance_date):
        super().__init__(
            f"Attendance for student {student_id}, course {course_id} on {attendance_date} is locked"
        )
        self.student_id = student_id
        self.course_id = course_id
        self.attendance_date = attendance_date
