from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import SYSTEM_USER_ID
from ..core.enums import Role


@dataclass(frozen=True)
class Actor:
    """Who is calling, as supplied by the identity provider.

    student_id/teacher_id link the login to the matching profile row, when there is one.
    """

    user_id: str
    role: Role
    student_id: Optional[int] = None
    teacher_id: Optional[int] = None


SYSTEM_ACTOR = Actor(user_id=SYSTEM_USER_ID, role=Role.SYSTEM)
