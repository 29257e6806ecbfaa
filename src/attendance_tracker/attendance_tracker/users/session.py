from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import jsonify, session

from ..core.enums import Role
from .model import Actor


def current_actor() -> Optional[Actor]:
    """Build the Actor from the Flask session filled in by the identity provider."""

    if "user_id" not in session or "role" not in session:
        return None
    try:
        role = Role(session["role"])
    except ValueError:
        return None
    if role == Role.SYSTEM:
        return None

    student_id = session.get("student_id")
    teacher_id = session.get("teacher_id")
    return Actor(
        user_id=str(session["user_id"]),
        role=role,
        student_id=int(student_id) if student_id is not None else None,
        teacher_id=int(teacher_id) if teacher_id is not None else None,
    )


def roles_required(*roles: Role):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            actor = current_actor()
            if actor is None:
                return jsonify({"success": False, "message": "Please sign in to continue"}), 401
            if roles and actor.role not in roles:
                return jsonify({"success": False, "message": "Forbidden"}), 403
            return view(actor, *args, **kwargs)

        return wrapper

    return decorator
