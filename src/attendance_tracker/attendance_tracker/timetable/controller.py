from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_hhmm
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..container import Container
from ..users.session import roles_required
from .model import TimetableEntry, TimetableSlotRow

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def _entry_to_json(e: TimetableEntry) -> dict:
    return {
        "timetable_id": e.timetable_id,
        "course_id": e.course_id,
        "teacher_id": e.teacher_id,
        "batch_id": e.batch_id,
        "section_id": e.section_id,
        "day_of_week": e.day_of_week,
        "day": DAY_NAMES[e.day_of_week],
        "start_time": e.start_time.strftime("%H:%M"),
        "end_time": e.end_time.strftime("%H:%M"),
    }


def _slot_to_json(r: TimetableSlotRow) -> dict:
    out = _entry_to_json(r.entry)
    out.update({"course_code": r.course_code, "course_name": r.course_name, "teacher_name": r.teacher_name or "-"})
    return out


def register(app: Flask, container: Container) -> None:
    resolver = container.timetable_resolver

    @app.route("/api/timetable/current", methods=["GET"], endpoint="timetable_current")
    @roles_required(Role.STUDENT)
    def timetable_current(actor):
        try:
            entry = resolver.find_current_class_for_student(actor.student_id or 0)
        except NotFoundError as e:
            return jsonify({"success": False, "message": str(e)}), 404
        return jsonify({"success": True, "current": _entry_to_json(entry) if entry else None}), 200

    @app.route("/api/timetable/student/<int:student_id>", methods=["GET"], endpoint="timetable_student")
    @roles_required(Role.STUDENT, Role.TEACHER, Role.ADMIN)
    def timetable_student(actor, student_id: int):
        if actor.role == Role.STUDENT and actor.student_id != student_id:
            return jsonify({"success": False, "message": "Forbidden"}), 403
        rows = resolver.get_student_timetable(student_id)
        return jsonify({"success": True, "rows": [_slot_to_json(r) for r in rows]}), 200

    @app.route("/api/timetable/teacher", methods=["GET"], endpoint="timetable_teacher")
    @roles_required(Role.TEACHER)
    def timetable_teacher(actor):
        rows = resolver.get_teacher_timetable(actor.teacher_id or 0)
        return jsonify({"success": True, "rows": [_slot_to_json(r) for r in rows]}), 200

    @app.route("/api/admin/timetable", methods=["POST"], endpoint="admin_timetable_add")
    @roles_required(Role.ADMIN)
    def admin_timetable_add(actor):
        data = request.get_json(silent=True) or {}
        try:
            timetable_id = resolver.add_entry(
                current_role=actor.role,
                course_id=int(data.get("course_id") or 0),
                teacher_id=int(data.get("teacher_id") or 0),
                batch_id=int(data.get("batch_id") or 0),
                section_id=int(data.get("section_id") or 0),
                day_of_week=int(data.get("day_of_week", -1)),
                start_time=parse_hhmm(str(data.get("start_time") or "")),
                end_time=parse_hhmm(str(data.get("end_time") or "")),
            )
        except ValueError:
            return jsonify({"success": False, "message": "Times must be HH:MM"}), 400
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except NotFoundError as e:
            return jsonify({"success": False, "message": str(e)}), 404
        except AuthorizationError as e:
            return jsonify({"success": False, "message": str(e)}), 403
        return jsonify({"success": True, "timetable_id": timetable_id}), 201
