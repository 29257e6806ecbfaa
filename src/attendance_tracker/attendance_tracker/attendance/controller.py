from __future__ import annotations

import logging
from datetime import date

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_positive_id
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, ConcurrencyError, NotFoundError, ValidationError
from ..container import Container
from ..users.session import roles_required
from .model import AttendanceRow, MarkResult

logger = logging.getLogger(__name__)


def _row_to_json(r: AttendanceRow) -> dict:
    return {
        "attendance_id": r.attendance_id,
        "student_id": r.student_id,
        "roll_number": r.roll_number,
        "student_name": r.student_name,
        "course_id": r.course_id,
        "course_code": r.course_code,
        "course_name": r.course_name,
        "date": r.attendance_date.strftime("%Y-%m-%d"),
        "status": r.status.value,
        "source": r.source.value,
        "marked_by": r.marked_by_user_id,
        "marked_at": r.marked_at.isoformat(),
        "is_locked": r.is_locked,
        "remarks": r.remarks or "",
    }


def _result_to_json(student_id: int, result: MarkResult) -> dict:
    return {
        "student_id": student_id,
        "outcome": result.outcome.value,
        "ok": result.ok,
        "message": str(result.error) if result.error else "",
    }


def _failure_to_json(student_id: int, error: Exception) -> dict:
    return {"student_id": student_id, "outcome": "FAILED", "ok": False, "message": str(error)}


def register(app: Flask, container: Container) -> None:
    ledger = container.attendance_ledger

    def _parse_date(value) -> date:
        try:
            return parse_iso_date(str(value))
        except (TypeError, ValueError):
            raise ValidationError("Date must be YYYY-MM-DD")

    def _error(e: Exception, status: int):
        return jsonify({"success": False, "message": str(e)}), status

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_mark(actor):
        data = request.get_json(silent=True) or {}
        try:
            course_id = require_positive_id(data.get("course_id"), "course_id")
            on = _parse_date(data.get("date"))
            entries = data.get("students") or []
            if not isinstance(entries, list) or not entries:
                raise ValidationError("No students given")

            # Validate the whole payload before the first write.
            marks = []
            for item in entries:
                if not isinstance(item, dict):
                    raise ValidationError("Each student entry must be an object")
                student_id = require_positive_id(item.get("student_id"), "student_id")
                try:
                    status = AttendanceStatus(str(item.get("status", "")).upper())
                except ValueError:
                    raise ValidationError(f"Unknown status for student {student_id}")
                marks.append((student_id, status))
        except ValidationError as e:
            return _error(e, 400)

        # The whole batch is for one date; refuse up front when it is out of the window.
        if not ledger.can_edit_attendance(on):
            return jsonify({
                "success": False,
                "message": f"Attendance for {on:%Y-%m-%d} is locked and cannot be modified.",
            }), 409

        results = []
        for student_id, status in marks:
            try:
                result = ledger.upsert_manual(
                    actor=actor,
                    student_id=student_id,
                    course_id=course_id,
                    attendance_date=on,
                    status=status,
                )
            except (NotFoundError, AuthorizationError, ConcurrencyError) as e:
                logger.info("Bulk mark skipped student=%s course=%s: %s", student_id, course_id, e)
                results.append(_failure_to_json(student_id, e))
                continue
            results.append(_result_to_json(student_id, result))

        updated = sum(1 for r in results if r["ok"])
        return jsonify({
            "success": updated == len(results),
            "message": f"Successfully updated attendance for {updated} of {len(results)} students.",
            "results": results,
        }), 200

    @app.route("/api/attendance/self-mark", methods=["POST"], endpoint="attendance_self_mark")
    @roles_required(Role.STUDENT)
    def attendance_self_mark(actor):
        try:
            result = ledger.self_mark(actor)
        except NotFoundError as e:
            return _error(e, 404)
        except AuthorizationError as e:
            return _error(e, 403)
        except ConcurrencyError as e:
            return _error(e, 409)

        if not result.ok:
            return jsonify({
                "success": False,
                "message": "Failed to mark attendance. It may already be locked.",
            }), 409
        return jsonify({
            "success": True,
            "outcome": result.outcome.value,
            "message": "Attendance marked as Present",
        }), 200

    @app.route("/api/attendance/<int:attendance_id>/remarks", methods=["POST"], endpoint="attendance_remarks")
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_remarks(actor, attendance_id: int):
        data = request.get_json(silent=True) or {}
        try:
            record = ledger.add_remarks(actor=actor, attendance_id=attendance_id, remarks=str(data.get("remarks") or ""))
        except ValidationError as e:
            return _error(e, 400)
        except NotFoundError as e:
            return _error(e, 404)
        except AuthorizationError as e:
            return _error(e, 403)
        return jsonify({"success": True, "remarks": record.remarks or ""}), 200

    @app.route("/api/attendance/student/<int:student_id>", methods=["GET"], endpoint="attendance_student")
    @roles_required(Role.STUDENT, Role.TEACHER, Role.ADMIN)
    def attendance_student(actor, student_id: int):
        if actor.role == Role.STUDENT and actor.student_id != student_id:
            return jsonify({"success": False, "message": "Forbidden"}), 403
        try:
            course_id = request.args.get("course_id", type=int)
            from_s = request.args.get("from")
            to_s = request.args.get("to")
            rows = ledger.get_student_attendance(
                student_id,
                course_id=course_id,
                from_date=_parse_date(from_s) if from_s else None,
                to_date=_parse_date(to_s) if to_s else None,
            )
        except ValidationError as e:
            return _error(e, 400)
        return jsonify({"success": True, "rows": [_row_to_json(r) for r in rows]}), 200

    @app.route("/api/attendance/course/<int:course_id>", methods=["GET"], endpoint="attendance_course")
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_course(actor, course_id: int):
        try:
            on = _parse_date(request.args.get("date") or container.clock.now().strftime("%Y-%m-%d"))
        except ValidationError as e:
            return _error(e, 400)
        rows = ledger.get_course_attendance(course_id, on)
        return jsonify({
            "success": True,
            "can_edit": ledger.can_edit_attendance(on),
            "rows": [_row_to_json(r) for r in rows],
        }), 200

    @app.route("/api/admin/attendance/lock-sweep", methods=["POST"], endpoint="admin_lock_sweep")
    @roles_required(Role.ADMIN)
    def admin_lock_sweep(actor):
        locked = ledger.lock_old_attendances()
        logger.info("Lock sweep triggered by %s", actor.user_id)
        return jsonify({"success": True, "locked": locked}), 200
