from __future__ import annotations

from dataclasses import asdict

from flask import Flask, jsonify, request

from ..core.enums import Role
from ..container import Container
from ..users.session import roles_required


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    @app.route("/api/reports/student/<int:student_id>/summary", methods=["GET"], endpoint="report_student_summary")
    @roles_required(Role.STUDENT, Role.TEACHER, Role.ADMIN)
    def report_student_summary(actor, student_id: int):
        if actor.role == Role.STUDENT and actor.student_id != student_id:
            return jsonify({"success": False, "message": "Forbidden"}), 403

        summary = reports.build_student_summary(student_id)
        return jsonify({
            "success": True,
            "student_id": summary.student_id,
            "overall_percentage": summary.overall_percentage,
            "courses": [asdict(c) for c in summary.courses],
        }), 200

    @app.route("/api/reports/low-attendance", methods=["GET"], endpoint="report_low_attendance")
    @roles_required(Role.TEACHER, Role.ADMIN)
    def report_low_attendance(actor):
        rows = reports.find_low_attendance(
            course_id=request.args.get("course_id", type=int),
            threshold=request.args.get("threshold", type=float),
        )
        return jsonify({"success": True, "rows": [asdict(r) for r in rows]}), 200
