"""Example: drive the service layer directly (no Flask).

Controllers stay thin; the rules live in the services.
"""

import importlib

from config import get_settings_module

from src.attendance_tracker.attendance_tracker.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    current = container.timetable_resolver.find_current_class_for_student(1)
    print("current class:", current)
    print("percentages:", container.report_service.get_student_attendance_percentage(1))
    print("auto-mark:", container.auto_mark_service.auto_mark_ongoing_classes())


if __name__ == "__main__":
    main()
