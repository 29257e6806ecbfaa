"""Run the auto-mark and/or lock sweeps once, outside the web process.

Useful from cron when the in-process scheduler is disabled.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_tracker.attendance_tracker.container import build_container


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--auto-mark", action="store_true", help="mark ongoing classes")
    parser.add_argument("--lock", action="store_true", help="lock records outside the edit window")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")

    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        edit_window_days=int(getattr(settings, "EDIT_WINDOW_DAYS", 2)),
    )

    run_all = not (args.auto_mark or args.lock)
    if args.auto_mark or run_all:
        result = container.auto_mark_service.auto_mark_ongoing_classes()
        print(
            f"auto-mark: classes={result.classes} created={result.created} "
            f"skipped={result.skipped_existing} failed={result.failed}"
        )
    if args.lock or run_all:
        print(f"lock: {container.auto_mark_service.run_lock_sweep()} record(s) locked")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
