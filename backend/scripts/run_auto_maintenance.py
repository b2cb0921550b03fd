"""Run one auto-maintenance sweep through the job scheduler.

Usage (from repository root):
    python backend/scripts/run_auto_maintenance.py
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from toolwright.db.session import SessionLocal
from toolwright.services.background_jobs import AUTO_MAINTENANCE_JOB, build_job_scheduler


def main() -> None:
    """Run the sweep and print its summary as JSON."""

    logging.basicConfig(level=logging.INFO)
    scheduler = build_job_scheduler(SessionLocal)
    summary = scheduler.run(AUTO_MAINTENANCE_JOB)
    print(json.dumps(summary, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
