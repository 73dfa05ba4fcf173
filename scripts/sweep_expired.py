"""Close lapsed sessions and finish pending absentee backfills.

Meant for cron when nobody polls the active session (same work as
`flask --app app sweep-expired`).
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import load_settings

from src.qr_attendance.qr_attendance.container import build_container


def main() -> None:
    load_dotenv(override=False)
    settings = load_settings()
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=settings.DB_CONFIG)
    result = container.expiry_enforcer.sweep()
    pending = [b.session_id for b in result.backfills if not b.complete]
    print(f"OK: closed={result.closed} backfills={len(result.backfills)} still_pending={len(pending)}")
    if pending:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
