#!/usr/bin/env python
"""Delete every user's tasks scheduled more than the retention window ago.

Meant for cron; the web app already sweeps each user's own tasks on access.
"""
from studybuddy.config import LOG_FILE, LOG_LEVEL
from studybuddy.database import create_tables, get_session
from studybuddy.logging_setup import setup_logging
from studybuddy.services.retention import purge_expired_tasks


def main() -> int:
    setup_logging(LOG_LEVEL, LOG_FILE)
    create_tables()
    with get_session() as db:
        purge_expired_tasks(db)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
