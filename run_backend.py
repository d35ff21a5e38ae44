#!/usr/bin/env python
"""Script to run the StudyBuddy server."""
import os
from pathlib import Path

# Change to the repository directory so relative paths (sqlite file, .env) resolve here
os.chdir(Path(__file__).resolve().parent)

import uvicorn

from studybuddy.config import LOG_FILE, LOG_LEVEL
from studybuddy.logging_setup import setup_logging

if __name__ == "__main__":
    setup_logging(LOG_LEVEL, LOG_FILE)
    uvicorn.run(
        "studybuddy.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "5000")),
        reload=os.getenv("RELOAD", "false").lower() in ("1", "true", "yes"),
        log_config=None,
    )
