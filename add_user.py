#!/usr/bin/env python
"""Create a user from the command line unless the email or username is taken."""
import argparse
import logging

from studybuddy.config import LOG_FILE, LOG_LEVEL
from studybuddy.database import create_tables, get_session
from studybuddy.errors import ValidationFailure
from studybuddy.logging_setup import setup_logging
from studybuddy.schemas.user import RegisterRequest
from studybuddy.services.credentials import find_by_email_or_username, register_user

logger = logging.getLogger("studybuddy.add_user")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--username", default="testuser")
    parser.add_argument("--email", default="test@example.com")
    parser.add_argument("--password", default="password")
    args = parser.parse_args(argv)

    setup_logging(LOG_LEVEL, LOG_FILE)
    create_tables()

    data = RegisterRequest(username=args.username, email=args.email, password=args.password)
    with get_session() as db:
        for identifier in (data.email, data.username):
            if find_by_email_or_username(db, identifier):
                logger.info("User %s already exists", identifier)
                return 0
        try:
            user = register_user(db, data.username, data.email, data.password)
        except ValidationFailure as exc:
            logger.error("Could not create user: %s", exc.message)
            return 1
    logger.info("User created: %s (%s)", user.username, user.email)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
