"""Failure taxonomy shared by the services and the HTTP layer.

Services raise these; the exception handlers in ``studybuddy.main`` turn
them into a JSON envelope or a redirect, depending on what the caller
accepts.
"""
from typing import Optional

from fastapi import status


class StudyBuddyError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_redirect = "/tasks"

    def __init__(self, message: str, redirect_to: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.redirect_to = redirect_to or self.default_redirect


class ValidationFailure(StudyBuddyError):
    """Missing or malformed input; nothing was written."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthFailure(StudyBuddyError):
    """Bad credentials or a missing, invalid or expired session."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_redirect = "/auth/login"


class NotFoundFailure(StudyBuddyError):
    """The task does not exist for this owner."""
    status_code = status.HTTP_404_NOT_FOUND


class StoreFailure(StudyBuddyError):
    """The database refused or failed an operation."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
