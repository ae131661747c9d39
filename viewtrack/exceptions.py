"""
Custom Exception Classes for the view tracking service

Every failure raised inside the view pipeline derives from ViewTrackError so
the HTTP boundary can convert it into a flat {"error": ...} response.
"""

from typing import Any

from fastapi import status


class ViewTrackError(Exception):
    """Base exception class for all view tracking exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidRequestError(ViewTrackError):
    """Raised when the subject identifier is missing or malformed"""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class StorageUnavailableError(ViewTrackError):
    """Raised when a store operation fails or times out"""

    def __init__(self, message: str = "Storage is unavailable", operation: str | None = None):
        details = {"operation": operation} if operation else {}
        super().__init__(message=message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE, details=details)


class SubjectNotFoundError(ViewTrackError):
    """Raised when the counter-bearing article or forum post does not exist"""

    def __init__(self, subject_kind: str, subject_id: Any | None = None):
        message = f"{subject_kind} not found"
        if subject_id is not None:
            message = f"{subject_kind} with id '{subject_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"subject_kind": subject_kind, "subject_id": subject_id},
        )
