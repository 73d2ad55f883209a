# errors.py

from typing import Any, Dict


class BlogError(Exception):
    """Base class for failures that map onto a client-facing status code."""

    status_code = 500

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_payload(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message, **self.details}


class ValidationError(BlogError):
    status_code = 400


class ConflictError(BlogError):
    # The public contract reports conflicts as plain bad requests.
    status_code = 400


class NotFoundError(BlogError):
    status_code = 404


class ForbiddenError(BlogError):
    status_code = 403


class UnauthenticatedError(BlogError):
    status_code = 401
