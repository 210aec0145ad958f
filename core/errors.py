"""
Platform Error Taxonomy

Every domain error carries the HTTP status it maps to. The API layer turns
any PlatformError into the standard response envelope.
"""

from typing import Any, Dict, Optional


class PlatformError(Exception):
    """Base exception for the crowdfund platform"""

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(PlatformError):
    """Missing or malformed input"""

    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(PlatformError):
    """Missing, invalid or expired credentials"""

    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(PlatformError):
    """Authenticated user lacks the required role or ownership"""

    status_code = 403
    default_message = "You do not have permission to perform this action"


class NotFoundError(PlatformError):
    """Entity absent (or not visible to the requester)"""

    status_code = 404
    default_message = "Resource not found"


class ConflictError(PlatformError):
    """State machine violation"""

    status_code = 409
    default_message = "Request conflicts with the current state"


class InternalError(PlatformError):
    """Storage or transaction failure"""

    status_code = 500
    default_message = "Internal server error"


__all__ = [
    "PlatformError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "InternalError",
]
