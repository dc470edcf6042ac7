"""
Base exception classes for application-wide error handling.

Services return ServiceResult for expected failures. These exceptions are
raised for failures that must unwind the call stack, and are converted to
API responses at the view boundary.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── TransientStoreError - Database unavailable after bounded retries
    └── ExternalServiceError - Push provider and other third-party failures

Usage:
    from core.exceptions import TransientStoreError

    raise TransientStoreError(
        "Message store temporarily unavailable",
        details={"operation": "append_message", "attempts": 3},
    )

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.http_status)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (ids, limits, etc.)
        http_status: Status code used when the error reaches a view
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and (when present) details keys

        Example:
            {
                "error": "Conversation 12 not found",
                "error_code": "CONVERSATION_NOT_FOUND",
                "details": {"conversation_id": 12}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class TransientStoreError(BaseApplicationError):
    """
    Raised when the database stays unavailable after bounded retries.

    The client must treat the operation as not confirmed and may resubmit.

    Example:
        raise TransientStoreError(
            "Message store unavailable",
            details={"attempts": 3, "operation": "append_message"},
        )
    """

    default_error_code: str = "TRANSIENT_STORE_ERROR"
    http_status: int = 503


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Note:
        Log the original error for debugging but don't expose
        provider details to clients.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    http_status: int = 502
