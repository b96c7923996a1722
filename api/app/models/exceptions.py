"""Custom exception classes for the edit service.

Each request is handled in isolation: any of these errors ends that one
request and is reported back to the caller as ``{"error": message}``.
Nothing here is retried.
"""

from typing import Dict, Any, Optional, List


class EditServiceException(Exception):
    """Base exception for all edit service errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(EditServiceException):
    """Raised when the caller's structured context fails basic shape checks."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        details = {"field": field} if field else {}
        super().__init__(message, details)


class UnauthorizedError(EditServiceException):
    """Raised when the shared-secret header is missing or wrong."""

    def __init__(self):
        super().__init__("Unauthorized")


class ModelInvocationError(EditServiceException):
    """Raised when the generative model call itself fails."""

    def __init__(self,
                 message: str,
                 status_code: Optional[int] = None,
                 model: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.model = model
        invocation_details = details or {}
        if status_code:
            invocation_details["status_code"] = status_code
        if model:
            invocation_details["model"] = model
        super().__init__(message, invocation_details)


class InvalidResponseError(EditServiceException):
    """Raised when model text is not JSON or has the wrong root shape."""

    def __init__(self,
                 message: str = "Invalid LLM response",
                 contract: Optional[str] = None,
                 errors: Optional[List[str]] = None):
        self.contract = contract
        self.validation_errors = errors or []
        details: Dict[str, Any] = {}
        if contract:
            details["contract"] = contract
        if errors:
            details["validation_errors"] = errors
        super().__init__(message, details)


def to_error_payload(exc: EditServiceException) -> Dict[str, Any]:
    """Render an exception in the service's error contract."""
    return {"error": exc.message or exc.__class__.__name__}
