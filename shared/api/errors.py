from typing import Any, Optional


class CornerAppError(Exception):
    """Base for every error a page controller turns into a notification."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FormValidationError(CornerAppError):
    """Raised before any request is made when a form is incomplete."""


class ApiError(CornerAppError):
    """Network failure or non-2xx response from the CornerApp API."""

    def __init__(self, message: str, status_code: Optional[int] = None, data: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.data = data or {}


class SessionExpiredError(ApiError):
    """401 on an authenticated call. All stored sessions are already cleared."""


class AuthError(CornerAppError):
    """Login accepted by the server but rejected by a client-side role check."""
