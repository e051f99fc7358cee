from .client import ApiClient
from .errors import CornerAppError, FormValidationError, ApiError, SessionExpiredError, AuthError

__all__ = [
    "ApiClient",
    "CornerAppError",
    "FormValidationError",
    "ApiError",
    "SessionExpiredError",
    "AuthError",
]
