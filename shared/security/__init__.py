from .jwt_handler import read_claims, token_expiry, is_token_expired
from .storage import SessionStore
from .session import Role, Session, SessionContext

__all__ = [
    "read_claims",
    "token_expiry",
    "is_token_expired",
    "SessionStore",
    "Role",
    "Session",
    "SessionContext",
]
