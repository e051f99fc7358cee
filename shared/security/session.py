"""
Explicit session context for the staff and customer roles.

Each role keeps its own bearer token and user record under role-specific
keys (`admin_token` / `admin_user`, `waiter_*`, `delivery_*`, `customer_*`).
The context is created once and injected into the API client and the
services; nothing reads the store directly.
"""
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import structlog

from .jwt_handler import is_token_expired
from .storage import SessionStore

logger = structlog.get_logger(__name__)


class Role(str, Enum):
    ADMIN = "admin"
    WAITER = "waiter"
    DELIVERY = "delivery"
    CUSTOMER = "customer"


@dataclass
class Session:
    role: Role
    token: str
    user: dict[str, Any] = field(default_factory=dict)

    @property
    def user_id(self) -> Optional[int]:
        value = self.user.get("id")
        return int(value) if value is not None else None


class SessionContext:
    # Order in which a bearer token is picked for staff API calls
    AUTH_ROLES = (Role.ADMIN, Role.WAITER, Role.DELIVERY)

    def __init__(self, store: SessionStore):
        self.store = store

    @staticmethod
    def _keys(role: Role) -> tuple[str, str]:
        role = Role(role)
        return f"{role.value}_token", f"{role.value}_user"

    def load(self, role: Role) -> Optional[Session]:
        """Returns the stored session for `role`, or None.

        A user record that does not parse is discarded together with its
        token, and an expired JWT counts as no session.
        """
        token_key, user_key = self._keys(role)
        token = self.store.get(token_key)
        raw_user = self.store.get(user_key)
        if not token or not raw_user:
            return None

        try:
            user = json.loads(raw_user)
        except ValueError:
            logger.error("session_user_unparseable", role=Role(role).value)
            self.clear(role)
            return None
        if not isinstance(user, dict):
            self.clear(role)
            return None

        if is_token_expired(token):
            logger.info("session_token_expired", role=Role(role).value)
            return None

        return Session(role=Role(role), token=token, user=user)

    def save(self, role: Role, token: str, user: dict[str, Any]) -> Session:
        token_key, user_key = self._keys(role)
        self.store.set(token_key, token)
        self.store.set(user_key, json.dumps(user))
        logger.info("session_saved", role=Role(role).value, user_id=user.get("id"))
        return Session(role=Role(role), token=token, user=user)

    def clear(self, role: Role) -> None:
        self.store.remove(*self._keys(role))

    def clear_all(self) -> None:
        for role in Role:
            self.clear(role)

    def is_authenticated(self, role: Role) -> bool:
        return self.load(role) is not None

    def active_token(self) -> Optional[str]:
        for role in self.AUTH_ROLES:
            session = self.load(role)
            if session:
                return session.token
        return None
