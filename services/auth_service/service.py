"""
Login flows for every role.

Each flow validates its form locally, calls the matching login endpoint and
stores the returned token and user record in the session context under the
role's keys. Local validation failures raise FormValidationError, server
rejections ApiError, and a login that succeeds for the wrong kind of account
AuthError.
"""
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from shared.api import ApiClient, ApiError, AuthError, FormValidationError
from shared.security import Role, Session, SessionContext

from .schemas import CustomerLogin, CustomerRegistration, DeliveryLoginResponse, LoginResponse

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 6
WAITER_ROLE = "Employee"


def _required(*values: Any) -> bool:
    return all(str(v).strip() if v is not None else False for v in values)


def _parse_restaurant_id(value: Any) -> int:
    try:
        restaurant_id = int(str(value).strip())
    except (TypeError, ValueError):
        raise FormValidationError("Restaurant ID must be a valid number")
    if restaurant_id <= 0:
        raise FormValidationError("Restaurant ID must be a valid number")
    return restaurant_id


class AuthService:

    def __init__(self, client: ApiClient, session: SessionContext):
        self.client = client
        self.session = session

    async def _login(self, call, fallback: str) -> dict[str, Any]:
        try:
            return await call
        except ApiError as e:
            logger.warning("login_rejected", error=e.message, status=e.status_code)
            raise ApiError(e.message or fallback, status_code=e.status_code, data=e.data) from e

    async def admin_login(self, username: str, password: str) -> Session:
        if not _required(username, password):
            raise FormValidationError("Please fill in all fields")
        data = LoginResponse.model_validate(
            await self._login(self.client.admin_login(username.strip(), password), "Login failed")
        )
        logger.info("admin_logged_in", user_id=data.user.get("id"))
        return self.session.save(Role.ADMIN, data.token, data.user)

    async def waiter_login(self, username: str, password: str, restaurant_id: Any) -> Session:
        if not _required(username, password):
            raise FormValidationError("Please fill in all fields")
        if not _required(restaurant_id):
            raise FormValidationError("Restaurant ID is required")
        restaurant = _parse_restaurant_id(restaurant_id)

        data = LoginResponse.model_validate(
            await self._login(self.client.admin_login(username.strip(), password, restaurant), "Login failed")
        )
        if data.user.get("role") != WAITER_ROLE:
            logger.warning("waiter_login_wrong_role", role=data.user.get("role"))
            raise AuthError("This user does not have waiter permissions")
        return self.session.save(Role.WAITER, data.token, data.user)

    async def customer_login(self, email: str, password: str) -> Session:
        if not _required(email, password):
            raise FormValidationError("Please fill in all fields")
        try:
            form = CustomerLogin(email=email.strip(), password=password)
        except ValidationError:
            raise FormValidationError("Enter a valid email")
        data = LoginResponse.model_validate(
            await self._login(self.client.customer_login(form.email, form.password), "Login failed")
        )
        return self.session.save(Role.CUSTOMER, data.token, data.user)

    async def customer_register(
        self,
        name: str,
        email: str,
        password: str,
        confirm_password: str,
        phone: str,
        default_address: str,
        restaurant_id: Optional[Any] = None,
    ) -> Session:
        if not _required(name, email, password, phone, default_address, restaurant_id):
            raise FormValidationError("Please fill in all fields")
        restaurant = _parse_restaurant_id(restaurant_id)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise FormValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if password != confirm_password:
            raise FormValidationError("Passwords do not match")

        try:
            form = CustomerRegistration(
                name=name.strip(),
                email=email.strip().lower(),
                password=password,
                phone=phone.strip(),
                default_address=default_address.strip(),
                restaurant_id=restaurant,
            )
        except ValidationError:
            raise FormValidationError("Enter a valid email")

        data = LoginResponse.model_validate(
            await self._login(self.client.customer_register(form.to_wire()), "Registration failed")
        )
        logger.info("customer_registered", user_id=data.user.get("id"))
        return self.session.save(Role.CUSTOMER, data.token, data.user)

    async def delivery_login(self, username: str, password: str) -> Session:
        if not _required(username, password):
            raise FormValidationError("Please fill in all fields")
        data = DeliveryLoginResponse.model_validate(
            await self._login(self.client.delivery_person_login(username.strip(), password), "Login failed")
        )
        return self.session.save(Role.DELIVERY, data.token, data.delivery_person)

    def logout(self, role: Optional[Role] = None) -> None:
        if role is None:
            self.session.clear_all()
        else:
            self.session.clear(role)
        logger.info("logged_out", role=Role(role).value if role else "all")
