"""
Tests for the login and registration flows
"""

from unittest.mock import AsyncMock

import pytest

from shared.api import ApiClient, ApiError, AuthError, FormValidationError
from shared.security import Role
from services.auth_service.service import AuthService


@pytest.fixture
def client():
    return AsyncMock(spec=ApiClient)


@pytest.fixture
def auth(client, session):
    return AuthService(client, session)


class TestStaffLogin:

    async def test_admin_login_stores_session(self, auth, client, session):
        client.admin_login.return_value = {"token": "tok", "user": {"id": 1, "role": "Admin"}}

        result = await auth.admin_login(" boss ", "secret")

        client.admin_login.assert_awaited_once_with("boss", "secret")
        assert result.role == Role.ADMIN
        assert session.load(Role.ADMIN).token == "tok"

    async def test_missing_fields(self, auth, client):
        with pytest.raises(FormValidationError, match="fill in all fields"):
            await auth.admin_login("", "secret")
        client.admin_login.assert_not_awaited()

    async def test_server_rejection_keeps_server_message(self, auth, client):
        client.admin_login.side_effect = ApiError("Invalid credentials", status_code=401)

        with pytest.raises(ApiError, match="Invalid credentials"):
            await auth.admin_login("boss", "bad")

    async def test_server_rejection_without_message(self, auth, client):
        client.admin_login.side_effect = ApiError("", status_code=500)

        with pytest.raises(ApiError) as exc:
            await auth.admin_login("boss", "bad")

        assert exc.value.message == "Login failed"
        assert exc.value.status_code == 500

    @pytest.mark.parametrize("restaurant_id", ["abc", "0", "-3", 0])
    async def test_waiter_needs_positive_restaurant_id(self, auth, client, restaurant_id):
        with pytest.raises(FormValidationError):
            await auth.waiter_login("mozo", "secret", restaurant_id)
        client.admin_login.assert_not_awaited()

    async def test_waiter_login(self, auth, client, session):
        client.admin_login.return_value = {"token": "tok", "user": {"id": 4, "role": "Employee"}}

        await auth.waiter_login("mozo", "secret", "2")

        client.admin_login.assert_awaited_once_with("mozo", "secret", 2)
        assert session.load(Role.WAITER).user_id == 4

    async def test_waiter_login_rejects_admin_accounts(self, auth, client, session):
        client.admin_login.return_value = {"token": "tok", "user": {"id": 1, "role": "Admin"}}

        with pytest.raises(AuthError, match="waiter permissions"):
            await auth.waiter_login("boss", "secret", 1)

        assert session.load(Role.WAITER) is None

    async def test_delivery_login_stores_courier(self, auth, client, session):
        client.delivery_person_login.return_value = {"token": "tok", "deliveryPerson": {"id": 7, "name": "Luis"}}

        await auth.delivery_login("luis", "secret")

        stored = session.load(Role.DELIVERY)
        assert stored.user == {"id": 7, "name": "Luis"}
        assert stored.user_id == 7


class TestCustomer:

    REGISTRATION = dict(
        name="  Ana  ",
        email=" Ana@CornerApp.UY ",
        password="secret1",
        confirm_password="secret1",
        phone=" 099 123 ",
        default_address=" Main St 1 ",
        restaurant_id=1,
    )

    async def test_login(self, auth, client, session):
        client.customer_login.return_value = {"token": "tok", "user": {"id": 9}}

        await auth.customer_login("ana@cornerapp.uy", "secret1")

        assert session.load(Role.CUSTOMER).user_id == 9

    async def test_login_rejects_bad_email(self, auth, client):
        with pytest.raises(FormValidationError, match="valid email"):
            await auth.customer_login("not-an-email", "secret1")
        client.customer_login.assert_not_awaited()

    async def test_register_sends_trimmed_values(self, auth, client, session):
        client.customer_register.return_value = {"token": "tok", "user": {"id": 9}}

        await auth.customer_register(**self.REGISTRATION)

        client.customer_register.assert_awaited_once_with({
            "name": "Ana",
            "email": "ana@cornerapp.uy",
            "password": "secret1",
            "phone": "099 123",
            "defaultAddress": "Main St 1",
            "restaurantId": 1,
        })
        assert session.is_authenticated(Role.CUSTOMER)

    async def test_register_short_password(self, auth, client):
        form = {**self.REGISTRATION, "password": "abc", "confirm_password": "abc"}
        with pytest.raises(FormValidationError, match="at least 6"):
            await auth.customer_register(**form)
        client.customer_register.assert_not_awaited()

    async def test_register_password_mismatch(self, auth):
        with pytest.raises(FormValidationError, match="do not match"):
            await auth.customer_register(**{**self.REGISTRATION, "confirm_password": "other12"})

    async def test_register_missing_field(self, auth):
        with pytest.raises(FormValidationError, match="fill in all fields"):
            await auth.customer_register(**{**self.REGISTRATION, "phone": "   "})

    async def test_register_failure_fallback(self, auth, client):
        client.customer_register.side_effect = ApiError("")
        with pytest.raises(ApiError, match="Registration failed"):
            await auth.customer_register(**self.REGISTRATION)


def test_logout_single_role(auth, session):
    session.save(Role.ADMIN, "a", {"id": 1})
    session.save(Role.WAITER, "w", {"id": 2})

    auth.logout(Role.WAITER)

    assert session.is_authenticated(Role.ADMIN)
    assert not session.is_authenticated(Role.WAITER)


def test_logout_everything(auth, session):
    session.save(Role.ADMIN, "a", {"id": 1})
    auth.logout()
    assert not session.is_authenticated(Role.ADMIN)
