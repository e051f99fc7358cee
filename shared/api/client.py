"""
Async client for the CornerApp REST API.

All staff views go through one ApiClient instance. Bearer tokens come from the
injected SessionContext; a 401 on an authenticated call wipes every stored
session and raises SessionExpiredError so the caller can send the user back
to a login flow.
"""
import time
from typing import Any, Optional

import httpx
import structlog

from shared.config.settings import API_BASE_URL, REQUEST_TIMEOUT_SECONDS
from shared.observability import corner_api_request_duration_seconds
from shared.security import SessionContext

from .errors import ApiError, SessionExpiredError

logger = structlog.get_logger(__name__)

SESSION_EXPIRED_MESSAGE = "Session expired. Please log in again."


def _error_payload(resp: httpx.Response) -> dict[str, Any]:
    if not resp.content:
        return {}
    try:
        data = resp.json()
    except ValueError:
        return {"error": resp.text}
    return data if isinstance(data, dict) else {"error": str(data)}


def _error_message(resp: httpx.Response, data: dict[str, Any]) -> str:
    message = data.get("error") or data.get("message") or data.get("details")
    if message:
        return str(message)
    return f"Error {resp.status_code}: {resp.reason_phrase}"


class ApiClient:

    def __init__(
        self,
        session: SessionContext,
        base_url: str = API_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
        skip_auth: bool = False,
        unwrap: bool = True,
    ) -> Any:
        """Sends one request and returns the decoded body.

        Empty bodies decode to `{}`. A `{"data": ...}` envelope is unwrapped
        unless `unwrap` is False. `skip_auth` sends no bearer token and also
        reports 401 as a plain ApiError (login endpoints).
        """
        headers = {"Content-Type": "application/json"}
        token = None if skip_auth else self.session.active_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        started = time.perf_counter()
        try:
            resp = await self._client.request(method, endpoint, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            corner_api_request_duration_seconds.labels(method=method, status="error").observe(time.perf_counter() - started)
            logger.error("api_request_failed", method=method, endpoint=endpoint, error=str(e))
            raise ApiError(f"Could not reach the server: {e}") from e

        corner_api_request_duration_seconds.labels(method=method, status=str(resp.status_code)).observe(
            time.perf_counter() - started
        )

        if resp.is_error:
            if resp.status_code == 401 and not skip_auth:
                logger.warning("api_session_expired", endpoint=endpoint)
                self.session.clear_all()
                raise SessionExpiredError(SESSION_EXPIRED_MESSAGE, status_code=401)
            data = _error_payload(resp)
            message = _error_message(resp, data)
            logger.warning("api_error_response", method=method, endpoint=endpoint, status=resp.status_code, error=message)
            raise ApiError(message, status_code=resp.status_code, data=data)

        if not resp.content:
            return {}
        try:
            parsed = resp.json()
        except ValueError as e:
            raise ApiError("Invalid response from server", status_code=resp.status_code) from e

        if unwrap and isinstance(parsed, dict) and "data" in parsed:
            return parsed["data"]
        return parsed

    # --- Auth ---

    async def admin_login(self, username: str, password: str, restaurant_id: Optional[int] = None):
        payload = {"username": username, "password": password}
        if restaurant_id is not None:
            payload["restaurantId"] = restaurant_id
        return await self.request("POST", "/api/auth/admin/login", json=payload, skip_auth=True, unwrap=False)

    async def customer_login(self, email: str, password: str):
        return await self.request(
            "POST", "/api/auth/login", json={"email": email, "password": password}, skip_auth=True, unwrap=False
        )

    async def customer_register(self, payload: dict[str, Any]):
        return await self.request("POST", "/api/auth/register", json=payload, skip_auth=True, unwrap=False)

    async def delivery_person_login(self, username: str, password: str):
        return await self.request(
            "POST", "/api/deliveryperson/login", json={"username": username, "password": password},
            skip_auth=True, unwrap=False,
        )

    async def verify_delivery_person_token(self):
        return await self.request("POST", "/api/deliveryperson/verify")

    # --- Orders ---

    async def get_active_orders(self):
        # Cache-buster: the kitchen reload must never see a cached list
        return await self.request("GET", "/admin/api/orders/active", params={"t": int(time.time() * 1000)})

    async def get_orders(
        self,
        show_archived: bool = False,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ):
        params: dict[str, Any] = {"sortBy": sort_by, "sortOrder": sort_order}
        if show_archived:
            params["showArchived"] = "true"
        if page:
            params["page"] = page
        if page_size:
            params["pageSize"] = page_size
        return await self.request("GET", "/admin/api/orders", params=params)

    async def get_order(self, order_id: int):
        return await self.request("GET", f"/api/orders/{order_id}")

    async def update_order_status(self, order_id: int, status: str, delivery_person_id: Optional[int] = None):
        return await self.request(
            "PUT", f"/admin/api/orders/{order_id}/status",
            json={"status": status, "deliveryPersonId": delivery_person_id},
        )

    async def archive_order(self, order_id: int):
        return await self.request("POST", f"/admin/api/orders/{order_id}/archive")

    async def restore_order(self, order_id: int):
        return await self.request("POST", f"/admin/api/orders/{order_id}/restore")

    async def delete_order(self, order_id: int):
        return await self.request("DELETE", f"/admin/api/orders/{order_id}")

    async def verify_receipt(self, order_id: int, is_verified: bool):
        return await self.request(
            "PUT", f"/admin/api/orders/{order_id}/receipt/verify", json={"isVerified": is_verified}
        )

    async def get_order_status_history(self, order_id: int):
        return await self.request("GET", f"/admin/api/orders/{order_id}/history")

    # --- Courier (logged-in delivery person) ---

    async def get_delivery_person_orders(self):
        return await self.request("GET", "/api/deliveryperson/orders")

    async def get_delivery_person_order(self, order_id: int):
        return await self.request("GET", f"/api/deliveryperson/orders/{order_id}")

    async def update_delivery_order_status(self, order_id: int, status: str):
        return await self.request("PATCH", f"/api/deliveryperson/orders/{order_id}/status", json={"status": status})

    # --- Delivery persons (admin) ---

    async def get_delivery_persons(self):
        return await self.request("GET", "/admin/api/delivery-persons")

    async def get_active_delivery_persons(self):
        return await self.request("GET", "/api/orders/delivery-persons")

    async def create_delivery_person(self, payload: dict[str, Any]):
        return await self.request("POST", "/admin/api/delivery-persons", json=payload)

    async def update_delivery_person(self, person_id: int, payload: dict[str, Any]):
        return await self.request("PUT", f"/admin/api/delivery-persons/{person_id}", json=payload)

    async def delete_delivery_person(self, person_id: int):
        return await self.request("DELETE", f"/admin/api/delivery-persons/{person_id}")

    async def get_delivery_person_orders_by_admin(self, person_id: int, include_completed: bool = False):
        return await self.request(
            "GET", f"/admin/api/delivery-persons/{person_id}/orders",
            params={"includeCompleted": str(include_completed).lower()},
        )

    # --- Categories ---

    async def get_categories(self, include_inactive: bool = False):
        params = {"includeInactive": "true"} if include_inactive else None
        return await self.request("GET", "/api/categories", params=params)

    async def get_category(self, category_id: int):
        return await self.request("GET", f"/api/categories/{category_id}")

    async def create_category(self, payload: dict[str, Any]):
        return await self.request("POST", "/admin/api/categories", json=payload)

    async def update_category(self, category_id: int, payload: dict[str, Any]):
        return await self.request("PUT", f"/admin/api/categories/{category_id}", json=payload)

    async def delete_category(self, category_id: int):
        return await self.request("DELETE", f"/admin/api/categories/{category_id}")

    # --- Customers ---

    async def get_customers(self, search: Optional[str] = None, page: Optional[int] = None, page_size: Optional[int] = None):
        params: dict[str, Any] = {}
        if search:
            params["search"] = search
        if page:
            params["page"] = page
        if page_size:
            params["pageSize"] = page_size
        return await self.request("GET", "/admin/api/customers", params=params or None)

    async def get_customer(self, customer_id: int):
        return await self.request("GET", f"/admin/api/customers/{customer_id}")

    async def get_customer_stats(self):
        return await self.request("GET", "/admin/api/customers/stats")

    async def create_customer(self, payload: dict[str, Any]):
        return await self.request("POST", "/admin/api/customers", json=payload)

    async def delete_customer(self, customer_id: int):
        return await self.request("DELETE", f"/admin/api/customers/{customer_id}")

    # --- Admin users ---

    async def get_admin_users(self, search: Optional[str] = None):
        params = {"search": search} if search else None
        return await self.request("GET", "/admin/api/users", params=params)

    async def get_admin_user(self, user_id: int):
        return await self.request("GET", f"/admin/api/users/{user_id}")

    async def create_admin_user(self, payload: dict[str, Any]):
        return await self.request("POST", "/admin/api/users", json=payload)

    async def update_admin_user(self, user_id: int, payload: dict[str, Any]):
        return await self.request("PUT", f"/admin/api/users/{user_id}", json=payload)

    async def delete_admin_user(self, user_id: int):
        return await self.request("DELETE", f"/admin/api/users/{user_id}")

    # --- Catalog (read-only for the staff views) ---

    async def get_products(self):
        return await self.request("GET", "/admin/api/products")

    async def get_tables(self, status: Optional[str] = None):
        params = {"status": status} if status else None
        return await self.request("GET", "/api/tables", params=params)
