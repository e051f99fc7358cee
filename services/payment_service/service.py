"""
Transfer receipt verification.

Staff check bank-transfer receipts against the account and flag each order
as verified. The list holds every non-archived transfer order, unverified
ones first, newest first within each group. Toggling verification patches
the local record after the API accepts it; there is no reload.
"""
import math
from datetime import datetime, timezone
from typing import Optional

import structlog

from shared.api import ApiError
from shared.config.settings import PAYMENTS_PAGE_SIZE
from shared.notifications import Notifier
from services.order_service.schemas import Order
from services.order_service.service import OrderService

from .schemas import ReceiptPage, is_transfer

logger = structlog.get_logger(__name__)


def receipt_order(orders: list[Order]) -> list[Order]:
    newest_first = sorted(orders, key=lambda o: o.created_at, reverse=True)
    # Stable sort keeps newest-first inside each group
    return sorted(newest_first, key=lambda o: o.is_receipt_verified)


class PaymentVerificationPage:

    def __init__(self, orders: OrderService, notifier: Notifier, page_size: int = PAYMENTS_PAGE_SIZE):
        self.orders_api = orders
        self.notifier = notifier
        self.page_size = page_size
        self.orders: list[Order] = []
        self.loading = False
        self.updating: Optional[int] = None

    @property
    def pending_count(self) -> int:
        return sum(1 for o in self.orders if not o.is_receipt_verified)

    async def load(self) -> bool:
        self.loading = True
        try:
            orders = await self.orders_api.all_orders(show_archived=False)
        except ApiError as e:
            self.notifier.error(e.message or "Could not load orders")
            return False
        finally:
            self.loading = False
        self.orders = receipt_order([o for o in orders if is_transfer(o) and not o.is_archived])
        logger.info("receipts_loaded", total=len(self.orders), pending=self.pending_count)
        return True

    def page(self, number: int = 1) -> ReceiptPage:
        total_pages = math.ceil(len(self.orders) / self.page_size) if self.orders else 0
        if number < 1 or (total_pages and number > total_pages):
            number = 1
        start = (number - 1) * self.page_size
        return ReceiptPage(
            items=self.orders[start:start + self.page_size],
            page=number,
            total_pages=total_pages,
            total=len(self.orders),
            pending=self.pending_count,
        )

    async def verify(self, order: Order) -> bool:
        return await self._set_verified(order, True)

    async def unverify(self, order: Order) -> bool:
        return await self._set_verified(order, False)

    async def _set_verified(self, order: Order, verified: bool) -> bool:
        self.updating = order.id
        try:
            await self.orders_api.verify_receipt(order.id, verified)
        except ApiError as e:
            self.notifier.error(e.message or "Could not update receipt verification")
            return False
        finally:
            self.updating = None

        patch = {
            "is_receipt_verified": verified,
            "receipt_verified_at": datetime.now(timezone.utc) if verified else None,
        }
        self.orders = [o.model_copy(update=patch) if o.id == order.id else o for o in self.orders]
        self.notifier.success("Receipt verified" if verified else "Receipt marked as unverified")
        return True
