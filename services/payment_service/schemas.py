from dataclasses import dataclass

from services.order_service.schemas import Order

TRANSFER_MARKER = "transfer"


def is_transfer(order: Order) -> bool:
    # Matches "transfer", "Transferencia", "bank_transfer"...
    return TRANSFER_MARKER in (order.payment_method or "").lower()


@dataclass
class ReceiptPage:
    items: list[Order]
    page: int
    total_pages: int
    total: int
    pending: int
