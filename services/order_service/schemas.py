from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Literal, Optional, Union

from pydantic import Field, field_validator

from shared.api.models import CamelModel, as_utc


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    DELIVERING = "delivering"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


_LIFECYCLE = [
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.DELIVERING,
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
]


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """Forward moves along the lifecycle, or cancel from any non-terminal status."""
    if current.is_terminal or current == new:
        return False
    if new == OrderStatus.CANCELLED:
        return True
    return _LIFECYCLE.index(new) > _LIFECYCLE.index(current)


class OrderItemSubProduct(CamelModel):
    id: int
    name: str
    price: float = 0


class OrderItem(CamelModel):
    id: Optional[int] = None
    order_id: Optional[int] = None
    product_id: Optional[int] = None
    product_name: str = ""
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    quantity: int = 1
    unit_price: float = 0
    subtotal: float = 0
    sub_products: List[OrderItemSubProduct] = Field(default_factory=list)

    @field_validator("sub_products", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return v or []


class Order(CamelModel):
    id: int
    status: OrderStatus
    customer_name: str = ""
    customer_address: str = ""
    customer_phone: Optional[str] = None
    total: float = 0
    payment_method: str = ""
    delivery_person_id: Optional[int] = None
    delivery_person: Optional[dict[str, Any]] = None
    table_id: Optional[int] = None
    table: Optional[dict[str, Any]] = None
    comments: Optional[str] = None
    is_archived: bool = False
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    items: List[OrderItem] = Field(default_factory=list)
    transfer_receipt_image: Optional[str] = None
    is_receipt_verified: bool = False
    receipt_verified_at: Optional[datetime] = None
    receipt_verified_by: Optional[str] = None

    # Pushed orders arrive with nulls where the REST payload has defaults
    @field_validator("items", "customer_name", "customer_address", "payment_method", mode="before")
    @classmethod
    def _null_collections(cls, v, info):
        if v is None:
            return [] if info.field_name == "items" else ""
        return v

    @field_validator("is_archived", "is_receipt_verified", mode="before")
    @classmethod
    def _null_flags(cls, v):
        return bool(v)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _missing_timestamps(cls, v):
        return v or _now()

    @field_validator("created_at", "updated_at", "receipt_verified_at")
    @classmethod
    def _aware(cls, v):
        return as_utc(v)


class OrderStatusHistoryItem(CamelModel):
    id: int
    from_status: str
    to_status: str
    changed_by: Optional[str] = None
    note: Optional[str] = None
    changed_at: datetime


# --- Hub events ---

class OrderCreated(CamelModel):
    kind: Literal["created"] = "created"
    order: Order


class OrderUpdated(CamelModel):
    kind: Literal["updated"] = "updated"
    order: Order


class OrderStatusChanged(CamelModel):
    kind: Literal["status_changed"] = "status_changed"
    order_id: int
    status: OrderStatus
    delivery_person_name: Optional[str] = None
    timestamp: Optional[datetime] = None


class OrderDeleted(CamelModel):
    kind: Literal["deleted"] = "deleted"
    order_id: int


OrderEvent = Union[OrderCreated, OrderUpdated, OrderStatusChanged, OrderDeleted]
