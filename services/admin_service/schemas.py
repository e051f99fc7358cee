from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field, field_validator

from shared.api import FormValidationError
from shared.api.models import CamelModel, as_utc

MIN_PASSWORD_LENGTH = 6


def _blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


# --- Records ---

class AdminUser(CamelModel):
    id: int
    username: str
    email: str = ""
    name: str = ""
    role: str = "Employee"  # "Admin" or "Employee"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at", "last_login_at")
    @classmethod
    def _aware(cls, v):
        return as_utc(v)


class Category(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None


class CustomerOrderSummary(CamelModel):
    id: int
    status: str
    total: float = 0
    created_at: Optional[datetime] = None


class Customer(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    default_address: Optional[str] = None
    document_type: Optional[str] = None  # Cedula, Rut, Otro
    document_number: Optional[str] = None
    points: int = 0
    orders_count: int = 0
    total_spent: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    recent_orders: List[CustomerOrderSummary] = Field(default_factory=list)

    @field_validator("recent_orders", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return v or []


class CustomerStats(CamelModel):
    total_customers: int = 0
    total_points: int = 0
    customers_with_orders: int = 0


class DeliveryPerson(CamelModel):
    id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    username: str = ""
    is_active: bool = True
    created_at: Optional[datetime] = None
    active_orders: List[dict[str, Any]] = Field(default_factory=list)

    @field_validator("active_orders", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return v or []


# --- Forms ---
#
# Forms hold the modal's editable state. `validate_for` runs before any
# request and raises FormValidationError with the message shown to the user.

class AdminUserForm(CamelModel):
    username: str = ""
    email: str = ""
    password: str = ""
    name: str = ""
    role: str = "Employee"

    @classmethod
    def from_record(cls, user: AdminUser) -> "AdminUserForm":
        # Password is never prefilled; empty means "keep the current one"
        return cls(username=user.username, email=user.email, name=user.name, role=user.role or "Employee")

    def validate_for(self, editing: bool) -> None:
        if _blank(self.name):
            raise FormValidationError("Name is required")
        if _blank(self.username):
            raise FormValidationError("Username is required")
        if _blank(self.email):
            raise FormValidationError("Email is required")
        if not editing and not self.password:
            raise FormValidationError("Password is required")
        if self.password and len(self.password) < MIN_PASSWORD_LENGTH:
            raise FormValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    def create_payload(self) -> dict[str, Any]:
        return self.to_wire()

    def update_payload(self, original: AdminUser) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "email": self.email}
        if self.password:
            payload["password"] = self.password
        if self.role and self.role != original.role:
            payload["role"] = self.role
        return payload


class CategoryForm(CamelModel):
    name: str = ""
    description: Optional[str] = None
    icon: Optional[str] = None

    @classmethod
    def from_record(cls, category: Category) -> "CategoryForm":
        return cls(name=category.name, description=category.description, icon=category.icon)

    def validate_for(self, editing: bool) -> None:
        if _blank(self.name):
            raise FormValidationError("Name is required")

    def create_payload(self) -> dict[str, Any]:
        return self.to_wire()

    def update_payload(self, original: Category) -> dict[str, Any]:
        return {
            "id": original.id,
            **self.to_wire(),
            "displayOrder": original.display_order,
            "isActive": original.is_active,
        }


class CustomerForm(CamelModel):
    name: str = ""
    phone: str = ""
    email: str = ""
    default_address: Optional[str] = None
    document_type: Optional[str] = None
    document_number: Optional[str] = None

    def validate_for(self, editing: bool) -> None:
        if _blank(self.name) or _blank(self.phone) or _blank(self.email):
            raise FormValidationError("Name, phone and email are required")

    def create_payload(self) -> dict[str, Any]:
        return self.to_wire(exclude_none=True)


class DeliveryPersonForm(CamelModel):
    name: str = ""
    phone: Optional[str] = None
    email: Optional[str] = None
    username: str = ""
    password: str = ""
    is_active: bool = True

    @classmethod
    def from_record(cls, person: DeliveryPerson) -> "DeliveryPersonForm":
        return cls(
            name=person.name, phone=person.phone, email=person.email,
            username=person.username, is_active=person.is_active,
        )

    def validate_for(self, editing: bool) -> None:
        if _blank(self.name):
            raise FormValidationError("Name is required")
        if _blank(self.username):
            raise FormValidationError("Username is required")
        if not editing and not self.password:
            raise FormValidationError("Password is required")

    def create_payload(self) -> dict[str, Any]:
        return self.to_wire(exclude={"is_active"})

    def update_payload(self, original: DeliveryPerson) -> dict[str, Any]:
        payload = {"id": original.id, **self.to_wire(exclude={"password"})}
        if self.password:
            payload["password"] = self.password
        return payload
