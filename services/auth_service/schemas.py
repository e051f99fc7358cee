from typing import Any, Optional

from pydantic import EmailStr, Field

from shared.api.models import CamelModel


class LoginResponse(CamelModel):
    token: str
    user: dict[str, Any] = Field(default_factory=dict)


class DeliveryLoginResponse(CamelModel):
    token: str
    delivery_person: dict[str, Any] = Field(default_factory=dict)


class CustomerLogin(CamelModel):
    email: EmailStr
    password: str


class CustomerRegistration(CamelModel):
    name: str
    email: EmailStr
    password: str
    phone: str
    default_address: str
    restaurant_id: Optional[int] = None
