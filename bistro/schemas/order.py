"""
Bistro API — Order schemas
"""
from datetime import datetime
from pydantic import EmailStr, Field

from bistro.models.order import OrderStatus
from bistro.schemas.common import CamelModel


class OrderCreateRequest(CamelModel):
    menu_id: str = Field(..., min_length=1, max_length=64)
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    image: str = Field(..., min_length=1, max_length=1024)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    category: str = Field(..., min_length=1, max_length=64)


class OrderResponse(CamelModel):
    id: str
    menu_id: str
    email: str
    name: str
    image: str
    price: float
    category: str
    status: OrderStatus
    ordered_at: datetime | None = None


class OrderDeletedResponse(CamelModel):
    message: str
    deleted_order: OrderResponse
