"""
Bistro API — Catalog schemas
"""
from datetime import datetime
from pydantic import Field

from bistro.models.product import ProductCategory
from bistro.schemas.common import CamelModel


class MenuItemCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    recipe: str = Field(..., min_length=1)
    image: str = Field(..., min_length=1, max_length=1024)
    category: ProductCategory
    price: float = Field(..., ge=0, allow_inf_nan=False)


class MenuItemUpdateRequest(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    recipe: str | None = Field(None, min_length=1)
    image: str | None = Field(None, min_length=1, max_length=1024)
    category: ProductCategory | None = None
    price: float | None = Field(None, ge=0, allow_inf_nan=False)


class MenuItemResponse(CamelModel):
    id: str
    name: str
    recipe: str
    image: str
    category: ProductCategory
    price: float
    created_at: datetime | None = None
    updated_at: datetime | None = None


class MenuDeleteResponse(CamelModel):
    deleted_count: int
