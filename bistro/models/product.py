"""
Bistro API — Catalog (menu) model
"""
import uuid
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import String, Float, DateTime, func, Text, Enum, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from bistro.db.database import Base


class ProductCategory(str, PyEnum):
    PIZZA = "pizza"
    BURGER = "burger"
    SALAD = "salad"
    DRINK = "drink"
    DESSERT = "dessert"
    SOUP = "soup"
    POPULAR = "popular"
    OFFERED = "offered"


class Product(Base):
    __tablename__ = "menu_items"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_menu_items_price_non_negative"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    recipe: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[str] = mapped_column(String(1024), nullable=False)
    category: Mapped[ProductCategory] = mapped_column(
        Enum(ProductCategory, name="product_category", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    price: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
