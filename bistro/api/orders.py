"""
Bistro API — Orders API
"""
import logging
from fastapi import APIRouter, Depends, Query, status

from bistro.api.deps import get_order_store
from bistro.core.errors import InvalidRequest, NotFound
from bistro.db.orders import OrderStore
from bistro.schemas.order import OrderCreateRequest, OrderDeletedResponse, OrderResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def place_order(payload: OrderCreateRequest, orders: OrderStore = Depends(get_order_store)):
    """Place an order. Status always starts at pending."""
    order = await orders.create(**payload.model_dump())
    logger.info("Order %s placed by %s for menu item %s", order.id, order.email, order.menu_id)
    return order


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    email: str | None = Query(None, description="Customer email"),
    orders: OrderStore = Depends(get_order_store),
):
    if not email or not email.strip():
        raise InvalidRequest("Email query param is required")
    return await orders.list_by_email(email.strip())


@router.delete("/{order_id}", response_model=OrderDeletedResponse)
async def delete_order(order_id: str, orders: OrderStore = Depends(get_order_store)):
    """Cancel a single order before it is settled."""
    order = await orders.delete(order_id)
    if order is None:
        raise NotFound("Order not found")
    logger.info("Order %s deleted", order_id)
    return OrderDeletedResponse(
        message="Order deleted successfully",
        deleted_order=OrderResponse.model_validate(order),
    )
