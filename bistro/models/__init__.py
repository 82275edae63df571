from bistro.models.order import Order, OrderStatus
from bistro.models.payment import Payment, PaymentStatus, ReconciliationStatus, SettlementReconciliation
from bistro.models.product import Product, ProductCategory
from bistro.models.user import User, UserRole

__all__ = [
    "Order",
    "OrderStatus",
    "Payment",
    "PaymentStatus",
    "Product",
    "ProductCategory",
    "ReconciliationStatus",
    "SettlementReconciliation",
    "User",
    "UserRole",
]
