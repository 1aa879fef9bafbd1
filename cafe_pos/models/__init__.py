# cafe_pos/models/__init__.py
from .user import User, UserRole
from .catalog import Ingredient, Product, ProductIngredient
from .order import Order, OrderItem, OrderStatus
from .shift import Shift
from .audit import AuditLog

# Export all models
__all__ = [
    "AuditLog",
    "Ingredient",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Product",
    "ProductIngredient",
    "Shift",
    "User",
    "UserRole",
]
