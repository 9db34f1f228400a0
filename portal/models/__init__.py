# portal/models/__init__.py
from .product import Product
from .profile import Profile
from .order import Order
from .order_item import OrderItem

__all__ = [
    "Product",
    "Profile",
    "Order",
    "OrderItem",
]
