from .menu import Availability, MenuItem
from .order import Order, OrderItem, OrderStatus, make_order_id

__all__ = ["Availability", "MenuItem", "Order", "OrderItem", "OrderStatus", "make_order_id"]
