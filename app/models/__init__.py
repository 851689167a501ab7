# Models
from .shop import Shop, ShopStatus
from .product import Product, ProductCategory
from .cart import Cart, CartItem
from .order import Order, OrderItem, OrderStatus, PaymentStatus
from .sub_order import SubOrder, SubOrderItem

__all__ = [
    "Shop",
    "ShopStatus",
    "Product",
    "ProductCategory",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "SubOrder",
    "SubOrderItem",
]
