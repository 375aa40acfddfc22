# Database modules

from .products import ProductDatabase
from .carts import CartDatabase, CartChange, CART_UPDATED
from .orders import OrderDatabase
from .notifications import NotificationDatabase
from .promos import PromoDatabase, compute_discount
from .reviews import ReviewDatabase

__all__ = [
    "ProductDatabase",
    "CartDatabase",
    "CartChange",
    "CART_UPDATED",
    "OrderDatabase",
    "NotificationDatabase",
    "PromoDatabase",
    "compute_discount",
    "ReviewDatabase",
]
