# API Routes

from .cart import router as cart_router
from .payment import router as payment_router
from .notifications import router as notifications_router
from .orders import router as orders_router
from .promo import router as promo_router
from .reviews import router as reviews_router
from .realtime import router as realtime_router

__all__ = [
    "cart_router",
    "payment_router",
    "notifications_router",
    "orders_router",
    "promo_router",
    "reviews_router",
    "realtime_router",
]
