# Marketplace Models

from .product import Product
from .cart import (
    CartItem,
    CartLine,
    AddToCartRequest,
    UpdateCartItemRequest,
    RemoveCartItemRequest,
    CartResponse,
)
from .checkout import (
    Order,
    OrderStatus,
    ORDER_TRANSITIONS,
    PENDING_STATUSES,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    FinalizeResponse,
    UpdateOrderStatusRequest,
)
from .notification import (
    Notification,
    NotificationType,
    CreateNotificationRequest,
    MarkAllReadRequest,
    CouponBroadcastRequest,
)
from .promo import (
    PromoCode,
    PromoType,
    PromoQuote,
    CreatePromoRequest,
    UpdatePromoRequest,
    ValidatePromoRequest,
    normalize_code,
)
from .review import (
    Review,
    CreateReviewRequest,
    UpdateReviewRequest,
    ReviewOwnerRequest,
    ReplyRequest,
)

__all__ = [
    "Product",
    "CartItem",
    "CartLine",
    "AddToCartRequest",
    "UpdateCartItemRequest",
    "RemoveCartItemRequest",
    "CartResponse",
    "Order",
    "OrderStatus",
    "ORDER_TRANSITIONS",
    "PENDING_STATUSES",
    "CheckoutSessionRequest",
    "CheckoutSessionResponse",
    "FinalizeResponse",
    "UpdateOrderStatusRequest",
    "Notification",
    "NotificationType",
    "CreateNotificationRequest",
    "MarkAllReadRequest",
    "CouponBroadcastRequest",
    "PromoCode",
    "PromoType",
    "PromoQuote",
    "CreatePromoRequest",
    "UpdatePromoRequest",
    "ValidatePromoRequest",
    "normalize_code",
    "Review",
    "CreateReviewRequest",
    "UpdateReviewRequest",
    "ReviewOwnerRequest",
    "ReplyRequest",
]
