"""Request-scoped accessors for the handles built by create_app()"""

from fastapi import Request

from ..database import (
    CartDatabase,
    NotificationDatabase,
    OrderDatabase,
    ProductDatabase,
    PromoDatabase,
    ReviewDatabase,
)
from ..services import CheckoutBridge, NotificationService


def get_cart_db(request: Request) -> CartDatabase:
    state = request.app.state
    return CartDatabase(state.store, channels=state.channels)


def get_product_db(request: Request) -> ProductDatabase:
    return ProductDatabase(request.app.state.store)


def get_order_db(request: Request) -> OrderDatabase:
    return OrderDatabase(request.app.state.store)


def get_promo_db(request: Request) -> PromoDatabase:
    return PromoDatabase(request.app.state.store)


def get_review_db(request: Request) -> ReviewDatabase:
    return ReviewDatabase(request.app.state.store)


def get_notification_db(request: Request) -> NotificationDatabase:
    state = request.app.state
    return NotificationDatabase(state.store, list_limit=state.settings.notification_list_limit)


def get_notifier(request: Request) -> NotificationService:
    return NotificationService(get_notification_db(request), channels=request.app.state.channels)


def get_checkout(request: Request) -> CheckoutBridge:
    state = request.app.state
    return CheckoutBridge(
        payments=state.payments,
        orders=get_order_db(request),
        promos=get_promo_db(request),
        notifier=get_notifier(request),
        settings=state.settings,
    )
