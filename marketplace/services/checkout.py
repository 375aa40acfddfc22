"""
Checkout / Payment Bridge

initiated: a hosted checkout session is created and the buyer redirected.
completed: the processor confirms payment and one order is persisted.

The callback only receives a session id, so order context travels through
the processor as session metadata. Finalize may run several times for the
same payment (success page reloads, retries); the payment intent id keys
the order so only the first call writes anything.
"""

import logging
from typing import Any, Optional

from ..core.config import Settings
from ..core.errors import ValidationError
from ..database.helpers import utcnow
from ..database.orders import OrderDatabase
from ..database.promos import PromoDatabase
from ..models.checkout import CheckoutSessionRequest, FinalizeResponse, Order, OrderStatus
from ..models.notification import NotificationType
from .notifier import NotificationService
from .payment_client import PaymentProcessorClient

logger = logging.getLogger(__name__)


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


def derive_quantity(gross_amount: float, unit_price: Optional[float]) -> int:
    """Units bought = gross paid / unit price, or 1 when that is not a whole number"""
    if not unit_price or unit_price <= 0:
        return 1
    units = gross_amount / unit_price
    whole = round(units)
    if whole >= 1 and abs(units - whole) < 0.01:
        return whole
    return 1


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class CheckoutBridge:
    """Creates processor sessions and turns paid sessions into orders"""

    def __init__(
        self,
        payments: PaymentProcessorClient,
        orders: OrderDatabase,
        promos: PromoDatabase,
        notifier: NotificationService,
        settings: Settings,
    ):
        self.payments = payments
        self.orders = orders
        self.promos = promos
        self.notifier = notifier
        self.settings = settings

    async def create_session(self, line: CheckoutSessionRequest) -> str:
        """
        Open a hosted checkout session for one cart line.

        Returns:
            The processor URL to redirect the buyer to
        """
        subtotal = line.subtotal
        discount = 0.0
        promo_code = None

        if line.promo_code:
            quote = await self.promos.validate(line.promo_code, subtotal)
            if not quote.valid:
                raise ValidationError(quote.error)
            discount = quote.discount or 0.0
            promo_code = quote.code

        amount_due = round(subtotal - discount, 2)
        if amount_due <= 0:
            raise ValidationError("Order total must be greater than zero after discount")

        description = f"Sold by: {line.seller_name}. Thank you for shopping with Unity Shop!"
        if discount:
            # Discounted orders are charged as one line holding the whole amount
            line_item = {
                "price_data": {
                    "currency": self.settings.currency,
                    "unit_amount": to_minor_units(amount_due),
                    "product_data": {"name": f"{line.product_name} x{line.quantity}", "description": description},
                },
                "quantity": 1,
            }
        else:
            line_item = {
                "price_data": {
                    "currency": self.settings.currency,
                    "unit_amount": to_minor_units(line.price),
                    "product_data": {"name": line.product_name, "description": description},
                },
                "quantity": line.quantity,
            }

        metadata = {
            "productId": line.product_id,
            "productName": line.product_name,
            "sellerName": line.seller_name or "",
            "sellerEmail": line.seller_email or "",
            "unitPrice": f"{line.price:.2f}",
            "createdAt": utcnow().isoformat(),
        }
        if promo_code:
            metadata["promoCode"] = promo_code
            metadata["discount"] = f"{discount:.2f}"

        session = await self.payments.create_checkout_session({
            "mode": "payment",
            "line_items": [line_item],
            "customer_email": line.user_email,
            "metadata": metadata,
            "success_url": self.settings.success_url,
            "cancel_url": self.settings.cancel_url,
        })

        logger.info(f"Checkout session {session.get('id')} created for product {line.product_id} (${amount_due:.2f})")
        return session["url"]

    async def finalize_session(self, session_id: Optional[str]) -> FinalizeResponse:
        """
        Persist the order for a paid session, at most once per payment intent.

        Unpaid sessions are echoed back without writing. A repeat call for an
        already recorded payment writes nothing and sends no notifications.
        """
        if not session_id:
            raise ValidationError("session_id is required")

        session = await self.payments.retrieve_checkout_session(session_id)
        metadata = session.get("metadata") or {}
        customer_details = session.get("customer_details") or {}
        customer_email = session.get("customer_email") or customer_details.get("email")

        response = FinalizeResponse(
            status=session.get("status"),
            payment_status=session.get("payment_status"),
            metadata=metadata,
            customer_email=customer_email,
        )

        transition_id = session.get("payment_intent")
        if isinstance(transition_id, dict):
            transition_id = transition_id.get("id")

        if session.get("payment_status") != "paid" or not transition_id:
            logger.info(f"Session {session_id} not paid ({session.get('payment_status')}), no order written")
            response.message = "Payment not completed."
            return response

        amount_paid = (session.get("amount_total") or 0) / 100
        discount = _as_float(metadata.get("discount"))
        order = Order(
            transitionId=transition_id,
            customerEmail=customer_email,
            customerName=customer_details.get("name"),
            productId=metadata.get("productId"),
            productName=metadata.get("productName"),
            sellerEmail=metadata.get("sellerEmail") or None,
            sellerName=metadata.get("sellerName") or None,
            quantity=derive_quantity(amount_paid + discount, _as_float(metadata.get("unitPrice"))),
            amountPaid=amount_paid,
            paymentStatus=session.get("payment_status"),
            status=OrderStatus.NEW,
            promoCode=metadata.get("promoCode"),
            discount=discount,
            createdAt=utcnow(),
        )

        created = await self.orders.insert_if_absent(order)
        if not created:
            logger.info(f"Payment {transition_id} already recorded, skipping")
            response.already_processed = True
            response.message = "Order already processed."
            return response

        logger.info(f"Order recorded for payment {transition_id}: ${amount_paid:.2f}")

        if order.promo_code:
            try:
                await self.promos.increment_usage(order.promo_code)
            except Exception:
                logger.exception(f"Failed to count usage of promo code {order.promo_code}")

        await self._notify_parties(order)

        response.message = "Order created."
        return response

    async def _notify_parties(self, order: Order) -> None:
        await self.notifier.notify_safely(
            order.customer_email,
            NotificationType.PAYMENT_SUCCESS,
            "Order Confirmed!",
            f"Payment successful for {order.product_name}. Amount: ${order.amount_paid:.2f}",
            {"transitionId": order.transition_id, "productId": order.product_id},
        )
        await self.notifier.notify_safely(
            order.seller_email,
            NotificationType.ORDER_CONFIRMED,
            "New Order Received!",
            f"Start packing! You sold {order.product_name} to {order.customer_name or order.customer_email}.",
            {"transitionId": order.transition_id, "productId": order.product_id, "quantity": order.quantity},
        )
