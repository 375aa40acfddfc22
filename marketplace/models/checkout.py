"""Checkout and order models"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum


class OrderStatus(str, Enum):
    NEW = "New"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


# Allowed seller/admin status moves
ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.NEW: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

# Statuses counted as "pending" on the buyer dashboard
PENDING_STATUSES = (OrderStatus.NEW, OrderStatus.PROCESSING, OrderStatus.SHIPPED)


class CheckoutSessionRequest(BaseModel):
    """Single cart line sent to the payment processor"""
    price: float = Field(gt=0)
    product_id: str = Field(alias="productId")
    quantity: int = Field(default=1, ge=1)
    product_name: str = Field(alias="productName", min_length=1)
    user_email: Optional[str] = Field(default=None, alias="userEmail")
    seller_name: Optional[str] = Field(default=None, alias="sellerName")
    seller_email: Optional[str] = Field(default=None, alias="sellerEmail")
    promo_code: Optional[str] = Field(default=None, alias="promoCode")

    @property
    def subtotal(self) -> float:
        return round(self.price * self.quantity, 2)


class CheckoutSessionResponse(BaseModel):
    url: str


class Order(BaseModel):
    """Completed payment, one per payment intent"""
    transition_id: str = Field(alias="transitionId")
    customer_email: Optional[str] = Field(default=None, alias="customerEmail")
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    product_id: Optional[str] = Field(default=None, alias="productId")
    product_name: Optional[str] = Field(default=None, alias="productName")
    seller_email: Optional[str] = Field(default=None, alias="sellerEmail")
    seller_name: Optional[str] = Field(default=None, alias="sellerName")
    quantity: int = Field(default=1, ge=1)
    amount_paid: float = Field(alias="amountPaid", ge=0)
    payment_status: Optional[str] = Field(default=None, alias="paymentStatus")
    status: OrderStatus = OrderStatus.NEW
    promo_code: Optional[str] = Field(default=None, alias="promoCode")
    discount: float = 0.0
    created_at: datetime = Field(alias="createdAt")

    class Config:
        populate_by_name = True

    def to_document(self) -> dict:
        doc = self.model_dump(by_alias=True)
        doc["status"] = self.status.value
        return doc


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus

    @field_validator("status", mode="before")
    @classmethod
    def known_status(cls, value):
        if isinstance(value, str) and value not in {s.value for s in OrderStatus}:
            raise ValueError(f"status must be one of {', '.join(s.value for s in OrderStatus)}")
        return value


class FinalizeResponse(BaseModel):
    """Echo of the processor session after finalize"""
    status: Optional[str] = None
    payment_status: Optional[str] = None
    metadata: dict = {}
    customer_email: Optional[str] = None
    already_processed: bool = Field(default=False, serialization_alias="alreadyProcessed")
    message: Optional[str] = None
