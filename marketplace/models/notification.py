"""Notification models"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, Optional
from datetime import datetime
from enum import Enum


class NotificationType(str, Enum):
    CART_ADD = "cart_add"
    ORDER_CONFIRMED = "order_confirmed"
    PAYMENT_SUCCESS = "payment_success"
    COUPON = "coupon"
    PRODUCT_APPROVED = "product_approved"
    PRODUCT_REJECTED = "product_rejected"


class Notification(BaseModel):
    """Persisted notification for one recipient"""
    email: str
    type: NotificationType
    title: str = Field(min_length=1)
    message: str = ""
    meta: dict[str, Any] = {}
    read: bool = False
    created_at: datetime = Field(alias="createdAt")

    class Config:
        populate_by_name = True

    @field_validator("email")
    @classmethod
    def non_blank_email(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("email is required")
        return value

    def to_document(self) -> dict:
        doc = self.model_dump(by_alias=True)
        doc["type"] = self.type.value
        return doc


class CreateNotificationRequest(BaseModel):
    email: str
    type: NotificationType
    title: str = Field(min_length=1)
    message: Optional[str] = ""
    meta: Optional[dict[str, Any]] = None


class MarkAllReadRequest(BaseModel):
    email: str = Field(min_length=1)


class CouponBroadcastRequest(BaseModel):
    code: str = Field(min_length=1)
    discount: Any
