"""Promo code models"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime
from enum import Enum


class PromoType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def normalize_code(code: str) -> str:
    return code.strip().upper()


class PromoCode(BaseModel):
    """Stored promo code"""
    code: str = Field(min_length=1)
    type: PromoType
    value: float = Field(gt=0)
    description: str = ""
    min_order: Optional[float] = Field(default=None, alias="minOrder")
    max_uses: Optional[int] = Field(default=None, alias="maxUses", ge=1)
    used_count: int = Field(default=0, alias="usedCount", ge=0)
    is_active: bool = Field(default=True, alias="isActive")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    class Config:
        populate_by_name = True

    @field_validator("code")
    @classmethod
    def normalized(cls, value: str) -> str:
        value = normalize_code(value)
        if not value:
            raise ValueError("code is required")
        return value

    @model_validator(mode="after")
    def percentage_range(self) -> "PromoCode":
        if self.type == PromoType.PERCENTAGE and self.value > 100:
            raise ValueError("Percentage value must be between 1 and 100.")
        return self

    def to_document(self) -> dict:
        doc = self.model_dump(by_alias=True)
        doc["type"] = self.type.value
        return doc


class CreatePromoRequest(BaseModel):
    code: str = Field(min_length=1)
    type: PromoType
    value: float = Field(gt=0)
    description: Optional[str] = ""
    min_order: Optional[float] = Field(default=None, alias="minOrder", ge=0)
    max_uses: Optional[int] = Field(default=None, alias="maxUses", ge=0)
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")

    @field_validator("code")
    @classmethod
    def normalized(cls, value: str) -> str:
        value = normalize_code(value)
        if not value:
            raise ValueError("code is required")
        return value

    @model_validator(mode="after")
    def percentage_range(self) -> "CreatePromoRequest":
        if self.type == PromoType.PERCENTAGE and self.value > 100:
            raise ValueError("Percentage value must be between 1 and 100.")
        return self


class UpdatePromoRequest(BaseModel):
    """Partial promo update; usage counters are not writable here"""
    code: Optional[str] = None
    type: Optional[PromoType] = None
    value: Optional[float] = Field(default=None, gt=0)
    description: Optional[str] = None
    min_order: Optional[float] = Field(default=None, alias="minOrder")
    max_uses: Optional[int] = Field(default=None, alias="maxUses", ge=1)
    is_active: Optional[bool] = Field(default=None, alias="isActive")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")

    def to_update(self) -> dict:
        updates = self.model_dump(by_alias=True, exclude_unset=True)
        if updates.get("code"):
            updates["code"] = normalize_code(updates["code"])
        if isinstance(updates.get("type"), PromoType):
            updates["type"] = updates["type"].value
        return updates


class ValidatePromoRequest(BaseModel):
    code: str = Field(min_length=1)
    subtotal: float = Field(ge=0)


class PromoQuote(BaseModel):
    """Public validation result; internal counters are never included"""
    valid: bool
    discount: Optional[float] = None
    description: Optional[str] = None
    code: Optional[str] = None
    error: Optional[str] = None

    def to_response(self) -> dict:
        return self.model_dump(exclude_none=True)
