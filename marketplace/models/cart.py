"""Cart models"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional


class CartItem(BaseModel):
    """Stored cart row"""
    product_id: str = Field(alias="productId")
    quantity: int = Field(ge=1)

    class Config:
        populate_by_name = True


class CartLine(BaseModel):
    """Cart row joined with live product data"""
    product_id: str = Field(serialization_alias="productId")
    quantity: int
    name: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    price: float = 0.0
    stock: int = 0
    seller_id: Optional[str] = Field(default=None, serialization_alias="sellerId")
    seller_email: Optional[str] = Field(default=None, serialization_alias="sellerEmail")
    seller_name: Optional[str] = Field(default=None, serialization_alias="sellerName")

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)

    @property
    def in_stock(self) -> bool:
        return self.stock >= self.quantity

    def to_response(self) -> dict:
        data = self.model_dump(by_alias=True)
        data["lineTotal"] = self.line_total
        data["inStock"] = self.in_stock
        return data


class AddToCartRequest(BaseModel):
    """Signed quantity change for a cart row"""
    user_id: str = Field(alias="userId")
    product_id: str = Field(alias="productId")
    quantity: int = 1

    @field_validator("quantity")
    @classmethod
    def non_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("quantity must be a non-zero integer")
        return value


class UpdateCartItemRequest(BaseModel):
    """Absolute quantity for a cart row"""
    user_id: str = Field(alias="userId")
    product_id: str = Field(alias="productId")
    quantity: int = Field(ge=1)


class RemoveCartItemRequest(BaseModel):
    user_id: str = Field(alias="userId")
    product_id: str = Field(alias="productId")


class CartResponse(BaseModel):
    """Cart mutation API response"""
    success: bool = True
    message: str
