"""Product review models"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

MAX_REVIEW_IMAGES = 5


class Review(BaseModel):
    """Stored review; one per user per product"""
    product_id: str = Field(alias="productId")
    user_id: str = Field(alias="userId", min_length=1)
    user_name: str = Field(default="Anonymous", alias="userName")
    user_email: str = Field(default="", alias="userEmail")
    user_image: str = Field(default="", alias="userImage")
    rating: int = Field(ge=1, le=5)
    comment: str = ""
    images: list[str] = Field(default=[], max_length=MAX_REVIEW_IMAGES)
    likes: list[str] = []
    replies: list[dict] = []
    created_at: datetime = Field(alias="createdAt")

    class Config:
        populate_by_name = True

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class CreateReviewRequest(BaseModel):
    """Image uploads happen elsewhere; reviews carry the hosted URLs"""
    product_id: str = Field(alias="productId", min_length=1)
    user_id: str = Field(alias="userId", min_length=1)
    user_name: Optional[str] = Field(default=None, alias="userName")
    user_email: Optional[str] = Field(default=None, alias="userEmail")
    user_image: Optional[str] = Field(default=None, alias="userImage")
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = ""
    images: list[str] = Field(default=[], max_length=MAX_REVIEW_IMAGES)


class UpdateReviewRequest(BaseModel):
    user_id: str = Field(alias="userId", min_length=1)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = None
    images: Optional[list[str]] = Field(default=None, max_length=MAX_REVIEW_IMAGES)

    def to_update(self) -> dict:
        return self.model_dump(exclude={"user_id"}, exclude_none=True)


class ReviewOwnerRequest(BaseModel):
    user_id: str = Field(alias="userId", min_length=1)


class ReplyRequest(BaseModel):
    user_id: str = Field(alias="userId", min_length=1)
    user_name: Optional[str] = Field(default=None, alias="userName")
    user_image: Optional[str] = Field(default=None, alias="userImage")
    comment: str = Field(min_length=1)
