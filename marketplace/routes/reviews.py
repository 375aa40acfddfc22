"""Product review API routes"""

from fastapi import APIRouter, Depends, Query

from ..database import ReviewDatabase
from ..models.review import CreateReviewRequest, ReplyRequest, ReviewOwnerRequest, UpdateReviewRequest
from .deps import get_review_db

router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.post("", status_code=201)
async def create_review(request: CreateReviewRequest, reviews: ReviewDatabase = Depends(get_review_db)):
    """One review per user per product; a second one is a 409"""
    return await reviews.create(request)


@router.get("/{product_id}")
async def list_reviews(
    product_id: str,
    page: int = Query(1),
    limit: int = Query(5),
    reviews: ReviewDatabase = Depends(get_review_db),
):
    """Newest first; limit is clamped to 1-20"""
    return await reviews.list_for_product(product_id, page=page, limit=limit)


@router.put("/{review_id}")
async def update_review(
    review_id: str,
    request: UpdateReviewRequest,
    reviews: ReviewDatabase = Depends(get_review_db),
):
    return await reviews.update(review_id, request)


@router.delete("/{review_id}")
async def delete_review(
    review_id: str,
    request: ReviewOwnerRequest,
    reviews: ReviewDatabase = Depends(get_review_db),
):
    return await reviews.delete(review_id, request.user_id)


@router.post("/{review_id}/like")
async def toggle_like(
    review_id: str,
    request: ReviewOwnerRequest,
    reviews: ReviewDatabase = Depends(get_review_db),
):
    return await reviews.toggle_like(review_id, request.user_id)


@router.post("/{review_id}/reply", status_code=201)
async def add_reply(
    review_id: str,
    request: ReplyRequest,
    reviews: ReviewDatabase = Depends(get_review_db),
):
    return await reviews.add_reply(review_id, request)
