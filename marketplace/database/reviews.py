"""
Product review storage

A unique (productId, userId) index keeps one review per user per product.
Every write recomputes the product's `rating` (mean, one decimal) and
`reviews` (count) fields.
"""

import logging
import math

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..core.store import DocumentStore, PRODUCTS, REVIEWS
from ..models.review import CreateReviewRequest, ReplyRequest, Review, UpdateReviewRequest
from .helpers import to_object_id, to_serializable, utcnow

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 20


class ReviewDatabase:
    """Reviews, likes and replies for catalog products"""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def create(self, request: CreateReviewRequest) -> dict:
        product_oid = to_object_id(request.product_id, "productId")
        products = await self.store.collection(PRODUCTS)
        if not await products.find_one({"_id": product_oid}, {"_id": 1}):
            raise NotFoundError("Product not found")

        review = Review(
            productId=request.product_id,
            userId=request.user_id,
            userName=request.user_name or "Anonymous",
            userEmail=request.user_email or "",
            userImage=request.user_image or "",
            rating=request.rating,
            comment=request.comment or "",
            images=request.images,
            createdAt=utcnow(),
        )
        doc = review.to_document()
        doc["productId"] = product_oid

        reviews = await self.store.collection(REVIEWS)
        try:
            result = await reviews.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("You have already reviewed this product")
        doc["_id"] = result.inserted_id

        doc["productStats"] = await self.recalculate_rating(product_oid)
        return to_serializable(doc)

    async def list_for_product(self, product_id: str, page: int = 1, limit: int = 5) -> dict:
        """Newest reviews first, with pagination metadata"""
        page = max(1, page)
        limit = min(MAX_PAGE_SIZE, max(1, limit))
        query = {"productId": to_object_id(product_id, "productId")}

        reviews = await self.store.collection(REVIEWS)
        docs = await reviews.find(
            query,
            sort=[("createdAt", DESCENDING)],
            skip=(page - 1) * limit,
            limit=limit,
        ).to_list(length=None)
        total = await reviews.count_documents(query)

        return {
            "reviews": to_serializable(docs),
            "pagination": {
                "page": page,
                "limit": limit,
                "totalCount": total,
                "totalPages": math.ceil(total / limit),
                "hasMore": page * limit < total,
            },
        }

    async def update(self, review_id: str, request: UpdateReviewRequest) -> dict:
        """Edit the caller's own review"""
        updates = request.to_update()
        if not updates:
            raise ValidationError("Nothing to update")
        updates["updatedAt"] = utcnow()

        reviews = await self.store.collection(REVIEWS)
        doc = await reviews.find_one_and_update(
            {"_id": to_object_id(review_id, "review id"), "userId": request.user_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFoundError("Review not found or unauthorized")

        doc["productStats"] = await self.recalculate_rating(doc["productId"])
        return to_serializable(doc)

    async def delete(self, review_id: str, user_id: str) -> dict:
        reviews = await self.store.collection(REVIEWS)
        doc = await reviews.find_one_and_delete(
            {"_id": to_object_id(review_id, "review id"), "userId": user_id},
        )
        if doc is None:
            raise NotFoundError("Review not found or unauthorized")

        stats = await self.recalculate_rating(doc["productId"])
        return {"message": "Review deleted", "productStats": stats}

    async def toggle_like(self, review_id: str, user_id: str) -> dict:
        oid = to_object_id(review_id, "review id")
        reviews = await self.store.collection(REVIEWS)

        doc = await reviews.find_one({"_id": oid}, {"likes": 1})
        if doc is None:
            raise NotFoundError("Review not found")

        liked = user_id not in (doc.get("likes") or [])
        update = {"$addToSet": {"likes": user_id}} if liked else {"$pull": {"likes": user_id}}
        doc = await reviews.find_one_and_update({"_id": oid}, update, return_document=ReturnDocument.AFTER)
        return {"liked": liked, "likeCount": len(doc.get("likes") or [])}

    async def add_reply(self, review_id: str, request: ReplyRequest) -> dict:
        reply = {
            "_id": ObjectId(),
            "userId": request.user_id,
            "userName": request.user_name or "Anonymous",
            "userImage": request.user_image or "",
            "comment": request.comment,
            "createdAt": utcnow(),
            "likes": [],
        }
        reviews = await self.store.collection(REVIEWS)
        result = await reviews.update_one(
            {"_id": to_object_id(review_id, "review id")},
            {"$push": {"replies": reply}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Review not found")
        return to_serializable(reply)

    async def recalculate_rating(self, product_oid: ObjectId) -> dict:
        """Store the mean rating and review count on the product"""
        reviews = await self.store.collection(REVIEWS)
        rows = await reviews.aggregate([
            {"$match": {"productId": product_oid}},
            {"$group": {"_id": None, "averageRating": {"$avg": "$rating"}, "totalReviews": {"$sum": 1}}},
        ]).to_list(length=None)

        average = round(rows[0]["averageRating"], 1) if rows else 0
        total = rows[0]["totalReviews"] if rows else 0

        products = await self.store.collection(PRODUCTS)
        await products.update_one({"_id": product_oid}, {"$set": {"rating": average, "reviews": total}})
        logger.debug(f"Product {product_oid} rating {average} over {total} review(s)")
        return {"averageRating": average, "totalReviews": total}
