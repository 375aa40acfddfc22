"""
Cart storage

One cart document per user: {userId, items: [{productId, quantity}], updatedAt}.
Every write is an atomic update whose filter carries the quantity guard,
so quantities below 1 are never written.
"""

import logging
from enum import Enum

from bson import ObjectId

from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..core.store import DocumentStore, CARTS, PRODUCTS
from ..models.cart import CartItem, CartLine
from ..models.product import Product
from .helpers import to_object_id, utcnow

logger = logging.getLogger(__name__)

CART_UPDATED = "cart-updated"

MAX_DECREMENT_ATTEMPTS = 3


class CartChange(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"
    UNCHANGED = "unchanged"


class CartDatabase:
    """Cart mutations and enriched cart reads"""

    def __init__(self, store: DocumentStore, channels=None):
        """
        Args:
            store: Document store handle
            channels: Optional realtime registry notified after each mutation
        """
        self.store = store
        self.channels = channels

    async def get_cart(self, user_id: str) -> list[CartLine]:
        """Cart rows joined with current product data, [] when no cart exists"""
        carts = await self.store.collection(CARTS)
        pipeline = [
            {"$match": {"userId": to_object_id(user_id, "userId")}},
            {"$unwind": "$items"},
            {"$project": {
                "_id": 0,
                "productId": "$items.productId",
                "quantity": "$items.quantity",
            }},
            {"$lookup": {
                "from": PRODUCTS,
                "localField": "productId",
                "foreignField": "_id",
                "as": "product",
            }},
        ]
        rows = await carts.aggregate(pipeline).to_list(length=None)

        lines = []
        for row in rows:
            if not row.get("product") or row["quantity"] < 1:
                # Product deleted from the catalog, or a row stored below the floor
                continue
            product = Product.from_document(row["product"][0])
            lines.append(CartLine(
                product_id=str(row["productId"]),
                quantity=row["quantity"],
                name=product.name,
                image=product.image,
                category=product.category,
                price=product.price,
                stock=product.stock,
                seller_id=product.seller_id,
                seller_email=product.seller_email,
                seller_name=product.seller_name,
            ))
        return lines

    async def add_or_adjust(self, user_id: str, product_id: str, delta: int) -> CartChange:
        """
        Apply a signed quantity change to a cart row.

        An existing row whose quantity would fall below 1 is pulled instead.
        A missing row is created (and the cart upserted) for positive deltas;
        a negative delta against a missing row changes nothing.

        The quantity floor lives in the update filters, so concurrent
        decrements can never leave a row at zero.
        """
        if delta == 0:
            raise ValidationError("quantity must be a non-zero integer")

        user_oid = to_object_id(user_id, "userId")
        product_oid = to_object_id(product_id, "productId")
        carts = await self.store.collection(CARTS)

        if delta > 0:
            result = await self._increment(carts, {"userId": user_oid, "items.productId": product_oid}, delta)
            if result.matched_count:
                change = CartChange.UPDATED
            else:
                change = await self._insert_row(carts, user_oid, product_oid, delta)
        else:
            change = await self._decrement(carts, user_oid, product_oid, delta)

        logger.debug(f"Cart {user_id}: product {product_id} {change.value} (delta {delta})")
        if change != CartChange.UNCHANGED:
            await self._emit(user_id, change)
        return change

    async def set_quantity(self, user_id: str, product_id: str, quantity: int) -> None:
        """Overwrite a row's quantity; quantities below 1 are rejected"""
        if quantity < 1:
            raise ValidationError("quantity must be at least 1; remove the item instead")

        user_oid = to_object_id(user_id, "userId")
        product_oid = to_object_id(product_id, "productId")
        carts = await self.store.collection(CARTS)

        result = await carts.update_one(
            {"userId": user_oid, "items.productId": product_oid},
            {"$set": {"items.$.quantity": quantity, "updatedAt": utcnow()}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Item not in cart")

        await self._emit(user_id, CartChange.UPDATED)

    async def remove_item(self, user_id: str, product_id: str) -> dict:
        """Pull a row; removing an absent row is a successful no-op"""
        user_oid = to_object_id(user_id, "userId")
        product_oid = to_object_id(product_id, "productId")
        carts = await self.store.collection(CARTS)

        result = await self._pull(carts, user_oid, product_oid)
        if result.modified_count:
            await self._emit(user_id, CartChange.REMOVED)

        return {
            "acknowledged": result.acknowledged,
            "matchedCount": result.matched_count,
            "modifiedCount": result.modified_count,
        }

    async def _pull(self, carts, user_oid: ObjectId, product_oid: ObjectId):
        return await carts.update_one(
            {"userId": user_oid},
            {"$pull": {"items": {"productId": product_oid}}, "$set": {"updatedAt": utcnow()}},
        )

    async def _increment(self, carts, query: dict, delta: int):
        return await carts.update_one(
            query,
            {"$inc": {"items.$.quantity": delta}, "$set": {"updatedAt": utcnow()}},
        )

    async def _decrement(self, carts, user_oid: ObjectId, product_oid: ObjectId, delta: int) -> CartChange:
        floor = 1 - delta
        for _ in range(MAX_DECREMENT_ATTEMPTS):
            # Only rows that stay at 1 or more are decremented in place
            result = await self._increment(
                carts,
                {"userId": user_oid, "items": {"$elemMatch": {"productId": product_oid, "quantity": {"$gte": floor}}}},
                delta,
            )
            if result.matched_count:
                return CartChange.UPDATED

            pulled = await carts.update_one(
                {"userId": user_oid},
                {
                    "$pull": {"items": {"productId": product_oid, "quantity": {"$lt": floor}}},
                    "$set": {"updatedAt": utcnow()},
                },
            )
            if pulled.modified_count:
                return CartChange.REMOVED

            # Row absent, or raised above the floor between the two updates
            if not await carts.find_one({"userId": user_oid, "items.productId": product_oid}):
                return CartChange.UNCHANGED
        raise ConflictError("Cart changed concurrently, retry")

    async def _insert_row(self, carts, user_oid: ObjectId, product_oid: ObjectId, quantity: int) -> CartChange:
        item = CartItem(product_id=str(product_oid), quantity=quantity)
        now = utcnow()
        await carts.update_one(
            {"userId": user_oid},
            {"$setOnInsert": {"items": [], "updatedAt": now}},
            upsert=True,
        )
        # Guarded push keeps one row per product even if another request
        # inserted the same product after the increment missed
        pushed = await carts.update_one(
            {"userId": user_oid, "items.productId": {"$ne": product_oid}},
            {"$push": {"items": {"productId": product_oid, "quantity": item.quantity}}, "$set": {"updatedAt": now}},
        )
        if pushed.matched_count:
            return CartChange.ADDED

        await self._increment(carts, {"userId": user_oid, "items.productId": product_oid}, item.quantity)
        return CartChange.UPDATED

    async def _emit(self, user_id: str, change: CartChange) -> None:
        if self.channels is None:
            return
        await self.channels.emit(user_id, CART_UPDATED, {
            "message": f"Item {change.value}",
            "change": change.value,
        })
