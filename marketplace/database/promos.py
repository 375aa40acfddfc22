"""
Promo code storage and validation

Validation never consumes a use; usage is incremented only once a payment
has been confirmed.
"""

import logging
from typing import Optional

from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..core.errors import ConflictError, NotFoundError
from ..core.store import DocumentStore, PROMO_CODES
from ..models.promo import PromoCode, PromoQuote, PromoType, UpdatePromoRequest, normalize_code
from .helpers import as_utc, to_object_id, to_serializable, utcnow

logger = logging.getLogger(__name__)


class PromoDatabase:
    """Promo codes keyed by their normalized (uppercase) code"""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def list_codes(self) -> list[dict]:
        promos = await self.store.collection(PROMO_CODES)
        docs = await promos.find({}, sort=[("createdAt", DESCENDING)]).to_list(length=None)
        return [to_serializable(doc) for doc in docs]

    async def create(self, promo: PromoCode) -> dict:
        promos = await self.store.collection(PROMO_CODES)
        doc = promo.to_document()
        doc["usedCount"] = 0
        doc["isActive"] = True
        doc["createdAt"] = utcnow()
        try:
            result = await promos.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError(f'Promo code "{promo.code}" already exists.')
        doc["_id"] = result.inserted_id
        return to_serializable(doc)

    async def update(self, promo_id: str, update: UpdatePromoRequest) -> dict:
        promos = await self.store.collection(PROMO_CODES)
        oid = to_object_id(promo_id, "promo id")
        updates = update.to_update()
        if not updates:
            if not await promos.find_one({"_id": oid}):
                raise NotFoundError("Promo code not found")
            return {"acknowledged": True, "matchedCount": 1, "modifiedCount": 0}
        try:
            result = await promos.update_one({"_id": oid}, {"$set": updates})
        except DuplicateKeyError:
            raise ConflictError(f'Promo code "{updates.get("code")}" already exists.')
        if result.matched_count == 0:
            raise NotFoundError("Promo code not found")
        return {
            "acknowledged": result.acknowledged,
            "matchedCount": result.matched_count,
            "modifiedCount": result.modified_count,
        }

    async def delete(self, promo_id: str) -> dict:
        promos = await self.store.collection(PROMO_CODES)
        result = await promos.delete_one({"_id": to_object_id(promo_id, "promo id")})
        if result.deleted_count == 0:
            raise NotFoundError("Promo code not found")
        return {"acknowledged": result.acknowledged, "deletedCount": result.deleted_count}

    async def validate(self, code: str, subtotal: float) -> PromoQuote:
        """
        Quote a discount for a subtotal.

        Rejections are checked in order and the first one wins:
        not found, inactive, expired, usage limit reached, minimum order.
        """
        promos = await self.store.collection(PROMO_CODES)
        doc = await promos.find_one({"code": normalize_code(code)})

        if not doc:
            return PromoQuote(valid=False, error="Invalid promo code.")

        if not doc.get("isActive", True):
            return PromoQuote(valid=False, error="This promo code is no longer active.")

        expires_at = as_utc(doc.get("expiresAt"))
        if expires_at and expires_at < utcnow():
            return PromoQuote(valid=False, error="This promo code has expired.")

        max_uses = doc.get("maxUses")
        if max_uses is not None and doc.get("usedCount", 0) >= max_uses:
            return PromoQuote(valid=False, error="This promo code has reached its usage limit.")

        min_order = doc.get("minOrder")
        if min_order and subtotal < min_order:
            return PromoQuote(
                valid=False,
                error=f"A minimum order of ${min_order:.2f} is required for this code.",
            )

        return PromoQuote(
            valid=True,
            discount=compute_discount(PromoType(doc["type"]), doc["value"], subtotal),
            description=doc.get("description", ""),
            code=doc["code"],
        )

    async def increment_usage(self, code: Optional[str]) -> Optional[dict]:
        """Count one confirmed use; deactivates the code when it reaches maxUses"""
        if not code:
            return None
        promos = await self.store.collection(PROMO_CODES)
        doc = await promos.find_one_and_update(
            {"code": normalize_code(code)},
            {"$inc": {"usedCount": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            logger.warning(f"Usage increment for unknown promo code {code}")
            return None

        max_uses = doc.get("maxUses")
        if max_uses is not None and doc["usedCount"] >= max_uses and doc.get("isActive"):
            await promos.update_one({"_id": doc["_id"]}, {"$set": {"isActive": False}})
            doc["isActive"] = False
            logger.info(f"Promo code {doc['code']} reached its usage limit and was deactivated")
        return doc


def compute_discount(promo_type: PromoType, value: float, subtotal: float) -> float:
    if promo_type == PromoType.PERCENTAGE:
        return round(subtotal * value / 100, 2)
    return min(value, subtotal)
