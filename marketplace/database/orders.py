"""
Order storage and dashboard aggregation

Orders live in `paidOrders`, keyed by the processor's payment intent id
(`transitionId`, unique index). Only `status` changes after creation.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Optional

from ..core.errors import ConflictError, NotFoundError
from ..core.store import DocumentStore, ORDERS, USERS
from ..models.checkout import Order, OrderStatus, ORDER_TRANSITIONS, PENDING_STATUSES
from .helpers import as_utc, to_object_id, to_serializable, utcnow
from .products import ProductDatabase

logger = logging.getLogger(__name__)

# Legacy field spellings renamed by migrate_legacy_fields()
LEGACY_FIELDS = {
    "amountpaid": "amountPaid",
    "TransitionId": "transitionId",
    "CustomerName": "customerName",
}


class OrderDatabase:
    """Order writes and read-side stats"""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.products = ProductDatabase(store)

    async def insert_if_absent(self, order: Order) -> bool:
        """
        Insert the order unless one with the same transitionId exists.

        Returns:
            True if this call created the order
        """
        orders = await self.store.collection(ORDERS)
        result = await orders.update_one(
            {"transitionId": order.transition_id},
            {"$setOnInsert": order.to_document()},
            upsert=True,
        )
        return result.upserted_id is not None

    async def list_orders(
        self,
        seller_email: Optional[str] = None,
        customer_email: Optional[str] = None,
    ) -> list[dict]:
        """List orders, newest first"""
        query = {}
        if seller_email:
            query["sellerEmail"] = seller_email
        if customer_email:
            query["customerEmail"] = customer_email

        orders = await self.store.collection(ORDERS)
        docs = await orders.find(query, sort=[("createdAt", -1)]).to_list(length=None)
        return [to_serializable(doc) for doc in docs]

    async def update_status(self, order_id: str, status: OrderStatus) -> dict:
        """Move an order along its lifecycle"""
        orders = await self.store.collection(ORDERS)
        oid = to_object_id(order_id, "order id")

        doc = await orders.find_one({"_id": oid})
        if not doc:
            raise NotFoundError("Order not found")

        current = OrderStatus(doc.get("status") or OrderStatus.NEW.value)
        if status == current:
            return {"acknowledged": True, "matchedCount": 1, "modifiedCount": 0}
        if status not in ORDER_TRANSITIONS[current]:
            raise ConflictError(f"Cannot move order from {current.value} to {status.value}")

        # Conditional on the status we read so concurrent moves cannot skip a step
        result = await orders.update_one(
            {"_id": oid, "status": doc.get("status")},
            {"$set": {"status": status.value, "updatedAt": utcnow()}},
        )
        if result.matched_count == 0:
            raise ConflictError("Order status changed concurrently, retry")

        logger.info(f"Order {order_id}: {current.value} -> {status.value}")
        return {
            "acknowledged": result.acknowledged,
            "matchedCount": result.matched_count,
            "modifiedCount": result.modified_count,
        }

    async def seller_stats(self, seller_email: str) -> dict:
        orders = await self._find({"sellerEmail": seller_email})
        return {
            "totalProducts": await self.products.count_products(seller_email),
            "totalOrders": len(orders),
            "totalRevenue": _revenue(orders),
            "statusCounts": _status_counts(orders),
            "last7Days": _last_days(orders),
        }

    async def user_stats(self, customer_email: str) -> dict:
        orders = await self._find({"customerEmail": customer_email})
        status_counts = _status_counts(orders)

        users = await self.store.collection(USERS)
        user = await users.find_one({"email": customer_email})

        return {
            "totalOrders": len(orders),
            "totalSpent": _revenue(orders),
            "pendingCount": sum(status_counts.get(s.value, 0) for s in PENDING_STATUSES),
            "deliveredCount": status_counts.get(OrderStatus.DELIVERED.value, 0),
            "wishlistCount": len((user or {}).get("wishlist") or []),
            "statusCounts": status_counts,
        }

    async def platform_stats(self) -> dict:
        orders = await self._find({})
        today = _day_start(utcnow())
        today_orders = [o for o in orders if _created(o) and _created(o) >= today]

        users = await self.store.collection(USERS)
        return {
            "totalOrders": len(orders),
            "totalRevenue": _revenue(orders),
            "totalUsers": await users.count_documents({}),
            "totalSellers": await users.count_documents({"role": "seller"}),
            "totalProducts": await self.products.count_products(),
            "pendingSellerRequests": await users.count_documents({"sellerRequest": "pending"}),
            "todaySales": _revenue(today_orders),
            "todayOrderCount": len(today_orders),
            "newUsersToday": await users.count_documents({"createdAt": {"$gte": today}}),
            "statusCounts": _status_counts(orders),
            "last7Days": _last_days(orders),
            "recentOrders": [to_serializable(o) for o in orders[:10]],
        }

    async def migrate_legacy_fields(self) -> int:
        """Rename legacy order fields to the canonical camelCase schema"""
        orders = await self.store.collection(ORDERS)
        migrated = 0
        for legacy, canonical in LEGACY_FIELDS.items():
            result = await orders.update_many(
                {legacy: {"$exists": True}, canonical: {"$exists": False}},
                {"$rename": {legacy: canonical}},
            )
            migrated += result.modified_count
        if migrated:
            logger.info(f"Migrated {migrated} legacy order field(s)")
        return migrated

    async def _find(self, query: dict) -> list[dict]:
        orders = await self.store.collection(ORDERS)
        return await orders.find(query, sort=[("createdAt", -1)]).to_list(length=None)


def _amount(order: dict) -> float:
    try:
        return float(order.get("amountPaid") or 0)
    except (TypeError, ValueError):
        return 0.0


def _revenue(orders: list[dict]) -> float:
    return round(sum(_amount(o) for o in orders), 2)


def _status_counts(orders: list[dict]) -> dict[str, int]:
    return dict(Counter(o.get("status") or OrderStatus.NEW.value for o in orders))


def _created(order: dict) -> Optional[datetime]:
    value = order.get("createdAt")
    return as_utc(value) if isinstance(value, datetime) else None


def _day_start(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _last_days(orders: list[dict], days: int = 7) -> list[dict]:
    """Per-day order count and revenue, oldest day first"""
    today = _day_start(utcnow())
    series = []
    for offset in range(days - 1, -1, -1):
        start = today - timedelta(days=offset)
        end = start + timedelta(days=1)
        day_orders = [o for o in orders if _created(o) and start <= _created(o) < end]
        series.append({
            "date": start.date().isoformat(),
            "day": start.strftime("%a"),
            "orders": len(day_orders),
            "revenue": _revenue(day_orders),
        })
    return series
