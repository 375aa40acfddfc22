"""Order lifecycle and dashboard stats"""

from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from marketplace.core.errors import ConflictError, NotFoundError
from marketplace.core.store import ORDERS, USERS
from marketplace.database import OrderDatabase
from marketplace.models.checkout import Order, OrderStatus


@pytest.fixture
def orders(store):
    return OrderDatabase(store)


def make_order(**overrides) -> Order:
    fields = {
        "transitionId": f"pi_{ObjectId()}",
        "customerEmail": "buyer@example.com",
        "customerName": "Bea Buyer",
        "productId": str(ObjectId()),
        "productName": "Walnut Desk Lamp",
        "sellerEmail": "seller@example.com",
        "sellerName": "Sam Seller",
        "quantity": 1,
        "amountPaid": 25.5,
        "paymentStatus": "paid",
        "createdAt": datetime.now(timezone.utc),
    }
    fields.update(overrides)
    return Order(**fields)


async def seed(orders, **overrides) -> str:
    order = make_order(**overrides)
    assert await orders.insert_if_absent(order)
    doc = await (await orders.store.collection(ORDERS)).find_one({"transitionId": order.transition_id})
    return str(doc["_id"])


class TestInsert:
    async def test_second_insert_is_ignored(self, orders, db):
        order = make_order(transitionId="pi_same")

        assert await orders.insert_if_absent(order) is True
        assert await orders.insert_if_absent(make_order(transitionId="pi_same", amountPaid=99)) is False

        docs = await db[ORDERS].find({"transitionId": "pi_same"}).to_list(length=None)
        assert len(docs) == 1
        assert docs[0]["amountPaid"] == 25.5
        assert docs[0]["status"] == "New"


class TestListing:
    async def test_filters_and_newest_first(self, orders):
        now = datetime.now(timezone.utc)
        await seed(orders, productName="older", createdAt=now - timedelta(hours=2))
        await seed(orders, productName="newer", createdAt=now)
        await seed(orders, productName="other seller", sellerEmail="else@example.com")

        listed = await orders.list_orders(seller_email="seller@example.com")

        assert [o["productName"] for o in listed] == ["newer", "older"]
        assert all(isinstance(o["_id"], str) for o in listed)

    async def test_customer_filter(self, orders):
        await seed(orders, customerEmail="a@example.com")
        await seed(orders, customerEmail="b@example.com")

        listed = await orders.list_orders(customer_email="b@example.com")
        assert len(listed) == 1


class TestStatus:
    async def test_full_lifecycle(self, orders, db):
        order_id = await seed(orders)

        for status in (OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED):
            result = await orders.update_status(order_id, status)
            assert result["modifiedCount"] == 1

        doc = await db[ORDERS].find_one({"_id": ObjectId(order_id)})
        assert doc["status"] == "Delivered"

    async def test_same_status_is_noop(self, orders):
        order_id = await seed(orders)
        assert (await orders.update_status(order_id, OrderStatus.NEW))["modifiedCount"] == 0

    async def test_cannot_skip_or_reverse(self, orders):
        order_id = await seed(orders)
        with pytest.raises(ConflictError):
            await orders.update_status(order_id, OrderStatus.DELIVERED)

        await orders.update_status(order_id, OrderStatus.CANCELLED)
        with pytest.raises(ConflictError):
            await orders.update_status(order_id, OrderStatus.PROCESSING)

    async def test_unknown_order(self, orders):
        with pytest.raises(NotFoundError):
            await orders.update_status(str(ObjectId()), OrderStatus.PROCESSING)


class TestStats:
    async def test_seller_stats(self, orders, make_product):
        await make_product()
        await make_product(name="Oak Shelf")
        await seed(orders, amountPaid=25.5)
        second = await seed(orders, amountPaid=10.25)
        await orders.update_status(second, OrderStatus.PROCESSING)
        await seed(orders, sellerEmail="else@example.com", amountPaid=1000)

        stats = await orders.seller_stats("seller@example.com")

        assert stats["totalProducts"] == 2
        assert stats["totalOrders"] == 2
        assert stats["totalRevenue"] == 35.75
        assert stats["statusCounts"] == {"New": 1, "Processing": 1}
        assert len(stats["last7Days"]) == 7
        today = stats["last7Days"][-1]
        assert today["orders"] == 2
        assert today["revenue"] == 35.75

    async def test_last_days_oldest_first(self, orders):
        now = datetime.now(timezone.utc)
        await seed(orders, createdAt=now - timedelta(days=3))
        await seed(orders, createdAt=now - timedelta(days=30))

        series = (await orders.seller_stats("seller@example.com"))["last7Days"]

        assert series[0]["date"] < series[-1]["date"]
        assert sum(day["orders"] for day in series) == 1

    async def test_user_stats(self, orders, db):
        await db[USERS].insert_one({"email": "buyer@example.com", "wishlist": [str(ObjectId()), str(ObjectId())]})
        first = await seed(orders)
        await seed(orders)
        delivered = await seed(orders, amountPaid=4.5)
        for status in (OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED):
            await orders.update_status(delivered, status)
        await orders.update_status(first, OrderStatus.CANCELLED)

        stats = await orders.user_stats("buyer@example.com")

        assert stats["totalOrders"] == 3
        assert stats["totalSpent"] == 55.5
        assert stats["pendingCount"] == 1
        assert stats["deliveredCount"] == 1
        assert stats["wishlistCount"] == 2

    async def test_user_stats_without_profile(self, orders):
        stats = await orders.user_stats("nobody@example.com")
        assert stats["totalOrders"] == 0
        assert stats["wishlistCount"] == 0

    async def test_platform_stats(self, orders, db, make_product):
        await db[USERS].insert_many([
            {"email": "s1@example.com", "role": "seller"},
            {"email": "u1@example.com", "role": "user", "sellerRequest": "pending"},
        ])
        await make_product()
        await seed(orders, amountPaid=20)
        await seed(orders, amountPaid=5, createdAt=datetime.now(timezone.utc) - timedelta(days=2))

        stats = await orders.platform_stats()

        assert stats["totalOrders"] == 2
        assert stats["totalRevenue"] == 25
        assert stats["totalUsers"] == 2
        assert stats["totalSellers"] == 1
        assert stats["pendingSellerRequests"] == 1
        assert stats["totalProducts"] == 1
        assert stats["todayOrderCount"] == 1
        assert stats["todaySales"] == 20
        assert len(stats["recentOrders"]) == 2


class TestMigration:
    async def test_legacy_fields_renamed(self, orders, db):
        await db[ORDERS].insert_one({
            "TransitionId": "pi_legacy",
            "amountpaid": 12.0,
            "CustomerName": "Old Timer",
            "status": "New",
        })

        assert await orders.migrate_legacy_fields() == 3
        doc = await db[ORDERS].find_one({"transitionId": "pi_legacy"})
        assert doc["amountPaid"] == 12.0
        assert doc["customerName"] == "Old Timer"
        assert "amountpaid" not in doc

        assert await orders.migrate_legacy_fields() == 0


class TestOrderRoutes:
    async def test_status_route(self, api, store):
        order_id = await seed(OrderDatabase(store))

        response = await api.patch(f"/orders/{order_id}", json={"status": "Processing"})
        assert response.status_code == 200

        skipped = await api.patch(f"/orders/{order_id}", json={"status": "Delivered"})
        assert skipped.status_code == 409

        unknown = await api.patch(f"/orders/{order_id}", json={"status": "Teleported"})
        assert unknown.status_code == 400

        missing = await api.patch(f"/orders/{ObjectId()}", json={"status": "Processing"})
        assert missing.status_code == 404

    async def test_stats_routes(self, api, store):
        await seed(OrderDatabase(store))

        listed = await api.get("/orders", params={"sellerEmail": "seller@example.com"})
        assert len(listed.json()) == 1

        seller = await api.get("/orders/seller-stats", params={"sellerEmail": "seller@example.com"})
        assert seller.json()["totalOrders"] == 1

        assert (await api.get("/orders/seller-stats")).status_code == 400
        assert (await api.get("/orders/platform-stats")).json()["totalOrders"] == 1
