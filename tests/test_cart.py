"""Cart engine and cart routes"""

import asyncio

import pytest
from bson import ObjectId

from marketplace.core.errors import NotFoundError, ValidationError
from marketplace.core.store import CARTS, PRODUCTS
from marketplace.database import CartDatabase, CartChange, CART_UPDATED


@pytest.fixture
def carts(store, channels):
    return CartDatabase(store, channels=channels)


@pytest.fixture
def user_id():
    return str(ObjectId())


async def stored_items(db, user_id):
    doc = await db[CARTS].find_one({"userId": ObjectId(user_id)})
    return {str(i["productId"]): i["quantity"] for i in doc["items"]} if doc else None


class TestGetCart:
    async def test_missing_cart_is_empty(self, carts, user_id):
        assert await carts.get_cart(user_id) == []

    async def test_lines_joined_with_product_data(self, carts, user_id, make_product):
        lamp = await make_product(price=25.5, stock=3)
        mug = await make_product(name="Stoneware Mug", price=12.0, stock=0)

        await carts.add_or_adjust(user_id, str(lamp["_id"]), 2)
        await carts.add_or_adjust(user_id, str(mug["_id"]), 1)

        lines = await carts.get_cart(user_id)
        assert [line.product_id for line in lines] == [str(lamp["_id"]), str(mug["_id"])]

        first = lines[0].to_response()
        assert first["productId"] == str(lamp["_id"])
        assert first["quantity"] == 2
        assert first["price"] == 25.5
        assert first["lineTotal"] == 51.0
        assert first["inStock"] is True
        assert first["sellerEmail"] == "seller@example.com"
        assert first["sellerId"] == str(lamp["sellerId"])
        assert lines[1].in_stock is False

    async def test_deleted_products_are_skipped(self, carts, db, user_id, make_product):
        lamp = await make_product()
        await carts.add_or_adjust(user_id, str(lamp["_id"]), 1)
        await db[PRODUCTS].delete_one({"_id": lamp["_id"]})

        assert await carts.get_cart(user_id) == []


class TestAddOrAdjust:
    async def test_first_add_creates_cart(self, carts, db, user_id):
        product_id = str(ObjectId())

        change = await carts.add_or_adjust(user_id, product_id, 2)

        assert change == CartChange.ADDED
        assert await stored_items(db, user_id) == {product_id: 2}

    @pytest.mark.parametrize("deltas, expected", [
        ([1, 1, 1], 3),
        ([2, 5, -3], 4),
        ([4, -1, -1], 2),
    ])
    async def test_quantity_is_sum_of_deltas(self, carts, db, user_id, deltas, expected):
        product_id = str(ObjectId())
        for delta in deltas:
            await carts.add_or_adjust(user_id, product_id, delta)

        assert (await stored_items(db, user_id))[product_id] == expected

    @pytest.mark.parametrize("deltas", [[1, -1], [3, -1, 2, -4], [2, -5]])
    async def test_row_removed_instead_of_reaching_zero(self, carts, db, user_id, deltas):
        product_id = str(ObjectId())
        for delta in deltas:
            await carts.add_or_adjust(user_id, product_id, delta)

        assert product_id not in await stored_items(db, user_id)

    async def test_decrement_from_one_removes_row(self, carts, db, user_id):
        product_id = str(ObjectId())
        other_id = str(ObjectId())
        await carts.add_or_adjust(user_id, product_id, 1)
        await carts.add_or_adjust(user_id, other_id, 2)

        change = await carts.add_or_adjust(user_id, product_id, -1)

        assert change == CartChange.REMOVED
        assert await stored_items(db, user_id) == {other_id: 2}

    async def test_negative_delta_on_missing_row_changes_nothing(self, carts, db, channels, user_id):
        change = await carts.add_or_adjust(user_id, str(ObjectId()), -1)

        assert change == CartChange.UNCHANGED
        assert await db[CARTS].count_documents({}) == 0
        assert channels.events == []

    async def test_zero_delta_rejected(self, carts, user_id):
        with pytest.raises(ValidationError):
            await carts.add_or_adjust(user_id, str(ObjectId()), 0)

    async def test_invalid_ids_rejected(self, carts):
        with pytest.raises(ValidationError, match="userId"):
            await carts.add_or_adjust("not-an-id", str(ObjectId()), 1)

    async def test_concurrent_adds_keep_one_row(self, carts, db, user_id):
        product_id = str(ObjectId())

        await asyncio.gather(*(carts.add_or_adjust(user_id, product_id, 1) for _ in range(4)))

        doc = await db[CARTS].find_one({"userId": ObjectId(user_id)})
        assert len(doc["items"]) == 1
        assert doc["items"][0]["quantity"] == 4

    async def test_concurrent_decrements_never_store_zero(self, carts, db, user_id):
        product_id = str(ObjectId())
        await carts.add_or_adjust(user_id, product_id, 2)

        changes = await asyncio.gather(*(carts.add_or_adjust(user_id, product_id, -1) for _ in range(3)))

        assert sorted(c.value for c in changes) == ["removed", "unchanged", "updated"]
        assert await stored_items(db, user_id) == {}

    async def test_large_decrement_pulls_row(self, carts, db, user_id):
        product_id = str(ObjectId())
        await carts.add_or_adjust(user_id, product_id, 2)

        assert await carts.add_or_adjust(user_id, product_id, -5) == CartChange.REMOVED
        assert await stored_items(db, user_id) == {}

    async def test_cart_holding_a_zero_row_stays_usable(self, carts, db, user_id, make_product):
        broken_id, lamp = ObjectId(), await make_product()
        await db[CARTS].insert_one({
            "userId": ObjectId(user_id),
            "items": [{"productId": broken_id, "quantity": 0}, {"productId": lamp["_id"], "quantity": 0}],
        })

        assert await carts.add_or_adjust(user_id, str(ObjectId()), 1) == CartChange.ADDED
        assert await carts.get_cart(user_id) == []
        assert await carts.add_or_adjust(user_id, str(broken_id), -1) == CartChange.REMOVED
        assert await carts.add_or_adjust(user_id, str(lamp["_id"]), 1) == CartChange.UPDATED
        assert (await stored_items(db, user_id))[str(lamp["_id"])] == 1

    async def test_emits_cart_updated_to_user_channel(self, carts, channels, user_id):
        await carts.add_or_adjust(user_id, str(ObjectId()), 1)

        channel, event, data = channels.events[-1]
        assert channel == user_id
        assert event == CART_UPDATED
        assert data["change"] == "added"


class TestSetQuantity:
    async def test_overwrites_quantity(self, carts, db, user_id):
        product_id = str(ObjectId())
        await carts.add_or_adjust(user_id, product_id, 1)

        await carts.set_quantity(user_id, product_id, 7)

        assert (await stored_items(db, user_id))[product_id] == 7

    async def test_zero_rejected_without_mutation(self, carts, db, user_id):
        product_id = str(ObjectId())
        await carts.add_or_adjust(user_id, product_id, 2)
        before = await db[CARTS].find_one({"userId": ObjectId(user_id)})

        with pytest.raises(ValidationError):
            await carts.set_quantity(user_id, product_id, 0)

        after = await db[CARTS].find_one({"userId": ObjectId(user_id)})
        assert after == before

    async def test_absent_row_is_not_found(self, carts, user_id):
        with pytest.raises(NotFoundError):
            await carts.set_quantity(user_id, str(ObjectId()), 2)


class TestRemove:
    async def test_remove_is_idempotent(self, carts, db, user_id):
        product_id = str(ObjectId())
        await carts.add_or_adjust(user_id, product_id, 3)

        first = await carts.remove_item(user_id, product_id)
        second = await carts.remove_item(user_id, product_id)

        assert first["modifiedCount"] == 1
        assert second["acknowledged"] is True
        assert product_id not in await stored_items(db, user_id)

    async def test_remove_without_cart(self, carts, user_id):
        result = await carts.remove_item(user_id, str(ObjectId()))
        assert result["matchedCount"] == 0


class TestCartRoutes:
    async def test_get_missing_cart_returns_empty_list(self, api):
        response = await api.get(f"/cart/{ObjectId()}")
        assert response.status_code == 200
        assert response.json() == []

    async def test_add_then_get(self, api, make_product):
        lamp = await make_product()
        user_id = str(ObjectId())

        response = await api.post("/cart/add", json={"userId": user_id, "productId": str(lamp["_id"]), "quantity": 2})
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Cart Updated!"}

        cart = (await api.get(f"/cart/{user_id}")).json()
        assert cart[0]["quantity"] == 2
        assert cart[0]["name"] == "Walnut Desk Lamp"

    async def test_decrement_message(self, api, make_product):
        lamp = await make_product()
        body = {"userId": str(ObjectId()), "productId": str(lamp["_id"]), "quantity": 1}
        await api.post("/cart/add", json=body)

        response = await api.post("/cart/add", json={**body, "quantity": -1})

        assert response.json()["message"] == "Item removed from cart!"

    async def test_add_unknown_product_is_404(self, api):
        response = await api.post("/cart/add", json={
            "userId": str(ObjectId()), "productId": str(ObjectId()), "quantity": 1,
        })
        assert response.status_code == 404

    async def test_add_malformed_id_is_400(self, api):
        response = await api.post("/cart/add", json={"userId": "abc", "productId": "P1", "quantity": 1})
        assert response.status_code == 400

    async def test_update_zero_is_400(self, api, make_product):
        lamp = await make_product()
        response = await api.put("/cart/update", json={
            "userId": str(ObjectId()), "productId": str(lamp["_id"]), "quantity": 0,
        })
        assert response.status_code == 400
        assert "quantity" in response.json()["detail"]

    async def test_update_above_stock_is_400(self, api, make_product):
        lamp = await make_product(stock=2)
        user_id = str(ObjectId())
        await api.post("/cart/add", json={"userId": user_id, "productId": str(lamp["_id"]), "quantity": 1})

        response = await api.put("/cart/update", json={"userId": user_id, "productId": str(lamp["_id"]), "quantity": 5})

        assert response.status_code == 400
        assert response.json()["detail"] == "Insufficient stock. Available: 2"

    async def test_remove_returns_update_result(self, api, make_product):
        lamp = await make_product()
        user_id = str(ObjectId())
        await api.post("/cart/add", json={"userId": user_id, "productId": str(lamp["_id"]), "quantity": 1})

        response = await api.request("DELETE", "/cart/remove", json={"userId": user_id, "productId": str(lamp["_id"])})

        assert response.status_code == 200
        assert response.json()["modifiedCount"] == 1
        assert (await api.get(f"/cart/{user_id}")).json() == []
