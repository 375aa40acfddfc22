"""Shared fixtures: in-memory document store and a fake payment processor"""

from datetime import datetime, timezone
from urllib.parse import parse_qsl

import httpx
import pytest
from bson import ObjectId
from mongomock_motor import AsyncMongoMockClient

from marketplace.core.config import Settings
from marketplace.core.store import DocumentStore, PRODUCTS
from marketplace.main import create_app
from marketplace.services import PaymentProcessorClient


class InMemoryClient:
    """mongomock-backed stand-in for the motor client"""

    instances = 0

    def __init__(self, *args, **kwargs):
        InMemoryClient.instances += 1
        self._client = AsyncMongoMockClient()
        self.closed = False

    def __getitem__(self, name):
        return self._client[name]

    def close(self):
        self.closed = True


class FakeProcessor:
    """Records checkout session calls and serves canned sessions"""

    def __init__(self):
        self.sessions: dict[str, dict] = {}
        self.created: list[dict] = []
        self.retrieved: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "POST" and path == "/v1/checkout/sessions":
            form = dict(parse_qsl(request.content.decode()))
            self.created.append(form)
            session_id = f"cs_test_{len(self.created)}"
            return httpx.Response(200, json={
                "id": session_id,
                "url": f"https://checkout.stripe.test/pay/{session_id}",
            })
        if request.method == "GET" and path.startswith("/v1/checkout/sessions/"):
            session_id = path.rsplit("/", 1)[-1]
            self.retrieved.append(session_id)
            if session_id in self.sessions:
                return httpx.Response(200, json=self.sessions[session_id])
            return httpx.Response(404, json={"error": {"message": f"No such checkout.session: '{session_id}'"}})
        return httpx.Response(400, json={"error": {"message": "Unexpected request"}})

    def add_session(
        self,
        session_id: str,
        payment_intent: str = "pi_test_1",
        amount_total: int = 5100,
        metadata: dict = None,
        customer_email: str = "Buyer@Example.com",
        customer_name: str = "Bea Buyer",
        payment_status: str = "paid",
    ) -> dict:
        session = {
            "id": session_id,
            "status": "complete" if payment_status == "paid" else "open",
            "payment_status": payment_status,
            "payment_intent": payment_intent if payment_status == "paid" else None,
            "amount_total": amount_total,
            "customer_email": customer_email,
            "customer_details": {"name": customer_name, "email": customer_email},
            "metadata": metadata if metadata is not None else {
                "productId": str(ObjectId()),
                "productName": "Walnut Desk Lamp",
                "sellerName": "Sam Seller",
                "sellerEmail": "seller@example.com",
                "unitPrice": "25.50",
            },
        }
        self.sessions[session_id] = session
        return session


@pytest.fixture
def settings():
    return Settings(
        stripe_secret_key="sk_test_123",
        channel_token_secret="test-channel-secret",
        site_domain="https://shop.test",
        database_name="UnityShopTest",
    )


@pytest.fixture
def store(settings):
    return DocumentStore("mongodb://in-memory", settings.database_name, client_factory=InMemoryClient)


@pytest.fixture
async def db(store):
    return await store.database()


@pytest.fixture
def processor():
    return FakeProcessor()


@pytest.fixture
def payments(settings, processor):
    return PaymentProcessorClient(
        secret_key=settings.stripe_secret_key,
        base_url=settings.stripe_api_base,
        transport=httpx.MockTransport(processor.handler),
    )


@pytest.fixture
def app(settings, store, payments):
    return create_app(settings=settings, store=store, payments=payments)


@pytest.fixture
async def api(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://marketplace.test") as client:
        yield client


def product_document(**overrides) -> dict:
    doc = {
        "_id": ObjectId(),
        "name": "Walnut Desk Lamp",
        "price": 25.5,
        "stock": 10,
        "sellerId": ObjectId(),
        "sellerEmail": "seller@example.com",
        "sellerName": "Sam Seller",
        "image": "https://img.test/lamp.jpg",
        "category": "home",
        "createdAt": datetime.now(timezone.utc),
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def make_product(db):
    async def _make(**overrides) -> dict:
        doc = product_document(**overrides)
        await db[PRODUCTS].insert_one(doc)
        return doc
    return _make


class RecordingChannels:
    """Channel registry double that records emitted events"""

    def __init__(self):
        self.events: list[tuple[str, str, dict]] = []
        self.broadcasts: list[tuple[str, dict]] = []

    async def emit(self, channel, event, data):
        self.events.append((channel, event, data))
        return 1

    async def broadcast(self, event, data):
        self.broadcasts.append((event, data))
        return 1


@pytest.fixture
def channels():
    return RecordingChannels()
