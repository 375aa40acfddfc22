"""
Document Store Handle

Process-wide MongoDB handle. Constructed once by the application lifespan,
connected lazily on first use and closed on shutdown.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

logger = logging.getLogger(__name__)

CARTS = "carts"
PRODUCTS = "products"
ORDERS = "paidOrders"
NOTIFICATIONS = "notifications"
PROMO_CODES = "promoCodes"
USERS = "users"
REVIEWS = "reviews"


class DocumentStore:
    """
    Lazily connected document database handle.

    Usage:
        store = DocumentStore("mongodb://localhost:27017", "UnityShopDB")
        carts = await store.collection("carts")
        ...
        await store.close()

    Concurrent first calls share a single connection attempt.
    """

    def __init__(
        self,
        uri: str,
        database_name: str,
        client_factory: Callable[..., Any] = AsyncIOMotorClient,
        timeout_ms: int = 5000,
    ):
        """
        Args:
            uri: MongoDB connection string
            database_name: Database holding the marketplace collections
            client_factory: Callable building the async client from the URI
            timeout_ms: Server selection timeout
        """
        self.uri = uri
        self.database_name = database_name
        self._client_factory = client_factory
        self._timeout_ms = timeout_ms
        self._client: Optional[Any] = None
        self._db: Optional[AsyncIOMotorDatabase] = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    async def database(self) -> AsyncIOMotorDatabase:
        """Return the database, connecting on first call"""
        if self._db is not None:
            return self._db

        async with self._lock:
            if self._db is None:
                client = self._client_factory(
                    self.uri,
                    serverSelectionTimeoutMS=self._timeout_ms,
                    tz_aware=True,
                )
                db = client[self.database_name]
                await self._ensure_indexes(db)
                self._client = client
                self._db = db
                logger.info(f"Connected to document store database '{self.database_name}'")

        return self._db

    async def collection(self, name: str) -> AsyncIOMotorCollection:
        db = await self.database()
        return db[name]

    async def close(self) -> None:
        """Close the client; the next call reconnects"""
        if self._client is not None:
            self._client.close()
            logger.info("Document store connection closed")
        self._client = None
        self._db = None

    async def _ensure_indexes(self, db: AsyncIOMotorDatabase) -> None:
        await db[CARTS].create_index([("userId", ASCENDING)], unique=True)
        await db[ORDERS].create_index([("transitionId", ASCENDING)], unique=True)
        await db[PROMO_CODES].create_index([("code", ASCENDING)], unique=True)
        await db[NOTIFICATIONS].create_index([("email", ASCENDING), ("createdAt", DESCENDING)])
        await db[REVIEWS].create_index([("productId", ASCENDING), ("createdAt", DESCENDING)])
        await db[REVIEWS].create_index([("productId", ASCENDING), ("userId", ASCENDING)], unique=True)
