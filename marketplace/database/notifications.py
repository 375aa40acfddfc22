"""Notification storage"""

import logging
from typing import Optional

from pymongo import DESCENDING

from ..core.errors import NotFoundError
from ..core.store import DocumentStore, NOTIFICATIONS
from ..models.notification import Notification
from .helpers import email_pattern, to_object_id

logger = logging.getLogger(__name__)


class NotificationDatabase:
    """Per-recipient notifications, matched case-insensitively by email"""

    def __init__(self, store: DocumentStore, list_limit: int = 50):
        self.store = store
        self.list_limit = list_limit

    async def insert(self, notification: Notification) -> dict:
        """Persist a notification and return the stored document"""
        notifications = await self.store.collection(NOTIFICATIONS)
        doc = notification.to_document()
        result = await notifications.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    async def list_for(self, email: str, limit: Optional[int] = None) -> list[dict]:
        """Most recent notifications for a recipient"""
        notifications = await self.store.collection(NOTIFICATIONS)
        cursor = notifications.find(
            {"email": email_pattern(email)},
            sort=[("createdAt", DESCENDING)],
            limit=limit or self.list_limit,
        )
        return await cursor.to_list(length=None)

    async def unread_count(self, email: str) -> int:
        notifications = await self.store.collection(NOTIFICATIONS)
        return await notifications.count_documents({"email": email_pattern(email), "read": False})

    async def mark_read(self, notification_id: str) -> None:
        notifications = await self.store.collection(NOTIFICATIONS)
        result = await notifications.update_one(
            {"_id": to_object_id(notification_id)},
            {"$set": {"read": True}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Notification not found")

    async def mark_all_read(self, email: str) -> int:
        """Mark every unread notification for a recipient; returns rows changed"""
        notifications = await self.store.collection(NOTIFICATIONS)
        result = await notifications.update_many(
            {"email": email_pattern(email), "read": False},
            {"$set": {"read": True}},
        )
        return result.modified_count

    async def delete(self, notification_id: str) -> None:
        notifications = await self.store.collection(NOTIFICATIONS)
        result = await notifications.delete_one({"_id": to_object_id(notification_id)})
        if result.deleted_count == 0:
            raise NotFoundError("Notification not found")
