"""
Notification fan-out

Persists a notification, then pushes it to the recipient's channel
(the lowercased email). Push is a convenience: callers that notify as a
side effect use notify_safely(), which never raises.
"""

import logging
from typing import Any, Optional

from ..database.helpers import to_serializable, utcnow
from ..database.notifications import NotificationDatabase
from ..models.notification import Notification, NotificationType
from .realtime import ChannelRegistry

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT = "notification"
COUPON_EVENT = "coupon"


class NotificationService:
    """Create notifications and deliver them to connected clients"""

    def __init__(self, notifications: NotificationDatabase, channels: Optional[ChannelRegistry] = None):
        self.notifications = notifications
        self.channels = channels

    async def create(
        self,
        email: str,
        type: NotificationType,
        title: str,
        message: str = "",
        meta: Optional[dict[str, Any]] = None,
    ) -> dict:
        """Persist and push a notification; returns the stored document"""
        notification = Notification(
            email=email,
            type=type,
            title=title,
            message=message or "",
            meta=meta or {},
            createdAt=utcnow(),
        )
        doc = await self.notifications.insert(notification)

        if self.channels is not None:
            channel = notification.email.lower()
            delivered = await self.channels.emit(channel, NOTIFICATION_EVENT, doc)
            logger.debug(f"Notification '{notification.type.value}' pushed to {channel} ({delivered} client(s))")

        return to_serializable(doc)

    async def notify_safely(self, email: Optional[str], type: NotificationType, title: str, message: str = "", meta=None) -> Optional[dict]:
        """create() for side-effect notifications; failures are logged, not raised"""
        if not email:
            return None
        try:
            return await self.create(email, type, title, message, meta)
        except Exception:
            logger.exception(f"Failed to send '{type.value}' notification to {email}")
            return None

    async def broadcast_coupon(self, code: str, discount: Any) -> int:
        """Push a coupon announcement to every connected client; nothing is stored"""
        if self.channels is None:
            return 0
        delivered = await self.channels.broadcast(COUPON_EVENT, {
            "type": NotificationType.COUPON.value,
            "title": "New coupon available!",
            "message": f"Use code {code} to save {discount}.",
            "code": code,
            "discount": discount,
            "createdAt": utcnow(),
        })
        logger.info(f"Coupon {code} broadcast to {delivered} client(s)")
        return delivered
