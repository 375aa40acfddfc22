"""Notification API routes"""

from fastapi import APIRouter, Depends, Query

from ..database import NotificationDatabase
from ..database.helpers import to_serializable
from ..models.notification import CreateNotificationRequest, MarkAllReadRequest, CouponBroadcastRequest
from ..services import NotificationService
from .deps import get_notification_db, get_notifier

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post("", status_code=201)
async def create_notification(
    request: CreateNotificationRequest,
    notifier: NotificationService = Depends(get_notifier),
):
    """Store a notification and push it to the recipient's channel"""
    return await notifier.create(
        email=request.email,
        type=request.type,
        title=request.title,
        message=request.message or "",
        meta=request.meta,
    )


@router.get("")
async def list_notifications(
    email: str = Query(..., min_length=1),
    notifications: NotificationDatabase = Depends(get_notification_db),
):
    """Most recent notifications for a recipient"""
    return to_serializable(await notifications.list_for(email))


@router.get("/unread-count")
async def unread_count(
    email: str = Query(..., min_length=1),
    notifications: NotificationDatabase = Depends(get_notification_db),
):
    return {"count": await notifications.unread_count(email)}


@router.patch("/mark-all-read")
async def mark_all_read(
    request: MarkAllReadRequest,
    notifications: NotificationDatabase = Depends(get_notification_db),
):
    modified = await notifications.mark_all_read(request.email)
    return {"success": True, "modifiedCount": modified}


@router.post("/broadcast-coupon")
async def broadcast_coupon(
    request: CouponBroadcastRequest,
    notifier: NotificationService = Depends(get_notifier),
):
    """Announce a coupon to every connected client (not stored)"""
    delivered = await notifier.broadcast_coupon(request.code, request.discount)
    return {"success": True, "delivered": delivered}


@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    notifications: NotificationDatabase = Depends(get_notification_db),
):
    await notifications.mark_read(notification_id)
    return {"success": True}


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    notifications: NotificationDatabase = Depends(get_notification_db),
):
    await notifications.delete(notification_id)
    return {"success": True}
