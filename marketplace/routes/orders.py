"""Order and dashboard API routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..database import OrderDatabase
from ..models.checkout import UpdateOrderStatusRequest
from .deps import get_order_db

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.get("")
async def list_orders(
    seller_email: Optional[str] = Query(None, alias="sellerEmail"),
    customer_email: Optional[str] = Query(None, alias="customerEmail"),
    orders: OrderDatabase = Depends(get_order_db),
):
    """Orders filtered by seller and/or customer, newest first"""
    return await orders.list_orders(seller_email=seller_email, customer_email=customer_email)


@router.get("/seller-stats")
async def seller_stats(
    seller_email: str = Query(..., alias="sellerEmail", min_length=1),
    orders: OrderDatabase = Depends(get_order_db),
):
    return await orders.seller_stats(seller_email)


@router.get("/user-stats")
async def user_stats(
    customer_email: str = Query(..., alias="customerEmail", min_length=1),
    orders: OrderDatabase = Depends(get_order_db),
):
    return await orders.user_stats(customer_email)


@router.get("/platform-stats")
async def platform_stats(orders: OrderDatabase = Depends(get_order_db)):
    """Manager dashboard totals"""
    return await orders.platform_stats()


@router.patch("/{order_id}")
async def update_order_status(
    order_id: str,
    request: UpdateOrderStatusRequest,
    orders: OrderDatabase = Depends(get_order_db),
):
    """Seller/admin status change along the order lifecycle"""
    return await orders.update_status(order_id, request.status)
