"""Promo code API routes"""

from fastapi import APIRouter, Depends

from ..database import PromoDatabase
from ..models.promo import (
    CreatePromoRequest,
    UpdatePromoRequest,
    ValidatePromoRequest,
    PromoCode,
    PromoType,
)
from ..services import NotificationService
from .deps import get_notifier, get_promo_db

router = APIRouter(prefix="/promo", tags=["Promo"])


@router.get("/admin")
async def list_promo_codes(promos: PromoDatabase = Depends(get_promo_db)):
    return await promos.list_codes()


@router.post("/admin", status_code=201)
async def create_promo_code(
    request: CreatePromoRequest,
    promos: PromoDatabase = Depends(get_promo_db),
    notifier: NotificationService = Depends(get_notifier),
):
    """Create a promo code and announce it to connected clients"""
    promo = PromoCode(
        code=request.code,
        type=request.type,
        value=request.value,
        description=request.description or "",
        minOrder=request.min_order or None,
        maxUses=request.max_uses or None,
        expiresAt=request.expires_at,
    )
    created = await promos.create(promo)

    label = f"{promo.value:g}%" if promo.type == PromoType.PERCENTAGE else f"${promo.value:.2f}"
    await notifier.broadcast_coupon(promo.code, label)
    return created


@router.patch("/admin/{promo_id}")
async def update_promo_code(
    promo_id: str,
    request: UpdatePromoRequest,
    promos: PromoDatabase = Depends(get_promo_db),
):
    return await promos.update(promo_id, request)


@router.delete("/admin/{promo_id}")
async def delete_promo_code(promo_id: str, promos: PromoDatabase = Depends(get_promo_db)):
    return await promos.delete(promo_id)


@router.post("/validate")
async def validate_promo_code(
    request: ValidatePromoRequest,
    promos: PromoDatabase = Depends(get_promo_db),
):
    """Quote a discount; only valid/discount/description/code are returned"""
    quote = await promos.validate(request.code, request.subtotal)
    return quote.to_response()
