"""Payment API routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..models.checkout import CheckoutSessionRequest, CheckoutSessionResponse
from ..services import CheckoutBridge
from .deps import get_checkout

router = APIRouter(prefix="/payment", tags=["Payment"])


@router.post("/create-checkout-session", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    request: CheckoutSessionRequest,
    checkout: CheckoutBridge = Depends(get_checkout),
):
    """Open a hosted checkout session and return its redirect URL"""
    url = await checkout.create_session(request)
    return CheckoutSessionResponse(url=url)


@router.patch("/retrivedsessionAfterPayment")
async def finalize_session(
    session_id: Optional[str] = Query(None),
    checkout: CheckoutBridge = Depends(get_checkout),
):
    """
    Record the order for a paid session.

    Called by the success page, so it may run more than once per payment;
    repeats answer 200 with alreadyProcessed set.
    """
    result = await checkout.finalize_session(session_id)
    return result.model_dump(by_alias=True, exclude_none=True)
