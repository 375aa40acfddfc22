"""Cart API routes"""

from fastapi import APIRouter, HTTPException, Depends

from ..models.cart import (
    AddToCartRequest,
    UpdateCartItemRequest,
    RemoveCartItemRequest,
    CartResponse,
)
from ..database import CartDatabase, CartChange, ProductDatabase
from .deps import get_cart_db, get_product_db

router = APIRouter(prefix="/cart", tags=["Cart"])

MESSAGES = {
    CartChange.ADDED: "Cart Updated!",
    CartChange.UPDATED: "Cart Updated!",
    CartChange.REMOVED: "Item removed from cart!",
    CartChange.UNCHANGED: "Item not in cart.",
}


@router.get("/{user_id}")
async def get_cart(user_id: str, carts: CartDatabase = Depends(get_cart_db)):
    """Cart rows with live price, stock and seller data; [] when empty"""
    lines = await carts.get_cart(user_id)
    return [line.to_response() for line in lines]


@router.post("/add", response_model=CartResponse)
async def add_to_cart(
    request: AddToCartRequest,
    carts: CartDatabase = Depends(get_cart_db),
    products: ProductDatabase = Depends(get_product_db),
):
    """
    Add a product or adjust its quantity.

    Positive quantity increases, negative decreases; a row that would
    drop below 1 is removed.
    """
    if request.quantity > 0:
        product = await products.get_product(request.product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")

    change = await carts.add_or_adjust(request.user_id, request.product_id, request.quantity)
    return CartResponse(success=True, message=MESSAGES[change])


@router.put("/update", response_model=CartResponse)
async def update_cart_item(
    request: UpdateCartItemRequest,
    carts: CartDatabase = Depends(get_cart_db),
    products: ProductDatabase = Depends(get_product_db),
):
    """Set the absolute quantity of a cart row"""
    product = await products.get_product(request.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    if request.quantity > product.stock:
        raise HTTPException(
            status_code=400,
            detail=f"Insufficient stock. Available: {product.stock}",
        )

    await carts.set_quantity(request.user_id, request.product_id, request.quantity)
    return CartResponse(success=True, message="Cart Updated!")


@router.delete("/remove")
async def remove_from_cart(
    request: RemoveCartItemRequest,
    carts: CartDatabase = Depends(get_cart_db),
):
    """Remove a row; removing an absent row succeeds"""
    return await carts.remove_item(request.user_id, request.product_id)
