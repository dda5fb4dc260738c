"""
Cart endpoints. The caller is always the cart's customer: the customer id
is the `sub` claim of the bearer token, never a path or body field.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.exceptions import CartWriteConflict, InvalidQuantity, ProductUnavailable
from shared.security.dependencies import get_current_user

from .schemas import CartLineAdd, CartLineUpdate, CartResponse
from .service import CartService

router = APIRouter()


@router.get("", response_model=CartResponse)
async def get_cart(customer_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    cart = await CartService.get_cart(db, customer_id)
    return CartResponse.from_cart(cart, customer_id)


@router.post("/add", response_model=CartResponse)
async def add_to_cart(
    payload: CartLineAdd,
    customer_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        cart = await CartService.add_line(db, customer_id, payload.product_id, payload.quantity)
    except (ProductUnavailable, InvalidQuantity) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_detail())
    except CartWriteConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.to_detail())
    return CartResponse.from_cart(cart, customer_id)


@router.put("/update/{product_id}", response_model=CartResponse)
async def update_cart_line(
    product_id: int,
    payload: CartLineUpdate,
    customer_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        updated = await CartService.set_quantity(db, customer_id, product_id, payload.quantity)
    except InvalidQuantity as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_detail())
    except CartWriteConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.to_detail())
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found in cart")
    return CartResponse.from_cart(await CartService.get_cart(db, customer_id), customer_id)


@router.delete("/remove/{product_id}", response_model=CartResponse)
async def remove_cart_line(
    product_id: int,
    customer_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        removed = await CartService.remove_line(db, customer_id, product_id)
    except CartWriteConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.to_detail())
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found in cart")
    return CartResponse.from_cart(await CartService.get_cart(db, customer_id), customer_id)


@router.delete("/clear")
async def clear_cart(customer_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await CartService.clear(db, customer_id)
    return {"message": "Cart cleared successfully"}
