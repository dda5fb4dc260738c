from datetime import date, datetime, time, timezone

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.orchestrator.service import CheckoutService
from shared.config import settings
from shared.config.database import get_db
from shared.exceptions import (
    CompensationFailure,
    EmptyCart,
    InvalidTransition,
    NotOrderParticipant,
    OrderNotFound,
    OrderPersistFailure,
    StockConflict,
    StorageUnavailable,
)
from shared.security import get_current_user, limiter

from .sales import SalesService
from .schemas import CheckoutRequest, OrderResponse, SalesPeriod, SalesResponse, StatusUpdate
from .service import OrderService

router = APIRouter()


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.CHECKOUT_RATE_LIMIT)
async def checkout(
    request: Request,                          # REQUIRED: slowapi needs this to check IP/Headers
    payload: CheckoutRequest | None = Body(default=None),
    customer_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    shipping_address = payload.shipping_address if payload else None
    try:
        order = await CheckoutService.checkout(db, customer_id, shipping_address)
    except (EmptyCart, StockConflict) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_detail())
    except (OrderPersistFailure, StorageUnavailable, CompensationFailure) as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.to_detail())
    return OrderResponse.from_order(order)


# Declared before /{order_id} so "sales" is not parsed as an id
@router.get("/sales", response_model=SalesResponse)
async def get_sales(
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    owner_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    # Whole days, both ends inclusive, in UTC
    start = datetime.combine(start_date, time.min, tzinfo=timezone.utc) if start_date else None
    end = datetime.combine(end_date, time.max, tzinfo=timezone.utc) if end_date else None
    total = await SalesService.total_sales(db, owner_id, start, end)
    return SalesResponse(total_sales=total, period=SalesPeriod(start_date=start_date, end_date=end_date))


@router.get("/user", response_model=list[OrderResponse])
async def get_customer_orders(customer_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return [OrderResponse.from_order(o) for o in await OrderService.customer_orders(db, customer_id)]


@router.get("/shop", response_model=list[OrderResponse])
async def get_shop_orders(owner_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return [OrderResponse.from_order(o) for o in await OrderService.shop_orders(db, owner_id)]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int, user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    try:
        order = await OrderService.get_order(db, order_id, user_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.to_detail())
    except NotOrderParticipant as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.to_detail())
    return OrderResponse.from_order(order)


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    payload: StatusUpdate,
    owner_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        order = await OrderService.update_status(db, order_id, owner_id, payload.status)
    except OrderNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.to_detail())
    except NotOrderParticipant as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.to_detail())
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_detail())
    except StorageUnavailable as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.to_detail())
    return OrderResponse.from_order(order)
