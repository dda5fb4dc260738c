"""
Shop sales projection over the order ledger.

Sales count every order that was not cancelled, whatever its further
status; the period bounds apply to the order's created_at and are inclusive.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .repository import OrderRepository
from .status import OrderStatus

EXCLUDED_FROM_SALES = (OrderStatus.CANCELLED.value,)


class SalesService:
    @staticmethod
    async def total_sales(
        db: AsyncSession,
        owner_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Decimal:
        lines = await OrderRepository.lines_for_owner(
            db, owner_id, start=start, end=end, exclude_statuses=EXCLUDED_FROM_SALES
        )
        total = sum((Decimal(line.price) * line.quantity for line in lines), Decimal("0.00"))
        return total.quantize(Decimal("0.01"))
