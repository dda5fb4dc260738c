from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Order, OrderLine

class OrderRepository:
    @staticmethod
    async def insert(db: AsyncSession, order: Order) -> Order:
        db.add(order)
        await db.commit()
        return order

    @staticmethod
    async def find_by_id(db: AsyncSession, order_id: int) -> Optional[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def find_by_customer(db: AsyncSession, customer_id: str):
        result = await db.execute(
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def find_by_owner(db: AsyncSession, owner_id: str):
        result = await db.execute(
            select(Order)
            .where(Order.lines.any(OrderLine.owner_id == owner_id))
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def update_status(db: AsyncSession, order_id: int, expected: str, status: str) -> bool:
        """
        Compare-and-set the status. Returns False if the order is no longer
        in `expected`. Does not commit: callers pair it with side effects
        that must land in the same transaction.
        """
        result = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == expected)
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    async def lines_for_owner(
        db: AsyncSession,
        owner_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        exclude_statuses=(),
    ):
        query = (
            select(OrderLine)
            .join(Order, OrderLine.order_id == Order.id)
            .where(OrderLine.owner_id == owner_id)
        )
        if start is not None:
            query = query.where(Order.created_at >= start)
        if end is not None:
            query = query.where(Order.created_at <= end)
        if exclude_statuses:
            query = query.where(Order.status.not_in(list(exclude_statuses)))
        result = await db.execute(query)
        return result.scalars().all()
