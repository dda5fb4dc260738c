from typing import Optional

from sqlalchemy import delete, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import utcnow

from .models import Cart, CartLine

class CartRepository:
    @staticmethod
    async def get_by_customer(db: AsyncSession, customer_id: str) -> Optional[Cart]:
        result = await db.execute(
            select(Cart)
            .where(Cart.customer_id == customer_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def save(db: AsyncSession, cart: Cart) -> Cart:
        """Write the whole cart (header and lines) in one transaction."""
        cart.updated_at = utcnow()
        db.add(cart)
        await db.commit()
        return cart

    @staticmethod
    async def clear(db: AsyncSession, customer_id: str) -> bool:
        """Deletes the cart and all its lines in a single commit."""
        cart_ids = select(Cart.id).where(Cart.customer_id == customer_id)
        await db.execute(
            delete(CartLine)
            .where(CartLine.cart_id.in_(cart_ids))
            .execution_options(synchronize_session="fetch")
        )
        result = await db.execute(
            delete(Cart)
            .where(Cart.customer_id == customer_id)
            .execution_options(synchronize_session="fetch")
        )
        await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def count_non_empty(db: AsyncSession) -> int:
        result = await db.execute(select(func.count(distinct(CartLine.cart_id))))
        return result.scalar_one()
