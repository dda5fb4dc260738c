from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import utcnow

from .models import Product


class ProductRepository:

    @staticmethod
    async def insert(db: AsyncSession, product: Product):
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product

    @staticmethod
    async def find(
        db: AsyncSession,
        owner_id: Optional[str] = None,
        category: Optional[str] = None,
        in_stock_only: bool = False,
    ):
        stmt = select(Product)
        if owner_id is not None:
            stmt = stmt.where(Product.owner_id == owner_id)
        if category:
            stmt = stmt.where(Product.category == category)
        if in_stock_only:
            stmt = stmt.where(Product.stock > 0)
        result = await db.execute(stmt.order_by(Product.id))
        return result.scalars().all()

    @staticmethod
    async def get_by_id(db: AsyncSession, product_id: int) -> Optional[Product]:
        # populate_existing: stock moves behind the identity map via bulk UPDATEs
        result = await db.execute(
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def decrement_if_available(db: AsyncSession, product_id: int, quantity: int) -> bool:
        """
        Take `quantity` units in one conditional UPDATE.

        The stock check and the write are a single statement, so two callers
        racing for the last unit cannot both see a matched row.
        """
        result = await db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        # Commit even on a miss so the write lock is released straight away
        await db.commit()
        return result.rowcount == 1

    @staticmethod
    async def increment(db: AsyncSession, product_id: int, quantity: int, commit: bool = True) -> bool:
        result = await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + quantity, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if commit:
            await db.commit()
        return result.rowcount == 1
