from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .models import Product
from .repository import ProductRepository
from .schemas import ProductCreate


def _matches(product: Product, words: set[str]) -> bool:
    haystack = f"{product.name} {product.description}".lower().split()
    return bool(words & set(haystack))


class ProductService:

    @staticmethod
    async def add_product(db: AsyncSession, data: ProductCreate) -> Product:
        return await ProductRepository.insert(db, Product(**data.model_dump()))

    @staticmethod
    async def browse(
        db: AsyncSession,
        query: Optional[str] = None,
        shop: Optional[str] = None,
        category: Optional[str] = None,
        in_stock_only: bool = False,
    ):
        """Catalog listing; free-text `query` matches any word of name or description."""
        products = await ProductRepository.find(
            db, owner_id=shop, category=category, in_stock_only=in_stock_only
        )
        if query:
            words = set(query.lower().split())
            products = [p for p in products if _matches(p, words)]
        return products

    @staticmethod
    async def get(db: AsyncSession, product_id: int) -> Optional[Product]:
        return await ProductRepository.get_by_id(db, product_id)
