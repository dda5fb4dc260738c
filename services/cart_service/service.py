import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from services.catalog_service.repository import ProductRepository
from shared.config import settings
from shared.exceptions import CartWriteConflict, InvalidQuantity, ProductUnavailable
from shared.observability import ecomm_active_carts

from .models import Cart, CartLine
from .repository import CartRepository

logger = structlog.get_logger(__name__)


def _find_line(cart, product_id: int):
    if cart is None:
        return None
    return next((line for line in cart.lines if line.product_id == product_id), None)


async def _retry_on_conflict(db: AsyncSession, customer_id: str, operation):
    """
    Run one cart mutation, re-reading and retrying when a concurrent writer won.

    A lost race shows up either as StaleDataError (version_id_col mismatch)
    or IntegrityError (duplicate cart / duplicate line insert). The failed
    attempt is rolled back before the next one starts.
    """
    for attempt in range(1, settings.CART_WRITE_ATTEMPTS + 1):
        try:
            return await operation()
        except (StaleDataError, IntegrityError) as exc:
            await db.rollback()
            logger.info("cart_write_conflict", customer_id=customer_id, attempt=attempt, error=str(exc))
            if attempt == settings.CART_WRITE_ATTEMPTS:
                raise CartWriteConflict(
                    f"Cart of {customer_id} changed concurrently, gave up after {attempt} attempts"
                ) from exc


class CartService:
    @staticmethod
    async def get_cart(db: AsyncSession, customer_id: str):
        return await CartRepository.get_by_customer(db, customer_id)

    @staticmethod
    async def add_line(db: AsyncSession, customer_id: str, product_id: int, quantity: int) -> Cart:
        """
        Add `quantity` units of a product, merging into an existing line.

        Stock is checked against the cumulative line quantity. The check is
        advisory: checkout takes the stock for real.
        """
        if quantity < 1:
            raise InvalidQuantity(quantity)

        async def attempt():
            product = await ProductRepository.get_by_id(db, product_id)
            cart = await CartRepository.get_by_customer(db, customer_id)
            existing = _find_line(cart, product_id)
            wanted = quantity + (existing.quantity if existing else 0)
            if product is None or product.stock < wanted:
                raise ProductUnavailable(product_id)

            was_empty = cart is None or not cart.lines
            if cart is None:
                cart = Cart(customer_id=customer_id)
            if existing:
                existing.quantity = wanted
            else:
                cart.lines.append(CartLine(
                    product_id=product.id,
                    product_name=product.name,
                    price=product.price,
                    image_url=product.image_url,
                    quantity=quantity,
                ))
            cart = await CartRepository.save(db, cart)
            if was_empty:
                ecomm_active_carts.inc()
            return cart

        cart = await _retry_on_conflict(db, customer_id, attempt)
        logger.info("cart_line_added", customer_id=customer_id, product_id=product_id, quantity=quantity)
        return cart

    @staticmethod
    async def remove_line(db: AsyncSession, customer_id: str, product_id: int) -> bool:
        async def attempt():
            cart = await CartRepository.get_by_customer(db, customer_id)
            line = _find_line(cart, product_id)
            if line is None:
                return False
            cart.lines.remove(line)
            await CartRepository.save(db, cart)
            if not cart.lines:
                ecomm_active_carts.dec()
            return True

        return await _retry_on_conflict(db, customer_id, attempt)

    @staticmethod
    async def set_quantity(db: AsyncSession, customer_id: str, product_id: int, quantity: int) -> bool:
        if quantity < 1:
            raise InvalidQuantity(quantity)

        async def attempt():
            cart = await CartRepository.get_by_customer(db, customer_id)
            line = _find_line(cart, product_id)
            if line is None:
                return False
            line.quantity = quantity
            await CartRepository.save(db, cart)
            return True

        return await _retry_on_conflict(db, customer_id, attempt)

    @staticmethod
    async def clear(db: AsyncSession, customer_id: str) -> bool:
        cart = await CartRepository.get_by_customer(db, customer_id)
        if cart is None:
            return False
        had_lines = bool(cart.lines)
        cleared = await CartRepository.clear(db, customer_id)
        if cleared and had_lines:
            ecomm_active_carts.dec()
        return cleared

    @staticmethod
    async def sync_active_carts(db: AsyncSession) -> int:
        """Seed the active-carts gauge from storage; the gauge only tracks changes made by this process."""
        count = await CartRepository.count_non_empty(db)
        ecomm_active_carts.set(count)
        return count
