import asyncio

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.cart_service.repository import CartRepository
from services.cart_service.service import CartService
from services.order_service.models import Order
from services.order_service.repository import OrderRepository
from shared.config.database import bounded
from shared.exceptions import EmptyCart, MarketplaceError, StorageUnavailable
from shared.observability import ecomm_checkout_duration_seconds, ecomm_checkout_total

from .checkout_saga import STORAGE_ERRORS, build_checkout_saga, reset_session

logger = structlog.get_logger(__name__)


class CheckoutService:

    @staticmethod
    async def checkout(db: AsyncSession, customer_id: str, shipping_address: str | None = None) -> Order:
        """
        Turn the customer's cart into a Pending order.

        Either every line's stock is taken and the order is recorded, or
        nothing is: partial reservations are released before the error
        surfaces. The cart is cleared only after the order is committed.
        Checkout is never retried here; a second call works on whatever the
        cart holds at that point.

        Cancelling the caller does not interrupt a checkout in flight: it
        settles first (order recorded and cart cleared, or fully
        compensated) and the cancellation is re-raised afterwards.
        """
        with ecomm_checkout_duration_seconds.time():
            run = asyncio.ensure_future(CheckoutService._settle(db, customer_id, shipping_address))
            try:
                order = await asyncio.shield(run)
            except asyncio.CancelledError:
                await CheckoutService._wait_settled(run, customer_id)
                raise
            except MarketplaceError as e:
                ecomm_checkout_total.labels(status="failed").inc()
                logger.info("checkout_failed", customer_id=customer_id, reason=e.code)
                raise
        ecomm_checkout_total.labels(status="success").inc()
        return order

    @staticmethod
    async def _wait_settled(run: asyncio.Future, customer_id: str):
        while not run.done():
            try:
                await asyncio.wait({run})
            except asyncio.CancelledError:
                continue
        ecomm_checkout_total.labels(status="cancelled").inc()
        if run.cancelled():
            logger.warning("checkout_cancelled", customer_id=customer_id, error="cancelled")
            return
        error = run.exception()
        if error is None:
            logger.warning("checkout_cancelled_after_commit", customer_id=customer_id, order_id=run.result().id)
        else:
            logger.warning("checkout_cancelled", customer_id=customer_id, error=repr(error))

    @staticmethod
    async def _settle(db: AsyncSession, customer_id: str, shipping_address: str | None) -> Order:
        order = await CheckoutService._run(db, customer_id, shipping_address)
        order_id = order.id
        logger.info("checkout_completed", customer_id=customer_id, order_id=order_id,
                    total_amount=str(order.total_amount), lines=len(order.lines))

        # The order is the source of truth from here on; a stale cart is harmless
        try:
            await bounded(CartService.clear(db, customer_id))
        except STORAGE_ERRORS as exc:
            await reset_session(db)
            logger.warning("cart_clear_failed", customer_id=customer_id, order_id=order_id, error=repr(exc))
            # The rollback expired the committed order; load it again
            order = await CheckoutService._reload(db, order_id)
        return order

    @staticmethod
    async def _reload(db: AsyncSession, order_id: int) -> Order:
        try:
            order = await bounded(OrderRepository.find_by_id(db, order_id))
        except STORAGE_ERRORS as exc:
            await reset_session(db)
            raise StorageUnavailable(f"Order {order_id} was recorded but could not be read back") from exc
        if order is None:
            raise StorageUnavailable(f"Order {order_id} was recorded but could not be read back")
        return order

    @staticmethod
    async def _run(db: AsyncSession, customer_id: str, shipping_address: str | None) -> Order:
        try:
            cart = await bounded(CartRepository.get_by_customer(db, customer_id))
        except STORAGE_ERRORS as exc:
            await reset_session(db)
            raise StorageUnavailable(f"Could not read cart of {customer_id}") from exc
        if cart is None or not cart.lines:
            raise EmptyCart(customer_id)

        items = [(line.product_id, line.quantity) for line in cart.lines]
        ctx = {
            "db": db,
            "customer_id": customer_id,
            "shipping_address": shipping_address,
            "reserved": [],
        }
        await build_checkout_saga(items).execute(ctx)
        return ctx["order"]
