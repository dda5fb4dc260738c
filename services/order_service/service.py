import asyncio

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from services.catalog_service.repository import ProductRepository
from shared.config.database import bounded
from shared.exceptions import InvalidTransition, NotOrderParticipant, OrderNotFound, StorageUnavailable
from shared.observability import ecomm_order_status_transitions_total

from .models import Order
from .repository import OrderRepository
from .status import OrderStatus, ensure_transition, parse_status

logger = structlog.get_logger(__name__)

class OrderService:
    @staticmethod
    async def get_order(db: AsyncSession, order_id: int, user_id: str) -> Order:
        """Visible to the ordering customer and to every shop owner with a line in it."""
        order = await OrderRepository.find_by_id(db, order_id)
        if order is None:
            raise OrderNotFound(order_id)
        if not order.visible_to(user_id):
            raise NotOrderParticipant(order_id, user_id)
        return order

    @staticmethod
    async def customer_orders(db: AsyncSession, customer_id: str):
        return await OrderRepository.find_by_customer(db, customer_id)

    @staticmethod
    async def shop_orders(db: AsyncSession, owner_id: str):
        return await OrderRepository.find_by_owner(db, owner_id)

    @staticmethod
    async def update_status(db: AsyncSession, order_id: int, owner_id: str, requested: str) -> Order:
        """
        Move an order along the status state machine on behalf of a shop owner.

        Cancelling puts every line's quantity back into catalog stock. The
        status compare-and-set and the stock increments commit together, so
        an order is restocked at most once even when two owners race.
        """
        order = await OrderRepository.find_by_id(db, order_id)
        if order is None:
            raise OrderNotFound(order_id)
        if not order.owned_by(owner_id):
            raise NotOrderParticipant(order_id, owner_id)

        current = OrderStatus(order.status)
        try:
            target = parse_status(requested)
        except ValueError:
            raise InvalidTransition(current.value, requested)
        ensure_transition(current, target)

        try:
            applied = await bounded(OrderRepository.update_status(db, order_id, current.value, target.value))
            if not applied:
                await db.rollback()
                latest = await OrderRepository.find_by_id(db, order_id)
                raise InvalidTransition(latest.status, target.value)

            if target is OrderStatus.CANCELLED:
                for line in order.lines:
                    restocked = await bounded(
                        ProductRepository.increment(db, line.product_id, line.quantity, commit=False)
                    )
                    if not restocked:
                        logger.warning(
                            "restock_skipped_missing_product",
                            order_id=order_id,
                            product_id=line.product_id,
                            quantity=line.quantity,
                        )
            await bounded(db.commit())
        except (SQLAlchemyError, asyncio.TimeoutError) as exc:
            await db.rollback()
            logger.error("order_status_update_failed", order_id=order_id, target=target.value, error=repr(exc))
            raise StorageUnavailable(f"Could not update status of order {order_id}") from exc

        ecomm_order_status_transitions_total.labels(from_status=current.value, to_status=target.value).inc()
        logger.info("order_status_changed", order_id=order_id, owner_id=owner_id,
                    from_status=current.value, to_status=target.value)
        return await OrderRepository.find_by_id(db, order_id)
