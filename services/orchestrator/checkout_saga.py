"""
Checkout as a saga.

One reserve_stock step per cart line (in stored cart order), each paired
with a release_stock compensation, then a read-only pricing step and the
order insert. Stock is only ever taken through
ProductRepository.decrement_if_available, a single conditional UPDATE, so
concurrent checkouts for the same product serialize on that statement alone.
"""
import asyncio
from decimal import Decimal

import structlog
from sqlalchemy.exc import SQLAlchemyError

from services.catalog_service.repository import ProductRepository
from services.order_service.models import Order, OrderLine
from services.order_service.repository import OrderRepository
from services.order_service.status import OrderStatus
from shared.config.database import bounded
from shared.exceptions import OrderPersistFailure, StockConflict, StorageUnavailable
from shared.observability import ecomm_reconciliation_items_total, ecomm_stock_conflicts_total

from .saga import SagaOrchestrator

logger = structlog.get_logger(__name__)

# A timed-out storage call counts as a failed one
STORAGE_ERRORS = (SQLAlchemyError, asyncio.TimeoutError)


async def reset_session(db):
    """Discard whatever the failed statement left in the session's transaction."""
    try:
        await db.rollback()
    except SQLAlchemyError as exc:
        logger.error("session_rollback_failed", error=repr(exc))


# --- ACTIONS ---

def reserve_stock(product_id: int, quantity: int):
    async def action(ctx: dict):
        db = ctx["db"]
        try:
            taken = await bounded(ProductRepository.decrement_if_available(db, product_id, quantity))
        except asyncio.TimeoutError as exc:
            await reset_session(db)
            # The UPDATE may or may not have landed; it is not compensated
            ecomm_reconciliation_items_total.labels(source="checkout").inc()
            logger.error(
                "stock_reservation_outcome_unknown",
                customer_id=ctx["customer_id"],
                product_id=product_id,
                quantity=quantity,
            )
            raise StorageUnavailable(f"Timed out reserving stock for product {product_id}") from exc
        except SQLAlchemyError as exc:
            await reset_session(db)
            raise StorageUnavailable(f"Could not reserve stock for product {product_id}") from exc

        if not taken:
            ecomm_stock_conflicts_total.inc()
            raise StockConflict(product_id)
        ctx["reserved"].append((product_id, quantity))
    return action

async def price_lines(ctx: dict):
    """Snapshot authoritative catalog data for every reserved line; the cart's cached price is ignored."""
    db = ctx["db"]
    lines = []
    for product_id, quantity in ctx["reserved"]:
        try:
            product = await bounded(ProductRepository.get_by_id(db, product_id))
        except STORAGE_ERRORS as exc:
            await reset_session(db)
            raise StorageUnavailable(f"Could not read product {product_id}") from exc
        if product is None:
            raise StockConflict(product_id)
        lines.append(OrderLine(
            product_id=product.id,
            product_name=product.name,
            price=product.price,
            quantity=quantity,
            shop_name=product.shop_name,
            owner_id=product.owner_id,
        ))
    ctx["order_lines"] = lines
    total = sum((Decimal(line.price) * line.quantity for line in lines), Decimal("0.00"))
    ctx["total_amount"] = total.quantize(Decimal("0.01"))

async def record_order(ctx: dict):
    db = ctx["db"]
    order = Order(
        customer_id=ctx["customer_id"],
        total_amount=ctx["total_amount"],
        status=OrderStatus.PENDING.value,
        shipping_address=ctx.get("shipping_address"),
        lines=ctx["order_lines"],
    )
    try:
        ctx["order"] = await bounded(OrderRepository.insert(db, order))
    except STORAGE_ERRORS as exc:
        await reset_session(db)
        raise OrderPersistFailure(f"Could not record order for {ctx['customer_id']}") from exc


# --- COMPENSATIONS (Rollbacks) ---

def release_stock(product_id: int, quantity: int):
    async def compensation(ctx: dict):
        db = ctx["db"]
        try:
            restored = await bounded(ProductRepository.increment(db, product_id, quantity))
        except STORAGE_ERRORS:
            await reset_session(db)
            raise
        if not restored:
            logger.warning("release_skipped_missing_product", product_id=product_id, quantity=quantity)
    return compensation


# --- BUILDER FACTORY ---

def build_checkout_saga(items) -> SagaOrchestrator:
    """`items` is the cart as (product_id, quantity) pairs in stored order."""
    saga = SagaOrchestrator("checkout")
    for product_id, quantity in items:
        saga.add_step(
            f"reserve_stock:{product_id}",
            reserve_stock(product_id, quantity),
            release_stock(product_id, quantity),
        )
    saga.add_step("price_lines", price_lines, None) # Read-only, no rollback needed
    saga.add_step("record_order", record_order, None) # Last step, nothing after it can fail the saga
    return saga
