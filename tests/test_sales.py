from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import update

from services.orchestrator.service import CheckoutService
from services.order_service.models import Order
from services.order_service.sales import SalesService
from services.order_service.service import OrderService


@pytest.fixture
def place_order(db, fill_cart):
    async def _place(customer_id, *lines, created_at=None):
        await fill_cart(customer_id, *lines)
        order = await CheckoutService.checkout(db, customer_id)
        if created_at is not None:
            await db.execute(update(Order).where(Order.id == order.id).values(created_at=created_at))
            await db.commit()
        return order
    return _place


async def test_sums_only_the_owners_lines(db, make_product, place_order):
    mine = await make_product(price="10.00", owner_id="owner-1")
    theirs = await make_product(price="99.00", owner_id="owner-2")
    await place_order("cust-1", (mine, 2), (theirs, 1))
    await place_order("cust-2", (mine, 1))

    assert await SalesService.total_sales(db, "owner-1") == Decimal("30.00")
    assert await SalesService.total_sales(db, "owner-2") == Decimal("99.00")
    assert await SalesService.total_sales(db, "owner-3") == Decimal("0.00")


async def test_cancelled_orders_do_not_count(db, make_product, place_order):
    product = await make_product(price="5.00", owner_id="owner-1")
    kept = await place_order("cust-1", (product, 1))
    cancelled = await place_order("cust-2", (product, 3))
    await OrderService.update_status(db, cancelled.id, "owner-1", "Cancelled")
    await OrderService.update_status(db, kept.id, "owner-1", "Processing")

    assert await SalesService.total_sales(db, "owner-1") == Decimal("5.00")


async def test_date_range_is_inclusive(db, make_product, place_order):
    product = await make_product(price="1.00", stock=100, owner_id="owner-1")
    base = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)
    await place_order("cust-1", (product, 1), created_at=base - timedelta(days=1))
    await place_order("cust-2", (product, 2), created_at=base)
    await place_order("cust-3", (product, 4), created_at=base + timedelta(days=1))

    assert await SalesService.total_sales(db, "owner-1", base, base) == Decimal("2.00")
    assert await SalesService.total_sales(db, "owner-1", start=base) == Decimal("6.00")
    assert await SalesService.total_sales(db, "owner-1", end=base) == Decimal("3.00")
    assert await SalesService.total_sales(db, "owner-1") == Decimal("7.00")
