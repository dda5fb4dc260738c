import os
import tempfile

# Configure before anything imports shared.config.settings
_DB_DIR = tempfile.mkdtemp(prefix="marketplace-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/marketplace.db"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")
os.environ["TRACING_ENABLED"] = "false"
os.environ["CHECKOUT_RATE_LIMIT"] = "1000/minute"

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

import main
from services.cart_service.service import CartService
from services.catalog_service.models import Product
from services.catalog_service.repository import ProductRepository
from shared.config.database import AsyncSessionLocal, Base, engine
from shared.security import create_access_token


@pytest.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled aiosqlite connections are bound to this test's event loop
    await engine.dispose()


@pytest.fixture
async def db(database):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def session_factory(database):
    return AsyncSessionLocal


@pytest.fixture
async def client(database):
    async with AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test") as c:
        yield c


@pytest.fixture
def auth():
    def _headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return _headers


@pytest.fixture
def make_product(db):
    async def _make(
        name="Widget",
        price="10.00",
        stock=10,
        owner_id="owner-1",
        shop_name="Shop One",
    ) -> Product:
        product = Product(
            name=name,
            price=Decimal(price),
            stock=stock,
            owner_id=owner_id,
            shop_name=shop_name,
        )
        return await ProductRepository.insert(db, product)
    return _make


@pytest.fixture
def stock_of(session_factory):
    """Reads stock through a fresh session so nothing cached can leak in."""
    async def _stock(product_id: int) -> int:
        async with session_factory() as session:
            product = await ProductRepository.get_by_id(session, product_id)
            return product.stock
    return _stock


@pytest.fixture
def fill_cart(db):
    async def _fill(customer_id: str, *lines):
        for product, quantity in lines:
            await CartService.add_line(db, customer_id, product.id, quantity)
    return _fill
