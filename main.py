import structlog
from fastapi import FastAPI, Request
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.config import settings
from shared.config.database import AsyncSessionLocal, create_tables
from shared.observability import setup_observability
from shared.security import limiter

# IMPORTANT: import models so they register with Base
from services.catalog_service import models as catalog_models  # noqa: F401
from services.cart_service import models as cart_models  # noqa: F401
from services.order_service import models as order_models  # noqa: F401

from services.catalog_service.router import router as catalog_router, internal_router as catalog_internal_router
from services.cart_service.router import router as cart_router
from services.cart_service.service import CartService
from services.order_service.router import router as order_router

app = FastAPI(title="Marketplace", version="1.0.0")

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(app, settings.SERVICE_NAME)

# --- SECURITY SETUP ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def bind_request_context(request: Request, call_next):
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
    return await call_next(request)


@app.on_event("startup")
async def startup_event():
    await create_tables()
    async with AsyncSessionLocal() as db:
        await CartService.sync_active_carts(db)


@app.get("/health", include_in_schema=False)
async def health_check():
    return {"service": settings.SERVICE_NAME, "status": "running"}


app.include_router(catalog_router, prefix="/products", tags=["Catalog"])
app.include_router(catalog_internal_router, prefix="/products", tags=["Catalog"])
app.include_router(cart_router, prefix="/cart", tags=["Cart"])
app.include_router(order_router, prefix="/orders", tags=["Orders"])
