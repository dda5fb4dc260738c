from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import verify_internal_api_key

from .schemas import ProductCreate, ProductResponse
from .service import ProductService

router = APIRouter()
internal_router = APIRouter(dependencies=[Depends(verify_internal_api_key)])


@internal_router.post("/", response_model=ProductResponse, status_code=201)
async def create_product(product: ProductCreate, db: AsyncSession = Depends(get_db)):
    return await ProductService.add_product(db, product)


@router.get("/", response_model=list[ProductResponse])
async def list_products(
    query: Optional[str] = Query(default=None),
    shop: Optional[str] = Query(default=None, description="Owner id of the shop"),
    category: Optional[str] = Query(default=None),
    in_stock: bool = Query(default=False, alias="inStock"),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService.browse(
        db, query=query, shop=shop, category=category, in_stock_only=in_stock
    )


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await ProductService.get(db, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
