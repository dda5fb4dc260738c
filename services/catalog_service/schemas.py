from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from shared.schemas import APIModel


class ProductCreate(APIModel):
    name: str
    description: str = ""
    price: Decimal = Field(ge=Decimal("0.01"), max_digits=12, decimal_places=2)
    stock: int = Field(ge=0)
    category: str = ""
    image_url: Optional[str] = None
    owner_id: str
    shop_name: str


class ProductResponse(APIModel):
    id: int
    name: str
    description: str
    price: Decimal
    stock: int
    category: str
    image_url: Optional[str]
    owner_id: str
    shop_name: str
    created_at: datetime
