from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from shared.schemas import APIModel

class CartLineAdd(APIModel):
    product_id: int
    quantity: int = 1

class CartLineUpdate(APIModel):
    quantity: int

class CartLineResponse(APIModel):
    product_id: int
    product_name: str
    price: Decimal
    image_url: Optional[str] = None
    quantity: int

class CartResponse(APIModel):
    id: Optional[int] = None
    customer_id: str
    items: List[CartLineResponse] = []
    # Advisory only: computed from prices captured at add time
    total_amount: Decimal = Decimal("0.00")
    updated_at: Optional[datetime] = None

    @classmethod
    def from_cart(cls, cart, customer_id: str) -> "CartResponse":
        if cart is None:
            return cls(customer_id=customer_id)
        items = [CartLineResponse.model_validate(line) for line in cart.lines]
        total = sum((line.price * line.quantity for line in items), Decimal("0.00"))
        return cls(
            id=cart.id,
            customer_id=cart.customer_id,
            items=items,
            total_amount=total.quantize(Decimal("0.01")),
            updated_at=cart.updated_at,
        )
