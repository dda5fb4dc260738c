from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from shared.schemas import APIModel

class CheckoutRequest(APIModel):
    shipping_address: Optional[str] = None

class StatusUpdate(APIModel):
    # Free-form so unknown names surface as InvalidTransition rather than a 422
    status: str

class OrderLineResponse(APIModel):
    product_id: int
    product_name: str
    price: Decimal
    quantity: int
    shop_name: str
    owner_id: str

class OrderResponse(APIModel):
    id: int
    customer_id: str
    items: List[OrderLineResponse]
    total_amount: Decimal
    status: str
    created_at: datetime
    shipping_address: Optional[str] = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            id=order.id,
            customer_id=order.customer_id,
            items=[OrderLineResponse.model_validate(line) for line in order.lines],
            total_amount=order.total_amount,
            status=order.status,
            created_at=order.created_at,
            shipping_address=order.shipping_address,
        )

class SalesPeriod(APIModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None

class SalesResponse(APIModel):
    total_sales: Decimal
    period: SalesPeriod
