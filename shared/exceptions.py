"""
Domain errors raised by the service layer.

Routers translate these into HTTP responses; each class carries a stable
``code`` that is echoed back to the caller in the error body.
"""


class MarketplaceError(Exception):
    code = "MarketplaceError"

    def to_detail(self) -> dict:
        return {"code": self.code, "message": str(self)}


# --- Validation errors: reported directly, nothing was applied ---

class InvalidQuantity(MarketplaceError):
    code = "InvalidQuantity"

    def __init__(self, quantity: int):
        super().__init__(f"Quantity must be at least 1, got {quantity}")
        self.quantity = quantity


class EmptyCart(MarketplaceError):
    code = "EmptyCart"

    def __init__(self, customer_id: str):
        super().__init__("Cart is empty")
        self.customer_id = customer_id


class InvalidTransition(MarketplaceError):
    code = "InvalidTransition"

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move order from {current} to {requested}")
        self.current = current
        self.requested = requested


class OrderNotFound(MarketplaceError):
    code = "OrderNotFound"

    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class NotOrderParticipant(MarketplaceError):
    """The caller owns no line in the order."""

    code = "NotOrderParticipant"

    def __init__(self, order_id: int, user_id: str):
        super().__init__(f"Order {order_id} contains no products of {user_id}")
        self.order_id = order_id
        self.user_id = user_id


# --- Conflict errors: stock was insufficient ---

class ProductUnavailable(MarketplaceError):
    code = "ProductUnavailable"

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not available or insufficient stock")
        self.product_id = product_id


class StockConflict(MarketplaceError):
    code = "StockConflict"

    def __init__(self, product_id: int):
        super().__init__(f"Insufficient stock for product {product_id}")
        self.product_id = product_id

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["productId"] = self.product_id
        return detail


# --- Persistence errors: compensation ran before these surface ---

class StorageUnavailable(MarketplaceError):
    code = "StorageUnavailable"


class OrderPersistFailure(MarketplaceError):
    code = "OrderPersistFailure"


class CompensationFailure(MarketplaceError):
    """
    A compensating action failed after a partial checkout or cancellation.
    Stock is now inconsistent with the ledger and needs manual reconciliation.
    """

    code = "CompensationFailure"

    def __init__(self, failed_step: str, failed_compensations: list):
        super().__init__(
            f"Step '{failed_step}' failed and compensations {failed_compensations} "
            "could not be applied; reconciliation required"
        )
        self.failed_step = failed_step
        self.failed_compensations = failed_compensations


class CartWriteConflict(MarketplaceError):
    """The cart kept changing underneath every optimistic write attempt."""

    code = "CartWriteConflict"
