"""
Order status state machine.

    Pending -> Processing -> Shipped -> Delivered
    Pending -> Cancelled
    Processing -> Cancelled

Nothing moves backwards and nothing leaves Delivered or Cancelled.
"""
import enum

from shared.exceptions import InvalidTransition


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

CANCELLABLE = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if OrderStatus.CANCELLED in targets)


def parse_status(value: str) -> OrderStatus:
    """Accepts 'Shipped' as well as 'shipped' / 'SHIPPED'."""
    for status in OrderStatus:
        if value.lower() == status.value.lower():
            return status
    raise ValueError(f"Unknown order status {value!r}")


def ensure_transition(current: OrderStatus, target: OrderStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(current.value, target.value)
