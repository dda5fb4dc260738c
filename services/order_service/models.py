from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from shared.config.database import Base, utcnow

from .status import OrderStatus

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(String, nullable=False, index=True)
    total_amount = Column(Numeric(12, 2), nullable=False) # sum of line price x quantity at checkout
    # Only mutable column; written through a compare-and-set on the current value
    status = Column(String, nullable=False, default=OrderStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    shipping_address = Column(String, nullable=True)

    lines = relationship("OrderLine", back_populates="order", lazy="selectin", order_by="OrderLine.id")

    def owned_by(self, owner_id: str) -> bool:
        return any(line.owner_id == owner_id for line in self.lines)

    def visible_to(self, user_id: str) -> bool:
        return self.customer_id == user_id or self.owned_by(user_id)

class OrderLine(Base):
    """Catalog snapshot taken at checkout; never updated afterwards."""
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)
    product_name = Column(String, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    shop_name = Column(String, nullable=False)
    owner_id = Column(String, nullable=False, index=True)

    order = relationship("Order", back_populates="lines")
