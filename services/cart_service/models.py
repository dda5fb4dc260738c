from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship
from shared.config.database import Base, utcnow

class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(String, nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    # Bumped by every mutation; a stale writer gets StaleDataError on flush
    version = Column(Integer, nullable=False)

    # Stored order is insertion order, which checkout relies on
    lines = relationship(
        "CartLine",
        back_populates="cart",
        lazy="selectin",
        order_by="CartLine.id",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

class CartLine(Base):
    __tablename__ = "cart_lines"
    __table_args__ = (UniqueConstraint("cart_id", "product_id", name="uq_cart_lines_cart_product"),)

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, nullable=False)
    # Snapshot taken when the line was first added; advisory only
    product_name = Column(String, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    image_url = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False, default=1)

    cart = relationship("Cart", back_populates="lines")
