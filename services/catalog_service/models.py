from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String, Text
from shared.config.database import Base, utcnow


class Product(Base):
    __tablename__ = "products"
    # Last line of defence; stock is only ever moved by conditional UPDATEs
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(12, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    category = Column(String, nullable=False, default="")
    image_url = Column(String, nullable=True)
    owner_id = Column(String, nullable=False, index=True)
    shop_name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
